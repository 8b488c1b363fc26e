# designflow/services/outlet_tracker.py
"""
Design (outlet_tracker.py)
- Purpose: The list-view engine behind the outlet table. Owns the outlet snapshot and the
           ViewState, derives visible rows, and runs every create/update/delete against the
           outlet store followed by a full reload.
- Inputs: An outlet store exposing list_outlets(), insert_outlet(fields),
          update_outlet(id, fields) and delete_outlet(id), each raising SupabaseError.
- Outputs: Result objects for every backend action; DataFrames for visible rows.
- Side effects: Backend calls; replaces the snapshot after every reload.
- Thread-safety: The snapshot is swapped under a lock and never modified in place. Each reload
                 takes a ticket and only the newest ticket's response is applied.
"""
import logging
import threading
from dataclasses import replace
from datetime import datetime

import pandas as pd

from connectors.supabase_connector import SupabaseError, rows_to_frame
from services.result import LoadError, Result, ValidationError, WriteError
from utils.view_state import OutletDraft, ViewState, outlet_metrics, visible_outlets
from utils.vocabulary import FIELDS_BY_COLUMN

logger = logging.getLogger(__name__)


def _cell_text(value):
    return "" if pd.isna(value) else str(value)


class OutletTracker:
    """
    Design (OutletTracker)
    - State:
        outlets: DataFrame snapshot of the whole table (replaced wholesale, never patched)
        view: ViewState (frozen; every change swaps in a new instance)
        loading: True while a reload is in flight; the table body renders nothing meanwhile
        error: last OutletTrackerError to show, or None
        last_loaded: datetime of the last successful reload
    """

    def __init__(self, store, view=None):
        self.store = store
        self.view = view or ViewState()
        self.outlets = rows_to_frame([])
        self.loading = False
        self.error = None
        self.last_loaded = None
        self._lock = threading.Lock()
        self._latest_ticket = 0

    # -------- Snapshot --------

    def load(self):
        """
        Purpose: Fetch the full outlet list and replace the snapshot.
        Outputs: Result with the number of outlets, or a LoadError.
        Side effects: On failure the snapshot becomes empty and `error` is set.
        """
        with self._lock:
            self._latest_ticket += 1
            ticket = self._latest_ticket
            self.loading = True
        try:
            df = self.store.list_outlets()
        except SupabaseError as e:
            logger.error(f"Loading outlets failed: {e}")
            return self._apply_load(ticket, rows_to_frame([]), LoadError(f"Could not load outlets: {e}"))
        except Exception:
            # loading must not outlive a failed call
            with self._lock:
                if ticket == self._latest_ticket:
                    self.loading = False
            raise
        return self._apply_load(ticket, df, None)

    def _apply_load(self, ticket, df, error):
        with self._lock:
            if ticket != self._latest_ticket:
                # A newer reload was issued while this one was in flight
                logger.info(f"Discarding stale outlet reload #{ticket}.")
                return Result.success(len(self.outlets)) if error is None else Result.failure(error)
            self.outlets = df
            self.loading = False
            self.error = error
            if error is None:
                self.last_loaded = datetime.now()
        return Result.failure(error) if error else Result.success(len(df))

    def visible_rows(self):
        return visible_outlets(self.outlets, self.view)

    def metrics(self):
        return outlet_metrics(self.outlets)

    def clear_error(self):
        self.error = None

    # -------- Search / filter / sort --------

    def set_search(self, text):
        self.view = replace(self.view, search=text or "")

    def clear_search(self):
        self.set_search("")

    def set_filter(self, dimension, value):
        self.view = replace(self.view, filters=self.view.filters.with_value(dimension, value))

    def reset_filters(self):
        self.view = replace(self.view, filters=self.view.filters.cleared())

    def toggle_sort(self, key):
        self.view = replace(self.view, sort=self.view.sort.toggled(key))

    # -------- Dialogs --------

    def open_filter_dialog(self):
        self.view = replace(self.view, filter_open=True)

    def close_filter_dialog(self):
        self.view = replace(self.view, filter_open=False)

    def open_add_dialog(self):
        self.view = replace(self.view, add_open=True)

    def close_add_dialog(self):
        self.view = replace(self.view, add_open=False)

    def set_new_outlet(self, rt_code=None, outlet_name=None):
        draft = self.view.new_outlet
        self.view = replace(self.view, new_outlet=replace(
            draft,
            rt_code=draft.rt_code if rt_code is None else rt_code,
            outlet_name=draft.outlet_name if outlet_name is None else outlet_name,
        ))

    def begin_edit(self, outlet):
        """`outlet` is a row (mapping or Series) from the snapshot."""
        self.view = replace(self.view, editing=OutletDraft(
            rt_code=_cell_text(outlet["rt_code"]),
            outlet_name=_cell_text(outlet["outlet_name"]),
            id=outlet["id"],
        ))

    def set_editing(self, rt_code=None, outlet_name=None):
        draft = self.view.editing
        if draft is None:
            return
        self.view = replace(self.view, editing=replace(
            draft,
            rt_code=draft.rt_code if rt_code is None else rt_code,
            outlet_name=draft.outlet_name if outlet_name is None else outlet_name,
        ))

    def cancel_edit(self):
        self.view = replace(self.view, editing=None)

    def close_dialogs(self):
        self.view = replace(self.view, filter_open=False, add_open=False, editing=None, pending_delete=None)

    # -------- Mutations --------

    def _write(self, action, call, *args):
        try:
            call(*args)
        except SupabaseError as e:
            logger.error(f"Could not {action}: {e}")
            self.error = WriteError(f"Could not {action}: {e}")
            return Result.failure(self.error)
        self.error = None
        return Result.success()

    def update_field(self, outlet_id, column, value):
        """
        Purpose: Change one status column of one outlet, then reload.
        Inputs: outlet_id, column (one of the six status columns), value from its vocabulary.
        Outputs: Result; the displayed value only changes once the reload lands.
        """
        status_field = FIELDS_BY_COLUMN.get(column)
        if status_field is None:
            raise ValueError(f"'{column}' is not an editable status column")
        if not status_field.vocabulary.is_valid(value):
            self.error = ValidationError(f"'{value}' is not a valid {status_field.label} value.", {column: value})
            return Result.failure(self.error)
        result = self._write(f"update {status_field.label}", self.store.update_outlet, outlet_id, {column: value})
        if result.ok:
            self.load()
        return result

    def create(self, rt_code=None, outlet_name=None):
        """
        Purpose: Insert a new outlet from the add-dialog draft (or the given values).
        Outputs: Result. On success the add dialog closes, the draft clears and the list reloads.
                 On failure the dialog stays open with `error` set.
        """
        draft = self.view.new_outlet
        rt_code = (draft.rt_code if rt_code is None else rt_code).strip()
        outlet_name = (draft.outlet_name if outlet_name is None else outlet_name).strip()
        if not rt_code or not outlet_name:
            missing = {k: "required" for k, v in (("rt_code", rt_code), ("outlet_name", outlet_name)) if not v}
            self.error = ValidationError("RT Code and Outlet Name are required.", missing)
            return Result.failure(self.error)
        result = self._write("create outlet", self.store.insert_outlet, {"rt_code": rt_code, "outlet_name": outlet_name})
        if result.ok:
            self.view = replace(self.view, add_open=False, new_outlet=OutletDraft())
            self.load()
        return result

    def update_record(self):
        """Save RT Code / Outlet Name of the outlet being edited. No-op when nothing is being edited."""
        draft = self.view.editing
        if draft is None:
            return Result.success()
        rt_code, outlet_name = draft.rt_code.strip(), draft.outlet_name.strip()
        if not rt_code or not outlet_name:
            self.error = ValidationError("RT Code and Outlet Name are required.")
            return Result.failure(self.error)
        result = self._write("save outlet", self.store.update_outlet, draft.id, {"rt_code": rt_code, "outlet_name": outlet_name})
        if result.ok:
            self.view = replace(self.view, editing=None)
            self.load()
        return result

    def request_delete(self, outlet_id):
        """First step of a delete: remember the outlet and wait for a yes/no answer."""
        self.view = replace(self.view, pending_delete=outlet_id)

    def cancel_delete(self):
        self.view = replace(self.view, pending_delete=None)

    def confirm_delete(self):
        outlet_id = self.view.pending_delete
        if outlet_id is None:
            return Result.success()
        result = self._write("delete outlet", self.store.delete_outlet, outlet_id)
        if result.ok:
            self.view = replace(self.view, pending_delete=None)
            self.load()
        return result
