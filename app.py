# designflow/app.py
import html
from datetime import date
from functools import partial

import streamlit as st

from services.result import LoadError
from utils.config_loader import load_app_config
from utils.data_loader import get_connector, get_credential_gate, get_tracker, sign_out
from utils.interaction import begin_run, mark_interaction, touched_control
from utils.status_pill import render_status_pill
from utils.view_state import ASCENDING
from utils.vocabulary import STATUS_FIELDS, brand_link_color

st.set_page_config(
    page_title="DesignFlow",
    page_icon="🏬",
    layout="wide"
)

begin_run()

ALL = "All"
TABLE_COLUMNS = [("rt_code", "RT Code"), ("outlet_name", "Outlet Name")] + [(f.column, f.label) for f in STATUS_FIELDS]
COLUMN_WIDTHS = [1.2, 2.4, 1.3, 1.4, 1.3, 1.3, 1.3, 1.3, 0.9]


# --- CALLBACKS ---
# Widget callbacks run before the rerun, so they may reset widget keys.

def _sync_search(tracker):
    tracker.set_search(st.session_state.search_box)


def _clear_search(tracker):
    st.session_state.search_box = ""
    tracker.clear_search()


def _sync_filter(tracker, dimension):
    value = st.session_state[f"filter_{dimension}"]
    tracker.set_filter(dimension, None if value == ALL else value)


def _reset_filters(tracker):
    tracker.reset_filters()
    for f in STATUS_FIELDS:
        st.session_state[f"filter_{f.dimension}"] = ALL


def _start_dialog(tracker, name):
    # A dialog dismissed via the scrim leaves its flag set until the next full rerun
    tracker.close_dialogs()
    tracker.clear_error()
    mark_interaction(f"dialog:{name}")


def _open_dialog(tracker, name):
    _start_dialog(tracker, name)
    getattr(tracker, f"open_{name}_dialog")()


def _close_dialog(close_fn):
    close_fn()
    st.session_state["_close_dialog"] = True


def _begin_edit(tracker, outlet):
    _start_dialog(tracker, "edit")
    tracker.begin_edit(outlet)
    st.session_state["edit_rt_code"] = tracker.view.editing.rt_code
    st.session_state["edit_outlet_name"] = tracker.view.editing.outlet_name


def _request_delete(tracker, outlet_id):
    _start_dialog(tracker, "delete")
    tracker.request_delete(outlet_id)


def _sync_new_outlet(tracker):
    tracker.set_new_outlet(st.session_state["new_rt_code"], st.session_state["new_outlet_name"])


def _save_new_outlet(tracker):
    _sync_new_outlet(tracker)
    result = tracker.create()
    if result.ok:
        st.session_state["new_rt_code"] = ""
        st.session_state["new_outlet_name"] = ""
        st.session_state["_close_dialog"] = True


def _save_edit(tracker):
    tracker.set_editing(st.session_state["edit_rt_code"], st.session_state["edit_outlet_name"])
    if tracker.update_record().ok:
        st.session_state["_close_dialog"] = True


def _confirm_delete(tracker):
    if tracker.confirm_delete().ok:
        st.session_state["_close_dialog"] = True


def _update_field(tracker, outlet_id, column, value):
    tracker.update_field(outlet_id, column, value)


def _close_requested():
    return st.session_state.pop("_close_dialog", False)


# --- DIALOGS ---

@st.dialog("Filter Outlets")
def filter_dialog(tracker):
    if _close_requested():
        st.rerun()
    for f in STATUS_FIELDS:
        key = f"filter_{f.dimension}"
        st.session_state.setdefault(key, getattr(tracker.view.filters, f.dimension) or ALL)
        st.selectbox(f.label, [ALL] + f.vocabulary.options(), key=key, on_change=_sync_filter, args=(tracker, f.dimension))
    close_col, reset_col = st.columns(2)
    close_col.button("Close", use_container_width=True, on_click=_close_dialog, args=(tracker.close_filter_dialog,))
    reset_col.button("Reset", type="primary", use_container_width=True, on_click=_reset_filters, args=(tracker,))


@st.dialog("Add Outlet")
def add_dialog(tracker):
    if _close_requested():
        st.rerun()
    if tracker.error:
        st.error(str(tracker.error))
    st.session_state.setdefault("new_rt_code", tracker.view.new_outlet.rt_code)
    st.session_state.setdefault("new_outlet_name", tracker.view.new_outlet.outlet_name)
    st.text_input("RT Code", placeholder="RT Code", key="new_rt_code", on_change=_sync_new_outlet, args=(tracker,))
    st.text_input("Outlet Name", placeholder="Outlet Name", key="new_outlet_name", on_change=_sync_new_outlet, args=(tracker,))
    cancel_col, save_col = st.columns(2)
    cancel_col.button("Cancel", use_container_width=True, on_click=_close_dialog, args=(tracker.close_add_dialog,))
    save_col.button("Save", type="primary", use_container_width=True, on_click=_save_new_outlet, args=(tracker,))


@st.dialog("Edit Outlet")
def edit_dialog(tracker):
    if _close_requested():
        st.rerun()
    if tracker.error:
        st.error(str(tracker.error))
    st.text_input("RT Code", key="edit_rt_code")
    st.text_input("Outlet Name", key="edit_outlet_name")
    cancel_col, save_col = st.columns(2)
    cancel_col.button("Cancel", use_container_width=True, on_click=_close_dialog, args=(tracker.cancel_edit,))
    save_col.button("Save", type="primary", use_container_width=True, on_click=_save_edit, args=(tracker,))


@st.dialog("Delete Outlet")
def delete_dialog(tracker):
    if _close_requested():
        st.rerun()
    if tracker.error:
        st.error(str(tracker.error))
    st.warning("**Delete this outlet?** This cannot be undone.")
    no_col, yes_col = st.columns(2)
    no_col.button("❌ Cancel", use_container_width=True, on_click=_close_dialog, args=(tracker.cancel_delete,))
    yes_col.button("✅ Yes, delete it", type="primary", use_container_width=True, on_click=_confirm_delete, args=(tracker,))


# --- LOGIN ---

def render_login(gate):
    _, center, _ = st.columns([1, 1.2, 1])
    with center:
        st.markdown("### Welcome to")
        st.title("DesignFlow")
        st.caption("Sign in to manage outlets and workflows")
        with st.form("login_form"):
            email = st.text_input("Email", placeholder="you@example.com", key="login_email")
            password = st.text_input("Password", type="password", placeholder="********", key="login_password")
            submitted = st.form_submit_button("Sign In", type="primary", use_container_width=True)
        if submitted:
            if not email or not password:
                st.error("Email and password are required.")
            else:
                with st.spinner("Signing in..."):
                    result = gate.submit(email, password)
                if result.ok:
                    st.session_state.user = result.value
                    st.rerun()
        if gate.error:
            st.error(gate.error)
        st.caption(f"© {date.today().year} DesignFlow. All rights reserved.")


# --- TABLE ---

def render_header_row(tracker):
    sort = tracker.view.sort
    cols = st.columns(COLUMN_WIDTHS)
    for col, (column, label) in zip(cols, TABLE_COLUMNS):
        if column == sort.key:
            arrow = "▲" if sort.direction == ASCENDING else "▼"
        else:
            arrow = "↕"
        col.button(f"**{label}** {arrow}", key=f"sort_{column}", type="tertiary", on_click=tracker.toggle_sort, args=(column,))
    cols[-1].markdown("**Actions**")


def render_outlet_row(tracker, outlet):
    cols = st.columns(COLUMN_WIDTHS, vertical_alignment="center")
    link = brand_link_color(outlet["drive_brand"])
    for col, column in zip(cols[:2], ("rt_code", "outlet_name")):
        col.markdown(f'<span style="color:{link}">{html.escape(str(outlet[column]))}</span>', unsafe_allow_html=True)
    for col, f in zip(cols[2:8], STATUS_FIELDS):
        with col:
            render_status_pill(
                f"{outlet['id']}:{f.column}",
                outlet[f.column],
                f.vocabulary.options(),
                f.colors,
                on_change=partial(_update_field, tracker, outlet["id"], f.column),
            )
    with cols[8]:
        edit_col, delete_col = st.columns(2)
        edit_col.button("✏️", key=f"edit_{outlet['id']}", type="tertiary", help="Edit outlet", on_click=_begin_edit, args=(tracker, outlet))
        delete_col.button("🗑️", key=f"delete_{outlet['id']}", type="tertiary", help="Delete outlet", on_click=_request_delete, args=(tracker, outlet["id"]))


# --- APP ---

APP_CONFIG = load_app_config()
if "error" in APP_CONFIG:
    st.error(f"Configuration Error: {APP_CONFIG['error']}")
    st.stop()

connector = get_connector(APP_CONFIG['supabase'])

if 'user' not in st.session_state:
    render_login(get_credential_gate(connector))
    st.stop()

tracker = get_tracker(connector)

# Any rerun not started from a dialog means the dialog was dismissed
if not str(touched_control() or "").startswith("dialog:"):
    tracker.close_dialogs()

# --- HEADER ---
col1, col2, col3 = st.columns([6, 1, 1])
with col1:
    st.title("🏬 DesignFlow")
    if tracker.last_loaded:
        st.caption(f"Data last updated: {tracker.last_loaded.strftime('%Y-%m-%d %H:%M:%S')}")
with col2:
    if st.button("🔄 Refresh Data", use_container_width=True):
        with st.spinner("Loading outlets..."):
            tracker.load()
with col3:
    if st.button("Sign Out", use_container_width=True):
        sign_out()
        st.rerun()

# --- ERROR BANNER ---
if tracker.error and not (tracker.view.add_open or tracker.view.editing or tracker.view.pending_delete is not None):
    err_col, retry_col, dismiss_col = st.columns([6, 1, 1])
    err_col.error(str(tracker.error))
    if isinstance(tracker.error, LoadError):
        retry_col.button("Retry", use_container_width=True, on_click=tracker.load)
    dismiss_col.button("Dismiss", use_container_width=True, on_click=tracker.clear_error)

# --- KPI DASHBOARD ---
for kpi, (label, value) in zip(st.columns(6), tracker.metrics().items()):
    kpi.metric(label, f"{value:,}")

st.markdown("---")

# --- TOOLBAR ---
add_col, search_col, clear_col, filter_col, reset_col = st.columns([1.2, 5, 0.5, 1.2, 1.2], vertical_alignment="bottom")
add_col.button("Add Outlet", type="primary", use_container_width=True, on_click=_open_dialog, args=(tracker, "add"))
st.session_state.setdefault("search_box", tracker.view.search)
search_col.text_input("Search", placeholder="Search by RT Code or Outlet Name", key="search_box",
                      on_change=_sync_search, args=(tracker,), label_visibility="collapsed")
if tracker.view.search:
    clear_col.button("✖", help="Clear search", on_click=_clear_search, args=(tracker,))
filter_col.button("⛃ Filter", use_container_width=True, on_click=_open_dialog, args=(tracker, "filter"))
reset_col.button("↺ Reset", use_container_width=True, on_click=_reset_filters, args=(tracker,))

# --- TABLE ---
with st.container(height=600, border=False):
    render_header_row(tracker)
    if not tracker.loading:
        rows = tracker.visible_rows()
        for _, outlet in rows.iterrows():
            render_outlet_row(tracker, outlet)
        st.info(f"Showing {len(rows)} of {len(tracker.outlets)} outlets.")

# --- DIALOGS (one at a time) ---
if tracker.view.filter_open:
    filter_dialog(tracker)
elif tracker.view.add_open:
    add_dialog(tracker)
elif tracker.view.editing is not None:
    edit_dialog(tracker)
elif tracker.view.pending_delete is not None:
    delete_dialog(tracker)
