# designflow/utils/view_state.py
"""
View state for the outlet table and the pure transforms that turn a snapshot into visible rows.

Nothing in here talks to the backend. `ViewState` is frozen; every change produces a new
instance so the page always renders from one consistent snapshot.
"""
from dataclasses import asdict, dataclass, field, replace
from typing import Optional

import pandas as pd

from utils.vocabulary import FIELDS_BY_DIMENSION, STATUS_FIELDS

SORTABLE_COLUMNS = [
    "rt_code",
    "outlet_name",
    "drive_brand",
    "design_status",
    "design_submission",
    "design_boq",
    "design_quotation",
    "approval_status",
    "created_at",
]

ASCENDING = "asc"
DESCENDING = "desc"

PENDING = "Pending"

# Metric label -> column counted for "Pending"
PENDING_METRICS = [
    ("Pending Designs", "design_status"),
    ("Pending Submissions", "design_submission"),
    ("Pending BOQ", "design_boq"),
    ("Pending Quotations", "design_quotation"),
    ("Pending Approvals", "approval_status"),
]


@dataclass(frozen=True)
class SortSpec:
    key: str = "created_at"
    direction: str = DESCENDING

    @property
    def ascending(self):
        return self.direction == ASCENDING

    def toggled(self, key):
        """Same column flips the direction, a new column starts ascending."""
        if key not in SORTABLE_COLUMNS:
            raise ValueError(f"Cannot sort by unknown column '{key}'")
        if key == self.key:
            return SortSpec(key, DESCENDING if self.ascending else ASCENDING)
        return SortSpec(key, ASCENDING)


@dataclass(frozen=True)
class FilterSet:
    brand: Optional[str] = None
    design: Optional[str] = None
    submission: Optional[str] = None
    boq: Optional[str] = None
    quotation: Optional[str] = None
    approval: Optional[str] = None

    def with_value(self, dimension, value):
        if dimension not in FIELDS_BY_DIMENSION:
            raise ValueError(f"Unknown filter dimension '{dimension}'")
        # "" and None both mean "All"
        return replace(self, **{dimension: value or None})

    def cleared(self):
        return FilterSet()

    def active(self):
        """{column: value} for every dimension that has a selection."""
        return {
            f.column: getattr(self, f.dimension)
            for f in STATUS_FIELDS
            if getattr(self, f.dimension) is not None
        }


@dataclass(frozen=True)
class OutletDraft:
    """The RT Code / Outlet Name pair edited in the add and edit dialogs."""
    rt_code: str = ""
    outlet_name: str = ""
    id: Optional[object] = None


@dataclass(frozen=True)
class ViewState:
    search: str = ""
    filters: FilterSet = field(default_factory=FilterSet)
    sort: SortSpec = field(default_factory=SortSpec)
    filter_open: bool = False
    add_open: bool = False
    new_outlet: OutletDraft = field(default_factory=OutletDraft)
    editing: Optional[OutletDraft] = None
    pending_delete: Optional[object] = None

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        data = dict(data or {})
        editing = data.get("editing")
        return cls(
            search=data.get("search") or "",
            filters=FilterSet(**{k: (v or None) for k, v in (data.get("filters") or {}).items()}),
            sort=SortSpec(**(data.get("sort") or {})),
            filter_open=bool(data.get("filter_open")),
            add_open=bool(data.get("add_open")),
            new_outlet=OutletDraft(**(data.get("new_outlet") or {})),
            editing=OutletDraft(**editing) if editing else None,
            pending_delete=data.get("pending_delete"),
        )


def _text(series):
    return series.fillna("").astype(str).str.lower()


def filter_outlets(df, search="", filters=None):
    """
    Rows whose RT Code or Outlet Name contains `search` (case-insensitive) and that match
    every selected filter value exactly. Empty search and unset dimensions match everything.
    """
    if df.empty:
        return df
    mask = pd.Series(True, index=df.index)
    if search:
        needle = search.lower()
        mask &= _text(df["rt_code"]).str.contains(needle, regex=False) | _text(df["outlet_name"]).str.contains(needle, regex=False)
    for column, value in (filters or FilterSet()).active().items():
        mask &= df[column] == value
    return df[mask]


def sort_outlets(df, sort):
    """Stable single-column sort; rows with equal keys keep their incoming order in both directions."""
    if df.empty or sort.key not in df.columns:
        return df
    return df.sort_values(by=sort.key, ascending=sort.ascending, kind="stable", na_position="last")


def visible_outlets(df, view):
    return sort_outlets(filter_outlets(df, view.search, view.filters), view.sort)


def outlet_metrics(df):
    """Total plus one "Pending" count per status column, always over the full snapshot."""
    metrics = {"Total Outlets": len(df)}
    for label, column in PENDING_METRICS:
        metrics[label] = int((df[column] == PENDING).sum()) if not df.empty else 0
    return metrics
