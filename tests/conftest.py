from datetime import datetime, timedelta, timezone

import pytest

from connectors.supabase_connector import SupabaseError, rows_to_frame
from services.outlet_tracker import OutletTracker


def make_outlet(id, rt_code, outlet_name="Shop", created_offset=0, **fields):
    created = datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(days=created_offset)
    row = {
        "id": id,
        "rt_code": rt_code,
        "outlet_name": outlet_name,
        "drive_brand": "NON",
        "design_status": "Pending",
        "design_submission": "Pending",
        "design_boq": "Pending",
        "design_quotation": "Pending",
        "approval_status": "Pending",
        "created_at": created.isoformat(),
    }
    row.update(fields)
    return row


class FakeOutletStore:
    """In-memory outlet store that records every call made against it."""

    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.calls = []
        self.fail_on = set()
        self._next_id = 1000

    def _maybe_fail(self, name):
        if name in self.fail_on:
            raise SupabaseError(f"{name} rejected by server", status_code=500)

    def list_outlets(self):
        self.calls.append(("list_outlets",))
        self._maybe_fail("list_outlets")
        rows = sorted(self.rows, key=lambda r: r["created_at"], reverse=True)
        return rows_to_frame(rows)

    def insert_outlet(self, fields):
        self.calls.append(("insert_outlet", fields))
        self._maybe_fail("insert_outlet")
        self._next_id += 1
        self.rows.append(make_outlet(self._next_id, fields["rt_code"], fields["outlet_name"], created_offset=365))

    def update_outlet(self, outlet_id, fields):
        self.calls.append(("update_outlet", outlet_id, fields))
        self._maybe_fail("update_outlet")
        for row in self.rows:
            if row["id"] == outlet_id:
                row.update(fields)

    def delete_outlet(self, outlet_id):
        self.calls.append(("delete_outlet", outlet_id))
        self._maybe_fail("delete_outlet")
        self.rows = [r for r in self.rows if r["id"] != outlet_id]

    def call_names(self):
        return [c[0] for c in self.calls]


class FakeAuth:
    def __init__(self, users=None):
        self.users = users or {}
        self.calls = []

    def sign_in_with_password(self, email, password):
        self.calls.append((email, password))
        if self.users.get(email) != password:
            raise SupabaseError("Invalid login credentials", status_code=400)
        return {"id": "user-1", "email": email}


@pytest.fixture()
def sample_rows():
    return [
        make_outlet(1, "R1", "Alpha Mart", created_offset=0, design_status="Pending", drive_brand="LL"),
        make_outlet(2, "R2", "Bravo Store", created_offset=1, design_status="Done", drive_brand="SB"),
        make_outlet(3, "X7", "Charlie r2 Outlet", created_offset=2, design_status="Working", approval_status="Approved"),
        make_outlet(4, "R4", "Delta", created_offset=3, design_status="Done", design_boq="Done", drive_brand="LL"),
    ]


@pytest.fixture()
def store(sample_rows):
    return FakeOutletStore(sample_rows)


@pytest.fixture()
def tracker(store):
    t = OutletTracker(store)
    t.load()
    store.calls.clear()
    return t
