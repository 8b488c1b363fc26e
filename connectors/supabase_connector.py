# designflow/connectors/supabase_connector.py
import requests
import pandas as pd
import logging

logger = logging.getLogger(__name__)

OUTLET_COLUMNS = [
    "id",
    "rt_code",
    "outlet_name",
    "design_status",
    "design_submission",
    "design_boq",
    "design_quotation",
    "drive_brand",
    "approval_status",
    "created_at",
]


class SupabaseError(Exception):
    """Raised for any failed auth or table call. The message is safe to show to users."""

    def __init__(self, message, status_code=None):
        self.status_code = status_code
        super().__init__(message)


def _error_message(response):
    """Pulls the human readable message out of a GoTrue / PostgREST error body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"{response.status_code} {response.reason}".strip()


def rows_to_frame(rows):
    """Turns the JSON rows from the outlets table into a DataFrame with the fixed outlet columns."""
    df = pd.DataFrame(rows or [], columns=OUTLET_COLUMNS)
    if df.empty:
        return df
    # Outlets created without a brand show up as unassigned
    df["drive_brand"] = df["drive_brand"].fillna("NON")
    df["drive_brand"] = df["drive_brand"].apply(lambda x: "NON" if str(x).strip() == "" else x)
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True, errors="coerce", format="ISO8601")
    return df.reset_index(drop=True)


class SupabaseConnector:
    def __init__(self, base_url, anon_key, table="outlets", timeout=30):
        if not anon_key:
            logger.error("Supabase anon key is not provided.")
            raise ValueError("Supabase anon key is required.")
        if not base_url:
            logger.error("Supabase project URL is not provided.")
            raise ValueError("Supabase project URL is required.")
        self.base_url = base_url.rstrip('/')
        self.anon_key = anon_key
        self.table = table
        self.timeout = timeout
        self.access_token = None

    @property
    def headers(self):
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
            "Content-Type": "application/json",
        }

    @property
    def table_url(self):
        return f"{self.base_url}/rest/v1/{self.table}"

    def _send(self, method, url, action, **kwargs):
        try:
            response = requests.request(method, url, headers=kwargs.pop("headers", self.headers), timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error while trying to {action}: {e}")
            raise SupabaseError(f"Could not reach the server: {e}") from e
        if not response.ok:
            message = _error_message(response)
            logger.error(f"Failed to {action}: {response.status_code} - Response: {response.text}")
            raise SupabaseError(message, status_code=response.status_code)
        return response

    def _json(self, response, action):
        # 2xx bodies from proxies or maintenance pages are not JSON
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Non-JSON response while trying to {action}: {response.status_code} - Response: {response.text[:200]}")
            raise SupabaseError("Unexpected response from server", status_code=response.status_code) from e

    # -------- Auth --------

    def sign_in_with_password(self, email, password):
        """
        Signs a user in with email and password.
        :return: The user dict returned by the auth server.
        :raises SupabaseError: with the server's message, e.g. "Invalid login credentials".
        """
        url = f"{self.base_url}/auth/v1/token?grant_type=password"
        response = self._send("POST", url, "sign in", json={"email": email, "password": password})
        data = self._json(response, "sign in")
        if not isinstance(data, dict):
            raise SupabaseError("Unexpected response from server", status_code=response.status_code)
        self.access_token = data.get("access_token")
        user = data.get("user") or {}
        logger.info(f"Signed in as {user.get('email', email)}.")
        return user

    def sign_out(self):
        """Revokes the current session on the server (best effort) and forgets the token."""
        if not self.access_token:
            return
        try:
            self._send("POST", f"{self.base_url}/auth/v1/logout", "sign out")
        except SupabaseError as e:
            logger.warning(f"Sign out was not acknowledged by the server: {e}")
        finally:
            self.access_token = None

    # -------- Outlets table --------

    def list_outlets(self):
        """
        Fetches every outlet, newest first.
        :return: A DataFrame with OUTLET_COLUMNS (possibly empty).
        """
        logger.info(f"Fetching all rows from Supabase table '{self.table}'.")
        params = {"select": ",".join(OUTLET_COLUMNS), "order": "created_at.desc"}
        response = self._send("GET", self.table_url, f"fetch rows from table {self.table}", params=params)
        rows = self._json(response, f"fetch rows from table {self.table}")
        if not rows:
            logger.warning(f"No data found in Supabase table {self.table}.")
        df = rows_to_frame(rows)
        logger.info(f"Successfully fetched and processed {len(df)} rows from table {self.table}.")
        return df

    def insert_outlet(self, fields):
        """
        Creates a new outlet. Brand and status columns take the table defaults.
        :param fields: dict with at least 'rt_code' and 'outlet_name'.
        """
        headers = dict(self.headers, Prefer="return=minimal")
        self._send("POST", self.table_url, f"create a row in table {self.table}", json=[fields], headers=headers)
        logger.info(f"Successfully created outlet {fields.get('rt_code')} in table {self.table}.")

    def update_outlet(self, outlet_id, fields):
        """
        Updates the given columns of exactly one outlet.
        :param outlet_id: The outlet's id.
        :param fields: dict of column -> new value.
        """
        headers = dict(self.headers, Prefer="return=minimal")
        params = {"id": f"eq.{outlet_id}"}
        self._send("PATCH", self.table_url, f"update row {outlet_id} in table {self.table}", params=params, json=fields, headers=headers)
        logger.info(f"Successfully updated {sorted(fields)} on row {outlet_id} in table {self.table}.")

    def delete_outlet(self, outlet_id):
        params = {"id": f"eq.{outlet_id}"}
        self._send("DELETE", self.table_url, f"delete row {outlet_id} from table {self.table}", params=params)
        logger.info(f"Successfully deleted row {outlet_id} from table {self.table}.")
