import pytest
import requests

from connectors import supabase_connector
from connectors.supabase_connector import OUTLET_COLUMNS, SupabaseConnector, SupabaseError


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self._body = body
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400

    @property
    def text(self):
        return "" if self._body is None else str(self._body)

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


@pytest.fixture()
def sent(monkeypatch):
    """Replaces requests.request; queue responses in sent.responses, inspect sent.calls."""

    class Recorder:
        calls = []
        responses = []

    def fake_request(method, url, **kwargs):
        Recorder.calls.append((method, url, kwargs))
        response = Recorder.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    Recorder.calls = []
    Recorder.responses = []
    monkeypatch.setattr(supabase_connector.requests, "request", fake_request)
    return Recorder


@pytest.fixture()
def connector():
    return SupabaseConnector("https://proj.supabase.co/", "anon-key", table="outlets", timeout=5)


def test_requires_url_and_key():
    with pytest.raises(ValueError):
        SupabaseConnector("https://proj.supabase.co", "")
    with pytest.raises(ValueError):
        SupabaseConnector("", "anon-key")


def test_sign_in_posts_credentials_and_keeps_token(connector, sent):
    sent.responses.append(FakeResponse(200, {"access_token": "jwt-1", "user": {"id": "u1", "email": "a@b.co"}}))
    user = connector.sign_in_with_password("a@b.co", "pw")
    assert user == {"id": "u1", "email": "a@b.co"}
    method, url, kwargs = sent.calls[0]
    assert method == "POST"
    assert url == "https://proj.supabase.co/auth/v1/token?grant_type=password"
    assert kwargs["json"] == {"email": "a@b.co", "password": "pw"}
    assert kwargs["headers"]["apikey"] == "anon-key"
    assert kwargs["timeout"] == 5
    assert connector.access_token == "jwt-1"
    assert connector.headers["Authorization"] == "Bearer jwt-1"


@pytest.mark.parametrize("body", [
    {"error": "invalid_grant", "error_description": "Invalid login credentials"},
    {"code": 400, "error_code": "invalid_credentials", "msg": "Invalid login credentials"},
])
def test_sign_in_failure_carries_server_message(connector, sent, body):
    sent.responses.append(FakeResponse(400, body, reason="Bad Request"))
    with pytest.raises(SupabaseError) as excinfo:
        connector.sign_in_with_password("a@b.co", "nope")
    assert str(excinfo.value) == "Invalid login credentials"
    assert excinfo.value.status_code == 400
    assert connector.access_token is None


def test_network_errors_become_supabase_errors(connector, sent):
    sent.responses.append(requests.exceptions.ConnectionError("connection refused"))
    with pytest.raises(SupabaseError, match="Could not reach the server"):
        connector.list_outlets()


def test_list_outlets_selects_columns_newest_first(connector, sent):
    sent.responses.append(FakeResponse(200, [
        {"id": 2, "rt_code": "R2", "outlet_name": "B", "drive_brand": None, "created_at": "2025-01-02T00:00:00+00:00"},
        {"id": 1, "rt_code": "R1", "outlet_name": "A", "drive_brand": "LL", "created_at": "2025-01-01T00:00:00+00:00"},
    ]))
    df = connector.list_outlets()
    method, url, kwargs = sent.calls[0]
    assert method == "GET"
    assert url == "https://proj.supabase.co/rest/v1/outlets"
    assert kwargs["params"] == {"select": ",".join(OUTLET_COLUMNS), "order": "created_at.desc"}
    assert list(df.columns) == OUTLET_COLUMNS
    assert df["id"].tolist() == [2, 1]
    assert df["drive_brand"].tolist() == ["NON", "LL"]


def test_list_outlets_empty_table(connector, sent):
    sent.responses.append(FakeResponse(200, []))
    df = connector.list_outlets()
    assert df.empty
    assert list(df.columns) == OUTLET_COLUMNS


def test_insert_sends_single_row_with_minimal_return(connector, sent):
    sent.responses.append(FakeResponse(201))
    connector.insert_outlet({"rt_code": "R9", "outlet_name": "Shop 9"})
    method, url, kwargs = sent.calls[0]
    assert method == "POST"
    assert kwargs["json"] == [{"rt_code": "R9", "outlet_name": "Shop 9"}]
    assert kwargs["headers"]["Prefer"] == "return=minimal"


def test_update_targets_one_id(connector, sent):
    sent.responses.append(FakeResponse(204))
    connector.update_outlet(7, {"design_status": "Done"})
    method, url, kwargs = sent.calls[0]
    assert method == "PATCH"
    assert kwargs["params"] == {"id": "eq.7"}
    assert kwargs["json"] == {"design_status": "Done"}


def test_delete_targets_one_id(connector, sent):
    sent.responses.append(FakeResponse(204))
    connector.delete_outlet(7)
    method, url, kwargs = sent.calls[0]
    assert method == "DELETE"
    assert url == "https://proj.supabase.co/rest/v1/outlets"
    assert kwargs["params"] == {"id": "eq.7"}


def test_table_errors_use_postgrest_message(connector, sent):
    sent.responses.append(FakeResponse(403, {"code": "42501", "message": "permission denied for table outlets"}, reason="Forbidden"))
    with pytest.raises(SupabaseError, match="permission denied for table outlets"):
        connector.delete_outlet(7)


def test_error_without_json_body_falls_back_to_status(connector, sent):
    sent.responses.append(FakeResponse(502, None, reason="Bad Gateway"))
    with pytest.raises(SupabaseError, match="502 Bad Gateway"):
        connector.update_outlet(7, {"design_boq": "Hold"})


def test_sign_out_forgets_token_even_when_server_refuses(connector, sent):
    connector.access_token = "jwt-1"
    sent.responses.append(FakeResponse(401, {"msg": "token expired"}))
    connector.sign_out()
    assert connector.access_token is None
    assert sent.calls[0][1] == "https://proj.supabase.co/auth/v1/logout"


def test_sign_out_without_session_sends_nothing(connector, sent):
    connector.sign_out()
    assert sent.calls == []


def html_page(status_code=200):
    response = requests.models.Response()
    response.status_code = status_code
    response.reason = "OK"
    response.headers["Content-Type"] = "text/html"
    response._content = b"<html>maintenance</html>"
    return response


def test_html_page_while_listing_is_a_supabase_error(connector, sent):
    sent.responses.append(html_page())
    with pytest.raises(SupabaseError, match="Unexpected response from server") as excinfo:
        connector.list_outlets()
    assert excinfo.value.status_code == 200


def test_html_page_while_signing_in_is_a_supabase_error(connector, sent):
    sent.responses.append(html_page())
    with pytest.raises(SupabaseError, match="Unexpected response from server"):
        connector.sign_in_with_password("a@b.co", "pw")
    assert connector.access_token is None
