"""
Tests for utils/api_client.py

The HTTP session is a MagicMock, so no network is touched.

Covers: query encoding, success/error bodies, transport and JSON failures,
list helpers, bulk add count handling, and the typed CRUD actions.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from utils.api_client import ApiError, SheetApiClient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

API_URL = "https://script.example.com/exec"


def _make_client(body=None) -> tuple[SheetApiClient, MagicMock]:
    """Client whose session.get returns a response with *body* as JSON."""
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = body
    session = MagicMock()
    session.get.return_value = response
    return SheetApiClient(API_URL, timeout=5, session=session), session


def _sent_params(session: MagicMock) -> dict:
    return session.get.call_args.kwargs["params"]


# ═══════════════════════════════════════════════════════════════════════════
# Transport
# ═══════════════════════════════════════════════════════════════════════════

class TestCall:
    def test_action_and_scalar_params(self):
        client, session = _make_client({"success": True})
        client.call("updateComponentQuantity", id="C001", quantity=7)

        session.get.assert_called_once()
        assert session.get.call_args.args[0] == API_URL
        assert session.get.call_args.kwargs["timeout"] == 5
        assert _sent_params(session) == {
            "action": "updateComponentQuantity",
            "id": "C001",
            "quantity": "7",
        }

    def test_structured_params_json_encoded(self):
        client, session = _make_client({"success": True})
        client.call("addComponent", data={"ComponentName": "Bolt", "Quantity": 2})

        sent = _sent_params(session)
        assert json.loads(sent["data"]) == {"ComponentName": "Bolt", "Quantity": 2}

    def test_error_body_raises(self):
        client, _ = _make_client({"success": False, "error": "Sheet not found"})
        with pytest.raises(ApiError) as exc_info:
            client.call("getProjects")
        assert exc_info.value.action == "getProjects"
        assert exc_info.value.message == "Sheet not found"

    def test_unsuccessful_without_message_is_returned(self):
        client, _ = _make_client({"success": False})
        assert client.call("getProjects") == {"success": False}

    def test_transport_failure_wrapped(self):
        client, session = _make_client({"success": True})
        session.get.side_effect = requests.ConnectionError("offline")
        with pytest.raises(ApiError, match="offline"):
            client.call("getOrders")

    def test_http_status_failure_wrapped(self):
        client, session = _make_client({"success": True})
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("502")
        with pytest.raises(ApiError):
            client.call("getOrders")

    def test_non_json_body(self):
        """An HTML error page from the script host is reported as non-JSON."""
        response = requests.Response()
        response.status_code = 200
        response._content = b"<html><body>Script error</body></html>"
        session = MagicMock()
        session.get.return_value = response
        client = SheetApiClient(API_URL, session=session)

        with pytest.raises(ApiError) as exc_info:
            client.call("getOrders")
        assert exc_info.value.message == "response is not valid JSON"
        assert isinstance(exc_info.value.__cause__, requests.JSONDecodeError)

    def test_non_object_body(self):
        client, _ = _make_client(["unexpected"])
        with pytest.raises(ApiError, match="unexpected response"):
            client.call("getOrders")

    def test_base_url_required(self):
        with pytest.raises(ValueError):
            SheetApiClient("")


# ═══════════════════════════════════════════════════════════════════════════
# Typed helpers
# ═══════════════════════════════════════════════════════════════════════════

class TestHelpers:
    def test_list_returns_data(self):
        client, session = _make_client({"success": True, "data": [{"ProjectID": "P1"}]})
        assert client.get_projects() == [{"ProjectID": "P1"}]
        assert _sent_params(session)["action"] == "getProjects"

    def test_list_missing_data_is_empty(self):
        client, _ = _make_client({"success": True})
        assert client.get_components() == []

    def test_get_single_record(self):
        client, session = _make_client({"success": True, "data": {"OrderID": "O1"}})
        assert client.get_order("O1") == {"OrderID": "O1"}
        assert _sent_params(session) == {"action": "getOrder", "id": "O1"}

    @pytest.mark.parametrize("method, args, action", [
        ("add_project", ({"ProjectName": "Rover"},), "addProject"),
        ("update_project", ("P1", {"ProjectName": "Rover"}), "updateProject"),
        ("delete_project", ("P1",), "deleteProject"),
        ("update_component", ("C1", {"ComponentName": "Bolt"}), "updateComponent"),
        ("add_competition", ({"EventName": "RoboCup"},), "addCompetition"),
        ("update_competition_result", ("E1", {"Status": "Completed"}), "updateCompetitionResult"),
        ("delete_competition", ("E1",), "deleteCompetition"),
        ("add_order", ({"ComponentID": "C1"},), "addOrder"),
        ("delete_order", ("O1",), "deleteOrder"),
    ])
    def test_actions(self, method, args, action):
        client, session = _make_client({"success": True})
        getattr(client, method)(*args)
        assert _sent_params(session)["action"] == action

    def test_bulk_add_returns_added_count(self):
        client, session = _make_client({"success": True, "addedCount": 2})
        records = [{"ComponentName": "A"}, {"ComponentName": "B"}, {"ComponentName": "C"}]

        assert client.bulk_add_components(records) == 2
        sent = _sent_params(session)
        assert sent["action"] == "bulkAddComponents"
        assert json.loads(sent["data"]) == records

    def test_bulk_add_bad_count(self):
        client, _ = _make_client({"success": True, "addedCount": "many"})
        assert client.bulk_add_components([{"ComponentName": "A"}]) == 0
