"""
Client for the spreadsheet-backed record API.

The store is a single HTTP endpoint driven by an ``action`` query parameter
(getProjects, addComponent, bulkAddComponents, ...). Every response is a
JSON object of the form::

    {"success": true, "data": ...}
    {"success": false, "error": "message"}

Structured parameters (record bodies, bulk lists) travel as JSON strings in
the query, scalars as plain strings.

Any failure (network, HTTP status, non-JSON body, or an error reported by
the store) surfaces as ApiError.
"""

import json
import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS: int = 30


class ApiError(Exception):
    """The record API could not complete an action."""

    def __init__(self, action: str, message: str):
        self.action = action
        self.message = message
        super().__init__(f"{action}: {message}")


class SheetApiClient:
    """Thin wrapper over the action-based record endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    # ── Transport ──────────────────────────────────────────────────────

    def call(self, action: str, **params: Any) -> dict:
        """
        Run one action against the store.

        Args:
            action: Store action name, e.g. "getComponents".
            **params: Extra query parameters; dicts and lists are sent as JSON.

        Returns:
            The decoded response object.

        Raises:
            ApiError: on transport failure or when the store reports an error.
        """
        query: dict[str, str] = {"action": action}
        for key, value in params.items():
            if isinstance(value, (dict, list)):
                query[key] = json.dumps(value)
            else:
                query[key] = str(value)

        try:
            response = self.session.get(
                self.base_url, params=query, timeout=self.timeout
            )
            response.raise_for_status()
            body = response.json()
        except requests.JSONDecodeError as exc:
            logger.error(f"API error on '{action}': response is not JSON")
            raise ApiError(action, "response is not valid JSON") from exc
        except requests.RequestException as exc:
            logger.error(f"API error on '{action}': {exc}")
            raise ApiError(action, str(exc)) from exc

        if not isinstance(body, dict):
            logger.error(f"API error on '{action}': unexpected response {body!r}")
            raise ApiError(action, "unexpected response format")

        if not body.get("success") and body.get("error"):
            logger.error(f"API error on '{action}': {body['error']}")
            raise ApiError(action, str(body["error"]))

        logger.debug(f"API '{action}' ok")
        return body

    def _list(self, action: str) -> list[dict]:
        return self.call(action).get("data") or []

    def _get(self, action: str, record_id: str) -> dict | None:
        return self.call(action, id=record_id).get("data")

    # ── Projects ───────────────────────────────────────────────────────

    def get_projects(self) -> list[dict]:
        return self._list("getProjects")

    def get_project(self, project_id: str) -> dict | None:
        return self._get("getProject", project_id)

    def add_project(self, data: dict) -> dict:
        return self.call("addProject", data=data)

    def update_project(self, project_id: str, data: dict) -> dict:
        return self.call("updateProject", id=project_id, data=data)

    def delete_project(self, project_id: str) -> dict:
        return self.call("deleteProject", id=project_id)

    # ── Components ─────────────────────────────────────────────────────

    def get_components(self) -> list[dict]:
        return self._list("getComponents")

    def get_component(self, component_id: str) -> dict | None:
        return self._get("getComponent", component_id)

    def add_component(self, data: dict) -> dict:
        return self.call("addComponent", data=data)

    def update_component(self, component_id: str, data: dict) -> dict:
        return self.call("updateComponent", id=component_id, data=data)

    def update_component_quantity(self, component_id: str, quantity: int) -> dict:
        return self.call("updateComponentQuantity", id=component_id, quantity=quantity)

    def bulk_add_components(self, records: list[dict]) -> int:
        """
        Add many components in one call.

        Returns the count the store reports as added, which may be lower
        than len(records).
        """
        body = self.call("bulkAddComponents", data=records)
        added = body.get("addedCount", 0)
        try:
            return int(added)
        except (TypeError, ValueError):
            logger.error(f"bulkAddComponents returned a bad addedCount: {added!r}")
            return 0

    # ── Competitions ───────────────────────────────────────────────────

    def get_competitions(self) -> list[dict]:
        return self._list("getCompetitions")

    def get_competition(self, event_id: str) -> dict | None:
        return self._get("getCompetition", event_id)

    def add_competition(self, data: dict) -> dict:
        return self.call("addCompetition", data=data)

    def update_competition(self, event_id: str, data: dict) -> dict:
        return self.call("updateCompetition", id=event_id, data=data)

    def update_competition_result(self, event_id: str, data: dict) -> dict:
        return self.call("updateCompetitionResult", id=event_id, data=data)

    def delete_competition(self, event_id: str) -> dict:
        return self.call("deleteCompetition", id=event_id)

    # ── Orders ─────────────────────────────────────────────────────────

    def get_orders(self) -> list[dict]:
        return self._list("getOrders")

    def get_order(self, order_id: str) -> dict | None:
        return self._get("getOrder", order_id)

    def add_order(self, data: dict) -> dict:
        return self.call("addOrder", data=data)

    def update_order(self, order_id: str, data: dict) -> dict:
        return self.call("updateOrder", id=order_id, data=data)

    def delete_order(self, order_id: str) -> dict:
        return self.call("deleteOrder", id=order_id)
