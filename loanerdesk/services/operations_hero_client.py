"""
Operations Hero API client: files repair requests with the district
helpdesk.

Encapsulates authentication, the fixed account/category/workflow
identifiers, and the request envelope so that ``repair_service`` only
deals with a plain summary and a returned ticket id.

Configuration is read from Flask ``current_app.config``:
    - ``OPERATIONS_HERO_API_BASE_URL``: e.g. ``https://api.operationshero.com/v1``
    - ``OPERATIONS_HERO_API_KEY``:      Sent as the ``x-api-key`` header.
    - ``OPERATIONS_HERO_ACCOUNT_ID``, ``..._REPORTING_CATEGORY``,
      ``..._REQUESTER``, ``..._WORKFLOW``: fixed routing identifiers.
    - ``OPERATIONS_HERO_LOCATIONS``:    School id -> location id.

The client never retries; a failed submission is reported to the
caller, who asks the user to resubmit.
"""

import json
import logging
from typing import Any

import urllib3
from flask import current_app

from loanerdesk.errors import TicketSubmissionFailed, ValidationError

logger = logging.getLogger(__name__)


class OperationsHeroClient:
    """
    Client for the Operations Hero REST API (v1).

    Usage inside a Flask request or app context::

        client = OperationsHeroClient()
        location = client.location_for_school("kossman")
        ticket = client.create_request(location, summary)
    """

    def __init__(self) -> None:
        """
        Initialize the client by reading config from Flask app context.

        Raises:
            RuntimeError: If called outside a Flask application context.
        """
        config = current_app.config
        self.base_url: str = config["OPERATIONS_HERO_API_BASE_URL"].rstrip("/")
        self.api_key: str = config.get("OPERATIONS_HERO_API_KEY", "")
        self.account_id: str = config["OPERATIONS_HERO_ACCOUNT_ID"]
        self.reporting_category: str = config["OPERATIONS_HERO_REPORTING_CATEGORY"]
        self.requester: str = config["OPERATIONS_HERO_REQUESTER"]
        self.workflow: str = config["OPERATIONS_HERO_WORKFLOW"]
        self.room: str = config.get("OPERATIONS_HERO_ROOM", "Loaner Cart")
        self.locations: dict[str, str] = config.get("OPERATIONS_HERO_LOCATIONS", {})
        self.timeout = urllib3.Timeout(
            total=config.get("OPERATIONS_HERO_TIMEOUT", 15.0)
        )

        self.headers: dict[str, str] = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
        }

        logger.debug(
            "OperationsHeroClient initialized: base_url=%s, %d locations",
            self.base_url,
            len(self.locations),
        )

    # =================================================================
    # Public API
    # =================================================================

    def location_for_school(self, school_id: str) -> str:
        """
        Map a school id to its Operations Hero location id.

        Raises:
            ValidationError: If the school has no configured location.
        """
        location_id = self.locations.get(school_id)
        if not location_id:
            raise ValidationError(f"Invalid school location: {school_id}")
        return location_id

    def create_request(self, location_id: str, summary: str) -> dict[str, Any]:
        """
        File one repair request.

        Args:
            location_id: Operations Hero location id for the school.
            summary:     Human-readable request summary.

        Returns:
            The created request as returned by the API (contains ``id``).

        Raises:
            TicketSubmissionFailed: On a transport error, a non-2xx
                                    response, or a response without an id.
        """
        url = f"{self.base_url}/accounts/{self.account_id}/requests"
        payload = self._build_payload(location_id, summary)

        status, body = self._post(url, payload)

        if not 200 <= status < 300:
            message = _upstream_message(body) or f"API Error: {status}"
            logger.error(
                "Operations Hero rejected request (status %d): %s", status, message
            )
            raise TicketSubmissionFailed(message)

        if not isinstance(body, dict) or not body.get("id"):
            logger.error("Operations Hero response has no ticket id: %r", body)
            raise TicketSubmissionFailed("Helpdesk response did not include a ticket id")

        logger.info("Operations Hero request created: %s", body["id"])
        return body

    # =================================================================
    # HTTP transport
    # =================================================================

    def _build_payload(self, location_id: str, summary: str) -> dict[str, Any]:
        return {
            "location": location_id,
            "metadata": {"Directions_Room_Number": self.room},
            "priority": "standard",
            "reportingCategory": self.reporting_category,
            "requester": self.requester,
            "status": "new",
            "summary": summary,
            "type": "triggered",
            "workflow": self.workflow,
            "estimatedCost": None,
            "estimatedHours": None,
            "scheduledRequestId": None,
            "scheduling": {"start": None, "due": None, "completed": None},
        }

    def _post(self, url: str, payload: dict[str, Any]) -> tuple[int, Any]:
        """
        Send a JSON POST and return ``(status, parsed_body)``.

        The body is None when the response is not valid JSON.

        Raises:
            TicketSubmissionFailed: If the request never got a response.
        """
        try:
            with urllib3.PoolManager(timeout=self.timeout) as http:
                response = http.request(
                    "POST",
                    url,
                    body=json.dumps(payload).encode("utf-8"),
                    headers=self.headers,
                    retries=False,
                )
        except urllib3.exceptions.HTTPError as exc:
            logger.error("Error calling Operations Hero %s: %s", url, exc)
            raise TicketSubmissionFailed(
                "Could not reach the helpdesk service"
            ) from exc

        try:
            body = json.loads(response.data) if response.data else None
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.error(
                "Invalid JSON from Operations Hero (status %d)", response.status
            )
            body = None
        return response.status, body


def _upstream_message(body: Any) -> str | None:
    """Pull the error message out of an Operations Hero error body."""
    if not isinstance(body, dict):
        return None
    if body.get("message"):
        return str(body["message"])
    nested = body.get("response")
    if isinstance(nested, dict) and nested.get("message"):
        return str(nested["message"])
    return None
