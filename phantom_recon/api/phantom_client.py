"""Data Phantom API client."""
import json
import logging
from typing import Optional, Dict, Any, List, Callable
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import PhantomApiConfig
from phantom_recon.api.exceptions import (
    PhantomApiError,
    MissingCredentialError,
    InvalidIdentifierError,
    NotFoundError,
    TransientApiError,
    ServerError,
)
from phantom_recon.schema.models import ReconciliationMapping

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = [408, 429, 500, 502, 503, 504]


class PhantomClient:
    """Client for the reconciliation endpoints of the Data Phantom API.

    Every call resolves the bearer token through ``token_provider`` first and
    raises MissingCredentialError without touching the network when there is
    none. HTTP failures are translated to the exceptions in
    ``phantom_recon.api.exceptions``.
    """

    def __init__(
        self,
        config: PhantomApiConfig,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        """Initialize client."""
        self.config = config
        self.token_provider = token_provider or (lambda: self.config.api_token)
        self.session = requests.Session()

        # Idempotent methods only (urllib3 default), so run triggers are never replayed
        retry_strategy = Retry(
            total=config.max_retries,
            backoff_factor=config.backoff_factor,
            status_forcelist=RETRYABLE_STATUSES,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    # ------------------------------------------------------------------
    # Task fields
    # ------------------------------------------------------------------

    def get_task_fields(self, task_id: str) -> List[str]:
        """Get the selected output fields of a task, in order."""
        response = self._send("get", f"/task/fields/{task_id}")
        self._raise_for_status(response, "Failed to fetch task fields")

        data = self._json_object(response, "task fields")
        if data.get("success") and data.get("selectedFields"):
            return list(data["selectedFields"])
        return []

    # ------------------------------------------------------------------
    # Mappings
    # ------------------------------------------------------------------

    def create_mapping(self, mapping: ReconciliationMapping) -> ReconciliationMapping:
        """Persist a new mapping and return it with its assigned id."""
        response = self._send("post", "/reconciliation-mapping", json=mapping.to_api_payload())
        self._raise_for_status(response, "Failed to save reconciliation mapping")

        data = self._json_or_empty(response)
        record = data.get("data") if isinstance(data.get("data"), dict) else data
        created = ReconciliationMapping.from_api(record) if record else None

        if created is None or created.id is None:
            # Backend acknowledged without echoing the record
            return mapping
        if not created.field_map:
            created.field_map = mapping.field_map
        return created

    def list_mappings(self, playground_id: str) -> List[ReconciliationMapping]:
        """List the mappings of a playground."""
        response = self._send("get", f"/reconciliation-mapping/playground/{playground_id}")
        self._raise_for_status(response, "Failed to load reconciliation mappings")

        data = self._json_object(response, "mapping list")
        if not data.get("success") or not data.get("data"):
            return []
        return [ReconciliationMapping.from_api(record) for record in data["data"]]

    def update_mapping(self, reconciliation_id: str, field_map: Dict[str, str]) -> Dict[str, Any]:
        """Replace the field map of a mapping."""
        response = self._send(
            "put",
            f"/reconciliation-mapping/{reconciliation_id}",
            json={"map": json.dumps(field_map)},
        )
        self._raise_for_status(response, "Failed to update reconciliation mapping")
        return self._json_or_empty(response)

    def delete_mapping(self, reconciliation_id: str) -> None:
        """Delete a mapping."""
        response = self._send("delete", f"/reconciliation-mapping/{reconciliation_id}")
        self._raise_for_status(response, "Failed to delete reconciliation mapping")

    # ------------------------------------------------------------------
    # Runs and results
    # ------------------------------------------------------------------

    def trigger_run(self, reconciliation_id: str) -> str:
        """Start a reconciliation run. Returns the acknowledgement text."""
        response = self._send("post", f"/reconciliation-run/{reconciliation_id}")

        if response.status_code == 500:
            raise ServerError(f"Failed to start reconciliation run: {response.text}")
        self._raise_for_status(response, "Failed to start reconciliation run")
        return response.text

    def get_status(self, reconciliation_id: str) -> Dict[str, Any]:
        """Get run status: status, message, executionTimestamp, reconciliationMethod."""
        response = self._send("get", f"/reconciliation-status/{reconciliation_id}")
        self._raise_for_status(response, "Failed to fetch reconciliation status")
        return self._json_object(response, "status")

    def get_result(self, reconciliation_id: str) -> Dict[str, Any]:
        """Get the full result of the latest successful run."""
        response = self._send("get", f"/reconciliation-result/{reconciliation_id}")
        self._raise_for_status(
            response,
            "Failed to fetch reconciliation result",
            not_found="Reconciliation result not found",
            server_error="Database error occurred",
        )

        data = self._json_object(response, "result").get("data") or {}
        if not isinstance(data, dict):
            raise PhantomApiError(f"Unexpected result body: {type(data).__name__}")
        return data

    def get_preview(self, locator: str) -> List[str]:
        """Get the preview lines of a sample blob."""
        response = self._send("get", f"/preview/{quote(locator, safe='')}")
        self._raise_for_status(response, "Failed to fetch preview", not_found="File not found")

        preview = self._json_object(response, "preview").get("preview") or []
        if not isinstance(preview, list):
            raise PhantomApiError(f"Unexpected preview body: {type(preview).__name__}")
        return list(preview)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """Issue an authenticated request."""
        token = self.token_provider()
        if not token:
            raise MissingCredentialError()

        url = f"{self.config.root_url}{path}"
        headers = {"Authorization": f"Bearer {token}"}
        logger.debug(f"{method.upper()} {url}")

        try:
            return getattr(self.session, method)(
                url, headers=headers, timeout=self.config.timeout, **kwargs
            )
        except requests.exceptions.RequestException as e:
            raise TransientApiError(f"Request to {path} failed: {e}") from e

    def _raise_for_status(
        self,
        response: requests.Response,
        default: str,
        not_found: Optional[str] = None,
        server_error: Optional[str] = None,
    ) -> None:
        """Translate an error response into an exception."""
        status = response.status_code
        if status < 400:
            return

        if status == 400:
            raise InvalidIdentifierError()
        if status == 404:
            raise NotFoundError(not_found or self._error_message(response, default))
        if status == 500:
            raise ServerError(server_error or self._error_message(response, default))
        if status in RETRYABLE_STATUSES:
            raise TransientApiError(self._error_message(response, default), status_code=status)

        raise PhantomApiError(self._error_message(response, default), status_code=status)

    @staticmethod
    def _error_message(response: requests.Response, default: str) -> str:
        """Extract the backend's error message, if any."""
        try:
            data = response.json()
            if isinstance(data, dict) and data.get("error"):
                return str(data["error"])
        except ValueError:
            pass

        text = getattr(response, "text", "") or ""
        return text.strip() or default

    @staticmethod
    def _json_object(response: requests.Response, what: str) -> Dict[str, Any]:
        """Decode a JSON object body, rejecting anything else."""
        try:
            data = response.json()
        except ValueError as e:
            raise PhantomApiError(f"Invalid {what} body: {e}", status_code=response.status_code) from e

        if not isinstance(data, dict):
            raise PhantomApiError(
                f"Unexpected {what} body: {type(data).__name__}", status_code=response.status_code
            )
        return data

    @staticmethod
    def _json_or_empty(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
