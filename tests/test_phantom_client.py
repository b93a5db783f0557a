"""
Unit tests for PhantomClient

Tests:
- Authentication: bearer header, missing credential short-circuit
- Endpoint paths and payloads
- Error translation per status code
"""

import json
from collections import OrderedDict
from unittest.mock import Mock, patch

import pytest
import requests

from config import PhantomApiConfig
from phantom_recon.api.exceptions import (
    PhantomApiError,
    MissingCredentialError,
    InvalidIdentifierError,
    NotFoundError,
    TransientApiError,
    ServerError,
)
from phantom_recon.api.phantom_client import PhantomClient
from phantom_recon.schema.models import ReconciliationMapping

ROOT = "http://phantom.test/data-phantom"


@pytest.fixture
def config():
    return PhantomApiConfig(base_url="http://phantom.test", api_token="secret", timeout=5)


@pytest.fixture
def client(config):
    return PhantomClient(config)


def make_response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = payload
    return response


class TestAuthentication:
    """Test credential handling."""

    @patch("requests.Session.get")
    def test_bearer_header(self, mock_get, client):
        mock_get.return_value = make_response(payload={"success": True, "selectedFields": ["a"]})

        client.get_task_fields("t1")

        _, kwargs = mock_get.call_args
        assert kwargs["headers"] == {"Authorization": "Bearer secret"}
        assert kwargs["timeout"] == 5

    @patch("requests.Session.post")
    @patch("requests.Session.get")
    def test_missing_token_makes_no_request(self, mock_get, mock_post, config):
        config.api_token = ""
        client = PhantomClient(config)

        with pytest.raises(MissingCredentialError):
            client.get_status("rec-1")
        with pytest.raises(MissingCredentialError):
            client.trigger_run("rec-1")

        mock_get.assert_not_called()
        mock_post.assert_not_called()

    @patch("requests.Session.get")
    def test_token_provider_is_consulted_per_call(self, mock_get, config):
        tokens = iter(["first", "second"])
        client = PhantomClient(config, token_provider=lambda: next(tokens))
        mock_get.return_value = make_response(payload={"status": "RUNNING"})

        client.get_status("rec-1")
        client.get_status("rec-1")

        headers = [c.kwargs["headers"]["Authorization"] for c in mock_get.call_args_list]
        assert headers == ["Bearer first", "Bearer second"]


class TestTaskFields:
    """Test task field retrieval."""

    @patch("requests.Session.get")
    def test_get_task_fields(self, mock_get, client):
        mock_get.return_value = make_response(
            payload={"success": True, "selectedFields": ["id", "amount"]}
        )

        assert client.get_task_fields("t1") == ["id", "amount"]
        assert mock_get.call_args[0][0] == f"{ROOT}/task/fields/t1"

    @patch("requests.Session.get")
    def test_unsuccessful_response_yields_no_fields(self, mock_get, client):
        mock_get.return_value = make_response(payload={"success": False})

        assert client.get_task_fields("t1") == []


class TestMappings:
    """Test mapping endpoints."""

    @patch("requests.Session.post")
    def test_create_mapping(self, mock_post, client):
        mock_post.return_value = make_response(
            payload={
                "success": True,
                "data": {
                    "reconciliationId": "rec-1",
                    "playgroundId": "pg",
                    "leftTableId": "t1",
                    "rightTableId": "t2",
                    "mapping": '{"id": "userId"}',
                },
            }
        )
        mapping = ReconciliationMapping("pg", "t1", "t2", OrderedDict([("id", "userId")]))

        created = client.create_mapping(mapping)

        assert created.id == "rec-1"
        assert created.field_map == {"id": "userId"}
        body = mock_post.call_args.kwargs["json"]
        assert body["playgroundId"] == "pg"
        assert body["leftTableId"] == "t1"
        assert body["rightTableId"] == "t2"
        assert json.loads(body["map"]) == {"id": "userId"}

    @patch("requests.Session.post")
    def test_create_without_echo_returns_input(self, mock_post, client):
        mock_post.return_value = make_response(text="created")
        mapping = ReconciliationMapping("pg", "t1", "t2", {"a": "b"})

        assert client.create_mapping(mapping) is mapping

    @patch("requests.Session.get")
    def test_list_mappings_decodes_map_in_order(self, mock_get, client):
        mock_get.return_value = make_response(
            payload={
                "success": True,
                "data": [
                    {
                        "reconciliationId": "rec-1",
                        "leftTableId": "t1",
                        "rightTableId": "t2",
                        "mapping": '{"z": "a", "b": "c"}',
                        "createdAt": "2024-01-01",
                    }
                ],
            }
        )

        mappings = client.list_mappings("pg")

        assert mock_get.call_args[0][0] == f"{ROOT}/reconciliation-mapping/playground/pg"
        assert len(mappings) == 1
        assert list(mappings[0].field_map.keys()) == ["z", "b"]
        assert mappings[0].created_at == "2024-01-01"

    @patch("requests.Session.put")
    def test_update_mapping(self, mock_put, client):
        mock_put.return_value = make_response(payload={"success": True})

        client.update_mapping("rec-1", {"a": "b"})

        assert mock_put.call_args[0][0] == f"{ROOT}/reconciliation-mapping/rec-1"
        assert json.loads(mock_put.call_args.kwargs["json"]["map"]) == {"a": "b"}

    @patch("requests.Session.delete")
    def test_delete_mapping(self, mock_delete, client):
        mock_delete.return_value = make_response(payload={"success": True})

        client.delete_mapping("rec-1")

        assert mock_delete.call_args[0][0] == f"{ROOT}/reconciliation-mapping/rec-1"


class TestRuns:
    """Test run, status and result endpoints."""

    @patch("requests.Session.post")
    def test_trigger_run_returns_text(self, mock_post, client):
        mock_post.return_value = make_response(text="Reconciliation started")

        assert client.trigger_run("rec-1") == "Reconciliation started"
        assert mock_post.call_args[0][0] == f"{ROOT}/reconciliation-run/rec-1"

    @patch("requests.Session.post")
    def test_trigger_run_invalid_id(self, mock_post, client):
        mock_post.return_value = make_response(400, text="bad")

        with pytest.raises(InvalidIdentifierError, match="Invalid reconciliation ID format"):
            client.trigger_run("not-an-id")

    @patch("requests.Session.post")
    def test_trigger_run_server_error(self, mock_post, client):
        mock_post.return_value = make_response(500, text="queue unavailable")

        with pytest.raises(ServerError) as exc_info:
            client.trigger_run("rec-1")

        assert str(exc_info.value) == "Failed to start reconciliation run: queue unavailable"

    @patch("requests.Session.get")
    def test_get_status(self, mock_get, client):
        payload = {"status": "RUNNING", "message": "Working", "reconciliationMethod": "EXACT_MATCH"}
        mock_get.return_value = make_response(payload=payload)

        assert client.get_status("rec-1") == payload
        assert mock_get.call_args[0][0] == f"{ROOT}/reconciliation-status/rec-1"

    @patch("requests.Session.get")
    def test_get_result_unwraps_data(self, mock_get, client):
        mock_get.return_value = make_response(payload={"data": {"commonRowCount": 3}})

        assert client.get_result("rec-1") == {"commonRowCount": 3}

    @patch("requests.Session.get")
    def test_get_result_not_found(self, mock_get, client):
        mock_get.return_value = make_response(404, text="")

        with pytest.raises(NotFoundError, match="Reconciliation result not found"):
            client.get_result("rec-1")

    @patch("requests.Session.get")
    def test_get_result_database_error(self, mock_get, client):
        mock_get.return_value = make_response(500, text="boom")

        with pytest.raises(ServerError, match="Database error occurred"):
            client.get_result("rec-1")


class TestPreview:
    """Test sample preview retrieval."""

    @patch("requests.Session.get")
    def test_locator_is_url_encoded(self, mock_get, client):
        mock_get.return_value = make_response(payload={"preview": ["a,b", "1,2"]})

        lines = client.get_preview("s3://bucket/run 1/common.csv")

        assert lines == ["a,b", "1,2"]
        assert mock_get.call_args[0][0] == (
            f"{ROOT}/preview/s3%3A%2F%2Fbucket%2Frun%201%2Fcommon.csv"
        )

    @patch("requests.Session.get")
    def test_missing_blob(self, mock_get, client):
        mock_get.return_value = make_response(404, text="")

        with pytest.raises(NotFoundError, match="File not found"):
            client.get_preview("s3://bucket/missing")


class TestErrorTranslation:
    """Test mapping of transport failures to exceptions."""

    @patch("requests.Session.get")
    def test_network_failure_is_transient(self, mock_get, client):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransientApiError):
            client.get_status("rec-1")

    @patch("requests.Session.get")
    def test_retryable_status_is_transient(self, mock_get, client):
        mock_get.return_value = make_response(503, text="unavailable")

        with pytest.raises(TransientApiError) as exc_info:
            client.get_status("rec-1")

        assert exc_info.value.status_code == 503

    @patch("requests.Session.get")
    def test_backend_error_message_used(self, mock_get, client):
        mock_get.return_value = make_response(403, payload={"error": "Forbidden playground"})

        with pytest.raises(PhantomApiError) as exc_info:
            client.list_mappings("pg")

        assert str(exc_info.value) == "Forbidden playground"
        assert exc_info.value.status_code == 403
        assert not isinstance(exc_info.value, TransientApiError)

    @patch("requests.Session.get")
    def test_non_object_preview_body_rejected(self, mock_get, client):
        mock_get.return_value = make_response(payload=["a,b", "1,2"])

        with pytest.raises(PhantomApiError, match="Unexpected preview body"):
            client.get_preview("s3://bucket/common")

    @patch("requests.Session.get")
    def test_non_object_status_body_rejected(self, mock_get, client):
        mock_get.return_value = make_response(payload=["weird"])

        with pytest.raises(PhantomApiError, match="Unexpected status body"):
            client.get_status("rec-1")

    @patch("requests.Session.get")
    def test_invalid_json_body_rejected(self, mock_get, client):
        mock_get.return_value = make_response(text="<html>")

        with pytest.raises(PhantomApiError, match="Invalid status body"):
            client.get_status("rec-1")

    @patch("requests.Session.get")
    def test_non_object_result_data_rejected(self, mock_get, client):
        mock_get.return_value = make_response(payload={"data": [1, 2]})

        with pytest.raises(PhantomApiError, match="Unexpected result body"):
            client.get_result("rec-1")

    def test_retry_adapter_mounted(self, client):
        adapter = client.session.get_adapter(ROOT)

        assert adapter.max_retries.total == 3
        assert 503 in adapter.max_retries.status_forcelist


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
