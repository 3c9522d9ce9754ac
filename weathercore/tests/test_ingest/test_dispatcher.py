"""Tests for background request dispatch."""

from datetime import date
from unittest.mock import MagicMock

import httpx
import pytest

from weathercore.ingest.dispatcher import (
    FailureKind,
    FetchResult,
    RequestCategory,
    RequestDispatcher,
    run_request,
)
from weathercore.ingest.met_client import MetClientError


class TestRunRequest:
    def test_success(self):
        result = run_request(lambda: b"<weatherdata/>")
        assert result.ok
        assert result.body == b"<weatherdata/>"

    def test_http_status(self):
        def call():
            raise MetClientError("HTTP 500", 500)

        result = run_request(call)
        assert not result.ok
        assert result.failure == FailureKind.HTTP_STATUS
        assert "500" in result.detail

    def test_transport(self):
        def call():
            raise MetClientError("Request failed: refused")

        assert run_request(call).failure == FailureKind.TRANSPORT

    def test_timeout(self):
        def call():
            raise httpx.ReadTimeout("slow")

        assert run_request(call).failure == FailureKind.TIMEOUT

    def test_unexpected_error_never_escapes(self):
        def call():
            raise RuntimeError("boom")

        result = run_request(call)
        assert result.failure == FailureKind.TRANSPORT
        assert result.detail == "boom"

    def test_empty_result_is_not_ok(self):
        assert not FetchResult().ok


class TestRequestDispatcher:
    @pytest.fixture
    def client(self) -> MagicMock:
        client = MagicMock()
        client.fetch_forecast.return_value = b"<weatherdata/>"
        client.fetch_astro.return_value = b"<astrodata/>"
        return client

    def test_submit_forecast(self, client, oslo):
        dispatcher = RequestDispatcher(client)
        try:
            pending = dispatcher.submit_forecast(oslo)
            assert pending.category == RequestCategory.FORECAST
            assert pending.context is oslo
            assert pending.future.result(timeout=5).body == b"<weatherdata/>"
            assert pending.done()
            client.fetch_forecast.assert_called_once_with(oslo)
        finally:
            dispatcher.shutdown(wait=True)

    def test_submit_astro(self, client, oslo):
        dispatcher = RequestDispatcher(client)
        try:
            pending = dispatcher.submit_astro(oslo, date(2024, 1, 1))
            assert pending.category == RequestCategory.ASTRO
            assert pending.future.result(timeout=5).ok
            client.fetch_astro.assert_called_once_with(oslo, date(2024, 1, 1))
        finally:
            dispatcher.shutdown(wait=True)

    def test_failure_is_a_result(self, client, oslo):
        client.fetch_forecast.side_effect = MetClientError("HTTP 502", 502)
        dispatcher = RequestDispatcher(client)
        try:
            pending = dispatcher.submit_forecast(oslo)
            pending.future.result(timeout=5)
            assert pending.result().failure == FailureKind.HTTP_STATUS
        finally:
            dispatcher.shutdown(wait=True)
