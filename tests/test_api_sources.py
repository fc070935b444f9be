"""Tests for the API-backed metadata and location resolvers.

Remote endpoints are simulated with httpx.MockTransport.
"""

from __future__ import annotations

import httpx
import pytest

from aries_archivematica.errors import (
    LOCATION,
    METADATA,
    AmbiguousError,
    NotFoundError,
    SourceError,
)
from aries_archivematica.identifiers import classify
from aries_archivematica.models import LocationRecord, PackageRecord
from aries_archivematica.sources.api import ApiLocationResolver, ApiMetadataResolver

REPORT_UUID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"
APP_TEMPLATE = "https://dashboard.example.test/api/v2/file/?uuid={UUID}"
STORAGE_TEMPLATE = "https://storage.example.test/api/v2/file/?uuid={UUID}"


def _payload(*objects: dict, total: int | None = None) -> dict:
    return {
        "meta": {"total_count": len(objects) if total is None else total},
        "objects": list(objects),
    }


def _report(path: str = "/space/rel/path/to/file") -> dict:
    return {"uuid": REPORT_UUID, "current_full_path": path}


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler), timeout=10.0)


@pytest.fixture
def requests_seen():
    return []


def _serving(requests_seen, response: httpx.Response | dict):
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response, request=request)

    return handler


class TestApiMetadata:
    def test_single_object(self, requests_seen):
        client = _client(_serving(requests_seen, _payload(_report())))
        try:
            resolver = ApiMetadataResolver(client, APP_TEMPLATE, "archivist", "s3cret")
            record = resolver.resolve(classify(REPORT_UUID.upper()))
        finally:
            client.close()

        assert record == PackageRecord(uuid=REPORT_UUID, name=None)
        request = requests_seen[0]
        assert request.method == "GET"
        assert str(request.url) == APP_TEMPLATE.replace("{UUID}", REPORT_UUID)
        assert request.headers["Authorization"] == "ApiKey archivist:s3cret"

    def test_name_is_not_looked_up_remotely(self, requests_seen):
        client = _client(_serving(requests_seen, _payload(_report())))
        try:
            resolver = ApiMetadataResolver(client, APP_TEMPLATE, "u", "k")
            with pytest.raises(NotFoundError) as exc_info:
                resolver.resolve(classify("report"))
        finally:
            client.close()
        assert exc_info.value.stage == METADATA
        assert requests_seen == []

    def test_zero_count(self, requests_seen):
        client = _client(_serving(requests_seen, _payload()))
        try:
            with pytest.raises(NotFoundError):
                ApiMetadataResolver(client, APP_TEMPLATE, "u", "k").resolve(
                    classify(REPORT_UUID)
                )
        finally:
            client.close()

    def test_many_count(self, requests_seen):
        client = _client(_serving(requests_seen, _payload(_report(), _report())))
        try:
            with pytest.raises(AmbiguousError) as exc_info:
                ApiMetadataResolver(client, APP_TEMPLATE, "u", "k").resolve(
                    classify(REPORT_UUID)
                )
        finally:
            client.close()
        assert exc_info.value.count == 2

    def test_total_count_wins_over_page_length(self, requests_seen):
        client = _client(_serving(requests_seen, _payload(_report(), total=3)))
        try:
            with pytest.raises(AmbiguousError) as exc_info:
                ApiMetadataResolver(client, APP_TEMPLATE, "u", "k").resolve(
                    classify(REPORT_UUID)
                )
        finally:
            client.close()
        assert exc_info.value.count == 3

    def test_object_without_uuid(self, requests_seen):
        body = _payload({"current_full_path": "/x"})
        client = _client(_serving(requests_seen, body))
        try:
            with pytest.raises(SourceError):
                ApiMetadataResolver(client, APP_TEMPLATE, "u", "k").resolve(
                    classify(REPORT_UUID)
                )
        finally:
            client.close()


class TestApiLocation:
    def test_single_object(self, requests_seen):
        client = _client(_serving(requests_seen, _payload(_report())))
        try:
            resolver = ApiLocationResolver(client, STORAGE_TEMPLATE, "ss", "key")
            record = resolver.resolve(REPORT_UUID)
        finally:
            client.close()
        assert record == LocationRecord(full_path="/space/rel/path/to/file")
        assert requests_seen[0].headers["Authorization"] == "ApiKey ss:key"
        assert requests_seen[0].url.params["uuid"] == REPORT_UUID

    def test_only_first_placeholder_is_replaced(self, requests_seen):
        template = "https://storage.example.test/{UUID}/?echo={UUID}"
        client = _client(_serving(requests_seen, _payload(_report())))
        try:
            ApiLocationResolver(client, template, "u", "k").resolve(REPORT_UUID)
        finally:
            client.close()
        assert requests_seen[0].url.path == f"/{REPORT_UUID}/"

    def test_zero_count(self, requests_seen):
        client = _client(_serving(requests_seen, _payload()))
        try:
            with pytest.raises(NotFoundError) as exc_info:
                ApiLocationResolver(client, STORAGE_TEMPLATE, "u", "k").resolve(REPORT_UUID)
        finally:
            client.close()
        assert exc_info.value.stage == LOCATION

    def test_many_count(self, requests_seen):
        client = _client(_serving(requests_seen, _payload(_report("/a"), _report("/b"))))
        try:
            with pytest.raises(AmbiguousError):
                ApiLocationResolver(client, STORAGE_TEMPLATE, "u", "k").resolve(REPORT_UUID)
        finally:
            client.close()

    def test_object_without_path(self, requests_seen):
        client = _client(_serving(requests_seen, _payload({"uuid": REPORT_UUID})))
        try:
            with pytest.raises(SourceError):
                ApiLocationResolver(client, STORAGE_TEMPLATE, "u", "k").resolve(REPORT_UUID)
        finally:
            client.close()


class TestApiFailures:
    """Every remote failure is a SourceError, never a NotFound."""

    def _resolve(self, handler):
        client = _client(handler)
        try:
            return ApiLocationResolver(client, STORAGE_TEMPLATE, "u", "k").resolve(
                REPORT_UUID
            )
        finally:
            client.close()

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(SourceError) as exc_info:
            self._resolve(handler)
        assert "timed out" in str(exc_info.value)

    def test_connection_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SourceError):
            self._resolve(handler)

    def test_not_json(self):
        def handler(request):
            return httpx.Response(200, text="<html>login</html>", request=request)

        with pytest.raises(SourceError) as exc_info:
            self._resolve(handler)
        assert "malformed" in str(exc_info.value)

    def test_wrong_shape(self):
        def handler(request):
            return httpx.Response(200, json={"objects": []}, request=request)

        with pytest.raises(SourceError):
            self._resolve(handler)

    def test_count_without_objects(self):
        def handler(request):
            return httpx.Response(200, json=_payload(total=1), request=request)

        with pytest.raises(SourceError):
            self._resolve(handler)

    def test_server_error(self):
        def handler(request):
            return httpx.Response(503, text="unavailable", request=request)

        with pytest.raises(SourceError) as exc_info:
            self._resolve(handler)
        assert "503" in str(exc_info.value)

    def test_unauthorized(self):
        def handler(request):
            return httpx.Response(401, request=request)

        with pytest.raises(SourceError):
            self._resolve(handler)

    def test_remote_404_is_not_found(self):
        def handler(request):
            return httpx.Response(404, request=request)

        with pytest.raises(NotFoundError):
            self._resolve(handler)
