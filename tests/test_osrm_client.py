import httpx
import pytest

from tourplanner.services.routing.errors import ProviderError
from tourplanner.services.routing.osrm_client import OSRMClient, decode_polyline


def _client(handler, **kwargs) -> OSRMClient:
    kwargs.setdefault("max_retries", 2)
    kwargs.setdefault("backoff_seconds", 0.0)
    return OSRMClient(
        base_url="http://osrm.test/",
        profile="driving",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_query_requests_single_source_row():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"code": "Ok", "distances": [[0.0, 1200.5, None]]})

    client = _client(handler, annotation="distance")
    origin = (23.0, 72.5)
    costs = await client.query(origin, [(23.0, 72.5), (23.1, 72.6), (23.2, 72.7)])

    assert costs == [0.0, 1200.5, None]
    assert seen["path"] == "/table/v1/driving/72.5,23.0;72.5,23.0;72.6,23.1;72.7,23.2"
    assert seen["params"] == {"annotations": "distance", "sources": "0", "destinations": "1;2;3"}


@pytest.mark.asyncio
async def test_query_uses_duration_annotation_when_configured():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["annotations"] == "duration"
        return httpx.Response(200, json={"code": "Ok", "durations": [[0.0, 60.0]]})

    costs = await _client(handler, annotation="duration").query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert costs == [0.0, 60.0]


@pytest.mark.asyncio
async def test_bad_query_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"code": "InvalidQuery", "message": "Query string malformed"})

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler).query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "InvalidQuery"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_server_errors_are_retried_then_reported():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503, text="unavailable")

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler, max_retries=2).query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "HTTP_503"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_transient_failure_recovers():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"code": "Ok", "distances": [[0.0, 5.0]]})

    costs = await _client(handler).query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert costs == [0.0, 5.0]
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_connection_failure_after_retries():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler, max_retries=1).query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "UNAVAILABLE"


@pytest.mark.asyncio
async def test_non_ok_code_is_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": "NoTable", "message": "no table"})

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler).query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "NoTable"


@pytest.mark.asyncio
async def test_route_decodes_geometry():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/route/v1/driving/-120.2,38.5;-126.453,43.252"
        assert request.url.params["overview"] == "full"
        return httpx.Response(
            200,
            json={
                "code": "Ok",
                "routes": [{"geometry": "_p~iF~ps|U_ulLnnqC_mqNvxq`@", "distance": 1500.0, "duration": 240.0}],
            },
        )

    rendered = await _client(handler).route([(38.5, -120.2), (43.252, -126.453)])

    assert rendered.distance_m == 1500.0
    assert rendered.duration_s == 240.0
    assert rendered.geometry == [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


@pytest.mark.asyncio
async def test_route_without_routes_fails():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": "Ok", "routes": []})

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler).route([(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "NoRoute"


def test_decode_polyline_empty():
    assert decode_polyline("") == []


def test_missing_base_url_rejected(monkeypatch):
    from tourplanner.services.routing import osrm_client

    monkeypatch.setattr(osrm_client.settings, "osrm_base_url", None)
    with pytest.raises(ValueError):
        OSRMClient()


@pytest.mark.asyncio
async def test_non_object_body_is_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "an", "object"])

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler).query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "INVALID_RESPONSE"


@pytest.mark.asyncio
async def test_non_numeric_table_cell_is_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": "Ok", "distances": [[0.0, "far"]]})

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler, annotation="distance").query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "INVALID_RESPONSE"


@pytest.mark.asyncio
async def test_short_table_row_is_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": "Ok", "distances": [[0.0]]})

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler, annotation="distance").query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "INVALID_RESPONSE"


@pytest.mark.asyncio
async def test_malformed_route_entry_is_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": "Ok", "routes": ["oops"]})

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler).route([(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "INVALID_RESPONSE"


@pytest.mark.asyncio
async def test_error_body_that_is_not_an_object_keeps_http_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json=["missing"])

    with pytest.raises(ProviderError) as excinfo:
        await _client(handler).query((1.0, 2.0), [(1.0, 2.0), (1.5, 2.5)])

    assert excinfo.value.status == "HTTP_404"
