"""
Test the record/replay/auto/bypass behaviour of the httpx transports
"""

import json
import os
import threading
import time
from datetime import datetime, timezone

import httpx
import pytest

from vcr_transport import (
    AdvancedSettings,
    CapturedRequest,
    CapturedResponse,
    Cassette,
    Censors,
    DelayPolicy,
    Interaction,
    MatchRules,
    Mode,
    NoMatchingInteractionError,
    PersistenceError,
    RecordReplayHandler,
    VCRTransport,
)
from vcr_transport.constants import PERSISTENCE_ERROR_EXTENSION, REPLAYED_EXTENSION

ITEMS_URL = "https://example.test/items?id=1"


def _client(cassette: Cassette, mode: Mode, inner: httpx.BaseTransport, **kwargs) -> httpx.Client:
    advanced_settings = kwargs.pop("advanced_settings", None)
    transport = VCRTransport(cassette, mode, advanced_settings=advanced_settings, inner_transport=inner)
    return httpx.Client(transport=transport, **kwargs)


def _failing_transport() -> httpx.MockTransport:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"Unexpected real request: {request.method} {request.url}")

    return httpx.MockTransport(_handler)


def _store(cassette: Cassette, duration_ms: int, uri: str = ITEMS_URL):
    cassette.upsert(
        Interaction(
            request=CapturedRequest(method="GET", uri=uri),
            response=CapturedResponse(status_code=200, body=b"stored"),
            recorded_at=datetime.now(timezone.utc),
            duration_ms=duration_ms,
        ),
        MatchRules.default(),
    )


def test_record_stores_interaction(cassette, upstream):
    with _client(cassette, Mode.RECORD, upstream.transport) as client:
        response = client.get(ITEMS_URL)

    assert response.status_code == 200
    assert response.json() == {"call": 1, "path": "/items"}
    assert upstream.calls == 1
    assert PERSISTENCE_ERROR_EXTENSION not in response.extensions

    interactions = Cassette(cassette.folder, cassette.name).read()
    assert len(interactions) == 1
    assert interactions[0].request.method == "GET"
    assert interactions[0].request.uri == ITEMS_URL
    assert interactions[0].response.status_code == 200
    assert json.loads(interactions[0].response.body) == {"call": 1, "path": "/items"}
    assert interactions[0].response.headers["x-upstream"] == ["fake"]
    assert "content-length" not in interactions[0].response.headers
    assert interactions[0].duration_ms >= 0


def test_record_twice_replaces_interaction(cassette, upstream):
    with _client(cassette, Mode.RECORD, upstream.transport) as client:
        client.get(ITEMS_URL)
        response = client.get(ITEMS_URL)

    assert response.json()["call"] == 2
    assert upstream.calls == 2

    interactions = cassette.read()
    assert len(interactions) == 1
    assert json.loads(interactions[0].response.body)["call"] == 2


def test_record_request_body(cassette, upstream):
    with _client(cassette, Mode.RECORD, upstream.transport) as client:
        client.post("https://example.test/items", json={"name": "item"})

    assert json.loads(cassette.read()[0].request.body) == {"name": "item"}


def test_replay_returns_recorded_response_without_network(cassette, upstream):
    with _client(cassette, Mode.RECORD, upstream.transport) as client:
        recorded = client.get(ITEMS_URL)

    with _client(Cassette(cassette.folder, cassette.name), Mode.REPLAY, _failing_transport()) as client:
        replayed = client.get(ITEMS_URL)

    assert replayed.status_code == recorded.status_code
    assert replayed.content == recorded.content
    assert replayed.headers["x-upstream"] == "fake"
    assert replayed.extensions[REPLAYED_EXTENSION] is True
    assert upstream.calls == 1


def test_replay_without_match_raises(cassette):
    with _client(cassette, Mode.REPLAY, _failing_transport()) as client:
        with pytest.raises(NoMatchingInteractionError) as exc_info:
            client.get(ITEMS_URL)

    assert exc_info.value.method == "GET"
    assert exc_info.value.uri == ITEMS_URL
    assert "test_cassette" in str(exc_info.value)


def test_replay_never_modifies_cassette(cassette):
    _store(cassette, duration_ms=0)
    with open(cassette.path, "rb") as f:
        before = f.read()

    with _client(Cassette(cassette.folder, cassette.name), Mode.REPLAY, _failing_transport()) as client:
        client.get(ITEMS_URL)
        with pytest.raises(NoMatchingInteractionError):
            client.get("https://example.test/other")

    with open(cassette.path, "rb") as f:
        assert f.read() == before


def test_auto_records_then_replays(cassette, upstream):
    with _client(cassette, Mode.AUTO, upstream.transport) as client:
        first = client.get(ITEMS_URL)
        second = client.get(ITEMS_URL)

    assert upstream.calls == 1
    assert first.json() == second.json()
    assert REPLAYED_EXTENSION not in first.extensions
    assert second.extensions[REPLAYED_EXTENSION] is True
    assert cassette.num_interactions == 1


def test_auto_records_each_distinct_request(cassette, upstream):
    with _client(cassette, Mode.AUTO, upstream.transport) as client:
        client.get("https://example.test/a")
        client.get("https://example.test/b")
        client.get("https://example.test/a")

    assert upstream.calls == 2
    assert [i.request.uri for i in cassette.read()] == ["https://example.test/a", "https://example.test/b"]


def test_bypass_forwards_without_touching_cassette(cassette, upstream):
    _store(cassette, duration_ms=0)
    with open(cassette.path, "rb") as f:
        before = f.read()

    with _client(Cassette(cassette.folder, cassette.name), Mode.BYPASS, upstream.transport) as client:
        response = client.get(ITEMS_URL)

    assert upstream.calls == 1
    assert response.json() == {"call": 1, "path": "/items"}
    assert REPLAYED_EXTENSION not in response.extensions
    assert Cassette(cassette.folder, cassette.name).num_interactions == 1
    with open(cassette.path, "rb") as f:
        assert f.read() == before


def test_bypass_does_not_create_cassette(cassette, upstream):
    with _client(cassette, Mode.BYPASS, upstream.transport) as client:
        client.get(ITEMS_URL)

    assert not os.path.exists(cassette.path)


def test_persistence_failure_still_returns_response(tmp_path, upstream):
    # a regular file where the cassette folder should be makes saving fail
    not_a_folder = tmp_path / "not_a_folder"
    not_a_folder.write_text("")
    cassette = Cassette(str(not_a_folder), "unsaveable")

    with _client(cassette, Mode.RECORD, upstream.transport) as client:
        response = client.get(ITEMS_URL)

    assert response.status_code == 200
    assert response.json()["call"] == 1
    error = response.extensions[PERSISTENCE_ERROR_EXTENSION]
    assert isinstance(error, PersistenceError)
    assert error.cassette_name == "unsaveable"
    assert error.cause is not None


def test_transport_error_propagates_and_nothing_is_recorded(cassette):
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(cassette, Mode.AUTO, httpx.MockTransport(_handler)) as client:
        with pytest.raises(httpx.ConnectError):
            client.get(ITEMS_URL)

    assert not os.path.exists(cassette.path)


def test_censored_values_are_not_written(cassette, upstream):
    advanced_settings = AdvancedSettings(censors=Censors.default_sensitive())

    with _client(cassette, Mode.RECORD, upstream.transport, advanced_settings=advanced_settings) as client:
        client.get(ITEMS_URL, headers={"Authorization": "Bearer secret123"})

    with open(cassette.path, "r", encoding="utf-8") as f:
        contents = f.read()
    assert "secret123" not in contents
    assert cassette.read()[0].request.headers["authorization"] == ["******"]


def test_replay_matches_censored_request(cassette, upstream):
    advanced_settings = AdvancedSettings(
        censors=Censors().censor_query_parameters_by_keys(["token"]),
    )
    url = "https://example.test/items?token=secret123"

    with _client(cassette, Mode.RECORD, upstream.transport, advanced_settings=advanced_settings) as client:
        client.get(url)

    replay_cassette = Cassette(cassette.folder, cassette.name)
    with _client(replay_cassette, Mode.REPLAY, _failing_transport(), advanced_settings=advanced_settings) as client:
        response = client.get("https://example.test/items?token=different")

    assert response.status_code == 200
    assert upstream.calls == 1


def test_custom_match_rules(cassette, upstream):
    advanced_settings = AdvancedSettings(match_rules=MatchRules().by_method().by_base_url())

    with _client(cassette, Mode.AUTO, upstream.transport, advanced_settings=advanced_settings) as client:
        client.get("https://example.test/items?page=1")
        response = client.get("https://example.test/items?page=2")

    assert upstream.calls == 1
    assert response.extensions[REPLAYED_EXTENSION] is True


def test_replay_with_original_delay(cassette):
    _store(cassette, duration_ms=200)
    advanced_settings = AdvancedSettings(delay=DelayPolicy.original())

    with _client(cassette, Mode.REPLAY, _failing_transport(), advanced_settings=advanced_settings) as client:
        start = time.perf_counter()
        client.get(ITEMS_URL)
        elapsed = time.perf_counter() - start

    assert elapsed >= 0.19


def test_replay_with_fixed_delay(cassette):
    _store(cassette, duration_ms=0)
    advanced_settings = AdvancedSettings(delay=DelayPolicy.fixed(150))

    with _client(cassette, Mode.REPLAY, _failing_transport(), advanced_settings=advanced_settings) as client:
        start = time.perf_counter()
        client.get(ITEMS_URL)
        elapsed = time.perf_counter() - start

    assert elapsed >= 0.14


def test_replay_without_delay_ignores_recorded_duration(cassette):
    _store(cassette, duration_ms=5000)

    with _client(cassette, Mode.REPLAY, _failing_transport()) as client:
        start = time.perf_counter()
        client.get(ITEMS_URL)
        elapsed = time.perf_counter() - start

    assert elapsed < 2


def test_delay_longer_than_read_timeout_raises_timeout(cassette):
    _store(cassette, duration_ms=5000)
    advanced_settings = AdvancedSettings(delay=DelayPolicy.original())

    with _client(
        cassette, Mode.REPLAY, _failing_transport(), advanced_settings=advanced_settings, timeout=0.1
    ) as client:
        start = time.perf_counter()
        with pytest.raises(httpx.ReadTimeout):
            client.get(ITEMS_URL)
        elapsed = time.perf_counter() - start

    assert elapsed < 2


def test_handler_rejects_unknown_mode(cassette):
    with pytest.raises(ValueError):
        RecordReplayHandler(cassette, "rewind")


def test_mode_from_string(cassette, upstream):
    transport = VCRTransport(cassette, "auto", inner_transport=upstream.transport)

    assert transport.handler.mode == Mode.AUTO
    assert transport.handler.cassette is cassette


def test_auto_replay_takes_at_least_the_recorded_duration(cassette):
    calls = []

    def _slow_handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        time.sleep(0.1)
        return httpx.Response(200, json={"id": 42})

    advanced_settings = AdvancedSettings(delay=DelayPolicy.original())
    url = "https://api.example.com/items/42"

    inner = httpx.MockTransport(_slow_handler)
    with _client(cassette, Mode.AUTO, inner, advanced_settings=advanced_settings) as client:
        first = client.get(url)
        start = time.perf_counter()
        second = client.get(url)
        elapsed_ms = (time.perf_counter() - start) * 1000

    recorded_duration_ms = cassette.read()[0].duration_ms
    assert len(calls) == 1
    assert recorded_duration_ms >= 100
    assert second.content == first.content
    assert elapsed_ms >= recorded_duration_ms


def test_concurrent_auto_misses_for_same_request_store_one_interaction(cassette):
    # both requests reach the server before either is recorded
    barrier = threading.Barrier(2, timeout=5)

    def _handler(request: httpx.Request) -> httpx.Response:
        barrier.wait()
        time.sleep(0.05)
        return httpx.Response(200, json={"id": 42})

    url = "https://api.example.com/items/42"
    responses = []
    with _client(cassette, Mode.AUTO, httpx.MockTransport(_handler)) as client:
        threads = [threading.Thread(target=lambda: responses.append(client.get(url))) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert [response.status_code for response in responses] == [200, 200]
    assert [i.request.uri for i in Cassette(cassette.folder, cassette.name).read()] == [url]
    assert cassette.num_interactions == 1
