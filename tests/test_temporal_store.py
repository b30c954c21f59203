from __future__ import annotations

import asyncio
import logging
from typing import List
from urllib.parse import quote

import pytest

import services.fetcher
from models.query import MalformedQueryError
from services.graph import GraphParseError
from services.temporal_store import TemporalStore, split_identifier
from storage.resource_store import RepresentationPreferences, ResourceNotFound
from tests.observations import (
    BASE_URL,
    CELSIUS,
    HUMIDITY,
    NOW,
    SENSOR_B,
    TEMPERATURE,
    RecordingStore,
    build_temporal_container,
    hours_ago,
)

CONTAINER = f"{BASE_URL}room/"


@pytest.fixture()
def source() -> RecordingStore:
    store = RecordingStore()
    build_temporal_container(
        store,
        CONTAINER,
        [(hours_ago(1), "10"), (hours_ago(2), "20"), (hours_ago(3), "30")],
    )
    return store


@pytest.fixture()
def parse_calls(monkeypatch) -> List[str]:
    calls: List[str] = []
    original = services.fetcher.parse_graph

    def counting_parse(stream, content_type, identifier):
        calls.append(identifier)
        return original(stream, content_type, identifier)

    monkeypatch.setattr("services.fetcher.parse_graph", counting_parse)
    return calls


def _store(source: RecordingStore, **kwargs) -> TemporalStore:
    return TemporalStore(source, clock=lambda: NOW, **kwargs)


def _query(store: TemporalStore, query: str = "", identifier: str = CONTAINER) -> tuple[str, str]:
    target = f"{identifier}?{query}" if query else identifier
    representation = asyncio.run(
        store.get_representation(target, RepresentationPreferences())
    )
    return representation.content_type or "", representation.read().decode("utf-8")


def test_raw_dump_lists_every_observation_sorted(source: RecordingStore) -> None:
    content_type, body = _query(_store(source), "operator=none")

    assert content_type == "text/csv"
    assert body.split("\n") == [
        f"{hours_ago(3).isoformat()}, 30, {CELSIUS}",
        f"{hours_ago(2).isoformat()}, 20, {CELSIUS}",
        f"{hours_ago(1).isoformat()}, 10, {CELSIUS}",
    ]


def test_scenario_value_gte_20(source: RecordingStore) -> None:
    store = _store(source)

    assert _query(store, "value=gte_20&operator=box") == ("application/json", "false")
    assert _query(store, "value=gte_20&operator=diamond") == ("application/json", "true")


def test_scenario_relative_interval(source: RecordingStore) -> None:
    _, body = _query(_store(source), "intervalStart=PT90M")

    assert [line.split(", ")[1] for line in body.split("\n")] == ["30", "20"]


def test_no_query_passes_through_without_parsing(source: RecordingStore, parse_calls) -> None:
    content_type, body = _query(_store(source))

    assert content_type == "text/turtle"
    assert "TemporalContainer" in body
    assert parse_calls == []
    assert source.requested == [CONTAINER]


def test_non_temporal_container_passes_through(source: RecordingStore, parse_calls) -> None:
    source.put_resource(f"{BASE_URL}plain/obs.ttl", b"")

    content_type, body = _query(_store(source), "operator=box", identifier=f"{BASE_URL}plain/")

    assert content_type == "text/turtle"
    assert "obs.ttl" in body
    assert parse_calls == []
    assert source.requested == [f"{BASE_URL}plain/", f"{BASE_URL}plain/"]
    assert all(representation.released for representation in source.handed_out)


def test_every_fetched_stream_is_released(source: RecordingStore) -> None:
    _query(_store(source), "operator=diamond")

    assert len(source.handed_out) == 4
    assert all(representation.released for representation in source.handed_out)


def test_members_parsed_once_each(source: RecordingStore, parse_calls) -> None:
    _query(_store(source), "operator=diamond")

    assert sorted(parse_calls) == [f"{CONTAINER}obs-{index}.ttl" for index in range(3)]


def test_observed_property_and_sensor_filters(source: RecordingStore) -> None:
    build_temporal_container(
        source,
        f"{BASE_URL}mixed/",
        [(hours_ago(1), "55")],
        observed_property=HUMIDITY,
        sensor=SENSOR_B,
    )
    store = _store(source)

    _, matching = _query(
        store,
        f"observedProperty={quote(HUMIDITY, safe='')}&madeBySensor={quote(SENSOR_B, safe='')}",
        identifier=f"{BASE_URL}mixed/",
    )
    _, other = _query(
        store,
        f"observedProperty={quote(TEMPERATURE, safe='')}",
        identifier=f"{BASE_URL}mixed/",
    )

    assert matching.endswith(", 55, " + CELSIUS)
    assert other == ""


def test_unreadable_member_fails_whole_request(source: RecordingStore, caplog) -> None:
    source.put_resource(f"{CONTAINER}broken.ttl", b"not turtle <")
    store = _store(source)

    with caplog.at_level(logging.WARNING, logger="services.fetcher"):
        with pytest.raises(GraphParseError) as excinfo:
            _query(store, "operator=diamond")

    assert excinfo.value.identifier == f"{CONTAINER}broken.ttl"
    assert all(representation.released for representation in source.handed_out)
    assert any(getattr(entry, "member", None) == f"{CONTAINER}broken.ttl" for entry in caplog.records)


def test_missing_member_fails_whole_request(source: RecordingStore) -> None:
    class VanishingStore(RecordingStore):
        async def get_representation(self, identifier, preferences, conditions=None):
            if identifier.endswith("obs-1.ttl"):
                raise ResourceNotFound(identifier)
            return await super().get_representation(identifier, preferences, conditions)

    vanishing = VanishingStore()
    build_temporal_container(vanishing, CONTAINER, [(hours_ago(1), "1"), (hours_ago(2), "2")])

    with pytest.raises(ResourceNotFound):
        _query(_store(vanishing), "operator=box")


def test_missing_target_raises_not_found(source: RecordingStore) -> None:
    with pytest.raises(ResourceNotFound):
        _query(_store(source), "operator=box", identifier=f"{BASE_URL}nowhere/")


def test_malformed_query_fails_before_fetching_members(source: RecordingStore) -> None:
    with pytest.raises(MalformedQueryError):
        _query(_store(source), "intervalStart=ninety")

    assert source.requested == []


def test_member_limit_bounds_fan_out(source: RecordingStore, parse_calls) -> None:
    content_type, body = _query(_store(source, member_limit=2), "operator=none")

    assert content_type == "text/csv"
    assert len(parse_calls) == 2
    assert len(body.split("\n")) == 2


def test_split_identifier() -> None:
    target, params = split_identifier(f"{CONTAINER}?value=gte_20&operator=box&empty=")

    assert target == CONTAINER
    assert params == [("value", "gte_20"), ("operator", "box"), ("empty", "")]
    assert split_identifier(CONTAINER) == (CONTAINER, [])


def test_ignored_member_names_are_not_fetched(source: RecordingStore, parse_calls) -> None:
    source.put_resource(f"{CONTAINER}index.html", b"<html/>")

    with pytest.raises(GraphParseError):
        _query(_store(source), "operator=diamond")

    parse_calls.clear()
    store = _store(source, ignored_members=("index.html",))

    assert _query(store, "value=gte_20&operator=diamond") == ("application/json", "true")
    assert f"{CONTAINER}index.html" not in parse_calls
    assert len(parse_calls) == 3
