"""Builders for SOSA observation documents and temporal containers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from storage.resource_store import (
    Conditions,
    FileResourceStore,
    Representation,
    RepresentationPreferences,
)

BASE_URL = "http://localhost:8000/"
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

TEMPERATURE = "https://example.org/properties/temperature"
HUMIDITY = "https://example.org/properties/humidity"
SENSOR_A = "https://example.org/sensors/a"
SENSOR_B = "https://example.org/sensors/b"
CELSIUS = "http://qudt.org/vocab/unit/DEG_C"
PERCENT = "http://qudt.org/vocab/unit/PERCENT"

TEMPORAL_CONTAINER_META = (
    "@prefix tc: <https://solid.ti.rw.fau.de/public/ns/tc#> .\n"
    "<> a tc:TemporalContainer .\n"
)

_PREFIXES = """@prefix sosa: <http://www.w3.org/ns/sosa/> .
@prefix qudt: <http://qudt.org/schema/qudt/> .
@prefix unit: <http://qudt.org/vocab/unit/> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .
"""


def hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


def observation_turtle(
    name: str,
    timestamp: datetime,
    value: str,
    observed_property: str = TEMPERATURE,
    sensor: str = SENSOR_A,
    unit: Optional[str] = CELSIUS,
) -> str:
    unit_line = f" ;\n    qudt:hasUnit <{unit}>" if unit else ""
    return (
        f"{_PREFIXES}\n"
        f"<#{name}> a sosa:Observation ;\n"
        f"    sosa:observedProperty <{observed_property}> ;\n"
        f"    sosa:madeBySensor <{sensor}> ;\n"
        f'    sosa:resultTime "{timestamp.isoformat()}"^^xsd:dateTime ;\n'
        f"    sosa:hasResult <#{name}-result> .\n\n"
        f'<#{name}-result> unit:numericValue "{value}"^^xsd:decimal{unit_line} .\n'
    )


def build_temporal_container(
    store: FileResourceStore,
    container: str,
    readings: Sequence[Tuple[datetime, str]],
    **observation_kwargs: str,
) -> List[str]:
    """Store one observation document per reading and mark the container temporal."""
    store.put_container(container)
    store.put_metadata(container, TEMPORAL_CONTAINER_META)
    members = []
    for index, (timestamp, value) in enumerate(readings):
        identifier = f"{container}obs-{index}.ttl"
        body = observation_turtle(f"obs{index}", timestamp, value, **observation_kwargs)
        store.put_resource(identifier, body.encode("utf-8"))
        members.append(identifier)
    return members


class RecordingStore(FileResourceStore):
    """File store that remembers every representation it hands out."""

    def __init__(self, base_url: str = BASE_URL, root_path=None) -> None:
        super().__init__(base_url=base_url, root_path=root_path)
        self.handed_out: List[Representation] = []
        self.requested: List[str] = []

    async def get_representation(
        self,
        identifier: str,
        preferences: RepresentationPreferences,
        conditions: Optional[Conditions] = None,
    ) -> Representation:
        self.requested.append(identifier)
        representation = await super().get_representation(identifier, preferences, conditions)
        self.handed_out.append(representation)
        return representation
