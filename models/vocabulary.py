"""RDF namespaces used by temporal containers and their observations."""

from __future__ import annotations

from rdflib import Namespace
from rdflib.namespace import RDF

LDP = Namespace("http://www.w3.org/ns/ldp#")
SOSA = Namespace("http://www.w3.org/ns/sosa/")
QUDT = Namespace("http://qudt.org/schema/qudt/")
QUDT_UNIT = Namespace("http://qudt.org/vocab/unit/")
TC = Namespace("https://solid.ti.rw.fau.de/public/ns/tc#")

TEMPORAL_CONTAINER = TC.TemporalContainer
OBSERVATION = SOSA.Observation
RESULT_TIME = SOSA.resultTime
HAS_RESULT = SOSA.hasResult
OBSERVED_PROPERTY = SOSA.observedProperty
MADE_BY_SENSOR = SOSA.madeBySensor
NUMERIC_VALUE = QUDT_UNIT.numericValue
HAS_UNIT = QUDT.hasUnit

__all__ = [
    "RDF",
    "LDP",
    "SOSA",
    "QUDT",
    "QUDT_UNIT",
    "TC",
    "TEMPORAL_CONTAINER",
    "OBSERVATION",
    "RESULT_TIME",
    "HAS_RESULT",
    "OBSERVED_PROPERTY",
    "MADE_BY_SENSOR",
    "NUMERIC_VALUE",
    "HAS_UNIT",
]
