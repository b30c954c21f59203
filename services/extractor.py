"""Project SOSA observation graphs into observation records."""

from __future__ import annotations

from typing import List, Optional

from rdflib import URIRef
from rdflib.term import Node

from models.query import QuerySpec
from models.records import ObservationRecord
from models.vocabulary import (
    HAS_RESULT,
    HAS_UNIT,
    MADE_BY_SENSOR,
    NUMERIC_VALUE,
    OBSERVATION,
    OBSERVED_PROPERTY,
    RDF,
    RESULT_TIME,
)
from services.graph import GraphIndex


class ObservationExtractor:
    """Turns every ``sosa:Observation`` in a graph into an ObservationRecord.

    Observations are dropped when the query asks for an observed property or
    sensor the graph does not assert for them, and when they lack a result
    time or a numeric value. Only the first result time and the first result
    carrying a numeric value are used; further results are ignored.
    """

    def extract(self, graph: GraphIndex, query: QuerySpec) -> List[ObservationRecord]:
        records: List[ObservationRecord] = []
        for observation in graph.subjects(RDF.type, OBSERVATION):
            if not self._matches_structure(graph, observation, query):
                continue
            record = self._project(graph, observation)
            if record is not None:
                records.append(record)
        return records

    @staticmethod
    def _matches_structure(graph: GraphIndex, observation: Node, query: QuerySpec) -> bool:
        if query.observed_property is not None and not graph.has(
            observation, OBSERVED_PROPERTY, URIRef(query.observed_property)
        ):
            return False
        if query.made_by_sensor is not None and not graph.has(
            observation, MADE_BY_SENSOR, URIRef(query.made_by_sensor)
        ):
            return False
        return True

    @staticmethod
    def _project(graph: GraphIndex, observation: Node) -> Optional[ObservationRecord]:
        timestamp = next(iter(graph.objects(observation, RESULT_TIME)), None)
        if timestamp is None:
            return None

        for result in graph.objects(observation, HAS_RESULT):
            value = next(iter(graph.objects(result, NUMERIC_VALUE)), None)
            if value is None:
                continue
            unit = next(iter(graph.objects(result, HAS_UNIT)), None)
            return ObservationRecord(
                timestamp=str(timestamp),
                value=str(value),
                unit=str(unit) if unit is not None else None,
            )
        return None
