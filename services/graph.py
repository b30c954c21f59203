"""Parse RDF payloads into a pattern-queryable triple index."""

from __future__ import annotations

from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional, Protocol

import rdflib
from rdflib import Dataset, Graph
from rdflib.term import Node

_TRIPLE_FORMATS = {
    "text/turtle": "turtle",
    "application/n-triples": "nt",
    "text/n3": "n3",
    "application/ld+json": "json-ld",
    "application/rdf+xml": "xml",
}

_QUAD_FORMATS = {
    "application/trig": "trig",
    "application/n-quads": "nquads",
}


class GraphParseError(ValueError):
    """Raised when a payload is not parseable RDF."""

    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(f"Could not parse {identifier!r} as RDF: {reason}")
        self.identifier = identifier
        self.reason = reason


class GraphIndex(Protocol):
    """Subject/predicate/object pattern queries over parsed triples."""

    def subjects(self, predicate: Node, obj: Node) -> Iterator[Node]:
        ...

    def objects(self, subject: Node, predicate: Node) -> Iterator[Node]:
        ...

    def has(self, subject: Node, predicate: Node, obj: Node) -> bool:
        ...


class RdflibGraphIndex:
    """GraphIndex backed by an rdflib Graph or Dataset.

    Quads from every named graph are visible, so subjects are de-duplicated.
    """

    def __init__(self, graph: Graph) -> None:
        self.graph = graph

    def subjects(self, predicate: Node, obj: Node) -> Iterator[Node]:
        seen = set()
        for subject, _, _ in self.graph.triples((None, predicate, obj)):
            if subject not in seen:
                seen.add(subject)
                yield subject

    def objects(self, subject: Node, predicate: Node) -> Iterator[Node]:
        for _, _, obj in self.graph.triples((subject, predicate, None)):
            yield obj

    def has(self, subject: Node, predicate: Node, obj: Node) -> bool:
        for _ in self.graph.triples((subject, predicate, obj)):
            return True
        return False

    def __len__(self) -> int:
        return len(self.graph)


def rdf_format_for(content_type: Optional[str]) -> Optional[str]:
    media_type = (content_type or "").split(";")[0].strip().lower()
    return _TRIPLE_FORMATS.get(media_type) or _QUAD_FORMATS.get(media_type)


@contextmanager
def _lexical_literals() -> Iterator[None]:
    """Keep typed literals in the lexical form the payload uses."""
    previous = rdflib.NORMALIZE_LITERALS
    rdflib.NORMALIZE_LITERALS = False
    try:
        yield
    finally:
        rdflib.NORMALIZE_LITERALS = previous


def parse_graph(
    stream: BinaryIO, content_type: Optional[str], identifier: str
) -> RdflibGraphIndex:
    """Parse ``stream`` according to ``content_type``, resolving against ``identifier``."""
    rdf_format = rdf_format_for(content_type)
    if rdf_format is None:
        raise GraphParseError(identifier, f"unsupported content type {content_type!r}")

    graph: Graph
    if rdf_format in _QUAD_FORMATS.values():
        graph = Dataset(default_union=True)
    else:
        graph = Graph()

    try:
        with _lexical_literals():
            graph.parse(source=stream, format=rdf_format, publicID=identifier)
    except Exception as exc:  # rdflib parsers raise many unrelated types
        raise GraphParseError(identifier, str(exc) or type(exc).__name__) from exc

    return RdflibGraphIndex(graph)
