from __future__ import annotations

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import BinaryIO, Callable, Dict, List, Mapping, Optional, Set

from rdflib import Graph, URIRef
from rdflib.term import Node

from models.vocabulary import LDP, RDF
from settings import get_settings

Conditions = Mapping[str, str]

METADATA_SUFFIX = ".meta"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_CONTENT_TYPES = {
    ".ttl": "text/turtle",
    ".nt": "application/n-triples",
    ".nq": "application/n-quads",
    ".trig": "application/trig",
    ".n3": "text/n3",
    ".jsonld": "application/ld+json",
    ".rdf": "application/rdf+xml",
    ".html": "text/html",
    ".csv": "text/csv",
    ".json": "application/json",
    ".txt": "text/plain",
}


class ResourceNotFound(KeyError):
    """Raised when a store holds no resource for an identifier."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Resource {identifier!r} not found.")
        self.identifier = identifier


@dataclass(frozen=True)
class RepresentationPreferences:
    """Weighted media ranges a client is willing to accept."""

    type: Mapping[str, float] = field(default_factory=dict)

    @classmethod
    def from_accept(cls, header: Optional[str]) -> "RepresentationPreferences":
        weights: Dict[str, float] = {}
        for part in (header or "").split(","):
            pieces = [piece.strip() for piece in part.split(";")]
            media_range = pieces[0].lower()
            if not media_range:
                continue
            weight = 1.0
            for parameter in pieces[1:]:
                name, _, raw = parameter.partition("=")
                if name.strip().lower() != "q":
                    continue
                try:
                    weight = float(raw)
                except ValueError:
                    weight = 0.0
            weights[media_range] = weight
        return cls(type=weights)


class RepresentationMetadata:
    """Content type plus the metadata triples describing a resource."""

    def __init__(
        self,
        identifier: str,
        content_type: Optional[str] = None,
        graph: Optional[Graph] = None,
    ) -> None:
        self.identifier = identifier
        self.content_type = content_type
        self.graph = graph if graph is not None else Graph()

    @property
    def subject(self) -> URIRef:
        return URIRef(self.identifier)

    def has(self, predicate: Node, obj: Node) -> bool:
        return (self.subject, predicate, obj) in self.graph

    def get_all(self, predicate: Node) -> List[Node]:
        return list(self.graph.objects(self.subject, predicate))

    def add(self, predicate: Node, obj: Node) -> None:
        self.graph.add((self.subject, predicate, obj))


class Representation:
    """Metadata plus a lazily opened body stream.

    The body is opened on first access to ``data``. Whoever obtains a
    representation must call ``release`` (or ``read``) once done with it.
    """

    def __init__(
        self,
        metadata: RepresentationMetadata,
        opener: Callable[[], BinaryIO],
    ) -> None:
        self.metadata = metadata
        self._opener = opener
        self._stream: Optional[BinaryIO] = None
        self.released = False

    @classmethod
    def from_bytes(
        cls, identifier: str, payload: bytes, content_type: str
    ) -> "Representation":
        metadata = RepresentationMetadata(identifier, content_type)
        return cls(metadata, lambda: io.BytesIO(payload))

    @classmethod
    def from_text(cls, identifier: str, text: str, content_type: str) -> "Representation":
        return cls.from_bytes(identifier, text.encode("utf-8"), content_type)

    @property
    def content_type(self) -> Optional[str]:
        return self.metadata.content_type

    @property
    def data(self) -> BinaryIO:
        if self.released:
            raise ValueError(
                f"Representation of {self.metadata.identifier!r} was already released."
            )
        if self._stream is None:
            self._stream = self._opener()
        return self._stream

    def read(self) -> bytes:
        try:
            return self.data.read()
        finally:
            self.release()

    def release(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        self.released = True


class ResourceStore(ABC):

    @abstractmethod
    async def get_representation(
        self,
        identifier: str,
        preferences: RepresentationPreferences,
        conditions: Optional[Conditions] = None,
    ) -> Representation:
        """Return the representation of ``identifier`` or raise ResourceNotFound."""


class PassthroughStore(ResourceStore):
    """Store that forwards every call to a wrapped source store."""

    def __init__(self, source: ResourceStore) -> None:
        self.source = source

    async def get_representation(
        self,
        identifier: str,
        preferences: RepresentationPreferences,
        conditions: Optional[Conditions] = None,
    ) -> Representation:
        return await self.source.get_representation(identifier, preferences, conditions)


@dataclass
class _StoredResource:
    data: bytes
    content_type: str


def is_container(identifier: str) -> bool:
    return identifier.endswith("/")


def guess_content_type(name: str) -> str:
    return _CONTENT_TYPES.get(Path(name).suffix.lower(), DEFAULT_CONTENT_TYPE)


class FileResourceStore(ResourceStore):
    """Hierarchical resource store held in memory and optionally mirrored on disk.

    Identifiers ending in ``/`` are containers. Their ``ldp:contains`` triples
    are derived from the stored children. Extra metadata lives in Turtle
    sidecars named ``<resource>.meta`` and ``<container>/.meta``.
    """

    def __init__(self, base_url: str, root_path: Optional[Path] = None) -> None:
        self.base_url = base_url if is_container(base_url) else f"{base_url}/"
        self.root_path = root_path
        self._resources: Dict[str, _StoredResource] = {}
        self._metadata: Dict[str, str] = {}
        self._containers: Set[str] = {self.base_url}
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def put_resource(
        self, identifier: str, data: bytes, content_type: Optional[str] = None
    ) -> None:
        if is_container(identifier):
            raise ValueError(f"Container {identifier!r} cannot hold a body.")
        relative = self._relative(identifier)
        resolved_type = content_type or guess_content_type(relative)
        with self._lock:
            self._resources[identifier] = _StoredResource(data, resolved_type)
            self._register_ancestors(identifier)
            if self.root_path:
                path = self.root_path / relative
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)

    def put_container(self, identifier: str) -> None:
        if not is_container(identifier):
            raise ValueError(f"Container identifiers must end with '/': {identifier!r}")
        relative = self._relative(identifier)
        with self._lock:
            self._containers.add(identifier)
            self._register_ancestors(identifier)
            if self.root_path:
                (self.root_path / relative).mkdir(parents=True, exist_ok=True)

    def put_metadata(self, identifier: str, turtle: str) -> None:
        """Store Turtle metadata; ``<>`` refers to the resource itself."""
        path = self._metadata_path(identifier)
        with self._lock:
            self._metadata[identifier] = turtle
            if path is not None:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(turtle, encoding="utf-8")

    def list_identifiers(self) -> List[str]:
        with self._lock:
            identifiers = set(self._resources) | set(self._containers)

        if self.root_path:
            for path in self.root_path.rglob("*"):
                identifier = self._identifier_for(path)
                if identifier is not None:
                    identifiers.add(identifier)

        return sorted(identifiers)

    async def get_representation(
        self,
        identifier: str,
        preferences: RepresentationPreferences,
        conditions: Optional[Conditions] = None,
    ) -> Representation:
        if is_container(identifier):
            return self._container_representation(identifier)
        return self._document_representation(identifier)

    def _document_representation(self, identifier: str) -> Representation:
        relative = self._relative(identifier)
        with self._lock:
            stored = self._resources.get(identifier)

        if stored is not None:
            metadata = self._load_metadata(identifier, stored.content_type)
            payload = stored.data
            return Representation(metadata, lambda: io.BytesIO(payload))

        if self.root_path and relative:
            path = self.root_path / relative
            if path.is_file() and not path.name.endswith(METADATA_SUFFIX):
                metadata = self._load_metadata(identifier, guess_content_type(path.name))
                return Representation(metadata, lambda: path.open("rb"))

        raise ResourceNotFound(identifier)

    def _container_representation(self, identifier: str) -> Representation:
        relative = self._relative(identifier)
        with self._lock:
            known = identifier in self._containers
        on_disk = bool(self.root_path and (self.root_path / relative).is_dir())
        if not known and not on_disk:
            raise ResourceNotFound(identifier)

        metadata = self._load_metadata(identifier, "text/turtle")
        metadata.add(RDF.type, LDP.Container)
        metadata.add(RDF.type, LDP.BasicContainer)
        for child in self._children(identifier):
            metadata.add(LDP.contains, URIRef(child))

        body = metadata.graph.serialize(format="turtle")
        return Representation(metadata, lambda: io.BytesIO(body.encode("utf-8")))

    def _children(self, container: str) -> List[str]:
        with self._lock:
            candidates = set(self._resources) | set(self._containers)

        if self.root_path:
            directory = self.root_path / self._relative(container)
            if directory.is_dir():
                for path in directory.iterdir():
                    identifier = self._identifier_for(path)
                    if identifier is not None:
                        candidates.add(identifier)

        return sorted(
            candidate
            for candidate in candidates
            if candidate != container and _parent_of(candidate) == container
        )

    def _load_metadata(self, identifier: str, content_type: str) -> RepresentationMetadata:
        with self._lock:
            turtle = self._metadata.get(identifier)

        if turtle is None:
            path = self._metadata_path(identifier)
            if path is not None and path.is_file():
                turtle = path.read_text(encoding="utf-8")

        metadata = RepresentationMetadata(identifier, content_type)
        if turtle:
            metadata.graph.parse(data=turtle, format="turtle", publicID=identifier)
        return metadata

    def _metadata_path(self, identifier: str) -> Optional[Path]:
        if not self.root_path:
            return None
        relative = self._relative(identifier)
        if is_container(identifier):
            return self.root_path / relative / METADATA_SUFFIX
        return self.root_path / f"{relative}{METADATA_SUFFIX}"

    def _identifier_for(self, path: Path) -> Optional[str]:
        assert self.root_path is not None
        if path.name.endswith(METADATA_SUFFIX):
            return None
        relative = path.relative_to(self.root_path).as_posix()
        if path.is_dir():
            return f"{self.base_url}{relative}/"
        return f"{self.base_url}{relative}"

    def _register_ancestors(self, identifier: str) -> None:
        parent = _parent_of(identifier)
        while parent is not None and parent.startswith(self.base_url):
            self._containers.add(parent)
            if parent == self.base_url:
                break
            parent = _parent_of(parent)

    def _relative(self, identifier: str) -> str:
        if not identifier.startswith(self.base_url):
            raise ResourceNotFound(identifier)
        return identifier[len(self.base_url):]


def _parent_of(identifier: str) -> Optional[str]:
    trimmed = identifier[:-1] if is_container(identifier) else identifier
    head, separator, _ = trimmed.rpartition("/")
    if not separator:
        return None
    return f"{head}/"


@lru_cache
def build_default_store(
    base_url: Optional[str] = None,
    root_path: Optional[str] = None,
) -> FileResourceStore:
    settings = get_settings()
    url = settings.base_url if base_url is None else base_url
    root = settings.store_root_path if root_path is None else root_path
    path = Path(root) if root else None
    return FileResourceStore(base_url=url, root_path=path)
