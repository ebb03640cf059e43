"""Source descriptors and provenance-qualified identities for station documents"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

TOP_LEVEL = "top-level"
NESTED = "nested"


@dataclass(frozen=True)
class SourceDescriptor:
    """One logical source: a flat collection or a nested collection group."""
    collection: str
    grouped: bool = False

    @property
    def tag(self) -> str:
        return NESTED if self.grouped else TOP_LEVEL

    @property
    def label(self) -> str:
        return f"{self.collection} ({'collection-group' if self.grouped else 'top-level'})"


@dataclass(frozen=True)
class FlatId:
    collection: str
    doc_id: str

    @property
    def key(self) -> str:
        # flat records keep their native id
        return self.doc_id


@dataclass(frozen=True)
class NestedId:
    owner_id: str
    subcollection: str
    doc_id: str

    @property
    def key(self) -> str:
        return f"{self.owner_id}/{self.subcollection}/{self.doc_id}"


StationIdentity = Union[FlatId, NestedId]


def parse_identity(key: str, flat_collection: str) -> StationIdentity:
    """
    Turn a station id string back into an identity.

    `<owner>/<subcollection>/<docId>` is a nested id; anything without a
    slash is a native id in `flat_collection`.
    """
    parts = key.split("/")
    if len(parts) == 3 and all(parts):
        return NestedId(owner_id=parts[0], subcollection=parts[1], doc_id=parts[2])
    if "/" in key:
        raise ValueError(f"Malformed station id: {key!r}")
    return FlatId(collection=flat_collection, doc_id=key)


@dataclass
class RawRecord:
    """A fetched document tagged with where it came from."""
    identity: StationIdentity
    source: SourceDescriptor
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.identity.key


def build_sources(flat_collections: List[str], nested_collections: List[str]) -> List[SourceDescriptor]:
    """Flat collections first, then collection groups"""
    sources = [SourceDescriptor(name) for name in flat_collections]
    sources += [SourceDescriptor(name, grouped=True) for name in nested_collections]
    return sources
