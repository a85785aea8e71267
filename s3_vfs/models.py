from __future__ import annotations
"""Data models returned by bucket listings and operations."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class ObjectSummary:
    """A single object returned by a listing."""

    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    storage_class: Optional[str] = None


@dataclass
class ListingPage:
    """One page of immediate children under a prefix."""

    bucket: str
    prefix: str = ""
    objects: list[ObjectSummary] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)
    continuation_token: Optional[str] = None
    next_continuation_token: Optional[str] = None
    is_truncated: bool = False

    @property
    def keys(self) -> list[str]:
        return [obj.key for obj in self.objects]

    @property
    def entries(self) -> list[str]:
        """Common prefixes first, then object keys, as the store ordered them."""
        return list(self.prefixes) + self.keys


@dataclass
class ObjectVersion:
    """A historical revision (or delete marker) of an object."""

    key: str
    version_id: str
    is_latest: bool = False
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    is_delete_marker: bool = False


@dataclass
class VersionListingPage:
    """One page of version history using the two-marker pagination scheme."""

    bucket: str
    prefix: str = ""
    versions: list[ObjectVersion] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)
    key_marker: Optional[str] = None
    version_id_marker: Optional[str] = None
    next_key_marker: Optional[str] = None
    next_version_id_marker: Optional[str] = None
    is_truncated: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.versions and not self.prefixes


@dataclass
class DeleteError:
    key: str
    code: Optional[str] = None
    message: Optional[str] = None


@dataclass
class DeleteResult:
    """Outcome of a batch delete as reported by the store."""

    deleted: list[str] = field(default_factory=list)
    errors: list[DeleteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class PropertyChangeEvent:
    """Notification that a property of a host-visible object changed."""

    source: object
    property_name: str
    old_value: object
    new_value: object
