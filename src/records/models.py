"""Data models for synchronized quote records."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


class Origin(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class Choice(str, Enum):
    """Side picked when a conflict is resolved by hand."""

    LOCAL = "local"
    REMOTE = "remote"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    return uuid.uuid4().hex[:16]


@dataclass(frozen=True)
class Record:
    """One versioned quote.

    Instances are immutable; every accepted mutation produces a new Record via
    ``dataclasses.replace`` so text, category, version and last_modified always
    move together.
    """

    id: str
    text: str
    category: str
    version: int = 1
    last_modified: datetime = field(default_factory=utcnow)
    origin: Origin = Origin.LOCAL
    remote_id: str | None = None

    @property
    def payload(self) -> tuple[str, str, int]:
        """The (text, category, version) triple compared during merges."""
        return (self.text, self.category, self.version)

    @property
    def content_key(self) -> tuple[str, str]:
        return (self.text, self.category)

    @property
    def remote_key(self) -> str:
        """Identifier this record is known by on the remote side."""
        return self.remote_id or self.id

    def adopt(self, other: "Record") -> "Record":
        """Take ``other``'s payload, version and timestamp, keep our identity."""
        return replace(
            self,
            text=other.text,
            category=other.category,
            version=other.version,
            last_modified=other.last_modified,
        )

    @classmethod
    def create(cls, text: str, category: str) -> "Record":
        return cls(id=new_record_id(), text=text, category=category)


@dataclass(frozen=True)
class Conflict:
    """Divergence between the local and remote versions of one record."""

    local: Record
    remote: Record
    detected_at: datetime = field(default_factory=utcnow)

    @property
    def record_id(self) -> str:
        return self.local.id

    def side(self, choice: Choice) -> Record:
        return self.local if choice == Choice.LOCAL else self.remote
