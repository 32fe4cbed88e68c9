"""Wire and storage schema for records.

Everything entering the engine from disk or the network passes through here,
so the merge code only ever sees well-formed ``Record`` instances.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .models import Conflict, Origin, Record, new_record_id, utcnow


class RecordSchema(BaseModel):
    """Serialized record. Accepts the legacy ``{text, category}`` shape."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    remote_id: Optional[str] = Field(default=None, alias="remoteId")
    client_id: Optional[str] = Field(default=None, alias="clientId")
    text: str
    category: str
    version: int = Field(default=1, ge=1)
    last_modified: Optional[datetime] = Field(default=None, alias="lastModified")
    origin: Origin = Origin.LOCAL

    @field_validator("id", "remote_id", "client_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        # Servers commonly hand out integer ids
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def to_record(self, origin: Origin | None = None) -> Record:
        modified = self.last_modified or utcnow()
        if modified.tzinfo is None:
            modified = modified.replace(tzinfo=timezone.utc)
        return Record(
            id=self.id or new_record_id(),
            text=self.text,
            category=self.category,
            version=self.version,
            last_modified=modified,
            origin=origin or self.origin,
            remote_id=self.remote_id,
        )

    @classmethod
    def from_record(cls, record: Record) -> "RecordSchema":
        return cls(
            id=record.id,
            remote_id=record.remote_id,
            text=record.text,
            category=record.category,
            version=record.version,
            last_modified=record.last_modified,
            origin=record.origin,
        )


class ConflictSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    local: RecordSchema
    remote: RecordSchema
    detected_at: datetime = Field(alias="detectedAt")


_record_list = TypeAdapter(list[RecordSchema])
_conflict_list = TypeAdapter(list[ConflictSchema])


def parse_records(data) -> list[Record]:
    """Validate a decoded JSON array into records. Raises ValidationError."""
    return [item.to_record() for item in _record_list.validate_python(data)]


def dump_record(record: Record) -> dict:
    return RecordSchema.from_record(record).model_dump(
        mode="json", by_alias=True, exclude={"client_id"}
    )


def dump_records(records: list[Record]) -> list[dict]:
    return [dump_record(r) for r in records]


def parse_conflicts(data) -> list[Conflict]:
    return [
        Conflict(
            local=item.local.to_record(),
            remote=item.remote.to_record(),
            detected_at=item.detected_at,
        )
        for item in _conflict_list.validate_python(data)
    ]


def dump_conflicts(conflicts: list[Conflict]) -> list[dict]:
    return [
        {
            "local": dump_record(c.local),
            "remote": dump_record(c.remote),
            "detectedAt": c.detected_at.isoformat(),
        }
        for c in conflicts
    ]


__all__ = [
    "RecordSchema",
    "ConflictSchema",
    "ValidationError",
    "parse_records",
    "dump_record",
    "dump_records",
    "parse_conflicts",
    "dump_conflicts",
]
