"""Conflict ledger — pending merge conflicts and manual resolution."""

from dataclasses import replace

import structlog

from errors import UnknownConflict
from records.models import Choice, Conflict, Record, utcnow

logger = structlog.get_logger().bind(source="ledger")


class ConflictLedger:
    """Holds unresolved conflicts so a human can override remote-wins.

    Not thread-safe on its own; the sync scheduler's state lock guards it.
    """

    def __init__(self, conflicts: list[Conflict] | None = None, clock=utcnow):
        self._pending: list[Conflict] = list(conflicts or [])
        self._clock = clock

    def __len__(self) -> int:
        return len(self._pending)

    def record(self, conflicts: list[Conflict]) -> None:
        """Add one sync cycle's conflicts.

        A still-pending conflict for a record id that reappears in this batch
        is superseded; the latest detection wins.
        """
        if not conflicts:
            return
        incoming_ids = {c.record_id for c in conflicts}
        superseded = sum(1 for c in self._pending if c.record_id in incoming_ids)
        self._pending = [c for c in self._pending if c.record_id not in incoming_ids]
        self._pending.extend(conflicts)
        logger.info("ledger.recorded", added=len(conflicts), superseded=superseded, pending=len(self._pending))

    def pending(self) -> list[Conflict]:
        """Read-only snapshot of the pending conflicts."""
        return list(self._pending)

    def get(self, index: int) -> Conflict:
        if not 0 <= index < len(self._pending):
            raise UnknownConflict(f"No pending conflict at index {index}")
        return self._pending[index]

    def resolve(
        self, index: int, choice: Choice, records: list[Record]
    ) -> tuple[list[Record], Record]:
        """Apply the chosen side of conflict ``index`` to ``records``.

        The resolved record's version is set one above the higher of both
        sides, so the next merge treats it as a newer local edit rather than
        a stale value. The conflict leaves the pending set.

        Returns:
            (updated record list, resolved record)

        Raises:
            UnknownConflict: no conflict at ``index``.
        """
        conflict = self.get(index)
        chosen = conflict.side(Choice(choice))
        version = max(conflict.local.version, conflict.remote.version) + 1

        updated: list[Record] = []
        resolved = None
        for rec in records:
            if rec.id == conflict.record_id:
                version = max(version, rec.version + 1)
                resolved = replace(
                    rec,
                    text=chosen.text,
                    category=chosen.category,
                    version=version,
                    last_modified=self._clock(),
                )
                updated.append(resolved)
            else:
                updated.append(rec)

        if resolved is None:
            # Record vanished from the local set; restore it from the conflict
            resolved = replace(
                conflict.local,
                text=chosen.text,
                category=chosen.category,
                version=version,
                last_modified=self._clock(),
                remote_id=conflict.local.remote_id or conflict.remote.remote_key,
            )
            updated.append(resolved)

        del self._pending[index]
        logger.info(
            "ledger.resolved",
            record_id=resolved.id,
            choice=Choice(choice).value,
            version=resolved.version,
            pending=len(self._pending),
        )
        return updated, resolved

    def clear(self) -> None:
        """Drop all pending conflicts (the record set they refer to is gone)."""
        self._pending = []
