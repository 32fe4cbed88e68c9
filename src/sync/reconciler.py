"""Merge of the local record set against a freshly fetched remote set."""

from dataclasses import replace
from datetime import datetime
from typing import NamedTuple

import structlog

from records.models import Conflict, Record, new_record_id, utcnow

logger = structlog.get_logger().bind(source="reconciler")


class MergeResult(NamedTuple):
    merged: list[Record]
    conflicts: list[Conflict]


class Reconciler:
    """Computes the merged record set and the conflicts between two sides.

    The remote set is the baseline. Each local record is matched against it
    by ``remote_id``, then ``id``, then (for never-pushed records) by exact
    ``(text, category)``:

    - unmatched: a local novelty, appended unchanged after the baseline
    - identical payload: kept as-is
    - local version ahead of remote: an unpushed local edit, kept
    - otherwise: a conflict; remote wins, both sides are recorded

    ``merge`` is pure: nothing is persisted or mutated.
    """

    def __init__(self, clock=utcnow):
        self._clock = clock

    def merge(self, local: list[Record], remote: list[Record]) -> MergeResult:
        detected_at = self._clock()

        baseline: list[Record] = []
        index: dict[str, int] = {}
        for rec in remote:
            if rec.remote_key in index or rec.id in index:
                logger.warning("merge.duplicate_remote_id", record_id=rec.remote_key)
                continue
            pos = len(baseline)
            baseline.append(rec)
            index[rec.id] = pos
            index.setdefault(rec.remote_key, pos)

        matched: set[int] = set()
        novelties: list[Record] = []
        conflicts: list[Conflict] = []

        for loc in local:
            pos = self._lookup(loc, index)
            if pos is None and loc.remote_id is None:
                pos = self._content_match(loc, baseline, matched)
                if pos is not None:
                    rem = baseline[pos]
                    matched.add(pos)
                    if loc.version > rem.version:
                        baseline[pos] = replace(loc, remote_id=rem.remote_key)
                    else:
                        baseline[pos] = replace(
                            loc,
                            version=rem.version,
                            last_modified=rem.last_modified,
                            remote_id=rem.remote_key,
                        )
                    logger.debug("merge.content_match", record_id=loc.id, remote_id=rem.remote_key)
                    continue

            if pos is None or pos in matched:
                novelties.append(loc)
                continue

            rem = baseline[pos]
            matched.add(pos)
            remote_id = rem.remote_id or loc.remote_id

            if loc.payload == rem.payload:
                baseline[pos] = loc if loc.remote_id == remote_id else replace(loc, remote_id=remote_id)
            elif loc.version > rem.version:
                baseline[pos] = replace(loc, remote_id=remote_id)
            else:
                conflicts.append(Conflict(local=loc, remote=rem, detected_at=detected_at))
                baseline[pos] = replace(loc.adopt(rem), remote_id=remote_id)

        merged = baseline
        emitted = {r.id for r in merged}
        for loc in novelties:
            if loc.id in emitted:
                fresh = new_record_id()
                logger.warning("merge.novelty_rekeyed", record_id=loc.id, new_id=fresh)
                loc = replace(loc, id=fresh)
            emitted.add(loc.id)
            merged.append(loc)

        if conflicts:
            logger.info("merge.conflicts", count=len(conflicts))
        return MergeResult(merged, conflicts)

    @staticmethod
    def outgoing(merged: list[Record], remote: list[Record]) -> list[Record]:
        """Records the remote side has not seen yet.

        Never-pushed records plus those whose version is ahead of their
        remote counterpart. A pushed record absent from ``remote`` (outside a
        truncated fetch) is left alone.
        """
        remote_versions: dict[str, int] = {}
        for rec in remote:
            remote_versions.setdefault(rec.remote_key, rec.version)
        out = []
        for rec in merged:
            if rec.remote_id is None:
                out.append(rec)
            elif rec.remote_id in remote_versions and rec.version > remote_versions[rec.remote_id]:
                out.append(rec)
        return out

    @staticmethod
    def _lookup(loc: Record, index: dict[str, int]) -> int | None:
        if loc.remote_id is not None and loc.remote_id in index:
            return index[loc.remote_id]
        return index.get(loc.id)

    @staticmethod
    def _content_match(loc: Record, baseline: list[Record], matched: set[int]) -> int | None:
        for pos, rem in enumerate(baseline):
            if pos not in matched and rem.content_key == loc.content_key:
                return pos
        return None


def merge(local: list[Record], remote: list[Record], now: datetime | None = None) -> MergeResult:
    """Module-level convenience around ``Reconciler().merge``."""
    clock = (lambda: now) if now is not None else utcnow
    return Reconciler(clock=clock).merge(local, remote)
