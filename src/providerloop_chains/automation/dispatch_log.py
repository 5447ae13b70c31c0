"""Persistent log of chain dispatches.

Records are stored one JSON object per line. The log is small and local, so
updates rewrite the whole file.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Optional

import pandas as pd

from providerloop_chains.models.dispatch import DispatchRecord, DispatchStatus, utc_now
from providerloop_chains.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


class DispatchLog:
    """JSON-lines store of DispatchRecords keyed by idempotency key.

    Example:
        >>> log = DispatchLog(Path("data/dispatch-log.jsonl"))
        >>> log.append(record)
        >>> log.get(record.idempotency_key).status
        <DispatchStatus.PENDING: 'pending'>
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = Lock()

    def _read(self) -> list[DispatchRecord]:
        if not self.path.exists():
            return []
        records: list[DispatchRecord] = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    records.append(DispatchRecord.from_dict(json.loads(line)))
                except (json.JSONDecodeError, TypeError, ValueError) as e:
                    raise ValidationError(
                        f"Corrupt dispatch log entry at {self.path}:{line_number}: {e}"
                    ) from e
        return records

    def _write(self, records: list[DispatchRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            for record in records:
                f.write(json.dumps(record.to_dict()) + "\n")
        tmp_path.replace(self.path)

    def all(self) -> list[DispatchRecord]:
        """All records, oldest first."""
        with self._lock:
            return self._read()

    def append(self, record: DispatchRecord) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record.to_dict()) + "\n")

    def update(self, record: DispatchRecord) -> None:
        """Replace the stored record with the same idempotency key, or append it."""
        with self._lock:
            records = self._read()
            for index, existing in enumerate(records):
                if existing.idempotency_key == record.idempotency_key:
                    records[index] = record
                    break
            else:
                records.append(record)
            self._write(records)

    def get(self, idempotency_key: str) -> Optional[DispatchRecord]:
        for record in self.all():
            if record.idempotency_key == idempotency_key:
                return record
        return None

    def find_by_chain_run_id(self, chain_run_id: str) -> Optional[DispatchRecord]:
        """Most recent record with the given chain run ID."""
        for record in reversed(self.all()):
            if record.chain_run_id and record.chain_run_id == chain_run_id:
                return record
        return None

    def apply_agent_response(
        self,
        chain_run_id: str,
        content: str,
        agent_name: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> Optional[DispatchRecord]:
        """Attach an agent's response to the matching dispatch record.

        Returns:
            The updated record, or None if no record has that chain run ID
        """
        with self._lock:
            records = self._read()
            for record in reversed(records):
                if record.chain_run_id == chain_run_id:
                    record.agent_response = content
                    record.agent_name = agent_name
                    record.agent_received_at = utc_now()
                    record.updated_at = record.agent_received_at
                    self._write(records)
                    logger.info(
                        f"Agent response from '{agent_name}' recorded for chain run {chain_run_id} "
                        f"({len(payload or {})} payload fields)"
                    )
                    return record
        logger.warning(f"No dispatch record found for chain run {chain_run_id}")
        return None

    def clear(self) -> int:
        """Delete every record. Returns the number removed."""
        with self._lock:
            count = len(self._read())
            if self.path.exists():
                self.path.unlink()
        logger.info(f"Cleared {count} dispatch record(s)")
        return count


@dataclass
class DispatchSummary:
    """Aggregate counts over dispatch records."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    pending: int = 0
    completed: int = 0
    last_24h: int = 0
    per_chain: dict[str, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Fraction of finished dispatches that succeeded."""
        finished = self.succeeded + self.failed
        return self.succeeded / finished if finished else 0.0


def records_to_frame(records: list[DispatchRecord]) -> pd.DataFrame:
    """Flatten records into a DataFrame with one row per dispatch."""
    rows = [
        {
            "idempotency_key": r.idempotency_key,
            "chain": r.payload.chain_to_run,
            "source_id": r.payload.source_id or "",
            "status": r.status.value,
            "chain_run_id": r.chain_run_id or "",
            "completed": r.is_completed,
            "created_at": r.created_at,
            "error_message": r.error_message or "",
        }
        for r in records
    ]
    columns = [
        "idempotency_key", "chain", "source_id", "status",
        "chain_run_id", "completed", "created_at", "error_message",
    ]
    return pd.DataFrame(rows, columns=columns)


def summarize(records: list[DispatchRecord], now: Optional[datetime] = None) -> DispatchSummary:
    """Summarize dispatch outcomes.

    Args:
        records: Records to summarize
        now: Reference time for the 24-hour window (defaults to current UTC)
    """
    if not records:
        return DispatchSummary()

    df = records_to_frame(records)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    created = pd.to_datetime(df["created_at"], utc=True, errors="coerce")
    status_counts = df["status"].value_counts()

    return DispatchSummary(
        total=len(df),
        succeeded=int(status_counts.get(DispatchStatus.SUCCEEDED.value, 0)),
        failed=int(status_counts.get(DispatchStatus.FAILED.value, 0)),
        pending=int(status_counts.get(DispatchStatus.PENDING.value, 0)),
        completed=int(df["completed"].sum()),
        last_24h=int((created >= pd.Timestamp(now - timedelta(hours=24))).sum()),
        per_chain={str(k): int(v) for k, v in df["chain"].value_counts().items()},
    )
