"""JSON-file backed record collections."""

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from food_log.domain.errors import StorageFaultError

logger = logging.getLogger(__name__)

Record = dict[str, object]


@dataclass
class JsonCollection:
    """In-memory working copy of one JSON array file.

    The file is a write-through replica: every mutation is applied to
    ``records`` and then the whole array is rewritten. Mutations must run
    inside ``transaction()``, which holds the collection lock, and restores
    both the records and the file when the block raises.
    """

    path: Path
    records: list[Record] = field(default_factory=list)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _rewritten: bool = field(default=False, repr=False)
    _pending_write: "asyncio.Future[None] | None" = field(default=None, repr=False)

    @classmethod
    def load(cls, path: Path) -> "JsonCollection":
        """Load a collection file, treating a missing file as empty."""
        if not path.exists():
            logger.info("Collection file missing, starting empty", extra={"path": str(path)})
            return cls(path=path)
        try:
            text = path.read_text(encoding="utf-8")
            raw = json.loads(text) if text.strip() else []
        except (OSError, ValueError) as exc:
            logger.exception("Failed to load collection", extra={"path": str(path)})
            raise StorageFaultError(f"Cannot read {path}: {exc}") from exc
        if raw is None:
            raw = []
        if not isinstance(raw, list) or not all(isinstance(row, dict) for row in raw):
            raise StorageFaultError(f"{path} must contain a JSON array of objects")
        return cls(path=path, records=[dict(row) for row in raw])

    def all(self) -> list[Record]:
        """Return a shallow copy of the current records."""
        return list(self.records)

    def get(self, key: str, value: str, *, ignore_case: bool = False) -> Record | None:
        """Return the first record whose ``key`` equals ``value``."""
        index = self._index_of(key, value, ignore_case=ignore_case)
        return None if index is None else self.records[index]

    def upsert(self, key: str, record: Record, *, ignore_case: bool = False) -> None:
        """Replace the record matching ``record[key]`` or append it."""
        index = self._index_of(key, str(record.get(key, "")), ignore_case=ignore_case)
        if index is None:
            self.records.append(record)
        else:
            self.records[index] = record

    def append(self, record: Record) -> None:
        """Append a record without a uniqueness check."""
        self.records.append(record)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["JsonCollection"]:
        """Serialize a read-modify-write sequence on this collection."""
        async with self._lock:
            snapshot = list(self.records)
            self._rewritten = False
            try:
                yield self
            except BaseException:
                self.records = snapshot
                await self._settle_write()
                if self._rewritten:
                    self._restore(snapshot)
                raise
            finally:
                self._rewritten = False
                self._pending_write = None

    async def persist(self) -> None:
        """Rewrite the backing file with the current records."""
        if not self._lock.locked():
            raise RuntimeError("persist() must run inside transaction()")
        payload = list(self.records)
        # The worker thread keeps writing even if this coroutine is cancelled.
        self._pending_write = asyncio.ensure_future(asyncio.to_thread(self._write, payload))
        self._rewritten = True
        try:
            await asyncio.shield(self._pending_write)
        except OSError as exc:
            logger.exception("Failed to write collection", extra={"path": str(self.path)})
            raise StorageFaultError(f"Cannot write {self.path}: {exc}") from exc

    async def _settle_write(self) -> None:
        if self._pending_write is not None:
            await asyncio.wait([self._pending_write])

    def _restore(self, snapshot: list[Record]) -> None:
        try:
            self._write(snapshot)
        except OSError:
            logger.exception(
                "Failed to restore collection after rollback",
                extra={"path": str(self.path)},
            )

    def _write(self, records: list[Record]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(records, indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _index_of(self, key: str, value: str, *, ignore_case: bool) -> int | None:
        normalize: Callable[[object], str] = (
            (lambda raw: str(raw).lower()) if ignore_case else str
        )
        target = normalize(value)
        for index, record in enumerate(self.records):
            if key in record and normalize(record[key]) == target:
                return index
        return None
