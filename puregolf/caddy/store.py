"""Historical store boundary for personalization data.

The caddy core needs three capabilities from persistence: read a player's
sample, write back the merged sample, and write back recomputed tendencies.
Anything implementing :class:`HistoricalStore` can be injected into the
service.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional, Protocol, Sequence, runtime_checkable

from puregolf.config import get_settings

from .models import HistoricalSample, HistoricalShot, PersonalTendencies, SwingFlaw
from .personalization import merge_sample


@runtime_checkable
class HistoricalStore(Protocol):
    async def load(self, user_id: str) -> Optional[HistoricalSample]: ...

    async def save_sample(self, user_id: str, sample: HistoricalSample) -> bool: ...

    async def save(self, user_id: str, tendencies: PersonalTendencies) -> bool: ...


class InMemoryHistoricalStore:
    def __init__(self) -> None:
        self._samples: Dict[str, HistoricalSample] = {}
        self._tendencies: Dict[str, PersonalTendencies] = {}
        self._lock = Lock()

    def put_sample(self, user_id: str, sample: HistoricalSample) -> None:
        with self._lock:
            self._samples[user_id] = sample

    def get_tendencies(self, user_id: str) -> Optional[PersonalTendencies]:
        with self._lock:
            return self._tendencies.get(user_id)

    async def load(self, user_id: str) -> Optional[HistoricalSample]:
        with self._lock:
            sample = self._samples.get(user_id)
            return sample.model_copy(deep=True) if sample else None

    async def save_sample(self, user_id: str, sample: HistoricalSample) -> bool:
        self.put_sample(user_id, sample.model_copy(deep=True))
        return True

    async def save(self, user_id: str, tendencies: PersonalTendencies) -> bool:
        with self._lock:
            self._tendencies[user_id] = tendencies
        return True


class FileHistoricalStore:
    """One JSON document per player: the sample plus the last tendencies.

    File access runs in a worker thread so a slow disk never holds the event
    loop and the service's store timeout can fire.
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        base = Path(base_dir or get_settings().caddy_dir).expanduser()
        self._base_dir = base.resolve()
        self._lock = Lock()

    def _user_path(self, user_id: str) -> Path:
        safe = user_id.replace("/", "_").replace("\\", "_").replace("..", "_")
        return self._base_dir / f"{safe}.json"

    def _read(self, user_id: str) -> dict | None:
        path = self._user_path(user_id)
        if not path.exists():
            return None
        return json.loads(path.read_text())

    def _write(self, user_id: str, document: dict) -> None:
        self._base_dir.mkdir(parents=True, exist_ok=True)
        path = self._user_path(user_id)
        path.write_text(json.dumps(document, indent=2, sort_keys=True, default=str))

    def _update(self, user_id: str, key: str, payload: dict) -> None:
        with self._lock:
            document = self._read(user_id) or {}
            document[key] = payload
            self._write(user_id, document)

    def _read_locked(self, user_id: str) -> dict | None:
        with self._lock:
            return self._read(user_id)

    def append_sample(
        self,
        user_id: str,
        shots: Iterable[HistoricalShot] = (),
        flaws: Iterable[SwingFlaw] = (),
        course_scores: Dict[str, Sequence[float]] | None = None,
    ) -> HistoricalSample:
        """Merge new records into the stored sample (import and seeding path)."""
        with self._lock:
            document = self._read(user_id) or {}
            current = HistoricalSample.model_validate(document.get("sample") or {})
            sample = merge_sample(current, shots, flaws, course_scores)
            document["sample"] = sample.model_dump(mode="json")
            self._write(user_id, document)
            return sample

    def get_tendencies(self, user_id: str) -> Optional[PersonalTendencies]:
        document = self._read_locked(user_id) or {}
        payload = document.get("tendencies")
        return PersonalTendencies.model_validate(payload) if payload else None

    async def load(self, user_id: str) -> Optional[HistoricalSample]:
        document = await asyncio.to_thread(self._read_locked, user_id)
        if not document or "sample" not in document:
            return None
        return HistoricalSample.model_validate(document["sample"])

    async def save_sample(self, user_id: str, sample: HistoricalSample) -> bool:
        await asyncio.to_thread(
            self._update, user_id, "sample", sample.model_dump(mode="json")
        )
        return True

    async def save(self, user_id: str, tendencies: PersonalTendencies) -> bool:
        await asyncio.to_thread(
            self._update, user_id, "tendencies", tendencies.model_dump(mode="json")
        )
        return True


__all__ = ["HistoricalStore", "InMemoryHistoricalStore", "FileHistoricalStore"]
