"""Draft persistence for the configurator wizard.

A draft is the wizard's step configs plus the current step index. It is
written through a :class:`DraftStore`; the :class:`DraftAutosaver` coalesces
bursts of edits into a single write once the user pauses.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

DRAFT_VERSION = 1
DRAFT_TTL = timedelta(days=7)
AUTOSAVE_DELAY = timedelta(milliseconds=500)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Draft(BaseModel):
    version: int = DRAFT_VERSION
    step_index: int
    steps: dict[str, dict[str, Any]]
    saved_at: datetime

    def is_expired(self, now: datetime, ttl: timedelta = DRAFT_TTL) -> bool:
        return now - self.saved_at > ttl


# ─── Stores ───────────────────────────────────────────────────────────────────


class DraftStore(Protocol):
    def load(self) -> Draft | None: ...

    def save(self, draft: Draft) -> None: ...

    def clear(self) -> None: ...


def _parse(raw: str) -> Draft | None:
    try:
        draft = Draft.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("Ignoring unreadable wizard draft: %s", exc)
        return None
    if draft.version != DRAFT_VERSION:
        logger.info("Ignoring wizard draft from version %s", draft.version)
        return None
    return draft


class InMemoryDraftStore:
    """Keeps the serialised draft, as browser storage would."""

    def __init__(self) -> None:
        self._raw: str | None = None
        self.saves = 0

    def load(self) -> Draft | None:
        return _parse(self._raw) if self._raw is not None else None

    def save(self, draft: Draft) -> None:
        self._raw = draft.model_dump_json()
        self.saves += 1

    def clear(self) -> None:
        self._raw = None


class JsonFileDraftStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> Draft | None:
        if not self.path.exists():
            return None
        return _parse(self.path.read_text(encoding="utf-8"))

    def save(self, draft: Draft) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(draft.model_dump(mode="json")), encoding="utf-8")
        tmp.replace(self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# ─── Autosave ─────────────────────────────────────────────────────────────────


class DraftAutosaver:
    """Debounced writer: each ``schedule()`` pushes the deadline back.

    The draft is taken from ``snapshot`` when the write happens, so the
    latest state is what lands in the store.
    """

    def __init__(
        self,
        store: DraftStore,
        snapshot: Callable[[], Draft],
        *,
        delay: timedelta = AUTOSAVE_DELAY,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.snapshot = snapshot
        self.delay = delay
        self.clock = clock
        self._due_at: datetime | None = None

    @property
    def pending(self) -> bool:
        return self._due_at is not None

    def schedule(self) -> None:
        self._due_at = self.clock() + self.delay

    def cancel(self) -> None:
        self._due_at = None

    def tick(self) -> bool:
        """Write if the quiet period has elapsed. Returns whether a write happened."""
        if self._due_at is None or self.clock() < self._due_at:
            return False
        return self.flush()

    def flush(self) -> bool:
        """Write now, whether or not a save was pending."""
        self._due_at = None
        self.store.save(self.snapshot())
        return True
