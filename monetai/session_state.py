"""SDK session record and its initialization state machine.

``UNINITIALIZED -> INITIALIZING -> READY``, with ``READY -> UNINITIALIZED``
only through ``reset``. A failed attempt returns to ``UNINITIALIZED``.
Every ``reset`` bumps ``generation`` so results of an attempt started before
the reset can be recognised and discarded.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

from core.domain import ABTestGroup, GroupAssignment, InitializeResult, Integration


class SessionPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass
class Session:
    sdk_key: str | None = None
    user_id: str | None = None
    exposure_time_sec: int | None = None
    initialized: bool = False
    integration: Integration | None = None
    assignment: GroupAssignment | None = None


@dataclass(frozen=True, slots=True)
class InitAttempt:
    """Identity of one ``initialize`` attempt."""

    generation: int
    sdk_key: str
    user_id: str


class SessionState:
    """Owns the single mutable session record."""

    def __init__(self):
        self._session = Session()
        self._phase = SessionPhase.UNINITIALIZED
        self._generation = 0
        self.init_lock = asyncio.Lock()

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def initialized(self) -> bool:
        return self._session.initialized

    @property
    def sdk_key(self) -> str | None:
        return self._session.sdk_key

    @property
    def user_id(self) -> str | None:
        return self._session.user_id

    @property
    def exposure_time_sec(self) -> int | None:
        return self._session.exposure_time_sec

    @property
    def group(self) -> ABTestGroup | None:
        assignment = self._session.assignment
        return assignment.group if assignment is not None else None

    def begin_attempt(self, sdk_key: str, user_id: str) -> InitAttempt:
        """Store credentials tentatively and enter ``INITIALIZING``."""
        self._session.sdk_key = sdk_key
        self._session.user_id = user_id
        self._phase = SessionPhase.INITIALIZING
        return InitAttempt(generation=self._generation, sdk_key=sdk_key, user_id=user_id)

    def is_current(self, attempt: InitAttempt) -> bool:
        return (
            attempt.generation == self._generation
            and attempt.sdk_key == self._session.sdk_key
            and attempt.user_id == self._session.user_id
        )

    def complete(
        self,
        attempt: InitAttempt,
        integration: Integration,
        assignment: GroupAssignment,
    ) -> bool:
        """Apply a successful attempt. Returns False when the attempt is stale."""
        if not self.is_current(attempt):
            return False
        self._session.integration = integration
        self._session.assignment = assignment
        self._session.exposure_time_sec = assignment.exposure_time_sec
        self._session.initialized = True
        self._phase = SessionPhase.READY
        return True

    def fail(self, attempt: InitAttempt) -> None:
        # Tentative credentials stay behind; the next attempt overwrites them.
        if self.is_current(attempt):
            self._phase = SessionPhase.UNINITIALIZED

    def reset(self) -> None:
        self._session = Session()
        self._phase = SessionPhase.UNINITIALIZED
        self._generation += 1

    def cached_result(self, *, platform: str, version: str) -> InitializeResult:
        """Build an ``InitializeResult`` from the stored session (no I/O)."""
        integration = self._session.integration
        return InitializeResult(
            organization_id=integration.organization_id if integration else 0,
            platform=integration.platform if integration else platform,
            version=integration.version if integration else version,
            user_id=self._session.user_id or "",
            group=self.group,
        )
