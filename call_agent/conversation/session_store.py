"""
Thread-safe in-memory store of active call sessions.

Every read and mutation happens under one re-entrant lock, and callers
only ever receive snapshots, so a concurrent turn or the periodic sweep
can never observe a half-applied update.

Usage:
    store = SessionStore()
    store.create("CA123", "+919876543210")
    store.update("CA123", SessionPatch(state=DialogState.MAIN_MENU))
    store.end("CA123")
"""

import asyncio
import logging
import time
from dataclasses import replace
from threading import RLock
from typing import Callable, Optional

from call_agent.config import settings
from call_agent.schemas.conversation_schema import Channel, DialogState, Language, Speaker
from call_agent.schemas.session_schema import HistoryEntry, Session, SessionPatch

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised when an operation names a session that does not exist."""


class DuplicateSessionError(Exception):
    """Raised when creating a session whose id is already active."""


def _snapshot(session: Session) -> Session:
    return replace(
        session,
        slots=dict(session.slots),
        history=list(session.history),
        completed_booking_ids=list(session.completed_booking_ids),
    )


class SessionStore:
    """Keyed collection of Session records with TTL eviction."""

    def __init__(
        self,
        history_cap: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.history_cap = history_cap or settings.dialog.history_cap
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def _require(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session '{session_id}' not found")
        return session

    def create(
        self,
        session_id: str,
        caller_address: str,
        channel: Channel = Channel.VOICE,
        language: Optional[Language] = None,
        state: Optional[DialogState] = None,
    ) -> Session:
        """Create a new session. Voice sessions start at language selection."""
        if state is None:
            state = (
                DialogState.LANGUAGE_SELECTION
                if channel == Channel.VOICE
                else DialogState.MAIN_MENU
            )
        now = self._clock()
        with self._lock:
            if session_id in self._sessions:
                raise DuplicateSessionError(f"Session '{session_id}' already exists")
            session = Session(
                id=session_id,
                caller_address=caller_address,
                channel=channel,
                language=language or Language(settings.business.default_language),
                state=state,
                created_at=now,
                last_activity_at=now,
            )
            self._sessions[session_id] = session
            logger.info(
                "Session created: %s (%s, %s)", session_id, channel.value, session.language.value
            )
            return _snapshot(session)

    def get(self, session_id: str) -> Session:
        with self._lock:
            return _snapshot(self._require(session_id))

    def find(self, session_id: str) -> Optional[Session]:
        """Like get(), but returns None for an unknown id."""
        with self._lock:
            session = self._sessions.get(session_id)
            return _snapshot(session) if session is not None else None

    def update(self, session_id: str, patch: SessionPatch) -> Session:
        """Merge a validated patch into the session and refresh its activity time."""
        with self._lock:
            session = self._require(session_id)
            patch.apply_to(session)
            session.last_activity_at = self._clock()
            return _snapshot(session)

    def set_language(self, session_id: str, language: Language) -> Session:
        return self.update(session_id, SessionPatch(language=language))

    def set_state(self, session_id: str, state: DialogState) -> Session:
        return self.update(session_id, SessionPatch(state=state))

    def append_history(self, session_id: str, speaker: Speaker, text: str) -> Session:
        """Append one entry, dropping the oldest entries beyond the history cap."""
        with self._lock:
            session = self._require(session_id)
            now = self._clock()
            session.history.append(HistoryEntry(speaker=speaker, text=text, timestamp=now))
            if len(session.history) > self.history_cap:
                del session.history[: len(session.history) - self.history_cap]
            session.last_activity_at = now
            return _snapshot(session)

    def end(self, session_id: str) -> bool:
        """Remove a session. Returns False if it was already gone."""
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info("Session ended: %s", session_id)
        return removed is not None

    def sweep(self, max_age_seconds: float) -> list[str]:
        """Remove every session inactive for longer than ``max_age_seconds``."""
        with self._lock:
            now = self._clock()
            stale = [
                sid
                for sid, session in self._sessions.items()
                if now - session.last_activity_at > max_age_seconds
            ]
            for sid in stale:
                del self._sessions[sid]
        if stale:
            logger.info("Swept %d stale session(s): %s", len(stale), ", ".join(stale))
        return stale

    async def run_sweeper(
        self,
        interval_seconds: Optional[float] = None,
        max_age_seconds: Optional[float] = None,
    ) -> None:
        """Sweep periodically until cancelled."""
        interval = interval_seconds or settings.dialog.sweep_interval_minutes * 60
        max_age = max_age_seconds or settings.dialog.session_max_age_minutes * 60
        logger.debug("Session sweeper running every %ss (max age %ss)", interval, max_age)
        while True:
            await asyncio.sleep(interval)
            self.sweep(max_age)
