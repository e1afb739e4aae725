"""In-memory per-user voice sessions.

Each (guild, user) pair has at most one open session. Closing a session
removes it and returns the elapsed time, both as whole seconds and as a short
human label. Nothing here is persisted; a restart forgets every open session.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone

from .time_utils import fmt_duration, whole_seconds


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    user_id: str
    channel_id: str
    channel_name: str
    started_at: datetime
    guild_id: str = ""


@dataclass(frozen=True)
class ClosedSession:
    from_channel_id: str
    from_channel_name: str
    session_start: datetime
    session_end: datetime
    duration_seconds: int
    duration_human: str


class SessionStore:
    def __init__(self):
        # (guild_id, user_id) → Session
        self._sessions: dict[tuple[str, str], Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    @staticmethod
    def key_for(user_id: str, guild_id: str | None = None) -> tuple[str, str]:
        return (str(guild_id or ""), str(user_id))

    def open(
        self,
        user_id: str,
        channel_id: str,
        channel_name: str = "",
        started_at: datetime | None = None,
        guild_id: str | None = None,
    ) -> Session:
        """Start a session, silently replacing any previous one for the user."""
        session = Session(
            user_id=str(user_id),
            channel_id=str(channel_id),
            channel_name=channel_name or "",
            started_at=started_at or utcnow(),
            guild_id=str(guild_id or ""),
        )
        self._sessions[self.key_for(user_id, guild_id)] = session
        return session

    def peek(self, user_id: str, guild_id: str | None = None) -> Session | None:
        return self._sessions.get(self.key_for(user_id, guild_id))

    def move(
        self,
        user_id: str,
        channel_id: str,
        channel_name: str = "",
        guild_id: str | None = None,
    ) -> Session | None:
        """Point an open session at another channel, keeping its start time.

        Returns ``None`` when the user has no open session.
        """
        key = self.key_for(user_id, guild_id)
        current = self._sessions.get(key)
        if current is None:
            return None
        moved = replace(current, channel_id=str(channel_id), channel_name=channel_name or "")
        self._sessions[key] = moved
        return moved

    def close(
        self,
        user_id: str,
        ended_at: datetime | None = None,
        guild_id: str | None = None,
    ) -> ClosedSession | None:
        """End the user's session; ``None`` if there was nothing open."""
        session = self._sessions.pop(self.key_for(user_id, guild_id), None)
        if session is None:
            return None

        ended_at = ended_at or utcnow()
        seconds = whole_seconds(ended_at - session.started_at)
        return ClosedSession(
            from_channel_id=session.channel_id,
            from_channel_name=session.channel_name,
            session_start=session.started_at,
            session_end=ended_at,
            duration_seconds=seconds,
            duration_human=fmt_duration(seconds),
        )

    def sessions(self) -> list[Session]:
        """Snapshot of all open sessions, oldest first."""
        return sorted(self._sessions.values(), key=lambda s: s.started_at)
