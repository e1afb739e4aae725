"""Turn voice-state observations into JOIN / LEAVE / MOVE events.

The classifier drives a :class:`SessionStore` and returns the events that
describe what happened. It never does I/O; sending the events somewhere is
the caller's job.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from .session_store import ClosedSession, SessionStore, utcnow

log = logging.getLogger(__name__)


class MalformedObservation(ValueError):
    """An observation arrived without a user id."""


class EventKind(str, enum.Enum):
    JOIN = "JOIN"
    LEAVE = "LEAVE"
    MOVE = "MOVE"


class TrackingMode(str, enum.Enum):
    UNCONDITIONAL = "all"
    WATCH_FILTERED = "watched"


class MovePolicy(str, enum.Enum):
    SINGLE = "single"
    SPLIT = "split"
    CARRY = "carry"


STALE = "stale"


@dataclass(frozen=True)
class ChannelRef:
    id: str
    name: str = ""

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", "")


@dataclass(frozen=True)
class Observation:
    user_id: str
    username: str
    guild_id: str
    old: ChannelRef | None = None
    new: ChannelRef | None = None
    guild_name: str | None = None


@dataclass(frozen=True)
class Event:
    kind: EventKind
    occurred_at: datetime
    user_id: str
    username: str
    guild_id: str = ""
    guild_name: str | None = None
    from_channel: ChannelRef | None = None
    to_channel: ChannelRef | None = None
    session_start: datetime | None = None
    session_end: datetime | None = None
    duration_seconds: int | None = None
    duration_human: str | None = None
    reason: str | None = None


class WatchPolicy:
    """Set of channel ids whose occupancy is worth reporting."""

    def __init__(self, channel_ids: Iterable = ()):
        self.channel_ids = frozenset(str(c) for c in channel_ids if str(c).strip())

    def __len__(self):
        return len(self.channel_ids)

    def watched(self, channel: ChannelRef | None) -> bool:
        return channel is not None and channel.id in self.channel_ids


class TransitionClassifier:
    def __init__(
        self,
        store: SessionStore,
        mode: TrackingMode = TrackingMode.UNCONDITIONAL,
        watch: WatchPolicy | None = None,
        move_policy: MovePolicy = MovePolicy.SINGLE,
    ):
        self.store = store
        self.mode = TrackingMode(mode)
        self.watch = watch or WatchPolicy()
        self.move_policy = MovePolicy(move_policy)

    def classify(self, obs: Observation, now: datetime | None = None) -> list[Event]:
        """Apply one observation to the store and return the resulting events.

        Raises :class:`MalformedObservation` when ``obs.user_id`` is empty;
        that is the only failure. Same-channel observations return ``[]``
        without touching the store.
        """
        if not obs.user_id:
            raise MalformedObservation("observation has no user id")

        old, new = obs.old, obs.new
        if old is not None and new is not None and old.id == new.id:
            return []
        if old is None and new is None:
            return []

        now = now or utcnow()
        if self.mode is TrackingMode.WATCH_FILTERED:
            return self._classify_watched(obs, now)
        return self._classify_all(obs, now)

    # ---------------------------------------------------------------
    # Modes
    # ---------------------------------------------------------------
    def _classify_all(self, obs: Observation, now: datetime) -> list[Event]:
        old, new = obs.old, obs.new
        if old is None:
            return self._join(obs, new, now)
        if new is None:
            return [self._leave(obs, old, now)]
        return self._move(obs, old, new, now)

    def _classify_watched(self, obs: Observation, now: datetime) -> list[Event]:
        was_watched = self.watch.watched(obs.old)
        is_watched = self.watch.watched(obs.new)

        if not was_watched and is_watched:
            return self._join(obs, obs.new, now)
        if was_watched and not is_watched:
            return [self._leave(obs, obs.old, now)]
        if was_watched and is_watched:
            return self._move(obs, obs.old, obs.new, now)

        stale = self._close_stale(obs, now)
        return [stale] if stale else []

    # ---------------------------------------------------------------
    # Transitions
    # ---------------------------------------------------------------
    def _join(self, obs: Observation, channel: ChannelRef, now: datetime) -> list[Event]:
        events = []
        stale = self._close_stale(obs, now)
        if stale:
            events.append(stale)

        self.store.open(obs.user_id, channel.id, channel.name, started_at=now, guild_id=obs.guild_id)
        events.append(self._event(EventKind.JOIN, obs, now, to_channel=channel))
        return events

    def _leave(self, obs: Observation, channel: ChannelRef, now: datetime) -> Event:
        closed = self.store.close(obs.user_id, ended_at=now, guild_id=obs.guild_id)
        if closed is None:
            log.debug("[voice] no open session for %s on leave", obs.user_id)
        return self._event(
            EventKind.LEAVE, obs, now, from_channel=_with_name(channel, closed), closed=closed
        )

    def _move(
        self, obs: Observation, old: ChannelRef, new: ChannelRef, now: datetime
    ) -> list[Event]:
        if self.move_policy is MovePolicy.SPLIT:
            leave = self._leave(obs, old, now)
            self.store.open(obs.user_id, new.id, new.name, started_at=now, guild_id=obs.guild_id)
            return [leave, self._event(EventKind.JOIN, obs, now, to_channel=new)]

        if self.move_policy is MovePolicy.CARRY:
            moved = self.store.move(obs.user_id, new.id, new.name, guild_id=obs.guild_id)
            if moved is None:
                self.store.open(obs.user_id, new.id, new.name, started_at=now, guild_id=obs.guild_id)
            return [self._event(EventKind.MOVE, obs, now, from_channel=old, to_channel=new)]

        closed = self.store.close(obs.user_id, ended_at=now, guild_id=obs.guild_id)
        self.store.open(obs.user_id, new.id, new.name, started_at=now, guild_id=obs.guild_id)
        return [
            self._event(
                EventKind.MOVE,
                obs,
                now,
                from_channel=_with_name(old, closed),
                to_channel=new,
                closed=closed,
            )
        ]

    def _close_stale(self, obs: Observation, now: datetime) -> Event | None:
        if self.store.peek(obs.user_id, guild_id=obs.guild_id) is None:
            return None

        closed = self.store.close(obs.user_id, ended_at=now, guild_id=obs.guild_id)
        log.warning(
            "[voice] closing stale session of %s in %s", obs.user_id, closed.from_channel_id
        )
        return self._event(
            EventKind.LEAVE,
            obs,
            now,
            from_channel=ChannelRef(closed.from_channel_id, closed.from_channel_name),
            closed=closed,
            reason=STALE,
        )

    def _event(
        self,
        kind: EventKind,
        obs: Observation,
        now: datetime,
        from_channel: ChannelRef | None = None,
        to_channel: ChannelRef | None = None,
        closed: ClosedSession | None = None,
        reason: str | None = None,
    ) -> Event:
        return Event(
            kind=kind,
            occurred_at=now,
            user_id=obs.user_id,
            username=obs.username or obs.user_id,
            guild_id=obs.guild_id,
            guild_name=obs.guild_name,
            from_channel=from_channel,
            to_channel=to_channel,
            session_start=closed.session_start if closed else None,
            session_end=closed.session_end if closed else None,
            duration_seconds=closed.duration_seconds if closed else None,
            duration_human=closed.duration_human if closed else None,
            reason=reason,
        )


def _with_name(channel: ChannelRef, closed: ClosedSession | None) -> ChannelRef:
    # Fall back to the name remembered when the session opened.
    if channel.name or closed is None or closed.from_channel_id != channel.id:
        return channel
    return ChannelRef(channel.id, closed.from_channel_name)


def build_classifier(
    store: SessionStore,
    mode: str = TrackingMode.UNCONDITIONAL.value,
    watched_channel_ids: Iterable = (),
    move_policy: str = MovePolicy.SINGLE.value,
) -> TransitionClassifier:
    """Classifier from settings.json values (``TRACKING_MODE`` and friends)."""
    tracking = TrackingMode(mode)
    watch = WatchPolicy(watched_channel_ids)
    if tracking is TrackingMode.WATCH_FILTERED and not len(watch):
        log.warning("TRACKING_MODE=watched but WATCHED_CHANNEL_IDS is empty; nothing will be reported")
    return TransitionClassifier(store, mode=tracking, watch=watch, move_policy=MovePolicy(move_policy))
