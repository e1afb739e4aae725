"""Pytest fixtures for the voice webhook tests."""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from utils.classifier import ChannelRef, Observation, TransitionClassifier
from utils.session_store import SessionStore

T0 = datetime(2025, 3, 2, 17, 0, 0, tzinfo=timezone.utc)

GENERAL = ChannelRef("c1", "General")
GAMING = ChannelRef("c2", "Gaming")
LOUNGE = ChannelRef("c3", "Lounge")
MUSIC = ChannelRef("c4", "Music")


def observe(old=None, new=None, user_id="u1", username="alice", guild_id="g1") -> Observation:
    return Observation(user_id=user_id, username=username, guild_id=guild_id, old=old, new=new)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def classifier(store: SessionStore) -> TransitionClassifier:
    return TransitionClassifier(store)


def fake_channel(channel_id, name):
    return SimpleNamespace(id=channel_id, name=name)


def fake_member(member_id=42, display_name="Alice", global_name=None, name="alice", bot=False):
    user = SimpleNamespace(id=member_id, global_name=global_name, name=name, bot=bot)
    return SimpleNamespace(
        id=member_id,
        display_name=display_name,
        user=user,
        bot=bot,
        guild=SimpleNamespace(id=7, name="Guild"),
    )


def fake_state(channel=None):
    return SimpleNamespace(channel=channel, self_mute=False, self_deaf=False)
