from types import SimpleNamespace

from conftest import fake_channel, fake_member, fake_state
from utils.classifier import ChannelRef
from utils.voice_utils import is_channel_transition, observation_from_states, resolve_username


def test_same_channel_is_not_transition():
    ch = fake_channel(1, "General")
    assert not is_channel_transition(fake_state(ch), fake_state(fake_channel(1, "General")))
    assert not is_channel_transition(fake_state(), fake_state())


def test_channel_change_is_transition():
    assert is_channel_transition(fake_state(), fake_state(fake_channel(1, "General")))
    assert is_channel_transition(fake_state(fake_channel(1, "a")), fake_state(fake_channel(2, "b")))


def test_username_fallback_chain():
    assert resolve_username(fake_member(display_name="Nick", global_name="Glob")) == "Nick"
    assert resolve_username(fake_member(display_name="", global_name="Glob")) == "Glob"
    assert resolve_username(fake_member(display_name=None, global_name=None, name="alice")) == "alice"
    assert resolve_username(fake_member(member_id=99, display_name="", name="")) == "99"


def test_observation_from_states():
    member = fake_member(member_id=42)
    before = fake_state(fake_channel(1, "General"))
    after = fake_state(SimpleNamespace(id=2, name=None))

    obs = observation_from_states(member, before, after)

    assert obs.user_id == "42"
    assert obs.username == "Alice"
    assert obs.guild_id == "7"
    assert obs.guild_name == "Guild"
    assert obs.old == ChannelRef("1", "General")
    assert obs.new == ChannelRef("2", "")
