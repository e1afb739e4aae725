"""Helper utilities for voice state change detection."""

import discord

from .classifier import ChannelRef, Observation


def _channel_id(state: discord.VoiceState | None):
    channel = getattr(state, "channel", None)
    return channel.id if channel is not None else None


def is_channel_transition(before: discord.VoiceState, after: discord.VoiceState) -> bool:
    """Return True if the member moved between voice channels.

    This ignores updates within the same channel (mute/deafen/screen-share),
    and only reports transitions where the channel id actually changes.
    """

    return _channel_id(before) != _channel_id(after)


def channel_ref(channel) -> ChannelRef | None:
    if channel is None:
        return None
    return ChannelRef(id=str(channel.id), name=getattr(channel, "name", None) or "")


def resolve_username(member) -> str:
    """First non-empty of display name, global name, username, then the id."""

    user = getattr(member, "user", None) or member
    for candidate in (
        getattr(member, "display_name", None),
        getattr(user, "global_name", None),
        getattr(user, "name", None),
    ):
        if candidate:
            return str(candidate)
    member_id = getattr(member, "id", None)
    return str(member_id) if member_id is not None else ""


def observation_from_states(
    member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
) -> Observation:
    guild = getattr(member, "guild", None)
    member_id = getattr(member, "id", None)
    return Observation(
        user_id=str(member_id) if member_id is not None else "",
        username=resolve_username(member),
        guild_id=str(guild.id) if guild is not None else "",
        guild_name=getattr(guild, "name", None),
        old=channel_ref(getattr(before, "channel", None)),
        new=channel_ref(getattr(after, "channel", None)),
    )
