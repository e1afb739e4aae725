# cogs/presence.py

import logging

import discord
from discord.ext import commands

from utils.session_store import SessionStore

log = logging.getLogger(__name__)


def activity_text(count: int) -> str:
    if count == 0:
        return "通話はされていません。"
    return f"{count}人が通話中！"


class Presence(commands.Cog):
    def __init__(self, bot, store: SessionStore):
        self.bot = bot
        self.store = store

    async def update_vc_status(self):
        activity = discord.Game(name=activity_text(len(self.store)))
        try:
            await self.bot.change_presence(status=discord.Status.online, activity=activity)
        except discord.DiscordException as e:
            log.warning("[presence] update failed: %s", e)

    @commands.Cog.listener()
    async def on_ready(self):
        # Bot 起動時に一度ステータス更新
        await self.update_vc_status()

    @commands.Cog.listener()
    async def on_voice_state_update(self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState):
        if member.bot:
            return
        await self.update_vc_status()
