# cogs/voice_tracker.py

import asyncio
import logging

import discord
from discord.ext import commands

from utils.classifier import MalformedObservation, TransitionClassifier
from utils.voice_utils import is_channel_transition, observation_from_states
from utils.webhook import DeliverySink

log = logging.getLogger(__name__)


class VoiceTracker(commands.Cog):
    """
    VC入退室・移動を分類して Webhook に通知する
    """

    def __init__(self, bot, classifier: TransitionClassifier, sink: DeliverySink):
        self.bot = bot
        self.classifier = classifier
        self.sink = sink
        self.pending: set[asyncio.Task] = set()

    def dispatch(self, event):
        task = asyncio.create_task(self.sink.submit(event))
        self.pending.add(task)
        task.add_done_callback(self._delivery_done)
        return task

    def _delivery_done(self, task: asyncio.Task):
        self.pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("[webhook] delivery task failed: %r", exc)

    @commands.Cog.listener()
    async def on_ready(self):
        log.info("[voice] logged in as %s", self.bot.user)

    @commands.Cog.listener()
    async def on_voice_state_update(
        self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
    ):
        if member.bot:
            return

        # ミュートや画面共有などの状態変更は無視し、入退室のみを対象とする
        if not is_channel_transition(before, after):
            return

        obs = observation_from_states(member, before, after)
        try:
            events = self.classifier.classify(obs)
        except MalformedObservation as e:
            log.error("[voice] dropped voice update: %s", e)
            return

        for event in events:
            src = event.from_channel.name if event.from_channel else "-"
            dst = event.to_channel.name if event.to_channel else "-"
            log.info(
                "[voice] %s %s: %s -> %s (%s)",
                event.username,
                event.kind.value,
                src,
                dst,
                event.duration_human or "-",
            )
            self.dispatch(event)
