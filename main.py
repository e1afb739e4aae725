# main.py

import asyncio
import logging

import discord
from discord.ext import commands
import uvicorn

import settings
from status_app import create_app
from cogs.presence import Presence
from cogs.voice_tracker import VoiceTracker
from utils.classifier import build_classifier
from utils.session_store import SessionStore
from utils.webhook import WebhookSink

logging.basicConfig(level=settings.LOG_LEVEL)
log = logging.getLogger("vc-webhook")


intents = discord.Intents.default()
intents.guilds = True
intents.voice_states = True
intents.members = True

bot = commands.Bot(command_prefix="!", intents=intents)

# セッションはプロセス内のみで保持（再起動で消える）
store = SessionStore()


def load_cogs_sync():
    log.info("Loading Cogs...")
    sink = WebhookSink(
        settings.WEBHOOK_URLS, tz_name=settings.TIMEZONE, timeout=settings.WEBHOOK_TIMEOUT_SEC
    )
    if not sink.targets:
        log.warning("WEBHOOK_URLS is empty; events will only be logged")
    # VoiceTracker を先に登録（Presence はストア更新後の人数を表示する）
    classifier = build_classifier(
        store, settings.TRACKING_MODE, settings.WATCHED_CHANNEL_IDS, settings.MOVE_POLICY
    )
    bot.add_cog(VoiceTracker(bot, classifier, sink))
    bot.add_cog(Presence(bot, store))
    log.info("Cogs Loaded Successfully.")


async def start_bot():
    await bot.start(settings.TOKEN)


async def start_status_api():
    app = create_app(store)

    config = uvicorn.Config(
        app,
        host=settings.STATUS_API_HOST,
        port=settings.STATUS_API_PORT,
        log_level="info"
    )
    server = uvicorn.Server(config)

    await server.serve()


async def main_async():
    load_cogs_sync()
    if settings.STATUS_API_ENABLED:
        await asyncio.gather(start_bot(), start_status_api())
    else:
        await start_bot()


def main():
    try:
        asyncio.run(main_async())
    except KeyboardInterrupt:
        log.info("Shutting down...")


if __name__ == "__main__":
    main()
