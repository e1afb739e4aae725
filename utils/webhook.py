"""Webhook delivery of classified voice events.

Accepted target forms (``normalize_targets``):

- a single URL string: ``"https://.../hook"``
- a CSV string: ``"https://a,https://b"``
- a list of strings: ``["https://a", "https://b"]``
- an object ``{"url": "https://..."}``
- a list of such objects
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlparse

import aiohttp

from .classifier import Event, EventKind
from .time_utils import DEFAULT_TIMEZONE, fmt_iso, fmt_local

log = logging.getLogger(__name__)


def normalize_targets(raw) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        return [s.strip() for s in raw.split(",") if s.strip()]
    if isinstance(raw, dict):
        url = raw.get("url")
        return [url] if url else []
    if isinstance(raw, (list, tuple)):
        out = []
        for t in raw:
            if isinstance(t, str):
                if t.strip():
                    out.append(t.strip())
            elif isinstance(t, dict) and t.get("url"):
                out.append(t["url"])
        return out
    return []


def is_valid_url(url) -> bool:
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def build_payload(event: Event, tz_name: str = DEFAULT_TIMEZONE) -> dict:
    """Flat JSON body sent to the automation endpoint."""
    src = event.from_channel
    dst = event.to_channel
    current = src if event.kind is EventKind.LEAVE else dst

    return {
        "timestampIso": fmt_iso(event.occurred_at),
        "timestampLocal": fmt_local(event.occurred_at, tz_name),
        "timezone": tz_name,
        "guildId": event.guild_id,
        "guildName": event.guild_name or "",
        "userId": event.user_id,
        "username": event.username,
        "action": event.kind.value,
        "channelId": current.id if current else "",
        "channelName": current.name if current else "",
        "fromChannelId": src.id if src else "",
        "fromChannelName": src.name if src else "",
        "toChannelId": dst.id if dst else "",
        "toChannelName": dst.name if dst else "",
        "sessionStartIso": fmt_iso(event.session_start),
        "sessionStartLocal": fmt_local(event.session_start, tz_name),
        "sessionEndIso": fmt_iso(event.session_end),
        "sessionEndLocal": fmt_local(event.session_end, tz_name),
        "durationSec": event.duration_seconds or 0,
        "durationHuman": event.duration_human or "",
        "reason": event.reason or "",
    }


@dataclass
class DeliveryOutcome:
    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.delivered) and not self.failed


class DeliverySink(Protocol):
    async def submit(self, event: Event) -> DeliveryOutcome:
        ...


class WebhookSink:
    """POSTs each event to every configured webhook. Never raises."""

    def __init__(self, targets=None, tz_name: str = DEFAULT_TIMEZONE, timeout: float = 10):
        self.targets = normalize_targets(targets)
        self.tz_name = tz_name
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def submit(self, event: Event) -> DeliveryOutcome:
        outcome = DeliveryOutcome()
        if not self.targets:
            log.error("[webhook] no valid target configured (WEBHOOK_URLS empty)")
            return outcome

        payload = build_payload(event, self.tz_name)
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            for url in self.targets:
                if not is_valid_url(url):
                    log.error("[webhook] invalid URL skipped: %r", url)
                    outcome.failed.append(url)
                    continue
                if await self._post(session, url, payload):
                    outcome.delivered.append(url)
                else:
                    outcome.failed.append(url)
        return outcome

    async def _post(self, session: aiohttp.ClientSession, url: str, payload: dict) -> bool:
        try:
            async with session.post(url, json=payload) as resp:
                if not 200 <= resp.status < 300:
                    body = await resp.text(errors="replace")
                    log.error("[webhook] HTTP %s from %s: %s", resp.status, url, body[:200])
                    return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error("[webhook] error sending to %s: %s", url, e)
            return False

        log.info("[webhook] %s sent to %s", payload["action"], url)
        return True
