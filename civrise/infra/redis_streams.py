#!/usr/bin/env python3
"""
Lightweight Redis Streams helper for the civrise services.

Provides a thin wrapper around redis.asyncio for:
- appending log/tick events to an append-only stream
- appending and reading player actions via a consumer group
- storing/loading the latest snapshot in a hash
"""
from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from redis import asyncio as aioredis
from redis.exceptions import ResponseError

from civrise.models import REDIS_SETTINGS


DEFAULT_REDIS_URL = str(REDIS_SETTINGS.redis_url)
DEFAULT_EVENT_STREAM = REDIS_SETTINGS.event_stream
DEFAULT_ACTION_STREAM = REDIS_SETTINGS.action_stream
DEFAULT_SNAPSHOT_KEY = REDIS_SETTINGS.snapshot_key


def _decode(fields: dict) -> dict:
    payload_raw = fields.get("data")
    return json.loads(payload_raw) if payload_raw else {}


class RedisStreams:
    def __init__(
        self,
        url: str | None = None,
        event_stream: str | None = None,
        action_stream: str | None = None,
        snapshot_key: str | None = None,
    ) -> None:
        self.url = url or DEFAULT_REDIS_URL
        self.event_stream = event_stream or DEFAULT_EVENT_STREAM
        self.action_stream = action_stream or DEFAULT_ACTION_STREAM
        self.snapshot_key = snapshot_key or DEFAULT_SNAPSHOT_KEY
        # decode_responses=True so we deal with str, not bytes
        self._redis = aioredis.from_url(self.url, decode_responses=True)

    @property
    def client(self):
        return self._redis

    async def close(self) -> None:
        await self._redis.aclose()

    # --- Consumer group helpers ---
    async def ensure_consumer_group(self, stream: str, group: str) -> None:
        """
        Create the consumer group if it does not already exist.
        """
        try:
            await self._redis.xgroup_create(stream, group, id="0", mkstream=True)
        except ResponseError as exc:
            if "BUSYGROUP" in str(exc):
                return
            raise

    # --- Action helpers ---
    async def append_action(self, payload: dict, maxlen: Optional[int] = 5000) -> str:
        return await self._redis.xadd(
            name=self.action_stream,
            fields={"data": json.dumps(payload)},
            maxlen=maxlen,
            approximate=True,
        )

    async def read_actions(
        self,
        group: str,
        consumer: str,
        count: int = 50,
        block_ms: int | None = None,
    ) -> list[tuple[str, Any]]:
        """
        Read actions via consumer group semantics.
        Returns a list of (message_id, payload). A payload that is not valid
        JSON comes back as None so the caller can ack and skip it.
        """
        entries = await self._redis.xreadgroup(
            groupname=group,
            consumername=consumer,
            streams={self.action_stream: ">"},
            count=count,
            block=block_ms,
        )
        if not entries:
            return []
        out: list[tuple[str, Any]] = []
        for _, messages in entries:
            for message_id, fields in messages:
                try:
                    payload = _decode(fields)
                except json.JSONDecodeError:
                    payload = None
                out.append((message_id, payload))
        return out

    async def ack_actions(self, ids: Iterable[str], group: str) -> None:
        ids = list(ids)
        if not ids:
            return
        await self._redis.xack(self.action_stream, group, *ids)

    # --- Event helpers ---
    async def append_event(self, payload: dict, maxlen: Optional[int] = None) -> str:
        """
        Append a payload to the event stream. Uses field name 'data' to store JSON.
        """
        args: dict[str, Any] = {"data": json.dumps(payload)}
        return await self._redis.xadd(
            name=self.event_stream,
            fields=args,
            maxlen=maxlen,
            approximate=True,
        )

    async def read_events(
        self,
        last_id: str = "$",
        count: int = 50,
        block_ms: int | None = None,
    ) -> list[tuple[str, dict]]:
        """
        Read events after last_id. Use last_id="$" to block for new entries.
        """
        entries = await self._redis.xread(
            streams={self.event_stream: last_id},
            count=count,
            block=block_ms,
        )
        if not entries:
            return []
        out: list[tuple[str, dict]] = []
        for _, messages in entries:
            for message_id, fields in messages:
                out.append((message_id, _decode(fields)))
        return out

    # --- Snapshot helpers ---
    async def save_snapshot(self, snapshot: dict) -> None:
        """
        Store the latest snapshot as a hash. The 'data' field holds JSON.
        """
        mapping = {"data": json.dumps(snapshot), "tick": str(snapshot.get("game_time", 0))}
        await self._redis.hset(self.snapshot_key, mapping=mapping)

    async def load_snapshot(self) -> Optional[Any]:
        """
        Return the decoded snapshot, or None when nothing was saved.
        Raises json.JSONDecodeError on a corrupt payload.
        """
        data = await self._redis.hget(self.snapshot_key, "data")
        if not data:
            return None
        return json.loads(data)

    async def clear_snapshot(self) -> None:
        await self._redis.delete(self.snapshot_key)
