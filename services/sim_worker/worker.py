#!/usr/bin/env python3
"""
Simulation worker for the civrise engine.

This worker owns the in-memory civilization, consumes player actions from
Redis between ticks, advances the simulation, publishes log entries and tick
summaries as events and persists debounced snapshots. A Redis lease ensures
only one worker advances a given game at a time.
"""
from __future__ import annotations

import asyncio
import json
import os
import random
import signal
import socket
from dataclasses import asdict, dataclass
from typing import Any, List, Optional, Tuple

from civrise.infra.redis_streams import RedisStreams
from civrise.models import SIM_CONFIG, REDIS_SETTINGS, Action, SimulationState, TickSummary
from civrise.models.enums import ActionKind
from civrise.narrator import Narrator, NarrationDispatcher, TemplateNarrator
from civrise.state_utils import SnapshotDebouncer, SnapshotError, snapshot_from_state, state_from_snapshot
from civrise.world import advance_world, apply_action, create_civilization


@dataclass(frozen=True)
class WorkerConfig:
    event_maxlen: int
    action_batch: int
    lease_key: str
    lease_ttl_ms: int
    worker_id: str
    restart_key: str
    reset_on_start: bool
    action_group: str
    action_consumer: str
    tick_interval: float


def _load_config() -> WorkerConfig:
    return WorkerConfig(
        event_maxlen=int(os.environ.get("EVENT_STREAM_MAXLEN", 5000)),
        action_batch=int(os.environ.get("ACTION_BATCH", 50)),
        lease_key=os.environ.get("LEASE_KEY", "civrise:lease"),
        lease_ttl_ms=int(os.environ.get("LEASE_TTL_MS", 10000)),
        worker_id=os.environ.get("WORKER_ID", socket.gethostname()),
        restart_key=REDIS_SETTINGS.restart_key,
        reset_on_start=os.environ.get("RESET_ON_START", "false").lower() == "true",
        action_group=os.environ.get("ACTION_GROUP", "sim"),
        action_consumer=os.environ.get("ACTION_CONSUMER", f"sim-{os.getpid()}"),
        tick_interval=float(
            os.environ.get("TICK_INTERVAL", SIM_CONFIG.tick_modifiers.tick_interval)
        ),
    )


_CONFIG = _load_config()

TICK_INTERVAL: float = _CONFIG.tick_interval


def parse_action(payload: Any) -> Optional[Action]:
    """Turn a stream payload into an Action; None for anything malformed."""
    if not isinstance(payload, dict):
        return None
    try:
        kind = ActionKind(payload["action"])
        amount = payload.get("amount")
        return Action(
            action=kind,
            target=payload.get("target"),
            amount=int(amount) if amount is not None else None,
            source=payload.get("source"),
        )
    except (KeyError, ValueError, TypeError):
        return None


class SimulationWorker:
    def __init__(self, narrator: Narrator | None = None) -> None:
        self.streams = RedisStreams()
        self.state: SimulationState = create_civilization()
        self.rng = random.Random(self.state.generator_seed)
        self.dispatcher = NarrationDispatcher(
            narrator or TemplateNarrator(), on_image=self._publish_image
        )
        self.debouncer = SnapshotDebouncer()
        self.consumer_group = _CONFIG.action_group
        self.consumer_name = _CONFIG.action_consumer
        self._stop = asyncio.Event()
        self.lease_key = _CONFIG.lease_key
        self.lease_ttl_ms = _CONFIG.lease_ttl_ms
        self.worker_id = _CONFIG.worker_id
        self._log_cursor = 0

    def _now(self) -> float:
        return asyncio.get_running_loop().time()

    def _reset_state(self, state: SimulationState) -> None:
        self.state = state
        # rng position is not persisted; reseed from seed and clock
        self.rng = random.Random(f"{state.generator_seed}:{state.game_time}")
        self._log_cursor = len(state.logs)

    async def setup(self) -> None:
        await self.streams.ensure_consumer_group(
            self.streams.action_stream, self.consumer_group
        )
        if not await self._acquire_lease():
            raise RuntimeError("lease already held; refusing to start")
        print(f"[civ-worker] lease acquired key={self.lease_key} holder={self.worker_id}")
        if _CONFIG.reset_on_start:
            await self.streams.clear_snapshot()
        await self._load_or_create()

    async def _load_or_create(self) -> None:
        try:
            raw = await self.streams.load_snapshot()
        except json.JSONDecodeError as exc:
            print(f"[civ-worker] saved snapshot is not valid JSON ({exc}); starting a new game")
            raw = None
        if raw is None:
            self._reset_state(create_civilization())
            await self._save()
            print(f"[civ-worker] new game seed={self.state.generator_seed}")
            return
        try:
            restored = state_from_snapshot(raw)
        except SnapshotError as exc:
            print(f"[civ-worker] {exc}; starting a new game")
            self._reset_state(create_civilization())
            await self._save()
            return
        self._reset_state(restored)
        print(f"[civ-worker] restored game at tick={self.state.game_time} era={self.state.era.value}")

    async def _save(self) -> None:
        await self.streams.save_snapshot(snapshot_from_state(self.state))
        self.debouncer.mark_saved()

    async def _get_actions(self) -> Tuple[List[Action], List[str]]:
        """
        Pull actions from Redis stream. Returns (actions, message_ids_to_ack).
        """
        raw = await self.streams.read_actions(
            group=self.consumer_group,
            consumer=self.consumer_name,
            count=_CONFIG.action_batch,
        )
        actions: List[Action] = []
        ids: List[str] = []
        for msg_id, payload in raw:
            action = parse_action(payload)
            if action is None:
                print(f"[civ-worker] skipping malformed action {msg_id}")
            else:
                actions.append(action)
            # Ack malformed entries too to avoid blocking the stream
            ids.append(msg_id)
        return actions, ids

    def _apply_actions(self, actions: List[Action]) -> int:
        applied = 0
        for action in actions:
            try:
                if apply_action(self.state, action, self.rng):
                    applied += 1
            except ValueError as exc:
                print(f"[civ-worker] rejected action {action.action.value}: {exc}")
        return applied

    async def _publish_logs(self) -> int:
        new_entries = self.state.logs[self._log_cursor:]
        for entry in new_entries:
            await self.streams.append_event(
                {"type": "log", "entry": {**asdict(entry), "type": entry.type.value}},
                maxlen=_CONFIG.event_maxlen,
            )
        self._log_cursor = len(self.state.logs)
        return len(new_entries)

    async def _publish_tick(self, summary: TickSummary) -> None:
        res = self.state.resources
        await self.streams.append_event(
            {
                "type": "tick",
                "tick": summary.tick,
                "paused": summary.paused,
                "era": self.state.era.value,
                "income": summary.income,
                "science_income": summary.science_income,
                "population_growth": summary.population_growth,
                "resources": asdict(res),
                "active_crisis": self.state.active_crisis,
                "raids": summary.raids,
            },
            maxlen=_CONFIG.event_maxlen,
        )

    async def _publish_image(self, image: Optional[str]) -> None:
        await self.streams.append_event(
            {"type": "empire_snapshot", "image": image, "tick": self.state.game_time},
            maxlen=_CONFIG.event_maxlen,
        )

    async def tick_once(self) -> None:
        actions, to_ack = await self._get_actions()
        applied = self._apply_actions(actions)

        summary = advance_world(self.state, self.rng)
        self.dispatcher.drain(self.state)

        published = await self._publish_logs()
        await self._publish_tick(summary)

        if to_ack:
            await self.streams.ack_actions(to_ack, self.consumer_group)

        now = self._now()
        if applied or published or not summary.paused:
            self.debouncer.touch(now)
        if self.debouncer.due(now):
            await self._save()

    async def _check_restart(self) -> bool:
        restart_payload = await self.streams.client.get(_CONFIG.restart_key)
        if not restart_payload:
            return False
        await self.streams.client.delete(_CONFIG.restart_key)
        seed: Optional[str] = None
        try:
            parsed = json.loads(restart_payload)
            if isinstance(parsed, dict) and parsed.get("seed") is not None:
                seed = str(parsed["seed"])
        except (json.JSONDecodeError, TypeError):
            seed = None

        self.dispatcher.cancel_all()
        self._reset_state(create_civilization(seed=seed))
        await self._save()
        await self.streams.append_event(
            {"type": "snapshot", "data": snapshot_from_state(self.state)},
            maxlen=_CONFIG.event_maxlen,
        )
        print(f"[civ-worker] restarted game seed={self.state.generator_seed}")
        return True

    async def _acquire_lease(self) -> bool:
        return bool(
            await self.streams.client.set(
                name=self.lease_key,
                value=self.worker_id,
                nx=True,
                px=self.lease_ttl_ms,
            )
        )

    async def _renew_lease(self) -> bool:
        script = """
        if redis.call('GET', KEYS[1]) == ARGV[1] then
            return redis.call('PEXPIRE', KEYS[1], ARGV[2])
        else
            return 0
        end
        """
        res = await self.streams.client.eval(
            script, 1, self.lease_key, self.worker_id, self.lease_ttl_ms
        )
        return res == 1

    async def _release_lease(self) -> None:
        script = """
        if redis.call('GET', KEYS[1]) == ARGV[1] then
            return redis.call('DEL', KEYS[1])
        else
            return 0
        end
        """
        await self.streams.client.eval(script, 1, self.lease_key, self.worker_id)

    async def run(self) -> None:
        try:
            await self.setup()
        except RuntimeError as exc:
            print(f"[civ-worker] {exc}")
            return

        print(
            f"[civ-worker] starting loop worker_id={self.worker_id} "
            f"tick_interval={TICK_INTERVAL}s lease_key={self.lease_key}"
        )
        try:
            while not self._stop.is_set():
                if not await self._renew_lease():
                    if await self._acquire_lease():
                        print("[civ-worker] lease reacquired after lapse")
                    else:
                        print("[civ-worker] lost lease; stopping")
                        break

                if await self._check_restart():
                    await asyncio.sleep(TICK_INTERVAL)
                    continue

                try:
                    await self.tick_once()
                except Exception as exc:  # pragma: no cover - background safety
                    print(f"[civ-worker] error during tick: {exc}")

                await asyncio.sleep(TICK_INTERVAL)
        finally:
            self.dispatcher.cancel_all()
            try:
                await self._save()
                print(f"[civ-worker] saved game at tick={self.state.game_time}")
            except Exception as exc:
                print(f"[civ-worker] final save failed: {exc}")
            try:
                await self._release_lease()
            except Exception as exc:
                print(f"[civ-worker] lease release failed: {exc}")
            try:
                await self.streams.close()
            except Exception as exc:
                print(f"[civ-worker] redis close failed: {exc}")
            print("[civ-worker] stopping loop")

    def stop(self) -> None:
        self._stop.set()


async def main() -> None:
    worker = SimulationWorker()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)

    await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
