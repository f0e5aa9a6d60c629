#!/usr/bin/env python3
"""
Narrator port.

The simulation never waits on narrative text. Core modules queue
NarrationRequest objects on state.narration_outbox; after each tick the worker
hands them to a NarrationDispatcher, which runs each request as a background
task against a Narrator and appends whatever text comes back as an `ai` log
entry. A failing, empty or missing answer simply means no narrative.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Set

from civrise.helper.world_helpers import add_log
from civrise.models import CATALOG, CrisisTemplate, NarrationRequest, SimulationState
from civrise.models.enums import BuildingStyle, Era, LogType, NarrationKind

STYLE_ATMOSPHERE = {
    BuildingStyle.MILITARY: "Strong fortress walls, military banners, disciplined, dark and red tones.",
    BuildingStyle.ECONOMIC: "Busy markets, golden rooftops, trade caravans, rich and amber tones.",
    BuildingStyle.NONE: "Peaceful village, balanced architecture, harmonious colors.",
}


class Narrator(Protocol):
    async def generate_chronicle(self, snapshot: Dict[str, Any]) -> Optional[str]: ...

    async def generate_era_transition(self, era: Era) -> Optional[str]: ...

    async def generate_crisis_log(self, crisis: CrisisTemplate, solved: bool) -> Optional[str]: ...

    async def generate_empire_snapshot(
        self, snapshot: Dict[str, Any], dominant_style: BuildingStyle
    ) -> Optional[str]: ...


def image_prompt(snapshot: Dict[str, Any], dominant_style: BuildingStyle) -> str:
    """Prompt for an image backend; kept here so every backend draws the same city."""
    built = ", ".join(f"{b['count']} {b['name']}" for b in snapshot.get("buildings", []))
    return (
        "Digital concept art of a civilization city. "
        f"Era: {snapshot.get('era')}. "
        f"Climate: {snapshot.get('climate')}. "
        f"Buildings visible: {built or 'Small settlement'}. "
        f"Atmosphere: {STYLE_ATMOSPHERE[dominant_style]} "
        "High quality, detailed, isometric view or wide angle."
    )


class TemplateNarrator:
    """Offline narrator producing fixed texts. Draws no images."""

    async def generate_chronicle(self, snapshot: Dict[str, Any]) -> Optional[str]:
        climate = str(snapshot.get("climate", "")).lower()
        population = snapshot.get("population", 0)
        built = snapshot.get("buildings") or []
        if not built:
            return (
                f"In the {climate} wilds, {population} souls huddle around a single fire. "
                "The historians remember this age in silence..."
            )
        biggest = max(built, key=lambda b: b["count"])
        return (
            f"Under a {climate} sky, {population} people labour among "
            f"{biggest['count']} {biggest['name']}. The chroniclers call it an age of toil."
        )

    async def generate_era_transition(self, era: Era) -> Optional[str]:
        return f"The dawn of the {era.value.title()} era has broken."

    async def generate_crisis_log(self, crisis: CrisisTemplate, solved: bool) -> Optional[str]:
        if solved:
            return f"{crisis.name} was overcome."
        return f"{crisis.name} dealt great damage; dark days followed."

    async def generate_empire_snapshot(
        self, snapshot: Dict[str, Any], dominant_style: BuildingStyle
    ) -> Optional[str]:
        return None


ImageCallback = Callable[[Optional[str]], Awaitable[None]]


class NarrationDispatcher:
    def __init__(self, narrator: Narrator, on_image: Optional[ImageCallback] = None) -> None:
        self.narrator = narrator
        self.on_image = on_image
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def drain(self, state: SimulationState) -> int:
        """Start a background task for every queued request. Returns how many."""
        requests = list(state.narration_outbox)
        state.narration_outbox.clear()
        for req in requests:
            task = asyncio.create_task(self._run(state, req))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return len(requests)

    async def _call(self, req: NarrationRequest) -> Optional[str]:
        if req.kind == NarrationKind.CHRONICLE:
            return await self.narrator.generate_chronicle(req.snapshot or {})
        if req.kind == NarrationKind.ERA_TRANSITION:
            if req.era is None:
                return None
            return await self.narrator.generate_era_transition(req.era)
        if req.kind == NarrationKind.CRISIS:
            crisis = CATALOG.crisis(req.crisis_id) if req.crisis_id else None
            if crisis is None:
                return None
            return await self.narrator.generate_crisis_log(crisis, bool(req.solved))
        if req.kind == NarrationKind.EMPIRE_SNAPSHOT:
            snapshot = req.snapshot or {}
            style = BuildingStyle(snapshot.get("dominant_style", BuildingStyle.NONE.value))
            return await self.narrator.generate_empire_snapshot(snapshot, style)
        return None

    async def _run(self, state: SimulationState, req: NarrationRequest) -> None:
        try:
            result = await self._call(req)
        except Exception as exc:
            print(f"[narrator] {req.kind.value} request failed: {exc}")
            result = None

        if req.kind == NarrationKind.EMPIRE_SNAPSHOT:
            if self.on_image is None:
                return
            try:
                await self.on_image(result or None)
            except Exception as exc:
                print(f"[narrator] image delivery failed: {exc}")
            return
        if result:
            add_log(state, result, LogType.AI)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
