#!/usr/bin/env python3
"""
Helpers for building public-facing snapshots from the in-memory state and
restoring state from a saved snapshot.

Snapshots are plain JSON-able dicts. Restoring merges the saved building
entries onto the current catalog so catalog edits between releases never
break an old save.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt, ValidationError

from civrise.helper.world_helpers import definition_of
from civrise.models import (
    SIM_CONFIG,
    CATALOG,
    BuildingState,
    LogEntry,
    Modifier,
    Resources,
    Rival,
    SimulationState,
)
from civrise.models.enums import Attitude, Climate, Era, LogType, Relation
from civrise.production import dominant_style

LOG_LIMIT = SIM_CONFIG.persistence_modifiers.log_limit
SAVE_DEBOUNCE = SIM_CONFIG.persistence_modifiers.save_debounce
SAVE_MAX_WAIT = SIM_CONFIG.persistence_modifiers.save_max_wait
ROSTER_SIZE = SIM_CONFIG.rival_modifiers.roster_size


class SnapshotError(ValueError):
    """A saved snapshot could not be turned back into a SimulationState."""


# ---------- Saved snapshot schema ----------


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SavedResources(_Lenient):
    population: NonNegativeFloat = 0.0
    gold: NonNegativeFloat = 0.0
    land: NonNegativeInt = 0
    max_land: NonNegativeInt = 0
    science: NonNegativeFloat = 0.0
    soldiers: NonNegativeInt = 0


class SavedBuilding(_Lenient):
    id: str
    count: NonNegativeInt = 0
    assigned_workers: NonNegativeInt = 0


class SavedRival(_Lenient):
    id: str
    name: str
    strength: NonNegativeFloat
    wealth: NonNegativeFloat
    relation: Relation
    attitude: Attitude
    era: Era = Era.TRIBAL
    cooldown_end: int = 0


class SavedLog(_Lenient):
    id: str
    timestamp: str = ""
    tick: int = 0
    text: str
    type: LogType = LogType.GAME


class SavedModifier(_Lenient):
    name: str
    factor: float
    end_tick: int


class SavedSnapshot(_Lenient):
    resources: SavedResources
    buildings: List[SavedBuilding] = Field(default_factory=list)
    unlocked_techs: List[str] = Field(default_factory=list)
    future_tech_level: NonNegativeInt = 0
    era: Era = Era.TRIBAL
    climate: Climate
    game_time: NonNegativeInt = 0
    # the roster is fixed for the whole game
    rivals: List[SavedRival] = Field(min_length=ROSTER_SIZE, max_length=ROSTER_SIZE)
    logs: List[SavedLog] = Field(default_factory=list)
    active_crisis: Optional[str] = None
    modifier: Optional[SavedModifier] = None
    era_transition_remaining: NonNegativeInt = 0
    generator_seed: Optional[int] = None


# ---------- Build ----------


def snapshot_from_state(state: SimulationState) -> Dict[str, Any]:
    """
    Generate a snapshot payload suitable for persistence and API consumers.
    Only the last LOG_LIMIT log entries are kept.
    """
    res = state.resources
    return {
        "resources": {
            "population": res.population,
            "gold": res.gold,
            "land": res.land,
            "max_land": res.max_land,
            "science": res.science,
            "soldiers": res.soldiers,
        },
        "buildings": [
            {"id": b.id, "count": b.count, "assigned_workers": b.assigned_workers}
            for b in state.buildings
        ],
        "unlocked_techs": list(state.unlocked_techs),
        "future_tech_level": state.future_tech_level,
        "era": state.era.value,
        "climate": state.climate.value,
        "game_time": state.game_time,
        "rivals": [
            {
                "id": r.id,
                "name": r.name,
                "strength": r.strength,
                "wealth": r.wealth,
                "relation": r.relation.value,
                "attitude": r.attitude.value,
                "era": r.era.value,
                "cooldown_end": r.cooldown_end,
            }
            for r in state.rivals
        ],
        "logs": [
            {
                "id": entry.id,
                "timestamp": entry.timestamp,
                "tick": entry.tick,
                "text": entry.text,
                "type": entry.type.value,
            }
            for entry in state.logs[-LOG_LIMIT:]
        ],
        "active_crisis": state.active_crisis,
        "modifier": (
            {
                "name": state.modifier.name,
                "factor": state.modifier.factor,
                "end_tick": state.modifier.end_tick,
            }
            if state.modifier is not None
            else None
        ),
        "era_transition_remaining": state.era_transition_remaining,
        "generator_seed": state.generator_seed,
    }


def narration_snapshot(state: SimulationState) -> Dict[str, Any]:
    """Compact view of the empire handed to the narrator."""
    res = state.resources
    built = []
    for b in state.buildings:
        if b.count > 0:
            built.append({"name": definition_of(b).name, "count": b.count})
    techs = []
    for tech_id in state.unlocked_techs:
        tech = CATALOG.technology(tech_id)
        techs.append(tech.name if tech is not None else tech_id)
    return {
        "era": state.era.value,
        "climate": state.climate.value,
        "game_time": state.game_time,
        "population": int(res.population),
        "gold": int(res.gold),
        "land": res.land,
        "max_land": res.max_land,
        "science": int(res.science),
        "soldiers": res.soldiers,
        "buildings": built,
        "technologies": techs,
        "dominant_style": dominant_style(state).value,
    }


# ---------- Restore ----------


def _merge_buildings(saved: List[SavedBuilding]) -> List[BuildingState]:
    by_id = {b.id: b for b in saved}
    merged: List[BuildingState] = []
    for defn in CATALOG.buildings:
        entry = by_id.get(defn.id)
        if entry is None:
            merged.append(BuildingState(id=defn.id))
            continue
        capacity = entry.count * defn.base_cost.workers
        merged.append(
            BuildingState(
                id=defn.id,
                count=entry.count,
                assigned_workers=min(entry.assigned_workers, capacity),
            )
        )
    return merged


def state_from_snapshot(data: Any) -> SimulationState:
    """
    Rebuild a SimulationState from a snapshot dict.
    Raises SnapshotError when the payload is malformed.
    """
    if not isinstance(data, dict):
        raise SnapshotError(f"snapshot must be an object, got {type(data).__name__}")
    try:
        saved = SavedSnapshot.model_validate(data)
    except ValidationError as exc:
        raise SnapshotError(f"invalid snapshot: {exc.error_count()} errors") from exc

    r = saved.resources
    resources = Resources(
        population=r.population,
        gold=r.gold,
        land=r.land,
        max_land=max(r.max_land, r.land),
        science=r.science,
        soldiers=r.soldiers,
    )

    # unknown ids are dropped; order and uniqueness preserved
    techs: List[str] = []
    for tech_id in saved.unlocked_techs:
        if CATALOG.technology(tech_id) is not None and tech_id not in techs:
            techs.append(tech_id)

    active_crisis = saved.active_crisis
    if active_crisis is not None and CATALOG.crisis(active_crisis) is None:
        active_crisis = None

    modifier = None
    if saved.modifier is not None:
        modifier = Modifier(
            name=saved.modifier.name,
            factor=saved.modifier.factor,
            end_tick=saved.modifier.end_tick,
        )

    return SimulationState(
        resources=resources,
        buildings=_merge_buildings(saved.buildings),
        rivals=[
            Rival(
                id=sr.id,
                name=sr.name,
                strength=sr.strength,
                wealth=sr.wealth,
                relation=sr.relation,
                attitude=sr.attitude,
                era=sr.era,
                cooldown_end=sr.cooldown_end,
            )
            for sr in saved.rivals
        ],
        climate=saved.climate,
        era=saved.era,
        unlocked_techs=techs,
        future_tech_level=saved.future_tech_level,
        game_time=saved.game_time,
        logs=[
            LogEntry(id=sl.id, timestamp=sl.timestamp, tick=sl.tick, text=sl.text, type=sl.type)
            for sl in saved.logs
        ],
        active_crisis=active_crisis,
        modifier=modifier,
        era_transition_remaining=saved.era_transition_remaining,
        generator_seed=saved.generator_seed,
    )


# ---------- Save scheduling ----------


class SnapshotDebouncer:
    """
    Decides when the worker should persist. A save is due `delay` seconds
    after the last change, or `max_wait` seconds after the first unsaved
    change if changes keep arriving.
    """

    def __init__(self, delay: float = SAVE_DEBOUNCE, max_wait: float = SAVE_MAX_WAIT) -> None:
        self.delay = delay
        self.max_wait = max_wait
        self._first_change: Optional[float] = None
        self._last_change: Optional[float] = None

    @property
    def dirty(self) -> bool:
        return self._last_change is not None

    def touch(self, now: float) -> None:
        if self._first_change is None:
            self._first_change = now
        self._last_change = now

    def due(self, now: float) -> bool:
        if self._last_change is None or self._first_change is None:
            return False
        if now - self._last_change >= self.delay:
            return True
        return now - self._first_change >= self.max_wait

    def mark_saved(self) -> None:
        self._first_change = None
        self._last_change = None
