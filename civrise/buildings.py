#!/usr/bin/env python3
"""
Building construction, worker assignment, depletion and population-deficit
reconciliation.

Every operation either succeeds atomically or leaves the state untouched and
returns False. Rejections never raise.
"""
from __future__ import annotations

import math
import random
from typing import List

from civrise.helper.world_helpers import (
    add_log,
    definition_of,
    find_building,
    idle_workers,
    used_workers,
    worker_capacity,
)
from civrise.models import SIM_CONFIG, CATALOG, BuildingDefinition, BuildingState, SimulationState
from civrise.models.enums import LogType

COST_GROWTH = SIM_CONFIG.economy_modifiers.cost_growth


def construction_cost(defn: BuildingDefinition, count: int) -> int:
    return math.floor(defn.base_cost.gold * COST_GROWTH ** count)


def is_constructible(state: SimulationState, defn: BuildingDefinition) -> bool:
    return defn.required_tech is None or defn.required_tech in state.unlocked_techs


def construct(state: SimulationState, building_id: str) -> bool:
    b = find_building(state, building_id)
    defn = CATALOG.building(building_id)
    if b is None or defn is None:
        return False
    if not is_constructible(state, defn):
        return False

    res = state.resources
    gold_cost = construction_cost(defn, b.count)
    land_cost = defn.base_cost.land
    if res.gold < gold_cost:
        add_log(state, f"Not enough gold to build {defn.name} ({gold_cost} needed).", LogType.WARNING)
        return False
    if res.max_land - res.land < land_cost:
        add_log(state, f"Not enough free land to build {defn.name}.", LogType.WARNING)
        return False

    # idle workforce is measured before the new instance exists
    idle = idle_workers(state)
    res.gold -= gold_cost
    res.land += land_cost
    b.count += 1
    if defn.base_cost.workers > 0:
        to_assign = min(idle, defn.base_cost.workers)
        if to_assign > 0:
            b.assigned_workers += to_assign

    add_log(state, f"{defn.name} built.")
    return True


def assign_workers(state: SimulationState, building_id: str, delta: int) -> bool:
    b = find_building(state, building_id)
    if b is None:
        return False
    if delta == 0:
        return False

    if delta > 0:
        if idle_workers(state) < delta:
            add_log(state, "Not enough idle workers!", LogType.WARNING)
            return False
        if b.assigned_workers + delta > worker_capacity(b):
            return False
    elif b.assigned_workers + delta < 0:
        return False

    b.assigned_workers += delta
    return True


def reconcile_worker_deficit(state: SimulationState) -> int:
    """
    Pull workers off buildings until the workforce fits the population.
    Walks the building list backwards so the last-defined buildings are
    destaffed first. Returns the number of workers removed.
    """
    deficit = used_workers(state) - math.floor(state.resources.population)
    if deficit <= 0:
        return 0

    removed = 0
    for b in reversed(state.buildings):
        if deficit <= 0:
            break
        if b.assigned_workers > 0:
            reduce_by = min(b.assigned_workers, deficit)
            b.assigned_workers -= reduce_by
            deficit -= reduce_by
            removed += reduce_by
    return removed


def working_ratio(defn: BuildingDefinition, b: BuildingState) -> float:
    if defn.base_cost.workers > 0:
        return b.assigned_workers / (b.count * defn.base_cost.workers)
    return 1.0


def roll_depletion(state: SimulationState, rng: random.Random) -> List[str]:
    """Destroy at most one instance per building type. Returns depleted ids."""
    depleted: List[str] = []
    for b in state.buildings:
        defn = definition_of(b)
        if b.count <= 0 or not defn.depletion_chance:
            continue
        ratio = working_ratio(defn, b)
        if ratio <= 0:
            continue
        if rng.random() < defn.depletion_chance * ratio:
            b.count -= 1
            b.assigned_workers = min(b.assigned_workers, b.count * defn.base_cost.workers)
            depleted.append(b.id)
            add_log(state, f"{defn.name} ran dry and collapsed!", LogType.WARNING)
    return depleted
