#!/usr/bin/env python3
"""
Crisis engine. At most one crisis is active at a time; it stays active until
the player solves it (pays the cost) or ignores it (eats the penalty).
"""
from __future__ import annotations

import random
from typing import Optional

from civrise.helper.world_helpers import add_log
from civrise.models import SIM_CONFIG, CATALOG, CrisisTemplate, NarrationRequest, SimulationState
from civrise.models.enums import Era, LogType, NarrationKind

CRISIS_CHANCE = SIM_CONFIG.crisis_modifiers.chance


def active_crisis(state: SimulationState) -> Optional[CrisisTemplate]:
    if state.active_crisis is None:
        return None
    return CATALOG.crisis(state.active_crisis)


def roll_crisis(state: SimulationState, rng: random.Random) -> Optional[str]:
    """Maybe start a crisis drawn from the current era's pool. Returns its id."""
    if state.active_crisis is not None or state.era == Era.TRIBAL:
        return None
    if rng.random() >= CRISIS_CHANCE:
        return None
    pool = CATALOG.crises_for_era(state.era)
    if not pool:
        return None
    crisis = rng.choice(pool)
    state.active_crisis = crisis.id
    add_log(state, f"CRISIS: {crisis.name}! {crisis.description}", LogType.CRISIS)
    return crisis.id


def can_afford_solution(state: SimulationState, crisis: CrisisTemplate) -> bool:
    res = state.resources
    cost = crisis.cost
    return (
        res.gold >= (cost.gold or 0)
        and res.population >= (cost.population or 0)
        and res.science >= (cost.science or 0)
        and res.soldiers >= (cost.soldiers or 0)
    )


def solve_crisis(state: SimulationState) -> bool:
    crisis = active_crisis(state)
    if crisis is None:
        return False
    if not can_afford_solution(state, crisis):
        add_log(state, "Not enough resources to resolve the crisis!", LogType.WARNING)
        return False

    res = state.resources
    res.gold -= crisis.cost.gold or 0
    res.population -= crisis.cost.population or 0
    res.science -= crisis.cost.science or 0
    res.soldiers -= crisis.cost.soldiers or 0
    state.active_crisis = None

    add_log(state, f"You handled the {crisis.name} crisis successfully.")
    state.narration_outbox.append(
        NarrationRequest(kind=NarrationKind.CRISIS, crisis_id=crisis.id, solved=True)
    )
    return True


def ignore_crisis(state: SimulationState) -> bool:
    crisis = active_crisis(state)
    if crisis is None:
        return False

    res = state.resources
    penalty = crisis.penalty
    # each penalty floors at zero on its own
    res.gold = max(0.0, res.gold - (penalty.gold or 0))
    res.population = max(0.0, res.population - (penalty.population or 0))
    res.land = max(0, res.land - (penalty.land or 0))
    res.science = max(0.0, res.science - (penalty.science or 0))
    state.active_crisis = None

    add_log(state, f"The {crisis.name} crisis left the people in ruin.", LogType.CRISIS)
    state.narration_outbox.append(
        NarrationRequest(kind=NarrationKind.CRISIS, crisis_id=crisis.id, solved=False)
    )
    return True
