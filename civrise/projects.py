#!/usr/bin/env python3
"""
Imperial projects and other manual economy actions, plus the player-triggered
narration requests (chronicle, empire snapshot).
"""
from __future__ import annotations

import math
import random

from civrise.helper.world_helpers import add_log
from civrise.models import SIM_CONFIG, Modifier, NarrationRequest, SimulationState
from civrise.models.enums import LogType, NarrationKind

PROJECTS = SIM_CONFIG.project_modifiers


def modifier_active(state: SimulationState) -> bool:
    return state.modifier is not None and state.modifier.end_tick > state.game_time


def gather(state: SimulationState, rng: random.Random) -> bool:
    """Manual labour: always a little gold, sometimes land or science."""
    res = state.resources
    res.gold += PROJECTS.gather_gold
    chance = rng.random()
    if res.land < res.max_land and chance > PROJECTS.gather_land_roll:
        res.land += 1
    elif res.land >= res.max_land and chance > PROJECTS.gather_max_land_roll:
        res.max_land += 1
    if chance > PROJECTS.gather_science_roll:
        res.science += 1
    return True


def expand_land_cost(state: SimulationState) -> int:
    return math.floor(state.resources.max_land * PROJECTS.expand_land_cost_factor)


def expand_land(state: SimulationState) -> bool:
    res = state.resources
    cost = expand_land_cost(state)
    if res.gold < cost:
        add_log(state, "Not enough gold to expand the borders.", LogType.WARNING)
        return False
    res.gold -= cost
    res.max_land += PROJECTS.expand_land_amount
    add_log(state, f"New lands purchased! (+{PROJECTS.expand_land_amount} land capacity)")
    return True


def apply_modifier(state: SimulationState, name: str, factor: float, ticks: int) -> Modifier:
    """Fill the single modifier slot, replacing whatever was there."""
    mod = Modifier(name=name, factor=factor, end_tick=state.game_time + ticks)
    state.modifier = mod
    return mod


def clear_expired_modifier(state: SimulationState) -> bool:
    mod = state.modifier
    if mod is None or mod.end_tick > state.game_time:
        return False
    state.modifier = None
    add_log(state, f"The {mod.name} has come to an end.")
    return True


def golden_age_cost(state: SimulationState) -> int:
    return max(
        int(PROJECTS.golden_age_minimum_cost),
        math.floor(state.resources.gold * PROJECTS.golden_age_gold_share),
    )


def golden_age(state: SimulationState) -> bool:
    res = state.resources
    if modifier_active(state):
        add_log(state, f"{state.modifier.name} is already underway.", LogType.WARNING)
        return False
    if res.gold < PROJECTS.golden_age_minimum_cost:
        add_log(state, "The treasury cannot fund a Golden Age yet.", LogType.WARNING)
        return False
    res.gold -= golden_age_cost(state)
    apply_modifier(state, "Golden Age", PROJECTS.golden_age_factor, PROJECTS.golden_age_ticks)
    add_log(state, f"A Golden Age begins! All production x{PROJECTS.golden_age_factor:g} for {PROJECTS.golden_age_ticks} ticks.")
    return True


def festival_cost(state: SimulationState) -> int:
    return max(
        int(PROJECTS.festival_minimum_cost),
        math.floor(state.resources.gold * PROJECTS.festival_gold_share),
    )


def festival(state: SimulationState) -> bool:
    res = state.resources
    if res.gold < PROJECTS.festival_minimum_cost:
        add_log(state, "Not enough gold to hold a festival.", LogType.WARNING)
        return False
    res.gold -= festival_cost(state)
    res.population += PROJECTS.festival_population
    add_log(state, f"The great festival drew newcomers from afar. (+{PROJECTS.festival_population:g} population)")
    return True


def science_grant(state: SimulationState) -> bool:
    res = state.resources
    if res.gold < PROJECTS.science_grant_cost:
        add_log(state, "Not enough gold for a science grant.", LogType.WARNING)
        return False
    res.gold -= PROJECTS.science_grant_cost
    res.science += PROJECTS.science_grant_amount
    add_log(state, f"Scholars were funded. (+{PROJECTS.science_grant_amount:g} science)", LogType.TECH)
    return True


def land_reclamation_cost(state: SimulationState) -> int:
    return math.floor(state.resources.max_land * PROJECTS.land_reclamation_cost_factor)


def land_reclamation(state: SimulationState) -> bool:
    res = state.resources
    cost = land_reclamation_cost(state)
    if res.gold < cost:
        add_log(state, "Not enough gold to reclaim land.", LogType.WARNING)
        return False
    res.gold -= cost
    res.max_land += PROJECTS.land_reclamation_amount
    add_log(state, f"Marshes were drained and reclaimed. (+{PROJECTS.land_reclamation_amount} land capacity)")
    return True


# ---------- Narration ----------


def request_chronicle(state: SimulationState) -> bool:
    from civrise.state_utils import narration_snapshot  # late import to avoid cyclic import

    state.narration_outbox.append(
        NarrationRequest(kind=NarrationKind.CHRONICLE, era=state.era, snapshot=narration_snapshot(state))
    )
    return True


def request_empire_snapshot(state: SimulationState) -> bool:
    from civrise.state_utils import narration_snapshot  # late import to avoid cyclic import

    state.narration_outbox.append(
        NarrationRequest(kind=NarrationKind.EMPIRE_SNAPSHOT, era=state.era, snapshot=narration_snapshot(state))
    )
    return True
