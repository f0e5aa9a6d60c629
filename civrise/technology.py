#!/usr/bin/env python3
"""
Technology graph: one-off research along a prerequisite DAG plus the
repeatable late-game tier.

Call order: player actions only, never from the tick.

Public helpers used by other modules:
    is_available(state, tech)  -> bool
    available_techs(state)     -> list[Technology]
    future_research_cost(lvl)  -> int
"""
from __future__ import annotations

import math
from typing import List

from civrise.helper.world_helpers import add_log
from civrise.models import SIM_CONFIG, CATALOG, SimulationState, Technology
from civrise.models.enums import Era, LogType

FUTURE_BASE_COST = SIM_CONFIG.research_modifiers.future_base_cost
FUTURE_COST_GROWTH = SIM_CONFIG.research_modifiers.future_cost_growth
FUTURE_LAND_BONUS = SIM_CONFIG.research_modifiers.future_land_bonus
FUTURE_MILITARY_BONUS = SIM_CONFIG.military_modifiers.future_tech_bonus


def is_available(state: SimulationState, tech: Technology) -> bool:
    if tech.id in state.unlocked_techs:
        return False
    return tech.prerequisite is None or tech.prerequisite in state.unlocked_techs


def available_techs(state: SimulationState) -> List[Technology]:
    return [t for t in CATALOG.technologies if is_available(state, t)]


def research(state: SimulationState, tech_id: str) -> bool:
    tech = CATALOG.technology(tech_id)
    if tech is None or not is_available(state, tech):
        return False
    res = state.resources
    if res.science < tech.cost:
        return False

    res.science -= tech.cost
    state.unlocked_techs.append(tech.id)
    text = f"{tech.name} discovered!"
    if tech.bonus.max_land:
        res.max_land += tech.bonus.max_land
        text += f" (+{tech.bonus.max_land} land capacity)"
    add_log(state, text, LogType.TECH)
    return True


def future_research_cost(level: int) -> int:
    return math.floor(FUTURE_BASE_COST * FUTURE_COST_GROWTH ** level)


def future_research(state: SimulationState) -> bool:
    """Repeatable research; only offered in the technological era."""
    if state.era != Era.TECHNOLOGICAL:
        return False
    cost = future_research_cost(state.future_tech_level)
    res = state.resources
    if res.science < cost:
        return False

    res.science -= cost
    state.future_tech_level += 1
    res.max_land += FUTURE_LAND_BONUS
    bonus_pct = round(state.future_tech_level * FUTURE_MILITARY_BONUS * 100)
    add_log(
        state,
        f"Future Technology level {state.future_tech_level} reached "
        f"(+{FUTURE_LAND_BONUS} land capacity, +{bonus_pct}% military).",
        LogType.TECH,
    )
    return True
