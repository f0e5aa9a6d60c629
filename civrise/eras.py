#!/usr/bin/env python3
"""
Era progression: TRIBAL -> AGRICULTURAL -> INDUSTRIAL -> TECHNOLOGICAL.

Strictly forward. A transition starts a display countdown during which the
whole tick is paused (see world.advance_world).
"""
from __future__ import annotations

from typing import Optional

from civrise.helper.world_helpers import add_log
from civrise.models import SIM_CONFIG, NarrationRequest, SimulationState
from civrise.models.enums import Era, NarrationKind, next_era

ERA_REQUIREMENTS = SIM_CONFIG.era_requirements
ERA_TRANSITION_TICKS = SIM_CONFIG.tick_modifiers.era_transition_ticks


def is_transitioning(state: SimulationState) -> bool:
    return state.era_transition_remaining > 0


def check_era_progress(state: SimulationState) -> Optional[Era]:
    """Advance one era if the thresholds are met. Returns the new era, if any."""
    if is_transitioning(state):
        return None
    target = next_era(state.era)
    if target is None:
        return None
    req = ERA_REQUIREMENTS[target]
    res = state.resources
    if res.gold < req.gold or res.population < req.population:
        return None

    state.era = target
    state.era_transition_remaining = ERA_TRANSITION_TICKS
    for rival in state.rivals:
        rival.era = target

    if req.land_bonus > 0:
        res.max_land += req.land_bonus
        add_log(state, f"The new era pushed the borders outward! (+{req.land_bonus} land capacity)")

    state.narration_outbox.append(
        NarrationRequest(kind=NarrationKind.ERA_TRANSITION, era=target)
    )
    return target


def advance_transition(state: SimulationState) -> None:
    if state.era_transition_remaining > 0:
        state.era_transition_remaining -= 1


def dismiss_transition(state: SimulationState) -> bool:
    """The presentation layer finished showing the era change early."""
    if state.era_transition_remaining <= 0:
        return False
    state.era_transition_remaining = 0
    return True
