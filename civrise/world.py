#!/usr/bin/env python3
from __future__ import annotations


import random
from typing import Callable, Dict

from civrise.helper.world_helpers import create_civilization
from civrise.models import SIM_CONFIG
from civrise.models import Action, SimulationState, TickSummary
from civrise.models.enums import ActionKind
from civrise import buildings, crisis, eras, projects, rivals, technology
from civrise.production import apply_production, compute_production


CRISIS_BLOCKS_TICK = SIM_CONFIG.tick_modifiers.crisis_blocks_tick

__all__ = ["advance_world", "apply_action", "create_civilization"]


# ---------- Simulation (economy, eras, crises, rivals) ----------


def advance_world(state: SimulationState, rng: random.Random) -> TickSummary:
    """
    Advance the civilization by one tick.
    Stages run in a fixed order and each one sees what the earlier ones
    committed: worker reconciliation, production, depletion, era check,
    crisis draw, rival AI, then the tick counter.
    Player actions are never applied here; see apply_action().
    """
    # Era overlay freezes everything, including the clock
    if eras.is_transitioning(state):
        eras.advance_transition(state)
        return TickSummary(tick=state.game_time, paused=True)
    if CRISIS_BLOCKS_TICK and state.active_crisis is not None:
        return TickSummary(tick=state.game_time, paused=True)

    projects.clear_expired_modifier(state)

    # 0. Population drop: pull workers the population can no longer staff
    buildings.reconcile_worker_deficit(state)

    # 1. Resource generation
    deltas = compute_production(state)
    apply_production(state, deltas)

    # 2. Depletion
    depleted = buildings.roll_depletion(state, rng)

    # 3. Era progression
    era_changed = eras.check_era_progress(state)

    # 4. Crisis draw; an open crisis also holds the rivals back
    crisis_triggered = None
    raids = []
    if state.active_crisis is None:
        crisis_triggered = crisis.roll_crisis(state, rng)
        # 5. Rival AI
        if state.active_crisis is None:
            raids = rivals.rival_step(state, rng)

    state.game_time += 1
    return TickSummary(
        tick=state.game_time,
        paused=False,
        income=deltas.gold,
        science_income=deltas.science,
        population_growth=deltas.population,
        depleted=depleted,
        era_changed=era_changed,
        crisis_triggered=crisis_triggered,
        raids=raids,
    )


# ---------- Player actions ----------


def _need_target(action: Action) -> str:
    if not action.target:
        raise ValueError(f"{action.action.value} needs a target")
    return action.target


_HANDLERS: Dict[ActionKind, Callable[[SimulationState, Action, random.Random], bool]] = {
    ActionKind.GATHER: lambda s, a, rng: projects.gather(s, rng),
    ActionKind.EXPAND_LAND: lambda s, a, rng: projects.expand_land(s),
    ActionKind.CONSTRUCT: lambda s, a, rng: buildings.construct(s, _need_target(a)),
    ActionKind.ASSIGN_WORKERS: lambda s, a, rng: buildings.assign_workers(s, _need_target(a), a.amount or 0),
    ActionKind.RESEARCH: lambda s, a, rng: technology.research(s, _need_target(a)),
    ActionKind.FUTURE_RESEARCH: lambda s, a, rng: technology.future_research(s),
    ActionKind.SOLVE_CRISIS: lambda s, a, rng: crisis.solve_crisis(s),
    ActionKind.IGNORE_CRISIS: lambda s, a, rng: crisis.ignore_crisis(s),
    ActionKind.ATTACK: lambda s, a, rng: rivals.attack(s, _need_target(a), rng),
    ActionKind.TRADE: lambda s, a, rng: rivals.trade(s, _need_target(a), rng),
    ActionKind.GIFT: lambda s, a, rng: rivals.gift(s, _need_target(a)),
    ActionKind.RECRUIT: lambda s, a, rng: rivals.recruit(s, 1 if a.amount is None else a.amount),
    ActionKind.GOLDEN_AGE: lambda s, a, rng: projects.golden_age(s),
    ActionKind.FESTIVAL: lambda s, a, rng: projects.festival(s),
    ActionKind.SCIENCE_GRANT: lambda s, a, rng: projects.science_grant(s),
    ActionKind.LAND_RECLAMATION: lambda s, a, rng: projects.land_reclamation(s),
    ActionKind.DISMISS_ERA_TRANSITION: lambda s, a, rng: eras.dismiss_transition(s),
    ActionKind.CHRONICLE: lambda s, a, rng: projects.request_chronicle(s),
    ActionKind.EMPIRE_SNAPSHOT: lambda s, a, rng: projects.request_empire_snapshot(s),
}


def apply_action(state: SimulationState, action: Action, rng: random.Random) -> bool:
    """
    Apply one player action between ticks. Returns whether the state changed.
    Raises ValueError for an action that is missing its target.
    """
    handler = _HANDLERS[action.action]
    return handler(state, action, rng)
