#!/usr/bin/env python3
"""
Production calculator: pure functions from the building/tech/modifier state
to per-tick resource deltas, plus military strength and dominant style.

Nothing in here mutates state except apply_production().
"""
from __future__ import annotations

from dataclasses import dataclass

from civrise.helper.world_helpers import definition_of
from civrise.models import SIM_CONFIG, CATALOG, BuildingDefinition, BuildingState, SimulationState
from civrise.models.enums import BuildingStyle

BASE_POPULATION_GROWTH = SIM_CONFIG.economy_modifiers.base_population_growth
EFFICIENCY_BASE = SIM_CONFIG.economy_modifiers.efficiency_base
POPULATION_EFFICIENCY_BASE = SIM_CONFIG.economy_modifiers.population_efficiency_base

DEFENSELESS_STRENGTH = SIM_CONFIG.military_modifiers.defenseless_strength
STRENGTH_PER_SOLDIER = SIM_CONFIG.military_modifiers.strength_per_soldier
FUTURE_TECH_BONUS = SIM_CONFIG.military_modifiers.future_tech_bonus


@dataclass(frozen=True)
class ProductionDeltas:
    gold: float
    science: float
    population: float


def effective_units(defn: BuildingDefinition, b: BuildingState) -> float:
    # Fractional on purpose: a half-staffed instance produces half.
    if defn.base_cost.workers > 0:
        return b.assigned_workers / defn.base_cost.workers
    return float(b.count)


def efficiency_multiplier(count: int) -> float:
    if count <= 1:
        return 1.0
    return EFFICIENCY_BASE ** count


def population_multiplier(count: int) -> float:
    # No count <= 1 guard here, unlike efficiency_multiplier.
    return POPULATION_EFFICIENCY_BASE ** count


def modifier_factor(state: SimulationState) -> float:
    mod = state.modifier
    if mod is None or mod.end_tick <= state.game_time:
        return 1.0
    return mod.factor


def compute_production(state: SimulationState) -> ProductionDeltas:
    income = 0.0
    science_income = 0.0
    pop_growth = BASE_POPULATION_GROWTH

    for b in state.buildings:
        defn = definition_of(b)
        units = effective_units(defn, b)
        if units <= 0:
            continue
        eff = efficiency_multiplier(b.count)
        income += defn.production.gold * units * eff
        science_income += defn.production.science * units * eff
        pop_growth += defn.production.population * units * population_multiplier(b.count)

    factor = modifier_factor(state)
    return ProductionDeltas(
        gold=income * factor,
        science=science_income * factor,
        population=pop_growth * factor,
    )


def apply_production(state: SimulationState, deltas: ProductionDeltas) -> None:
    res = state.resources
    res.gold = max(0.0, res.gold + deltas.gold)
    res.science = max(0.0, res.science + deltas.science)
    res.population = max(0.0, res.population + deltas.population)


def military_strength(state: SimulationState) -> float:
    """
    Total military strength, recomputed on every call.
    With no soldiers the empire is defenseless regardless of buildings or techs.
    """
    soldiers = state.resources.soldiers
    if soldiers <= 0:
        return DEFENSELESS_STRENGTH

    strength = soldiers * STRENGTH_PER_SOLDIER
    for b in state.buildings:
        defn = definition_of(b)
        if defn.production.military:
            strength += defn.production.military * effective_units(defn, b)
    for tech_id in state.unlocked_techs:
        tech = CATALOG.technology(tech_id)
        if tech is not None and tech.bonus.military:
            strength += tech.bonus.military

    strength *= 1.0 + state.future_tech_level * FUTURE_TECH_BONUS
    strength *= modifier_factor(state)
    return strength


def dominant_style(state: SimulationState) -> BuildingStyle:
    military = 0
    economic = 0
    for b in state.buildings:
        style = definition_of(b).style
        if style == BuildingStyle.MILITARY:
            military += b.count
        elif style == BuildingStyle.ECONOMIC:
            economic += b.count
    if military == 0 and economic == 0:
        return BuildingStyle.NONE
    return BuildingStyle.MILITARY if military >= economic else BuildingStyle.ECONOMIC
