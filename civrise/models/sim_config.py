from pathlib import Path
from pydantic import BaseModel, NonNegativeFloat, NonNegativeInt, PositiveInt, PositiveFloat
from pydantic import Field  # type: ignore
from typing import Annotated, Dict

from .enums import Era

# Tuning constants for the engine. Loaded once per process at import time;
# services never write it back.

Probability = Annotated[float, Field(ge=0, le=1)]


class TickModifiers(BaseModel):
    tick_interval: PositiveFloat
    era_transition_ticks: NonNegativeInt
    crisis_blocks_tick: bool


class InitialResources(BaseModel):
    population: NonNegativeFloat
    gold: NonNegativeFloat
    land: NonNegativeInt
    max_land: NonNegativeInt
    science: NonNegativeFloat
    soldiers: NonNegativeInt


class EconomyModifiers(BaseModel):
    base_population_growth: NonNegativeFloat
    cost_growth: PositiveFloat
    efficiency_base: PositiveFloat
    population_efficiency_base: PositiveFloat


class EraRequirement(BaseModel):
    gold: NonNegativeFloat
    population: NonNegativeFloat
    land_bonus: NonNegativeInt


class CrisisModifiers(BaseModel):
    chance: Probability


class MilitaryModifiers(BaseModel):
    defenseless_strength: NonNegativeFloat
    strength_per_soldier: NonNegativeFloat
    future_tech_bonus: NonNegativeFloat


class BattleModifiers(BaseModel):
    victory_threshold: PositiveFloat
    random_min: PositiveFloat
    random_max: PositiveFloat
    loot_ratio: Probability
    land_reward: NonNegativeInt
    victory_survival: Probability
    defeat_survival: Probability
    rival_weaken_factor: Probability
    cooldown_ticks: NonNegativeInt


class RivalModifiers(BaseModel):
    roster_size: PositiveInt
    initial_strength_min: NonNegativeFloat
    initial_strength_max: NonNegativeFloat
    initial_wealth_min: NonNegativeFloat
    initial_wealth_max: NonNegativeFloat
    growth_base: NonNegativeFloat
    aggressive_growth_factor: PositiveFloat
    wealth_growth: NonNegativeFloat
    raid_chance: Probability
    predatory_raid_chance: Probability
    predatory_ratio: Probability
    raid_gold_ratio: Probability
    raid_soldier_ratio: Probability
    raid_land_damage: NonNegativeInt
    raid_strength_gain: NonNegativeFloat


class DiplomacyModifiers(BaseModel):
    trade_cost: NonNegativeFloat
    trade_return_min: NonNegativeFloat
    trade_return_max: NonNegativeFloat
    trade_science_min: NonNegativeInt
    trade_science_max: NonNegativeInt
    trader_science_factor: PositiveFloat
    trade_wealth_gain: NonNegativeFloat
    gift_cost: NonNegativeFloat


class ResearchModifiers(BaseModel):
    future_base_cost: PositiveFloat
    future_cost_growth: PositiveFloat
    future_land_bonus: NonNegativeInt


class ProjectModifiers(BaseModel):
    recruit_gold: NonNegativeFloat
    recruit_population: NonNegativeFloat
    gather_gold: NonNegativeFloat
    gather_land_roll: Probability
    gather_max_land_roll: Probability
    gather_science_roll: Probability
    expand_land_cost_factor: PositiveFloat
    expand_land_amount: PositiveInt
    golden_age_minimum_cost: NonNegativeFloat
    golden_age_gold_share: Probability
    golden_age_factor: PositiveFloat
    golden_age_ticks: PositiveInt
    festival_minimum_cost: NonNegativeFloat
    festival_gold_share: Probability
    festival_population: NonNegativeFloat
    science_grant_cost: NonNegativeFloat
    science_grant_amount: NonNegativeFloat
    land_reclamation_cost_factor: PositiveFloat
    land_reclamation_amount: PositiveInt


class PersistenceModifiers(BaseModel):
    log_limit: PositiveInt
    save_debounce: PositiveFloat
    save_max_wait: PositiveFloat


class SimulationSettings(BaseModel):
    tick_modifiers: TickModifiers
    initial_resources: InitialResources
    economy_modifiers: EconomyModifiers
    era_requirements: Dict[Era, EraRequirement]
    crisis_modifiers: CrisisModifiers
    military_modifiers: MilitaryModifiers
    battle_modifiers: BattleModifiers
    rival_modifiers: RivalModifiers
    diplomacy_modifiers: DiplomacyModifiers
    research_modifiers: ResearchModifiers
    project_modifiers: ProjectModifiers
    persistence_modifiers: PersistenceModifiers
    game_seed: int | None


_BASE_DIR = Path(__file__).resolve().parents[1]
_CONFIG_PATH = _BASE_DIR / "config" / "sim_config.json"

SIM_CONFIG = SimulationSettings.model_validate_json(
    _CONFIG_PATH.read_text(encoding="utf-8")
)
