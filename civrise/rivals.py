#!/usr/bin/env python3
"""
Rival factions: combat, diplomacy, recruitment and the per-tick rival AI.

Rivals are never removed from the roster. Their attitude is fixed at game
start; relation moves only through player actions (attack, trade, gift).
"""
from __future__ import annotations

import math
import random
from typing import List

from civrise.helper.world_helpers import add_log, find_rival
from civrise.models import SIM_CONFIG, Rival, SimulationState
from civrise.models.enums import Attitude, LogType, Relation, RELATION_ORDER
from civrise.production import military_strength

BATTLE = SIM_CONFIG.battle_modifiers
RIVALS = SIM_CONFIG.rival_modifiers
DIPLOMACY = SIM_CONFIG.diplomacy_modifiers
PROJECTS = SIM_CONFIG.project_modifiers


# ---------- Combat ----------


def on_cooldown(state: SimulationState, rival: Rival) -> bool:
    return rival.cooldown_end > state.game_time


def attack(state: SimulationState, rival_id: str, rng: random.Random) -> bool:
    """
    Resolve one battle against a rival. Returns True on victory.
    A cooldown-blocked attack only logs; a defeat still costs soldiers.
    """
    rival = find_rival(state, rival_id)
    if rival is None:
        return False
    if on_cooldown(state, rival):
        left = rival.cooldown_end - state.game_time
        add_log(state, f"Our army is still recovering from the last campaign against {rival.name} ({left} ticks).", LogType.WAR)
        return False

    res = state.resources
    mine = military_strength(state)
    advantage = mine / max(1.0, rival.strength)
    random_factor = rng.uniform(BATTLE.random_min, BATTLE.random_max)
    score = advantage * random_factor

    rival.relation = Relation.WAR
    if score > BATTLE.victory_threshold:
        loot = math.floor(rival.wealth * BATTLE.loot_ratio)
        res.gold += loot
        res.max_land += BATTLE.land_reward
        res.soldiers = math.floor(res.soldiers * BATTLE.victory_survival)
        rival.strength *= BATTLE.rival_weaken_factor
        rival.wealth *= BATTLE.rival_weaken_factor
        rival.cooldown_end = state.game_time + BATTLE.cooldown_ticks
        add_log(
            state,
            f"VICTORY! We crushed {rival.name}, looted {loot} gold and seized "
            f"+{BATTLE.land_reward} land capacity.",
            LogType.WAR,
        )
        return True

    lost = res.soldiers - math.floor(res.soldiers * BATTLE.defeat_survival)
    res.soldiers -= lost
    add_log(state, f"DEFEAT! {rival.name} repelled our assault. {lost} soldiers fell.", LogType.WAR)
    return False


def recruit(state: SimulationState, amount: int) -> bool:
    res = state.resources
    if amount <= 0:
        add_log(state, "Recruits must be a positive number of soldiers.", LogType.WARNING)
        return False
    gold_cost = amount * PROJECTS.recruit_gold
    pop_cost = amount * PROJECTS.recruit_population
    if res.gold < gold_cost or res.population < pop_cost:
        add_log(state, f"Not enough gold or people to recruit {amount} soldiers.", LogType.WARNING)
        return False

    res.gold -= gold_cost
    res.population -= pop_cost
    res.soldiers += amount
    add_log(state, f"{amount} soldiers joined the army.")
    return True


# ---------- Diplomacy ----------


def trade(state: SimulationState, rival_id: str, rng: random.Random) -> bool:
    rival = find_rival(state, rival_id)
    if rival is None:
        return False
    res = state.resources
    if res.gold < DIPLOMACY.trade_cost:
        add_log(state, f"A caravan to {rival.name} needs {DIPLOMACY.trade_cost:g} gold.", LogType.WARNING)
        return False

    gold_back = math.floor(
        DIPLOMACY.trade_cost * rng.uniform(DIPLOMACY.trade_return_min, DIPLOMACY.trade_return_max)
    )
    science = rng.randint(DIPLOMACY.trade_science_min, DIPLOMACY.trade_science_max)
    if rival.attitude == Attitude.TRADER:
        science = math.floor(science * DIPLOMACY.trader_science_factor)

    res.gold += gold_back - DIPLOMACY.trade_cost
    res.science += science
    rival.wealth += DIPLOMACY.trade_wealth_gain
    if rival.relation == Relation.WAR:
        rival.relation = Relation.HOSTILE
    add_log(state, f"The caravan returned from {rival.name} with {gold_back} gold and {science} science.")
    return True


def gift(state: SimulationState, rival_id: str) -> bool:
    rival = find_rival(state, rival_id)
    if rival is None:
        return False
    res = state.resources
    if res.gold < DIPLOMACY.gift_cost:
        add_log(state, f"A worthy gift for {rival.name} needs {DIPLOMACY.gift_cost:g} gold.", LogType.WARNING)
        return False

    res.gold -= DIPLOMACY.gift_cost
    rival.wealth += DIPLOMACY.gift_cost
    idx = RELATION_ORDER.index(rival.relation)
    rival.relation = RELATION_ORDER[min(idx + 1, len(RELATION_ORDER) - 1)]
    add_log(state, f"{rival.name} accepted our gift. Relations are now {rival.relation.value}.")
    return True


# ---------- Rival AI ----------


def is_hostile(rival: Rival) -> bool:
    if rival.relation == Relation.WAR:
        return True
    return rival.attitude == Attitude.AGGRESSIVE and rival.relation not in (
        Relation.FRIENDLY,
        Relation.ALLY,
    )


def raid(state: SimulationState, rival: Rival, predatory: bool) -> None:
    res = state.resources
    stolen = math.floor(res.gold * RIVALS.raid_gold_ratio)
    killed = math.floor(res.soldiers * RIVALS.raid_soldier_ratio)
    res.gold -= stolen
    res.soldiers -= killed
    res.max_land = max(res.land, res.max_land - RIVALS.raid_land_damage)
    rival.wealth += stolen
    rival.strength += RIVALS.raid_strength_gain

    if predatory:
        text = (
            f"{rival.name} smelled weakness and overran our borders! "
            f"{stolen} gold plundered, {killed} soldiers lost."
        )
    else:
        text = f"{rival.name} raided our outskirts. {stolen} gold stolen, {killed} soldiers lost."
    add_log(state, text, LogType.WAR)


def rival_step(state: SimulationState, rng: random.Random) -> List[str]:
    """Grow every rival, then let hostile and stronger ones raid. Returns raider ids."""
    raiders: List[str] = []
    for rival in state.rivals:
        growth = RIVALS.growth_base + rng.uniform(0.0, 1.0)
        if rival.attitude == Attitude.AGGRESSIVE:
            growth *= RIVALS.aggressive_growth_factor
        rival.strength += growth
        rival.wealth += RIVALS.wealth_growth

        if not is_hostile(rival):
            continue
        mine = military_strength(state)
        if rival.strength <= mine:
            continue
        predatory = mine < RIVALS.predatory_ratio * rival.strength
        chance = RIVALS.predatory_raid_chance if predatory else RIVALS.raid_chance
        if rng.random() < chance:
            raid(state, rival, predatory)
            raiders.append(rival.id)
    return raiders
