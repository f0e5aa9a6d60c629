from __future__ import annotations

from enum import Enum
from typing import List


class Era(str, Enum):
    TRIBAL = "TRIBAL"
    AGRICULTURAL = "AGRICULTURAL"
    INDUSTRIAL = "INDUSTRIAL"
    TECHNOLOGICAL = "TECHNOLOGICAL"


ERA_ORDER: List[Era] = [
    Era.TRIBAL,
    Era.AGRICULTURAL,
    Era.INDUSTRIAL,
    Era.TECHNOLOGICAL,
]


def next_era(era: Era) -> Era | None:
    idx = ERA_ORDER.index(era)
    if idx + 1 >= len(ERA_ORDER):
        return None
    return ERA_ORDER[idx + 1]


class BuildingStyle(str, Enum):
    NONE = "NONE"
    MILITARY = "MILITARY"
    ECONOMIC = "ECONOMIC"


class Climate(str, Enum):
    TEMPERATE = "TEMPERATE"
    ARID = "ARID"
    ARCTIC = "ARCTIC"
    TROPICAL = "TROPICAL"


class Relation(str, Enum):
    WAR = "WAR"
    HOSTILE = "HOSTILE"
    NEUTRAL = "NEUTRAL"
    FRIENDLY = "FRIENDLY"
    ALLY = "ALLY"


# Ordered from worst to best; gifts move one step to the right.
RELATION_ORDER: List[Relation] = [
    Relation.WAR,
    Relation.HOSTILE,
    Relation.NEUTRAL,
    Relation.FRIENDLY,
    Relation.ALLY,
]


class Attitude(str, Enum):
    AGGRESSIVE = "AGGRESSIVE"
    DEFENSIVE = "DEFENSIVE"
    TRADER = "TRADER"


class LogType(str, Enum):
    GAME = "game"
    AI = "ai"
    CRISIS = "crisis"
    WARNING = "warning"
    TECH = "tech"
    WAR = "war"


class ActionKind(str, Enum):
    """Player actions accepted on the action stream."""

    GATHER = "gather"
    EXPAND_LAND = "expand_land"
    CONSTRUCT = "construct"
    ASSIGN_WORKERS = "assign_workers"
    RESEARCH = "research"
    FUTURE_RESEARCH = "future_research"
    SOLVE_CRISIS = "solve_crisis"
    IGNORE_CRISIS = "ignore_crisis"
    ATTACK = "attack"
    TRADE = "trade"
    GIFT = "gift"
    RECRUIT = "recruit"
    GOLDEN_AGE = "golden_age"
    FESTIVAL = "festival"
    SCIENCE_GRANT = "science_grant"
    LAND_RECLAMATION = "land_reclamation"
    DISMISS_ERA_TRANSITION = "dismiss_era_transition"
    CHRONICLE = "chronicle"
    EMPIRE_SNAPSHOT = "empire_snapshot"


class NarrationKind(str, Enum):
    CHRONICLE = "chronicle"
    ERA_TRANSITION = "era_transition"
    CRISIS = "crisis"
    EMPIRE_SNAPSHOT = "empire_snapshot"
