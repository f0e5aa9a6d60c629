from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from .enums import ActionKind, Attitude, Climate, Era, LogType, NarrationKind, Relation


@dataclass
class Resources:
    population: float = 0.0
    gold: float = 0.0
    land: int = 0
    max_land: int = 0  # land <= max_land after every mutation
    science: float = 0.0
    soldiers: int = 0


@dataclass
class BuildingState:
    id: str  # building definition id
    count: int = 0
    assigned_workers: int = 0  # 0 <= assigned_workers <= count * base_cost.workers


@dataclass
class Rival:
    id: str
    name: str
    strength: float
    wealth: float
    relation: Relation
    attitude: Attitude
    era: Era
    cooldown_end: int = 0  # game_time until which attacks are blocked


@dataclass
class Modifier:
    """Single-slot global production multiplier, e.g. a Golden Age."""

    name: str
    factor: float
    end_tick: int


@dataclass
class LogEntry:
    id: str
    timestamp: str
    tick: int
    text: str
    type: LogType


@dataclass
class NarrationRequest:
    """Outbound request for the narrator; drained by the worker after each tick."""

    kind: NarrationKind
    era: Optional[Era] = None
    crisis_id: Optional[str] = None
    solved: Optional[bool] = None
    snapshot: Optional[Dict[str, Any]] = None


@dataclass
class SimulationState:
    resources: Resources
    buildings: List[BuildingState]  # one per catalog definition, in catalog order
    rivals: List[Rival]
    climate: Climate
    era: Era = Era.TRIBAL
    unlocked_techs: List[str] = field(default_factory=list)  # append-only
    future_tech_level: int = 0
    game_time: int = 0
    logs: List[LogEntry] = field(default_factory=list)  # append-only
    active_crisis: Optional[str] = None  # crisis template id
    modifier: Optional[Modifier] = None
    era_transition_remaining: int = 0  # ticks of era display left; > 0 pauses the sim
    generator_seed: Optional[int] = None

    # Not persisted
    narration_outbox: List[NarrationRequest] = field(default_factory=list)


@dataclass
class Action:
    """A player action, applied between ticks."""

    action: ActionKind
    target: Optional[str] = None  # building, tech or rival id
    amount: Optional[int] = None  # worker delta or recruit count
    source: Optional[str] = None


@dataclass
class TickSummary:
    """Outcome of a single tick."""

    tick: int
    paused: bool
    income: float = 0.0
    science_income: float = 0.0
    population_growth: float = 0.0
    depleted: List[str] = field(default_factory=list)
    era_changed: Optional[Era] = None
    crisis_triggered: Optional[str] = None
    raids: List[str] = field(default_factory=list)
