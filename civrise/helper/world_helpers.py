import hashlib
import math
import random
import time
import uuid
from typing import Optional

# simulation config import
from civrise.models import SIM_CONFIG, CATALOG
from civrise.models import BuildingDefinition, BuildingState, LogEntry, Resources, Rival, SimulationState
from civrise.models.enums import Climate, LogType

from .rivals_helper import load_rivals

# Optional deterministic seed for new games
RAW_GAME_SEED = SIM_CONFIG.game_seed
INITIAL = SIM_CONFIG.initial_resources


# ---------- Lookups ----------


def find_building(state: SimulationState, building_id: str) -> Optional[BuildingState]:
    for b in state.buildings:
        if b.id == building_id:
            return b
    return None


def find_rival(state: SimulationState, rival_id: str) -> Optional[Rival]:
    for r in state.rivals:
        if r.id == rival_id:
            return r
    return None


def definition_of(b: BuildingState) -> BuildingDefinition:
    defn = CATALOG.building(b.id)
    if defn is None:
        raise KeyError(f"no building definition for {b.id!r}")
    return defn


def worker_capacity(b: BuildingState) -> int:
    return b.count * definition_of(b).base_cost.workers


def used_workers(state: SimulationState) -> int:
    return sum(b.assigned_workers for b in state.buildings)


def idle_workers(state: SimulationState) -> int:
    return math.floor(state.resources.population) - used_workers(state)


def add_log(state: SimulationState, text: str, kind: LogType = LogType.GAME) -> LogEntry:
    entry = LogEntry(
        id=uuid.uuid4().hex[:9],
        timestamp=time.strftime("%H:%M:%S"),
        tick=state.game_time,
        text=text,
        type=kind,
    )
    state.logs.append(entry)
    return entry


# ---------- Game creation ----------

SEED_BITS = 48
SEED_MASK = (1 << SEED_BITS) - 1


def normalize_seed(value: Optional[object]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        try:
            return int(cleaned, 0) & SEED_MASK
        except ValueError:
            digest = hashlib.sha256(cleaned.encode("utf-8")).hexdigest()
            return int(digest, 16) & SEED_MASK
    if isinstance(value, (bytes, bytearray)):
        digest = hashlib.sha256(value).hexdigest()
        return int(digest, 16) & SEED_MASK
    try:
        return int(value) & SEED_MASK  # type: ignore[arg-type]
    except (TypeError, ValueError):
        digest = hashlib.sha256(str(value).encode("utf-8")).hexdigest()
        return int(digest, 16) & SEED_MASK


def initial_resources() -> Resources:
    return Resources(
        population=float(INITIAL.population),
        gold=float(INITIAL.gold),
        land=INITIAL.land,
        max_land=INITIAL.max_land,
        science=float(INITIAL.science),
        soldiers=INITIAL.soldiers,
    )


def create_civilization(seed: Optional[object] = None) -> SimulationState:
    """
    Start a new game. When a seed (or sim_config['game_seed']) is provided,
    the climate and rival roster are deterministic.
    """
    effective_seed = normalize_seed(seed if seed is not None else RAW_GAME_SEED)
    if effective_seed is None:
        effective_seed = random.SystemRandom().randrange(1 << SEED_BITS)
    rng = random.Random(effective_seed)

    climate = rng.choice(list(Climate))
    state = SimulationState(
        resources=initial_resources(),
        buildings=[BuildingState(id=defn.id) for defn in CATALOG.buildings],
        rivals=load_rivals(SIM_CONFIG, CATALOG, rng),
        climate=climate,
        generator_seed=effective_seed,
    )
    add_log(
        state,
        f"Your tribe lit a small fire in the wild lands of a {climate.value.lower()} "
        f"climate. The struggle for survival begins.",
    )
    return state
