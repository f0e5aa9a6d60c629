from .sim_config import SIM_CONFIG
from .catalog_config import CATALOG, Catalog, BuildingDefinition, Technology, CrisisTemplate
from .world_config import (
    Resources,
    BuildingState,
    Rival,
    Modifier,
    LogEntry,
    NarrationRequest,
    SimulationState,
    Action,
    TickSummary,
)
from .redis_config import REDIS_SETTINGS

__all__ = [
    "SIM_CONFIG",
    "CATALOG",
    "Catalog",
    "BuildingDefinition",
    "Technology",
    "CrisisTemplate",
    "Resources",
    "BuildingState",
    "Rival",
    "Modifier",
    "LogEntry",
    "NarrationRequest",
    "SimulationState",
    "Action",
    "TickSummary",
    "REDIS_SETTINGS",
]
