from civrise.helper.world_helpers import (
    add_log,
    create_civilization,
    definition_of,
    find_building,
    find_rival,
    idle_workers,
    normalize_seed,
    used_workers,
    worker_capacity,
)
from civrise.helper.rivals_helper import load_rivals


__all__ = [
    "add_log",
    "create_civilization",
    "definition_of",
    "find_building",
    "find_rival",
    "idle_workers",
    "normalize_seed",
    "used_workers",
    "worker_capacity",
    "load_rivals",
]
