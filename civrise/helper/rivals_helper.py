#!/usr/bin/env python3
from __future__ import annotations

import random
from typing import List

from civrise.models.catalog_config import Catalog
from civrise.models.enums import Attitude, Era, Relation
from civrise.models.sim_config import SimulationSettings
from civrise.models.world_config import Rival


def _initial_relation(attitude: Attitude) -> Relation:
    if attitude == Attitude.AGGRESSIVE:
        return Relation.HOSTILE
    return Relation.NEUTRAL


def load_rivals(
    sim_cfg: SimulationSettings, catalog: Catalog, rng: random.Random
) -> List[Rival]:
    """
    Build the rival roster for a new game.
    roster_size templates are drawn without replacement from the catalog;
    starting strength and wealth are rolled from the configured ranges.
    """
    mods = sim_cfg.rival_modifiers
    templates = list(catalog.rival_templates)
    if len(templates) < mods.roster_size:
        raise ValueError(
            "rival_templates must contain at least roster_size entries"
        )

    picked = rng.sample(templates, mods.roster_size)
    rivals: List[Rival] = []
    for idx, template in enumerate(picked):
        rivals.append(
            Rival(
                id=f"R{idx + 1}",
                name=template.name,
                strength=rng.uniform(mods.initial_strength_min, mods.initial_strength_max),
                wealth=rng.uniform(mods.initial_wealth_min, mods.initial_wealth_max),
                relation=_initial_relation(template.attitude),
                attitude=template.attitude,
                era=Era.TRIBAL,
            )
        )
    return rivals
