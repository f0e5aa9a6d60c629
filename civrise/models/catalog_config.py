from functools import cached_property
from pathlib import Path
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, NonNegativeFloat, NonNegativeInt, model_validator
from pydantic import Field  # type: ignore

from .enums import Attitude, BuildingStyle, Era


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class BuildingCost(_Frozen):
    gold: NonNegativeFloat
    land: NonNegativeInt
    workers: NonNegativeInt  # workers needed to fully staff one instance


class Production(_Frozen):
    """Per fully-staffed instance, per tick. Negative gold is upkeep."""

    gold: float = 0.0
    science: float = 0.0
    population: float = 0.0
    military: float = 0.0


class BuildingDefinition(_Frozen):
    id: Annotated[str, Field(min_length=1)]
    name: str
    description: str = ""
    era: Era
    base_cost: BuildingCost
    production: Production
    depletion_chance: Optional[Annotated[float, Field(gt=0, le=1)]] = None
    style: BuildingStyle = BuildingStyle.NONE
    required_tech: Optional[str] = None


class TechBonus(_Frozen):
    max_land: NonNegativeInt = 0
    military: NonNegativeFloat = 0.0


class Technology(_Frozen):
    id: Annotated[str, Field(min_length=1)]
    name: str
    description: str = ""
    cost: NonNegativeFloat
    era: Era
    prerequisite: Optional[str] = None
    unlocks_building: Optional[str] = None
    bonus: TechBonus = TechBonus()


class CrisisCost(_Frozen):
    gold: Optional[NonNegativeFloat] = None
    population: Optional[NonNegativeFloat] = None
    science: Optional[NonNegativeFloat] = None
    soldiers: Optional[NonNegativeInt] = None


class CrisisPenalty(_Frozen):
    gold: Optional[NonNegativeFloat] = None
    population: Optional[NonNegativeFloat] = None
    land: Optional[NonNegativeInt] = None
    science: Optional[NonNegativeFloat] = None


class CrisisTemplate(_Frozen):
    id: Annotated[str, Field(min_length=1)]
    name: str
    description: str = ""
    era: Era
    cost: CrisisCost
    penalty: CrisisPenalty


class RivalTemplate(_Frozen):
    name: Annotated[str, Field(min_length=1)]
    attitude: Attitude


class Catalog(_Frozen):
    buildings: List[BuildingDefinition]
    technologies: List[Technology]
    crises: List[CrisisTemplate]
    rival_templates: List[RivalTemplate]

    @model_validator(mode="after")
    def _check_references(self) -> "Catalog":
        building_ids = [b.id for b in self.buildings]
        tech_ids = [t.id for t in self.technologies]
        if len(set(building_ids)) != len(building_ids):
            raise ValueError("duplicate building id in catalog")
        if len(set(tech_ids)) != len(tech_ids):
            raise ValueError("duplicate technology id in catalog")
        for b in self.buildings:
            if b.required_tech is not None and b.required_tech not in tech_ids:
                raise ValueError(f"building {b.id} requires unknown tech {b.required_tech}")
        for t in self.technologies:
            if t.prerequisite is not None and t.prerequisite not in tech_ids:
                raise ValueError(f"tech {t.id} has unknown prerequisite {t.prerequisite}")
            if t.unlocks_building is not None and t.unlocks_building not in building_ids:
                raise ValueError(f"tech {t.id} unlocks unknown building {t.unlocks_building}")
        return self

    # built on first lookup; the catalog is frozen so they never go stale
    @cached_property
    def building_index(self) -> Dict[str, BuildingDefinition]:
        return {b.id: b for b in self.buildings}

    @cached_property
    def technology_index(self) -> Dict[str, Technology]:
        return {t.id: t for t in self.technologies}

    @cached_property
    def crisis_index(self) -> Dict[str, CrisisTemplate]:
        return {c.id: c for c in self.crises}

    def building(self, building_id: str) -> Optional[BuildingDefinition]:
        return self.building_index.get(building_id)

    def technology(self, tech_id: str) -> Optional[Technology]:
        return self.technology_index.get(tech_id)

    def crisis(self, crisis_id: str) -> Optional[CrisisTemplate]:
        return self.crisis_index.get(crisis_id)

    def crises_for_era(self, era: Era) -> List[CrisisTemplate]:
        return [c for c in self.crises if c.era == era]


_BASE_DIR = Path(__file__).resolve().parents[1]
_CATALOG_PATH = _BASE_DIR / "config" / "catalog.json"

CATALOG = Catalog.model_validate_json(_CATALOG_PATH.read_text(encoding="utf-8"))
