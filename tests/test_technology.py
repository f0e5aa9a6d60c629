import pytest

from civrise.models.enums import Era, LogType
from civrise.technology import (
    available_techs,
    future_research,
    future_research_cost,
    research,
)


class TestResearch:
    def test_prerequisite_missing(self, state):
        state.resources.science = 1000
        assert research(state, "agriculture") is False
        assert state.unlocked_techs == []
        assert state.resources.science == 1000

    def test_prerequisite_chain(self, state):
        state.resources.science = 110
        assert research(state, "stone_tools")
        assert research(state, "agriculture")
        assert state.unlocked_techs == ["stone_tools", "agriculture"]
        assert state.resources.science == 0

    def test_not_enough_science(self, state):
        state.resources.science = 9
        assert research(state, "stone_tools") is False
        assert state.unlocked_techs == []

    def test_already_unlocked(self, state):
        state.resources.science = 100
        assert research(state, "stone_tools")
        assert research(state, "stone_tools") is False
        assert state.unlocked_techs == ["stone_tools"]
        assert state.resources.science == 90

    def test_unknown_tech(self, state):
        state.resources.science = 100
        assert research(state, "time_travel") is False

    def test_land_bonus(self, state):
        state.resources.science = 40
        assert research(state, "scouting")
        assert state.resources.max_land == 80
        assert state.logs[-1].type == LogType.TECH


class TestAvailableTechs:
    def test_roots_only_at_start(self, state):
        ids = {t.id for t in available_techs(state)}
        assert "stone_tools" in ids
        assert "agriculture" not in ids

    def test_unlock_opens_children(self, state):
        state.unlocked_techs.append("stone_tools")
        ids = {t.id for t in available_techs(state)}
        assert "agriculture" in ids
        assert "stone_tools" not in ids


class TestFutureResearch:
    def test_cost_curve(self):
        assert future_research_cost(0) == 10000
        assert future_research_cost(1) == 15000
        assert future_research_cost(2) == 22500

    def test_requires_technological_era(self, state):
        state.resources.science = 1_000_000
        state.era = Era.INDUSTRIAL
        assert future_research(state) is False
        assert state.future_tech_level == 0

    def test_level_up(self, state):
        state.era = Era.TECHNOLOGICAL
        state.resources.science = 25000
        assert future_research(state)
        assert future_research(state)
        assert state.future_tech_level == 2
        assert state.resources.science == 0
        assert state.resources.max_land == 100

    def test_not_enough_science(self, state):
        state.era = Era.TECHNOLOGICAL
        state.resources.science = 9999
        assert future_research(state) is False
        assert state.resources.science == pytest.approx(9999)
