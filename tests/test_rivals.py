import pytest

from civrise.models import Rival
from civrise.models.enums import Attitude, Era, LogType, Relation
from civrise.rivals import attack, gift, is_hostile, recruit, rival_step, trade

from tests.conftest import ScriptedRandom


def make_rival(
    rival_id="R1",
    strength=50.0,
    wealth=100.0,
    relation=Relation.NEUTRAL,
    attitude=Attitude.DEFENSIVE,
):
    return Rival(
        id=rival_id,
        name=f"Rival {rival_id}",
        strength=strength,
        wealth=wealth,
        relation=relation,
        attitude=attitude,
        era=Era.TRIBAL,
    )


@pytest.fixture
def duel(state):
    """State with a single known rival."""
    state.rivals = [make_rival()]
    return state


# ---------- attack ----------


class TestAttack:
    def test_victory(self, duel):
        duel.resources.soldiers = 50
        duel.game_time = 7
        rival = duel.rivals[0]
        assert attack(duel, "R1", ScriptedRandom([0.5])) is True
        assert duel.resources.gold == 30
        assert duel.resources.max_land == 70
        assert duel.resources.soldiers == 47
        assert rival.strength == pytest.approx(35.0)
        assert rival.wealth == pytest.approx(70.0)
        assert rival.relation == Relation.WAR
        assert rival.cooldown_end == 37
        assert duel.logs[-1].type == LogType.WAR

    def test_defeat(self, duel):
        duel.resources.soldiers = 10
        rival = duel.rivals[0]
        assert attack(duel, "R1", ScriptedRandom([0.5])) is False
        assert duel.resources.soldiers == 7
        assert rival.relation == Relation.WAR
        assert rival.cooldown_end == 0
        assert rival.strength == 50.0

    def test_cooldown_blocks(self, duel):
        duel.resources.soldiers = 50
        duel.game_time = 10
        rival = duel.rivals[0]
        rival.cooldown_end = 20
        rng = ScriptedRandom([0.5])
        assert attack(duel, "R1", rng) is False
        assert duel.resources.soldiers == 50
        assert rng.calls == 0
        assert duel.logs[-1].type == LogType.WAR

    def test_unknown_rival(self, duel):
        assert attack(duel, "R9", ScriptedRandom()) is False

    def test_random_factor_can_tip_the_battle(self, duel):
        # advantage 1.0; 0.8 + 0.4 * 0.9 = 1.16 > 1.1
        duel.resources.soldiers = 25
        assert attack(duel, "R1", ScriptedRandom([0.9])) is True


# ---------- recruit ----------


class TestRecruit:
    def test_recruit(self, state):
        state.resources.gold = 120
        state.resources.population = 5
        assert recruit(state, 2)
        assert state.resources.soldiers == 2
        assert state.resources.gold == 20
        assert state.resources.population == 3

    def test_unaffordable(self, state):
        state.resources.gold = 49
        assert recruit(state, 1) is False
        assert state.resources.soldiers == 0
        assert state.logs[-1].type == LogType.WARNING

    def test_non_positive_amount(self, state):
        state.resources.gold = 1000
        assert recruit(state, 0) is False
        assert state.resources.soldiers == 0
        assert state.logs[-1].type == LogType.WARNING


# ---------- diplomacy ----------


class TestTrade:
    def test_trade_returns_gold_and_science(self, duel):
        duel.resources.gold = 100
        duel.rivals[0].relation = Relation.WAR
        # uniform(1.1, 1.5) with 0.5 -> 1.3; randint draws from the next value
        assert trade(duel, "R1", ScriptedRandom([0.5, 0.0]))
        assert duel.resources.gold == 130
        assert duel.resources.science == 5
        assert duel.rivals[0].wealth == 120
        assert duel.rivals[0].relation == Relation.HOSTILE

    def test_trader_doubles_science(self, duel):
        duel.resources.gold = 100
        duel.rivals[0].attitude = Attitude.TRADER
        assert trade(duel, "R1", ScriptedRandom([0.5, 0.0]))
        assert duel.resources.science == 10
        assert duel.rivals[0].relation == Relation.NEUTRAL

    def test_trade_needs_gold(self, duel):
        duel.resources.gold = 99
        assert trade(duel, "R1", ScriptedRandom()) is False
        assert duel.rivals[0].wealth == 100


class TestGift:
    def test_gift_improves_relation(self, duel):
        duel.resources.gold = 450
        assert gift(duel, "R1")
        assert duel.rivals[0].relation == Relation.FRIENDLY
        assert gift(duel, "R1")
        assert duel.rivals[0].relation == Relation.ALLY
        assert duel.resources.gold == 50
        assert duel.rivals[0].wealth == 500

    def test_ally_stays_ally(self, duel):
        duel.resources.gold = 200
        duel.rivals[0].relation = Relation.ALLY
        assert gift(duel, "R1")
        assert duel.rivals[0].relation == Relation.ALLY

    def test_gift_needs_gold(self, duel):
        duel.resources.gold = 199
        assert gift(duel, "R1") is False
        assert duel.rivals[0].relation == Relation.NEUTRAL


# ---------- rival AI ----------


class TestHostility:
    def test_war_is_always_hostile(self):
        assert is_hostile(make_rival(relation=Relation.WAR, attitude=Attitude.TRADER))

    def test_aggressive_unless_friendly(self):
        assert is_hostile(make_rival(relation=Relation.HOSTILE, attitude=Attitude.AGGRESSIVE))
        assert is_hostile(make_rival(relation=Relation.NEUTRAL, attitude=Attitude.AGGRESSIVE))
        assert not is_hostile(make_rival(relation=Relation.FRIENDLY, attitude=Attitude.AGGRESSIVE))
        assert not is_hostile(make_rival(relation=Relation.ALLY, attitude=Attitude.AGGRESSIVE))

    def test_peaceful_attitudes(self):
        assert not is_hostile(make_rival(relation=Relation.HOSTILE, attitude=Attitude.DEFENSIVE))


class TestRivalStep:
    def test_growth(self, duel):
        duel.rivals[0].strength = 1.0
        rival_step(duel, ScriptedRandom([0.5]))
        assert duel.rivals[0].strength == pytest.approx(2.0)
        assert duel.rivals[0].wealth == 101

    def test_aggressive_growth(self, duel):
        duel.rivals[0].attitude = Attitude.AGGRESSIVE
        duel.rivals[0].relation = Relation.FRIENDLY
        duel.rivals[0].strength = 1.0
        rival_step(duel, ScriptedRandom([0.5]))
        assert duel.rivals[0].strength == pytest.approx(2.2)

    def test_predatory_raid(self, duel):
        duel.resources.gold = 1000
        duel.resources.soldiers = 0
        duel.resources.land = 58
        rival = duel.rivals[0]
        rival.relation = Relation.WAR
        rival.strength = 100.0
        raids = rival_step(duel, ScriptedRandom([0.5, 0.01]))
        assert raids == ["R1"]
        assert duel.resources.gold == 900
        assert duel.resources.max_land == 58
        assert rival.wealth == 201
        assert rival.strength == pytest.approx(103.0)
        assert duel.logs[-1].type == LogType.WAR

    def test_normal_raid_needs_lower_roll(self, duel):
        duel.resources.gold = 1000
        duel.resources.soldiers = 30
        rival = duel.rivals[0]
        rival.relation = Relation.WAR
        rival.strength = 70.0
        # mine = 60, not below half of the rival, so the 0.005 chance applies
        assert rival_step(duel, ScriptedRandom([0.5, 0.01])) == []
        assert rival_step(duel, ScriptedRandom([0.5, 0.001])) == ["R1"]
        assert duel.resources.soldiers == 27

    def test_weaker_rival_never_raids(self, duel):
        duel.resources.soldiers = 100
        duel.rivals[0].relation = Relation.WAR
        rng = ScriptedRandom([0.5, 0.0])
        assert rival_step(duel, rng) == []
        # only the growth roll was drawn
        assert rng.calls == 1

    def test_peaceful_rival_never_raids(self, duel):
        duel.rivals[0].strength = 1000.0
        assert rival_step(duel, ScriptedRandom([0.5, 0.0])) == []
