"""Tests for the opponent policy and its scoring pipeline."""

import random

import pytest
from conftest import ScriptedRandom

from board_battle.engine import (
    ActionCatalog,
    ActionDefinition,
    ActionKind,
    CombatantState,
    CooldownTracker,
    OpponentPolicy,
    PolicyTuning,
    Side,
)
from board_battle.engine.policy import (
    ScoringContext,
    anti_repetition,
    cheaper_finisher_discount,
    conservation_reward,
    cost_penalty,
    efficiency_bonus,
    ep_conservation_penalty,
    finisher_bonus,
    jitter,
    low_hp_precision_bonus,
    overkill_discount,
    risk_penalty,
    special_bonus,
    threat_amplifier,
)


def make_context(action: ActionDefinition, **overrides) -> ScoringContext:
    """Scoring context for a full-stat battle, with selected fields overridden."""
    values = {
        "action": action,
        "opponent": CombatantState.fresh(Side.OPPONENT, 240, 60),
        "player": CombatantState.fresh(Side.PLAYER, 180, 45),
        "raw_base": action.base_damage * 1.15,
        "post_ep": 60 - action.ep_cost,
        "is_finisher": False,
        "cheapest_finisher_cost": float("inf"),
        "player_best_expected": 0.0,
        "last_action": None,
        "low_hp_threshold": 35.0,
        "tuning": PolicyTuning(),
        "rng": ScriptedRandom(),
    }
    values.update(overrides)
    return ScoringContext(**values)


@pytest.fixture
def special(catalog):
    return catalog.lookup("special")


@pytest.fixture
def precision(catalog):
    return catalog.lookup("precision")


@pytest.fixture
def basic1(catalog):
    return catalog.lookup("basic1")


class TestScoringSteps:
    """Tests for the individual scoring steps."""

    def test_overkill_discount_scales_down(self, special):
        """Test damage far above the player's HP is discounted."""
        ctx = make_context(special, player=CombatantState(Side.PLAYER, hp=10, max_hp=180, ep=45, max_ep=45))
        # min(1, 10 * 1.1 / 57.5)
        assert overkill_discount(100.0, ctx) == pytest.approx(100.0 * 11 / 57.5)

    def test_overkill_discount_caps_at_one(self, special):
        """Test no discount while the player has plenty of HP."""
        assert overkill_discount(100.0, make_context(special)) == 100.0

    def test_special_bonus(self, special, basic1):
        """Test only specials get the flat bonus."""
        assert special_bonus(100.0, make_context(special)) == pytest.approx(106.0)
        assert special_bonus(100.0, make_context(basic1)) == 100.0

    def test_low_hp_precision_bonus(self, precision, basic1):
        """Test precision is favoured when the player is at or below the threshold."""
        hurt = CombatantState(Side.PLAYER, hp=60, max_hp=180, ep=45, max_ep=45)
        assert low_hp_precision_bonus(100.0, make_context(precision, player=hurt)) == pytest.approx(108.0)
        assert low_hp_precision_bonus(100.0, make_context(precision)) == 100.0
        assert low_hp_precision_bonus(100.0, make_context(basic1, player=hurt)) == 100.0

    def test_finisher_bonus(self, basic1):
        """Test finishers get the kill bonus."""
        assert finisher_bonus(100.0, make_context(basic1, is_finisher=True)) == pytest.approx(120.0)
        assert finisher_bonus(100.0, make_context(basic1)) == 100.0

    def test_ep_conservation_penalty(self, special, basic1):
        """Test low post-EP is penalized, doubly so for specials."""
        assert ep_conservation_penalty(100.0, make_context(basic1, post_ep=9)) == pytest.approx(86.0)
        assert ep_conservation_penalty(100.0, make_context(basic1, post_ep=12)) == 100.0
        assert ep_conservation_penalty(100.0, make_context(special, post_ep=12)) == pytest.approx(90.0)
        assert ep_conservation_penalty(100.0, make_context(special, post_ep=5)) == pytest.approx(100.0 * 0.86 * 0.90)

    def test_ep_conservation_skipped_for_finishers(self, special):
        """Test finishers spend freely."""
        assert ep_conservation_penalty(100.0, make_context(special, post_ep=0, is_finisher=True)) == 100.0

    def test_cost_penalty(self, special):
        """Test EP cost is subtracted at 0.22 per point."""
        assert cost_penalty(100.0, make_context(special)) == pytest.approx(100.0 - 6.6)

    def test_conservation_reward(self, basic1):
        """Test EP kept above the floor is rewarded."""
        assert conservation_reward(10.0, make_context(basic1, post_ep=24)) == pytest.approx(13.5)
        assert conservation_reward(10.0, make_context(basic1, post_ep=14)) == 10.0
        assert conservation_reward(10.0, make_context(basic1, post_ep=3)) == 10.0

    def test_efficiency_bonus_weights(self, basic1):
        """Test damage per EP weighs double when the opponent is low on EP."""
        flush = make_context(basic1)
        low = make_context(basic1, opponent=CombatantState(Side.OPPONENT, hp=240, max_hp=240, ep=19, max_ep=60))

        assert efficiency_bonus(20.0, flush) == pytest.approx(20.0 + 2.0 * 3)
        assert efficiency_bonus(20.0, low) == pytest.approx(20.0 + 2.0 * 6)

    def test_efficiency_bonus_free_action(self):
        """Test a zero-cost action divides by one, not zero."""
        free = ActionDefinition("slap", "Slap", base_damage=3, ep_cost=0, kind=ActionKind.PHYSICAL)
        assert efficiency_bonus(5.0, make_context(free)) == pytest.approx(5.0 + 5.0 * 3)

    def test_cheaper_finisher_discount(self, special, precision):
        """Test a finishing special yields to a cheaper finisher."""
        assert cheaper_finisher_discount(
            100.0, make_context(special, is_finisher=True, cheapest_finisher_cost=16)
        ) == pytest.approx(88.0)
        same_cost = make_context(special, is_finisher=True, cheapest_finisher_cost=30)
        assert cheaper_finisher_discount(100.0, same_cost) == 100.0
        assert cheaper_finisher_discount(
            100.0, make_context(precision, is_finisher=True, cheapest_finisher_cost=16)
        ) == 100.0

    def test_anti_repetition(self, special):
        """Test repeating the last action is discouraged unless it finishes."""
        assert anti_repetition(100.0, make_context(special, last_action="special")) == pytest.approx(92.0)
        assert anti_repetition(100.0, make_context(special, last_action="basic1")) == 100.0
        assert anti_repetition(100.0, make_context(special, last_action="special", is_finisher=True)) == 100.0

    def test_risk_penalty(self, basic1):
        """Test running dry against a dangerous player is penalized."""
        # 0.16 * 240 = 38.4
        risky = make_context(basic1, post_ep=7, player_best_expected=40.0)
        assert risk_penalty(100.0, risky) == pytest.approx(88.0)
        assert risk_penalty(100.0, make_context(basic1, post_ep=8, player_best_expected=40.0)) == 100.0
        assert risk_penalty(100.0, make_context(basic1, post_ep=7, player_best_expected=38.0)) == 100.0
        finishing = make_context(basic1, post_ep=7, player_best_expected=40.0, is_finisher=True)
        assert risk_penalty(100.0, finishing) == 100.0

    def test_threat_amplifier(self, basic1):
        """Test aggression rises when the player can nearly finish the opponent."""
        weak = CombatantState(Side.OPPONENT, hp=50, max_hp=240, ep=60, max_ep=60)
        assert threat_amplifier(100.0, make_context(basic1, opponent=weak, player_best_expected=45.0)) == pytest.approx(
            106.0
        )
        assert threat_amplifier(100.0, make_context(basic1, player_best_expected=40.0)) == 100.0

    def test_jitter_uses_injected_rng(self, basic1):
        """Test jitter multiplies by a draw from the injected generator."""
        assert jitter(100.0, make_context(basic1, rng=ScriptedRandom(uniforms=[1.05]))) == pytest.approx(105.0)


class TestOpponentPolicy:
    """Tests for OpponentPolicy.choose."""

    def _player(self, hp: int = 180, ep: int = 45) -> CombatantState:
        return CombatantState(Side.PLAYER, hp=hp, max_hp=180, ep=ep, max_ep=45)

    def _opponent(self, hp: int = 240, ep: int = 60) -> CombatantState:
        return CombatantState(Side.OPPONENT, hp=hp, max_hp=240, ep=ep, max_ep=60)

    def test_full_stats_picks_special(self, catalog):
        """Test the opening choice and its exact score."""
        decision = OpponentPolicy().choose(self._opponent(), self._player(), catalog, None, ScriptedRandom())

        assert decision.action_id == "special"
        assert decision.reason == "best_score"
        assert not decision.forced
        assert list(decision.scores) == ["special", "precision", "basic2", "basic1"]
        assert decision.scores["special"] == pytest.approx(59.4081125)
        assert decision.best_score == pytest.approx(59.4081125)

    def test_repeat_penalty_on_last_action(self, catalog):
        """Test the last action's score drops by the repeat factor."""
        policy = OpponentPolicy()
        fresh = policy.choose(self._opponent(), self._player(), catalog, None, ScriptedRandom())
        repeat = policy.choose(self._opponent(), self._player(), catalog, "special", ScriptedRandom())

        assert repeat.scores["special"] == pytest.approx(fresh.scores["special"] * 0.92)
        assert repeat.scores["basic1"] == pytest.approx(fresh.scores["basic1"])

    def test_low_ep_forces_rest(self, catalog):
        """Test EP below 9 rests even with affordable actions."""
        decision = OpponentPolicy().choose(self._opponent(ep=8), self._player(), catalog, None, ScriptedRandom())

        assert decision.is_rest
        assert decision.reason == "no_candidates"
        assert decision.forced

    def test_low_ep_rests_regardless_of_score(self):
        """Test the low-EP rule overrides even a cheap strong action."""
        catalog = ActionCatalog(
            [ActionDefinition("haymaker", "Haymaker", base_damage=80, ep_cost=2, kind=ActionKind.PHYSICAL)]
        )

        decision = OpponentPolicy().choose(self._opponent(ep=8), self._player(), catalog, None, ScriptedRandom())

        assert decision.is_rest
        assert decision.reason == "low_ep"
        assert decision.scores["haymaker"] > 12

    def test_weak_options_rest_below_ep_ceiling(self):
        """Test a poor best score with under 22 EP rests."""
        catalog = ActionCatalog([ActionDefinition("poke", "Poke", base_damage=5, ep_cost=10, kind=ActionKind.PHYSICAL)])

        decision = OpponentPolicy().choose(self._opponent(ep=21), self._player(), catalog, None, ScriptedRandom())

        assert decision.is_rest
        assert decision.reason == "not_worth_it"
        assert decision.scores["poke"] == pytest.approx(4.615)

    def test_weak_options_still_attack_at_ep_ceiling(self):
        """Test the not-worth-it rule stops applying at 22 EP."""
        catalog = ActionCatalog([ActionDefinition("poke", "Poke", base_damage=5, ep_cost=10, kind=ActionKind.PHYSICAL)])

        decision = OpponentPolicy().choose(self._opponent(ep=22), self._player(), catalog, None, ScriptedRandom())

        assert decision.action_id == "poke"

    def test_candidates_skip_cooldowns_and_unaffordable(self, catalog):
        """Test cooling and too-expensive actions are never candidates."""
        opponent = self._opponent(ep=25)
        opponent.cooldowns["precision"] = 1

        candidates = OpponentPolicy().candidates(opponent, catalog)

        assert [a.id for a in candidates] == ["basic2", "basic1"]

    def test_policy_shares_cooldown_tracker(self, catalog):
        """Test the policy consults the tracker it was given."""
        tracker = CooldownTracker()
        opponent = self._opponent()
        tracker.start(opponent, "special", 2)

        decision = OpponentPolicy(cooldowns=tracker).choose(opponent, self._player(), catalog, None, ScriptedRandom())

        assert "special" not in decision.scores
        assert decision.action_id != "special"

    def test_ties_keep_evaluation_order(self):
        """Test equal scores go to the earlier candidate."""
        catalog = ActionCatalog(
            [
                ActionDefinition("twin_a", "Twin A", base_damage=20, ep_cost=10, kind=ActionKind.PHYSICAL),
                ActionDefinition("twin_b", "Twin B", base_damage=20, ep_cost=10, kind=ActionKind.PHYSICAL),
            ]
        )

        decision = OpponentPolicy().choose(self._opponent(), self._player(), catalog, None, ScriptedRandom())

        assert decision.scores["twin_a"] == decision.scores["twin_b"]
        assert decision.action_id == "twin_a"

    def test_player_best_expected_ignores_cooldowns(self, catalog):
        """Test the threat estimate uses affordable actions and unsquared hit chance."""
        player = self._player()
        player.cooldowns["special"] = 2

        best = OpponentPolicy().player_best_expected(player, catalog)

        assert best == pytest.approx(50 * 0.9 * 0.95)

    def test_player_best_expected_respects_ep(self, catalog):
        """Test unaffordable player actions are not a threat."""
        best = OpponentPolicy().player_best_expected(self._player(ep=22), catalog)

        assert best == pytest.approx(32 * 0.9 * 0.8)

    def test_inputs_are_not_mutated(self, catalog):
        """Test choose leaves both states untouched."""
        opponent, player = self._opponent(ep=37), self._player(hp=70)
        before = (opponent.hp, opponent.ep, dict(opponent.cooldowns), player.hp, player.ep)

        OpponentPolicy().choose(opponent, player, catalog, "basic2", random.Random(3))

        assert (opponent.hp, opponent.ep, dict(opponent.cooldowns), player.hp, player.ep) == before

    @pytest.mark.parametrize("seed", range(10))
    def test_same_seed_same_decision(self, catalog, seed):
        """Test seeded generators reproduce decisions and scores."""
        policy = OpponentPolicy()

        first = policy.choose(self._opponent(ep=40), self._player(hp=90), catalog, "precision", random.Random(seed))
        second = policy.choose(self._opponent(ep=40), self._player(hp=90), catalog, "precision", random.Random(seed))

        assert first == second

    @pytest.mark.parametrize("seed", range(25))
    def test_choice_is_always_legal(self, catalog, seed):
        """Test the chosen action is affordable and off cooldown, or rest."""
        rng = random.Random(seed)
        opponent = self._opponent(hp=rng.randint(1, 240), ep=rng.randint(0, 60))
        if rng.random() < 0.5:
            opponent.cooldowns["special"] = rng.randint(1, 2)
        player = self._player(hp=rng.randint(1, 180), ep=rng.randint(0, 45))

        decision = OpponentPolicy().choose(opponent, player, catalog, rng.choice([None, "basic1", "special"]), rng)

        if not decision.is_rest:
            action = catalog.lookup(decision.action_id)
            assert opponent.ep >= action.ep_cost
            assert decision.action_id not in opponent.cooldowns
