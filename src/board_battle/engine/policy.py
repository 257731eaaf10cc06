"""Opponent policy - heuristic choice of the opponent's action each turn.

Each candidate action starts from its expected damage and is pushed through an
ordered pipeline of scoring steps (overkill, type preferences, finisher, EP
conservation, efficiency, repetition, risk, threat, jitter). The best score
wins unless resting is the better play.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field

from .catalog import ActionCatalog, ActionDefinition
from .cooldowns import CooldownTracker
from .enums import REST, ActionKind
from .types import CombatantState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicyTuning:
    """Heuristic constants, kept exactly as the game was balanced."""

    min_hit_weight: float = 0.05
    overkill_margin: float = 1.1
    special_bonus: float = 1.06
    low_hp_precision_bonus: float = 1.08
    finisher_ratio: float = 0.92
    finisher_bonus: float = 1.20
    low_ep_after: int = 10
    low_ep_penalty: float = 0.86
    special_low_ep_after: int = 15
    special_low_ep_penalty: float = 0.90
    cost_penalty: float = 0.22
    conserve_floor: int = 14
    conserve_reward: float = 0.35
    efficiency_low_ep: int = 20
    efficiency_weight_low_ep: float = 6.0
    efficiency_weight: float = 3.0
    cheaper_finisher_discount: float = 0.88
    repeat_penalty: float = 0.92
    risky_ep_after: int = 8
    risky_player_damage_ratio: float = 0.16
    risk_penalty: float = 0.88
    threat_hp_ratio: float = 0.8
    threat_bonus: float = 1.06
    jitter_min: float = 0.96
    jitter_max: float = 1.08
    rest_score_floor: float = 12.0
    rest_score_ep_ceiling: int = 22
    rest_forced_ep: int = 9


@dataclass
class ScoringContext:
    """Per-candidate inputs shared by the scoring steps."""

    action: ActionDefinition
    opponent: CombatantState
    player: CombatantState
    raw_base: float
    post_ep: int
    is_finisher: bool
    cheapest_finisher_cost: float
    player_best_expected: float
    last_action: str | None
    low_hp_threshold: float
    tuning: PolicyTuning
    rng: random.Random


ScoringStep = Callable[[float, ScoringContext], float]


def overkill_discount(score: float, ctx: ScoringContext) -> float:
    """Don't value damage far beyond what the player has left."""
    return score * min(1.0, (ctx.player.hp * ctx.tuning.overkill_margin) / max(1.0, ctx.raw_base))


def special_bonus(score: float, ctx: ScoringContext) -> float:
    if ctx.action.kind == ActionKind.SPECIAL:
        return score * ctx.tuning.special_bonus
    return score


def low_hp_precision_bonus(score: float, ctx: ScoringContext) -> float:
    if ctx.action.kind == ActionKind.PRECISION and ctx.player.hp_percent <= ctx.low_hp_threshold:
        return score * ctx.tuning.low_hp_precision_bonus
    return score


def finisher_bonus(score: float, ctx: ScoringContext) -> float:
    if ctx.is_finisher:
        return score * ctx.tuning.finisher_bonus
    return score


def ep_conservation_penalty(score: float, ctx: ScoringContext) -> float:
    """Spending down to almost nothing is only fine when it ends the battle."""
    if ctx.is_finisher:
        return score
    if ctx.post_ep < ctx.tuning.low_ep_after:
        score *= ctx.tuning.low_ep_penalty
    if ctx.action.kind == ActionKind.SPECIAL and ctx.post_ep < ctx.tuning.special_low_ep_after:
        score *= ctx.tuning.special_low_ep_penalty
    return score


def cost_penalty(score: float, ctx: ScoringContext) -> float:
    return score - ctx.action.ep_cost * ctx.tuning.cost_penalty


def conservation_reward(score: float, ctx: ScoringContext) -> float:
    return score + max(0, ctx.post_ep - ctx.tuning.conserve_floor) * ctx.tuning.conserve_reward


def efficiency_bonus(score: float, ctx: ScoringContext) -> float:
    """Reward damage per EP, twice as much when EP is running low."""
    per_ep = score / max(1, ctx.action.ep_cost)
    if ctx.opponent.ep < ctx.tuning.efficiency_low_ep:
        weight = ctx.tuning.efficiency_weight_low_ep
    else:
        weight = ctx.tuning.efficiency_weight
    return score + per_ep * weight


def cheaper_finisher_discount(score: float, ctx: ScoringContext) -> float:
    if (
        ctx.is_finisher
        and ctx.action.kind == ActionKind.SPECIAL
        and ctx.cheapest_finisher_cost < ctx.action.ep_cost
    ):
        return score * ctx.tuning.cheaper_finisher_discount
    return score


def anti_repetition(score: float, ctx: ScoringContext) -> float:
    if not ctx.is_finisher and ctx.action.id == ctx.last_action:
        return score * ctx.tuning.repeat_penalty
    return score


def risk_penalty(score: float, ctx: ScoringContext) -> float:
    """Running dry while the player can hit hard is dangerous."""
    risky = (
        ctx.post_ep < ctx.tuning.risky_ep_after
        and ctx.player_best_expected > ctx.opponent.max_hp * ctx.tuning.risky_player_damage_ratio
    )
    if risky and not ctx.is_finisher:
        return score * ctx.tuning.risk_penalty
    return score


def threat_amplifier(score: float, ctx: ScoringContext) -> float:
    if ctx.player_best_expected >= ctx.opponent.hp * ctx.tuning.threat_hp_ratio:
        return score * ctx.tuning.threat_bonus
    return score


def jitter(score: float, ctx: ScoringContext) -> float:
    return score * ctx.rng.uniform(ctx.tuning.jitter_min, ctx.tuning.jitter_max)


SCORING_PIPELINE: tuple[ScoringStep, ...] = (
    overkill_discount,
    special_bonus,
    low_hp_precision_bonus,
    finisher_bonus,
    ep_conservation_penalty,
    cost_penalty,
    conservation_reward,
    efficiency_bonus,
    cheaper_finisher_discount,
    anti_repetition,
    risk_penalty,
    threat_amplifier,
    jitter,
)


@dataclass
class PolicyDecision:
    """The opponent's choice for one turn."""

    action_id: str  # Catalog id or "rest"
    scores: dict[str, float] = field(default_factory=dict)  # Candidate id -> final score
    forced: bool = False  # True when resting was the only option
    reason: str = ""

    @property
    def is_rest(self) -> bool:
        return self.action_id == REST

    @property
    def best_score(self) -> float | None:
        return max(self.scores.values()) if self.scores else None


class OpponentPolicy:
    """Scores the opponent's affordable actions and picks one, or rests.

    Pure apart from the injected random generator: inputs are never mutated.
    The caller records the chosen action as the last opponent action.
    """

    def __init__(
        self,
        side_multiplier: float = 1.15,
        player_multiplier: float = 0.9,
        low_hp_threshold: float = 35.0,
        tuning: PolicyTuning | None = None,
        pipeline: tuple[ScoringStep, ...] = SCORING_PIPELINE,
        cooldowns: CooldownTracker | None = None,
    ) -> None:
        self.side_multiplier = side_multiplier
        self.player_multiplier = player_multiplier
        self.low_hp_threshold = low_hp_threshold
        self.tuning = tuning or PolicyTuning()
        self.pipeline = pipeline
        self.cooldowns = cooldowns or CooldownTracker()

    def candidates(self, opponent: CombatantState, catalog: ActionCatalog) -> list[ActionDefinition]:
        """Affordable, ready actions in evaluation order."""
        return [
            action
            for action in catalog.evaluation_order()
            if opponent.can_afford(action.ep_cost) and self.cooldowns.is_available(opponent, action.id)
        ]

    def player_best_expected(self, player: CombatantState, catalog: ActionCatalog) -> float:
        """Best expected damage the player can afford next turn."""
        best = 0.0
        for action in catalog:
            if not player.can_afford(action.ep_cost):
                continue
            hit = max(self.tuning.min_hit_weight, action.hit_chance)
            best = max(best, action.base_damage * self.player_multiplier * hit)
        return best

    def score(self, action: ActionDefinition, ctx: ScoringContext) -> float:
        """Run one candidate through the scoring pipeline."""
        hit = max(self.tuning.min_hit_weight, action.hit_chance)
        score = ctx.raw_base * hit * hit
        for step in self.pipeline:
            score = step(score, ctx)
        return score

    def choose(
        self,
        opponent: CombatantState,
        player: CombatantState,
        catalog: ActionCatalog,
        last_action: str | None,
        rng: random.Random,
    ) -> PolicyDecision:
        """Pick the opponent's action for this turn.

        Args:
            opponent: Opponent combat state (the side choosing)
            player: Player combat state (the target)
            catalog: Actions available to the opponent
            last_action: The opponent's previous non-rest action, if any
            rng: Random source for the score jitter

        Returns:
            PolicyDecision with the chosen id (or "rest") and candidate scores
        """
        candidates = self.candidates(opponent, catalog)
        if not candidates:
            logger.debug("Opponent has no affordable action (ep=%d), resting", opponent.ep)
            return PolicyDecision(action_id=REST, forced=True, reason="no_candidates")

        finisher_costs = [
            a.ep_cost for a in candidates if self._raw_base(a) >= player.hp * self.tuning.finisher_ratio
        ]
        cheapest_finisher_cost = min(finisher_costs) if finisher_costs else float("inf")
        player_best = self.player_best_expected(player, catalog)

        scores: dict[str, float] = {}
        pick = candidates[0]
        best_score = float("-inf")
        for action in candidates:
            raw_base = self._raw_base(action)
            ctx = ScoringContext(
                action=action,
                opponent=opponent,
                player=player,
                raw_base=raw_base,
                post_ep=opponent.ep - action.ep_cost,
                is_finisher=raw_base >= player.hp * self.tuning.finisher_ratio,
                cheapest_finisher_cost=cheapest_finisher_cost,
                player_best_expected=player_best,
                last_action=last_action,
                low_hp_threshold=self.low_hp_threshold,
                tuning=self.tuning,
                rng=rng,
            )
            scores[action.id] = self.score(action, ctx)
            # Strictly greater: ties keep the earlier candidate in evaluation order
            if scores[action.id] > best_score:
                best_score = scores[action.id]
                pick = action

        if opponent.ep < self.tuning.rest_forced_ep:
            return PolicyDecision(action_id=REST, scores=scores, reason="low_ep")
        if best_score < self.tuning.rest_score_floor and opponent.ep < self.tuning.rest_score_ep_ceiling:
            return PolicyDecision(action_id=REST, scores=scores, reason="not_worth_it")

        logger.debug("Opponent picks %s (score %.2f) from %s", pick.id, best_score, scores)
        return PolicyDecision(action_id=pick.id, scores=scores, reason="best_score")

    def _raw_base(self, action: ActionDefinition) -> float:
        return action.base_damage * self.side_multiplier
