"""Turn engine - the battle state machine.

Turn flow:
1. WAITING_PLAYER_ACTION: the player submits an action id or "rest"
2. RESOLVING_PLAYER_ACTION: validate, spend EP, roll damage, start cooldown
3. Knock-out check (BATTLE_OVER), else player EP regen + cooldown tick
4. WAITING_OPPONENT_ACTION: the opponent policy picks an action or rest
5. RESOLVING_OPPONENT_ACTION: resolved the same way against the player
6. Knock-out check (BATTLE_OVER), else opponent cooldown tick and back to 1
"""

import logging
import random
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..config import Settings, get_settings
from .catalog import ActionCatalog
from .cooldowns import CooldownTracker
from .damage import DamageResolver
from .enums import REST, BattlePhase, RejectionCode, Side
from .errors import TurnOrderError, ValidationResult
from .outcome import BattleOutcomeEvaluator
from .policy import OpponentPolicy
from .types import ActionResolution, BattleSession, CombatantState, OutcomeReport, TurnResult

if TYPE_CHECKING:
    from .logging import CombatLogger

logger = logging.getLogger(__name__)


class TurnEngine:
    """Drives a BattleSession through player and opponent turns."""

    def __init__(
        self,
        catalog: ActionCatalog | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        combat_logger: "CombatLogger | None" = None,
        policy: OpponentPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or ActionCatalog.default()
        self.rng = rng or random.Random(self.settings.rng_seed)
        self.combat_logger = combat_logger
        self.cooldowns = CooldownTracker()
        self.damage = DamageResolver()
        self.outcome_evaluator = BattleOutcomeEvaluator()
        self.policy = policy or OpponentPolicy(
            side_multiplier=self.settings.opponent_damage_multiplier,
            player_multiplier=self.settings.player_damage_multiplier,
            low_hp_threshold=self.settings.precision_low_hp_threshold,
            cooldowns=self.cooldowns,
        )
        self.sleep = sleep

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def new_session(self, battle_id: int = 1) -> BattleSession:
        """Create a session at full stats with the configured starting side."""
        session = BattleSession(
            battle_id=battle_id,
            player=self._fresh(Side.PLAYER),
            opponent=self._fresh(Side.OPPONENT),
            turn_owner=self._first_side(),
            phase=self._first_phase(),
        )
        if self.combat_logger:
            self.combat_logger.log_battle_start(session)
        return session

    def reset(self, session: BattleSession) -> None:
        """Reinitialize a session wholesale. Only the cumulative score survives."""
        session.player = self._fresh(Side.PLAYER)
        session.opponent = self._fresh(Side.OPPONENT)
        session.turn_owner = self._first_side()
        session.phase = self._first_phase()
        session.last_opponent_action = None
        session.in_battle = True
        session.turn_number = 1
        session.outcome = None
        if self.combat_logger:
            self.combat_logger.log_battle_reset(session)

    def start(self, session: BattleSession) -> TurnResult:
        """Play the opponent's opening turn if it starts; otherwise nothing to do."""
        result = TurnResult(success=True)
        if session.phase == BattlePhase.WAITING_OPPONENT_ACTION:
            result.add_step(self.run_opponent_turn(session))
        return result

    # ------------------------------------------------------------------
    # Player turn
    # ------------------------------------------------------------------

    def validate_player_action(self, session: BattleSession, action_id: str) -> ValidationResult:
        """Check whether the player may use an action right now.

        Raises:
            ActionNotFoundError: if action_id is neither "rest" nor in the catalog
        """
        action = None if action_id == REST else self.catalog.lookup(action_id)
        result = ValidationResult(valid=True)

        if session.is_over():
            result.add_error(RejectionCode.BATTLE_OVER, "session", "The battle is already over")
            return result

        if session.turn_owner != Side.PLAYER or session.phase != BattlePhase.WAITING_PLAYER_ACTION:
            result.add_error(RejectionCode.OUT_OF_TURN, "turn_owner", "It is not your turn", session.turn_owner.value)
            return result

        if action is None:
            return result

        player = session.player
        if not player.can_afford(action.ep_cost):
            result.add_error(
                RejectionCode.INSUFFICIENT_EP,
                "ep",
                f"Not enough EP for {action.display_name} ({player.ep}/{action.ep_cost}). Rest to recover EP.",
                str(player.ep),
            )

        remaining = self.cooldowns.remaining(player, action.id)
        if remaining > 0:
            result.add_error(
                RejectionCode.ON_COOLDOWN,
                "cooldowns",
                f"{action.display_name} is on cooldown ({remaining} turns left)",
                str(remaining),
            )

        return result

    def submit_player_action(self, session: BattleSession, action_id: str) -> TurnResult:
        """Resolve the player's action and, unless the battle ends, the opponent's reply.

        A rejected submission changes nothing: no EP, HP, cooldown or turn is spent.

        Args:
            session: Battle to act in
            action_id: Catalog id or "rest"

        Returns:
            TurnResult with one step per resolution, or the validation errors
        """
        validation = self.validate_player_action(session, action_id)
        if not validation.valid:
            logger.debug("Rejected %s in battle %d: %s", action_id, session.battle_id, validation.message)
            if self.combat_logger:
                self.combat_logger.log_action_rejected(session.turn_number, Side.PLAYER, action_id, validation.message)
            return TurnResult(success=False, errors=validation.errors)

        result = TurnResult(success=True)
        result.add_step(self._resolve_player_turn(session, action_id))

        if not session.is_over():
            self._pace()
            result.add_step(self.run_opponent_turn(session))

        return result

    def _resolve_player_turn(self, session: BattleSession, action_id: str) -> ActionResolution:
        session.phase = BattlePhase.RESOLVING_PLAYER_ACTION
        if self.combat_logger:
            self.combat_logger.log_turn_start(session.turn_number, Side.PLAYER)

        step = self._resolve_action(session, Side.PLAYER, action_id)

        outcome = self.outcome_evaluator.evaluate(session)
        if outcome is not None:
            self._finish(session, outcome, step)
            return step

        step.ep_gained += session.player.restore_ep(self.settings.player_ep_regen)
        self._tick_cooldowns(session, Side.PLAYER)
        session.turn_owner = Side.OPPONENT
        session.phase = BattlePhase.WAITING_OPPONENT_ACTION
        step.next_turn_owner = Side.OPPONENT
        step.capture(session)
        return step

    # ------------------------------------------------------------------
    # Opponent turn
    # ------------------------------------------------------------------

    def run_opponent_turn(self, session: BattleSession) -> ActionResolution:
        """Let the opponent policy pick an action and resolve it.

        Raises:
            TurnOrderError: if the opponent does not hold the turn
        """
        if session.phase != BattlePhase.WAITING_OPPONENT_ACTION:
            raise TurnOrderError(f"Opponent cannot act in phase {session.phase.value}")

        session.phase = BattlePhase.RESOLVING_OPPONENT_ACTION
        if self.combat_logger:
            self.combat_logger.log_turn_start(session.turn_number, Side.OPPONENT)

        decision = self.policy.choose(
            session.opponent,
            session.player,
            self.catalog,
            session.last_opponent_action,
            self.rng,
        )
        if self.combat_logger:
            self.combat_logger.log_opponent_decision(
                session.turn_number, decision.action_id, decision.reason, decision.scores
            )

        step = self._resolve_action(session, Side.OPPONENT, decision.action_id)
        if not decision.is_rest:
            session.last_opponent_action = decision.action_id

        outcome = self.outcome_evaluator.evaluate(session)
        if outcome is not None:
            self._finish(session, outcome, step)
            return step

        self._tick_cooldowns(session, Side.OPPONENT)
        session.turn_owner = Side.PLAYER
        session.phase = BattlePhase.WAITING_PLAYER_ACTION
        session.turn_number += 1
        step.next_turn_owner = Side.PLAYER
        step.capture(session)
        return step

    # ------------------------------------------------------------------
    # Shared resolution
    # ------------------------------------------------------------------

    def _resolve_action(self, session: BattleSession, side: Side, action_id: str) -> ActionResolution:
        """Apply one action (or rest) for a side. Validation has already happened."""
        actor = session.combatant(side)
        target = session.combatant(side.other)
        step = ActionResolution(side=side, action_id=action_id, turn_number=session.turn_number)

        if action_id == REST:
            step.ep_gained = actor.restore_ep(self._rest_regen(side))
            if self.combat_logger:
                self.combat_logger.log_rest(session.turn_number, side, step.ep_gained, actor)
            step.capture(session)
            return step

        action = self.catalog.lookup(action_id)
        step.ep_spent = actor.spend_ep(action.ep_cost)

        roll = self.damage.resolve(
            action,
            self._side_multiplier(side),
            self.settings.crit_chance,
            self.settings.crit_multiplier,
            self.rng,
        )
        target_before = self.combat_logger.snapshot_state(target) if self.combat_logger else None
        target.apply_damage(roll.damage)
        self.cooldowns.start(actor, action.id, action.cooldown_turns)

        step.hit = roll.hit
        step.damage = roll.damage
        step.crit = roll.crit
        step.strong_hit = roll.damage >= target.max_hp * self.settings.strong_hit_percent

        logger.debug(
            "%s used %s: hit=%s damage=%d crit=%s", side.value, action.id, roll.hit, roll.damage, roll.crit
        )
        if self.combat_logger and target_before is not None:
            self.combat_logger.log_action_resolved(
                session.turn_number, side, action.id, roll.hit, roll.crit, roll.damage, target_before, target
            )

        step.capture(session)
        return step

    def _finish(self, session: BattleSession, outcome: OutcomeReport, step: ActionResolution) -> None:
        session.outcome = outcome
        session.phase = BattlePhase.BATTLE_OVER
        session.in_battle = False
        session.score += outcome.score_delta
        step.outcome = outcome
        step.next_turn_owner = None
        step.capture(session)
        logger.info("Battle %d over: %s", session.battle_id, outcome.outcome.value)
        if self.combat_logger:
            self.combat_logger.log_battle_over(session, outcome.outcome)

    def _tick_cooldowns(self, session: BattleSession, side: Side) -> None:
        ready = self.cooldowns.decrement(session.combatant(side))
        if ready and self.combat_logger:
            self.combat_logger.log_cooldown_tick(session.turn_number, side, ready)

    def _pace(self) -> None:
        """Presentation delay before the opponent replies; skipped when zero."""
        if self.settings.reply_delay > 0:
            self.sleep(self.settings.reply_delay)

    def _fresh(self, side: Side) -> CombatantState:
        if side is Side.PLAYER:
            return CombatantState.fresh(side, self.settings.player_max_hp, self.settings.player_max_ep)
        return CombatantState.fresh(side, self.settings.opponent_max_hp, self.settings.opponent_max_ep)

    def _first_side(self) -> Side:
        return Side.PLAYER if self.settings.player_starts else Side.OPPONENT

    def _first_phase(self) -> BattlePhase:
        if self.settings.player_starts:
            return BattlePhase.WAITING_PLAYER_ACTION
        return BattlePhase.WAITING_OPPONENT_ACTION

    def _side_multiplier(self, side: Side) -> float:
        if side is Side.PLAYER:
            return self.settings.player_damage_multiplier
        return self.settings.opponent_damage_multiplier

    def _rest_regen(self, side: Side) -> int:
        if side is Side.PLAYER:
            return self.settings.player_ep_regen
        return self.settings.opponent_ep_regen
