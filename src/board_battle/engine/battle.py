"""Battle engine - orchestrates battles from creation to outcome."""

import itertools
import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..config import Settings, get_settings
from .catalog import ActionCatalog
from .enums import REST
from .logging import CombatLog, CombatLogger
from .turn import TurnEngine
from .types import BattleSession, OutcomeReport, TurnResult

logger = logging.getLogger(__name__)


@dataclass
class BattleResult:
    """Result of a battle operation."""

    success: bool
    message: str
    battle_id: int | None = None
    turn_result: TurnResult | None = None
    outcome: OutcomeReport | None = None
    combat_log: CombatLog | None = None


@dataclass
class _Battle:
    session: BattleSession
    engine: TurnEngine
    combat_logger: CombatLogger | None


class BattleEngine:
    """Keeps independent battle sessions and routes caller requests to them.

    Each battle owns its session and combat log; all battles draw from one
    random generator so a seeded engine replays identically.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        catalog: ActionCatalog | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
        log_combat: bool = True,
    ) -> None:
        self.settings = settings or get_settings()
        self.catalog = catalog or self._load_catalog(self.settings)
        self.rng = rng or random.Random(self.settings.rng_seed)
        self.sleep = sleep
        self.log_combat = log_combat
        self._battles: dict[int, _Battle] = {}
        self._ids = itertools.count(1)

    def create_battle(self) -> BattleResult:
        """Create a new battle at full stats.

        If the opponent is configured to start, its opening turn is played
        before this returns.

        Returns:
            BattleResult with the new battle ID
        """
        battle_id = next(self._ids)
        combat_logger = CombatLogger(battle_id) if self.log_combat else None
        engine = TurnEngine(
            catalog=self.catalog,
            settings=self.settings,
            rng=self.rng,
            combat_logger=combat_logger,
            sleep=self.sleep,
        )
        session = engine.new_session(battle_id)
        self._battles[battle_id] = _Battle(session=session, engine=engine, combat_logger=combat_logger)
        logger.info("Battle %d created (%s starts)", battle_id, session.turn_owner.value)

        turn_result = engine.start(session)
        return BattleResult(
            success=True,
            message="Battle created",
            battle_id=battle_id,
            turn_result=turn_result,
            outcome=turn_result.outcome,
            combat_log=combat_logger.get_log() if combat_logger else None,
        )

    def submit_action(self, battle_id: int, action_id: str) -> BattleResult:
        """Submit the player's action for the current turn.

        Args:
            battle_id: ID of the battle
            action_id: Catalog action id or "rest"

        Returns:
            BattleResult with the resolved turn, or the rejection message
        """
        battle = self._battles.get(battle_id)
        if battle is None:
            return BattleResult(success=False, message="Battle not found")

        turn_result = battle.engine.submit_player_action(battle.session, action_id)
        combat_log = battle.combat_logger.get_log() if battle.combat_logger else None

        if not turn_result.success:
            return BattleResult(
                success=False,
                message=turn_result.message,
                battle_id=battle_id,
                turn_result=turn_result,
                combat_log=combat_log,
            )

        return BattleResult(
            success=True,
            message="Battle over" if turn_result.is_battle_over else "Turn resolved",
            battle_id=battle_id,
            turn_result=turn_result,
            outcome=turn_result.outcome,
            combat_log=combat_log,
        )

    def reset_battle(self, battle_id: int) -> BattleResult:
        """Restart a battle at full stats, keeping the cumulative score."""
        battle = self._battles.get(battle_id)
        if battle is None:
            return BattleResult(success=False, message="Battle not found")

        battle.engine.reset(battle.session)
        turn_result = battle.engine.start(battle.session)
        return BattleResult(
            success=True,
            message="Battle reset",
            battle_id=battle_id,
            turn_result=turn_result,
            outcome=turn_result.outcome,
            combat_log=battle.combat_logger.get_log() if battle.combat_logger else None,
        )

    def get_session(self, battle_id: int) -> BattleSession | None:
        battle = self._battles.get(battle_id)
        return battle.session if battle else None

    def get_combat_log(self, battle_id: int) -> CombatLog | None:
        battle = self._battles.get(battle_id)
        if battle is None or battle.combat_logger is None:
            return None
        return battle.combat_logger.get_log()

    def available_actions(self, battle_id: int) -> list[str]:
        """Action ids the player could submit right now ("rest" last)."""
        battle = self._battles.get(battle_id)
        if battle is None:
            return []
        ids = [*self.catalog.ids(), REST]
        return [a for a in ids if battle.engine.validate_player_action(battle.session, a).valid]

    def get_battle_state(self, battle_id: int) -> dict[str, Any] | None:
        """Get the current state of a battle.

        Args:
            battle_id: ID of the battle

        Returns:
            Dict with battle state, or None if not found
        """
        session = self.get_session(battle_id)
        if session is None:
            return None

        return {
            "battle_id": session.battle_id,
            "phase": session.phase.value,
            "turn_owner": session.turn_owner.value,
            "turn_number": session.turn_number,
            "in_battle": session.in_battle,
            "score": session.score,
            "last_opponent_action": session.last_opponent_action,
            "combatants": {
                state.side.value: {
                    "hp": state.hp,
                    "max_hp": state.max_hp,
                    "ep": state.ep,
                    "max_ep": state.max_ep,
                    "cooldowns": dict(state.cooldowns),
                }
                for state in (session.player, session.opponent)
            },
            "outcome": session.outcome.to_dict() if session.outcome else None,
        }

    @staticmethod
    def _load_catalog(settings: Settings) -> ActionCatalog:
        if settings.catalog_path:
            return ActionCatalog.from_json_file(settings.catalog_path)
        return ActionCatalog.default()
