"""Type definitions for the battle engine."""

from dataclasses import dataclass, field
from typing import Any

from .enums import BattleOutcome, BattlePhase, Side
from .errors import ValidationError


@dataclass
class CombatantState:
    """In-memory resource record of one side of a battle.

    Owned by the TurnEngine; every mutation goes through the clamping helpers
    below so hp and ep never leave [0, max].
    """

    side: Side
    hp: int
    max_hp: int
    ep: int
    max_ep: int
    cooldowns: dict[str, int] = field(default_factory=dict)

    @classmethod
    def fresh(cls, side: Side, max_hp: int, max_ep: int) -> "CombatantState":
        """Full stats, no cooldowns."""
        return cls(side=side, hp=max_hp, max_hp=max_hp, ep=max_ep, max_ep=max_ep)

    def is_alive(self) -> bool:
        """Check if the combatant is still standing."""
        return self.hp > 0

    @property
    def hp_percent(self) -> float:
        return (self.hp / self.max_hp) * 100 if self.max_hp else 0.0

    def can_afford(self, ep_cost: int) -> bool:
        return self.ep >= ep_cost

    def apply_damage(self, amount: int) -> int:
        """Apply damage, clamped at 0. Returns actual HP lost."""
        actual = min(self.hp, max(0, amount))
        self.hp -= actual
        return actual

    def spend_ep(self, amount: int) -> int:
        """Spend EP, clamped at 0. Returns actual EP spent."""
        actual = min(self.ep, max(0, amount))
        self.ep -= actual
        return actual

    def restore_ep(self, amount: int) -> int:
        """Restore EP, clamped at max. Returns actual EP gained."""
        actual = min(self.max_ep - self.ep, max(0, amount))
        self.ep += actual
        return actual


@dataclass
class OutcomeReport:
    """Terminal result of a battle. Data only - consumers apply it."""

    outcome: BattleOutcome
    score_delta: int
    board_advance: int

    @property
    def player_won(self) -> bool:
        return self.outcome == BattleOutcome.PLAYER_WON

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "outcome": self.outcome.value,
            "score_delta": self.score_delta,
            "board_advance": self.board_advance,
        }


@dataclass
class BattleSession:
    """Complete state of one battle, passed by handle into every engine call."""

    battle_id: int
    player: CombatantState
    opponent: CombatantState
    turn_owner: Side
    phase: BattlePhase
    last_opponent_action: str | None = None
    in_battle: bool = True
    score: int = 0  # Cumulative across resets (+1 per win, -1 per loss)
    turn_number: int = 1
    outcome: OutcomeReport | None = None

    def combatant(self, side: Side) -> CombatantState:
        return self.player if side is Side.PLAYER else self.opponent

    def is_over(self) -> bool:
        return self.phase == BattlePhase.BATTLE_OVER


@dataclass
class ActionResolution:
    """Everything the presentation layer needs after one resolution step."""

    side: Side
    action_id: str  # Catalog id or "rest"
    turn_number: int
    hit: bool = False
    damage: int = 0
    crit: bool = False
    strong_hit: bool = False
    ep_spent: int = 0
    ep_gained: int = 0
    player_hp: int = 0
    player_ep: int = 0
    opponent_hp: int = 0
    opponent_ep: int = 0
    player_cooldowns: dict[str, int] = field(default_factory=dict)
    opponent_cooldowns: dict[str, int] = field(default_factory=dict)
    next_turn_owner: Side | None = None  # None once the battle is over
    outcome: OutcomeReport | None = None  # Only on the terminal step

    @property
    def rested(self) -> bool:
        return self.action_id == "rest"

    def capture(self, session: BattleSession) -> None:
        """Copy the post-resolution resources of both sides."""
        self.player_hp = session.player.hp
        self.player_ep = session.player.ep
        self.opponent_hp = session.opponent.hp
        self.opponent_ep = session.opponent.ep
        self.player_cooldowns = dict(session.player.cooldowns)
        self.opponent_cooldowns = dict(session.opponent.cooldowns)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "side": self.side.value,
            "action_id": self.action_id,
            "turn_number": self.turn_number,
            "hit": self.hit,
            "damage": self.damage,
            "crit": self.crit,
            "strong_hit": self.strong_hit,
            "ep_spent": self.ep_spent,
            "ep_gained": self.ep_gained,
            "player": {
                "hp": self.player_hp,
                "ep": self.player_ep,
                "cooldowns": dict(self.player_cooldowns),
            },
            "opponent": {
                "hp": self.opponent_hp,
                "ep": self.opponent_ep,
                "cooldowns": dict(self.opponent_cooldowns),
            },
            "next_turn_owner": self.next_turn_owner.value if self.next_turn_owner else None,
        }
        if self.outcome is not None:
            result["outcome"] = self.outcome.to_dict()
        return result


@dataclass
class TurnResult:
    """Result of submitting one player action (and the opponent's reply)."""

    success: bool
    steps: list[ActionResolution] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)
    outcome: OutcomeReport | None = None

    @property
    def is_battle_over(self) -> bool:
        return self.outcome is not None

    @property
    def message(self) -> str:
        return "; ".join(e.message for e in self.errors)

    def add_step(self, step: ActionResolution) -> None:
        """Add a resolution step; the terminal step carries the outcome."""
        self.steps.append(step)
        if step.outcome is not None:
            self.outcome = step.outcome
