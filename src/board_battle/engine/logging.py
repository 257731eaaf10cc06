"""Combat logging system for tracking and verifying battle engine output.

Provides structured logging of all battle events including:
- Battle start/reset and turn boundaries
- Rejected submissions
- Opponent decisions with candidate scores
- Action resolutions and rests with before/after state
- Cooldown ticks and the battle outcome
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .enums import BattleOutcome, Side


class LogEventType(str, Enum):
    """Types of log events."""

    # Battle lifecycle
    BATTLE_START = "battle_start"
    BATTLE_RESET = "battle_reset"
    BATTLE_OVER = "battle_over"

    # Turn lifecycle
    TURN_START = "turn_start"

    # Player submissions
    ACTION_REJECTED = "action_rejected"

    # Opponent policy
    OPPONENT_DECISION = "opponent_decision"

    # Resolution
    ACTION_RESOLVED = "action_resolved"
    REST = "rest"

    # Cooldowns
    COOLDOWN_TICK = "cooldown_tick"


@dataclass
class StateSnapshot:
    """Snapshot of one side's combat state at a point in time."""

    side: Side
    hp: int
    max_hp: int
    ep: int
    max_ep: int
    cooldowns: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "side": self.side.value,
            "hp": self.hp,
            "max_hp": self.max_hp,
            "ep": self.ep,
            "max_ep": self.max_ep,
            "cooldowns": dict(self.cooldowns),
        }


@dataclass
class LogEntry:
    """A single log entry representing a battle event."""

    event_type: LogEventType
    turn_number: int
    timestamp_order: int = 0  # Order within the battle for deterministic sorting

    # Event-specific data
    side: Side | None = None
    action_id: str | None = None
    reason: str | None = None

    # Resolution details
    hit: bool | None = None
    crit: bool | None = None
    value: int | None = None  # Damage dealt, or EP gained on rest
    description: str | None = None

    # Opponent policy scores (candidate id -> score)
    scores: dict[str, float] | None = None

    # State before/after for resolution events
    state_before: StateSnapshot | None = None
    state_after: StateSnapshot | None = None

    # For snapshots of both sides
    all_states: dict[Side, StateSnapshot] | None = None

    # Outcome info
    outcome: BattleOutcome | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "event_type": self.event_type.value,
            "turn_number": self.turn_number,
            "timestamp_order": self.timestamp_order,
        }

        if self.side is not None:
            result["side"] = self.side.value
        if self.action_id is not None:
            result["action_id"] = self.action_id
        if self.reason is not None:
            result["reason"] = self.reason
        if self.hit is not None:
            result["hit"] = self.hit
        if self.crit is not None:
            result["crit"] = self.crit
        if self.value is not None:
            result["value"] = self.value
        if self.description is not None:
            result["description"] = self.description
        if self.scores is not None:
            result["scores"] = dict(self.scores)
        if self.state_before is not None:
            result["state_before"] = self.state_before.to_dict()
        if self.state_after is not None:
            result["state_after"] = self.state_after.to_dict()
        if self.all_states is not None:
            result["all_states"] = {side.value: state.to_dict() for side, state in self.all_states.items()}
        if self.outcome is not None:
            result["outcome"] = self.outcome.value

        return result


@dataclass
class CombatLog:
    """Complete log of one battle."""

    battle_id: int
    entries: list[LogEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "battle_id": self.battle_id,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    def get_entries_by_type(self, event_type: LogEventType) -> list[LogEntry]:
        """Get all entries of a specific type."""
        return [e for e in self.entries if e.event_type == event_type]

    def get_entries_for_turn(self, turn_number: int) -> list[LogEntry]:
        """Get all entries for a specific turn."""
        return [e for e in self.entries if e.turn_number == turn_number]

    def get_entries_for_side(self, side: Side) -> list[LogEntry]:
        """Get all entries acted by one side."""
        return [e for e in self.entries if e.side == side]

    def format_readable(self) -> str:
        """Format the log in a human-readable format."""
        lines: list[str] = []
        lines.append(f"=== Battle Log (Battle #{self.battle_id}) ===\n")

        current_turn = -1

        for entry in self.entries:
            # Turn header
            if entry.turn_number != current_turn:
                current_turn = entry.turn_number
                lines.append(f"\n--- Turn {current_turn} ---\n")

            lines.append(self._format_entry(entry))

        return "\n".join(lines)

    def _format_entry(self, entry: LogEntry) -> str:
        """Format a single log entry."""
        who = entry.side.value.capitalize() if entry.side else "?"

        match entry.event_type:
            case LogEventType.BATTLE_START:
                return "  Battle begins" + self._format_states(entry)

            case LogEventType.BATTLE_RESET:
                return "  Battle reset" + self._format_states(entry)

            case LogEventType.TURN_START:
                return f"  {who}'s turn"

            case LogEventType.ACTION_REJECTED:
                return f"    ✗ {who} cannot use '{entry.action_id}': {entry.reason}"

            case LogEventType.OPPONENT_DECISION:
                scores = ", ".join(f"{k}={v:.1f}" for k, v in (entry.scores or {}).items()) or "none"
                return f"    ? Opponent chooses '{entry.action_id}' ({entry.reason}) scores=[{scores}]"

            case LogEventType.ACTION_RESOLVED:
                if not entry.hit:
                    return f"    → {who} uses {entry.action_id} - miss!"
                hp_change = ""
                if entry.state_before and entry.state_after:
                    hp_change = f" [HP: {entry.state_before.hp} → {entry.state_after.hp}]"
                crit = " (critical!)" if entry.crit else ""
                return f"    → {who} uses {entry.action_id} for {entry.value} damage{crit}{hp_change}"

            case LogEventType.REST:
                return f"    → {who} rests and recovers {entry.value} EP"

            case LogEventType.COOLDOWN_TICK:
                return f"    {who} cooldowns ready: {entry.description}"

            case LogEventType.BATTLE_OVER:
                label = "PLAYER WINS" if entry.outcome == BattleOutcome.PLAYER_WON else "PLAYER LOSES"
                return f"  *** {label} ***"

            case _:
                return f"    {entry.event_type.value}: {entry.description or ''}"

    @staticmethod
    def _format_states(entry: LogEntry) -> str:
        if not entry.all_states:
            return ""
        parts = [
            f"{side.value}: HP={s.hp}/{s.max_hp}, EP={s.ep}/{s.max_ep}" for side, s in entry.all_states.items()
        ]
        return " (" + "; ".join(parts) + ")"


class CombatLogger:
    """Logger for tracking battle events.

    Usage:
        logger = CombatLogger(battle_id=1)
        logger.log_battle_start(session)
        logger.log_turn_start(turn_number=1, side=Side.PLAYER)
        # ... log events ...

        # Get the complete log
        log = logger.get_log()
        print(log.format_readable())
    """

    def __init__(self, battle_id: int) -> None:
        """Initialize the logger for a battle."""
        self.battle_id = battle_id
        self._log = CombatLog(battle_id=battle_id)
        self._order_counter = 0

    def _next_order(self) -> int:
        """Get the next timestamp order value."""
        self._order_counter += 1
        return self._order_counter

    def get_log(self) -> CombatLog:
        """Get the complete combat log."""
        return self._log

    def clear(self) -> None:
        """Clear all log entries."""
        self._log.entries.clear()
        self._order_counter = 0

    @staticmethod
    def snapshot_state(state: Any) -> StateSnapshot:
        """Create a snapshot from a CombatantState object."""
        return StateSnapshot(
            side=state.side,
            hp=state.hp,
            max_hp=state.max_hp,
            ep=state.ep,
            max_ep=state.max_ep,
            cooldowns=dict(state.cooldowns),
        )

    def _snapshot_session(self, session: Any) -> dict[Side, StateSnapshot]:
        return {
            Side.PLAYER: self.snapshot_state(session.player),
            Side.OPPONENT: self.snapshot_state(session.opponent),
        }

    def log_battle_start(self, session: Any) -> None:
        """Log the start of a battle with both sides' initial state."""
        self._log.entries.append(
            LogEntry(
                event_type=LogEventType.BATTLE_START,
                turn_number=session.turn_number,
                timestamp_order=self._next_order(),
                all_states=self._snapshot_session(session),
            )
        )

    def log_battle_reset(self, session: Any) -> None:
        """Log a reset back to full stats."""
        self._log.entries.append(
            LogEntry(
                event_type=LogEventType.BATTLE_RESET,
                turn_number=session.turn_number,
                timestamp_order=self._next_order(),
                all_states=self._snapshot_session(session),
            )
        )

    def log_turn_start(self, turn_number: int, side: Side) -> None:
        """Log the start of one side's turn."""
        self._log.entries.append(
            LogEntry(
                event_type=LogEventType.TURN_START,
                turn_number=turn_number,
                timestamp_order=self._next_order(),
                side=side,
            )
        )

    def log_action_rejected(self, turn_number: int, side: Side, action_id: str, reason: str) -> None:
        """Log a submission that failed validation."""
        self._log.entries.append(
            LogEntry(
                event_type=LogEventType.ACTION_REJECTED,
                turn_number=turn_number,
                timestamp_order=self._next_order(),
                side=side,
                action_id=action_id,
                reason=reason,
            )
        )

    def log_opponent_decision(
        self,
        turn_number: int,
        action_id: str,
        reason: str,
        scores: dict[str, float],
    ) -> None:
        """Log the opponent policy's choice and candidate scores."""
        self._log.entries.append(
            LogEntry(
                event_type=LogEventType.OPPONENT_DECISION,
                turn_number=turn_number,
                timestamp_order=self._next_order(),
                side=Side.OPPONENT,
                action_id=action_id,
                reason=reason,
                scores=dict(scores),
            )
        )

    def log_action_resolved(
        self,
        turn_number: int,
        side: Side,
        action_id: str,
        hit: bool,
        crit: bool,
        damage: int,
        target_before: StateSnapshot,
        target_after: Any,
    ) -> None:
        """Log an attack with the target's before/after state.

        ``target_before`` must be taken with ``snapshot_state`` before damage is applied.
        """
        self._log.entries.append(
            LogEntry(
                event_type=LogEventType.ACTION_RESOLVED,
                turn_number=turn_number,
                timestamp_order=self._next_order(),
                side=side,
                action_id=action_id,
                hit=hit,
                crit=crit,
                value=damage,
                state_before=target_before,
                state_after=self.snapshot_state(target_after),
            )
        )

    def log_rest(self, turn_number: int, side: Side, ep_gained: int, state_after: Any) -> None:
        """Log a rest."""
        self._log.entries.append(
            LogEntry(
                event_type=LogEventType.REST,
                turn_number=turn_number,
                timestamp_order=self._next_order(),
                side=side,
                action_id="rest",
                value=ep_gained,
                state_after=self.snapshot_state(state_after),
            )
        )

    def log_cooldown_tick(self, turn_number: int, side: Side, ready: list[str]) -> None:
        """Log actions coming off cooldown."""
        self._log.entries.append(
            LogEntry(
                event_type=LogEventType.COOLDOWN_TICK,
                turn_number=turn_number,
                timestamp_order=self._next_order(),
                side=side,
                description=", ".join(ready),
            )
        )

    def log_battle_over(self, session: Any, outcome: BattleOutcome) -> None:
        """Log the outcome with the final state of both sides."""
        self._log.entries.append(
            LogEntry(
                event_type=LogEventType.BATTLE_OVER,
                turn_number=session.turn_number,
                timestamp_order=self._next_order(),
                outcome=outcome,
                all_states=self._snapshot_session(session),
            )
        )
