"""Battle engine module - handles turn processing, damage resolution and the opponent AI."""

from .battle import BattleEngine, BattleResult
from .catalog import ActionCatalog, ActionDefinition
from .cooldowns import CooldownTracker
from .damage import DamageResolver, DamageRoll
from .enums import REST, ActionKind, BattleOutcome, BattlePhase, RejectionCode, Side
from .errors import ActionNotFoundError, ConfigurationError, TurnOrderError, ValidationError, ValidationResult
from .logging import CombatLog, CombatLogger, LogEntry, LogEventType, StateSnapshot
from .outcome import BattleOutcomeEvaluator
from .policy import OpponentPolicy, PolicyDecision, PolicyTuning
from .turn import TurnEngine
from .types import ActionResolution, BattleSession, CombatantState, OutcomeReport, TurnResult

__all__ = [
    "REST",
    "ActionCatalog",
    "ActionDefinition",
    "ActionKind",
    "ActionNotFoundError",
    "ActionResolution",
    "BattleEngine",
    "BattleOutcome",
    "BattleOutcomeEvaluator",
    "BattlePhase",
    "BattleResult",
    "BattleSession",
    "CombatLog",
    "CombatLogger",
    "CombatantState",
    "ConfigurationError",
    "CooldownTracker",
    "DamageResolver",
    "DamageRoll",
    "LogEntry",
    "LogEventType",
    "OpponentPolicy",
    "OutcomeReport",
    "PolicyDecision",
    "PolicyTuning",
    "RejectionCode",
    "Side",
    "StateSnapshot",
    "TurnEngine",
    "TurnOrderError",
    "TurnResult",
    "ValidationError",
    "ValidationResult",
]
