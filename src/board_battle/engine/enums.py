"""Enums for the battle engine."""

from enum import Enum

REST = "rest"


class ActionKind(str, Enum):
    """Kinds of catalog actions - the opponent policy weighs them differently."""

    PHYSICAL = "physical"  # Cheap, reliable hits
    PRECISION = "precision"  # Harder hits with a lower hit chance
    SPECIAL = "special"  # Heaviest hit, usually gated by a cooldown


class Side(str, Enum):
    """The two combatants of a battle."""

    PLAYER = "player"
    OPPONENT = "opponent"

    @property
    def other(self) -> "Side":
        """The opposing side."""
        return Side.OPPONENT if self is Side.PLAYER else Side.PLAYER


class BattlePhase(str, Enum):
    """States of the turn state machine."""

    WAITING_PLAYER_ACTION = "waiting_player_action"
    RESOLVING_PLAYER_ACTION = "resolving_player_action"
    WAITING_OPPONENT_ACTION = "waiting_opponent_action"
    RESOLVING_OPPONENT_ACTION = "resolving_opponent_action"
    BATTLE_OVER = "battle_over"  # Terminal until the session is reset


class BattleOutcome(str, Enum):
    """Terminal result of a battle, from the player's point of view."""

    PLAYER_WON = "player_won"
    PLAYER_LOST = "player_lost"


class RejectionCode(str, Enum):
    """Why a player submission was rejected."""

    INSUFFICIENT_EP = "insufficient_ep"
    ON_COOLDOWN = "on_cooldown"
    OUT_OF_TURN = "out_of_turn"
    BATTLE_OVER = "battle_over"
