"""Cooldown tracker - per-action turn counters on a combatant."""

from .types import CombatantState


class CooldownTracker:
    """Starts, checks and decays action cooldowns.

    Counters live in ``CombatantState.cooldowns``; an absent entry means the
    action is ready. Entries are removed as soon as they reach 0.
    """

    def is_available(self, combatant: CombatantState, action_id: str) -> bool:
        """True if the action is off cooldown (EP is not considered)."""
        return self.remaining(combatant, action_id) == 0

    def remaining(self, combatant: CombatantState, action_id: str) -> int:
        """Turns left before the action is ready again."""
        return combatant.cooldowns.get(action_id, 0)

    def start(self, combatant: CombatantState, action_id: str, turns: int) -> None:
        """Put an action on cooldown after use. No-op for ``turns <= 0``."""
        if turns <= 0:
            return
        combatant.cooldowns[action_id] = turns

    def decrement(self, combatant: CombatantState) -> list[str]:
        """Tick every active cooldown down by one turn.

        Returns:
            Action ids that became available with this tick
        """
        ready: list[str] = []
        for action_id in list(combatant.cooldowns):
            remaining = max(0, combatant.cooldowns[action_id] - 1)
            if remaining == 0:
                del combatant.cooldowns[action_id]
                ready.append(action_id)
            else:
                combatant.cooldowns[action_id] = remaining
        return ready
