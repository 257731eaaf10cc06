"""Damage resolver - hit, variance and crit rolls for one action use."""

import random
from dataclasses import dataclass

from .catalog import ActionDefinition

VARIANCE_MIN = 0.85
VARIANCE_MAX = 1.15


@dataclass
class DamageRoll:
    """Outcome of resolving one action against a target."""

    hit: bool
    damage: int
    crit: bool = False


class DamageResolver:
    """Rolls damage for an action. Never touches combatant state.

    Roll order on the injected generator is fixed (hit, variance, crit) so a
    seeded ``random.Random`` replays a battle exactly.
    """

    def resolve(
        self,
        action: ActionDefinition,
        side_multiplier: float,
        crit_chance: float,
        crit_multiplier: float,
        rng: random.Random,
    ) -> DamageRoll:
        """Resolve one use of an action.

        Args:
            action: The action being used
            side_multiplier: Attacker-side damage multiplier
            crit_chance: Probability of a critical hit
            crit_multiplier: Damage factor applied on a critical hit
            rng: Random source for the hit, variance and crit rolls

        Returns:
            DamageRoll with hit flag, final damage (0 on a miss) and crit flag
        """
        if rng.random() >= action.hit_chance:
            return DamageRoll(hit=False, damage=0)

        raw = action.base_damage * rng.uniform(VARIANCE_MIN, VARIANCE_MAX) * side_multiplier
        crit = rng.random() < crit_chance
        if crit:
            raw *= crit_multiplier

        return DamageRoll(hit=True, damage=max(1, round(raw)), crit=crit)
