"""Shared fixtures for battle engine tests."""

import random

import pytest

from board_battle.config import Settings
from board_battle.engine import ActionCatalog, CombatantState, CombatLogger, Side, TurnEngine


class ScriptedRandom(random.Random):
    """Random source with scripted rolls for exact, readable assertions.

    ``random()`` pops from ``rolls`` (hit and crit rolls) and ``uniform()``
    pops from ``uniforms`` (damage variance and AI jitter). When a queue runs
    dry the defaults apply: 0.5 for rolls (hits anything with hit_chance
    above 0.5, never crits at the default 15%) and 1.0 for uniforms.
    """

    def __init__(
        self,
        rolls: list[float] | None = None,
        uniforms: list[float] | None = None,
        default_roll: float = 0.5,
        default_uniform: float = 1.0,
    ) -> None:
        super().__init__(0)
        self.rolls = list(rolls or [])
        self.uniforms = list(uniforms or [])
        self.default_roll = default_roll
        self.default_uniform = default_uniform

    def random(self) -> float:
        if self.rolls:
            return self.rolls.pop(0)
        return self.default_roll

    def uniform(self, a: float, b: float) -> float:
        if self.uniforms:
            return self.uniforms.pop(0)
        return self.default_uniform


def make_settings(**overrides) -> Settings:
    """Settings with defaults only - ignores the environment and .env files."""
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def catalog() -> ActionCatalog:
    return ActionCatalog.default()


@pytest.fixture
def scripted_rng() -> ScriptedRandom:
    return ScriptedRandom()


@pytest.fixture
def combat_logger() -> CombatLogger:
    return CombatLogger(battle_id=1)


@pytest.fixture
def engine(settings, catalog, scripted_rng, combat_logger) -> TurnEngine:
    """Turn engine with scripted rolls: every hit lands, no crits, no variance."""
    return TurnEngine(catalog=catalog, settings=settings, rng=scripted_rng, combat_logger=combat_logger)


@pytest.fixture
def session(engine):
    return engine.new_session(battle_id=1)


@pytest.fixture
def player_state() -> CombatantState:
    return CombatantState.fresh(Side.PLAYER, max_hp=180, max_ep=45)


@pytest.fixture
def opponent_state() -> CombatantState:
    return CombatantState.fresh(Side.OPPONENT, max_hp=240, max_ep=60)
