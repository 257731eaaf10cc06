"""Tests for the command line front end."""

import pytest
from conftest import ScriptedRandom, make_settings
from typer.testing import CliRunner

from board_battle.cli import app, describe_state, describe_step, pick_greedy
from board_battle.config import get_settings
from board_battle.engine import REST, BattleEngine

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Each CLI run reads fresh settings without pacing."""
    monkeypatch.setenv("BATTLE_REPLY_DELAY", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestHelpers:
    """Tests for the narration helpers."""

    def test_describe_steps(self):
        """Test narration for hits and rests."""
        engine = BattleEngine(settings=make_settings(), rng=ScriptedRandom())
        battle_id = engine.create_battle().battle_id

        result = engine.submit_action(battle_id, "basic1")

        player_line = describe_step(result.turn_result.steps[0], engine)
        assert player_line == "You used Golpe Rápido and dealt 11 damage."
        assert describe_step(result.turn_result.steps[1], engine).startswith("Opponent used Explosão Máxima")

        engine.get_session(battle_id).player.ep = 0
        rest = engine.submit_action(battle_id, REST)
        assert describe_step(rest.turn_result.steps[0], engine) == "You rested and recovered 10 EP."

    def test_describe_state(self):
        """Test the status block lists both sides and the score."""
        engine = BattleEngine(settings=make_settings(), rng=ScriptedRandom())
        battle_id = engine.create_battle().battle_id

        text = describe_state(engine, battle_id)

        assert "HP 180/180" in text
        assert "EP 60/60" in text
        assert "score: 0" in text
        assert describe_state(engine, 99) == "No battle."

    def test_pick_greedy(self):
        """Test the headless player picks the best usable hit, or rests."""
        engine = BattleEngine(settings=make_settings(), rng=ScriptedRandom())
        battle_id = engine.create_battle().battle_id

        assert pick_greedy(engine, battle_id) == "special"

        engine.get_session(battle_id).player.ep = 5
        assert pick_greedy(engine, battle_id) == REST


class TestCommands:
    """Tests for the typer commands."""

    def test_simulate(self):
        """Test headless battles report a tally."""
        result = runner.invoke(app, ["simulate", "--battles", "3", "--seed", "3"])

        assert result.exit_code == 0
        assert "Battle 1:" in result.output
        assert "Battle 3:" in result.output
        assert "Wins:" in result.output

    def test_simulate_is_reproducible(self):
        """Test the same seed prints the same report."""
        first = runner.invoke(app, ["simulate", "--battles", "2", "--seed", "8"])
        second = runner.invoke(app, ["simulate", "--battles", "2", "--seed", "8"])

        assert first.output == second.output

    def test_play_quit(self):
        """Test an interactive session can rest and quit."""
        result = runner.invoke(app, ["play", "--seed", "1"], input="rest\nquit\n")

        assert result.exit_code == 0
        assert "You rested" in result.output

    def test_play_rejects_unknown_action(self):
        """Test unknown input is reported without crashing."""
        result = runner.invoke(app, ["play", "--seed", "1"], input="fireball\nquit\n")

        assert result.exit_code == 0
        assert "Unknown action 'fireball'." in result.output

    def test_play_reset_shows_opponent_opening(self, monkeypatch):
        """Test a mid-battle reset narrates the opponent's new opening move."""
        monkeypatch.setenv("BATTLE_PLAYER_STARTS", "false")

        result = runner.invoke(app, ["play", "--seed", "1"], input="reset\nquit\n")

        assert result.exit_code == 0
        assert "Battle restarted." in result.output
        after_reset = result.output.split("Battle restarted.", 1)[1]
        assert "Opponent used" in after_reset or "Opponent rested" in after_reset
