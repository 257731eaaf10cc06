"""Command line front end: play a battle in the terminal or simulate headless battles."""

import logging
import random
from typing import Optional

import typer

from board_battle.config import Settings, get_settings
from board_battle.engine import REST, ActionResolution, BattleEngine, Side

app = typer.Typer(add_completion=False, help="Turn-based board battle against the HDD.")
logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def describe_step(step: ActionResolution, engine: BattleEngine) -> str:
    """One line of battle narration for a resolution step."""
    who = "You" if step.side is Side.PLAYER else "Opponent"
    if step.rested:
        return f"{who} rested and recovered {step.ep_gained} EP."

    name = engine.catalog.lookup(step.action_id).display_name
    if not step.hit:
        return f"{who} used {name} - missed!"

    crit = " (critical!)" if step.crit else ""
    return f"{who} used {name} and dealt {step.damage} damage{crit}."


def describe_state(engine: BattleEngine, battle_id: int) -> str:
    state = engine.get_battle_state(battle_id)
    if state is None:
        return "No battle."
    lines = []
    for side, data in state["combatants"].items():
        cooldowns = ", ".join(f"{k}:{v}" for k, v in data["cooldowns"].items()) or "none"
        lines.append(
            f"{side:>8}: HP {data['hp']}/{data['max_hp']}  EP {data['ep']}/{data['max_ep']}  cooldowns [{cooldowns}]"
        )
    lines.append(f"   score: {state['score']}")
    return "\n".join(lines)


def pick_greedy(engine: BattleEngine, battle_id: int) -> str:
    """Headless player: the hardest-hitting usable action, or rest."""
    usable = [a for a in engine.available_actions(battle_id) if a != REST]
    if not usable:
        return REST
    return max(
        usable,
        key=lambda a: engine.catalog.lookup(a).base_damage * engine.catalog.lookup(a).hit_chance,
    )


@app.command()
def play(
    seed: Optional[int] = typer.Option(None, help="Seed for a reproducible battle."),
    show_log: bool = typer.Option(False, "--log", help="Print the full battle log when the battle ends."),
) -> None:
    """Play a battle in the terminal."""
    settings = get_settings()
    setup_logging(settings)
    engine = BattleEngine(settings=settings, rng=random.Random(seed) if seed is not None else None)

    result = engine.create_battle()
    battle_id = result.battle_id
    if battle_id is None:
        raise typer.Exit(1)
    for step in result.turn_result.steps if result.turn_result else []:
        typer.echo(describe_step(step, engine))

    choices = ", ".join([*engine.catalog.ids(), REST, "reset", "quit"])
    while True:
        typer.echo(describe_state(engine, battle_id))
        session = engine.get_session(battle_id)
        if session is not None and session.is_over():
            if show_log and (log := engine.get_combat_log(battle_id)) is not None:
                typer.echo(log.format_readable())
            if not typer.confirm("Play again?", default=True):
                break
            result = engine.reset_battle(battle_id)
            for step in result.turn_result.steps if result.turn_result else []:
                typer.echo(describe_step(step, engine))
            continue

        choice = typer.prompt(f"Action ({choices})").strip()
        if choice == "quit":
            break
        if choice == "reset":
            result = engine.reset_battle(battle_id)
            typer.echo("Battle restarted.")
            for step in result.turn_result.steps if result.turn_result else []:
                typer.echo(describe_step(step, engine))
            continue
        if choice != REST and choice not in engine.catalog:
            typer.echo(f"Unknown action '{choice}'.")
            continue

        result = engine.submit_action(battle_id, choice)
        if not result.success:
            typer.echo(result.message)
            continue
        for step in result.turn_result.steps if result.turn_result else []:
            typer.echo(describe_step(step, engine))
        if result.outcome is not None:
            won = result.outcome.player_won
            typer.echo(
                f"{'You won' if won else 'You lost'} - "
                f"{'advance' if won else 'go back'} {abs(result.outcome.board_advance)} squares."
            )


@app.command()
def simulate(
    battles: int = typer.Option(1, min=1, help="Number of battles to play."),
    seed: Optional[int] = typer.Option(None, help="Seed for reproducible battles."),
    max_turns: int = typer.Option(200, min=1, help="Safety cap on turns per battle."),
) -> None:
    """Play headless battles with a greedy player and report the tally."""
    settings = get_settings()
    setup_logging(settings)
    engine = BattleEngine(
        settings=settings.model_copy(update={"reply_delay": 0.0}),
        rng=random.Random(seed) if seed is not None else None,
        log_combat=False,
    )

    battle_id = engine.create_battle().battle_id
    if battle_id is None:
        raise typer.Exit(1)
    wins = losses = 0
    for number in range(1, battles + 1):
        if number > 1:
            engine.reset_battle(battle_id)
        session = engine.get_session(battle_id)
        turns = 0
        while session is not None and not session.is_over() and turns < max_turns:
            engine.submit_action(battle_id, pick_greedy(engine, battle_id))
            turns += 1
        if session is None or session.outcome is None:
            typer.echo(f"Battle {number}: undecided after {turns} turns")
            continue
        if session.outcome.player_won:
            wins += 1
        else:
            losses += 1
        typer.echo(f"Battle {number}: {session.outcome.outcome.value} in {turns} turns")

    session = engine.get_session(battle_id)
    typer.echo(f"Wins: {wins}  Losses: {losses}  Score: {session.score if session else 0}")
