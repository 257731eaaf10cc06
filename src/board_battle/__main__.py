"""Entry point for running the board battle from the terminal."""

from board_battle.cli import app


def main() -> None:
    """Run the command line app."""
    app()


if __name__ == "__main__":
    main()
