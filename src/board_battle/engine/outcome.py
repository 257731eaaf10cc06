"""Battle outcome evaluator - detects the end of a battle."""

from .enums import BattleOutcome
from .types import BattleSession, OutcomeReport

WIN_SCORE_DELTA = 1
LOSS_SCORE_DELTA = -1
WIN_BOARD_ADVANCE = 6
LOSS_BOARD_ADVANCE = -4


class BattleOutcomeEvaluator:
    """Checks terminal conditions after every resolution."""

    def evaluate(self, session: BattleSession) -> OutcomeReport | None:
        """Report the outcome the first time a side is knocked out.

        Returns None while both sides stand, and also once the session already
        carries an outcome, so a battle yields exactly one terminal report.
        """
        if session.outcome is not None:
            return None

        if not session.opponent.is_alive():
            return OutcomeReport(
                outcome=BattleOutcome.PLAYER_WON,
                score_delta=WIN_SCORE_DELTA,
                board_advance=WIN_BOARD_ADVANCE,
            )

        if not session.player.is_alive():
            return OutcomeReport(
                outcome=BattleOutcome.PLAYER_LOST,
                score_delta=LOSS_SCORE_DELTA,
                board_advance=LOSS_BOARD_ADVANCE,
            )

        return None
