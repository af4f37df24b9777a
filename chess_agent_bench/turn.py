"""Obtain, clean and reconcile one side's move."""

import time

import chess
from loguru import logger

from chess_agent_bench.exceptions import (
    AgentError,
    EngineError,
    InvalidMoveError,
    ResolutionFailure,
    TurnError,
)
from chess_agent_bench.player.base_player import BasePlayer
from chess_agent_bench.reconciler import (
    DEFAULT_RECONCILER,
    BaseMoveReconciler,
    clean_candidate_text,
)
from chess_agent_bench.types import AcceptedMove
from chess_agent_bench.utils import get_legal_moves_in_san


class TurnDriver:
    """Runs a single turn for whichever move source is asked to move.

    The driver never touches the board it is given beyond reading a copy;
    pushing the accepted move is the caller's job.
    """

    def __init__(self, reconciler: BaseMoveReconciler = DEFAULT_RECONCILER) -> None:
        self.reconciler = reconciler

    def take_turn(self, board: chess.Board, mover: BasePlayer) -> AcceptedMove:
        """Get a legal move from mover for the current position.

        Args:
            board: Current position.
            mover: Agent or engine whose turn it is.

        Returns:
            The accepted move with its SAN, UCI and the raw source text.

        Raises:
            AgentTimeoutError: The agent did not answer in time.
            AgentError: The agent invocation failed.
            EngineError: The engine failed.
            InvalidMoveError: The source answered with an unusable move.
        """
        # Copy prevents move sources from mutating game state
        snapshot = board.copy()
        start = time.monotonic()
        try:
            raw_text = mover(snapshot)
        except TurnError:
            raise
        except Exception as e:
            error_cls = EngineError if mover.kind == "engine" else AgentError
            raise error_cls(f"{mover} failed to produce a move: {e}") from e
        elapsed = time.monotonic() - start

        raw_text = raw_text or ""
        candidate = clean_candidate_text(raw_text)
        logger.info(f"{mover} raw response: \"{candidate}\"")

        legal_moves = get_legal_moves_in_san(board)
        try:
            san = self.reconciler.resolve(candidate, legal_moves)
        except ResolutionFailure as e:
            logger.error(f"Invalid move from {mover}: {candidate}")
            logger.info(f"Legal moves: {', '.join(e.legal_moves)}")
            raise InvalidMoveError(
                f"{mover} produced invalid move: {candidate}"
            ) from e

        corrected = san != candidate
        if corrected:
            logger.info(f"Corrected to: {san}")

        move = board.parse_san(san)
        return AcceptedMove(
            san=san,
            uci=move.uci(),
            source=mover.kind,
            raw_text=raw_text,
            elapsed_seconds=round(elapsed, 3),
            corrected=corrected,
        )
