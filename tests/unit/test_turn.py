"""Unit tests for the turn driver."""

import chess
import pytest

from chess_agent_bench.exceptions import (
    AgentError,
    AgentTimeoutError,
    EngineError,
    InvalidMoveError,
    ResolutionFailure,
)
from chess_agent_bench.reconciler import BaseMoveReconciler
from chess_agent_bench.turn import TurnDriver
from tests.conftest import ScriptedPlayer


class ExactOnlyReconciler(BaseMoveReconciler):
    def _match(self, candidate, legal_moves):
        return candidate if candidate in legal_moves else None


class BoardMutatingPlayer(ScriptedPlayer):
    """Tries to push a move onto the board it was handed."""

    def __call__(self, board):
        board.push_san("e4")
        return "d4"


class TestTakeTurn:
    def test_markup_wrapped_move_is_accepted(self):
        player = ScriptedPlayer("Agent", "white", ["**Nf3**"])

        accepted = TurnDriver().take_turn(chess.Board(), player)

        assert accepted.san == "Nf3"
        assert accepted.uci == "g1f3"
        assert accepted.source == "agent"
        assert accepted.raw_text == "**Nf3**"
        assert accepted.corrected is False

    def test_move_inside_commentary_is_corrected(self):
        player = ScriptedPlayer("Agent", "white", ["I'll play e4 to control the center"])

        accepted = TurnDriver().take_turn(chess.Board(), player)

        assert accepted.san == "e4"
        assert accepted.corrected is True

    def test_only_first_line_is_considered(self):
        player = ScriptedPlayer("Agent", "white", ["```\nd4\n```"])

        # Fence removal leaves an empty first line
        with pytest.raises(InvalidMoveError):
            TurnDriver().take_turn(chess.Board(), player)

    def test_missing_check_suffix_is_added(self, common_positions):
        board = chess.Board(common_positions["mate_in_one_white"])
        player = ScriptedPlayer("Agent", "white", ["Ra8"])

        accepted = TurnDriver().take_turn(board, player)

        assert accepted.san == "Ra8#"

    def test_unresolvable_move_raises_invalid_move_error(self):
        player = ScriptedPlayer("Agent", "white", ["Qh9"])

        with pytest.raises(InvalidMoveError, match="produced invalid move: Qh9") as exc_info:
            TurnDriver().take_turn(chess.Board(), player)

        cause = exc_info.value.__cause__
        assert isinstance(cause, ResolutionFailure)
        assert len(cause.legal_moves) == 20

    def test_empty_response_is_invalid(self):
        player = ScriptedPlayer("Agent", "white", [""])

        with pytest.raises(InvalidMoveError):
            TurnDriver().take_turn(chess.Board(), player)

    def test_agent_timeout_passes_through(self):
        player = ScriptedPlayer(
            "Agent", "white", [AgentTimeoutError("Agent response timeout after 60 seconds")]
        )

        with pytest.raises(AgentTimeoutError):
            TurnDriver().take_turn(chess.Board(), player)

    def test_unexpected_agent_exception_becomes_agent_error(self):
        player = ScriptedPlayer("Agent", "white", [RuntimeError("socket closed")])

        with pytest.raises(AgentError, match="socket closed"):
            TurnDriver().take_turn(chess.Board(), player)

    def test_unexpected_engine_exception_becomes_engine_error(self):
        player = ScriptedPlayer("Stockfish", "black", [RuntimeError("crashed")], kind="engine")
        board = chess.Board()
        board.push_san("e4")

        with pytest.raises(EngineError, match="crashed"):
            TurnDriver().take_turn(board, player)

    def test_board_is_not_mutated(self):
        board = chess.Board()
        player = BoardMutatingPlayer("Agent", "white")

        accepted = TurnDriver().take_turn(board, player)

        assert accepted.san == "d4"
        assert board.move_stack == []
        assert board.fen() == chess.STARTING_FEN

    def test_custom_reconciler_is_used(self):
        player = ScriptedPlayer("Agent", "white", ["play e4"])

        with pytest.raises(InvalidMoveError):
            TurnDriver(reconciler=ExactOnlyReconciler()).take_turn(
                chess.Board(), player
            )

    def test_promotion_move_is_accepted(self, common_positions):
        board = chess.Board(common_positions["promotion"])
        player = ScriptedPlayer("Agent", "white", ["e8=Q"])

        accepted = TurnDriver().take_turn(board, player)

        assert accepted.san == "e8=Q"
        assert accepted.uci == "e7e8q"
