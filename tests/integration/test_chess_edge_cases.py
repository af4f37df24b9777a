import chess
import pytest

from chess_agent_bench.game import Game
from chess_agent_bench.reconciler import resolve_move
from chess_agent_bench.types import GameStatus
from chess_agent_bench.utils import get_legal_moves_in_san
from tests.conftest import ScriptedPlayer, setup_game_from_fen


def one_move_game(fen, agent_reply, config):
    board = chess.Board(fen)
    agent_color = "white" if board.turn == chess.WHITE else "black"
    engine_color = "black" if agent_color == "white" else "white"
    agent = ScriptedPlayer("Agent", agent_color, [agent_reply])
    engine = ScriptedPlayer("Stockfish", engine_color, kind="engine")
    game = setup_game_from_fen(fen, agent, engine, config)
    game.step()
    return game


class TestSpecialMoves:
    @pytest.mark.parametrize("reply", ["O-O", "o-o", "I castle: O-O"])
    def test_kingside_castling(self, common_positions, fast_config, reply):
        game = one_move_game(common_positions["castling"], reply, fast_config)

        assert game.moves == ["O-O"]
        assert game.board.piece_at(chess.G1) == chess.Piece(chess.KING, chess.WHITE)
        assert game.board.piece_at(chess.F1) == chess.Piece(chess.ROOK, chess.WHITE)

    def test_queenside_castling_is_not_confused_with_kingside(
        self, common_positions, fast_config
    ):
        game = one_move_game(common_positions["castling"], "O-O-O", fast_config)

        assert game.moves == ["O-O-O"]
        assert game.board.piece_at(chess.C1) == chess.Piece(chess.KING, chess.WHITE)

    def test_en_passant(self, common_positions, fast_config):
        game = one_move_game(common_positions["en_passant"], "exd6", fast_config)

        assert game.moves == ["exd6"]
        assert game.board.piece_at(chess.D5) is None
        assert game.board.piece_at(chess.D6) == chess.Piece(chess.PAWN, chess.WHITE)

    def test_promotion(self, common_positions, fast_config):
        game = one_move_game(common_positions["promotion"], "e8=Q", fast_config)

        assert game.moves == ["e8=Q"]
        assert game.board.piece_at(chess.E8) == chess.Piece(chess.QUEEN, chess.WHITE)

    def test_underpromotion(self, common_positions, fast_config):
        game = one_move_game(common_positions["promotion"], "e8=N", fast_config)

        assert game.board.piece_at(chess.E8) == chess.Piece(chess.KNIGHT, chess.WHITE)


class TestCheckSuffixes:
    def test_mate_without_suffix_resolves(self, common_positions):
        board = chess.Board(common_positions["mate_in_one_white"])

        assert resolve_move("Ra8", get_legal_moves_in_san(board)) == "Ra8#"

    def test_check_written_as_mate_resolves(self):
        board = chess.Board("4k3/8/8/8/8/8/8/R3K3 w - - 0 1")

        assert resolve_move("Ra8#", get_legal_moves_in_san(board)) == "Ra8+"


def test_black_to_move_from_fen(common_positions, fast_config):
    game = one_move_game(common_positions["back_rank_mate"], "Kh8", fast_config)

    # Agent is already mated, so no move is requested
    assert game.status is GameStatus.CHECKMATE
    assert game.moves == []
    assert game.winner == "engine"


def test_game_over_positions_do_not_ask_either_side(common_positions, fast_config):
    agent = ScriptedPlayer("Agent", "white")
    engine = ScriptedPlayer("Stockfish", "black", kind="engine")
    game = Game(agent, engine, config=fast_config)
    game.board = chess.Board(common_positions["fools_mate"])

    game.play()

    assert game.status is GameStatus.CHECKMATE
    assert game.winner == "engine"
    assert agent.calls == engine.calls == 0
