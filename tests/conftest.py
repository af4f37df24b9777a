"""Shared test fixtures and utilities for the test suite."""

import warnings
from collections.abc import Sequence
from pathlib import Path

import chess
import pytest
from dotenv import load_dotenv
from loguru import logger

# Filter external library warnings that we can't fix
# These come from litellm, pydantic, and httpx internals
warnings.filterwarnings(
    "ignore", message="There is no current event loop", category=DeprecationWarning
)
warnings.filterwarnings(
    "ignore", message="Pydantic serializer warnings:.*", category=UserWarning
)

# Load environment variables from .env file for tests
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from chess_agent_bench.config import BenchmarkConfig  # noqa: E402
from chess_agent_bench.game import Game  # noqa: E402
from chess_agent_bench.player.base_player import BasePlayer  # noqa: E402
from chess_agent_bench.types import (  # noqa: E402
    Color,
    GameStatus,
    MoveSourceKind,
    TurnContext,
)


class ScriptedPlayer(BasePlayer):
    """Move source that replays a fixed list of responses.

    Each entry is either raw response text or an exception instance to raise.
    Once the script runs out, the first legal move is returned.
    """

    def __init__(
        self,
        name: str,
        color: Color,
        responses: Sequence[str | Exception] = (),
        kind: MoveSourceKind = "agent",
    ) -> None:
        super().__init__(name, color)
        self.kind = kind
        self.responses = list(responses)
        self.calls = 0
        self.observed_fens: list[str] = []
        self.closed = False

    def _propose_move(self, context: TurnContext) -> str:
        self.calls += 1
        self.observed_fens.append(context.board_in_fen)
        if not self.responses:
            return context.legal_moves_in_san[0]
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def sleeps():
    """List collecting every delay a game or runner asked for."""
    return []


@pytest.fixture
def fast_config():
    """Config without board output; delays stay non-zero so they are observable."""
    return BenchmarkConfig(
        games=1,
        display_board=False,
        api_delay_seconds=1,
        retry_backoff_seconds=5,
    )


@pytest.fixture
def common_positions():
    """Dictionary of commonly used FEN positions for testing."""
    return {
        "stalemate": "7k/5K2/6Q1/8/8/8/8/8 b - - 0 1",
        "stalemate_bishop_vs_king": "k7/8/1K6/4B3/8/8/8/8 b - - 0 1",
        "king_vs_king": "k7/8/8/8/8/8/8/K7 w - - 0 1",
        "back_rank_mate": "R5k1/5ppp/8/8/8/8/8/7K b - - 0 1",
        "fools_mate": "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3",
        "fifty_moves": "8/8/4k3/8/8/3QK3/8/8 w - - 100 80",
        "mate_in_one_white": "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1",
        "promotion": "8/4P3/8/8/8/k7/8/K7 w - - 0 1",
        "castling": "r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 1",
        "en_passant": "rnbqkb1r/ppp1pppp/5n2/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3",
    }


def setup_game_from_fen(
    fen_string: str,
    agent: BasePlayer,
    engine: BasePlayer,
    config: BenchmarkConfig,
    sleep=lambda seconds: None,
) -> Game:
    """Create a game whose board starts from the provided FEN."""
    game = Game(agent, engine, config=config, sleep=sleep)
    game.board = chess.Board(fen_string)
    return game


def assert_game_terminated(
    game: Game,
    expected_status: GameStatus,
    expected_winner: str,
) -> None:
    """Assert that a game finished with the specified status and winner."""
    assert game.finished
    assert game.status is expected_status
    assert game.winner == expected_winner


@pytest.fixture
def loguru_messages():
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)
