import time
from typing import Any, Callable, Sequence

import chess
import chess.pgn
from loguru import logger

from chess_agent_bench.config import BenchmarkConfig
from chess_agent_bench.exceptions import AgentTimeoutError, TurnError
from chess_agent_bench.player.base_player import BasePlayer
from chess_agent_bench.renderer import display_board_with_context
from chess_agent_bench.turn import TurnDriver
from chess_agent_bench.types import (
    DRAW_RULE_STATUSES,
    Color,
    GameResult,
    GameStatus,
    Winner,
)


def classify_termination(
    board: chess.Board,
    draw_priority: Sequence[GameStatus] = DRAW_RULE_STATUSES,
) -> GameStatus:
    """Map the rules engine's view of the board onto a single game status.

    When several draw rules hold at once, the first one in draw_priority is
    reported.

    Args:
        board: Position to classify.
        draw_priority: Draw statuses in the order they should be reported.

    Returns:
        A terminal status, or IN_PROGRESS if the rules allow play to continue.
    """
    if board.is_checkmate():
        return GameStatus.CHECKMATE

    draw_checks: dict[GameStatus, Callable[[], bool]] = {
        GameStatus.STALEMATE: board.is_stalemate,
        GameStatus.THREEFOLD_REPETITION: lambda: board.is_repetition(3),
        GameStatus.INSUFFICIENT_MATERIAL: board.is_insufficient_material,
        GameStatus.FIFTY_MOVE_RULE: board.is_fifty_moves,
    }
    for status in draw_priority:
        if draw_checks[status]():
            return status
    return GameStatus.IN_PROGRESS


class Game:
    """Plays one game between the agent and the engine.

    A state machine over GameStatus: each step asks the side to move for a
    turn, pushes the accepted move, and re-classifies the board. Turn errors
    are retried in place (the turn does not advance) until one of the two
    consecutive-error counters reaches the abort threshold.
    """

    def __init__(
        self,
        agent: BasePlayer,
        engine: BasePlayer,
        config: BenchmarkConfig | None = None,
        driver: TurnDriver | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize a game.

        Args:
            agent: Model-backed player; its color decides the agent's side.
            engine: Evaluation engine playing the other color.
            config: Move cap, delays, abort threshold, draw priority.
            driver: Turn driver, defaults to the four-rule SAN reconciler.
            sleep: Delay function, replaceable in tests.

        Raises:
            ValueError: If both players have the same color.
        """
        if agent.color == engine.color:
            raise ValueError(
                f"Agent and engine cannot both play {agent.color}"
            )

        self.agent = agent
        self.engine = engine
        self.config = config or BenchmarkConfig()
        self.driver = driver or TurnDriver()
        self.sleep = sleep

        self.board = chess.Board()
        self.moves: list[str] = []
        self.status = GameStatus.IN_PROGRESS
        self.consecutive_errors = 0
        self.consecutive_timeouts = 0
        self.attempts = 0
        self._failed_player: BasePlayer | None = None
        self._result: GameResult | None = None

        logger.info(f"Game initialized: {self.white_player} vs {self.black_player}")

    @property
    def agent_color(self) -> Color:
        return self.agent.color

    @property
    def white_player(self) -> BasePlayer:
        return self.agent if self.agent.color == "white" else self.engine

    @property
    def black_player(self) -> BasePlayer:
        return self.agent if self.agent.color == "black" else self.engine

    @property
    def current_player(self) -> BasePlayer:
        """Get the player whose turn it is to move."""
        return (
            self.white_player if self.board.turn == chess.WHITE else self.black_player
        )

    @property
    def finished(self) -> bool:
        return self.status.is_terminal

    @property
    def result(self) -> GameResult | None:
        return self._result

    @property
    def winner(self) -> Winner | None:
        """'agent', 'engine' or 'draw' once the game is over, else None."""
        if not self.finished:
            return None

        if self.status is GameStatus.CHECKMATE:
            # The side to move has been mated
            mated = self.current_player
            return "engine" if mated is self.agent else "agent"

        if self.status in (GameStatus.ABORTED_BY_ERRORS, GameStatus.ABORTED_BY_TIMEOUTS):
            return "engine" if self._failed_player is self.agent else "agent"

        return "draw"

    def step(self) -> GameStatus:
        """Run one turn attempt and return the status afterwards."""
        if self.finished:
            return self.status

        status = classify_termination(self.board, self.config.draw_priority)
        if status.is_terminal:
            self.status = status
            return status

        if len(self.moves) >= self.config.max_moves:
            logger.info(f"Stopping: Maximum moves ({self.config.max_moves}) reached")
            self.status = GameStatus.MAX_MOVES_REACHED
            return self.status

        mover = self.current_player
        move_number = len(self.moves) // 2 + 1
        logger.info(
            f"--- Move {move_number} - {'white' if self.board.turn else 'black'}'s turn ---"
        )

        self.attempts += 1
        try:
            accepted = self.driver.take_turn(self.board, mover)
        except AgentTimeoutError as e:
            self.consecutive_timeouts += 1
            logger.error(
                f"Agent timeout ({self.consecutive_timeouts}/"
                f"{self.config.max_consecutive_errors}): {e}"
            )
            if self.consecutive_timeouts >= self.config.max_consecutive_errors:
                logger.error(
                    f"Too many consecutive timeouts "
                    f"({self.config.max_consecutive_errors}). Ending game after "
                    f"{self.attempts} attempts."
                )
                self._abort(GameStatus.ABORTED_BY_TIMEOUTS, mover)
                return self.status
            logger.info(f"Retrying with fresh context (attempt {self.attempts + 1})...")
            self.sleep(self.config.retry_backoff_seconds)
            return self.status
        except TurnError as e:
            self.consecutive_errors += 1
            logger.error(
                f"Error during move by {mover} "
                f"({self.consecutive_errors}/{self.config.max_consecutive_errors}): "
                f"{e.__class__.__name__}: {e}"
            )
            if self.consecutive_errors >= self.config.max_consecutive_errors:
                logger.error(
                    f"Too many consecutive errors "
                    f"({self.config.max_consecutive_errors}). Ending game after "
                    f"{self.attempts} attempts."
                )
                self._abort(GameStatus.ABORTED_BY_ERRORS, mover)
                return self.status
            self.sleep(self.config.retry_backoff_seconds)
            return self.status

        self.board.push_uci(accepted.uci)
        self.moves.append(accepted.san)
        self.consecutive_errors = 0
        self.consecutive_timeouts = 0
        logger.info(f"{mover} played: {accepted.san}")

        if self.config.display_board:
            display_board_with_context(
                self.board,
                current_player=self.current_player.name,
                move_count=move_number,
                last_move=self.board.peek(),
            )

        self.status = classify_termination(self.board, self.config.draw_priority)
        if not self.status.is_terminal:
            self.sleep(self.config.api_delay_seconds)
        return self.status

    def _abort(self, status: GameStatus, failed_player: BasePlayer) -> None:
        self.status = status
        self._failed_player = failed_player

    def play(self) -> GameResult:
        """Run the game to a terminal state and return its frozen record."""
        try:
            while not self.finished:
                self.step()
        finally:
            self._cleanup_players()

        self._result = self._build_result()
        logger.info(
            f"Game finished after {len(self.moves)} moves "
            f"({self.attempts} attempts): "
            f"winner={self._result.winner}, reason={self._result.reason}"
        )
        return self._result

    def _pgn_result(self) -> str:
        winner = self.winner
        if winner == "draw":
            return "1/2-1/2"
        winning_color = self.agent_color if winner == "agent" else self.engine.color
        return "1-0" if winning_color == "white" else "0-1"

    def export_pgn(self) -> str:
        pgn_game = chess.pgn.Game.from_board(self.board)
        pgn_game.headers["Event"] = "Agent benchmark"
        pgn_game.headers["White"] = self.white_player.name
        pgn_game.headers["Black"] = self.black_player.name
        pgn_game.headers["Result"] = self._pgn_result() if self.finished else "*"
        if self.finished:
            pgn_game.headers["Termination"] = self.status.value
        return str(pgn_game)

    def _build_result(self) -> GameResult:
        return GameResult(
            winner=self.winner,
            reason=self.status.value,
            status=self.status,
            agent_color=self.agent_color,
            moves=list(self.moves),
            pgn=self.export_pgn(),
            final_fen=self.board.fen(),
            move_count=len(self.moves),
            attempts=self.attempts,
        )

    def _cleanup_players(self) -> None:
        """Clean up player resources."""
        for player in (self.agent, self.engine):
            try:
                player.close()
            except Exception as e:
                logger.warning(f"Error closing {player}: {e}")

    def __enter__(self) -> "Game":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self._cleanup_players()
