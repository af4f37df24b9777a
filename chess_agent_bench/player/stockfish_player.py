import os
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

import chess
import chess.engine
from loguru import logger

from chess_agent_bench.exceptions import EngineError
from chess_agent_bench.formatting import format_evaluation, format_principal_variation
from chess_agent_bench.player.base_player import BasePlayer
from chess_agent_bench.types import Color, EngineEvaluation, ScoredLine, TurnContext

DEFAULT_DEPTH = 15
DEFAULT_SKILL_LEVEL = 1000
MULTI_PV = 2


class StockfishPlayer(BasePlayer):
    """Evaluation engine backed by a local Stockfish binary.

    Uses lazy initialization: engine subprocess starts only on first move request.
    This prevents hanging processes if game init fails after player creation.

    The skill level is an Elo target applied through UCI_LimitStrength and
    UCI_Elo, clamped to whatever range the engine advertises.
    """

    kind = "engine"

    def __init__(
        self,
        *,
        name: str = "Stockfish",
        color: Color,
        binary_path: Optional[str] = None,
        depth: int = DEFAULT_DEPTH,
        skill_level: int = DEFAULT_SKILL_LEVEL,
        engine_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize Stockfish player configuration.

        Args:
            name: Display name.
            color: 'white' or 'black'.
            binary_path: Explicit path or None to auto-detect.
            depth: Search depth per move.
            skill_level: Target Elo rating.
            engine_options: Extra UCI configuration (threads, hash).

        Raises:
            FileNotFoundError: If binary not found during path resolution.
        """
        super().__init__(name, color)

        self.engine: Optional[chess.engine.SimpleEngine] = None
        self.binary_path = self._find_stockfish_binary(binary_path)
        self.depth = depth
        self.skill_level = skill_level
        self.engine_options = engine_options or {}
        self._applied_skill_level: Optional[int] = None

        logger.debug(
            f"StockfishPlayer configured with depth={depth}, skill={skill_level} "
            f"(engine not started yet)"
        )

    @staticmethod
    def _find_stockfish_binary(explicit_path: Optional[str] = None) -> str:
        """Locate Stockfish binary.

        Search order: explicit path, env var, PATH, common locations.

        Raises:
            FileNotFoundError: If not found anywhere.
        """
        if explicit_path:
            path = Path(explicit_path)
            if not path.exists():
                raise FileNotFoundError(f"Stockfish binary not found at: {path}")
            if not os.access(str(path), os.X_OK):
                raise FileNotFoundError(
                    f"Stockfish binary exists but is not executable at: {path}\n"
                    f"Try: chmod +x {path}"
                )
            return str(path.resolve())

        env_path = os.getenv("STOCKFISH_BINARY_PATH")
        if env_path:
            path = Path(env_path)
            if path.exists() and os.access(str(path), os.X_OK):
                logger.debug(f"Found Stockfish binary from STOCKFISH_BINARY_PATH: {path}")
                return str(path.resolve())
            logger.warning(
                f"STOCKFISH_BINARY_PATH is set to {path}, but it is missing or not executable"
            )

        system_path = shutil.which("stockfish")
        if system_path:
            logger.debug(f"Found Stockfish binary in PATH: {system_path}")
            return system_path

        for common_path in (
            "/usr/local/bin/stockfish",
            "/usr/bin/stockfish",
            "/usr/games/stockfish",
            "/opt/homebrew/bin/stockfish",
        ):
            path = Path(common_path)
            if path.exists() and os.access(str(path), os.X_OK):
                logger.debug(f"Found Stockfish binary in common path: {path}")
                return str(path.resolve())

        raise FileNotFoundError(
            "Stockfish not found. Please install it or provide the binary path.\n"
            "You can either:\n"
            "  1. Set STOCKFISH_BINARY_PATH in your .env file\n"
            "  2. Install Stockfish:\n"
            "     macOS: brew install stockfish\n"
            "     Ubuntu/Debian: apt-get install stockfish"
        )

    def _start_engine(self) -> None:
        """Start the Stockfish engine subprocess (lazy initialization).

        Raises:
            EngineError: If engine initialization fails.
        """
        if self.engine is not None:
            return

        try:
            self.engine = chess.engine.SimpleEngine.popen_uci(self.binary_path)
            if self.engine_options:
                self.engine.configure(self.engine_options)
            logger.info(f"Stockfish engine started from {self.binary_path}")
        except Exception as e:
            self.close()
            raise EngineError(f"Failed to initialize Stockfish engine: {e}") from e

    def _apply_skill_level(self, skill_level: int) -> None:
        if self._applied_skill_level == skill_level:
            return

        elo_option = self.engine.options.get("UCI_Elo")
        if elo_option is None:
            logger.warning("Engine has no UCI_Elo option; playing at full strength")
            self._applied_skill_level = skill_level
            return

        elo = skill_level
        if elo_option.min is not None and elo < elo_option.min:
            elo = elo_option.min
        if elo_option.max is not None and elo > elo_option.max:
            elo = elo_option.max
        if elo != skill_level:
            logger.warning(
                f"Requested Elo {skill_level} outside engine range "
                f"[{elo_option.min}, {elo_option.max}], using {elo}"
            )

        self.engine.configure({"UCI_LimitStrength": True, "UCI_Elo": elo})
        self._applied_skill_level = skill_level
        logger.debug(f"Stockfish strength limited to Elo {elo}")

    def evaluate(
        self,
        board: chess.Board,
        depth: Optional[int] = None,
        skill_level: Optional[int] = None,
    ) -> EngineEvaluation:
        """Search the position and return the best move with scored lines.

        Args:
            board: Position to evaluate. Never mutated.
            depth: Search depth, defaults to the configured depth.
            skill_level: Elo target, defaults to the configured skill level.

        Returns:
            Best move in SAN/UCI plus up to MULTI_PV scored lines.

        Raises:
            EngineError: If the engine cannot be started or fails to move.
        """
        depth = depth or self.depth
        skill_level = skill_level or self.skill_level

        self._start_engine()
        try:
            self._apply_skill_level(skill_level)
            limit = chess.engine.Limit(depth=depth)
            with self.engine.analysis(board, limit, multipv=MULTI_PV) as analysis:
                best = analysis.wait()
                infos = list(analysis.multipv)
        except chess.engine.EngineError as e:
            raise EngineError(f"Stockfish failed to evaluate position: {e}") from e
        except chess.engine.EngineTerminatedError as e:
            self.engine = None
            raise EngineError(f"Stockfish terminated unexpectedly: {e}") from e

        if best.move is None:
            raise EngineError("Stockfish returned no move")

        lines = []
        for info in infos:
            score = info.get("score")
            pov = score.pov(board.turn) if score is not None else None
            lines.append(
                ScoredLine(
                    cp=pov.score() if pov is not None else None,
                    mate=pov.mate() if pov is not None else None,
                    pv=[move.uci() for move in info.get("pv", [])],
                )
            )

        return EngineEvaluation(
            best_move=board.san(best.move),
            best_move_uci=best.move.uci(),
            lines=lines,
            depth=depth,
        )

    def _propose_move(self, context: TurnContext) -> str:
        """Return Stockfish's best move in SAN.

        Raises:
            EngineError: If the engine fails.
        """
        # Fresh board from FEN avoids mutating caller state
        board = chess.Board(context.board_in_fen)
        evaluation = self.evaluate(board)

        if evaluation.lines:
            top_line = evaluation.lines[0]
            logger.info(f"Stockfish eval: {format_evaluation(top_line)}")
            logger.info(
                f"Best line: {format_principal_variation(top_line.pv, context.board_in_fen)}"
            )
        return evaluation.best_move

    def close(self) -> None:
        """Gracefully terminate engine process. Safe to call repeatedly."""
        if self.engine is not None:
            try:
                self.engine.quit()
                logger.debug("Stockfish engine closed successfully")
            except Exception as e:
                logger.error(f"Error closing Stockfish engine: {e}")
            finally:
                self.engine = None
                self._applied_skill_level = None
