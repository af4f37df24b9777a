"""Run a series of agent-vs-engine games and aggregate the outcomes."""

import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from pydantic import BaseModel, Field

from chess_agent_bench.config import BenchmarkConfig
from chess_agent_bench.game import Game
from chess_agent_bench.player.base_player import BasePlayer
from chess_agent_bench.player.llm import AgentPlayer, LLMConnector
from chess_agent_bench.player.stockfish_player import StockfishPlayer
from chess_agent_bench.renderer import (
    SEPARATOR,
    average_move_count,
    format_game_result,
    format_summary,
)
from chess_agent_bench.types import (
    AgentContext,
    BenchmarkStats,
    Color,
    GameResult,
    opposite_color,
)

# Builds (agent, engine) for a game given the agent's color
PlayerFactory = Callable[[Color], tuple[BasePlayer, BasePlayer]]


class BenchmarkSummary(BaseModel):
    total_games: int
    completed_games: int
    agent_wins: int
    engine_wins: int
    draws: int
    average_moves: float
    engine_depth: int
    engine_skill_level: int
    api_delay_seconds: float
    agent_timeout_seconds: float
    model: str
    provider: str
    ccp_enabled: bool
    stats: BenchmarkStats


class BenchmarkReport(BaseModel):
    """The persisted document: one per run, rewritten after every game."""

    summary: BenchmarkSummary
    games: list[GameResult] = Field(default_factory=list)


def agent_color_for_game(index: int) -> Color:
    """Agent plays White in even-indexed (0-based) games, Black otherwise."""
    return "white" if index % 2 == 0 else "black"


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with colons replaced so it is filename-safe."""
    iso = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z").replace(":", "-")


def results_filename(model: str, use_ccp: bool, moment: datetime) -> str:
    safe_model = model.replace("/", "_").replace(":", "_")
    suffix = "ccp" if use_ccp else "no-ccp"
    return f"benchmark_results_{safe_model}_{suffix}_{format_timestamp(moment)}.json"


def write_atomically(path: Path, content: str) -> None:
    """Write content so readers only ever see the old or the new document."""
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(content, encoding="utf-8")
    os.replace(tmp_path, path)


class BenchmarkRunner:
    """Plays config.games games strictly one after another.

    A game that raises is logged and skipped; the run carries on with the
    next scheduled game. Results are checkpointed after every completed game.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        agent_context: AgentContext,
        player_factory: Optional[PlayerFactory] = None,
        sleep: Callable[[float], None] = time.sleep,
        started_at: Optional[datetime] = None,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Run settings.
            agent_context: Model invocation context for every agent call.
            player_factory: Builds the players for each game. Defaults to an
                LLM agent against local Stockfish.
            sleep: Delay function, replaceable in tests.
            started_at: Run start time used in the results file name.

        Raises:
            FileNotFoundError: If the default factory cannot find Stockfish.
        """
        self.config = config
        self.agent_context = agent_context
        self.player_factory = player_factory or self._default_player_factory()
        self.sleep = sleep
        self.started_at = started_at or datetime.now(timezone.utc)

        self.results: list[GameResult] = []
        self.stats = BenchmarkStats()
        self.failed_games: list[int] = []
        self.results_path = Path(config.results_dir) / results_filename(
            agent_context.model, config.use_ccp, self.started_at
        )

    def _default_player_factory(self) -> PlayerFactory:
        binary_path = StockfishPlayer._find_stockfish_binary(None)
        connector = LLMConnector(timeout=self.config.agent_timeout_seconds)

        def build(agent_color: Color) -> tuple[BasePlayer, BasePlayer]:
            agent = AgentPlayer(
                color=agent_color,
                connector=connector,
                context=self.agent_context,
                timeout_seconds=self.config.agent_timeout_seconds,
                use_ccp=self.config.use_ccp,
            )
            engine = StockfishPlayer(
                color=opposite_color(agent_color),
                binary_path=binary_path,
                depth=self.config.engine_depth,
                skill_level=self.config.engine_skill_level,
            )
            return agent, engine

        return build

    def log_header(self) -> None:
        config = self.config
        mode = (
            "ENABLED (with board state & tactics)"
            if config.use_ccp
            else "DISABLED (FEN only)"
        )
        logger.info(SEPARATOR)
        logger.info("CHESS AGENT BENCHMARK")
        logger.info(f"Number of games: {config.games}")
        logger.info(f"Stockfish depth: {config.engine_depth}")
        logger.info(f"Stockfish skill level (Elo): {config.engine_skill_level}")
        logger.info(f"API delay: {config.api_delay_seconds} seconds")
        logger.info(f"Agent timeout: {config.agent_timeout_seconds} seconds")
        logger.info(f"Model: {self.agent_context.model} ({self.agent_context.provider})")
        logger.info(f"CCP Mode: {mode}")
        logger.info(SEPARATOR)

    def play_game(self, index: int) -> GameResult:
        agent_color = agent_color_for_game(index)
        agent, engine = self.player_factory(agent_color)
        with Game(agent, engine, config=self.config, sleep=self.sleep) as game:
            return game.play()

    def run(self) -> BenchmarkReport:
        """Play every scheduled game, then print and return the final report."""
        self.log_header()
        total = self.config.games

        for index in range(total):
            agent_color = agent_color_for_game(index)
            logger.info(f"GAME {index + 1}/{total} - Agent as {agent_color}")

            try:
                result = self.play_game(index)
            except Exception as e:
                self.failed_games.append(index + 1)
                logger.exception(f"Game {index + 1} failed: {e}")
            else:
                self.results.append(result)
                self.stats.record(result)
                print(format_game_result(index + 1, result))
                try:
                    self.save_results()
                except OSError as e:
                    # The next completed game rewrites the whole document
                    logger.exception(
                        f"Could not save results to {self.results_path}: {e}"
                    )

            if index < total - 1:
                logger.info(
                    f"Waiting {self.config.api_delay_seconds} seconds before next game..."
                )
                self.sleep(self.config.api_delay_seconds)

        print(format_summary(self.results, self.stats, total))
        return self.build_report()

    def build_report(self) -> BenchmarkReport:
        config = self.config
        summary = BenchmarkSummary(
            total_games=config.games,
            completed_games=len(self.results),
            agent_wins=self.stats.agent_wins,
            engine_wins=self.stats.engine_wins,
            draws=self.stats.draws,
            average_moves=round(average_move_count(self.results), 1),
            engine_depth=config.engine_depth,
            engine_skill_level=config.engine_skill_level,
            api_delay_seconds=config.api_delay_seconds,
            agent_timeout_seconds=config.agent_timeout_seconds,
            model=self.agent_context.model,
            provider=self.agent_context.provider,
            ccp_enabled=config.use_ccp,
            stats=self.stats.model_copy(deep=True),
        )
        return BenchmarkReport(summary=summary, games=list(self.results))

    def save_results(self) -> Path:
        self.results_path.parent.mkdir(parents=True, exist_ok=True)
        write_atomically(
            self.results_path, self.build_report().model_dump_json(indent=2)
        )
        logger.info(f"Results saved to: {self.results_path}")
        return self.results_path
