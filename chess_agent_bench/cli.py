"""Command-line entry point.

Usage:
    python -m chess_agent_bench [games] [depth] [delay] [timeout] [skill] [--no-ccp]
"""

import argparse
import sys
from typing import Optional, Sequence

from loguru import logger
from pydantic import ValidationError

from chess_agent_bench.benchmark import BenchmarkRunner
from chess_agent_bench.config import (
    DEFAULT_AGENT_TIMEOUT_SECONDS,
    DEFAULT_API_DELAY_SECONDS,
    DEFAULT_ENGINE_DEPTH,
    DEFAULT_ENGINE_SKILL_LEVEL,
    DEFAULT_GAMES,
    BenchmarkConfig,
    agent_context_from_env,
    load_env,
    parse_positional_number,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chess-agent-bench",
        description="Benchmark a language-model chess agent against Stockfish",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 5 games, depth 15, 1s delay, 60s agent timeout, Elo 1000
  chess-agent-bench

  # 10 games at depth 12 with a 2s delay and a 90s timeout, FEN-only prompts
  chess-agent-bench 10 12 2 90 1500 --no-ccp

Model selection comes from AGENT_PROVIDER, AGENT_MODEL and AGENT_API_KEY
(read from the environment or a .env file).
        """,
    )
    # Kept as raw strings so unparsable values fall back to defaults
    parser.add_argument("games", nargs="?", help=f"number of games (default {DEFAULT_GAMES})")
    parser.add_argument("depth", nargs="?", help=f"Stockfish search depth (default {DEFAULT_ENGINE_DEPTH})")
    parser.add_argument("delay", nargs="?", help="seconds between moves and games (default 1)")
    parser.add_argument("timeout", nargs="?", help="seconds allowed per agent move (default 60)")
    parser.add_argument("skill", nargs="?", help=f"Stockfish Elo target (default {DEFAULT_ENGINE_SKILL_LEVEL})")
    parser.add_argument(
        "--no-ccp",
        action="store_true",
        help="send only FEN and legal moves, without positional/tactical commentary",
    )
    parser.add_argument("--results-dir", default=".", help="where to write the results JSON")
    parser.add_argument("--no-board", action="store_true", help="do not print the board after each move")
    parser.add_argument("--verbose", "-v", action="store_true", help="enable debug logging")
    return parser


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def build_config(args: argparse.Namespace) -> BenchmarkConfig:
    """Turn parsed arguments into a validated run configuration.

    Raises:
        ValidationError: If a value is out of range.
    """
    return BenchmarkConfig(
        games=parse_positional_number(args.games, DEFAULT_GAMES),
        engine_depth=parse_positional_number(args.depth, DEFAULT_ENGINE_DEPTH),
        api_delay_seconds=parse_positional_number(
            args.delay, DEFAULT_API_DELAY_SECONDS, float
        ),
        agent_timeout_seconds=parse_positional_number(
            args.timeout, DEFAULT_AGENT_TIMEOUT_SECONDS, float
        ),
        engine_skill_level=parse_positional_number(
            args.skill, DEFAULT_ENGINE_SKILL_LEVEL
        ),
        use_ccp=not args.no_ccp,
        display_board=not args.no_board,
        results_dir=args.results_dir,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the benchmark and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    load_env()

    try:
        config = build_config(args)
        agent_context = agent_context_from_env(use_ccp=config.use_ccp)
        BenchmarkRunner(config, agent_context).run()
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Benchmark failed: {e}")
        return 1

    logger.success("Benchmark completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
