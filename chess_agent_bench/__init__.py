"""Benchmark a language-model chess agent against Stockfish."""

__all__ = [
    "analysis",
    "benchmark",
    "config",
    "exceptions",
    "formatting",
    "game",
    "player",
    "prompts",
    "reconciler",
    "renderer",
    "turn",
    "types",
    "utils",
]
