"""Prompt templates for the chess agent.

System instructions are selected by the context's mode tag; user prompts come
in two flavors, with and without positional/tactical commentary (CCP).
"""

import chess

from chess_agent_bench.analysis import describe_position, describe_tactics
from chess_agent_bench.types import AgentContext, Color
from chess_agent_bench.utils import get_legal_moves_in_san

POSITION_SYSTEM_PROMPT = """You are a chess coach and analyst. Explain positions clearly, \
grounding every claim in concrete moves and the provided analysis. \
Always respond in {language}."""

PUZZLE_SYSTEM_PROMPT = """You are a chess coach helping a student solve a puzzle. \
Give hints before solutions and never reveal the full line unless asked. \
Always respond in {language}."""

ANNOTATION_SYSTEM_PROMPT = """You are a chess annotator. Comment on the played moves \
using standard annotation symbols (!, ?, !?, ?!) and short explanations. \
Always respond in {language}."""

BENCH_SYSTEM_PROMPT = """You are a strong chess player competing in a game. \
Use the position summary and tactical notes to pick the best legal move. \
Answer with a single move in standard algebraic notation and nothing else."""

BENCH_NO_CCP_SYSTEM_PROMPT = "You are a chess player"

SYSTEM_PROMPTS: dict[str, str] = {
    "position": POSITION_SYSTEM_PROMPT,
    "puzzle": PUZZLE_SYSTEM_PROMPT,
    "annotation": ANNOTATION_SYSTEM_PROMPT,
    "bench": BENCH_SYSTEM_PROMPT,
    "bench-no-ccp": BENCH_NO_CCP_SYSTEM_PROMPT,
}

CCP_MOVE_PROMPT_TEMPLATE = """You are playing a chess game. Current position FEN: {board_in_fen}
You are playing as {player_color}.

{position_summary}

{tactical_notes}

### Legal moves:
{legal_moves}

Return ONLY the best LEGAL move using the framework in standard algebraic notation (SAN) format.
Do not include any explanation, analysis, or additional text. Just the move."""

PLAIN_MOVE_PROMPT_TEMPLATE = """You are playing a chess game. Current position FEN: {board_in_fen}
You are playing as {player_color}.

### Legal moves:
{legal_moves}

Return ONLY the best LEGAL move in standard algebraic notation (SAN) format.
Do not include any explanation, analysis, or additional text. Just the move."""


def get_system_prompt(context: AgentContext) -> str:
    """Pick the system instruction for the context's mode, in its language.

    Unknown modes fall back to the position-analysis instruction.
    """
    template = SYSTEM_PROMPTS.get(context.mode, POSITION_SYSTEM_PROMPT)
    return template.format(language=context.language)


def build_move_prompt(board: chess.Board, player_color: Color, use_ccp: bool) -> str:
    """Build the user prompt asking for the next move.

    Args:
        board: Current position.
        player_color: Color the agent plays.
        use_ccp: Whether to embed positional and tactical commentary.

    Returns:
        Prompt text ending with the comma-separated legal move list.
    """
    fields = {
        "board_in_fen": board.fen(),
        "player_color": player_color,
        "legal_moves": ",".join(get_legal_moves_in_san(board)),
    }
    if not use_ccp:
        return PLAIN_MOVE_PROMPT_TEMPLATE.format(**fields)

    return CCP_MOVE_PROMPT_TEMPLATE.format(
        position_summary=describe_position(board),
        tactical_notes=describe_tactics(board),
        **fields,
    )
