"""Human-readable rendering of engine evaluations."""

import chess

from chess_agent_bench.types import ScoredLine

PV_DISPLAY_PLIES = 6


def format_evaluation(line: ScoredLine) -> str:
    """Format a line's score as 'M3', '+0.35', '-1.20' or '0.00'.

    Args:
        line: Scored engine line.

    Returns:
        Mate distance or pawn units with two decimals.
    """
    if line.mate is not None:
        return f"M{line.mate}"
    if line.cp is not None:
        pawns = line.cp / 100
        return f"+{pawns:.2f}" if pawns > 0 else f"{pawns:.2f}"
    return "0.00"


def format_principal_variation(
    pv_in_uci: list[str],
    start_fen: str,
    max_plies: int = PV_DISPLAY_PLIES,
) -> str:
    """Render the first plies of a UCI principal variation in SAN.

    Stops at the first move that cannot be parsed or is illegal.

    Args:
        pv_in_uci: Principal variation as UCI strings.
        start_fen: Position the variation starts from.
        max_plies: Number of plies to render.

    Returns:
        Space-separated SAN moves (e.g., "e4 e5 Nf3").
    """
    board = chess.Board(start_fen)
    rendered = []
    for uci in pv_in_uci[:max_plies]:
        try:
            move = chess.Move.from_uci(uci)
        except ValueError:
            break
        if move not in board.legal_moves:
            break
        rendered.append(board.san(move))
        board.push(move)
    return " ".join(rendered)
