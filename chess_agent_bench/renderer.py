"""Console output: board diagrams, per-game results and the run summary."""

from typing import Optional, Sequence

import chess

from chess_agent_bench.types import BenchmarkStats, ColorStats, GameResult

SEPARATOR = "=" * 70

PIECE_SYMBOLS: dict[str, str] = {
    "K": "♔",
    "Q": "♕",
    "R": "♖",
    "B": "♗",
    "N": "♘",
    "P": "♙",
    "k": "♚",
    "q": "♛",
    "r": "♜",
    "b": "♝",
    "n": "♞",
    "p": "♟",
}


class Colors:
    """ANSI color codes for terminal output."""

    CYAN = "\033[96m"
    YELLOW = "\033[93m"
    GREEN = "\033[92m"
    RED = "\033[91m"
    MAGENTA = "\033[95m"
    BG_LIGHT = "\033[48;5;223m"
    BG_DARK = "\033[48;5;94m"
    BG_HIGHLIGHT = "\033[48;5;143m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def render_board(board: chess.Board, last_move: Optional[chess.Move] = None) -> str:
    """Render the board from White's side with Unicode pieces.

    Squares touched by last_move are highlighted.
    """
    highlighted = set()
    if last_move is not None:
        highlighted = {last_move.from_square, last_move.to_square}

    rows = []
    for rank in range(7, -1, -1):
        cells = [f"{rank + 1} "]
        for file_index in range(8):
            square = chess.square(file_index, rank)
            piece = board.piece_at(square)
            symbol = PIECE_SYMBOLS[piece.symbol()] if piece else " "
            if square in highlighted:
                background = Colors.BG_HIGHLIGHT
            elif (rank + file_index) % 2 == 1:
                background = Colors.BG_LIGHT
            else:
                background = Colors.BG_DARK
            cells.append(f"{background} {symbol} {Colors.RESET}")
        rows.append("".join(cells))
    rows.append("   " + "  ".join(chess.FILE_NAMES))
    return "\n".join(rows)


def describe_status(board: chess.Board) -> str:
    if board.is_checkmate():
        return f"{Colors.MAGENTA}CHECKMATE{Colors.RESET}"
    if board.is_check():
        return f"{Colors.RED}CHECK!{Colors.RESET}"
    turn_name = "White" if board.turn == chess.WHITE else "Black"
    return f"{Colors.GREEN}{turn_name} to move{Colors.RESET}"


def display_board_with_context(
    board: chess.Board,
    current_player: Optional[str] = None,
    move_count: Optional[int] = None,
    last_move: Optional[chess.Move] = None,
) -> None:
    """Print the board followed by status, move number and next player.

    Args:
        board: Chess board to display.
        current_player: Name of the player to move next.
        move_count: Current move number.
        last_move: Last move made, highlighted on the board.
    """
    print(render_board(board, last_move=last_move))
    info = [describe_status(board)]
    if move_count is not None:
        info.append(f"{Colors.CYAN}Move: {move_count}{Colors.RESET}")
    if current_player:
        info.append(f"{Colors.YELLOW}Next: {current_player}{Colors.RESET}")
    print(" | ".join(info))
    print()


def _percent(count: int, total: int) -> str:
    if total == 0:
        return "0.0%"
    return f"{count / total * 100:.1f}%"


def format_game_result(game_number: int, result: GameResult) -> str:
    return "\n".join(
        [
            "",
            SEPARATOR,
            f"GAME {game_number} RESULT",
            SEPARATOR,
            f"Winner: {result.winner}",
            f"Reason: {result.reason}",
            f"Total moves: {result.move_count}",
            f"Agent color: {result.agent_color}",
            "",
            "PGN:",
            result.pgn,
        ]
    )


def _format_color_stats(label: str, stats: ColorStats) -> list[str]:
    return [
        "",
        f"{label}:",
        f"  Wins: {stats.wins}, Losses: {stats.losses}, Draws: {stats.draws}",
    ]


def average_move_count(results: Sequence[GameResult]) -> float:
    if not results:
        return 0.0
    return sum(r.move_count for r in results) / len(results)


def format_summary(
    results: Sequence[GameResult],
    stats: BenchmarkStats,
    total_games: int,
    engine_name: str = "Engine",
) -> str:
    """Build the final report: overall rates, per-color stats, average length.

    Rates are relative to the number of scheduled games, so games that crashed
    count against nobody but still dilute every rate.
    """
    lines = [
        "",
        SEPARATOR,
        "BENCHMARK SUMMARY",
        SEPARATOR,
        f"Total games: {total_games}",
        f"Completed games: {len(results)}",
        "",
        "Overall Results:",
        f"  Agent wins: {stats.agent_wins} ({_percent(stats.agent_wins, total_games)})",
        f"  {engine_name} wins: {stats.engine_wins} "
        f"({_percent(stats.engine_wins, total_games)})",
        f"  Draws: {stats.draws} ({_percent(stats.draws, total_games)})",
    ]
    lines += _format_color_stats("As White", stats.agent_as_white)
    lines += _format_color_stats("As Black", stats.agent_as_black)
    lines += [
        "",
        f"Average moves per game: {average_move_count(results):.1f}",
        SEPARATOR,
    ]
    return "\n".join(lines)
