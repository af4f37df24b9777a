"""Positional and tactical commentary embedded in agent prompts (CCP mode)."""

import chess

PIECE_VALUES: dict[chess.PieceType, int] = {
    chess.PAWN: 1,
    chess.KNIGHT: 3,
    chess.BISHOP: 3,
    chess.ROOK: 5,
    chess.QUEEN: 9,
    chess.KING: 0,
}

PIECE_NAMES: dict[chess.PieceType, str] = {
    chess.PAWN: "pawn",
    chess.KNIGHT: "knight",
    chess.BISHOP: "bishop",
    chess.ROOK: "rook",
    chess.QUEEN: "queen",
    chess.KING: "king",
}


def color_name(color: chess.Color) -> str:
    return "White" if color == chess.WHITE else "Black"


def _piece_label(board: chess.Board, square: chess.Square) -> str:
    piece = board.piece_at(square)
    if piece is None:
        return chess.square_name(square)
    return (
        f"{color_name(piece.color)} {PIECE_NAMES[piece.piece_type]} "
        f"on {chess.square_name(square)}"
    )


def material_count(board: chess.Board, color: chess.Color) -> int:
    return sum(
        PIECE_VALUES[piece.piece_type]
        for piece in board.piece_map().values()
        if piece.color == color
    )


def material_balance(board: chess.Board) -> int:
    """Material difference in pawn units; positive favors White."""
    return material_count(board, chess.WHITE) - material_count(board, chess.BLACK)


def _pawn_files(board: chess.Board, color: chess.Color) -> list[int]:
    return [chess.square_file(sq) for sq in board.pieces(chess.PAWN, color)]


def doubled_pawn_files(board: chess.Board, color: chess.Color) -> list[str]:
    files = _pawn_files(board, color)
    return sorted(
        {chess.FILE_NAMES[f] for f in files if files.count(f) > 1}
    )


def isolated_pawn_squares(board: chess.Board, color: chess.Color) -> list[str]:
    files = set(_pawn_files(board, color))
    isolated = []
    for square in board.pieces(chess.PAWN, color):
        file_index = chess.square_file(square)
        if file_index - 1 not in files and file_index + 1 not in files:
            isolated.append(chess.square_name(square))
    return sorted(isolated)


def passed_pawn_squares(board: chess.Board, color: chess.Color) -> list[str]:
    """Pawns with no enemy pawn ahead of them on the same or adjacent files."""
    enemy_pawns = board.pieces(chess.PAWN, not color)
    passed = []
    for square in board.pieces(chess.PAWN, color):
        file_index = chess.square_file(square)
        rank_index = chess.square_rank(square)
        blocked = False
        for enemy in enemy_pawns:
            if abs(chess.square_file(enemy) - file_index) > 1:
                continue
            enemy_rank = chess.square_rank(enemy)
            ahead = enemy_rank > rank_index if color == chess.WHITE else enemy_rank < rank_index
            if ahead:
                blocked = True
                break
        if not blocked:
            passed.append(chess.square_name(square))
    return sorted(passed)


def castling_summary(board: chess.Board, color: chess.Color) -> str:
    rights = []
    if board.has_kingside_castling_rights(color):
        rights.append("kingside")
    if board.has_queenside_castling_rights(color):
        rights.append("queenside")
    return " and ".join(rights) if rights else "none"


def hanging_pieces(board: chess.Board, color: chess.Color) -> list[str]:
    """Pieces of color attacked more often than they are defended."""
    hanging = []
    for square, piece in sorted(board.piece_map().items()):
        if piece.color != color or piece.piece_type == chess.KING:
            continue
        attackers = len(board.attackers(not color, square))
        defenders = len(board.attackers(color, square))
        if attackers > defenders:
            hanging.append(
                f"{_piece_label(board, square)} (attacked {attackers}, defended {defenders})"
            )
    return hanging


def pinned_pieces(board: chess.Board, color: chess.Color) -> list[str]:
    return [
        _piece_label(board, square)
        for square, piece in sorted(board.piece_map().items())
        if piece.color == color
        and piece.piece_type != chess.KING
        and board.is_pinned(color, square)
    ]


def checking_pieces(board: chess.Board) -> list[str]:
    return [_piece_label(board, square) for square in sorted(board.checkers())]


def winning_captures(board: chess.Board) -> list[str]:
    """Captures available to the side to move that take a piece worth at least the capturer."""
    captures = []
    for move in board.legal_moves:
        if not board.is_capture(move):
            continue
        attacker = board.piece_at(move.from_square)
        victim = board.piece_at(move.to_square)
        if attacker is None:
            continue
        # En passant leaves the target square empty
        victim_value = PIECE_VALUES[victim.piece_type] if victim else 1
        defended = bool(board.attackers(not board.turn, move.to_square))
        if victim_value > PIECE_VALUES[attacker.piece_type] or not defended:
            captures.append(board.san(move))
    return captures


def checking_moves(board: chess.Board) -> list[str]:
    return [board.san(move) for move in board.legal_moves if board.gives_check(move)]


def describe_position(board: chess.Board) -> str:
    """Positional notes: material, pawn structure, castling, king status."""
    side = board.turn
    balance = material_balance(board)
    if balance == 0:
        material_text = "Material is equal"
    else:
        leader = "White" if balance > 0 else "Black"
        material_text = f"{leader} is ahead by {abs(balance)} pawn unit(s)"

    lines = [
        "### Position summary",
        f"- Side to move: {color_name(side)} (move {board.fullmove_number})",
        f"- {material_text} "
        f"(White {material_count(board, chess.WHITE)}, Black {material_count(board, chess.BLACK)})",
    ]
    if board.is_check():
        lines.append(f"- {color_name(side)} is in check")

    for color in (chess.WHITE, chess.BLACK):
        name = color_name(color)
        lines.append(f"- {name} castling rights: {castling_summary(board, color)}")
        doubled = doubled_pawn_files(board, color)
        if doubled:
            lines.append(f"- {name} doubled pawns on file(s): {', '.join(doubled)}")
        isolated = isolated_pawn_squares(board, color)
        if isolated:
            lines.append(f"- {name} isolated pawns: {', '.join(isolated)}")
        passed = passed_pawn_squares(board, color)
        if passed:
            lines.append(f"- {name} passed pawns: {', '.join(passed)}")

    return "\n".join(lines)


def describe_tactics(board: chess.Board) -> str:
    """Tactical notes from the side to move's point of view."""
    side = board.turn
    lines = ["### Tactical notes"]

    checkers = checking_pieces(board)
    if checkers:
        lines.append(f"- You are in check from: {', '.join(checkers)}")

    own_hanging = hanging_pieces(board, side)
    if own_hanging:
        lines.append(f"- Your pieces under threat: {'; '.join(own_hanging)}")

    enemy_hanging = hanging_pieces(board, not side)
    if enemy_hanging:
        lines.append(f"- Opponent pieces under threat: {'; '.join(enemy_hanging)}")

    pinned = pinned_pieces(board, side)
    if pinned:
        lines.append(f"- Your pinned pieces: {', '.join(pinned)}")

    captures = winning_captures(board)
    if captures:
        lines.append(f"- Favorable captures: {', '.join(captures)}")

    checks = checking_moves(board)
    if checks:
        lines.append(f"- Checking moves: {', '.join(checks)}")

    if len(lines) == 1:
        lines.append("- No immediate tactics detected")
    return "\n".join(lines)
