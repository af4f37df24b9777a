from abc import ABC, abstractmethod

import chess

from chess_agent_bench.types import Color, MoveSourceKind, TurnContext
from chess_agent_bench.utils import get_legal_moves_in_san, get_move_history_in_san


class BasePlayer(ABC):
    """Abstract move source: turns a position into raw candidate move text."""

    kind: MoveSourceKind

    def __init__(self, name: str, color: Color) -> None:
        """Initialize player with name and color.

        Args:
            name: Display name.
            color: 'white' or 'black'.
        """
        self.name = name
        self.color = color

    def __call__(self, board: chess.Board) -> str:
        """Propose a move for the current position using template method pattern.

        This orchestrates the decision process: first extracting a standardized
        context from the board, then calling the abstract _propose_move method
        that subclasses implement.

        Args:
            board: Current board state. Never mutated.

        Returns:
            Raw, unvalidated candidate text.
        """
        context = self._extract_context(board)
        return self._propose_move(context)

    def _extract_context(self, board: chess.Board) -> TurnContext:
        """Extract turn context from board.

        Subclasses can override to add custom fields.

        Args:
            board: Current board state.

        Returns:
            Context with FEN, legal moves, and history.
        """
        return TurnContext(
            board_in_fen=board.fen(),
            player_color=self.color,
            legal_moves_in_san=get_legal_moves_in_san(board),
            move_history_in_san=get_move_history_in_san(board),
        )

    @abstractmethod
    def _propose_move(self, context: TurnContext) -> str:
        """Produce candidate move text for the given context.

        Args:
            context: Turn context.

        Returns:
            Raw candidate text.
        """
        pass

    def close(self) -> None:
        """Clean up resources if needed."""
        pass

    def __str__(self) -> str:
        """Format as 'Name (W)' or 'Name (B)'."""
        return f"{self.name} ({self.color[0].upper()})"
