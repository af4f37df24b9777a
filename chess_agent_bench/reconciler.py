"""Map free-text move candidates onto the current set of legal moves."""

import re
from abc import ABC, abstractmethod
from typing import Sequence

from loguru import logger

from chess_agent_bench.exceptions import ResolutionFailure

# Presentation artifacts that free-text generation wraps around a move
MARKUP_TOKENS = ("```", "**")
CHECK_SUFFIX_PATTERN = re.compile(r"[+#]+$")


def clean_candidate_text(text: str) -> str:
    """Strip code fences and bold markup, keep the first line, trim whitespace.

    Args:
        text: Raw response text from a move source.

    Returns:
        Cleaned candidate; may be empty.
    """
    cleaned = text.strip()
    for token in MARKUP_TOKENS:
        cleaned = cleaned.replace(token, "")
    lines = cleaned.split("\n")
    return lines[0].strip()


def strip_check_suffix(move: str) -> str:
    return CHECK_SUFFIX_PATTERN.sub("", move)


class BaseMoveReconciler(ABC):
    """Resolves a candidate to exactly one legal move, or fails.

    Implementations must never invent a move: an unresolved candidate is
    reported through ResolutionFailure, never replaced by some legal move.
    """

    def resolve(self, candidate: str, legal_moves: Sequence[str]) -> str:
        """Resolve candidate text to a member of legal_moves.

        Args:
            candidate: Cleaned move text.
            legal_moves: Legal moves in SAN, in rules-engine order.

        Returns:
            The matching legal move, exactly as it appears in legal_moves.

        Raises:
            ResolutionFailure: If no rule matches.
        """
        resolved = self._match(candidate, list(legal_moves))
        if resolved is None:
            raise ResolutionFailure(candidate, list(legal_moves))
        if resolved != candidate:
            logger.debug(f"Reconciled '{candidate}' to legal move '{resolved}'")
        return resolved

    @abstractmethod
    def _match(self, candidate: str, legal_moves: list[str]) -> str | None:
        """Return the matched legal move or None."""
        pass


class SanMoveReconciler(BaseMoveReconciler):
    """Four-rule matcher over SAN strings; the first rule that matches wins.

    1. exact match
    2. case-insensitive match
    3. the candidate contains a legal move as a substring
    4. equal once trailing '+' / '#' are stripped from both sides
    """

    def _match(self, candidate: str, legal_moves: list[str]) -> str | None:
        if not candidate:
            return None

        if candidate in legal_moves:
            return candidate

        lowered = candidate.lower()
        for move in legal_moves:
            if move.lower() == lowered:
                return move

        contained = self._find_contained(candidate, legal_moves)
        if contained is not None:
            return contained

        bare_candidate = strip_check_suffix(candidate)
        for move in legal_moves:
            if strip_check_suffix(move) == bare_candidate:
                return move

        return None

    @staticmethod
    def _find_contained(candidate: str, legal_moves: list[str]) -> str | None:
        """Return the first legal move, in rules-engine order, that candidate contains.

        python-chess lists piece moves before pawn moves, so "Nf3" is found
        before the pawn move "f3" it contains.
        """
        for move in legal_moves:
            if move in candidate:
                return move
        return None


DEFAULT_RECONCILER = SanMoveReconciler()


def resolve_move(
    candidate: str,
    legal_moves: Sequence[str],
    reconciler: BaseMoveReconciler = DEFAULT_RECONCILER,
) -> str:
    """Resolve candidate with the given reconciler (four-rule SAN by default)."""
    return reconciler.resolve(candidate, legal_moves)
