class TurnError(Exception):
    """Base exception for a turn that did not produce an accepted move."""

    pass


class AgentTimeoutError(TurnError, TimeoutError):
    """Model invocation exceeded its time bound."""

    pass


class AgentError(TurnError):
    """Model invocation failed for any reason other than a timeout."""

    pass


class EngineError(TurnError):
    """Evaluation engine failed to produce a move."""

    pass


class InvalidMoveError(TurnError):
    """Move source produced text that does not resolve to a legal move."""

    pass


class ResolutionFailure(ValueError):
    """Candidate text matched no legal move under any reconciliation rule."""

    def __init__(self, candidate: str, legal_moves: list[str]) -> None:
        self.candidate = candidate
        self.legal_moves = list(legal_moves)
        super().__init__(
            f"Could not resolve '{candidate}' to a legal move. "
            f"Legal moves: {', '.join(self.legal_moves)}"
        )
