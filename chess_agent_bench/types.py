from enum import Enum
from typing import Literal

from typing_extensions import Self
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Color = Literal["white", "black"]
MoveSourceKind = Literal["agent", "engine"]
Winner = Literal["agent", "engine", "draw"]
Provider = Literal["openai", "anthropic", "google", "ollama"]
# Mode tags select the system instruction variant sent with every prompt
AgentMode = Literal["position", "puzzle", "annotation", "bench", "bench-no-ccp"]


def opposite_color(color: Color) -> Color:
    return "black" if color == "white" else "white"


class GameStatus(str, Enum):
    """Game-loop states. Everything except IN_PROGRESS is terminal."""

    IN_PROGRESS = "in progress"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    THREEFOLD_REPETITION = "threefold repetition"
    INSUFFICIENT_MATERIAL = "insufficient material"
    FIFTY_MOVE_RULE = "50-move rule"
    MAX_MOVES_REACHED = "max moves reached"
    ABORTED_BY_ERRORS = "game abandoned due to errors"
    ABORTED_BY_TIMEOUTS = "game abandoned due to timeouts"

    @property
    def is_terminal(self) -> bool:
        return self is not GameStatus.IN_PROGRESS

    @property
    def is_draw_rule(self) -> bool:
        return self in DRAW_RULE_STATUSES


DRAW_RULE_STATUSES: tuple[GameStatus, ...] = (
    GameStatus.STALEMATE,
    GameStatus.THREEFOLD_REPETITION,
    GameStatus.INSUFFICIENT_MATERIAL,
    GameStatus.FIFTY_MOVE_RULE,
)


class AgentContext(BaseModel):
    """Everything a model invocation needs, passed explicitly on every call."""

    provider: str = "google"
    model: str = "gemini-2.5-flash"
    api_key: str = ""
    language: str = "English"
    mode: AgentMode = "bench"
    is_routed: bool = False
    ollama_base_url: str | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("model", mode="after")
    def validate_model_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("`model` cannot be blank")
        return v


class TurnContext(BaseModel):
    """Snapshot of the position handed to a move source.

    Allows dynamic field addition for source-specific metadata.
    """

    board_in_fen: str
    player_color: Color
    legal_moves_in_san: list[str]
    move_history_in_san: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    @field_validator("legal_moves_in_san", mode="after")
    def validate_legal_moves_exist(cls, v: list[str]) -> list[str]:
        """Reject empty move lists; the game loop must detect termination first."""
        if not v:
            raise ValueError(
                "`legal_moves_in_san` cannot be empty. "
                "The game should handle checkmate/stalemate before asking for moves."
            )
        return v


class AcceptedMove(BaseModel):
    """A reconciled, legal move ready to be pushed onto the board."""

    san: str
    uci: str
    source: MoveSourceKind
    raw_text: str
    elapsed_seconds: float = 0.0
    corrected: bool = False


class ScoredLine(BaseModel):
    """One engine line: centipawns or mate distance from the mover's view."""

    cp: int | None = None
    mate: int | None = None
    pv: list[str] = Field(default_factory=list)


class EngineEvaluation(BaseModel):
    best_move: str
    best_move_uci: str
    lines: list[ScoredLine] = Field(default_factory=list)
    depth: int


class GameResult(BaseModel):
    """Frozen record of one finished game."""

    winner: Winner
    reason: str
    status: GameStatus
    agent_color: Color
    moves: list[str] = Field(default_factory=list)
    pgn: str
    final_fen: str
    move_count: int
    # Turn attempts made, including the ones that failed
    attempts: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_move_count(self) -> Self:
        if self.move_count != len(self.moves):
            raise ValueError(
                f"`move_count` ({self.move_count}) does not match "
                f"number of moves ({len(self.moves)})"
            )
        if not self.status.is_terminal:
            raise ValueError("A game result requires a terminal status")
        return self


class ColorStats(BaseModel):
    wins: int = 0
    losses: int = 0
    draws: int = 0

    @property
    def total(self) -> int:
        return self.wins + self.losses + self.draws


class BenchmarkStats(BaseModel):
    """Win/loss/draw tallies split by the color the agent played."""

    agent_as_white: ColorStats = Field(default_factory=ColorStats)
    agent_as_black: ColorStats = Field(default_factory=ColorStats)

    def record(self, result: GameResult) -> None:
        color_stats = (
            self.agent_as_white
            if result.agent_color == "white"
            else self.agent_as_black
        )
        if result.winner == "agent":
            color_stats.wins += 1
        elif result.winner == "engine":
            color_stats.losses += 1
        else:
            color_stats.draws += 1

    @property
    def agent_wins(self) -> int:
        return self.agent_as_white.wins + self.agent_as_black.wins

    @property
    def engine_wins(self) -> int:
        return self.agent_as_white.losses + self.agent_as_black.losses

    @property
    def draws(self) -> int:
        return self.agent_as_white.draws + self.agent_as_black.draws
