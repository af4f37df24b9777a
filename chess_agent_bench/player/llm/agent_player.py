import time
from typing import Optional

import chess
from loguru import logger

from chess_agent_bench.exceptions import AgentError, AgentTimeoutError
from chess_agent_bench.player.base_player import BasePlayer
from chess_agent_bench.player.llm.llm_connector import LLMConnector
from chess_agent_bench.prompts import build_move_prompt
from chess_agent_bench.types import AgentContext, Color, TurnContext
from chess_agent_bench.utils import call_with_timeout


class AgentPlayer(BasePlayer):
    """Chess player backed by a language model.

    Builds the move prompt, invokes the model with a bounded wait, and returns
    the raw reply. Cleanup and legality checks happen in the turn driver.
    """

    kind = "agent"

    def __init__(
        self,
        *,
        name: Optional[str] = None,
        color: Color,
        connector: LLMConnector,
        context: AgentContext,
        timeout_seconds: float = 60.0,
        use_ccp: bool = True,
    ):
        """Initialize agent player.

        Args:
            color: Chess piece color ('white' or 'black').
            connector: LLM service connector.
            context: Provider/model/credential/mode for every model call.
            timeout_seconds: Upper bound on one model invocation.
            use_ccp: Embed positional and tactical commentary in prompts.
            name: Optional player name, defaults to the model identifier.
        """
        if timeout_seconds <= 0:
            raise ValueError(f"`timeout_seconds` must be > 0, got {timeout_seconds}")

        super().__init__(name or context.model, color)
        self.connector = connector
        self.context = context
        self.timeout_seconds = timeout_seconds
        self.use_ccp = use_ccp

    def _propose_move(self, context: TurnContext) -> str:
        """Ask the model for a move.

        Raises:
            AgentTimeoutError: The model did not answer within timeout_seconds.
            AgentError: The invocation failed for any other reason.
        """
        board = chess.Board(context.board_in_fen)
        prompt = build_move_prompt(board, self.color, self.use_ccp)

        logger.info(
            f"{self.context.model} agent thinking... "
            f"{'(with CCP)' if self.use_ccp else '(no CCP)'}"
        )
        start = time.monotonic()
        try:
            response = call_with_timeout(
                lambda: self.connector.generate(prompt, self.context),
                self.timeout_seconds,
            )
        except TimeoutError as e:
            logger.error(f"Agent timed out after {self.timeout_seconds} seconds")
            raise AgentTimeoutError(
                f"Agent response timeout after {self.timeout_seconds} seconds"
            ) from e
        except Exception as e:
            raise AgentError(f"Agent invocation failed: {e}") from e

        logger.info(f"Agent responded in {time.monotonic() - start:.2f}s")
        logger.debug(f"Agent raw response: {response!r}")
        return response
