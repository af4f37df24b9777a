from chess_agent_bench.player.llm.llm_connector import LLMConnector
from chess_agent_bench.player.llm.agent_player import AgentPlayer

__all__ = ["AgentPlayer", "LLMConnector"]
