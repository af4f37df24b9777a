from chess_agent_bench.player.base_player import BasePlayer
from chess_agent_bench.player.stockfish_player import StockfishPlayer
from chess_agent_bench.player.llm import AgentPlayer, LLMConnector

__all__ = ["AgentPlayer", "BasePlayer", "LLMConnector", "StockfishPlayer"]
