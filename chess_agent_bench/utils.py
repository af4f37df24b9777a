import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, TypeVar

import chess

T = TypeVar("T")


def get_legal_moves_in_san(board: chess.Board) -> list[str]:
    """Get all legal moves in SAN format, in the order the board generates them.

    Args:
        board: Current chess board state.

    Returns:
        List of legal moves in SAN notation (e.g., ["Nf3", "e4"]).
    """
    return [board.san(move) for move in board.legal_moves]


def get_move_history_in_san(board: chess.Board) -> list[str]:
    """Get the move history in SAN format from the current board state.

    Args:
        board: Current chess board state with move history.

    Returns:
        List of moves in SAN notation (e.g., ["e4", "e5", "Nf3"]).
    """
    replay = board.root()
    history = []
    for move in board.move_stack:
        history.append(replay.san(move))
        replay.push(move)
    return history


def call_with_timeout(func: Callable[[], T], timeout: float) -> T:
    """Run func in a worker thread and wait at most timeout seconds.

    A call that loses the race is abandoned, not killed: its thread keeps
    running in the background and its eventual result is discarded. The
    thread is a daemon, so an abandoned call never delays interpreter exit.

    Args:
        func: Zero-argument callable to run.
        timeout: Seconds to wait for the result.

    Returns:
        Whatever func returns.

    Raises:
        TimeoutError: If func did not finish in time.
        Exception: Anything func raises is propagated unchanged.
    """
    future: Future = Future()

    def run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(func())
        except Exception as e:
            future.set_exception(e)

    threading.Thread(target=run, name="bounded-call", daemon=True).start()
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError as e:
        raise TimeoutError(f"Call did not finish within {timeout}s") from e
