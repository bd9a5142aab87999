import logging
import threading
from typing import Callable, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable handle for one scheduled room transition."""

    def __init__(self, key: Tuple[str, int], delay: float):
        self.key = key
        self.delay = delay
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        if not self._cancelled.is_set():
            self._cancelled.set()
            logger.info(f"[timer-cancel] room={self.key[0]} question={self.key[1]}")


class RevealScheduler:
    """Runs delayed room transitions as Socket.IO background tasks.

    Each timer is keyed by (room_id, question_index). The callback is skipped
    when the handle was cancelled while sleeping.
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def schedule(self, key: Tuple[str, int], delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(key, delay)
        logger.info(f"[timer-set] room={key[0]} question={key[1]} delay={delay}s")
        self.socketio.start_background_task(self._worker, handle, callback)
        return handle

    def _worker(self, handle: TimerHandle, callback: Callable[[], None]) -> None:
        self.socketio.sleep(handle.delay)
        room_id, index = handle.key
        if handle.cancelled:
            logger.info(f"[timer-abort] room={room_id} question={index} cancelled")
            return
        logger.info(f"[timer-fire] room={room_id} question={index}")
        try:
            callback()
        except Exception:
            logger.exception(f"[timer-error] room={room_id} question={index}")
