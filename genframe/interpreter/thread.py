import logging
import sys
import threading
from collections import deque
from typing import IO, Deque, Optional

logger = logging.getLogger(__name__)


class SystemState:
    """Interpreter-wide streams. ``stderr`` follows ``sys.stderr`` unless replaced."""

    def __init__(self, stderr: Optional[IO[str]] = None):
        self._stderr = stderr

    @property
    def stderr(self) -> IO[str]:
        if self._stderr is None:
            return sys.stderr
        return self._stderr

    @stderr.setter
    def stderr(self, stream: Optional[IO[str]]):
        self._stderr = stream


_system_state = SystemState()


def get_system_state() -> SystemState:
    return _system_state


class ThreadState:
    def __init__(self, system_state: Optional[SystemState] = None):
        self.system_state = system_state or _system_state
        self.exceptions: Deque[BaseException] = deque()

    def push_exception(self, exc: BaseException):
        logger.debug("push pending exception: %r", exc)
        self.exceptions.appendleft(exc)

    def pop_exception(self) -> Optional[BaseException]:
        if not self.exceptions:
            return None
        return self.exceptions.popleft()


_local = threading.local()


def get_thread_state() -> ThreadState:
    state = getattr(_local, "state", None)
    if state is None:
        state = ThreadState()
        _local.state = state
    return state
