import logging
from types import TracebackType
from typing import Any, Callable, Optional

from genframe.interpreter import (
    Code,
    Frame,
    NullObject,
    Outcome,
    exception_class_name,
    find_attr,
    get_thread_state,
    is_shutdown,
    normalize_exception,
)
from genframe.interpreter.frame import Visitproc

logger = logging.getLogger(__name__)


class Generator:
    """
    Resumable handle around a suspended frame.

    ``frame`` is ``None`` once the generator has terminated; ``code`` is kept
    for introspection afterwards.
    """

    def __init__(self, frame: Optional[Frame], closure: Any = None):
        self.frame = frame
        self.code: Optional[Code] = frame.code if frame is not None else None
        self.closure = closure
        self.running = False

    def __repr__(self):
        name = self.code.name if self.code is not None else "<finished>"
        return f"<generator object {name} at {id(self):#x}>"

    @property
    def __name__(self) -> Optional[str]:
        return self.code.name if self.code is not None else None

    def __getattr__(self, name: str):
        # type() consumes __qualname__ from a class body, so it is served here
        if name == "__qualname__":
            code = self.__dict__.get("code")
            if code is not None:
                return code.name
        raise AttributeError(
            f"'{type(self).__name__}' object has no attribute '{name}'"
        )

    @property
    def gi_frame(self) -> Optional[Frame]:
        return self.frame

    @property
    def gi_code(self) -> Optional[Code]:
        return self.code

    @property
    def gi_running(self) -> bool:
        return self.running

    @property
    def gi_yieldfrom(self) -> Any:
        if self.frame is None:
            return None
        return self.frame.yield_from

    def __iter__(self):
        return self

    def __next__(self):
        return self._advance(None)

    def next(self):
        """next() -> the next value, or raise StopIteration"""
        return self._advance(None)

    def iternext(self) -> Any:
        """Like ``next()``, but reports exhaustion as ``NullObject``."""
        try:
            return self._advance(None)
        except StopIteration:
            return NullObject

    def send(self, value: Any) -> Any:
        """send(value) -> send 'value' into generator,
        return next yielded value or raise StopIteration."""
        self._check_not_running()
        if self.frame is None:
            raise StopIteration
        if (
            self.frame.last_instruction == 0
            and value is not None
            and value is not NullObject
        ):
            raise TypeError("can't send non-None value to a just-started generator")
        return self._advance(value)

    def throw(self, typ: Any, val: Any = None, tb: Optional[TracebackType] = None) -> Any:
        """throw(typ[,val[,tb]]) -> raise exception in generator,
        return next yielded value or raise StopIteration."""
        if tb is not None and not isinstance(tb, TracebackType):
            raise TypeError("throw() third argument must be a traceback object")
        self._check_not_running()

        frame = self.frame
        inner = frame.yield_from if frame is not None else None
        if inner is None:
            return self._raise_exception(typ, val, tb)

        if is_shutdown(typ):
            error = self._guarded(self._close_iter, inner)
            if error is not None:
                raise error
            return self._raise_exception(typ, val, tb)

        if isinstance(inner, Generator):
            self.running = True
            try:
                return inner.throw(typ, val, tb)
            except StopIteration as stop:
                result, error = stop.value, None
            except BaseException as exc:
                result, error = None, exc
            finally:
                self.running = False
            if error is not None:
                # the inner generator did not handle it, so the frame gets a chance
                return self._inject(error)
            frame.finish_yield_from(result)
            return self._advance(None)

        close = find_attr(inner, "close")
        if close is NullObject:
            frame.yield_from = None
        else:
            error = self._guarded(close)
            if error is not None:
                raise error
        return self._raise_exception(typ, val, tb)

    def close(self) -> None:
        """close() -> raise GeneratorExit inside generator."""
        self._check_not_running()
        frame = self.frame
        if frame is None:
            return None

        inner = frame.yield_from
        if inner is not None:
            error = self._guarded(self._close_iter, inner)
            if error is not None and not isinstance(error, (StopIteration, GeneratorExit)):
                # the frame stays suspended on its delegation
                raise error
            frame.yield_from = None

        try:
            self._inject(GeneratorExit())
        except (StopIteration, GeneratorExit):
            return None
        raise RuntimeError("generator ignored GeneratorExit")

    def _check_not_running(self):
        if self.running:
            raise ValueError("generator already executing")

    def _guarded(self, func: Callable[..., Any], *args: Any) -> Optional[BaseException]:
        """Call ``func`` with the running flag set and return what it raised."""
        self.running = True
        try:
            func(*args)
        except BaseException as exc:
            return exc
        finally:
            self.running = False
        return None

    def _raise_exception(self, typ: Any, val: Any, tb: Optional[TracebackType]) -> Any:
        exc = normalize_exception(typ, val)
        if tb is not None:
            exc = exc.with_traceback(tb)
        return self._inject(exc)

    def _inject(self, exc: BaseException) -> Any:
        if self.frame is not None:
            self.frame.previous_exception = exc
        return self._advance(NullObject)

    def _advance(self, value: Any) -> Any:
        if self.running:
            raise ValueError("generator already executing")
        frame = self.frame
        if frame is None:
            raise StopIteration

        if frame.last_instruction == -1:
            frame.previous_exception = None
            self._frame_is_finished()
            raise StopIteration

        thread_state = get_thread_state()
        if frame.previous_exception is not None:
            thread_state.push_exception(frame.previous_exception)
            frame.previous_exception = None

        # None leaves the input slot alone, so the frame sees None
        if value is not None and value is not NullObject:
            frame.generator_input = value

        self.running = True
        try:
            result = frame.code.run(thread_state, frame, self.closure)
        except BaseException:
            self._frame_is_finished()
            raise
        finally:
            self.running = False

        if result.outcome is Outcome.INNER_EXHAUSTED:
            frame.finish_yield_from(result.value)
            return self._advance(value)

        if result.outcome is Outcome.FINISHED:
            self._frame_is_finished()
            if result.value is None:
                raise StopIteration
            raise StopIteration(result.value)

        return result.value

    def _frame_is_finished(self):
        logger.debug("%r terminated", self)
        self.frame = None

    def _close_iter(self, iterator: Any) -> Any:
        if isinstance(iterator, Generator):
            return iterator.close()
        close = find_attr(iterator, "close")
        if close is NullObject:
            return None
        return close()

    def finalize(self):
        """
        Close a generator that is collected before it terminated. Errors from
        ``close()`` are reported on the interpreter's stderr and dropped.
        """
        frame = self.__dict__.get("frame")
        if frame is None or frame.last_instruction == -1:
            return
        try:
            self.close()
        except Exception as exc:
            self._report_close_error(exc)
        except BaseException as exc:
            logger.debug("finalizer of %r dropped %r", self, exc)

    def _report_close_error(self, exc: Exception):
        msg = f"Exception {exception_class_name(exc)}: {exc} in {self!r}"
        try:
            print(msg, file=get_thread_state().system_state.stderr)
        except Exception:
            logger.debug("cannot report finalizer error: %s", msg)

    def __del__(self):
        self.finalize()

    def traverse(self, visit: Visitproc, arg: Any) -> int:
        for referent in (self.frame, self.code, self.closure):
            if referent is None:
                continue
            ret = visit(referent, arg)
            if ret:
                return ret
        return 0

    def refers_directly_to(self, obj: Any) -> bool:
        return obj is not None and (
            obj is self.frame or obj is self.code or obj is self.closure
        )
