import copyreg
import io
import logging
from typing import IO, Any, Callable, Dict, Optional, Tuple, Type

import dill

from genframe.analyzer import analyze_stack_size
from genframe.generator import Generator
from genframe.interpreter import Code, Frame, Opcode

logger = logging.getLogger(__name__)

Registry = Dict[Type, Callable[[Any], Tuple[Callable[..., Any], Tuple]]]


def _suspended_at(frame: Frame) -> int:
    resume = frame.last_instruction
    if frame.yield_from is not None:
        return resume
    if frame.code.instructions[resume - 1].op is Opcode.YIELD_VALUE:
        return resume - 1
    raise ValueError(f"{frame} is not suspended at a yield")


def check_frame(frame: Frame):
    """Verify that a suspended frame's value stack fits its code."""
    if frame.last_instruction in (0, -1):
        if frame.stack:
            raise ValueError(f"{frame} has values on the stack before running")
        return
    # the suspending instruction's own result is pushed on resume
    expected = analyze_stack_size(frame.code, _suspended_at(frame)) - 1
    if len(frame.stack) != expected:
        raise ValueError(
            f"{frame} holds {len(frame.stack)} stack values, code expects {expected}"
        )


def make_generator(frame: Optional[Frame], code: Optional[Code], closure: Any) -> Generator:
    if frame is not None:
        check_frame(frame)
    gen = Generator(frame, closure)
    gen.code = code
    return gen


def reduce_generator(gen: Generator):
    if gen.running:
        raise TypeError(f"cannot serialize executing generator {gen!r}")
    if gen.frame is not None and gen.frame.previous_exception is not None:
        raise TypeError(f"cannot serialize {gen!r} with a pending exception")
    return make_generator, (gen.frame, gen.code, gen.closure)


def dispatch_table() -> Registry:
    return {
        Generator: reduce_generator,
    }


class Pickler(dill.Pickler):
    def __init__(self, file, *args, **kwds):
        super().__init__(file, *args, **kwds)
        self.dispatch_table = copyreg.dispatch_table.copy()
        self.dispatch_table.update(dispatch_table())


class Unpickler(dill.Unpickler):
    pass


def dump(obj: Any, file: IO[bytes]):
    Pickler(file).dump(obj)


def dumps(obj: Any) -> bytes:
    buffer = io.BytesIO()
    dump(obj, buffer)
    return buffer.getvalue()


def load(file: IO[bytes]) -> Any:
    return Unpickler(file).load()


def loads(data: bytes) -> Any:
    return load(io.BytesIO(data))


def copy(obj: Any) -> Any:
    data = dumps(obj)
    logger.debug("copy %r through %d bytes", obj, len(data))
    return loads(data)
