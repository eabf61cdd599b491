import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, NamedTuple, Optional, Sequence

from genframe.interpreter.objects import NullObject

if TYPE_CHECKING:
    from genframe.interpreter.code import Code

logger = logging.getLogger(__name__)

Visitproc = Callable[[Any, Any], int]


class Outcome(Enum):
    YIELDED = "yielded"
    FINISHED = "finished"
    INNER_EXHAUSTED = "inner_exhausted"


class RunResult(NamedTuple):
    outcome: Outcome
    value: Any = None


class Block(NamedTuple):
    handler: int
    level: int


class Frame:
    """
    Suspended activation record of a code object.

    ``last_instruction`` is 0 before the first resume and -1 once the frame
    has finished; otherwise it is the resume point saved by the interpreter.
    """

    def __init__(self, code: "Code", args: Sequence[Any] = ()):
        if len(args) != len(code.argnames):
            raise TypeError(
                f"{code.name}() takes {len(code.argnames)} positional "
                f"arguments but {len(args)} were given"
            )
        self.code = code
        self.locals: Dict[str, Any] = dict(zip(code.argnames, args))
        self.stack: List[Any] = []
        self.blocks: List[Block] = []
        self.last_instruction = 0
        self.yield_from: Any = None
        self.previous_exception: Optional[BaseException] = None
        self.generator_input: Any = None

    def __repr__(self):
        return (
            f"<frame of {self.code.name}, last_instruction={self.last_instruction}>"
        )

    def push(self, value: Any):
        self.stack.append(value)

    def pop(self) -> Any:
        return self.stack.pop()

    def top(self) -> Any:
        return self.stack[-1]

    def take_input(self) -> Any:
        value, self.generator_input = self.generator_input, None
        return value

    def finish_yield_from(self, result: Any):
        """Step past a finished yield-from, leaving ``result`` as its value."""
        logger.debug("%s: delegation finished with %r", self, result)
        self.yield_from = None
        self.last_instruction += 1
        self.push(result)

    def unwind(self, exc: BaseException) -> Optional[int]:
        if not self.blocks:
            return None
        block = self.blocks.pop()
        del self.stack[block.level :]
        self.push(exc)
        return block.handler

    def mark_finished(self):
        self.last_instruction = -1
        self.stack.clear()
        self.blocks.clear()
        self.yield_from = None

    def traverse(self, visit: Visitproc, arg: Any) -> int:
        referents = [self.code, self.yield_from, self.previous_exception]
        referents.extend(self.locals.values())
        referents.extend(self.stack)
        for referent in referents:
            if referent is None or referent is NullObject:
                continue
            ret = visit(referent, arg)
            if ret:
                return ret
        return 0
