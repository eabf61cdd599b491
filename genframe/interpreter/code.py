from typing import Any, Iterable, Optional, Tuple

from genframe.interpreter.eval import eval_frame
from genframe.interpreter.frame import Frame, RunResult
from genframe.interpreter.opcodes import YIELD_CODES, Instr, Instructions
from genframe.interpreter.thread import ThreadState


class Code:
    def __init__(
        self,
        name: str,
        instructions: Iterable[Instr],
        argnames: Tuple[str, ...] = (),
        freevars: Tuple[str, ...] = (),
        stacksize: int = 0,
        filename: str = "<assembly>",
    ):
        self.name = name
        self.instructions: Instructions = tuple(instructions)
        self.argnames = tuple(argnames)
        self.freevars = tuple(freevars)
        self.stacksize = stacksize
        self.filename = filename
        self.is_generator = any(instr.op in YIELD_CODES for instr in self.instructions)

    def __repr__(self):
        return f"<code object {self.name} at {id(self):#x}, file {self.filename!r}>"

    def __len__(self):
        return len(self.instructions)

    def run(
        self, thread_state: ThreadState, frame: Frame, closure: Optional[Any]
    ) -> RunResult:
        """Run ``frame`` until it yields, returns or raises."""
        return eval_frame(thread_state, frame, closure)
