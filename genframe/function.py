from typing import Any, Mapping, Optional

from genframe.generator import Generator
from genframe.interpreter import Cell, Code, Frame, Outcome, get_thread_state

Closure = Mapping[str, Cell]


class Function:
    def __init__(self, code: Code, closure: Optional[Closure] = None):
        missing = [name for name in code.freevars if closure is None or name not in closure]
        if missing:
            raise ValueError(
                f"{code.name}() requires closure cells for: {', '.join(missing)}"
            )
        self.code = code
        self.closure = closure

    @property
    def __name__(self) -> str:
        return self.code.name

    def __repr__(self):
        return f"<function {self.code.name} at {id(self):#x}>"

    def __call__(self, *args: Any) -> Any:
        frame = Frame(self.code, args)
        if self.code.is_generator:
            return Generator(frame, self.closure)
        result = self.code.run(get_thread_state(), frame, self.closure)
        if result.outcome is not Outcome.FINISHED:
            raise RuntimeError(f"{self.code.name}() suspended outside a generator")
        return result.value
