from .code import Code
from .eval import eval_frame
from .frame import Block, Frame, Outcome, RunResult
from .objects import (
    Cell,
    NullObject,
    NullObjectType,
    exception_class_name,
    find_attr,
    is_shutdown,
    iternext,
    normalize_exception,
)
from .opcodes import Instr, Opcode
from .thread import SystemState, ThreadState, get_system_state, get_thread_state

__all__ = [
    "Block",
    "Cell",
    "Code",
    "eval_frame",
    "exception_class_name",
    "find_attr",
    "Frame",
    "get_system_state",
    "get_thread_state",
    "Instr",
    "is_shutdown",
    "iternext",
    "normalize_exception",
    "NullObject",
    "NullObjectType",
    "Opcode",
    "Outcome",
    "RunResult",
    "SystemState",
    "ThreadState",
]
