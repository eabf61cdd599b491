import operator
from enum import Enum, IntEnum
from typing import Any, NamedTuple, Tuple


class Opcode(IntEnum):
    NOP = 0
    POP_TOP = 1
    DUP_TOP = 2
    ROT_TWO = 3
    LOAD_CONST = 10
    LOAD_FAST = 11
    STORE_FAST = 12
    LOAD_DEREF = 13
    STORE_DEREF = 14
    LOAD_ATTR = 15
    BINARY_OP = 20
    CALL_FUNCTION = 21
    BUILD_LIST = 22
    GET_ITER = 30
    FOR_ITER = 31
    JUMP_ABSOLUTE = 32
    POP_JUMP_IF_FALSE = 33
    POP_JUMP_IF_TRUE = 34
    SETUP_EXCEPT = 40
    POP_BLOCK = 41
    JUMP_IF_NOT_EXC_MATCH = 42
    RERAISE = 43
    RAISE_VARARGS = 44
    YIELD_VALUE = 50
    GET_YIELD_FROM_ITER = 51
    YIELD_FROM = 52
    RETURN_VALUE = 53


class ArgKind(Enum):
    NONE = "none"
    CONST = "const"
    NAME = "name"
    COUNT = "count"
    LABEL = "label"
    OPERATOR = "operator"


ARG_KINDS = {
    Opcode.LOAD_CONST: ArgKind.CONST,
    Opcode.LOAD_FAST: ArgKind.NAME,
    Opcode.STORE_FAST: ArgKind.NAME,
    Opcode.LOAD_DEREF: ArgKind.NAME,
    Opcode.STORE_DEREF: ArgKind.NAME,
    Opcode.LOAD_ATTR: ArgKind.NAME,
    Opcode.BINARY_OP: ArgKind.OPERATOR,
    Opcode.CALL_FUNCTION: ArgKind.COUNT,
    Opcode.BUILD_LIST: ArgKind.COUNT,
    Opcode.FOR_ITER: ArgKind.LABEL,
    Opcode.JUMP_ABSOLUTE: ArgKind.LABEL,
    Opcode.POP_JUMP_IF_FALSE: ArgKind.LABEL,
    Opcode.POP_JUMP_IF_TRUE: ArgKind.LABEL,
    Opcode.SETUP_EXCEPT: ArgKind.LABEL,
    Opcode.JUMP_IF_NOT_EXC_MATCH: ArgKind.LABEL,
}

JUMP_CODES = frozenset(op for op, kind in ARG_KINDS.items() if kind is ArgKind.LABEL)

# control never falls through to the next instruction
FINAL_CODES = frozenset(
    (
        Opcode.JUMP_ABSOLUTE,
        Opcode.RERAISE,
        Opcode.RAISE_VARARGS,
        Opcode.RETURN_VALUE,
    )
)

YIELD_CODES = frozenset((Opcode.YIELD_VALUE, Opcode.YIELD_FROM))

OPERATORS = frozenset(
    (
        "add",
        "sub",
        "mul",
        "truediv",
        "floordiv",
        "mod",
        "pow",
        "and_",
        "or_",
        "xor",
        "lshift",
        "rshift",
        "matmul",
        "lt",
        "le",
        "eq",
        "ne",
        "gt",
        "ge",
        "is_",
        "is_not",
        "contains",
        "getitem",
        "concat",
    )
)


def binary_operator(name: str):
    if name not in OPERATORS:
        raise ValueError(f"unknown operator: {name}")
    return getattr(operator, name)


class Instr(NamedTuple):
    op: Opcode
    arg: Any = None
    lineno: int = -1

    def __str__(self):
        if ARG_KINDS.get(self.op, ArgKind.NONE) is ArgKind.NONE:
            return self.op.name
        return f"{self.op.name} {self.arg!r}"

    def arg_kind(self) -> ArgKind:
        return ARG_KINDS.get(self.op, ArgKind.NONE)

    def has_jump(self) -> bool:
        return self.op in JUMP_CODES

    def is_final(self) -> bool:
        return self.op in FINAL_CODES

    def stack_effect(self, jump: bool) -> int:
        return stack_effect(self.op, self.arg, jump)


def stack_effect(op: Opcode, arg: Any, jump: bool) -> int:
    if op in (Opcode.NOP, Opcode.ROT_TWO, Opcode.LOAD_ATTR, Opcode.GET_ITER):
        return 0
    if op in (Opcode.POP_TOP, Opcode.STORE_FAST, Opcode.STORE_DEREF, Opcode.BINARY_OP):
        return -1
    if op in (Opcode.DUP_TOP, Opcode.LOAD_CONST, Opcode.LOAD_FAST, Opcode.LOAD_DEREF):
        return 1
    if op is Opcode.CALL_FUNCTION:
        return -arg
    if op is Opcode.BUILD_LIST:
        return 1 - arg
    if op is Opcode.FOR_ITER:
        # exhausted: the iterator is popped before jumping
        return -1 if jump else 1
    if op in (Opcode.JUMP_ABSOLUTE, Opcode.POP_BLOCK):
        return 0
    if op in (Opcode.POP_JUMP_IF_FALSE, Opcode.POP_JUMP_IF_TRUE):
        return -1
    if op is Opcode.SETUP_EXCEPT:
        # the handler is entered with the exception pushed
        return 1 if jump else 0
    if op is Opcode.JUMP_IF_NOT_EXC_MATCH:
        return -1
    if op in (Opcode.RERAISE, Opcode.RAISE_VARARGS, Opcode.RETURN_VALUE):
        return -1
    if op in (Opcode.YIELD_VALUE, Opcode.GET_YIELD_FROM_ITER, Opcode.YIELD_FROM):
        return 0
    raise ValueError(f"unknown opcode: {op!r}")


Instructions = Tuple[Instr, ...]


def stack_inputs(op: Opcode, arg: Any) -> int:
    """Number of values ``op`` expects on the stack before it executes."""
    if op is Opcode.CALL_FUNCTION:
        return arg + 1
    if op is Opcode.BUILD_LIST:
        return arg
    if op in (Opcode.ROT_TWO, Opcode.BINARY_OP, Opcode.JUMP_IF_NOT_EXC_MATCH):
        return 2
    if op in (
        Opcode.POP_TOP,
        Opcode.DUP_TOP,
        Opcode.STORE_FAST,
        Opcode.STORE_DEREF,
        Opcode.LOAD_ATTR,
        Opcode.GET_ITER,
        Opcode.FOR_ITER,
        Opcode.POP_JUMP_IF_FALSE,
        Opcode.POP_JUMP_IF_TRUE,
        Opcode.RERAISE,
        Opcode.RAISE_VARARGS,
        Opcode.YIELD_VALUE,
        Opcode.GET_YIELD_FROM_ITER,
        Opcode.YIELD_FROM,
        Opcode.RETURN_VALUE,
    ):
        return 1
    return 0
