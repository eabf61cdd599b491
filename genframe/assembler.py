import ast
import builtins
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from genframe.analyzer import max_stack_depth
from genframe.function import Closure, Function
from genframe.interpreter import Code, Instr, Opcode
from genframe.interpreter.opcodes import OPERATORS, ArgKind
from genframe.util import disassemble

logger = logging.getLogger(__name__)

_LABEL = re.compile(r"^([A-Za-z_][\w.]*):$")
_COMMENT = re.compile(r"(?:^|\s)#")


class AssemblyError(Exception):
    def __init__(self, msg: str, lineno: int):
        super().__init__(f"line {lineno}: {msg}")
        self.lineno = lineno


RawInstr = Tuple[Opcode, str, int]


def _parse_const(text: str, namespace: Mapping[str, Any], lineno: int) -> Any:
    try:
        return ast.literal_eval(text)
    except (ValueError, SyntaxError):
        pass
    if text in namespace:
        return namespace[text]
    if hasattr(builtins, text):
        return getattr(builtins, text)
    raise AssemblyError(f"unknown constant: {text}", lineno)


def _parse_lines(source: str) -> Tuple[List[RawInstr], Dict[str, int]]:
    raw: List[RawInstr] = []
    labels: Dict[str, int] = {}
    for lineno, line in enumerate(source.splitlines(), 1):
        line = _COMMENT.split(line, maxsplit=1)[0].strip()
        if not line:
            continue

        match = _LABEL.match(line)
        if match:
            label = match.group(1)
            if label in labels:
                raise AssemblyError(f"duplicate label: {label}", lineno)
            labels[label] = len(raw)
            continue

        opname, _, rest = line.partition(" ")
        try:
            op = Opcode[opname]
        except KeyError:
            raise AssemblyError(f"unknown opcode: {opname}", lineno) from None
        raw.append((op, rest.strip(), lineno))
    return raw, labels


def _resolve_arg(
    op: Opcode,
    text: str,
    lineno: int,
    labels: Mapping[str, int],
    namespace: Mapping[str, Any],
) -> Any:
    kind = Instr(op).arg_kind()
    if kind is ArgKind.NONE:
        if text:
            raise AssemblyError(f"{op.name} takes no argument", lineno)
        return None
    if not text:
        raise AssemblyError(f"{op.name} requires an argument", lineno)

    if kind is ArgKind.CONST:
        return _parse_const(text, namespace, lineno)
    if kind is ArgKind.NAME:
        if not text.isidentifier():
            raise AssemblyError(f"invalid name: {text}", lineno)
        return text
    if kind is ArgKind.COUNT:
        if not text.isdigit():
            raise AssemblyError(f"invalid count: {text}", lineno)
        return int(text)
    if kind is ArgKind.LABEL:
        if text not in labels:
            raise AssemblyError(f"undefined label: {text}", lineno)
        return labels[text]
    if kind is ArgKind.OPERATOR:
        if text not in OPERATORS:
            raise AssemblyError(f"unknown operator: {text}", lineno)
        return text
    raise AssemblyError(f"unsupported argument kind {kind} for {op.name}", lineno)


def parse(source: str, namespace: Optional[Mapping[str, Any]] = None) -> List[Instr]:
    """
    Parse an instruction listing. Each line holds a ``label:``, an
    ``OPNAME [arg]`` pair, or nothing; ``#`` starts a comment.
    """
    namespace = namespace or {}
    raw, labels = _parse_lines(source)
    return [
        Instr(op, _resolve_arg(op, text, lineno, labels, namespace), lineno)
        for op, text, lineno in raw
    ]


def assemble(
    name: str,
    source: str,
    argnames: Sequence[str] = (),
    freevars: Sequence[str] = (),
    namespace: Optional[Mapping[str, Any]] = None,
    filename: str = "<assembly>",
) -> Code:
    instructions = parse(source, namespace)
    if not instructions or not instructions[-1].is_final():
        instructions.append(Instr(Opcode.LOAD_CONST, None))
        instructions.append(Instr(Opcode.RETURN_VALUE))

    code = Code(name, instructions, tuple(argnames), tuple(freevars), filename=filename)
    code.stacksize = max_stack_depth(code)
    logger.debug("assembled %r:\n%s", code, disassemble(code))
    return code


def assemble_function(
    name: str,
    source: str,
    argnames: Sequence[str] = (),
    namespace: Optional[Mapping[str, Any]] = None,
    closure: Optional[Closure] = None,
) -> Function:
    freevars = tuple(closure) if closure else ()
    code = assemble(name, source, argnames, freevars, namespace)
    return Function(code, closure)
