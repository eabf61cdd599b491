import logging
from typing import List

from genframe.interpreter import Code, Instr
from genframe.interpreter.opcodes import ArgKind


def format_instr(instr: Instr) -> str:
    kind = instr.arg_kind()
    if kind is ArgKind.NONE:
        return instr.op.name
    if kind is ArgKind.LABEL:
        return f"{instr.op.name} (to {instr.arg})"
    return f"{instr.op.name} {instr.arg!r}"


def disassemble(code: Code) -> str:
    targets = {instr.arg for instr in code.instructions if instr.has_jump()}
    lines: List[str] = []
    for i, instr in enumerate(code.instructions):
        marker = ">>" if i in targets else "  "
        lineno = "" if instr.lineno < 0 else str(instr.lineno)
        lines.append(f"{lineno:>4} {marker} {i:4} {format_instr(instr)}")
    return "\n".join(lines)


def dump_code_and_offset(
    logger: logging.Logger,
    code: Code,
    offset: int,
    msg: str,
):
    logger.debug(f"dump code object: {code}")
    logger.debug(msg)
    logger.debug(
        "CODE_ARRAY:\n"
        + "\n".join(
            f"{i}: {format_instr(instr)}"
            + ("   <---- offset ----   " if i == offset else "")
            for i, instr in enumerate(code.instructions)
        )
    )
