import json
import logging
from typing import Dict, List, Tuple

from genframe.interpreter import Code
from genframe.interpreter.opcodes import stack_inputs
from genframe.util import dump_code_and_offset

logger = logging.getLogger(__name__)


def _visit_instr(
    visit_stack: List[Tuple[int, int]],
    seen: Dict[int, int],
    target: int,
    stack_size_before: int,
):
    assert stack_size_before >= 0

    if target not in seen:
        seen[target] = stack_size_before
        visit_stack.append((target, stack_size_before))
        return

    if seen[target] != stack_size_before:
        raise RuntimeError(
            f"different stack size when entering instruction {target}: "
            f"{seen[target]} != {stack_size_before}"
        )


def _symbolic_eval(code: Code) -> Tuple[Dict[int, int], Dict[int, int]]:
    """Stack size after, and on entry to, every reachable instruction."""
    instructions = code.instructions
    result: Dict[int, int] = {}
    seen: Dict[int, int] = {0: 0}
    visit_stack = [(0, 0)]

    while len(visit_stack) > 0:
        offset, stack_size = visit_stack.pop()
        while True:
            if offset >= len(instructions):
                raise RuntimeError(f"control flow falls off the end at {offset}")
            instr = instructions[offset]
            if stack_size < stack_inputs(instr.op, instr.arg):
                raise RuntimeError(f"stack underflow at {offset}: {instr}")
            if instr.has_jump():
                if not 0 <= instr.arg < len(instructions):
                    raise RuntimeError(f"jump target out of range at {offset}: {instr}")
                _visit_instr(
                    visit_stack,
                    seen,
                    instr.arg,
                    stack_size + instr.stack_effect(True),
                )
            stack_size += instr.stack_effect(False)
            result[offset] = stack_size

            if instr.is_final():
                break
            offset += 1
            if offset in seen:
                _visit_instr(visit_stack, seen, offset, stack_size)  # fallthrough
                break
            seen[offset] = stack_size

    return result, seen


def _analyze(code: Code) -> Tuple[Dict[int, int], Dict[int, int]]:
    try:
        return _symbolic_eval(code)
    except RuntimeError as e:
        dump_code_and_offset(logger, code, -1, str(e))
        raise


def analyze_stack_depth(code: Code) -> Dict[int, int]:
    return _analyze(code)[0]


def max_stack_depth(code: Code) -> int:
    after, entry = _analyze(code)
    return max(max(after.values(), default=0), max(entry.values(), default=0))


def analyze_stack_size(code: Code, last_instr: int) -> int:
    eval_result = analyze_stack_depth(code)
    if last_instr not in eval_result:
        error_msg = f"invalid instr idx:{last_instr},\
            analyze result:{json.dumps(eval_result, indent=4, ensure_ascii=False)}"
        dump_code_and_offset(logger, code, last_instr, error_msg)
        raise RuntimeError(error_msg)
    return eval_result[last_instr]
