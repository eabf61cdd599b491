import logging
from typing import Any, Mapping, Optional

from genframe.interpreter.frame import Block, Frame, Outcome, RunResult
from genframe.interpreter.objects import Cell, NullObject, iternext, normalize_exception
from genframe.interpreter.opcodes import Opcode, binary_operator
from genframe.interpreter.thread import ThreadState

logger = logging.getLogger(__name__)


def _load_deref(closure: Optional[Mapping[str, Cell]], name: str) -> Cell:
    if closure is None or name not in closure:
        raise NameError(f"free variable '{name}' is not bound in this closure")
    return closure[name]


def _pop_n(frame: Frame, count: int) -> list:
    if count == 0:
        return []
    values = frame.stack[-count:]
    del frame.stack[-count:]
    return values


def eval_frame(
    thread_state: ThreadState,
    frame: Frame,
    closure: Optional[Mapping[str, Cell]],
) -> RunResult:
    """
    Run ``frame`` from its resume point.

    Returns ``YIELDED`` when the frame suspends, ``FINISHED`` when it returns
    and ``INNER_EXHAUSTED`` when the iterator it delegates to has finished,
    with ``frame.yield_from`` left set. Exceptions escaping the frame are
    raised after marking it finished.
    """
    instructions = frame.code.instructions
    pc = frame.last_instruction
    if pc < 0:
        raise RuntimeError(f"{frame} has already finished")

    sent = frame.take_input()
    pending = thread_state.pop_exception()
    if pending is not None:
        # raised at the resume site, abandoning any delegation
        frame.yield_from = None
    elif (
        pc > 0
        and frame.yield_from is None
        and instructions[pc - 1].op is Opcode.YIELD_VALUE
    ):
        frame.push(sent)
    if frame.yield_from is None:
        sent = None
    logger.debug("resume %s at %d, pending: %r", frame, pc, pending)

    while True:
        if pending is not None:
            handler = frame.unwind(pending)
            if handler is None:
                frame.mark_finished()
                logger.debug("%s finished with %r", frame, pending)
                raise pending
            pc, pending = handler, None
            continue

        instr = instructions[pc]
        pc += 1
        op, arg = instr.op, instr.arg
        try:
            if op is Opcode.NOP:
                pass
            elif op is Opcode.POP_TOP:
                frame.pop()
            elif op is Opcode.DUP_TOP:
                frame.push(frame.top())
            elif op is Opcode.ROT_TWO:
                frame.stack[-1], frame.stack[-2] = frame.stack[-2], frame.stack[-1]
            elif op is Opcode.LOAD_CONST:
                frame.push(arg)
            elif op is Opcode.LOAD_FAST:
                try:
                    frame.push(frame.locals[arg])
                except KeyError:
                    raise UnboundLocalError(
                        f"local variable '{arg}' referenced before assignment"
                    ) from None
            elif op is Opcode.STORE_FAST:
                frame.locals[arg] = frame.pop()
            elif op is Opcode.LOAD_DEREF:
                value = _load_deref(closure, arg).contents
                if value is NullObject:
                    raise NameError(
                        f"free variable '{arg}' referenced before assignment"
                    )
                frame.push(value)
            elif op is Opcode.STORE_DEREF:
                _load_deref(closure, arg).contents = frame.pop()
            elif op is Opcode.LOAD_ATTR:
                frame.push(getattr(frame.pop(), arg))
            elif op is Opcode.BINARY_OP:
                rhs = frame.pop()
                lhs = frame.pop()
                frame.push(binary_operator(arg)(lhs, rhs))
            elif op is Opcode.CALL_FUNCTION:
                args = _pop_n(frame, arg)
                func = frame.pop()
                frame.push(func(*args))
            elif op is Opcode.BUILD_LIST:
                frame.push(_pop_n(frame, arg))
            elif op is Opcode.GET_ITER:
                frame.push(iter(frame.pop()))
            elif op is Opcode.FOR_ITER:
                value = iternext(frame.top())
                if value is NullObject:
                    frame.pop()
                    pc = arg
                else:
                    frame.push(value)
            elif op is Opcode.JUMP_ABSOLUTE:
                pc = arg
            elif op is Opcode.POP_JUMP_IF_FALSE:
                if not frame.pop():
                    pc = arg
            elif op is Opcode.POP_JUMP_IF_TRUE:
                if frame.pop():
                    pc = arg
            elif op is Opcode.SETUP_EXCEPT:
                frame.blocks.append(Block(handler=arg, level=len(frame.stack)))
            elif op is Opcode.POP_BLOCK:
                frame.blocks.pop()
            elif op is Opcode.JUMP_IF_NOT_EXC_MATCH:
                exc_type = frame.pop()
                if not isinstance(frame.top(), exc_type):
                    pc = arg
            elif op is Opcode.RERAISE:
                raise frame.pop()
            elif op is Opcode.RAISE_VARARGS:
                raise normalize_exception(frame.pop())
            elif op is Opcode.YIELD_VALUE:
                value = frame.pop()
                frame.last_instruction = pc
                logger.debug("%s yields %r", frame, value)
                return RunResult(Outcome.YIELDED, value)
            elif op is Opcode.GET_YIELD_FROM_ITER:
                frame.push(iter(frame.pop()))
            elif op is Opcode.YIELD_FROM:
                if frame.yield_from is None:
                    frame.yield_from = frame.pop()
                value, sent = sent, None
                frame.last_instruction = pc - 1
                try:
                    if value is None:
                        value = next(frame.yield_from)
                    else:
                        value = frame.yield_from.send(value)
                except StopIteration as stop:
                    logger.debug("%s: inner iterator exhausted", frame)
                    return RunResult(Outcome.INNER_EXHAUSTED, stop.value)
                except BaseException:
                    frame.yield_from = None
                    raise
                logger.debug("%s yields %r from %r", frame, value, frame.yield_from)
                return RunResult(Outcome.YIELDED, value)
            elif op is Opcode.RETURN_VALUE:
                value = frame.pop()
                frame.mark_finished()
                logger.debug("%s returns %r", frame, value)
                return RunResult(Outcome.FINISHED, value)
            else:
                raise SystemError(f"unknown opcode: {op!r}")
        except BaseException as exc:
            pending = exc
