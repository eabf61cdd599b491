import io

import pytest

from genframe import Generator, assemble_function
from genframe.interpreter import Cell
from genframe.objects import check_frame, copy, dump, dumps, load, loads, make_generator
from tests.utils import counter, delegating_to, echo, inner_ab, inner_returns


def test_copy_suspended_generator():
    gen = counter()
    assert next(gen) == 1
    copied = copy(gen)
    assert isinstance(copied, Generator)
    assert copied is not gen
    assert copied.gi_frame is not gen.gi_frame
    assert copied.__name__ == "counter"
    assert list(copied) == [2, 3]
    assert list(gen) == [2, 3]


def test_copy_keeps_locals():
    gen = echo()
    next(gen)
    assert gen.send("kept") == "kept"
    copied = copy(gen)
    assert copied.gi_frame.locals == {"x": "kept"}
    assert copied.send("new") == "new"
    assert next(gen) is None


def test_copy_unstarted_generator():
    copied = copy(counter())
    assert copied.gi_frame.last_instruction == 0
    assert list(copied) == [1, 2, 3]


def test_copy_finished_generator():
    gen = counter()
    list(gen)
    copied = copy(gen)
    assert copied.gi_frame is None
    assert copied.__name__ == "counter"
    with pytest.raises(StopIteration):
        next(copied)


def test_copy_delegating_generator():
    gen = delegating_to(inner_ab)()
    assert next(gen) == "a"
    copied = copy(gen)
    assert isinstance(copied.gi_yieldfrom, Generator)
    assert copied.gi_yieldfrom is not gen.gi_yieldfrom
    assert next(copied) == "b"
    with pytest.raises(StopIteration):
        next(copied)
    assert next(gen) == "b"


def test_copy_delegation_result():
    gen = delegating_to(inner_returns)()
    next(gen)
    with pytest.raises(StopIteration) as e:
        next(copy(gen))
    assert e.value.value == "done"


def test_copy_closure():
    cell = Cell(0)
    reader = assemble_function(
        "reader",
        """
    loop:
        LOAD_DEREF value
        YIELD_VALUE
        POP_TOP
        JUMP_ABSOLUTE loop
        """,
        closure={"value": cell},
    )
    gen = reader()
    next(gen)
    copied = copy(gen)
    cell.contents = 1
    assert next(gen) == 1
    assert next(copied) == 0


def test_dump_and_load_through_file():
    gen = counter()
    next(gen)
    buffer = io.BytesIO()
    dump(gen, buffer)
    buffer.seek(0)
    loaded = load(buffer)
    assert next(loaded) == 2
    assert next(loads(dumps(loaded))) == 3


def test_cannot_copy_executing_generator():
    gen = counter()
    gen.running = True
    try:
        with pytest.raises(TypeError, match="executing"):
            dumps(gen)
    finally:
        gen.running = False


def test_cannot_copy_pending_exception():
    gen = counter()
    next(gen)
    gen.frame.previous_exception = ValueError()
    try:
        with pytest.raises(TypeError, match="pending exception"):
            dumps(gen)
    finally:
        gen.frame.previous_exception = None


def test_check_frame():
    gen = counter()
    check_frame(gen.frame)
    next(gen)
    check_frame(gen.frame)

    gen.frame.stack.append("extra")
    with pytest.raises(ValueError, match="stack values"):
        check_frame(gen.frame)
    with pytest.raises(ValueError):
        make_generator(gen.frame, gen.code, None)
    gen.frame.stack.pop()


def test_check_frame_before_running():
    gen = counter()
    gen.frame.stack.append("extra")
    with pytest.raises(ValueError, match="before running"):
        check_frame(gen.frame)
    gen.frame.stack.clear()
