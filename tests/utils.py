from typing import Any, Callable, List

from genframe import Function, assemble_function

counter = assemble_function(
    "counter",
    """
    LOAD_CONST 1
    YIELD_VALUE
    POP_TOP
    LOAD_CONST 2
    YIELD_VALUE
    POP_TOP
    LOAD_CONST 3
    YIELD_VALUE
    POP_TOP
    """,
)

# x = yield x, forever
echo = assemble_function(
    "echo",
    """
    LOAD_CONST 0
    STORE_FAST x
loop:
    LOAD_FAST x
    YIELD_VALUE
    STORE_FAST x
    JUMP_ABSOLUTE loop
    """,
)

yield_one = assemble_function(
    "yield_one",
    """
    LOAD_CONST 1
    YIELD_VALUE
    POP_TOP
    """,
)

# try: yield 1
# except ValueError: yield 2
catch_value_error = assemble_function(
    "catch_value_error",
    """
    SETUP_EXCEPT handler
    LOAD_CONST 1
    YIELD_VALUE
    POP_TOP
    POP_BLOCK
    LOAD_CONST None
    RETURN_VALUE
handler:
    LOAD_CONST ValueError
    JUMP_IF_NOT_EXC_MATCH reraise
    POP_TOP
    LOAD_CONST 2
    YIELD_VALUE
    POP_TOP
    LOAD_CONST None
    RETURN_VALUE
reraise:
    RERAISE
    """,
)

# try: yield 1
# except ValueError: return "handled"
return_on_value_error = assemble_function(
    "return_on_value_error",
    """
    SETUP_EXCEPT handler
    LOAD_CONST 1
    YIELD_VALUE
    POP_TOP
    POP_BLOCK
    LOAD_CONST None
    RETURN_VALUE
handler:
    LOAD_CONST ValueError
    JUMP_IF_NOT_EXC_MATCH reraise
    POP_TOP
    LOAD_CONST 'handled'
    RETURN_VALUE
reraise:
    RERAISE
    """,
)

inner_ab = assemble_function(
    "inner_ab",
    """
    LOAD_CONST 'a'
    YIELD_VALUE
    POP_TOP
    LOAD_CONST 'b'
    YIELD_VALUE
    POP_TOP
    """,
)

inner_returns = assemble_function(
    "inner_returns",
    """
    LOAD_CONST 1
    YIELD_VALUE
    POP_TOP
    LOAD_CONST 'done'
    RETURN_VALUE
    """,
)

# try: yield 1
# except GeneratorExit: yield "ignored"
ignore_exit = assemble_function(
    "ignore_exit",
    """
    SETUP_EXCEPT handler
    LOAD_CONST 1
    YIELD_VALUE
    POP_TOP
    POP_BLOCK
    LOAD_CONST None
    RETURN_VALUE
handler:
    POP_TOP
    LOAD_CONST 'ignored'
    YIELD_VALUE
    POP_TOP
    """,
)

# try: yield 1
# except BaseException: raise ValueError("boom")
raise_on_exit = assemble_function(
    "raise_on_exit",
    """
    SETUP_EXCEPT handler
    LOAD_CONST 1
    YIELD_VALUE
    POP_TOP
    POP_BLOCK
    LOAD_CONST None
    RETURN_VALUE
handler:
    POP_TOP
    LOAD_CONST ValueError
    LOAD_CONST 'boom'
    CALL_FUNCTION 1
    RAISE_VARARGS
    """,
)

# for item in items: yield item * 2
doubled = assemble_function(
    "doubled",
    """
    LOAD_FAST items
    GET_ITER
loop:
    FOR_ITER done
    LOAD_CONST 2
    BINARY_OP mul
    YIELD_VALUE
    POP_TOP
    JUMP_ABSOLUTE loop
done:
    LOAD_CONST None
    RETURN_VALUE
    """,
    argnames=("items",),
)


def delegating_to(inner: Any, name: str = "outer") -> Function:
    """return (yield from inner())"""
    return assemble_function(
        name,
        """
        LOAD_CONST inner
        CALL_FUNCTION 0
        GET_YIELD_FROM_ITER
        YIELD_FROM
        RETURN_VALUE
        """,
        namespace={"inner": inner},
    )


def yield_delegation_result(inner: Any) -> Function:
    """yield (yield from inner())"""
    return assemble_function(
        "yield_result",
        """
        LOAD_CONST inner
        CALL_FUNCTION 0
        GET_YIELD_FROM_ITER
        YIELD_FROM
        YIELD_VALUE
        POP_TOP
        """,
        namespace={"inner": inner},
    )


def recording(name: str, log: List[str]) -> Function:
    """try: yield name
    except BaseException as e: log.append(name); raise"""
    return assemble_function(
        name,
        """
        SETUP_EXCEPT handler
        LOAD_CONST tag
        YIELD_VALUE
        POP_TOP
        POP_BLOCK
        LOAD_CONST None
        RETURN_VALUE
    handler:
        LOAD_CONST record
        LOAD_CONST tag
        CALL_FUNCTION 1
        POP_TOP
        RERAISE
        """,
        namespace={"tag": name, "record": log.append},
    )


def recording_delegator(inner: Any, log: List[str]) -> Function:
    """try: yield from inner()
    except BaseException: log.append("outer"); raise"""
    return assemble_function(
        "outer",
        """
        SETUP_EXCEPT handler
        LOAD_CONST inner
        CALL_FUNCTION 0
        GET_YIELD_FROM_ITER
        YIELD_FROM
        POP_TOP
        POP_BLOCK
        LOAD_CONST None
        RETURN_VALUE
    handler:
        LOAD_CONST record
        LOAD_CONST 'outer'
        CALL_FUNCTION 1
        POP_TOP
        RERAISE
        """,
        namespace={"inner": inner, "record": log.append},
    )


def calling(callback: Callable[[], Any]) -> Function:
    """yield callback()"""
    return assemble_function(
        "calling",
        """
        LOAD_CONST callback
        CALL_FUNCTION 0
        YIELD_VALUE
        POP_TOP
        """,
        namespace={"callback": callback},
    )


class ClosableIterator:
    def __init__(self, value: Any = "x"):
        self.value = value
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        return self.value

    def close(self):
        self.closed = True


def handling_delegator(inner: Any) -> Function:
    """try: return (yield from inner())
    except BaseException: return 'handled'"""
    return assemble_function(
        "handling",
        """
        SETUP_EXCEPT handler
        LOAD_CONST inner
        CALL_FUNCTION 0
        GET_YIELD_FROM_ITER
        YIELD_FROM
        POP_BLOCK
        RETURN_VALUE
    handler:
        POP_TOP
        LOAD_CONST 'handled'
        RETURN_VALUE
        """,
        namespace={"inner": inner},
    )
