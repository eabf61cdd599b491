from typing import Any, Optional, Type, Union


class NullObjectType:
    """Marks the absence of a value, as opposed to ``None`` (the unit value)."""

    _instance: Optional["NullObjectType"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "NullObject"

    def __bool__(self):
        return False

    def __reduce__(self) -> str:
        return "NullObject"


NullObject = NullObjectType()


class Cell:
    def __init__(self, contents: Any = NullObject):
        self.contents = contents

    def __repr__(self):
        return f"<cell: {self.contents!r}>"


ExceptionSpec = Union[Type[BaseException], BaseException]


def normalize_exception(exc_type: Any, value: Any = None) -> BaseException:
    """
    Build an exception instance from a ``(type, value)`` pair the same way
    ``raise`` does.
    """
    if isinstance(exc_type, BaseException):
        if value is not None:
            raise TypeError("instance exception may not have a separate value")
        return exc_type

    if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
        raise TypeError(
            "exceptions must be classes or instances deriving from "
            f"BaseException, not {type(exc_type).__name__}"
        )

    if value is None:
        exc = exc_type()
    elif isinstance(value, exc_type):
        exc = value
    elif isinstance(value, tuple):
        exc = exc_type(*value)
    else:
        exc = exc_type(value)

    if not isinstance(exc, BaseException):
        raise TypeError(
            f"calling {exc_type!r} should have returned an instance of "
            f"BaseException, not {type(exc).__name__}"
        )
    return exc


def is_shutdown(exc: Any) -> bool:
    if isinstance(exc, type):
        return issubclass(exc, GeneratorExit)
    return isinstance(exc, GeneratorExit)


def find_attr(obj: Any, name: str) -> Any:
    """Attribute lookup that reports a missing attribute as ``NullObject``."""
    try:
        return getattr(obj, name)
    except AttributeError:
        return NullObject


def iternext(iterator: Any) -> Any:
    try:
        return next(iterator)
    except StopIteration:
        return NullObject


def exception_class_name(exc: BaseException) -> str:
    return type(exc).__qualname__.rsplit(".", 1)[-1]
