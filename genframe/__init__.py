import logging
import os

from genframe.assembler import AssemblyError, assemble, assemble_function
from genframe.function import Function
from genframe.generator import Generator

logger = logging.getLogger(__name__)

level = os.environ.get("GENFRAME_LOGGING", "INFO").upper()
logger.setLevel(getattr(logging, level))

__all__ = [
    "assemble",
    "assemble_function",
    "AssemblyError",
    "Function",
    "Generator",
]
