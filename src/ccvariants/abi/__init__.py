"""ABI dump creation and reference comparison."""

from .checker import AbiChecker
from .layout import ReferenceDumpLayout
from .model import (
    AbiChange,
    AbiDiffResult,
    AbiDocument,
    AbiDump,
    AbiSurface,
    DiffPolicy,
    FunctionDecl,
    GlobalVarDecl,
    RecordType,
)
from .tools import AbiToolBackend, DiffOutcome, InProcessAbiTool, diff_documents

__all__ = [
    "AbiChange",
    "AbiChecker",
    "AbiDiffResult",
    "AbiDocument",
    "AbiDump",
    "AbiSurface",
    "AbiToolBackend",
    "DiffOutcome",
    "DiffPolicy",
    "FunctionDecl",
    "GlobalVarDecl",
    "InProcessAbiTool",
    "RecordType",
    "ReferenceDumpLayout",
    "diff_documents",
]
