"""Stub surface derivation from symbol maps."""

from .generator import (
    StubOutputs,
    StubSurface,
    generate_stub,
    stub_compiler_flags,
    stub_visibility_flags,
    write_stub,
)
from .symbolfile import (
    SYMBOL_FILE_SUFFIX,
    StubFilter,
    Symbol,
    SymbolFile,
    Version,
    check_symbol_file_name,
    parse_symbol_file,
    parse_symbol_map,
)

__all__ = [
    "SYMBOL_FILE_SUFFIX",
    "StubFilter",
    "StubOutputs",
    "StubSurface",
    "Symbol",
    "SymbolFile",
    "Version",
    "check_symbol_file_name",
    "generate_stub",
    "parse_symbol_file",
    "parse_symbol_map",
    "stub_compiler_flags",
    "stub_visibility_flags",
    "write_stub",
]
