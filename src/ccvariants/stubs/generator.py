"""Stub source and version script generation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from ccvariants.models import LibraryConfig
from ccvariants.stubs.symbolfile import StubFilter, SymbolFile, Version

STUB_COMPILER_FLAGS = (
    "-Wno-incompatible-library-redeclaration",
    "-Wno-incomplete-setjmp-declaration",
    "-Wno-builtin-requires-header",
    "-Wno-invalid-noreturn",
    "-Wall",
    "-Werror",
    # Keep unwind tables out of stubs so they stay placeholders.
    "-fno-unwind-tables",
)


@dataclass(frozen=True, slots=True)
class StubSurface:
    source: str
    version_script: str
    versions: tuple[Version, ...]

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(s.name for v in self.versions for s in v.symbols)


@dataclass(frozen=True, slots=True)
class StubOutputs:
    source_path: Path
    version_script_path: Path
    surface: StubSurface


def stub_visibility_flags(config: LibraryConfig) -> tuple[str, ...]:
    """Symbol-class flags for a library's versioned stubs.

    ``--apex`` keeps symbols tagged ``# apex``, ``--systemapi`` those tagged
    ``# systemapi``. Unless the library is an NDK library, untagged public
    symbols are dropped so every stub symbol is explicitly marked.
    """
    flags = ["--apex" if config.not_in_platform else "--systemapi"]
    if not config.is_ndk:
        flags.append("--no-ndk")
    return tuple(flags)


def stub_compiler_flags(flags: Sequence[str]) -> tuple[str, ...]:
    """Drop forced includes and add the flags stub sources compile with.

    Force-included headers can declare the same names the generated source
    defines with different types.
    """
    kept = tuple(f for f in flags if not f.startswith("-include "))
    return kept + tuple(f for f in STUB_COMPILER_FLAGS if f not in kept)


def generate_stub(symbol_file: SymbolFile, stub_filter: StubFilter) -> StubSurface:
    versions = tuple(v for v in stub_filter.select(symbol_file.versions) if v.symbols)
    return StubSurface(
        source=render_stub_source(versions),
        version_script=render_version_script(versions),
        versions=versions,
    )


def render_stub_source(versions: Iterable[Version]) -> str:
    lines: list[str] = []
    for version in versions:
        for symbol in version.symbols:
            prefix = "__attribute__((weak)) " if symbol.is_weak else ""
            if symbol.is_var:
                lines.append(f"{prefix}int {symbol.name} = 0;")
            else:
                lines.append(f"{prefix}void {symbol.name}() {{}}")
    return "\n".join(lines) + "\n" if lines else ""


def render_version_script(versions: Sequence[Version]) -> str:
    emitted = {v.name for v in versions}
    blocks: list[str] = []
    for version in versions:
        body = "\n".join(f"        {s.name};" for s in version.symbols)
        base = f" {version.base}" if version.base in emitted else ""
        blocks.append(f"{version.name} {{\n    global:\n{body}\n}}{base};\n")
    return "".join(blocks)


def write_stub(surface: StubSurface, output_dir: Path, *, stem: str = "stub") -> StubOutputs:
    output_dir.mkdir(parents=True, exist_ok=True)
    source_path = output_dir / f"{stem}.c"
    version_script_path = output_dir / f"{stem}.map"
    source_path.write_text(surface.source, encoding="utf-8")
    version_script_path.write_text(surface.version_script, encoding="utf-8")
    return StubOutputs(
        source_path=source_path,
        version_script_path=version_script_path,
        surface=surface,
    )
