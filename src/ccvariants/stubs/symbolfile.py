"""Symbol map (``.map.txt``) parsing and API-level filtering.

A symbol map is a linker version script annotated with tag comments::

    LIBFOO {
      global:
        foo_open; # introduced=29
        foo_flags; # var apex
      local:
        *;
    };

    LIBFOO_PRIVATE { # platform-only
      global:
        foo_debug;
    } LIBFOO;
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from ccvariants.apilevel import FUTURE_API_LEVEL_INT, is_future_spelling
from ccvariants.errors import ConfigurationError

SYMBOL_FILE_SUFFIX = ".map.txt"
ALL_ARCHES = ("arm", "arm64", "riscv64", "x86", "x86_64")
VISIBILITY_TAGS = ("llndk", "apex", "systemapi")
PRIVATE_VERSION_SUFFIXES = ("_PRIVATE", "_PLATFORM")

_VERSION_START = re.compile(r"^(?P<name>[A-Za-z_][\w.]*)\s*\{$")
_VERSION_END = re.compile(r"^\}\s*(?P<base>[A-Za-z_][\w.]*)?\s*;$")
_SYMBOL = re.compile(r"^(?P<name>[^\s;]+)\s*;$")


@dataclass(frozen=True, slots=True)
class Symbol:
    name: str
    tags: tuple[str, ...] = ()

    @property
    def is_var(self) -> bool:
        return "var" in self.tags

    @property
    def is_weak(self) -> bool:
        return "weak" in self.tags


@dataclass(frozen=True, slots=True)
class Version:
    name: str
    base: str | None = None
    tags: tuple[str, ...] = ()
    symbols: tuple[Symbol, ...] = ()


@dataclass(frozen=True, slots=True)
class SymbolFile:
    path: str
    versions: tuple[Version, ...]

    def symbol_names(self) -> tuple[str, ...]:
        return tuple(s.name for v in self.versions for s in v.symbols)


def check_symbol_file_name(path: str | Path, *, module: str | None = None) -> None:
    if not str(path).endswith(SYMBOL_FILE_SUFFIX):
        raise ConfigurationError(
            f"{str(path)!r} doesn't have {SYMBOL_FILE_SUFFIX} suffix",
            module=module,
            property="stubs.symbol_file",
            value=str(path),
        )


def parse_symbol_file(path: str | Path, *, module: str | None = None) -> SymbolFile:
    check_symbol_file_name(path, module=module)
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(
            "Symbol file does not exist.",
            module=module,
            property="stubs.symbol_file",
            value=str(path),
        ) from exc
    return SymbolFile(path=str(path), versions=parse_symbol_map(text, source=str(path)))


def parse_symbol_map(text: str, *, source: str = "<string>") -> tuple[Version, ...]:
    versions: list[Version] = []
    seen: set[str] = set()
    current_name: str | None = None
    current_tags: tuple[str, ...] = ()
    symbols: list[Symbol] = []
    scope = "global"

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        content, tags = _split_tags(raw_line)
        if not content:
            continue

        if current_name is None:
            match = _VERSION_START.match(content)
            if match is None:
                raise _parse_error("Expected a version block.", source, lineno, raw_line)
            name = match.group("name")
            if name in seen:
                raise _parse_error(f"Duplicate version {name!r}.", source, lineno, raw_line)
            seen.add(name)
            current_name, current_tags = name, tags
            symbols = []
            scope = "global"
            continue

        end = _VERSION_END.match(content)
        if end is not None:
            versions.append(
                Version(
                    name=current_name,
                    base=end.group("base"),
                    tags=current_tags,
                    symbols=tuple(symbols),
                )
            )
            current_name = None
            continue

        if content in ("global:", "local:"):
            scope = content[:-1]
            continue

        symbol = _SYMBOL.match(content)
        if symbol is None:
            raise _parse_error("Expected a symbol declaration.", source, lineno, raw_line)
        if scope == "global":
            symbols.append(Symbol(name=symbol.group("name"), tags=tags))

    if current_name is not None:
        raise ConfigurationError(
            f"Unterminated version block {current_name!r}.",
            property="stubs.symbol_file",
            value=source,
        )
    return tuple(versions)


def _split_tags(line: str) -> tuple[str, tuple[str, ...]]:
    content, _, comment = line.partition("#")
    return content.strip(), tuple(comment.split())


def _parse_error(message: str, source: str, lineno: int, line: str) -> ConfigurationError:
    return ConfigurationError(
        message,
        property="stubs.symbol_file",
        value=source,
        context={"line": str(lineno), "text": line.strip()},
    )


def decode_api_level(value: str, codenames: Mapping[str, int] | None = None) -> int:
    """Ordering number of an ``introduced=`` tag value."""
    if is_future_spelling(value):
        return FUTURE_API_LEVEL_INT
    if value.isdigit():
        return int(value)
    if codenames is not None and value in codenames:
        return codenames[value]
    raise ConfigurationError(
        f"Unknown API level {value!r} in symbol tag.",
        property="stubs.symbol_file",
        value=value,
        hint="Use a numeric level, 'current', or a codename known to the platform.",
    )


@dataclass(frozen=True, slots=True)
class StubFilter:
    """Selects the symbols visible at one API level for one arch."""

    arch: str
    api: int
    llndk: bool = False
    apex: bool = False
    systemapi: bool = False
    ndk: bool = True
    codenames: Mapping[str, int] = field(default_factory=dict, compare=False)

    @classmethod
    def from_flags(
        cls,
        flags: Iterable[str],
        *,
        arch: str,
        api: int,
        codenames: Mapping[str, int] | None = None,
    ) -> StubFilter:
        selected = set(flags)
        return cls(
            arch=arch,
            api=api,
            codenames=dict(codenames or {}),
            llndk="--llndk" in selected,
            apex="--apex" in selected,
            systemapi="--systemapi" in selected,
            ndk="--no-ndk" not in selected,
        )

    def should_omit_version(self, version: Version) -> bool:
        if version.name.endswith(PRIVATE_VERSION_SUFFIXES):
            return True
        if "platform-only" in version.tags:
            return True
        if self._omit_by_tags(version.tags):
            return True
        visibility = [t for t in version.tags if t in VISIBILITY_TAGS]
        return bool(visibility) and not self._visible(visibility)

    def should_omit_symbol(self, symbol: Symbol, version: Version) -> bool:
        if self._omit_by_tags(symbol.tags):
            return True
        visibility = [t for t in symbol.tags if t in VISIBILITY_TAGS]
        if not visibility:
            visibility = [t for t in version.tags if t in VISIBILITY_TAGS]
        if visibility:
            return not self._visible(visibility)
        return not self.ndk

    def select(self, versions: Iterable[Version]) -> tuple[Version, ...]:
        selected: list[Version] = []
        for version in versions:
            if self.should_omit_version(version):
                continue
            kept = tuple(s for s in version.symbols if not self.should_omit_symbol(s, version))
            selected.append(
                Version(name=version.name, base=version.base, tags=version.tags, symbols=kept)
            )
        return tuple(selected)

    def _omit_by_tags(self, tags: tuple[str, ...]) -> bool:
        arches = [t for t in tags if t in ALL_ARCHES]
        if arches and self.arch not in arches:
            return True
        if "future" in tags and self.api != FUTURE_API_LEVEL_INT:
            return True
        introduced = self._introduced(tags)
        return introduced is not None and introduced > self.api

    def _introduced(self, tags: tuple[str, ...]) -> int | None:
        generic: int | None = None
        for tag in tags:
            key, sep, value = tag.partition("=")
            if not sep:
                continue
            if key == f"introduced-{self.arch}":
                return decode_api_level(value, self.codenames)
            if key == "introduced":
                generic = decode_api_level(value, self.codenames)
        return generic

    def _visible(self, visibility: list[str]) -> bool:
        enabled = {"llndk": self.llndk, "apex": self.apex, "systemapi": self.systemapi}
        return any(enabled[tag] for tag in visibility)
