"""Backends that link dump fragments and diff linked dumps."""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ccvariants.abi.model import (
    AbiChange,
    AbiDocument,
    CompatibilityStatus,
    FunctionDecl,
    GlobalVarDecl,
    RecordType,
    Severity,
)
from ccvariants.stubs.symbolfile import SymbolFile


@dataclass(frozen=True, slots=True)
class DiffOutcome:
    status: CompatibilityStatus
    changes: tuple[AbiChange, ...] = ()


class AbiToolBackend(Protocol):
    name: str

    def link(
        self,
        fragments: Sequence[Path],
        output: Path,
        *,
        include_dirs: Sequence[str],
        symbol_file: SymbolFile | None = None,
        exclude_symbol_versions: Sequence[str] = (),
        exclude_symbol_tags: Sequence[str] = (),
    ) -> Path:
        """Merge per-object dumps into one linked dump at ``output``."""

    def diff(
        self,
        source: Path,
        reference: Path,
        output: Path,
        *,
        flags: Sequence[str],
    ) -> DiffOutcome:
        """Compare ``source`` against ``reference`` and write a report."""


@dataclass(slots=True)
class InProcessAbiTool:
    """Dump linker and differ operating on JSON dump documents."""

    name: str = "inprocess"

    def link(
        self,
        fragments: Sequence[Path],
        output: Path,
        *,
        include_dirs: Sequence[str],
        symbol_file: SymbolFile | None = None,
        exclude_symbol_versions: Sequence[str] = (),
        exclude_symbol_tags: Sequence[str] = (),
    ) -> Path:
        functions: dict[str, FunctionDecl] = {}
        global_vars: dict[str, GlobalVarDecl] = {}
        records: dict[str, RecordType] = {}
        elf_functions: set[str] = set()
        elf_objects: set[str] = set()

        for fragment in fragments:
            document = AbiDocument.load(fragment)
            for func in document.functions:
                if _is_exported(func.source_file, include_dirs):
                    functions.setdefault(func.name, func)
            for var in document.global_vars:
                if _is_exported(var.source_file, include_dirs):
                    global_vars.setdefault(var.name, var)
            for record in document.record_types:
                if _is_exported(record.source_file, include_dirs):
                    records.setdefault(record.name, record)
            elf_functions.update(document.elf_functions)
            elf_objects.update(document.elf_objects)

        if symbol_file is not None:
            allowed = _allowed_symbols(symbol_file, exclude_symbol_versions, exclude_symbol_tags)
            functions = {k: v for k, v in functions.items() if k in allowed}
            global_vars = {k: v for k, v in global_vars.items() if k in allowed}
            elf_functions &= allowed
            elf_objects &= allowed

        linked = AbiDocument(
            functions=tuple(functions.values()),
            global_vars=tuple(global_vars.values()),
            record_types=tuple(records.values()),
            elf_functions=tuple(sorted(elf_functions)),
            elf_objects=tuple(sorted(elf_objects)),
        )
        return linked.write(output)

    def diff(
        self,
        source: Path,
        reference: Path,
        output: Path,
        *,
        flags: Sequence[str],
    ) -> DiffOutcome:
        outcome = diff_documents(AbiDocument.load(source), AbiDocument.load(reference), flags)
        output.parent.mkdir(parents=True, exist_ok=True)
        lines = [f"status: {outcome.status}"]
        lines.extend(
            f"{c.severity} {c.kind} {c.category} {c.name} {c.detail}".rstrip()
            for c in outcome.changes
        )
        output.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return outcome


def diff_documents(
    source: AbiDocument, reference: AbiDocument, flags: Sequence[str]
) -> DiffOutcome:
    """Classify every difference between two linked dumps.

    Removed or changed declarations are incompatible and additions are
    extensions. Record types no exported declaration reaches are
    "unreferenced" and ELF symbols without a declaration are "unreferenced
    ELF symbols"; the matching ``-allow-unreferenced-*`` flags downgrade
    changes to them to allowed.
    """
    selected = set(flags)
    check_all = "-check-all-apis" in selected
    allow_unreferenced = "-allow-unreferenced-changes" in selected and not check_all
    allow_unreferenced_elf = "-allow-unreferenced-elf-symbol-changes" in selected and not check_all
    opaque_different = "-consider-opaque-types-different" in selected

    changes: list[AbiChange] = []

    src_funcs = {f.name: f for f in source.functions}
    ref_funcs = {f.name: f for f in reference.functions}
    for name in sorted(ref_funcs.keys() - src_funcs.keys()):
        changes.append(AbiChange("removed", "function", name, "incompatible"))
    for name in sorted(src_funcs.keys() - ref_funcs.keys()):
        changes.append(AbiChange("added", "function", name, "extension"))
    for name in sorted(src_funcs.keys() & ref_funcs.keys()):
        before, after = ref_funcs[name].signature, src_funcs[name].signature
        if before != after:
            changes.append(
                AbiChange("changed", "function", name, "incompatible", f"{before} -> {after}")
            )

    src_vars = {v.name: v for v in source.global_vars}
    ref_vars = {v.name: v for v in reference.global_vars}
    for name in sorted(ref_vars.keys() - src_vars.keys()):
        changes.append(AbiChange("removed", "global_var", name, "incompatible"))
    for name in sorted(src_vars.keys() - ref_vars.keys()):
        changes.append(AbiChange("added", "global_var", name, "extension"))
    for name in sorted(src_vars.keys() & ref_vars.keys()):
        before, after = ref_vars[name].type, src_vars[name].type
        if before != after:
            changes.append(
                AbiChange("changed", "global_var", name, "incompatible", f"{before} -> {after}")
            )

    referenced = _referenced_records(source) | _referenced_records(reference)
    src_records = {r.name: r for r in source.record_types}
    ref_records = {r.name: r for r in reference.record_types}

    def record_severity(name: str, default: Severity) -> Severity:
        if check_all or name in referenced:
            return default
        return "allowed" if allow_unreferenced else default

    for name in sorted(ref_records.keys() - src_records.keys()):
        changes.append(
            AbiChange("removed", "record_type", name, record_severity(name, "incompatible"))
        )
    for name in sorted(src_records.keys() - ref_records.keys()):
        changes.append(AbiChange("added", "record_type", name, record_severity(name, "extension")))
    for name in sorted(src_records.keys() & ref_records.keys()):
        detail = _record_difference(ref_records[name], src_records[name], opaque_different)
        if detail:
            changes.append(
                AbiChange(
                    "changed", "record_type", name, record_severity(name, "incompatible"), detail
                )
            )

    declared = src_funcs.keys() | ref_funcs.keys() | src_vars.keys() | ref_vars.keys()
    src_elf = set(source.elf_functions) | set(source.elf_objects)
    ref_elf = set(reference.elf_functions) | set(reference.elf_objects)
    for name in sorted((ref_elf - src_elf) - declared):
        severity = "allowed" if allow_unreferenced_elf else "incompatible"
        changes.append(AbiChange("removed", "elf_symbol", name, severity))
    for name in sorted((src_elf - ref_elf) - declared):
        severity = "allowed" if allow_unreferenced_elf else "extension"
        changes.append(AbiChange("added", "elf_symbol", name, severity))

    return DiffOutcome(status=_status(changes), changes=tuple(changes))


def _status(changes: Iterable[AbiChange]) -> CompatibilityStatus:
    severities = {c.severity for c in changes}
    if "incompatible" in severities:
        return "incompatible"
    if "extension" in severities:
        return "extension"
    return "compatible"


def _record_difference(before: RecordType, after: RecordType, opaque_different: bool) -> str:
    if before.opaque != after.opaque:
        return "opacity changed" if opaque_different else ""
    if before.opaque:
        return ""
    if before.size != after.size:
        return f"size {before.size} -> {after.size}"
    if before.fields != after.fields:
        return "fields changed"
    return ""


def _referenced_records(document: AbiDocument) -> set[str]:
    """Record types reachable from exported functions and variables."""
    records = {r.name: r for r in document.record_types}
    texts = [f.signature for f in document.functions]
    texts.extend(v.type for v in document.global_vars)

    referenced: set[str] = set()
    pending = list(texts)
    while pending:
        text = pending.pop()
        for name, record in records.items():
            if name not in referenced and _mentions(text, name):
                referenced.add(name)
                pending.extend(field_type for _, field_type in record.fields)
    return referenced


def _mentions(text: str, name: str) -> bool:
    start = text.find(name)
    while start != -1:
        end = start + len(name)
        before_ok = start == 0 or not (text[start - 1].isalnum() or text[start - 1] == "_")
        after_ok = end == len(text) or not (text[end].isalnum() or text[end] == "_")
        if before_ok and after_ok:
            return True
        start = text.find(name, start + 1)
    return False


def _is_exported(source_file: str, include_dirs: Sequence[str]) -> bool:
    if not source_file:
        return False
    for directory in include_dirs:
        prefix = directory.rstrip("/") + "/"
        if source_file.startswith(prefix):
            return True
    return False


def _allowed_symbols(
    symbol_file: SymbolFile,
    exclude_versions: Sequence[str],
    exclude_tags: Sequence[str],
) -> set[str]:
    allowed: set[str] = set()
    for version in symbol_file.versions:
        if any(fnmatch.fnmatchcase(version.name, pattern) for pattern in exclude_versions):
            continue
        if _has_excluded_tag(version.tags, exclude_tags):
            continue
        for symbol in version.symbols:
            if not _has_excluded_tag(symbol.tags, exclude_tags):
                allowed.add(symbol.name)
    return allowed


def _has_excluded_tag(tags: Iterable[str], patterns: Sequence[str]) -> bool:
    return any(fnmatch.fnmatchcase(tag, pattern) for tag in tags for pattern in patterns)
