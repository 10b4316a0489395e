"""ABI dump documents, dumps and diff results."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal

import cbor2

from ccvariants.errors import ConfigurationError

Severity = Literal["incompatible", "extension", "allowed"]
CompatibilityStatus = Literal["compatible", "extension", "incompatible"]


class AbiSurface(StrEnum):
    NDK = "ndk"
    VNDK = "vndk"
    PLATFORM = "platform"


class DiffPolicy(StrEnum):
    SAME_VERSION = "same_version"
    CROSS_VERSION = "cross_version"
    OPT_IN = "opt_in"


@dataclass(frozen=True, slots=True)
class FunctionDecl:
    name: str
    return_type: str = "void"
    parameters: tuple[str, ...] = ()
    source_file: str = ""

    @property
    def signature(self) -> str:
        return f"{self.return_type}({', '.join(self.parameters)})"


@dataclass(frozen=True, slots=True)
class GlobalVarDecl:
    name: str
    type: str = "int"
    source_file: str = ""


@dataclass(frozen=True, slots=True)
class RecordType:
    name: str
    size: int = 0
    fields: tuple[tuple[str, str], ...] = ()
    source_file: str = ""
    opaque: bool = False


@dataclass(frozen=True, slots=True)
class AbiDocument:
    """Structured snapshot of an interface: declarations plus ELF symbols."""

    functions: tuple[FunctionDecl, ...] = ()
    global_vars: tuple[GlobalVarDecl, ...] = ()
    record_types: tuple[RecordType, ...] = ()
    elf_functions: tuple[str, ...] = ()
    elf_objects: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> AbiDocument:
        return cls(
            functions=tuple(
                FunctionDecl(
                    name=item["name"],
                    return_type=item.get("return_type", "void"),
                    parameters=tuple(item.get("parameters", ())),
                    source_file=item.get("source_file", ""),
                )
                for item in payload.get("functions", ())
            ),
            global_vars=tuple(
                GlobalVarDecl(
                    name=item["name"],
                    type=item.get("type", "int"),
                    source_file=item.get("source_file", ""),
                )
                for item in payload.get("global_vars", ())
            ),
            record_types=tuple(
                RecordType(
                    name=item["name"],
                    size=int(item.get("size", 0)),
                    fields=tuple((f["name"], f["type"]) for f in item.get("fields", ())),
                    source_file=item.get("source_file", ""),
                    opaque=bool(item.get("opaque", False)),
                )
                for item in payload.get("record_types", ())
            ),
            elf_functions=tuple(item["name"] for item in payload.get("elf_functions", ())),
            elf_objects=tuple(item["name"] for item in payload.get("elf_objects", ())),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "functions": [
                {
                    "name": f.name,
                    "return_type": f.return_type,
                    "parameters": list(f.parameters),
                    "source_file": f.source_file,
                }
                for f in sorted(self.functions, key=lambda f: f.name)
            ],
            "global_vars": [
                {"name": v.name, "type": v.type, "source_file": v.source_file}
                for v in sorted(self.global_vars, key=lambda v: v.name)
            ],
            "record_types": [
                {
                    "name": r.name,
                    "size": r.size,
                    "fields": [{"name": n, "type": t} for n, t in r.fields],
                    "source_file": r.source_file,
                    "opaque": r.opaque,
                }
                for r in sorted(self.record_types, key=lambda r: r.name)
            ],
            "elf_functions": [{"name": n} for n in sorted(set(self.elf_functions))],
            "elf_objects": [{"name": n} for n in sorted(set(self.elf_objects))],
        }

    @classmethod
    def load(cls, path: str | Path) -> AbiDocument:
        dump_path = Path(path)
        try:
            payload = json.loads(dump_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                "ABI dump is not valid JSON.",
                property="abi_dump",
                value=str(dump_path),
                hint=str(exc),
            ) from exc
        if not isinstance(payload, dict):
            raise ConfigurationError(
                "ABI dump has invalid structure.",
                property="abi_dump",
                value=str(dump_path),
            )
        return cls.from_dict(payload)

    def write(self, path: str | Path) -> Path:
        dump_path = Path(path)
        dump_path.parent.mkdir(parents=True, exist_ok=True)
        dump_path.write_text(
            json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return dump_path

    def fingerprint(self) -> bytes:
        """Canonical CBOR encoding; equal for dumps with the same interface."""
        return cbor2.dumps(self.to_dict(), canonical=True)


@dataclass(frozen=True, slots=True)
class AbiDump:
    """A linked interface dump of one shared variant."""

    path: Path
    surface: AbiSurface
    library: str
    is_llndk: bool = False
    exported_flags: tuple[str, ...] = ()

    @property
    def lsdump_tag(self) -> str:
        if self.surface == AbiSurface.NDK:
            return "NDK"
        if self.is_llndk:
            return "LLNDK"
        if self.surface == AbiSurface.VNDK:
            return "VNDK"
        return "PLATFORM"

    def lsdump_entry(self) -> str:
        return f"{self.lsdump_tag}:{self.path}"


@dataclass(frozen=True, slots=True)
class AbiChange:
    kind: Literal["removed", "added", "changed"]
    category: Literal["function", "global_var", "record_type", "elf_symbol"]
    name: str
    severity: Severity
    detail: str = ""


@dataclass(frozen=True, slots=True)
class AbiDiffResult:
    """Outcome of comparing one dump against one reference dump."""

    policy: DiffPolicy
    library: str
    source_dump: Path
    reference_dump: Path
    status: CompatibilityStatus
    flags: tuple[str, ...] = ()
    changes: tuple[AbiChange, ...] = ()
    remediation: str = ""
    report_path: Path | None = None
    name_ext: str = ""

    @property
    def passed(self) -> bool:
        if self.status == "incompatible":
            return False
        if self.status == "extension":
            return "-allow-extensions" in self.flags
        return True

    @property
    def message(self) -> str:
        return "" if self.passed else self.remediation

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        return {
            "policy": self.policy.value,
            "library": self.library,
            "source_dump": str(self.source_dump),
            "reference_dump": str(self.reference_dump),
            "status": self.status,
            "passed": self.passed,
            "flags": list(self.flags),
            "changes": [
                {
                    "kind": c.kind,
                    "category": c.category,
                    "name": c.name,
                    "severity": c.severity,
                    "detail": c.detail,
                }
                for c in self.changes
            ],
            "remediation": self.message,
        }
