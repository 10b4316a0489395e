"""Exported include directories, flags and dependencies of one variant.

A :class:`FlagExporter` accumulates what a variant exposes to the modules
that link against it. Once the variant finishes linking it calls
:meth:`FlagExporter.publish`, which freezes the accumulated state into a
:class:`FlagExporterInfo` snapshot shared by every dependent.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ccvariants.config import Partition
from ccvariants.errors import UsageError

INCLUDE_FLAG_PREFIXES = ("-I", "-isystem")


def first_unique(items: Iterable[str]) -> tuple[str, ...]:
    """Deduplicate while keeping the first occurrence of each item."""
    return tuple(dict.fromkeys(items))


def include_dirs_to_flags(dirs: Iterable[str], *, system: bool = False) -> tuple[str, ...]:
    if system:
        return tuple(f"-isystem {d}" for d in dirs)
    return tuple(f"-I{d}" for d in dirs)


@dataclass(frozen=True, slots=True)
class FlagExporterProperties:
    export_include_dirs: tuple[str, ...] = ()
    export_system_include_dirs: tuple[str, ...] = ()
    # When set, these replace export_include_dirs for the partition.
    vendor_override_export_include_dirs: tuple[str, ...] | None = None
    product_override_export_include_dirs: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class FlagExporterInfo:
    """Read-only snapshot of what a variant exports to its dependents."""

    include_dirs: tuple[str, ...] = ()
    system_include_dirs: tuple[str, ...] = ()
    flags: tuple[str, ...] = ()
    deps: tuple[str, ...] = ()
    generated_headers: tuple[str, ...] = ()

    def include_flags(self) -> tuple[str, ...]:
        return include_dirs_to_flags(self.include_dirs) + include_dirs_to_flags(
            self.system_include_dirs, system=True
        )

    def compile_flags(self) -> tuple[str, ...]:
        return self.include_flags() + self.flags


@dataclass(slots=True)
class FlagExporter:
    properties: FlagExporterProperties = field(default_factory=FlagExporterProperties)
    dirs: list[str] = field(default_factory=list)
    system_dirs: list[str] = field(default_factory=list)
    flags: list[str] = field(default_factory=list)
    deps: list[str] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    _published: FlagExporterInfo | None = field(default=None, repr=False)

    @property
    def published(self) -> FlagExporterInfo | None:
        return self._published

    def exported_includes(self, partition: Partition) -> tuple[str, ...]:
        """Effective include dirs for this module and its dependents.

        A vendor or product override replaces the base list rather than
        extending it.
        """
        if partition == "vendor":
            override = self.properties.vendor_override_export_include_dirs
        elif partition == "product":
            override = self.properties.product_override_export_include_dirs
        else:
            override = None
        if override is not None:
            return override
        return self.properties.export_include_dirs

    def export_includes(self, partition: Partition) -> None:
        self.reexport_dirs(*self.exported_includes(partition))
        self.reexport_system_dirs(*self.properties.export_system_include_dirs)

    def export_includes_as_system(self, partition: Partition) -> None:
        self.reexport_system_dirs(*self.exported_includes(partition))
        self.reexport_system_dirs(*self.properties.export_system_include_dirs)

    def reexport_dirs(self, *dirs: str) -> None:
        self._append(self.dirs, dirs)

    def reexport_system_dirs(self, *dirs: str) -> None:
        self._append(self.system_dirs, dirs)

    def reexport_flags(self, *flags: str) -> None:
        for flag in flags:
            if flag.startswith(INCLUDE_FLAG_PREFIXES):
                raise UsageError(
                    f"Exporting invalid flag {flag!r}.",
                    hint="Use reexport_dirs or reexport_system_dirs to export directories.",
                    context={"operation": "reexport_flags"},
                )
        self._append(self.flags, flags)

    def reexport_deps(self, *deps: str) -> None:
        self._append(self.deps, deps)

    def add_exported_generated_headers(self, *headers: str) -> None:
        self._append(self.headers, headers)

    def reexport_info(self, info: FlagExporterInfo) -> None:
        """Propagate a dependency's published snapshot to our dependents."""
        self.reexport_dirs(*info.include_dirs)
        self.reexport_system_dirs(*info.system_include_dirs)
        self.reexport_flags(*info.flags)
        self.reexport_deps(*info.deps)
        self.add_exported_generated_headers(*info.generated_headers)

    def publish(self) -> FlagExporterInfo:
        if self._published is None:
            self._published = FlagExporterInfo(
                include_dirs=first_unique(self.dirs),
                system_include_dirs=first_unique(self.system_dirs),
                flags=tuple(self.flags),
                deps=tuple(self.deps),
                generated_headers=tuple(self.headers),
            )
        return self._published

    def _append(self, target: list[str], items: Iterable[str]) -> None:
        if self._published is not None:
            raise UsageError(
                "Exported flags were already published and are read-only.",
                hint="Finish all reexport calls before publish().",
                context={"operation": "reexport"},
            )
        for item in items:
            if item not in target:
                target.append(item)
