"""Core typed dataclasses for library declarations."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import StrEnum

from ccvariants.config import Partition
from ccvariants.exporter import FlagExporterProperties


class VariantKind(StrEnum):
    """Closed set of variant shapes a library can expand into."""

    HEADER = "header"
    STATIC = "static"
    SHARED = "shared"
    STUB = "stub"
    LLNDK_STUB = "llndk_stub"
    VENDOR_PUBLIC_STUB = "vendor_public_stub"

    @property
    def is_shared(self) -> bool:
        return self in (
            VariantKind.SHARED,
            VariantKind.STUB,
            VariantKind.LLNDK_STUB,
            VariantKind.VENDOR_PUBLIC_STUB,
        )

    @property
    def builds_stubs(self) -> bool:
        return self in (VariantKind.STUB, VariantKind.LLNDK_STUB, VariantKind.VENDOR_PUBLIC_STUB)


@dataclass(frozen=True, slots=True)
class LinkageProperties:
    """Properties that apply only to the static or only to the shared variants."""

    srcs: tuple[str, ...] = ()
    cflags: tuple[str, ...] = ()
    enabled: bool | None = None
    whole_static_libs: tuple[str, ...] = ()
    static_libs: tuple[str, ...] = ()
    shared_libs: tuple[str, ...] = ()
    # None and () differ: () explicitly links against no system libraries.
    system_shared_libs: tuple[str, ...] | None = None
    export_shared_lib_headers: tuple[str, ...] = ()
    export_static_lib_headers: tuple[str, ...] = ()
    apex_available: tuple[str, ...] = ()
    installable: bool | None = None


# Fields compared when deciding whether shared can reuse static objects.
REUSE_COMPARED_FIELDS = (
    "cflags",
    "whole_static_libs",
    "static_libs",
    "shared_libs",
    "system_shared_libs",
)


@dataclass(frozen=True, slots=True)
class StubsProperties:
    symbol_file: str | None = None
    versions: tuple[str, ...] = ()
    implementation_installable: bool | None = None


@dataclass(frozen=True, slots=True)
class HeaderAbiCheckerProperties:
    enabled: bool | None = None
    symbol_file: str | None = None
    exclude_symbol_versions: tuple[str, ...] = ()
    exclude_symbol_tags: tuple[str, ...] = ()
    check_all_apis: bool | None = None
    diff_flags: tuple[str, ...] = ()
    ref_dump_dirs: tuple[str, ...] = ()

    def merged_with(self, other: HeaderAbiCheckerProperties) -> HeaderAbiCheckerProperties:
        """Overlay ``other``: scalars override when set, lists are appended."""
        updates: dict[str, object] = {}
        for item in fields(self):
            mine = getattr(self, item.name)
            theirs = getattr(other, item.name)
            if isinstance(mine, tuple):
                updates[item.name] = mine + theirs
            elif theirs is not None:
                updates[item.name] = theirs
        return replace(self, **updates)


@dataclass(frozen=True, slots=True)
class PartitionTargetProperties:
    suffix: str | None = None
    header_abi_checker: HeaderAbiCheckerProperties = field(
        default_factory=HeaderAbiCheckerProperties
    )
    exclude_static_libs: tuple[str, ...] = ()
    exclude_shared_libs: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class LlndkProperties:
    symbol_file: str | None = None
    unversioned: bool = False
    override_export_include_dirs: tuple[str, ...] | None = None
    export_headers_as_system: bool = False
    export_llndk_headers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class VendorPublicLibraryProperties:
    symbol_file: str | None = None
    unversioned: bool = False
    override_export_include_dirs: tuple[str, ...] | None = None
    export_public_headers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class LibraryConfig:
    """Immutable declaration of one logical library module."""

    name: str
    build_static: bool = True
    build_shared: bool = True
    prebuilt: bool = False
    host: bool = False
    partition: Partition = "platform"

    srcs: tuple[str, ...] = ()
    cflags: tuple[str, ...] = ()
    whole_static_libs: tuple[str, ...] = ()
    static_libs: tuple[str, ...] = ()
    shared_libs: tuple[str, ...] = ()
    system_shared_libs: tuple[str, ...] | None = None
    header_libs: tuple[str, ...] = ()

    static: LinkageProperties = field(default_factory=LinkageProperties)
    shared: LinkageProperties = field(default_factory=LinkageProperties)
    stubs: StubsProperties = field(default_factory=StubsProperties)

    stem: str | None = None
    suffix: str | None = None
    unique_host_soname: bool = False
    vendor: PartitionTargetProperties = field(default_factory=PartitionTargetProperties)
    product: PartitionTargetProperties = field(default_factory=PartitionTargetProperties)
    platform_header_abi_checker: HeaderAbiCheckerProperties = field(
        default_factory=HeaderAbiCheckerProperties
    )
    header_abi_checker: HeaderAbiCheckerProperties = field(
        default_factory=HeaderAbiCheckerProperties
    )
    exports: FlagExporterProperties = field(default_factory=FlagExporterProperties)
    reexported_includes: tuple[str, ...] = ()
    llndk: LlndkProperties = field(default_factory=LlndkProperties)
    vendor_public_library: VendorPublicLibraryProperties = field(
        default_factory=VendorPublicLibraryProperties
    )
    overrides: tuple[str, ...] = ()

    # Classification supplied by the surrounding module system.
    is_ndk: bool = False
    is_vndk: bool = False
    is_vndk_ext: bool = False
    is_llndk_public: bool = False
    not_in_platform: bool = False

    @property
    def static_enabled(self) -> bool:
        return self.build_static and self.static.enabled is not False

    @property
    def shared_enabled(self) -> bool:
        return self.build_shared and self.shared.enabled is not False

    @property
    def has_stubs_variants(self) -> bool:
        # A symbol file alone is enough: a stub for the future level is created.
        return self.stubs.symbol_file is not None or bool(self.stubs.versions)

    @property
    def has_llndk_stubs(self) -> bool:
        return bool(self.llndk.symbol_file)

    @property
    def has_vendor_public_library(self) -> bool:
        return bool(self.vendor_public_library.symbol_file)

    @property
    def is_llndk(self) -> bool:
        """Whether this expansion is the vendor side of an LLNDK library."""
        return self.has_llndk_stubs and self.partition == "vendor"

    @property
    def is_vendor_public_library(self) -> bool:
        return self.has_vendor_public_library and self.partition == "vendor"

    @property
    def implementation_installable(self) -> bool:
        return self.stubs.implementation_installable is not False

    def linkage_properties(self, kind: VariantKind) -> LinkageProperties | None:
        if kind == VariantKind.STATIC:
            return self.static
        if kind.is_shared:
            return self.shared
        return None

    def partition_properties(self) -> PartitionTargetProperties | None:
        if self.partition == "vendor":
            return self.vendor
        if self.partition == "product":
            return self.product
        return None

    def effective_header_abi_checker(self) -> HeaderAbiCheckerProperties:
        """Base checker stanza merged with the partition-specific stanza."""
        target = self.partition_properties()
        overlay = (
            target.header_abi_checker if target is not None else self.platform_header_abi_checker
        )
        return self.header_abi_checker.merged_with(overlay)


__all__ = [
    "HeaderAbiCheckerProperties",
    "LibraryConfig",
    "LinkageProperties",
    "LlndkProperties",
    "Partition",
    "PartitionTargetProperties",
    "REUSE_COMPARED_FIELDS",
    "StubsProperties",
    "VariantKind",
    "VendorPublicLibraryProperties",
]
