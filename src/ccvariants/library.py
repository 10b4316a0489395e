"""Per-variant library behaviour: naming, dependencies, flags and linking."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from ccvariants.abi.checker import AbiChecker
from ccvariants.abi.model import AbiDiffResult, AbiDump
from ccvariants.apilevel import FUTURE_API_LEVEL_INT, api_level_from_user, codename_api_levels
from ccvariants.config import PlatformConfig
from ccvariants.errors import ConfigurationError
from ccvariants.exporter import FlagExporter, FlagExporterInfo, include_dirs_to_flags
from ccvariants.graph.model import DependencyTag, Variant, VariantGraph
from ccvariants.models import LibraryConfig, VariantKind
from ccvariants.observability import StructuredLogger
from ccvariants.registry import StubVersionsCache, versioning_macro_name
from ccvariants.stubs.generator import (
    StubOutputs,
    generate_stub,
    stub_compiler_flags,
    stub_visibility_flags,
    write_stub,
)
from ccvariants.stubs.symbolfile import StubFilter, parse_symbol_file

STATIC_LIBRARY_EXTENSION = ".a"
SHARED_LIBRARY_EXTENSION = ".so"
HOST_SONAME_SUFFIX = "-host"
APEX_AVAILABLE_PLATFORM = "//apex_available:platform"
APEX_AVAILABLE_ANYAPEX = "//apex_available:anyapex"


@dataclass(frozen=True, slots=True)
class LinkerDeps:
    whole_static_libs: tuple[str, ...] = ()
    static_libs: tuple[str, ...] = ()
    shared_libs: tuple[str, ...] = ()
    system_shared_libs: tuple[str, ...] | None = None
    header_libs: tuple[str, ...] = ()
    reexport_header_lib_headers: tuple[str, ...] = ()
    reexport_shared_lib_headers: tuple[str, ...] = ()
    reexport_static_lib_headers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class LinkResult:
    """Everything a variant produces when it is linked."""

    variant: Variant
    output_file: Path
    exported: FlagExporterInfo
    stub: StubOutputs | None = None
    abi_dump: AbiDump | None = None
    abi_results: tuple[AbiDiffResult, ...] = ()

    @property
    def abi_ok(self) -> bool:
        return all(result.passed for result in self.abi_results)


@dataclass(frozen=True, slots=True)
class StubInfo:
    version: str
    output_file: Path
    exported: FlagExporterInfo


def lib_name(config: LibraryConfig) -> str:
    """Canonical library name passed to the linker."""
    name = config.stem or config.name
    target = config.partition_properties()
    suffix = target.suffix if target is not None and target.suffix else None
    name += suffix or config.suffix or ""
    if config.host and config.unique_host_soname and not name.endswith(HOST_SONAME_SUFFIX):
        name += HOST_SONAME_SUFFIX
    return name


def output_file_name(variant: Variant, config: LibraryConfig) -> str:
    if variant.kind.is_shared:
        return lib_name(config) + SHARED_LIBRARY_EXTENSION
    return config.name + STATIC_LIBRARY_EXTENSION


def linker_deps(config: LibraryConfig, variant: Variant) -> LinkerDeps:
    if variant.kind == VariantKind.LLNDK_STUB:
        headers = config.llndk.export_llndk_headers
        return LinkerDeps(header_libs=headers, reexport_header_lib_headers=headers)
    if variant.kind == VariantKind.VENDOR_PUBLIC_STUB:
        headers = config.vendor_public_library.export_public_headers
        return LinkerDeps(header_libs=headers, reexport_header_lib_headers=headers)

    props = config.linkage_properties(variant.kind)
    if props is None:
        return LinkerDeps(
            header_libs=config.header_libs, system_shared_libs=config.system_shared_libs
        )

    # An explicit empty list overrides too; only an unset list falls back.
    system_shared_libs = (
        props.system_shared_libs
        if props.system_shared_libs is not None
        else config.system_shared_libs
    )
    whole_static_libs = config.whole_static_libs + props.whole_static_libs
    static_libs = config.static_libs + props.static_libs
    shared_libs = config.shared_libs + props.shared_libs
    reexport_shared = props.export_shared_lib_headers
    reexport_static = props.export_static_lib_headers

    target = config.partition_properties()
    if target is not None:
        whole_static_libs = _without(whole_static_libs, target.exclude_static_libs)
        static_libs = _without(static_libs, target.exclude_static_libs)
        shared_libs = _without(shared_libs, target.exclude_shared_libs)
        reexport_shared = _without(reexport_shared, target.exclude_shared_libs)
        reexport_static = _without(reexport_static, target.exclude_static_libs)

    return LinkerDeps(
        whole_static_libs=whole_static_libs,
        static_libs=static_libs,
        shared_libs=shared_libs,
        system_shared_libs=system_shared_libs,
        header_libs=config.header_libs,
        reexport_shared_lib_headers=reexport_shared,
        reexport_static_lib_headers=reexport_static,
    )


def compiler_flags(
    config: LibraryConfig, variant: Variant, flags: Sequence[str] = ()
) -> tuple[str, ...]:
    include_flags = include_dirs_to_flags(exported_include_dirs(config, variant))
    if variant.kind == VariantKind.LLNDK_STUB:
        # Module-local flags do not apply; only the exported surface remains.
        result = include_flags
    else:
        props = config.linkage_properties(variant.kind)
        local = config.cflags + (props.cflags if props is not None else ())
        result = include_flags + tuple(flags) + local
    if variant.kind.builds_stubs:
        return stub_compiler_flags(result)
    return result


def exported_include_dirs(config: LibraryConfig, variant: Variant) -> tuple[str, ...]:
    if variant.kind == VariantKind.LLNDK_STUB:
        override = config.llndk.override_export_include_dirs
        if override is not None:
            return override
    elif variant.kind == VariantKind.VENDOR_PUBLIC_STUB:
        override = config.vendor_public_library.override_export_include_dirs
        if override is not None:
            return override
    return FlagExporter(config.exports).exported_includes(config.partition)


def validate_header_only(config: LibraryConfig) -> None:
    if config.static_enabled or config.shared_enabled or config.prebuilt:
        return
    for prop, srcs in (
        ("srcs", config.srcs),
        ("static.srcs", config.static.srcs),
        ("shared.srcs", config.shared.srcs),
    ):
        if srcs:
            raise ConfigurationError(
                "Header-only libraries must not have any srcs.",
                module=config.name,
                property=prop,
                value=", ".join(srcs),
            )


def versioning_macro_flag(
    config: LibraryConfig, variant: Variant, platform: PlatformConfig
) -> str | None:
    if variant.kind != VariantKind.STUB or not variant.version:
        return None
    try:
        level = api_level_from_user(variant.version, platform)
    except ConfigurationError as exc:
        raise ConfigurationError(
            f"Can't export version macro: {exc}",
            module=config.name,
            property="stubs.versions",
            value=variant.version,
        ) from exc
    return f"-D{versioning_macro_name(config.name)}={level.final_or_preview_int()}"


def link_variant(
    config: LibraryConfig,
    variant: Variant,
    *,
    platform: PlatformConfig,
    output_dir: Path,
    deps_info: Sequence[FlagExporterInfo] = (),
    abi_fragments: Sequence[Path] = (),
    checker: AbiChecker | None = None,
    logger: StructuredLogger | None = None,
) -> LinkResult:
    """Link one variant and publish what it exports.

    Stub kinds also get their stub source and version script. Shared
    implementation variants are dumped and checked when a checker is given;
    failing comparisons are reported in the result, not raised.
    """
    validate_header_only(config)
    variant_dir = output_dir.joinpath(config.name, *(v for v in variant.variations if v))

    exporter = FlagExporter(config.exports)
    if variant.kind == VariantKind.LLNDK_STUB:
        dirs = exported_include_dirs(config, variant)
        if config.llndk.export_headers_as_system:
            exporter.reexport_system_dirs(*dirs)
        else:
            exporter.reexport_dirs(*dirs)
        exporter.reexport_system_dirs(*config.exports.export_system_include_dirs)
    elif variant.kind == VariantKind.VENDOR_PUBLIC_STUB:
        exporter.reexport_dirs(*exported_include_dirs(config, variant))
        exporter.reexport_system_dirs(*config.exports.export_system_include_dirs)
    else:
        exporter.export_includes(config.partition)
    for info in deps_info:
        exporter.reexport_info(info)
    macro = versioning_macro_flag(config, variant, platform)
    if macro is not None:
        exporter.reexport_flags(macro)
    exported = exporter.publish()

    stub = None
    if variant.kind.builds_stubs:
        stub = _build_stub(config, variant, platform, variant_dir)

    output_file = variant_dir / output_file_name(variant, config)
    abi_dump = None
    abi_results: tuple[AbiDiffResult, ...] = ()
    if checker is not None:
        abi_dump = checker.create_dump(
            config,
            variant,
            library=output_file.name,
            fragments=abi_fragments,
            exported_include_dirs=exporter.exported_includes(config.partition),
            output_dir=variant_dir,
        )
        if abi_dump is not None:
            abi_results = checker.check(config, abi_dump)

    result = LinkResult(
        variant=variant,
        output_file=output_file,
        exported=exported,
        stub=stub,
        abi_dump=abi_dump,
        abi_results=abi_results,
    )
    if logger is not None:
        logger.log(
            operation="link_variant",
            module=config.name,
            variant=variant.key,
            message=f"Linked {output_file.name}.",
            level="info" if result.abi_ok else "error",
            extra={"kind": variant.kind.value, "abi_checks": len(abi_results)},
        )
    return result


def stubs_info(
    graph: VariantGraph, implementation: Variant, results: Mapping[str, LinkResult]
) -> tuple[StubInfo, ...]:
    """Linked stubs of ``implementation``, ordered by version."""
    order = {version: index for index, version in enumerate(implementation.all_stubs_versions)}
    stubs = graph.dependents_of(implementation, DependencyTag.STUB_IMPLEMENTATION)
    infos: list[StubInfo] = []
    for stub in sorted(stubs, key=lambda s: order.get(s.version, len(order))):
        result = results.get(stub.key)
        if result is None:
            continue
        infos.append(
            StubInfo(version=stub.version, output_file=result.output_file, exported=result.exported)
        )
    return tuple(infos)


def select_stub_version(
    dependency: str,
    requested: str,
    *,
    platform: PlatformConfig,
    versions_cache: StubVersionsCache,
) -> str | None:
    """Highest stub version of ``dependency`` not above ``requested``.

    Reads the published version list, so a dependent can pick its stub
    before the dependency's graph exists. Returns ``None`` when the
    dependency publishes no stubs and is linked directly.
    """
    versions = versions_cache.lookup(dependency)
    if not versions:
        return None
    ceiling = api_level_from_user(requested, platform)
    selected = None
    for version in versions:
        if api_level_from_user(version, platform).less_than_or_equal_to(ceiling):
            selected = version
    if selected is None:
        raise ConfigurationError(
            f"No stub version of {dependency!r} is at or below {requested!r}.",
            module=dependency,
            property="stubs.versions",
            value=", ".join(versions),
        )
    return selected


def available_for(config: LibraryConfig, variant: Variant, apex: str) -> bool:
    props = config.linkage_properties(variant.kind)
    allowed = props.apex_available if props is not None else ()
    if not allowed:
        return False
    if apex in allowed:
        return True
    if apex == APEX_AVAILABLE_PLATFORM:
        return False
    if APEX_AVAILABLE_ANYAPEX in allowed:
        return True
    return any(
        entry.endswith(".*") and apex.startswith(entry[:-1]) for entry in allowed
    )


def installable(config: LibraryConfig, variant: Variant) -> bool:
    if not variant.installable or variant.kind == VariantKind.HEADER:
        return False
    if variant.kind == VariantKind.SHARED and variant.all_stubs_versions:
        if not config.implementation_installable:
            return False
    props = config.linkage_properties(variant.kind)
    return props is None or props.installable is not False


def _build_stub(
    config: LibraryConfig, variant: Variant, platform: PlatformConfig, variant_dir: Path
) -> StubOutputs:
    if config.is_llndk:
        symbol_path, flags = config.llndk.symbol_file, ("--llndk",)
    elif config.is_vendor_public_library:
        symbol_path, flags = config.vendor_public_library.symbol_file, ()
    else:
        symbol_path, flags = config.stubs.symbol_file, stub_visibility_flags(config)
    if not symbol_path:
        raise ConfigurationError(
            "Stub variants require a symbol file.",
            module=config.name,
            property="stubs.symbol_file",
        )
    symbol_file = parse_symbol_file(symbol_path, module=config.name)
    api = (
        api_level_from_user(variant.version, platform).number
        if variant.version
        else FUTURE_API_LEVEL_INT
    )
    stub_filter = StubFilter.from_flags(
        flags, arch=platform.arch, api=api, codenames=codename_api_levels(platform)
    )
    surface = generate_stub(symbol_file, stub_filter)
    return write_stub(surface, variant_dir, stem=lib_name(config))


def _without(items: tuple[str, ...], excluded: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(item for item in items if item not in excluded)
