"""Version split: a shared variant into stub variants plus the implementation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from ccvariants.apilevel import FUTURE_API_LEVEL, api_level_from_user, is_future_spelling
from ccvariants.config import PlatformConfig
from ccvariants.errors import ConfigurationError
from ccvariants.graph.model import DependencyTag, Variant, VariantGraph
from ccvariants.models import LibraryConfig, VariantKind
from ccvariants.observability import StructuredLogger
from ccvariants.registry import StubVersionsCache, VersioningMacroRegistry

LATEST_VARIATION = "latest"


def add_current_version_if_not_present(versions: Sequence[str]) -> list[str]:
    """Append the future level unless it is already spelled out.

    Some declarations list the raw ``10000`` instead of ``current``; both
    spellings suppress the append so no duplicate level is produced.
    """
    result = list(versions)
    if any(is_future_spelling(v) for v in result):
        return result
    result.append(FUTURE_API_LEVEL.value)
    return result


def normalize_versions(
    versions: Sequence[str],
    platform: PlatformConfig,
    *,
    module: str | None = None,
) -> list[str]:
    """Canonicalize each version and require strictly increasing order."""
    normalized: list[str] = []
    previous = None
    for raw in versions:
        try:
            level = api_level_from_user(raw, platform)
        except ConfigurationError as exc:
            raise ConfigurationError(
                f"Invalid stub version {raw!r}.",
                module=module,
                property="stubs.versions",
                value=raw,
                hint=exc.hint,
            ) from exc
        if previous is not None and level.less_than_or_equal_to(previous):
            raise ConfigurationError(
                f"Stub versions are not sorted: {list(versions)}",
                module=module,
                property="stubs.versions",
                value=", ".join(versions),
                hint="List versions from least to greatest without duplicates.",
            )
        normalized.append(level.value)
        previous = level
    return normalized


def declared_stub_versions(config: LibraryConfig) -> list[str]:
    """Stub versions a library declares before normalization."""
    if config.is_llndk or config.is_vendor_public_library:
        # LLNDK and vendor public libraries only need a single stubs variant.
        return [FUTURE_API_LEVEL.value]
    if not config.has_stubs_variants:
        return []
    return add_current_version_if_not_present(config.stubs.versions)


def can_be_version_variant(config: LibraryConfig, variant: Variant) -> bool:
    return (
        not config.host
        and variant.kind == VariantKind.SHARED
        and variant.enabled
        and not variant.version
    )


def split_versions(
    graph: VariantGraph,
    config: LibraryConfig,
    *,
    platform: PlatformConfig,
    registry: VersioningMacroRegistry,
    versions_cache: StubVersionsCache,
    logger: StructuredLogger | None = None,
) -> VariantGraph:
    if not config.shared_enabled:
        return graph
    for parent in list(graph.variants_of(config.name)):
        if not can_be_version_variant(config, parent):
            continue
        versions = declared_stub_versions(config)
        if not versions:
            continue
        versions = normalize_versions(versions, platform, module=config.name)
        all_versions = versions_cache.publish(config.name, versions)
        _create_version_variations(graph, parent, config, all_versions, registry)
        if logger is not None:
            logger.log(
                operation="split_versions",
                module=config.name,
                variant=parent.key,
                message="Stub variants created.",
                extra={"versions": list(all_versions)},
            )
    return graph


def _create_version_variations(
    graph: VariantGraph,
    parent: Variant,
    config: LibraryConfig,
    versions: tuple[str, ...],
    registry: VersioningMacroRegistry,
) -> None:
    if config.is_llndk:
        implementation_kind = VariantKind.LLNDK_STUB
    elif config.is_vendor_public_library:
        implementation_kind = VariantKind.VENDOR_PUBLIC_STUB
    else:
        implementation_kind = VariantKind.SHARED

    stubs: list[Variant] = []
    for index, version in enumerate(versions):
        stubs.append(
            replace(
                parent,
                kind=VariantKind.STUB,
                variations=(*parent.variations, version),
                version=version,
                is_latest=index == len(versions) - 1,
                installable=False,
                hidden=True,
                all_stubs_versions=versions,
            )
        )
    implementation = replace(
        parent,
        kind=implementation_kind,
        variations=(*parent.variations, ""),
        installable=parent.installable and implementation_kind == VariantKind.SHARED,
        all_stubs_versions=versions,
    )

    if stubs:
        registry.register(config.name)
    graph.replace(parent, [*stubs, implementation])
    for stub in stubs:
        graph.add_edge(stub, implementation, DependencyTag.STUB_IMPLEMENTATION)
    if stubs:
        graph.aliases[f"{implementation.key}/{LATEST_VARIATION}"] = stubs[-1].key
