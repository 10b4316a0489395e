"""Composition of the expansion passes over one or many libraries."""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from ccvariants.config import PlatformConfig
from ccvariants.errors import ConfigurationError
from ccvariants.expansion.linkage import initial_graph, split_linkage
from ccvariants.expansion.versions import split_versions
from ccvariants.graph.model import VariantGraph
from ccvariants.graph.validate import validate_graph
from ccvariants.models import LibraryConfig
from ccvariants.observability import StructuredLogger
from ccvariants.registry import StubVersionsCache, VersioningMacroRegistry


@dataclass(slots=True)
class ExpansionReport:
    graphs: dict[str, VariantGraph] = field(default_factory=dict)
    errors: dict[str, ConfigurationError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def combined(self) -> VariantGraph:
        merged = VariantGraph()
        for name in sorted(self.graphs):
            merged.merge(self.graphs[name])
        return merged


def expand_library(
    config: LibraryConfig,
    *,
    platform: PlatformConfig,
    registry: VersioningMacroRegistry,
    versions_cache: StubVersionsCache,
    logger: StructuredLogger | None = None,
) -> VariantGraph:
    """Run the linkage split followed by the version split for one library."""
    graph = initial_graph(config)
    split_linkage(graph, config, logger=logger)
    split_versions(
        graph,
        config,
        platform=platform,
        registry=registry,
        versions_cache=versions_cache,
        logger=logger,
    )
    validate_graph(graph)
    return graph


def expand_libraries(
    configs: Iterable[LibraryConfig],
    *,
    platform: PlatformConfig,
    registry: VersioningMacroRegistry | None = None,
    versions_cache: StubVersionsCache | None = None,
    logger: StructuredLogger | None = None,
    max_workers: int | None = None,
) -> ExpansionReport:
    """Expand independent libraries concurrently.

    A configuration error aborts only the module that raised it; every other
    module is still expanded and reported.
    """
    registry = registry if registry is not None else VersioningMacroRegistry()
    versions_cache = versions_cache if versions_cache is not None else StubVersionsCache()
    ordered = list(configs)
    seen: set[str] = set()
    for config in ordered:
        if config.name in seen:
            raise ConfigurationError(
                f"Module {config.name!r} is declared more than once.",
                module=config.name,
                property="name",
                value=config.name,
            )
        seen.add(config.name)
    report = ExpansionReport()

    def _expand(config: LibraryConfig) -> VariantGraph:
        return expand_library(
            config,
            platform=platform,
            registry=registry,
            versions_cache=versions_cache,
            logger=logger,
        )

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [(config, pool.submit(_expand, config)) for config in ordered]
        for config, future in futures:
            try:
                report.graphs[config.name] = future.result()
            except ConfigurationError as exc:
                report.errors[config.name] = exc
                if logger is not None:
                    logger.log(
                        operation="expand_libraries",
                        module=config.name,
                        level="error",
                        message=str(exc),
                        extra=exc.to_dict(),
                    )
    return report
