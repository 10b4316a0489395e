"""Linkage split: one library node into static and/or shared variants."""

from __future__ import annotations

from dataclasses import replace

from ccvariants.graph.model import DependencyTag, Variant, VariantGraph
from ccvariants.models import REUSE_COMPARED_FIELDS, LibraryConfig, LinkageProperties, VariantKind
from ccvariants.observability import StructuredLogger


def initial_graph(config: LibraryConfig) -> VariantGraph:
    """Graph holding the single unsplit (header) node for ``config``."""
    graph = VariantGraph()
    graph.add(Variant(module=config.name, kind=VariantKind.HEADER))
    return graph


def can_reuse_objects(static: LinkageProperties, shared: LinkageProperties) -> bool:
    """Whether the shared variant may link the static variant's objects verbatim.

    Every compared field must be equal; ``system_shared_libs`` compares
    ``None`` and ``()`` as different values.
    """
    return all(getattr(static, name) == getattr(shared, name) for name in REUSE_COMPARED_FIELDS)


def split_linkage(
    graph: VariantGraph,
    config: LibraryConfig,
    *,
    logger: StructuredLogger | None = None,
) -> VariantGraph:
    parent = graph.resolve(config.name)
    if parent is None or parent.kind != VariantKind.HEADER:
        return graph

    build_static = config.static_enabled and not config.is_llndk
    build_shared = config.shared_enabled

    if config.prebuilt and (build_static or build_shared):
        # Prebuilts always carry both variants so they can stand in for a
        # source library of the same name; the unused one is disabled.
        static, shared = _linkage_children(parent)
        static = replace(static, enabled=build_static)
        shared = replace(shared, enabled=build_shared)
        graph.replace(parent, [static, shared])
        if build_static and build_shared:
            graph.add_edge(shared, static, DependencyTag.STATIC_VARIANT)
        graph.add_alias(config.name, shared if build_shared else static)
    elif build_static and build_shared:
        static, shared = _linkage_children(parent)
        graph.replace(parent, [static, shared])
        if can_reuse_objects(config.static, config.shared):
            graph.add_edge(shared, static, DependencyTag.REUSE_OBJECTS)
        graph.add_edge(shared, static, DependencyTag.STATIC_VARIANT)
        graph.add_alias(config.name, shared)
    elif build_static:
        static, _ = _linkage_children(parent)
        graph.replace(parent, [static])
        graph.add_alias(config.name, static)
    elif build_shared:
        _, shared = _linkage_children(parent)
        graph.replace(parent, [shared])
        graph.add_alias(config.name, shared)
    # Neither: header-only, the parent node stays as the module's only variant.

    if logger is not None:
        logger.log(
            operation="split_linkage",
            module=config.name,
            message="Linkage variants created.",
            extra={"variants": sorted(v.key for v in graph.variants_of(config.name))},
        )
    return graph


def _linkage_children(parent: Variant) -> tuple[Variant, Variant]:
    static = replace(parent, kind=VariantKind.STATIC, variations=(*parent.variations, "static"))
    shared = replace(parent, kind=VariantKind.SHARED, variations=(*parent.variations, "shared"))
    return static, shared
