"""Variant graph dataclasses shared by the expansion passes."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum

from ccvariants.models import VariantKind


class DependencyTag(StrEnum):
    REUSE_OBJECTS = "reuse_objects"
    STATIC_VARIANT = "static_variant"
    STUB_IMPLEMENTATION = "stub_implementation"


@dataclass(frozen=True, slots=True)
class Variant:
    """One concrete build target derived from a library declaration."""

    module: str
    kind: VariantKind
    variations: tuple[str, ...] = ()
    version: str = ""
    is_latest: bool = False
    installable: bool = True
    hidden: bool = False
    enabled: bool = True
    all_stubs_versions: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return variant_key(self.module, self.variations)

    @property
    def is_implementation(self) -> bool:
        return self.kind.is_shared and not self.version


def variant_key(module: str, variations: tuple[str, ...]) -> str:
    named = [v for v in variations if v]
    if not named:
        return module
    return f"{module}@{'/'.join(named)}"


@dataclass(frozen=True, slots=True)
class Edge:
    source: str
    target: str
    tag: DependencyTag


@dataclass(slots=True)
class VariantGraph:
    nodes: dict[str, Variant] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    aliases: dict[str, str] = field(default_factory=dict)

    def add(self, variant: Variant) -> Variant:
        self.nodes[variant.key] = variant
        return variant

    def replace(self, parent: Variant, children: list[Variant]) -> None:
        """Split ``parent`` into ``children`` in place.

        Edges pointing at the parent follow the child that inherits its key;
        aliases to the parent are kept when such a child exists.
        """
        del self.nodes[parent.key]
        for child in children:
            self.add(child)
        if parent.key not in self.nodes:
            self.edges = [e for e in self.edges if parent.key not in (e.source, e.target)]
            self.aliases = {k: v for k, v in self.aliases.items() if v != parent.key}

    def add_edge(self, source: Variant, target: Variant, tag: DependencyTag) -> Edge:
        edge = Edge(source=source.key, target=target.key, tag=tag)
        if edge not in self.edges:
            self.edges.append(edge)
        return edge

    def add_alias(self, name: str, target: Variant) -> None:
        self.aliases[name] = target.key

    def resolve(self, name: str) -> Variant | None:
        key = self.aliases.get(name, name)
        return self.nodes.get(key)

    def variants_of(self, module: str) -> list[Variant]:
        return [v for v in self.nodes.values() if v.module == module]

    def dependents_of(self, variant: Variant, tag: DependencyTag | None = None) -> list[Variant]:
        return [
            self.nodes[e.source]
            for e in self.edges
            if e.target == variant.key and (tag is None or e.tag == tag)
        ]

    def has_edge(self, source: Variant, target: Variant, tag: DependencyTag) -> bool:
        return Edge(source=source.key, target=target.key, tag=tag) in self.edges

    def visible_names(self) -> list[str]:
        """Variant keys reachable from the module's externally visible name."""
        return [key for key, v in self.nodes.items() if not v.hidden]

    def __iter__(self) -> Iterator[Variant]:
        return iter(self.nodes.values())

    def __len__(self) -> int:
        return len(self.nodes)

    def merge(self, other: VariantGraph) -> None:
        self.nodes.update(other.nodes)
        for edge in other.edges:
            if edge not in self.edges:
                self.edges.append(edge)
        self.aliases.update(other.aliases)
