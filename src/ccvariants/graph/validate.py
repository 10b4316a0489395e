"""Validation helpers for variant graph correctness."""

from __future__ import annotations

from ccvariants.errors import UsageError
from ccvariants.graph.model import VariantGraph


def validate_graph(graph: VariantGraph) -> None:
    """Validate that every edge and alias points at an existing variant."""
    for edge in graph.edges:
        for key in (edge.source, edge.target):
            if key not in graph.nodes:
                raise UsageError(
                    "Variant graph edge references a missing variant.",
                    hint="Split variants through VariantGraph.replace() so edges stay consistent.",
                    context={"variant": key, "tag": edge.tag.value, "operation": "validate_graph"},
                )
    for name, key in graph.aliases.items():
        if key not in graph.nodes:
            raise UsageError(
                "Variant graph alias references a missing variant.",
                context={"alias": name, "variant": key, "operation": "validate_graph"},
            )
