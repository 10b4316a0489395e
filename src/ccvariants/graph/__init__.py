"""Variant graph model."""

from .model import DependencyTag, Edge, Variant, VariantGraph, variant_key
from .validate import validate_graph

__all__ = ["DependencyTag", "Edge", "Variant", "VariantGraph", "validate_graph", "variant_key"]
