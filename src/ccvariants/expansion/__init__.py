"""Two-pass variant expansion."""

from .linkage import can_reuse_objects, initial_graph, split_linkage
from .pipeline import ExpansionReport, expand_libraries, expand_library
from .versions import (
    add_current_version_if_not_present,
    declared_stub_versions,
    normalize_versions,
    split_versions,
)

__all__ = [
    "ExpansionReport",
    "add_current_version_if_not_present",
    "can_reuse_objects",
    "declared_stub_versions",
    "expand_libraries",
    "expand_library",
    "initial_graph",
    "normalize_versions",
    "split_linkage",
    "split_versions",
]
