"""Public package entrypoint for native library variant expansion and ABI checks."""

from .abi import AbiChecker, AbiDiffResult, AbiDump, AbiSurface, InProcessAbiTool
from .apilevel import FUTURE_API_LEVEL, ApiLevel, api_level_from_user
from .config import PlatformConfig
from .errors import (
    AbiIncompatibilityError,
    ConfigurationError,
    ErrorCode,
    MacroCollisionError,
    UsageError,
    VariantsError,
)
from .expansion import ExpansionReport, expand_libraries, expand_library
from .exporter import FlagExporter, FlagExporterInfo, FlagExporterProperties
from .graph import DependencyTag, Variant, VariantGraph
from .library import LinkResult, link_variant, select_stub_version, stubs_info
from .models import LibraryConfig, VariantKind
from .observability import StructuredLogger
from .registry import StubVersionsCache, VersioningMacroRegistry, versioning_macro_name

__all__ = [
    "AbiChecker",
    "AbiDiffResult",
    "AbiDump",
    "AbiIncompatibilityError",
    "AbiSurface",
    "ApiLevel",
    "ConfigurationError",
    "DependencyTag",
    "ErrorCode",
    "ExpansionReport",
    "FUTURE_API_LEVEL",
    "FlagExporter",
    "FlagExporterInfo",
    "FlagExporterProperties",
    "InProcessAbiTool",
    "LibraryConfig",
    "LinkResult",
    "MacroCollisionError",
    "PlatformConfig",
    "StructuredLogger",
    "StubVersionsCache",
    "UsageError",
    "Variant",
    "VariantGraph",
    "VariantKind",
    "VariantsError",
    "VersioningMacroRegistry",
    "api_level_from_user",
    "expand_libraries",
    "expand_library",
    "link_variant",
    "select_stub_version",
    "stubs_info",
    "versioning_macro_name",
]
