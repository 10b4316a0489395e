"""Reference dump locations on disk."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ccvariants.abi.model import AbiSurface
from ccvariants.config import PlatformConfig

LSDUMP_SUFFIX = ".lsdump"
SOURCE_BASED_DIR = "source-based"


@dataclass(frozen=True, slots=True)
class ReferenceDumpLayout:
    """Resolves reference dumps below ``platform.abi_dump_root``.

    Versioned dumps live at
    ``<root>/<surface>/<version>/<binder bitness>/<arch>/source-based/<lib>.lsdump``;
    opt-in directories are unversioned and skip the binder bitness level.
    """

    platform: PlatformConfig

    @property
    def root(self) -> Path:
        return Path(self.platform.abi_dump_root)

    def arch_name(self) -> str:
        if self.platform.is_primary_arch:
            return self.platform.arch
        return f"{self.platform.arch}_{self.platform.primary_arch}"

    def surface_dir(self, surface: AbiSurface) -> Path:
        return self.root / surface.value

    def dump_dir(self, surface: AbiSurface, version: str) -> Path:
        return self.surface_dir(surface) / version / self.platform.binder_bitness

    def dump_path(self, directory: Path, library: str) -> Path:
        return directory / self.arch_name() / SOURCE_BASED_DIR / f"{library}{LSDUMP_SUFFIX}"

    def reference_dump_file(self, surface: AbiSurface, version: str, library: str) -> Path | None:
        candidate = self.dump_path(self.dump_dir(surface, version), library)
        return candidate if candidate.is_file() else None

    def opt_in_dump_file(self, ref_dump_dir: str | Path, library: str) -> Path | None:
        candidate = self.dump_path(Path(ref_dump_dir), library)
        return candidate if candidate.is_file() else None

    def current_version(self, *, is_vndk: bool) -> str:
        if is_vndk:
            return self.platform.vndk_version
        if self.platform.platform_sdk_final:
            return str(self.platform.platform_sdk_version)
        return "current"

    def previous_version(self, surface: AbiSurface) -> int:
        """Release whose dumps the cross-version check compares against.

        Before finalization the SDK version may already be bumped while its
        dumps have not been generated; then one more release is skipped.
        """
        sdk = self.platform.platform_sdk_version
        previous = sdk - 1
        current_dir = self.surface_dir(surface) / str(sdk)
        if not self.platform.platform_sdk_final and not current_dir.is_dir():
            previous -= 1
        return previous
