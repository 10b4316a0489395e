"""ABI dump creation and the three reference comparison policies."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ccvariants.abi.layout import LSDUMP_SUFFIX, ReferenceDumpLayout
from ccvariants.abi.model import AbiDiffResult, AbiDump, AbiSurface, DiffPolicy
from ccvariants.abi.tools import AbiToolBackend, InProcessAbiTool
from ccvariants.config import PlatformConfig
from ccvariants.errors import AbiIncompatibilityError
from ccvariants.exporter import include_dirs_to_flags
from ccvariants.graph.model import Variant
from ccvariants.models import HeaderAbiCheckerProperties, LibraryConfig, VariantKind
from ccvariants.observability import StructuredLogger
from ccvariants.stubs.symbolfile import parse_symbol_file


@dataclass(slots=True)
class AbiChecker:
    """Creates linked dumps and diffs them against reference dumps.

    A reference dump that does not exist is not an error: the comparison
    for that policy is skipped.
    """

    platform: PlatformConfig
    tool: AbiToolBackend = field(default_factory=InProcessAbiTool)
    logger: StructuredLogger | None = None

    @property
    def layout(self) -> ReferenceDumpLayout:
        return ReferenceDumpLayout(self.platform)

    def should_create_dump(self, config: LibraryConfig, variant: Variant) -> bool:
        if variant.kind != VariantKind.SHARED or variant.version or not variant.enabled:
            return False
        if config.host or config.prebuilt:
            return False
        enabled = config.effective_header_abi_checker().enabled
        if enabled is not None:
            return enabled
        return (
            config.is_ndk
            or config.is_vndk
            or config.is_llndk_public
            or config.has_stubs_variants
        )

    def is_vndk_surface(self, config: LibraryConfig) -> bool:
        return config.is_vndk and config.partition != "platform"

    def classify(self, config: LibraryConfig) -> AbiSurface:
        if config.is_ndk:
            return AbiSurface.NDK
        if self.is_vndk_surface(config):
            return AbiSurface.VNDK
        return AbiSurface.PLATFORM

    def dump_include_dirs(
        self, config: LibraryConfig, exported_include_dirs: Iterable[str]
    ) -> tuple[str, ...]:
        return tuple(exported_include_dirs) + config.reexported_includes

    def symbol_file_for_abi_check(self, config: LibraryConfig) -> str | None:
        checker = config.effective_header_abi_checker()
        if checker.symbol_file is not None:
            return checker.symbol_file
        if config.is_llndk:
            return config.llndk.symbol_file
        if config.has_stubs_variants:
            return config.stubs.symbol_file
        return None

    def create_dump(
        self,
        config: LibraryConfig,
        variant: Variant,
        *,
        library: str,
        fragments: Sequence[Path],
        exported_include_dirs: Iterable[str],
        output_dir: Path,
    ) -> AbiDump | None:
        if not self.should_create_dump(config, variant):
            return None
        checker = config.effective_header_abi_checker()
        include_dirs = self.dump_include_dirs(config, exported_include_dirs)
        symbol_path = self.symbol_file_for_abi_check(config)
        symbol_file = (
            parse_symbol_file(symbol_path, module=config.name) if symbol_path else None
        )
        output = self.tool.link(
            fragments,
            output_dir / f"{library}{LSDUMP_SUFFIX}",
            include_dirs=include_dirs,
            symbol_file=symbol_file,
            exclude_symbol_versions=checker.exclude_symbol_versions,
            exclude_symbol_tags=checker.exclude_symbol_tags,
        )
        dump = AbiDump(
            path=output,
            surface=self.classify(config),
            library=library,
            is_llndk=config.is_llndk_public,
            exported_flags=include_dirs_to_flags(include_dirs),
        )
        self._log(config, variant, "create_dump", f"Linked ABI dump {dump.lsdump_entry()}.")
        return dump

    def diff_flags(
        self,
        checker: HeaderAbiCheckerProperties,
        *,
        target_version: str,
        opaque_types_different: bool,
        allow_extensions: bool,
    ) -> tuple[str, ...]:
        flags = ["-target-version", target_version]
        if checker.check_all_apis:
            flags.append("-check-all-apis")
        else:
            flags.extend(["-allow-unreferenced-changes", "-allow-unreferenced-elf-symbol-changes"])
        if opaque_types_different:
            flags.append("-consider-opaque-types-different")
        if allow_extensions:
            flags.append("-allow-extensions")
        flags.extend(checker.diff_flags)
        return tuple(flags)

    def source_abi_diff(
        self,
        config: LibraryConfig,
        dump: AbiDump,
        reference: Path,
        *,
        policy: DiffPolicy,
        name_ext: str,
        allow_extensions: bool,
        target_version: str,
        remediation: str,
    ) -> AbiDiffResult:
        flags = self.diff_flags(
            config.effective_header_abi_checker(),
            target_version=target_version,
            opaque_types_different=dump.is_llndk or dump.surface == AbiSurface.NDK,
            allow_extensions=allow_extensions,
        )
        report = dump.path.parent / f"{dump.library}{name_ext}.abidiff"
        outcome = self.tool.diff(dump.path, reference, report, flags=flags)
        result = AbiDiffResult(
            policy=policy,
            library=dump.library,
            source_dump=dump.path,
            reference_dump=reference,
            status=outcome.status,
            flags=flags,
            changes=outcome.changes,
            remediation=remediation,
            report_path=report,
            name_ext=name_ext,
        )
        self._log(
            config,
            None,
            "abi_diff",
            f"{policy.value} diff against {reference}: {outcome.status}.",
            level="info" if result.passed else "error",
            extra={"policy": policy.value, "passed": result.passed, "flags": list(flags)},
        )
        return result

    def same_version_diff(self, config: LibraryConfig, dump: AbiDump) -> AbiDiffResult | None:
        version = self.layout.current_version(is_vndk=self.is_vndk_surface(config))
        reference = self.layout.reference_dump_file(dump.surface, version, dump.library)
        if reference is None:
            return None
        remediation = (
            "error: Please update ABI references with: "
            f"{self.platform.reference_dump_tool} -l {_lib_name(dump.library)}"
        )
        return self.source_abi_diff(
            config,
            dump,
            reference,
            policy=DiffPolicy.SAME_VERSION,
            name_ext="",
            allow_extensions=config.is_vndk_ext,
            target_version="current",
            remediation=remediation,
        )

    def cross_version_diff(self, config: LibraryConfig, dump: AbiDump) -> AbiDiffResult | None:
        if self.is_vndk_surface(config):
            return None
        previous = self.layout.previous_version(dump.surface)
        reference = self.layout.reference_dump_file(dump.surface, str(previous), dump.library)
        if reference is None:
            return None
        remediation = (
            f"error: Please follow {self.platform.cross_version_guide} to resolve the ABI "
            f"difference between your source code and version {previous}."
        )
        return self.source_abi_diff(
            config,
            dump,
            reference,
            policy=DiffPolicy.CROSS_VERSION,
            name_ext=str(previous),
            allow_extensions=True,
            target_version=str(previous + 1),
            remediation=remediation,
        )

    def opt_in_diffs(self, config: LibraryConfig, dump: AbiDump) -> list[AbiDiffResult]:
        results: list[AbiDiffResult] = []
        ref_dump_dirs = config.effective_header_abi_checker().ref_dump_dirs
        for index, ref_dump_dir in enumerate(ref_dump_dirs):
            reference = self.layout.opt_in_dump_file(ref_dump_dir, dump.library)
            if reference is None:
                continue
            remediation = (
                "error: Please update ABI references with: "
                f"{self.platform.reference_dump_tool} -l {_lib_name(dump.library)}"
                f" -ref-dump-dir $ANDROID_BUILD_TOP/{ref_dump_dir}"
            )
            # Opt-in directories rarely hold dumps for every default arch.
            if self.platform.device_product:
                remediation += f" -products {self.platform.device_product}"
            results.append(
                self.source_abi_diff(
                    config,
                    dump,
                    reference,
                    policy=DiffPolicy.OPT_IN,
                    name_ext=f"opt{index}",
                    allow_extensions=False,
                    target_version="current",
                    remediation=remediation,
                )
            )
        return results

    def check(self, config: LibraryConfig, dump: AbiDump) -> tuple[AbiDiffResult, ...]:
        results: list[AbiDiffResult] = []
        cross = self.cross_version_diff(config, dump)
        if cross is not None:
            results.append(cross)
        same = self.same_version_diff(config, dump)
        if same is not None:
            results.append(same)
        results.extend(self.opt_in_diffs(config, dump))
        return tuple(results)

    def ensure_compatible(self, results: Iterable[AbiDiffResult]) -> None:
        for result in results:
            if not result.passed:
                raise AbiIncompatibilityError(
                    f"ABI of {result.library} is incompatible with {result.reference_dump}.",
                    hint=result.remediation,
                    context={
                        "policy": result.policy.value,
                        "status": result.status,
                        "report": str(result.report_path or ""),
                    },
                )

    def _log(
        self,
        config: LibraryConfig,
        variant: Variant | None,
        operation: str,
        message: str,
        *,
        level: str = "info",
        extra: dict[str, object] | None = None,
    ) -> None:
        if self.logger is None:
            return
        self.logger.log(
            operation=operation,
            module=config.name,
            variant=variant.key if variant is not None else None,
            message=message,
            level=level,
            extra=extra,
        )


def _lib_name(library: str) -> str:
    return Path(library).stem
