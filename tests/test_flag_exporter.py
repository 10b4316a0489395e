import pytest

from ccvariants.errors import UsageError
from ccvariants.exporter import (
    FlagExporter,
    FlagExporterInfo,
    FlagExporterProperties,
    first_unique,
    include_dirs_to_flags,
)


def test_include_dirs_to_flags() -> None:
    assert include_dirs_to_flags(["a", "b"]) == ("-Ia", "-Ib")
    assert include_dirs_to_flags(["a"], system=True) == ("-isystem a",)
    assert first_unique(["b", "a", "b"]) == ("b", "a")


def test_partition_override_replaces_export_include_dirs() -> None:
    exporter = FlagExporter(
        FlagExporterProperties(
            export_include_dirs=("include",),
            vendor_override_export_include_dirs=("include_vendor",),
            product_override_export_include_dirs=(),
        )
    )
    assert exporter.exported_includes("platform") == ("include",)
    assert exporter.exported_includes("vendor") == ("include_vendor",)
    # An empty override still replaces the base list.
    assert exporter.exported_includes("product") == ()


def test_export_includes_and_system_dirs() -> None:
    exporter = FlagExporter(
        FlagExporterProperties(
            export_include_dirs=("include",), export_system_include_dirs=("sysinclude",)
        )
    )
    exporter.export_includes("platform")
    info = exporter.publish()
    assert info.include_dirs == ("include",)
    assert info.system_include_dirs == ("sysinclude",)
    assert info.include_flags() == ("-Iinclude", "-isystem sysinclude")


def test_export_includes_as_system() -> None:
    exporter = FlagExporter(FlagExporterProperties(export_include_dirs=("include",)))
    exporter.export_includes_as_system("platform")
    info = exporter.publish()
    assert info.include_dirs == ()
    assert info.system_include_dirs == ("include",)


@pytest.mark.parametrize("flag", ["-Iinclude", "-isystem include"])
def test_reexport_flags_rejects_include_flags(flag: str) -> None:
    with pytest.raises(UsageError) as excinfo:
        FlagExporter().reexport_flags(flag)
    assert excinfo.value.code == "E_USAGE"


def test_reexport_info_propagates_dependency_snapshot_without_duplicates() -> None:
    dep = FlagExporterInfo(
        include_dirs=("dep/include", "shared/include"),
        system_include_dirs=("dep/sys",),
        flags=("-DDEP=1",),
        deps=("gen/dep.h",),
        generated_headers=("gen/dep.h",),
    )
    exporter = FlagExporter(FlagExporterProperties(export_include_dirs=("shared/include",)))
    exporter.export_includes("platform")
    exporter.reexport_info(dep)
    exporter.reexport_info(dep)
    info = exporter.publish()

    assert info.include_dirs == ("shared/include", "dep/include")
    assert info.system_include_dirs == ("dep/sys",)
    assert info.flags == ("-DDEP=1",)
    assert info.compile_flags() == (
        "-Ishared/include",
        "-Idep/include",
        "-isystem dep/sys",
        "-DDEP=1",
    )
    assert info.deps == ("gen/dep.h",)
    assert info.generated_headers == ("gen/dep.h",)


def test_published_snapshot_is_frozen() -> None:
    exporter = FlagExporter()
    exporter.reexport_flags("-DA=1")
    first = exporter.publish()

    assert exporter.published is first
    assert exporter.publish() is first
    with pytest.raises(UsageError):
        exporter.reexport_flags("-DB=1")
    with pytest.raises(UsageError):
        exporter.reexport_dirs("late/include")
