import pytest

from ccvariants.config import PlatformConfig
from ccvariants.errors import ConfigurationError
from ccvariants.expansion import (
    add_current_version_if_not_present,
    declared_stub_versions,
    normalize_versions,
)
from ccvariants.models import (
    LibraryConfig,
    LlndkProperties,
    StubsProperties,
    VendorPublicLibraryProperties,
)


@pytest.mark.parametrize(
    ("declared", "expected"),
    [
        (["29"], ["29", "current"]),
        (["29", "current"], ["29", "current"]),
        (["29", "10000"], ["29", "10000"]),
        ([], ["current"]),
    ],
)
def test_add_current_version_checks_both_spellings(
    declared: list[str], expected: list[str]
) -> None:
    assert add_current_version_if_not_present(declared) == expected


def test_normalize_versions_keeps_increasing_list() -> None:
    platform = PlatformConfig(final_codenames={"R": 30})
    assert normalize_versions(["29", "current"], platform) == ["29", "current"]
    assert normalize_versions(["28", "R", "current"], platform) == ["28", "30", "current"]


@pytest.mark.parametrize("versions", [["30", "29"], ["29", "29"], ["current", "29"]])
def test_normalize_versions_rejects_unsorted(versions: list[str]) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        normalize_versions(versions, PlatformConfig(), module="libfoo")
    assert excinfo.value.context["property"] == "stubs.versions"
    assert excinfo.value.module == "libfoo"


def test_normalize_versions_rejects_unknown_level() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        normalize_versions(["29", "Tiramisu"], PlatformConfig(), module="libfoo")
    assert excinfo.value.context["value"] == "Tiramisu"


def test_declared_stub_versions() -> None:
    assert declared_stub_versions(LibraryConfig(name="libplain")) == []
    with_stubs = LibraryConfig(
        name="libfoo", stubs=StubsProperties(symbol_file="libfoo.map.txt", versions=("29",))
    )
    assert declared_stub_versions(with_stubs) == ["29", "current"]
    symbol_only = LibraryConfig(name="libfoo", stubs=StubsProperties(symbol_file="libfoo.map.txt"))
    assert declared_stub_versions(symbol_only) == ["current"]


def test_llndk_and_vendor_public_libraries_get_single_stub() -> None:
    llndk = LibraryConfig(
        name="libllndk",
        partition="vendor",
        llndk=LlndkProperties(symbol_file="libllndk.map.txt"),
        stubs=StubsProperties(versions=("29", "30")),
    )
    vendor_public = LibraryConfig(
        name="libvp",
        partition="vendor",
        vendor_public_library=VendorPublicLibraryProperties(symbol_file="libvp.map.txt"),
    )
    assert declared_stub_versions(llndk) == ["current"]
    assert declared_stub_versions(vendor_public) == ["current"]


def test_active_codename_sorts_below_future_level() -> None:
    platform = PlatformConfig(active_codenames=("Tiramisu", "UpsideDownCake"))
    config = LibraryConfig(
        name="libfoo",
        stubs=StubsProperties(symbol_file="libfoo.map.txt", versions=("29", "Tiramisu")),
    )

    versions = normalize_versions(declared_stub_versions(config), platform, module="libfoo")

    assert versions == ["29", "Tiramisu", "current"]
    assert normalize_versions(["Tiramisu", "UpsideDownCake"], platform) == [
        "Tiramisu",
        "UpsideDownCake",
    ]
    with pytest.raises(ConfigurationError):
        normalize_versions(["UpsideDownCake", "Tiramisu"], platform)
