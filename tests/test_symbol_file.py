from pathlib import Path

import pytest

from ccvariants.apilevel import codename_api_levels
from ccvariants.config import PlatformConfig
from ccvariants.errors import ConfigurationError
from ccvariants.stubs import (
    StubFilter,
    check_symbol_file_name,
    parse_symbol_file,
    parse_symbol_map,
)

SYMBOL_MAP = """\
LIBFOO {
  global:
    foo_open; # introduced=29
    foo_new; # introduced=30
    foo_arm_only; # arm64
    foo_flags; # var apex
    foo_future; # future
    foo_sys; # systemapi introduced-arm64=31
  local:
    *;
};

LIBFOO_PRIVATE {
  global:
    foo_debug;
} LIBFOO;

LIBFOO_INTERNAL { # platform-only
  global:
    foo_internal;
};

LIBFOO_APEX { # apex
  global:
    foo_apex_block;
} LIBFOO;
"""


def _names(stub_filter: StubFilter) -> list[str]:
    versions = stub_filter.select(parse_symbol_map(SYMBOL_MAP))
    return [s.name for v in versions for s in v.symbols]


def test_parse_symbol_map_versions_tags_and_scopes() -> None:
    versions = parse_symbol_map(SYMBOL_MAP)

    assert [v.name for v in versions] == [
        "LIBFOO",
        "LIBFOO_PRIVATE",
        "LIBFOO_INTERNAL",
        "LIBFOO_APEX",
    ]
    libfoo = versions[0]
    assert libfoo.base is None
    assert [s.name for s in libfoo.symbols] == [
        "foo_open",
        "foo_new",
        "foo_arm_only",
        "foo_flags",
        "foo_future",
        "foo_sys",
    ]
    assert libfoo.symbols[3].is_var
    assert versions[1].base == "LIBFOO"
    assert versions[2].tags == ("platform-only",)


@pytest.mark.parametrize(
    ("text", "line"),
    [
        ("foo;\n", "1"),
        ("LIBFOO {\n  global:\n    foo bar baz\n};\n", "3"),
        ("LIBFOO {\n};\nLIBFOO {\n};\n", "3"),
    ],
)
def test_parse_symbol_map_reports_line(text: str, line: str) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        parse_symbol_map(text, source="libfoo.map.txt")
    assert excinfo.value.context["line"] == line
    assert excinfo.value.context["value"] == "libfoo.map.txt"


def test_parse_symbol_map_rejects_unterminated_block() -> None:
    with pytest.raises(ConfigurationError, match="Unterminated"):
        parse_symbol_map("LIBFOO {\n  global:\n    foo;\n")


def test_symbol_file_name_requires_map_txt_suffix(tmp_path: Path) -> None:
    check_symbol_file_name("libfoo.map.txt")
    with pytest.raises(ConfigurationError) as excinfo:
        check_symbol_file_name("libfoo.map", module="libfoo")
    assert excinfo.value.context == {
        "module": "libfoo",
        "property": "stubs.symbol_file",
        "value": "libfoo.map",
    }


def test_parse_symbol_file_missing_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="does not exist"):
        parse_symbol_file(tmp_path / "libfoo.map.txt", module="libfoo")


def test_parse_symbol_file_reads_disk(tmp_path: Path) -> None:
    path = tmp_path / "libfoo.map.txt"
    path.write_text(SYMBOL_MAP, encoding="utf-8")
    symbol_file = parse_symbol_file(path)
    assert symbol_file.path == str(path)
    assert "foo_debug" in symbol_file.symbol_names()


def test_filter_by_api_level() -> None:
    assert _names(StubFilter(arch="arm64", api=29)) == ["foo_open", "foo_arm_only"]
    assert _names(StubFilter(arch="arm64", api=30)) == ["foo_open", "foo_new", "foo_arm_only"]


def test_filter_by_arch() -> None:
    assert "foo_arm_only" not in _names(StubFilter(arch="x86_64", api=30))


def test_future_symbols_only_at_future_level() -> None:
    assert "foo_future" in _names(StubFilter(arch="arm64", api=10000))
    assert "foo_future" not in _names(StubFilter(arch="arm64", api=33))


def test_visibility_tags_select_symbols_and_blocks() -> None:
    apex = StubFilter.from_flags(["--apex"], arch="arm64", api=10000)
    names = _names(apex)
    assert "foo_flags" in names
    assert "foo_apex_block" in names
    assert "foo_sys" not in names

    system = StubFilter.from_flags(["--systemapi", "--no-ndk"], arch="arm64", api=10000)
    assert _names(system) == ["foo_sys"]


def test_arch_specific_introduced_wins() -> None:
    system = StubFilter.from_flags(["--systemapi"], arch="arm64", api=30)
    assert "foo_sys" not in _names(system)
    later = StubFilter.from_flags(["--systemapi"], arch="arm64", api=31)
    assert "foo_sys" in _names(later)


def test_private_and_platform_only_versions_are_omitted() -> None:
    names = _names(StubFilter(arch="arm64", api=10000, apex=True, systemapi=True))
    assert "foo_debug" not in names
    assert "foo_internal" not in names


CODENAME_MAP = """\
LIBFOO {
  global:
    foo_r; # introduced=R
    foo_t; # introduced=Tiramisu
};
"""


def _codename_names(stub_filter: StubFilter) -> list[str]:
    versions = stub_filter.select(parse_symbol_map(CODENAME_MAP))
    return [s.name for v in versions for s in v.symbols]


def test_introduced_codenames_resolve_through_platform() -> None:
    platform = PlatformConfig(final_codenames={"R": 30}, active_codenames=("Tiramisu",))
    codenames = codename_api_levels(platform)

    assert _codename_names(StubFilter(arch="arm64", api=29, codenames=codenames)) == []
    assert _codename_names(StubFilter(arch="arm64", api=33, codenames=codenames)) == ["foo_r"]
    preview = StubFilter.from_flags(
        [], arch="arm64", api=codenames["Tiramisu"], codenames=codenames
    )
    assert _codename_names(preview) == ["foo_r", "foo_t"]
    assert _codename_names(StubFilter(arch="arm64", api=10000, codenames=codenames)) == [
        "foo_r",
        "foo_t",
    ]


def test_unknown_introduced_codename_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        _codename_names(StubFilter(arch="arm64", api=33, codenames={"R": 30}))
    assert excinfo.value.context["value"] == "Tiramisu"
