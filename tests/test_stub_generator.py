from pathlib import Path

from ccvariants.models import LibraryConfig
from ccvariants.stubs import (
    StubFilter,
    SymbolFile,
    generate_stub,
    parse_symbol_map,
    stub_compiler_flags,
    stub_visibility_flags,
    write_stub,
)
from ccvariants.stubs.generator import STUB_COMPILER_FLAGS

SYMBOL_MAP = """\
LIBFOO {
  global:
    foo_open; # apex
    foo_counter; # var apex
    foo_hook; # weak apex
    foo_later; # apex introduced=31
};

LIBFOO_R { # introduced=30
  global:
    foo_r_only; # apex
} LIBFOO;

LIBFOO_S { # introduced=31
  global:
    foo_s_only; # apex
} LIBFOO_R;
"""


def _symbol_file() -> SymbolFile:
    return SymbolFile(path="libfoo.map.txt", versions=parse_symbol_map(SYMBOL_MAP))


def test_stub_visibility_flags() -> None:
    assert stub_visibility_flags(LibraryConfig(name="libfoo")) == ("--systemapi", "--no-ndk")
    assert stub_visibility_flags(LibraryConfig(name="libfoo", not_in_platform=True)) == (
        "--apex",
        "--no-ndk",
    )
    assert stub_visibility_flags(LibraryConfig(name="libc", is_ndk=True)) == ("--systemapi",)


def test_stub_compiler_flags_strip_forced_includes() -> None:
    flags = stub_compiler_flags(["-Iinclude", "-include force.h", "-Wall", "-DX=1"])
    assert "-include force.h" not in flags
    assert flags[:3] == ("-Iinclude", "-Wall", "-DX=1")
    assert flags.count("-Wall") == 1
    assert set(STUB_COMPILER_FLAGS) <= set(flags)


def test_generate_stub_source_definitions() -> None:
    stub_filter = StubFilter.from_flags(["--apex", "--no-ndk"], arch="arm64", api=30)
    surface = generate_stub(_symbol_file(), stub_filter)

    assert surface.symbols == ("foo_open", "foo_counter", "foo_hook", "foo_r_only")
    assert surface.source.splitlines() == [
        "void foo_open() {}",
        "int foo_counter = 0;",
        "__attribute__((weak)) void foo_hook() {}",
        "void foo_r_only() {}",
    ]


def test_version_script_keeps_inheritance_of_emitted_versions() -> None:
    stub_filter = StubFilter.from_flags(["--apex"], arch="arm64", api=31)
    surface = generate_stub(_symbol_file(), stub_filter)

    assert [v.name for v in surface.versions] == ["LIBFOO", "LIBFOO_R", "LIBFOO_S"]
    assert "} LIBFOO;" in surface.version_script
    assert "} LIBFOO_R;" in surface.version_script
    assert "        foo_later;" in surface.version_script


def test_versions_without_symbols_are_dropped() -> None:
    stub_filter = StubFilter.from_flags(["--apex"], arch="arm64", api=29)
    surface = generate_stub(_symbol_file(), stub_filter)

    assert [v.name for v in surface.versions] == ["LIBFOO"]
    assert surface.version_script == (
        "LIBFOO {\n"
        "    global:\n"
        "        foo_open;\n"
        "        foo_counter;\n"
        "        foo_hook;\n"
        "};\n"
    )


def test_base_version_dropped_when_not_emitted() -> None:
    text = (
        "LIBBAR { # systemapi\n  global:\n    bar_a;\n};\n\n"
        "LIBBAR_2 {\n  global:\n    bar_b; # apex\n} LIBBAR;\n"
    )
    symbol_file = SymbolFile(path="libbar.map.txt", versions=parse_symbol_map(text))
    surface = generate_stub(symbol_file, StubFilter.from_flags(["--apex"], arch="arm64", api=33))

    assert surface.version_script == "LIBBAR_2 {\n    global:\n        bar_b;\n};\n"


def test_no_symbols_yields_empty_outputs() -> None:
    surface = generate_stub(_symbol_file(), StubFilter(arch="arm64", api=33, ndk=False))
    assert surface.source == ""
    assert surface.version_script == ""


def test_write_stub(tmp_path: Path) -> None:
    surface = generate_stub(_symbol_file(), StubFilter(arch="arm64", api=30, apex=True))
    outputs = write_stub(surface, tmp_path / "out", stem="libfoo")

    assert outputs.source_path == tmp_path / "out" / "libfoo.c"
    assert outputs.version_script_path == tmp_path / "out" / "libfoo.map"
    assert outputs.source_path.read_text(encoding="utf-8") == surface.source
    assert outputs.version_script_path.read_text(encoding="utf-8") == surface.version_script
