# tests/test_clang_frontend.py
"""
Tests for the libclang front end.  Tests that need the shared library are
skipped when it cannot be loaded; the end-to-end build also needs a host C
compiler.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from tests.conftest import has_c_compiler, has_libclang

requires_libclang = pytest.mark.skipif(not has_libclang(), reason="libclang not available")

PROGRAM = """\
int a(void) { return 1; }
int main(void) {
  int x = a();
  if (x) {
    x = a();
  }
  return x;
}
"""


@pytest.fixture
def prog(tmp_path):
    path = tmp_path / "prog.c"
    path.write_text(PROGRAM)
    return path


@requires_libclang
class TestParseFile:

    def test_tree_shape(self, prog):
        from kpc.clang_frontend import parse_file
        from kpc.cursor import CursorKind

        root = parse_file(prog)
        assert root.kind is CursorKind.TRANSLATION_UNIT
        assert [c.spelling for c in root.children] == ["a", "main"]
        kinds = {c.kind for c in root.walk()}
        assert CursorKind.IF_STMT in kinds
        assert CursorKind.CALL_EXPR in kinds

    def test_extent_end_is_closing_brace(self, prog):
        from kpc.clang_frontend import parse_file
        from kpc.cursor import CursorKind

        root = parse_file(prog)
        body = next(c for c in root.walk() if c.kind is CursorKind.COMPOUND_STMT and c.line == 4)
        assert (body.extent.end.line, body.extent.end.column) == (6, 3)

    def test_discovery(self, prog):
        from kpc.branch_points import discover
        from kpc.clang_frontend import parse_file

        result = discover(parse_file(prog))
        assert [(bp.origin_line, bp.targets) for bp in result.branch_points] == [(4, [5, 7])]
        assert [(f.name, f.start_line, f.end_line) for f in result.functions] == [
            ("a", 1, 1),
            ("main", 2, 8),
        ]
        assert result.variables == {"x": 3}

    def test_headers_are_dropped(self, tmp_path):
        from kpc.clang_frontend import parse_file

        (tmp_path / "defs.h").write_text("int helper(int v);\n")
        path = tmp_path / "use.c"
        path.write_text("#include \"defs.h\"\nint main(void) { return helper(0); }\n")
        root = parse_file(path)
        assert [c.spelling for c in root.children] == ["main"]


@requires_libclang
@pytest.mark.skipif(not has_c_compiler(), reason="no C compiler")
class TestEndToEnd:

    def test_instrumented_program_logs_labels(self, prog, tmp_path):
        from kpc.collector import KeyPointsCollector
        from kpc.config import CollectorConfig

        config = CollectorConfig(out_dir=tmp_path / "out")
        result = KeyPointsCollector(prog, config).execute_toolchain()
        run = subprocess.run(
            [str(result.executable_path)], capture_output=True, text=True, check=False
        )
        assert run.returncode == 1
        assert run.stderr.splitlines() == ["br_1", "br_2"]


class TestParseFailures:

    def test_load_error_becomes_parse_failure(self, tmp_path):
        from clang.cindex import TranslationUnitLoadError

        from kpc.errors import ParseFailureError

        index = MagicMock()
        index.parse.side_effect = TranslationUnitLoadError("Error parsing translation unit.")
        with patch("kpc.clang_frontend.Index.create", return_value=index):
            from kpc.clang_frontend import parse_file

            with pytest.raises(ParseFailureError) as info:
                parse_file(tmp_path / "prog.c", ["-DX"])
        assert info.value.code.code == "KPC-1001"
        index.parse.assert_called_once_with(str(tmp_path / "prog.c"), args=["-DX"])

    def test_missing_library_has_hint(self, tmp_path):
        from clang.cindex import LibclangError

        from kpc.errors import ParseFailureError

        with patch("kpc.clang_frontend.Index.create", side_effect=LibclangError("cannot load")):
            from kpc.clang_frontend import parse_file

            with pytest.raises(ParseFailureError) as info:
                parse_file(tmp_path / "prog.c")
        assert "LIBCLANG_PATH" in info.value.hint
