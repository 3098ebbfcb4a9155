# tests/test_collector.py
"""
Tests for the end-to-end toolchain driver.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from kpc.collector import KeyPointsCollector
from kpc.config import CollectorConfig
from kpc.errors import BuildFailureError, InputNotFoundError, ToolchainUnavailableError
from kpc.rewriter import TRANSFORM_HEADER
from tests.conftest import NESTED_SOURCE, SIMPLE_IF_SOURCE, nested_tree, simple_if_tree


def fake_parser(tree_factory):
    calls = []

    def parse(path, args):
        calls.append((Path(path), list(args)))
        return tree_factory()

    parse.calls = calls
    return parse


@pytest.fixture
def prog(tmp_path):
    path = tmp_path / "prog.c"
    path.write_text(NESTED_SOURCE)
    return path


@pytest.fixture
def config(tmp_path):
    return CollectorConfig(out_dir=tmp_path / "out", build=False)


@pytest.fixture
def kpc_logger():
    logger = logging.getLogger("kpc")
    saved = logger.level
    logger.setLevel(logging.WARNING)
    yield logger
    logger.setLevel(saved)


class TestKeyPointsCollector:

    def test_missing_input_writes_nothing(self, tmp_path):
        out_dir = tmp_path / "out"
        with pytest.raises(InputNotFoundError):
            KeyPointsCollector(tmp_path / "absent.c", CollectorConfig(out_dir=out_dir))
        assert not out_dir.exists()

    def test_collect_cursors(self, prog, config):
        kpc = KeyPointsCollector(prog, config, parser=fake_parser(nested_tree))
        d = kpc.collect_cursors()
        assert d.labels() == ["br_1", "br_2", "br_3", "br_4"]
        assert kpc.root is None
        assert len(kpc.discovery.functions) == 1

    def test_clang_args_passed_to_parser(self, prog, tmp_path):
        parser = fake_parser(nested_tree)
        config = CollectorConfig(out_dir=tmp_path / "out", clang_args=["-DX=1"], build=False)
        KeyPointsCollector(prog, config, parser=parser).collect_cursors()
        assert parser.calls == [(prog, ["-DX=1"])]

    def test_without_build(self, prog, config):
        result = KeyPointsCollector(prog, config, parser=fake_parser(nested_tree)).execute_toolchain()
        assert result.executable_path is None
        assert result.sexp_path is None
        assert result.dictionary_path == config.out_dir / "prog.c.branch_dict"
        listing = result.dictionary_path.read_text().splitlines()
        assert listing[0] == "Branch Dictionary for: prog.c"
        assert listing[2:] == [
            "br_1: prog.c, 2, 3",
            "br_2: prog.c, 2, 8",
            "br_3: prog.c, 3, 4",
            "br_4: prog.c, 3, 6",
        ]
        modified = result.modified_path.read_text()
        assert modified.startswith(TRANSFORM_HEADER)
        assert 'LOG("br_4")    b();' in modified

    def test_sexp_output(self, prog, tmp_path):
        config = CollectorConfig(out_dir=tmp_path / "out", write_sexp=True, build=False)
        result = KeyPointsCollector(prog, config, parser=fake_parser(nested_tree)).execute_toolchain()
        assert result.sexp_path.read_text().startswith('(branch-dictionary "prog.c"')

    def test_with_build(self, prog, tmp_path):
        config = CollectorConfig(out_dir=tmp_path / "out", compiler="gcc")
        with patch("kpc.toolchain.compile_modified", return_value=config.executable_path) as build:
            result = KeyPointsCollector(prog, config, parser=fake_parser(nested_tree)).execute_toolchain()
        build.assert_called_once_with(config.modified_path, config.executable_path, "gcc")
        assert result.executable_path == config.executable_path
        assert result.compiler == "gcc"

    def test_build_failure_keeps_outputs(self, prog, tmp_path):
        config = CollectorConfig(out_dir=tmp_path / "out", compiler="gcc")
        error = BuildFailureError(str(config.modified_path), "gcc", returncode=1)
        with patch("kpc.toolchain.compile_modified", side_effect=error):
            with pytest.raises(BuildFailureError):
                KeyPointsCollector(prog, config, parser=fake_parser(nested_tree)).execute_toolchain()
        assert config.dictionary_path(prog).is_file()
        assert config.modified_path.is_file()

    def test_no_compiler(self, prog, tmp_path, monkeypatch):
        monkeypatch.delenv("CC", raising=False)
        config = CollectorConfig(out_dir=tmp_path / "out")
        with patch("kpc.toolchain.shutil.which", return_value=None):
            with pytest.raises(ToolchainUnavailableError):
                KeyPointsCollector(prog, config, parser=fake_parser(nested_tree)).execute_toolchain()

    def test_stages_can_run_separately(self, tmp_path, config):
        src = tmp_path / "simple.c"
        src.write_text(SIMPLE_IF_SOURCE)
        kpc = KeyPointsCollector(src, config, parser=fake_parser(simple_if_tree))
        modified = kpc.transform_program()
        assert "SET_BRANCH(0)" in modified.read_text()
        assert kpc.create_dictionary_file().read_text().endswith("br_2: simple.c, 3, 6\n")

    def test_debug_raises_log_level(self, prog, tmp_path, kpc_logger, caplog):
        logger = kpc_logger
        config = CollectorConfig(out_dir=tmp_path / "out", build=False, debug=True)
        kpc = KeyPointsCollector(prog, config, parser=fake_parser(nested_tree))
        assert logger.level == logging.DEBUG
        kpc.collect_cursors()
        assert f"Parsed {sum(1 for _ in nested_tree().walk())} cursor(s)" in caplog.text
        assert "Found branch point: FOR_STMT at line#: 2" in caplog.text

    def test_without_debug_keeps_log_level(self, prog, tmp_path, kpc_logger):
        logger = kpc_logger
        KeyPointsCollector(prog, CollectorConfig(out_dir=tmp_path / "out", build=False),
                           parser=fake_parser(nested_tree))
        assert logger.level == logging.WARNING

    def test_missing_entry_function_warns(self, prog, tmp_path, caplog):
        config = CollectorConfig(out_dir=tmp_path / "out", build=False)
        KeyPointsCollector(prog, config, parser=fake_parser(nested_tree)).transform_program()
        assert "Entry function main is not defined" in caplog.text

    def test_defined_entry_function_is_quiet(self, tmp_path, config, caplog):
        src = tmp_path / "simple.c"
        src.write_text(SIMPLE_IF_SOURCE)
        KeyPointsCollector(src, config, parser=fake_parser(simple_if_tree)).transform_program()
        assert "Entry function" not in caplog.text
