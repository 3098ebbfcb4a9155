# tests/test_config.py
"""
Tests for run configuration.
"""

from pathlib import Path

from kpc.config import DEFAULT_OUT_DIR, CollectorConfig


class TestCollectorConfig:

    def test_defaults(self):
        config = CollectorConfig()
        assert config.out_dir == Path(DEFAULT_OUT_DIR)
        assert config.modified_path == Path(DEFAULT_OUT_DIR) / "modified.c"
        assert config.executable_path == Path(DEFAULT_OUT_DIR) / "modified.out"
        assert config.validate() == []

    def test_out_dir_coerced_to_path(self):
        assert CollectorConfig(out_dir="build").out_dir == Path("build")

    def test_dictionary_path_uses_source_name(self):
        config = CollectorConfig(out_dir="out")
        assert config.dictionary_path(Path("src/prog.c")) == Path("out/prog.c.branch_dict")
        assert config.sexp_path(Path("src/prog.c")) == Path("out/prog.c.branch_dict.sexp")

    def test_from_env(self):
        config = CollectorConfig.from_env({"KPC_OUT_DIR": "/tmp/cov", "CC": "tcc"})
        assert config.out_dir == Path("/tmp/cov")
        assert config.compiler == "tcc"

    def test_overrides_beat_env_and_none_is_ignored(self):
        config = CollectorConfig.from_env(
            {"KPC_OUT_DIR": "/tmp/cov", "CC": "tcc"}, out_dir="here", compiler=None
        )
        assert config.out_dir == Path("here")
        assert config.compiler == "tcc"

    def test_validate(self):
        config = CollectorConfig(modified_name="same", executable_name="same", entry_function="")
        warnings = config.validate()
        assert len(warnings) == 3
