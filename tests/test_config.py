"""Tests for configuration loading."""

import os
import tempfile
from pathlib import Path

import pytest

from dreamhigh.config import load_config


def test_load_config_defaults(monkeypatch):
    """Test loading config with defaults when no file exists."""
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.chdir(tmpdir)
        monkeypatch.setenv("HOME", tmpdir)
        config = load_config()

        root = Path(tmpdir) / ".dreamhigh"
        assert config.storage.root == root
        assert config.storage.db == root / "dreamhigh.sqlite"
        assert config.storage.images == root / "images"
        assert config.storage.pdfs == root / "pdfs"
        assert config.images.scheme == "dreamhigh"
        assert config.images.default_width == 600
        assert (config.images.min_width, config.images.max_width) == (100, 1200)
        assert config.log.level == "WARNING"


def test_load_config_from_file():
    """Test loading config from a file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "dreamhigh.toml"
        config_path.write_text("""
[storage]
root = "data"
db = "custom.db"

[images]
scheme = "jobs"
default_width = 480
min_width = 200
max_width = 900

[log]
level = "info"
""")

        config = load_config(config_path=config_path)

        assert config.storage.root == Path("data")
        assert config.storage.db == Path("custom.db")
        assert config.storage.images == Path("data") / "images"
        assert config.images.scheme == "jobs"
        assert config.images.default_width == 480
        assert config.images.min_width == 200
        assert config.images.max_width == 900
        assert config.log.level == "INFO"


def test_load_config_search_cwd():
    """Test config search in current working directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        orig_cwd = os.getcwd()
        try:
            os.chdir(tmpdir)
            Path(tmpdir, "dreamhigh.toml").write_text("""
[images]
default_width = 777
""")
            config = load_config()
            assert config.images.default_width == 777
        finally:
            os.chdir(orig_cwd)


def test_data_dir_overrides_root(monkeypatch):
    """Test that --data-dir wins and is searched for a config file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.chdir(tmpdir)
        data_dir = Path(tmpdir) / "data"
        data_dir.mkdir()
        (data_dir / "dreamhigh.toml").write_text('[storage]\nroot = "elsewhere"\n\n[images]\nmax_width = 1000\n')

        config = load_config(data_dir=data_dir)

        assert config.storage.root == data_dir
        assert config.storage.db == data_dir / "dreamhigh.sqlite"
        assert config.images.max_width == 1000


def test_invalid_width_bounds():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "dreamhigh.toml"
        config_path.write_text("[images]\nmin_width = 800\nmax_width = 400\n")
        with pytest.raises(ValueError):
            load_config(config_path=config_path)
