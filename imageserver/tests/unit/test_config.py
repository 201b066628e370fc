from pathlib import Path

import pytest

from imageserver.config import Settings, resolve_root
from imageserver.domain.exceptions import ConfigError
from imageserver.main import build_settings, create_app, run, _parse_args


class TestSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ("IMAGE_SERVER_ROOT", "IMAGE_SERVER_PORT", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()
        assert settings.port == 8080
        assert settings.root_dir == Path(".")
        assert settings.chunk_size == 64 * 1024

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("IMAGE_SERVER_ROOT", str(tmp_path))
        monkeypatch.setenv("IMAGE_SERVER_PORT", "9090")
        monkeypatch.setenv("IMAGE_SERVER_CHUNK_SIZE", "1024")
        settings = Settings()
        assert settings.root_dir == tmp_path
        assert settings.port == 9090
        assert settings.chunk_size == 1024

    def test_field_names_accepted(self, tmp_path):
        settings = Settings(root_dir=tmp_path, port=8181)
        assert settings.root_dir == tmp_path
        assert settings.port == 8181

    def test_invalid_compress_level_rejected(self):
        with pytest.raises(ValueError):
            Settings(png_compress_level=12)

    def test_read_timeout_is_whole_seconds(self, monkeypatch):
        monkeypatch.setenv("IMAGE_SERVER_READ_TIMEOUT", "7")
        assert Settings().read_timeout == 7

    @pytest.mark.parametrize("value", ["0", "0.5"])
    def test_read_timeout_below_one_second_rejected(self, monkeypatch, value):
        monkeypatch.setenv("IMAGE_SERVER_READ_TIMEOUT", value)
        with pytest.raises(ValueError):
            Settings()

    def test_max_producers_default(self, monkeypatch):
        monkeypatch.delenv("IMAGE_SERVER_MAX_PRODUCERS", raising=False)
        assert Settings().max_producers == 16


class TestResolveRoot:
    """Test startup root resolution."""

    def test_canonical_root(self, tmp_path):
        (tmp_path / "served").mkdir()
        settings = Settings(root_dir=tmp_path / "served" / ".." / "served")
        assert resolve_root(settings) == (tmp_path / "served").resolve()

    def test_missing_root_is_fatal(self, tmp_path):
        with pytest.raises(ConfigError):
            resolve_root(Settings(root_dir=tmp_path / "missing"))

    def test_file_root_is_fatal(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(ConfigError):
            resolve_root(Settings(root_dir=path))

    def test_create_app_refuses_bad_root(self, tmp_path):
        with pytest.raises(ConfigError):
            create_app(Settings(root_dir=tmp_path / "missing"))


class TestCommandLine:
    """Test command line overrides."""

    def test_arguments_override_settings(self, tmp_path):
        args = _parse_args(["--root", str(tmp_path), "--port", "9000", "--log-level", "debug"])
        settings = build_settings(args)
        assert Path(settings.root_dir) == tmp_path
        assert settings.port == 9000
        assert settings.log_level == "debug"

    def test_absent_arguments_keep_settings(self):
        settings = build_settings(_parse_args([]))
        assert settings.host
        assert settings.port >= 1

    def test_run_hands_keep_alive_seconds_to_uvicorn(self, monkeypatch, tmp_path):
        calls = []
        monkeypatch.setattr("imageserver.main.configure_logging", lambda *a, **k: None)
        monkeypatch.setattr("imageserver.main.uvicorn.run", lambda app, **kwargs: calls.append(kwargs))

        assert run(["--root", str(tmp_path), "--port", "9001"]) == 0

        assert calls[0]["port"] == 9001
        assert calls[0]["timeout_keep_alive"] == 5

    def test_run_fails_on_bad_root(self, monkeypatch, tmp_path):
        monkeypatch.setattr("imageserver.main.configure_logging", lambda *a, **k: None)
        monkeypatch.setattr("imageserver.main.uvicorn.run", lambda app, **kwargs: None)

        assert run(["--root", str(tmp_path / "missing")]) == 1
