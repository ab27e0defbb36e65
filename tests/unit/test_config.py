"""
Unit-тесты для конфигурации разбора ключевых пакетов.

Проверяет:
- Значения по умолчанию и валидацию PackageConfig
- Загрузку из JSON-файла и обработку повреждённых файлов
- Переопределение переменными окружения
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

from asymkeys.config import (
    DEFAULT_CONFIG_FILE,
    ENV_MAX_VALUE_LENGTH,
    ENV_STRICT_VERSION,
    PackageConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv(ENV_MAX_VALUE_LENGTH, raising=False)
    monkeypatch.delenv(ENV_STRICT_VERSION, raising=False)
    monkeypatch.chdir(tmp_path)


def write_config(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


# ==============================================================================
# TEST: PackageConfig
# ==============================================================================


class TestPackageConfig:
    """Тесты неизменяемой конфигурации."""

    def test_defaults(self) -> None:
        config = PackageConfig()

        assert config.max_value_length == sys.maxsize
        assert config.strict_version is False

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            PackageConfig().strict_version = True  # type: ignore[misc]

    @pytest.mark.parametrize("value", [0, -1, sys.maxsize + 1])
    def test_length_out_of_range(self, value: int) -> None:
        with pytest.raises(ValueError):
            PackageConfig(max_value_length=value)

    @pytest.mark.parametrize("value", ["1024", 1.5, True, None])
    def test_length_wrong_type(self, value: object) -> None:
        with pytest.raises(TypeError):
            PackageConfig(max_value_length=value)  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", ["yes", 1, None])
    def test_strict_wrong_type(self, value: object) -> None:
        with pytest.raises(TypeError):
            PackageConfig(strict_version=value)  # type: ignore[arg-type]

    def test_dict_roundtrip(self) -> None:
        config = PackageConfig(max_value_length=4096, strict_version=True)

        assert PackageConfig.from_dict(config.to_dict()) == config

    def test_from_dict_ignores_unknown_keys(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="asymkeys"):
            config = PackageConfig.from_dict({"strict_version": True, "colour": "red"})

        assert config.strict_version is True
        assert "colour" in caplog.text


# ==============================================================================
# TEST: load_config
# ==============================================================================


class TestLoadConfig:
    """Тесты загрузки конфигурации."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "absent.json") == PackageConfig()

    def test_default_file_name(self, tmp_path: Path) -> None:
        """Без пути читается asymkeys.json из текущего каталога."""
        write_config(tmp_path / DEFAULT_CONFIG_FILE, {"max_value_length": 1 << 20})

        assert load_config().max_value_length == 1 << 20

    def test_values_from_file(self, tmp_path: Path) -> None:
        path = write_config(
            tmp_path / "c.json", {"max_value_length": 2048, "strict_version": True}
        )

        config = load_config(path)

        assert config == PackageConfig(max_value_length=2048, strict_version=True)

    def test_invalid_json(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{invalid json", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="asymkeys"):
            config = load_config(path)

        assert config == PackageConfig()
        assert "invalid JSON" in caplog.text

    def test_non_object_json(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "list.json", ["not", "a", "dict"])

        assert load_config(path) == PackageConfig()

    def test_invalid_value_in_file(self, tmp_path: Path) -> None:
        path = write_config(tmp_path / "c.json", {"max_value_length": 0})

        assert load_config(path) == PackageConfig()


# ==============================================================================
# TEST: Environment
# ==============================================================================


class TestEnvironment:
    """Тесты переопределения переменными окружения."""

    def test_env_overrides_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = write_config(tmp_path / "c.json", {"max_value_length": 2048})
        monkeypatch.setenv(ENV_MAX_VALUE_LENGTH, "512")

        assert load_config(path).max_value_length == 512

    @pytest.mark.parametrize(
        "raw, expected",
        [("1", True), ("true", True), ("YES", True), ("off", False), ("0", False)],
    )
    def test_strict_flag(
        self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
    ) -> None:
        monkeypatch.setenv(ENV_STRICT_VERSION, raw)

        assert load_config().strict_version is expected

    def test_invalid_length_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_MAX_VALUE_LENGTH, "lots")

        assert load_config().max_value_length == sys.maxsize

    def test_out_of_range_length_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_MAX_VALUE_LENGTH, "-5")

        assert load_config() == PackageConfig()

    def test_invalid_flag_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ENV_STRICT_VERSION, "maybe")

        assert load_config().strict_version is False
