# -*- coding: utf-8 -*-
"""
RU: Конфигурация чтения и разбора ключевых пакетов.
EN: Configuration of key package reading and parsing.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Final, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE: Final[str] = "asymkeys.json"

ENV_MAX_VALUE_LENGTH: Final[str] = "ASYMKEYS_MAX_VALUE_LENGTH"
ENV_STRICT_VERSION: Final[str] = "ASYMKEYS_STRICT_VERSION"

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class PackageConfig:
    """
    Key package processing parameters.

    Attributes:
        max_value_length: Largest DER content length the stream reader
            accepts. Bounded above by sys.maxsize (signed size type).
        strict_version: Reject packages whose version disagrees with
            public key presence instead of logging a warning.

    Examples:
        >>> PackageConfig().strict_version
        False

        >>> PackageConfig(max_value_length=1 << 20).max_value_length
        1048576
    """

    max_value_length: int = sys.maxsize
    strict_version: bool = False

    def __post_init__(self) -> None:
        """Validate parameters."""
        if isinstance(self.max_value_length, bool) or not isinstance(
            self.max_value_length, int
        ):
            raise TypeError("max_value_length must be int")
        if self.max_value_length < 1:
            raise ValueError("max_value_length must be >= 1")
        if self.max_value_length > sys.maxsize:
            raise ValueError("max_value_length must be <= sys.maxsize")
        if not isinstance(self.strict_version, bool):
            raise TypeError("strict_version must be bool")

    @staticmethod
    def from_dict(values: Dict[str, Any]) -> "PackageConfig":
        """
        Create configuration from a mapping, ignoring unknown keys.

        Raises:
            TypeError, ValueError: On invalid values.
        """
        known = {k: v for k, v in values.items() if k in _FIELDS}
        unknown = sorted(set(values) - set(known))
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        return PackageConfig(**known)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_FIELDS: Final[frozenset[str]] = frozenset(PackageConfig.__dataclass_fields__)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def _apply_env(config: PackageConfig) -> PackageConfig:
    overrides: Dict[str, Any] = {}

    raw_length = os.environ.get(ENV_MAX_VALUE_LENGTH)
    if raw_length:
        try:
            overrides["max_value_length"] = int(raw_length)
        except ValueError:
            logger.warning(
                f"{ENV_MAX_VALUE_LENGTH}={raw_length!r} is not an integer; ignored"
            )

    raw_strict = os.environ.get(ENV_STRICT_VERSION)
    if raw_strict:
        try:
            overrides["strict_version"] = _parse_bool(ENV_STRICT_VERSION, raw_strict)
        except ValueError as e:
            logger.warning(f"{e}; ignored")

    if not overrides:
        return config
    try:
        return replace(config, **overrides)
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid environment override: {e}. Using file/default config.")
        return config


def load_config(config_path: Optional[Path] = None) -> PackageConfig:
    """
    Загрузить конфигурацию из JSON-файла и переменных окружения.

    Порядок приоритета: переменные окружения > файл > значения по умолчанию.
    Отсутствующий, нечитаемый или некорректный файл не является ошибкой:
    записывается предупреждение и используются значения по умолчанию.

    Args:
        config_path: Путь к JSON-файлу. Если None, ищется asymkeys.json
            в текущем каталоге.

    Returns:
        Проверенный PackageConfig.

    Example:
        >>> config = load_config(Path("asymkeys.json"))
        >>> config.strict_version
        False
    """
    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_FILE)

    config = PackageConfig()

    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                user_config = json.load(f)

            if not isinstance(user_config, dict):
                raise ValueError(
                    f"config file must contain a JSON object, "
                    f"got {type(user_config).__name__}"
                )

            config = PackageConfig.from_dict(user_config)
            logger.info(f"Configuration loaded from {config_path}")

        except json.JSONDecodeError as e:
            logger.warning(
                f"Cannot parse {config_path}: invalid JSON at line {e.lineno}, "
                f"column {e.colno}. Using default configuration."
            )
        except OSError as e:
            logger.warning(
                f"Cannot read {config_path}: {e}. Using default configuration."
            )
        except (TypeError, ValueError) as e:
            logger.warning(
                f"Invalid configuration: {e}. Using default configuration."
            )
    else:
        logger.debug(f"Config file {config_path} not found, using defaults")

    return _apply_env(config)


__all__ = [
    "PackageConfig",
    "load_config",
    "DEFAULT_CONFIG_FILE",
    "ENV_MAX_VALUE_LENGTH",
    "ENV_STRICT_VERSION",
]
