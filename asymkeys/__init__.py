"""
asymkeys
========

Асимметричные ключевые пакеты (RFC 5958 OneAsymmetricKey) для Python.

Этот пакет предоставляет:
    - Упаковку пар ключей RSA и DSA в OneAsymmetricKey и обратно
    - Потоковое чтение ровно одного DER-значения из бинарного потока
    - Расширяемые реестры packer'ов/unpacker'ов с перебором кандидатов
    - Сохранение и загрузку ключевых пакетов из файлов

Пример базового использования:
    >>> from cryptography.hazmat.primitives.asymmetric import rsa
    >>> import asymkeys
    >>>
    >>> priv = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    >>> data = asymkeys.encode(priv, priv.public_key())
    >>> priv2, pub2, extras = asymkeys.decode(data)

Пример собственного реестра:
    >>> from asymkeys import KeyPackager, RegistryBuilder, RSA_PLUGIN
    >>>
    >>> registry = RegistryBuilder().register_plugin(RSA_PLUGIN).build()
    >>> packager = KeyPackager(registry)
    >>> with open("key.der", "rb") as f:
    ...     priv, pub, extras, consumed = packager.read(f)

Управление логированием:
    >>> import os
    >>> os.environ["ASYMKEYS_LOG_LEVEL"] = "DEBUG"
    >>> os.environ["ASYMKEYS_LOG_FILE"] = "logs/asymkeys.log"

Лицензия: MIT
Python: 3.11+
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

# =============================================================================
# МЕТАДАННЫЕ ВЕРСИИ
# =============================================================================

__version__ = "0.1.0"
__author__ = "asymkeys Development Team"
__description__ = "RFC 5958 asymmetric key packages for RSA and DSA keys"
__license__ = "MIT"
__python_requires__ = ">=3.11"

VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0

# =============================================================================
# КОНФИГУРАЦИЯ ЛОГИРОВАНИЯ
# =============================================================================

LOGGER_NAMESPACE = "asymkeys"
ENV_LOG_LEVEL = "ASYMKEYS_LOG_LEVEL"
ENV_LOG_FILE = "ASYMKEYS_LOG_FILE"


def _setup_logging() -> None:
    """
    Инициализировать конфигурацию логирования пакета.

    Настраивает логгер "asymkeys" с:
    - Консольным обработчиком (stderr) для WARNING и выше
    - Ротирующим файловым обработчиком, если задана переменная
      окружения ASYMKEYS_LOG_FILE

    Уровень задаётся переменной окружения ASYMKEYS_LOG_LEVEL
    (DEBUG, INFO, WARNING, ERROR, CRITICAL; по умолчанию WARNING).

    Функция идемпотентна - повторные вызовы не имеют эффекта.
    """
    log_level_str = os.environ.get(ENV_LOG_LEVEL, "WARNING").upper()

    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    log_level = log_level_map.get(log_level_str, logging.WARNING)

    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    if package_logger.handlers:
        return

    package_logger.setLevel(log_level)

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    log_file = os.environ.get(ENV_LOG_FILE)
    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_path,
                maxBytes=10 * 1024 * 1024,  # 10 МБ
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)
        except OSError as e:
            package_logger.warning(
                f"Cannot initialize file logging: {e}. Using console only."
            )


def get_logger(module_name: str) -> logging.Logger:
    """
    Получить логгер в пространстве имён asymkeys.

    Аргументы:
        module_name: Обычно `__name__`. Имена вне пространства asymkeys
            получают префикс "asymkeys.".

    Пример:
        >>> get_logger("my_plugin").name
        'asymkeys.my_plugin'
    """
    if module_name == LOGGER_NAMESPACE or module_name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(module_name)
    if module_name == "__main__":
        return logging.getLogger(f"{LOGGER_NAMESPACE}.main")
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{module_name.lstrip('.')}")


_setup_logging()

# =============================================================================
# ПУБЛИЧНЫЙ API
# =============================================================================

from asymkeys.algorithms import (  # noqa: E402
    DSA_PLUGIN,
    RSA_PLUGIN,
    PartialDSAPrivateKey,
    PartialDSAPublicKey,
    pack_dsa,
    pack_rsa,
    unpack_dsa,
    unpack_rsa,
)
from asymkeys.config import PackageConfig, load_config  # noqa: E402
from asymkeys.core.der_reader import DERValueReader, read_der_value  # noqa: E402
from asymkeys.core.exceptions import (  # noqa: E402
    AlgorithmError,
    DispatchError,
    FramingError,
    KeyPackageError,
    NoPackerError,
    NoUnpackerError,
    RegistrationError,
    StructureError,
    TrailingDataError,
)
from asymkeys.core.package import (  # noqa: E402
    V1,
    V2,
    AlgorithmIdentifier,
    Attribute,
    KeyPackage,
    decode_package,
    encode_package,
)
from asymkeys.core.protocols import (  # noqa: E402
    NOT_APPLICABLE,
    KeyKind,
    Matched,
    UnpackedKey,
)
from asymkeys.core.registry import KeyPackageRegistry, RegistryBuilder  # noqa: E402
from asymkeys.packager import (  # noqa: E402
    KeyPackager,
    ReadResult,
    build_default_registry,
    decode,
    encode,
    get_default_packager,
    load,
    pack,
    read,
    save,
    unpack,
    write,
)

__all__ = [
    # Metadata
    "__version__",
    # Logging
    "get_logger",
    # Facade
    "KeyPackager",
    "ReadResult",
    "build_default_registry",
    "get_default_packager",
    "pack",
    "unpack",
    "encode",
    "decode",
    "read",
    "write",
    "save",
    "load",
    # Core
    "KeyPackage",
    "AlgorithmIdentifier",
    "Attribute",
    "V1",
    "V2",
    "encode_package",
    "decode_package",
    "DERValueReader",
    "read_der_value",
    "RegistryBuilder",
    "KeyPackageRegistry",
    "KeyKind",
    "Matched",
    "NOT_APPLICABLE",
    "UnpackedKey",
    # Plugins
    "RSA_PLUGIN",
    "DSA_PLUGIN",
    "PartialDSAPrivateKey",
    "PartialDSAPublicKey",
    "pack_rsa",
    "unpack_rsa",
    "pack_dsa",
    "unpack_dsa",
    # Config
    "PackageConfig",
    "load_config",
    # Errors
    "KeyPackageError",
    "FramingError",
    "StructureError",
    "TrailingDataError",
    "DispatchError",
    "NoPackerError",
    "NoUnpackerError",
    "AlgorithmError",
    "RegistrationError",
]
