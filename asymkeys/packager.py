"""
Фасад: упаковка, кодирование и чтение ключевых пакетов.

KeyPackager объединяет реестр кандидатов, DER-кодек и потоковый
читатель DER-значений:

    encode(priv, pub) -> packers.pack -> encode_package -> bytes
    decode(bytes)     -> decode_package -> unpackers.unpack -> UnpackedKey
    read(stream)      -> DERValueReader -> decode

Функции уровня модуля (pack, unpack, encode, decode, read, write, save,
load) работают через общий экземпляр get_default_packager(), в котором
зарегистрированы плагины RSA и DSA.

Example:
    >>> from asymkeys import encode, decode
    >>> data = encode(private_key, private_key.public_key())
    >>> priv, pub, extras = decode(data)

Thread Safety:
    KeyPackager не имеет изменяемого состояния: все операции реентерабельны.
    get_default_packager() использует double-checked locking.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, BinaryIO, NamedTuple, Optional, Tuple, Union

from asymkeys.algorithms import BUILTIN_PLUGINS
from asymkeys.config import PackageConfig, load_config
from asymkeys.core.der_reader import DERValueReader
from asymkeys.core.package import KeyPackage, decode_package, encode_package
from asymkeys.core.protocols import UnpackedKey
from asymkeys.core.registry import KeyPackageRegistry, RegistryBuilder

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ReadResult(NamedTuple):
    """Результат read(): распакованная пара и число прочитанных байт."""

    private_key: Any
    public_key: Any
    extras: Tuple[Any, ...]
    consumed: int


class KeyPackager:
    """
    Точка входа для упаковки/распаковки ключевых пар.

    Args:
        registry: Собранный KeyPackageRegistry
        config: Параметры разбора (по умолчанию PackageConfig())
    """

    def __init__(
        self,
        registry: KeyPackageRegistry,
        config: Optional[PackageConfig] = None,
    ) -> None:
        self._registry = registry
        self._config = config or PackageConfig()

    @property
    def registry(self) -> KeyPackageRegistry:
        return self._registry

    @property
    def config(self) -> PackageConfig:
        return self._config

    def pack(self, private_key: Any, public_key: Any = None, **options: Any) -> KeyPackage:
        """Упаковать пару ключей в KeyPackage."""
        return self._registry.packers.pack(private_key, public_key, **options)

    def unpack(self, package: KeyPackage) -> UnpackedKey:
        """Распаковать KeyPackage в пару ключей."""
        return self._registry.unpackers.unpack(package)

    def encode(self, private_key: Any, public_key: Any = None, **options: Any) -> bytes:
        """
        Закодировать пару ключей в DER OneAsymmetricKey.

        Raises:
            MissingPrivateKeyError, NoPackerError: Нет подходящего packer'а
            AlgorithmError: Ошибка плагина
        """
        return encode_package(self.pack(private_key, public_key, **options))

    def decode(self, data: bytes) -> UnpackedKey:
        """
        Декодировать DER OneAsymmetricKey в пару ключей.

        Raises:
            MalformedPackageError, TrailingDataError: Ошибка структуры
            NoUnpackerError: Алгоритм не зарегистрирован
            AlgorithmError: Ошибка плагина
        """
        package = decode_package(data, strict_version=self._config.strict_version)
        return self.unpack(package)

    def write(
        self,
        stream: BinaryIO,
        private_key: Any,
        public_key: Any = None,
        **options: Any,
    ) -> int:
        """Записать закодированную пару в поток; вернуть число байт."""
        data = self.encode(private_key, public_key, **options)
        written = stream.write(data)
        return len(data) if written is None else written

    def read(self, stream: BinaryIO) -> ReadResult:
        """
        Прочитать из потока ровно один ключевой пакет и распаковать его.

        Поток остаётся позиционированным сразу за пакетом.

        Raises:
            FramingError: Ошибка выделения значения из потока
            OSError: Ошибка самого потока (без изменений)
            StructureError, DispatchError, AlgorithmError: см. decode()
        """
        reader = DERValueReader(stream, max_length=self._config.max_value_length)
        data = reader.read()
        private_key, public_key, extras = self.decode(data)
        return ReadResult(private_key, public_key, extras, len(data))

    def save(
        self,
        path: PathLike,
        private_key: Any,
        public_key: Any = None,
        **options: Any,
    ) -> int:
        """Сохранить пару ключей в файл."""
        data = self.encode(private_key, public_key, **options)
        with open(path, "wb") as f:
            f.write(data)
        logger.info(f"Saved key package to {path} ({len(data)} bytes)")
        return len(data)

    def load(self, path: PathLike) -> UnpackedKey:
        """Загрузить пару ключей из файла (первый пакет в файле)."""
        with open(path, "rb") as f:
            private_key, public_key, extras, consumed = self.read(f)
        logger.info(f"Loaded key package from {path} ({consumed} bytes)")
        return UnpackedKey(private_key, public_key, extras)


# ==============================================================================
# DEFAULT INSTANCE
# ==============================================================================


def build_default_registry() -> KeyPackageRegistry:
    """Собрать реестр со встроенными плагинами (RSA, DSA)."""
    builder = RegistryBuilder()
    for plugin in BUILTIN_PLUGINS:
        builder.register_plugin(plugin)
    return builder.build()


_default_packager: Optional[KeyPackager] = None
_default_lock = threading.Lock()


def get_default_packager() -> KeyPackager:
    """
    Общий KeyPackager со встроенными плагинами.

    Создаётся при первом вызове; конфигурация берётся из load_config().
    """
    global _default_packager
    if _default_packager is None:
        with _default_lock:
            if _default_packager is None:
                _default_packager = KeyPackager(build_default_registry(), load_config())
    return _default_packager


def reset_default_packager() -> None:
    """Сбросить общий экземпляр (только для тестов)."""
    global _default_packager
    with _default_lock:
        _default_packager = None
        logger.warning("Default KeyPackager reset (testing only!)")


def pack(private_key: Any, public_key: Any = None, **options: Any) -> KeyPackage:
    return get_default_packager().pack(private_key, public_key, **options)


def unpack(package: KeyPackage) -> UnpackedKey:
    return get_default_packager().unpack(package)


def encode(private_key: Any, public_key: Any = None, **options: Any) -> bytes:
    return get_default_packager().encode(private_key, public_key, **options)


def decode(data: bytes) -> UnpackedKey:
    return get_default_packager().decode(data)


def write(stream: BinaryIO, private_key: Any, public_key: Any = None, **options: Any) -> int:
    return get_default_packager().write(stream, private_key, public_key, **options)


def read(stream: BinaryIO) -> ReadResult:
    return get_default_packager().read(stream)


def save(path: PathLike, private_key: Any, public_key: Any = None, **options: Any) -> int:
    return get_default_packager().save(path, private_key, public_key, **options)


def load(path: PathLike) -> UnpackedKey:
    return get_default_packager().load(path)


__all__ = [
    "KeyPackager",
    "ReadResult",
    "build_default_registry",
    "get_default_packager",
    "reset_default_packager",
    "pack",
    "unpack",
    "encode",
    "decode",
    "write",
    "read",
    "save",
    "load",
]
