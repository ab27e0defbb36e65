"""
Реестры упаковщиков и распаковщиков ключевых пакетов.

RegistryBuilder собирает кандидатов на этапе инициализации, build()
возвращает неизменяемый KeyPackageRegistry. После сборки реестры только
читаются, поэтому поиск не требует блокировок и безопасен из любых потоков.

Обеспечивает:
- Регистрацию packer'ов по типам закрытых ключей (порядок сохраняется)
- Регистрацию unpacker'ов по каноническому DER-кодированию OID
- Перебор кандидатов до первого Matched; NOT_APPLICABLE передаёт ход следующему;
  исключение сразу пробрасывается наружу
- Изоляцию тестов: каждый тест собирает собственный реестр

Example:
    >>> builder = RegistryBuilder()
    >>> builder.register_plugin(RSA_PLUGIN)
    >>> registry = builder.build()
    >>> pkg = registry.packers.pack(private_key, public_key)
    >>> priv, pub, extras = registry.unpackers.unpack(pkg)

Thread Safety:
    Методы RegistryBuilder защищены RLock. Собранные реестры неизменяемы.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from asymkeys.core.asn1 import OIDLike, canonical_oid, dotted
from asymkeys.core.exceptions import (
    MissingPrivateKeyError,
    NoPackerError,
    NoUnpackerError,
    RegistrationError,
)
from asymkeys.core.package import KeyPackage
from asymkeys.core.protocols import (
    AlgorithmPlugin,
    Matched,
    NotApplicable,
    Packer,
    UnpackedKey,
    Unpacker,
)

logger = logging.getLogger(__name__)


def _type_name(value: Any) -> str:
    return type(value).__qualname__


# ==============================================================================
# PACKER REGISTRY
# ==============================================================================


class PackerRegistry:
    """
    Неизменяемое отображение: тип закрытого ключа -> кандидаты-упаковщики.

    Кандидаты для ключа: сначала зарегистрированные за его точным типом,
    затем за прочими зарегистрированными типами, экземпляром которых он
    является (абстрактные интерфейсы вроде rsa.RSAPrivateKey).
    Внутри каждого типа порядок регистрации сохраняется.
    """

    def __init__(self, entries: Mapping[type, Tuple[Packer, ...]]) -> None:
        self._entries: Mapping[type, Tuple[Packer, ...]] = MappingProxyType(
            dict(entries)
        )

    @property
    def entries(self) -> Mapping[type, Tuple[Packer, ...]]:
        return self._entries

    def candidates(self, private_key: Any) -> Tuple[Packer, ...]:
        key_type = type(private_key)
        found: List[Packer] = list(self._entries.get(key_type, ()))
        for registered, packers in self._entries.items():
            if registered is key_type or not isinstance(private_key, registered):
                continue
            found.extend(p for p in packers if p not in found)
        return tuple(found)

    def pack(
        self, private_key: Any, public_key: Any = None, **options: Any
    ) -> KeyPackage:
        """
        Упаковать пару ключей первым подходящим кандидатом.

        Args:
            private_key: Закрытый ключ
            public_key: Открытый ключ (опционально)
            **options: Опции, передаваемые кандидатам (например, attributes)

        Returns:
            KeyPackage

        Raises:
            MissingPrivateKeyError: private_key is None
            NoPackerError: Нет кандидатов или все вернули NOT_APPLICABLE
            AlgorithmError: Жёсткая ошибка кандидата (пробрасывается как есть)
        """
        if private_key is None:
            raise MissingPrivateKeyError()

        candidates = self.candidates(private_key)
        for packer in candidates:
            outcome = packer.pack(private_key, public_key, **options)
            if isinstance(outcome, NotApplicable):
                logger.debug(
                    f"{_type_name(packer)} skipped {_type_name(private_key)}"
                )
                continue
            if isinstance(outcome, Matched):
                logger.debug(
                    f"{_type_name(packer)} packed {_type_name(private_key)}"
                )
                return outcome.value
            raise TypeError(
                f"{_type_name(packer)}.pack returned {_type_name(outcome)}, "
                f"expected Matched or NOT_APPLICABLE"
            )

        raise NoPackerError(_type_name(private_key), tried=len(candidates))


# ==============================================================================
# UNPACKER REGISTRY
# ==============================================================================


class UnpackerRegistry:
    """Неизменяемое отображение: DER-кодирование OID -> кандидаты-распаковщики."""

    def __init__(self, entries: Mapping[bytes, Tuple[Unpacker, ...]]) -> None:
        self._entries: Mapping[bytes, Tuple[Unpacker, ...]] = MappingProxyType(
            dict(entries)
        )

    @property
    def entries(self) -> Mapping[bytes, Tuple[Unpacker, ...]]:
        return self._entries

    def candidates(self, algorithm: OIDLike) -> Tuple[Unpacker, ...]:
        return self._entries.get(canonical_oid(algorithm), ())

    def unpack(self, package: KeyPackage) -> UnpackedKey:
        """
        Распаковать пакет первым подходящим кандидатом.

        Raises:
            TypeError: package is None (ошибка программиста)
            NoUnpackerError: Нет кандидатов или все вернули NOT_APPLICABLE
            AlgorithmError: Жёсткая ошибка кандидата (пробрасывается как есть)
        """
        if package is None:
            raise TypeError("key package is None")

        algorithm = package.private_key_algorithm.algorithm
        candidates = self._entries.get(package.algorithm_key, ())
        for unpacker in candidates:
            outcome = unpacker.unpack(package)
            if isinstance(outcome, NotApplicable):
                logger.debug(f"{_type_name(unpacker)} skipped algorithm {algorithm}")
                continue
            if isinstance(outcome, Matched):
                logger.debug(f"{_type_name(unpacker)} unpacked algorithm {algorithm}")
                return outcome.value
            raise TypeError(
                f"{_type_name(unpacker)}.unpack returned {_type_name(outcome)}, "
                f"expected Matched or NOT_APPLICABLE"
            )

        raise NoUnpackerError(algorithm, tried=len(candidates))


# ==============================================================================
# REGISTRY + BUILDER
# ==============================================================================


@dataclass(frozen=True)
class KeyPackageRegistry:
    """Собранная пара реестров."""

    packers: PackerRegistry
    unpackers: UnpackerRegistry


class RegistryBuilder:
    """
    Построитель KeyPackageRegistry.

    Регистрация выполняется при инициализации: некорректный кандидат считается
    дефектом плагина и приводит к RegistrationError.

    Example:
        >>> builder = RegistryBuilder()
        >>> builder.register_packer(RSAPacker(), rsa.RSAPrivateKey)
        >>> builder.register_unpacker(RSAUnpacker(), "1.2.840.113549.1.1.1")
        >>> registry = builder.build()
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._packers: Dict[type, List[Packer]] = {}
        self._unpackers: Dict[bytes, List[Unpacker]] = {}

    def register_packer(self, packer: Packer, *key_types: type) -> "RegistryBuilder":
        """
        Зарегистрировать packer за указанными типами закрытых ключей.

        Повторные регистрации за тем же типом пробуются после предыдущих.

        Raises:
            RegistrationError: packer None / не Packer, тип None / не type,
                список типов пуст
        """
        if packer is None:
            raise RegistrationError("packer is None")
        if not isinstance(packer, Packer):
            raise RegistrationError(
                f"{_type_name(packer)} does not implement Packer protocol"
            )
        if not key_types:
            raise RegistrationError("at least one key type is required")
        for key_type in key_types:
            if key_type is None:
                raise RegistrationError("key type is None")
            if not isinstance(key_type, type):
                raise RegistrationError(
                    f"key type must be a class, got {_type_name(key_type)}"
                )

        with self._lock:
            for key_type in key_types:
                self._packers.setdefault(key_type, []).append(packer)
                logger.info(
                    f"Registered packer {_type_name(packer)} "
                    f"for {key_type.__qualname__}"
                )
        return self

    def register_unpacker(
        self, unpacker: Unpacker, *algorithms: OIDLike
    ) -> "RegistryBuilder":
        """
        Зарегистрировать unpacker за указанными OID алгоритмов.

        Raises:
            RegistrationError: unpacker None / не Unpacker, OID не кодируется,
                список OID пуст
        """
        if unpacker is None:
            raise RegistrationError("unpacker is None")
        if not isinstance(unpacker, Unpacker):
            raise RegistrationError(
                f"{_type_name(unpacker)} does not implement Unpacker protocol"
            )
        if not algorithms:
            raise RegistrationError("at least one algorithm OID is required")
        keys = [(canonical_oid(a), dotted(a)) for a in algorithms]

        with self._lock:
            for key, name in keys:
                self._unpackers.setdefault(key, []).append(unpacker)
                logger.info(f"Registered unpacker {_type_name(unpacker)} for {name}")
        return self

    def register_plugin(self, plugin: AlgorithmPlugin) -> "RegistryBuilder":
        """Зарегистрировать пару packer/unpacker плагина алгоритма."""
        if plugin is None or not isinstance(plugin, AlgorithmPlugin):
            raise RegistrationError(
                f"{_type_name(plugin)} does not implement AlgorithmPlugin protocol"
            )
        with self._lock:
            self.register_packer(plugin.packer, *plugin.key_types)
            self.register_unpacker(plugin.unpacker, plugin.algorithm_oid)
        logger.info(f"Registered {plugin.kind.value} plugin ({plugin.algorithm_oid})")
        return self

    def build(self) -> KeyPackageRegistry:
        """Собрать неизменяемый реестр из текущих регистраций."""
        with self._lock:
            return KeyPackageRegistry(
                packers=PackerRegistry(
                    {t: tuple(p) for t, p in self._packers.items()}
                ),
                unpackers=UnpackerRegistry(
                    {k: tuple(u) for k, u in self._unpackers.items()}
                ),
            )


__all__: list[str] = [
    "PackerRegistry",
    "UnpackerRegistry",
    "KeyPackageRegistry",
    "RegistryBuilder",
]
