"""
Протокольные интерфейсы упаковщиков и распаковщиков ключей.

Каждый кандидат возвращает один из трёх исходов:
    - Matched(value): кандидат обработал ключ/пакет, перебор завершён
    - NOT_APPLICABLE: "не мой тип ключа/алгоритм", пробуем следующего
    - исключение: жёсткая ошибка, перебор прерывается и ошибка
      пробрасывается вызывающему

NOT_APPLICABLE никогда не доходит до вызывающего реестр кода: реестр
либо находит подходящего кандидата, либо превращает исчерпание в
DispatchError.

Поддерживаемые варианты ключевых пар перечислены в KeyKind. Новый
алгоритм подключается реализацией AlgorithmPlugin и регистрацией в
RegistryBuilder.

Example:
    >>> class MyPacker:
    ...     def pack(self, private_key, public_key=None, **options):
    ...         if not isinstance(private_key, MyKey):
    ...             return NOT_APPLICABLE
    ...         return Matched(KeyPackage.create(...))
    >>> isinstance(MyPacker(), Packer)
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Generic,
    NamedTuple,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
    Union,
    runtime_checkable,
)

from asymkeys.core.package import KeyPackage

T = TypeVar("T")


# ==============================================================================
# OUTCOMES
# ==============================================================================


@dataclass(frozen=True)
class Matched(Generic[T]):
    """Кандидат успешно обработал вход."""

    value: T


class _NotApplicable:
    """Кандидат не распознал тип ключа или алгоритм."""

    _instance: Optional["_NotApplicable"] = None

    def __new__(cls) -> "_NotApplicable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"

    def __bool__(self) -> bool:
        return False


NOT_APPLICABLE = _NotApplicable()
NotApplicable = _NotApplicable


class UnpackedKey(NamedTuple):
    """
    Результат распаковки.

    Attributes:
        private_key: Закрытый ключ
        public_key: Открытый ключ, только если присутствовал в пакете
        extras: Дополнительные данные плагина (например, атрибуты пакета)
    """

    private_key: Any
    public_key: Any = None
    extras: Tuple[Any, ...] = ()


PackOutcome = Union[Matched[KeyPackage], _NotApplicable]
UnpackOutcome = Union[Matched[UnpackedKey], _NotApplicable]


# ==============================================================================
# CANDIDATE PROTOCOLS
# ==============================================================================


@runtime_checkable
class Packer(Protocol):
    """
    Упаковщик пары ключей в KeyPackage.

    Контракт:
        - чужой тип закрытого или открытого ключа -> NOT_APPLICABLE
        - version выводится из наличия открытого ключа
        - ошибки кодирования -> исключение AlgorithmError
    """

    def pack(
        self, private_key: Any, public_key: Any = None, **options: Any
    ) -> PackOutcome:
        ...


@runtime_checkable
class Unpacker(Protocol):
    """
    Распаковщик KeyPackage в пару ключей.

    Открытый ключ возвращается только если он присутствует в пакете.
    """

    def unpack(self, package: KeyPackage) -> UnpackOutcome:
        ...


# ==============================================================================
# ALGORITHM VARIANTS
# ==============================================================================


class KeyKind(str, Enum):
    """Закрытый набор поддерживаемых вариантов ключевых пар."""

    RSA = "rsa"
    DSA = "dsa"


@runtime_checkable
class AlgorithmPlugin(Protocol):
    """
    Плагин алгоритма: ровно одна пара packer/unpacker.

    Attributes:
        kind: Вариант ключевой пары
        algorithm_oid: OID алгоритма в точечной записи
        key_types: Типы закрытых ключей, которые обрабатывает packer
        packer: Упаковщик
        unpacker: Распаковщик
    """

    kind: KeyKind
    algorithm_oid: str
    key_types: Tuple[type, ...]
    packer: Packer
    unpacker: Unpacker


__all__ = [
    "Matched",
    "NotApplicable",
    "NOT_APPLICABLE",
    "UnpackedKey",
    "PackOutcome",
    "UnpackOutcome",
    "Packer",
    "Unpacker",
    "KeyKind",
    "AlgorithmPlugin",
]
