"""
Ключевой пакет и его DER-кодек.

KeyPackage: неизменяемое Python-представление OneAsymmetricKey:
один закрытый ключ, необязательный открытый ключ и необязательные
атрибуты. Кодек переводит его в каноническое DER-кодирование и обратно.

Инварианты:
    - KeyPackage.create() выводит version из наличия открытого ключа
      (V2 при наличии, V1 при отсутствии)
    - encode_package() детерминирован (одна структура даёт одни и те же байты);
      пустые необязательные поля опускаются
    - decode_package() принимает ровно одно значение без хвостовых байт

Example:
    >>> pkg = KeyPackage.create(
    ...     AlgorithmIdentifier("1.2.840.113549.1.1.1", b"\\x05\\x00"),
    ...     private_key=b"...",
    ... )
    >>> pkg.version
    0
    >>> decode_package(encode_package(pkg)) == pkg
    True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ

from asymkeys.core import asn1
from asymkeys.core.asn1 import V1, V2, OIDLike, canonical_oid, dotted
from asymkeys.core.exceptions import (
    MalformedPackageError,
    RegistrationError,
    TrailingDataError,
    VersionMismatchError,
)

logger = logging.getLogger(__name__)


# ==============================================================================
# DATACLASSES
# ==============================================================================


@dataclass(frozen=True)
class AlgorithmIdentifier:
    """
    Идентификатор алгоритма закрытого ключа.

    Attributes:
        algorithm: OID в точечной записи ("1.2.840.10040.4.1")
        parameters: DER-кодирование параметров или None, если их нет
    """

    algorithm: str
    parameters: Optional[bytes] = None

    def __post_init__(self) -> None:
        # Нормализация: кортежи и ObjectIdentifier -> точечная строка
        object.__setattr__(self, "algorithm", dotted(self.algorithm))

    @property
    def key(self) -> bytes:
        """Каноническое DER-кодирование OID (ключ реестра)."""
        try:
            return canonical_oid(self.algorithm)
        except RegistrationError as e:
            raise MalformedPackageError(
                f"cannot encode algorithm OID {self.algorithm}",
                algorithm=self.algorithm,
            ) from e


@dataclass(frozen=True)
class Attribute:
    """
    Атрибут пакета: OID типа и набор непрозрачных DER-значений.

    Например, сертификаты, относящиеся к открытому ключу.
    """

    type: str
    values: Tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", dotted(self.type))
        object.__setattr__(self, "values", tuple(bytes(v) for v in self.values))


@dataclass(frozen=True)
class KeyPackage:
    """
    Один закрытый ключ в контейнере RFC 5958.

    Attributes:
        version: V1 (0) без открытого ключа, V2 (1) с открытым ключом
        private_key_algorithm: OID алгоритма и его параметры
        private_key: Непрозрачные байты закрытого ключа (формат задаёт плагин)
        attributes: Атрибуты (порядок не значим)
        public_key: Содержимое BIT STRING открытого ключа или None

    Note:
        Прямой конструктор не проверяет согласованность version и
        public_key: так можно представить чужой пакет как есть.
        Для собственных пакетов используйте create().
    """

    version: int
    private_key_algorithm: AlgorithmIdentifier
    private_key: bytes
    attributes: Tuple[Attribute, ...] = field(default_factory=tuple)
    public_key: Optional[bytes] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", tuple(self.attributes))

    @classmethod
    def create(
        cls,
        private_key_algorithm: AlgorithmIdentifier,
        private_key: bytes,
        public_key: Optional[bytes] = None,
        attributes: Iterable[Attribute] = (),
    ) -> "KeyPackage":
        """Собрать пакет, выведя version из наличия открытого ключа."""
        return cls(
            version=V2 if public_key is not None else V1,
            private_key_algorithm=private_key_algorithm,
            private_key=private_key,
            attributes=tuple(attributes),
            public_key=public_key,
        )

    @property
    def has_public_key(self) -> bool:
        return self.public_key is not None

    @property
    def algorithm_key(self) -> bytes:
        return self.private_key_algorithm.key

    def is_consistent(self) -> bool:
        """True если version согласуется с наличием открытого ключа."""
        return self.version == (V2 if self.has_public_key else V1)


# Прежнее (RFC 5208) имя
PrivateKeyInfo = KeyPackage


# ==============================================================================
# ENCODING
# ==============================================================================


def _to_asn1(pkg: KeyPackage) -> asn1.OneAsymmetricKey:
    record = asn1.OneAsymmetricKey()
    record["version"] = pkg.version

    algorithm = record["privateKeyAlgorithm"]
    algorithm["algorithm"] = asn1.to_oid(pkg.private_key_algorithm.algorithm)
    if pkg.private_key_algorithm.parameters is not None:
        algorithm["parameters"] = univ.Any(pkg.private_key_algorithm.parameters)

    record["privateKey"] = pkg.private_key

    if pkg.attributes:
        attributes = record["attributes"]
        for i, attr in enumerate(pkg.attributes):
            item = asn1.Attribute()
            item["type"] = asn1.to_oid(attr.type)
            values = item["values"]
            for j, value in enumerate(attr.values):
                values.setComponentByPosition(j, univ.Any(value))
            attributes.setComponentByPosition(i, item)

    if pkg.public_key is not None:
        record["publicKey"] = asn1.PublicKey.fromOctetString(pkg.public_key)

    return record


def encode_package(pkg: KeyPackage) -> bytes:
    """
    Закодировать пакет в DER.

    Raises:
        MalformedPackageError: Если поля не кодируются (например, параметры
            алгоритма не являются корректным DER-значением)
    """
    try:
        return encoder.encode(_to_asn1(pkg))
    except PyAsn1Error as e:
        raise MalformedPackageError(
            f"cannot encode key package: {e}",
            algorithm=pkg.private_key_algorithm.algorithm,
        ) from e


def encode_package_sequence(packages: Sequence[KeyPackage]) -> bytes:
    """Закодировать AsymmetricKeyPackage (SEQUENCE OF OneAsymmetricKey)."""
    record = asn1.AsymmetricKeyPackage()
    for i, pkg in enumerate(packages):
        record.setComponentByPosition(i, _to_asn1(pkg))
    try:
        return encoder.encode(record)
    except PyAsn1Error as e:
        raise MalformedPackageError(f"cannot encode key package sequence: {e}") from e


# ==============================================================================
# DECODING
# ==============================================================================


def _optional(record: univ.Sequence, name: str) -> Optional[Any]:
    component = record.getComponentByName(name, default=None, instantiate=False)
    if component is None or not component.isValue:
        return None
    return component


def _from_asn1(record: asn1.OneAsymmetricKey) -> KeyPackage:
    algorithm = record["privateKeyAlgorithm"]
    parameters = _optional(algorithm, "parameters")

    attributes: List[Attribute] = []
    raw_attributes = _optional(record, "attributes")
    if raw_attributes is not None:
        for item in raw_attributes:
            attributes.append(
                Attribute(
                    type=str(item["type"]),
                    values=tuple(v.asOctets() for v in item["values"]),
                )
            )

    public_key: Optional[bytes] = None
    raw_public = _optional(record, "publicKey")
    if raw_public is not None:
        if len(raw_public) % 8:
            raise MalformedPackageError(
                "public key bit string is not octet-aligned",
                context={"bits": len(raw_public)},
            )
        public_key = raw_public.asOctets()

    return KeyPackage(
        version=int(record["version"]),
        private_key_algorithm=AlgorithmIdentifier(
            algorithm=str(algorithm["algorithm"]),
            parameters=parameters.asOctets() if parameters is not None else None,
        ),
        private_key=record["privateKey"].asOctets(),
        attributes=tuple(attributes),
        public_key=public_key,
    )


def _check_version(pkg: KeyPackage, strict: bool) -> None:
    if pkg.is_consistent():
        return
    if strict:
        raise VersionMismatchError(pkg.version, pkg.has_public_key)
    logger.warning(
        f"Key package version {pkg.version} disagrees with public key "
        f"presence ({pkg.has_public_key}); accepting"
    )


def decode_package(data: bytes, *, strict_version: bool = False) -> KeyPackage:
    """
    Разобрать DER-буфер, содержащий ровно один OneAsymmetricKey.

    Args:
        data: DER-кодирование пакета
        strict_version: Отклонять пакеты с несогласованной версией

    Raises:
        MalformedPackageError: Буфер не разбирается как OneAsymmetricKey
        TrailingDataError: После значения остались байты
        VersionMismatchError: strict_version=True и версия не согласована
    """
    try:
        record, rest = decoder.decode(bytes(data), asn1Spec=asn1.OneAsymmetricKey())
        pkg = _from_asn1(record)
    except PyAsn1Error as e:
        raise MalformedPackageError(f"cannot parse key package: {e}") from e

    if rest:
        raise TrailingDataError(len(rest))

    _check_version(pkg, strict_version)
    return pkg


def decode_package_sequence(
    data: bytes, *, strict_version: bool = False
) -> List[KeyPackage]:
    """Разобрать AsymmetricKeyPackage (SEQUENCE OF OneAsymmetricKey)."""
    try:
        record, rest = decoder.decode(
            bytes(data), asn1Spec=asn1.AsymmetricKeyPackage()
        )
        packages = [_from_asn1(item) for item in record]
    except PyAsn1Error as e:
        raise MalformedPackageError(f"cannot parse key package sequence: {e}") from e

    if rest:
        raise TrailingDataError(len(rest), what="key package sequence")

    for pkg in packages:
        _check_version(pkg, strict_version)
    return packages


__all__ = [
    "V1",
    "V2",
    "AlgorithmIdentifier",
    "Attribute",
    "KeyPackage",
    "PrivateKeyInfo",
    "OIDLike",
    "encode_package",
    "decode_package",
    "encode_package_sequence",
    "decode_package_sequence",
]
