"""
ASN.1-схемы асимметричного ключевого пакета (RFC 5958).

    OneAsymmetricKey ::= SEQUENCE {
      version                  Version,
      privateKeyAlgorithm      AlgorithmIdentifier,
      privateKey               OCTET STRING,
      attributes           [0] IMPLICIT Attributes OPTIONAL,
      publicKey            [1] IMPLICIT BIT STRING OPTIONAL
    }

    Version ::= INTEGER { v1(0), v2(1) }

    Attribute ::= SEQUENCE { type OBJECT IDENTIFIER, values SET OF ANY }

Схемы используются кодеком asymkeys.core.package; алгоритмо-специфичное
содержимое (параметры, ключи) остаётся непрозрачными байтами.
"""

from __future__ import annotations

from typing import Sequence, Tuple, Union

from pyasn1.codec.der import encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import namedtype, namedval, tag, univ

from asymkeys.core.exceptions import RegistrationError

V1 = 0  # PublicKey отсутствует
V2 = 1  # PublicKey присутствует

OIDLike = Union[str, Tuple[int, ...], Sequence[int], univ.ObjectIdentifier]


class Version(univ.Integer):
    namedValues = namedval.NamedValues(("v1", V1), ("v2", V2))


class AlgorithmIdentifier(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("algorithm", univ.ObjectIdentifier()),
        namedtype.OptionalNamedType("parameters", univ.Any()),
    )


class AttributeValues(univ.SetOf):
    componentType = univ.Any()


class Attribute(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("type", univ.ObjectIdentifier()),
        namedtype.NamedType("values", AttributeValues()),
    )


class Attributes(univ.SetOf):
    componentType = Attribute()
    tagSet = univ.SetOf.tagSet.tagImplicitly(
        tag.Tag(tag.tagClassContext, tag.tagFormatConstructed, 0)
    )


class PublicKey(univ.BitString):
    tagSet = univ.BitString.tagSet.tagImplicitly(
        tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 1)
    )


class OneAsymmetricKey(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("version", Version()),
        namedtype.NamedType("privateKeyAlgorithm", AlgorithmIdentifier()),
        namedtype.NamedType("privateKey", univ.OctetString()),
        namedtype.OptionalNamedType("attributes", Attributes()),
        namedtype.OptionalNamedType("publicKey", PublicKey()),
    )


# Прежнее (RFC 5208) имя OneAsymmetricKey
PrivateKeyInfo = OneAsymmetricKey


class AsymmetricKeyPackage(univ.SequenceOf):
    componentType = OneAsymmetricKey()


def to_oid(oid: OIDLike) -> univ.ObjectIdentifier:
    """Привести строку "1.2.3" или кортеж чисел к ObjectIdentifier."""
    if isinstance(oid, univ.ObjectIdentifier):
        return oid
    if isinstance(oid, str):
        return univ.ObjectIdentifier(oid)
    return univ.ObjectIdentifier(tuple(oid))


def canonical_oid(oid: OIDLike) -> bytes:
    """
    Каноническое DER-кодирование OID: ключ реестра распаковщиков.

    Два идентификатора совпадают тогда и только тогда, когда их
    кодирования побайтно равны.

    Raises:
        RegistrationError: Если OID не кодируется (пустой, некорректный)

    Example:
        >>> canonical_oid("1.2.840.113549.1.1.1").hex()
        '06092a864886f70d010101'
    """
    try:
        return encoder.encode(to_oid(oid))
    except (PyAsn1Error, TypeError, ValueError) as e:
        raise RegistrationError(f"cannot encode algorithm OID {oid!r}: {e}") from e


def dotted(oid: OIDLike) -> str:
    return ".".join(str(arc) for arc in to_oid(oid).asTuple())


__all__ = [
    "V1",
    "V2",
    "Version",
    "AlgorithmIdentifier",
    "Attribute",
    "AttributeValues",
    "Attributes",
    "PublicKey",
    "OneAsymmetricKey",
    "PrivateKeyInfo",
    "AsymmetricKeyPackage",
    "to_oid",
    "canonical_oid",
    "dotted",
]
