"""
DSA-ключи в асимметричном ключевом пакете (RFC 5958, RFC 3279 п. 2.3.2).

Формат:
    - privateKeyAlgorithm: id-dsa (1.2.840.10040.4.1), параметры Dss-Parms
      (P, Q, G); в RFC 3279 параметры необязательны
    - privateKey: INTEGER X (DER)
    - publicKey: INTEGER Y (DER), если передан открытый ключ

Отсутствующие параметры:
    Распаковщик не считает их ошибкой. Он возвращает неполные
    PartialDSAPrivateKey / PartialDSAPublicKey с незаданными P, Q, G.
    Вызывающий должен либо подставить параметры (complete()), либо
    отклонить ключ.

Примечание:
    При наличии параметров открытое значение закрытого ключа
    пересчитывается как G^X mod P. Параметры, которые cryptography не
    принимает (например, P нестандартной длины), не считаются ошибкой:
    возвращаются те же неполные ключи, но с заполненными P, Q, G и Y.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import dsa
from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ
from pyasn1_modules import rfc3279

from asymkeys.core.asn1 import canonical_oid
from asymkeys.core.exceptions import (
    InvalidKeyMaterialError,
    InvalidParametersError,
    KeyTypeMismatchError,
)
from asymkeys.core.package import AlgorithmIdentifier, Attribute, KeyPackage
from asymkeys.core.protocols import (
    NOT_APPLICABLE,
    KeyKind,
    Matched,
    PackOutcome,
    UnpackOutcome,
    UnpackedKey,
)

logger = logging.getLogger(__name__)

DSA_OID = "1.2.840.10040.4.1"

_KEY_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


# ==============================================================================
# INCOMPLETE KEYS
# ==============================================================================


@dataclass(frozen=True)
class PartialDSAPrivateKey:
    """
    Закрытый DSA-ключ, который нельзя представить как dsa.DSAPrivateKey.

    Attributes:
        x: Закрытое значение
        p, q, g: Доменные параметры (None, если их нет в пакете)
        y: Открытое значение G^X mod P (None без параметров)
    """

    x: int
    p: Optional[int] = None
    q: Optional[int] = None
    g: Optional[int] = None
    y: Optional[int] = None

    @property
    def has_parameters(self) -> bool:
        return None not in (self.p, self.q, self.g)

    def complete(self, parameters: dsa.DSAParameterNumbers) -> dsa.DSAPrivateKey:
        """
        Дополнить ключ доменными параметрами.

        Raises:
            InvalidKeyMaterialError: cryptography отклонила ключ
        """
        y = _public_value(parameters, self.x)
        try:
            return dsa.DSAPrivateNumbers(
                self.x, dsa.DSAPublicNumbers(y, parameters)
            ).private_key()
        except _KEY_ERRORS as e:
            raise InvalidKeyMaterialError(
                f"cannot build DSA private key: {e}", algorithm=DSA_OID
            ) from e

    def __repr__(self) -> str:
        # X не выводим
        return f"PartialDSAPrivateKey(has_parameters={self.has_parameters})"


@dataclass(frozen=True)
class PartialDSAPublicKey:
    """Открытый DSA-ключ, который нельзя представить как dsa.DSAPublicKey."""

    y: int
    p: Optional[int] = None
    q: Optional[int] = None
    g: Optional[int] = None

    @property
    def has_parameters(self) -> bool:
        return None not in (self.p, self.q, self.g)

    def complete(self, parameters: dsa.DSAParameterNumbers) -> dsa.DSAPublicKey:
        try:
            return dsa.DSAPublicNumbers(self.y, parameters).public_key()
        except _KEY_ERRORS as e:
            raise InvalidKeyMaterialError(
                f"cannot build DSA public key: {e}", algorithm=DSA_OID
            ) from e


AnyDSAPrivateKey = Union[dsa.DSAPrivateKey, PartialDSAPrivateKey]
AnyDSAPublicKey = Union[dsa.DSAPublicKey, PartialDSAPublicKey]


# ==============================================================================
# DER HELPERS
# ==============================================================================


def _encode_integer(value: int) -> bytes:
    return encoder.encode(univ.Integer(value))


def _decode_integer(data: bytes, what: str) -> int:
    try:
        value, rest = decoder.decode(data, asn1Spec=univ.Integer())
    except PyAsn1Error as e:
        raise InvalidKeyMaterialError(
            f"cannot unmarshal {what}: {e}", algorithm=DSA_OID
        ) from e
    if rest:
        raise InvalidKeyMaterialError(
            f"extra data after DSA {what}",
            algorithm=DSA_OID,
            context={"trailing": len(rest)},
        )
    return int(value)


def _encode_parameters(numbers: dsa.DSAParameterNumbers) -> bytes:
    params = rfc3279.Dss_Parms()
    params["p"] = numbers.p
    params["q"] = numbers.q
    params["g"] = numbers.g
    return encoder.encode(params)


def _decode_parameters(data: Optional[bytes]) -> Optional[dsa.DSAParameterNumbers]:
    if not data:
        return None
    try:
        params, rest = decoder.decode(data, asn1Spec=rfc3279.Dss_Parms())
    except PyAsn1Error as e:
        raise InvalidParametersError(
            f"cannot unmarshal DSA parameters: {e}", algorithm=DSA_OID
        ) from e
    if rest:
        raise InvalidParametersError(
            "extra data after DSA parameters",
            algorithm=DSA_OID,
            context={"trailing": len(rest)},
        )
    p = int(params["p"])
    if p < 2:
        raise InvalidParametersError(
            "DSA modulus P must be greater than 1", algorithm=DSA_OID
        )
    return dsa.DSAParameterNumbers(p=p, q=int(params["q"]), g=int(params["g"]))


def _public_value(parameters: dsa.DSAParameterNumbers, x: int) -> int:
    """G^X mod P; для отрицательного X нужен обратный к G по модулю P."""
    try:
        return pow(parameters.g, x, parameters.p)
    except ValueError as e:
        raise InvalidKeyMaterialError(
            f"cannot compute DSA public value: {e}", algorithm=DSA_OID
        ) from e


def _private_key(x: int, parameters: dsa.DSAParameterNumbers) -> AnyDSAPrivateKey:
    y = _public_value(parameters, x)
    try:
        return dsa.DSAPrivateNumbers(x, dsa.DSAPublicNumbers(y, parameters)).private_key()
    except _KEY_ERRORS as e:
        logger.warning(
            f"cryptography rejected DSA private key numbers ({e}); "
            f"returning incomplete key"
        )
        return PartialDSAPrivateKey(x, parameters.p, parameters.q, parameters.g, y)


def _public_key(y: int, parameters: dsa.DSAParameterNumbers) -> AnyDSAPublicKey:
    try:
        return dsa.DSAPublicNumbers(y, parameters).public_key()
    except _KEY_ERRORS as e:
        logger.warning(
            f"cryptography rejected DSA public key numbers ({e}); "
            f"returning incomplete key"
        )
        return PartialDSAPublicKey(y, parameters.p, parameters.q, parameters.g)


# ==============================================================================
# PACKER / UNPACKER
# ==============================================================================


class DSAPacker:
    """Упаковщик dsa.DSAPrivateKey (+ необязательный dsa.DSAPublicKey)."""

    def pack(
        self,
        private_key: Any,
        public_key: Any = None,
        *,
        attributes: Iterable[Attribute] = (),
        **options: Any,
    ) -> PackOutcome:
        # Прочие опции предназначены другим упаковщикам
        if not isinstance(private_key, dsa.DSAPrivateKey):
            return NOT_APPLICABLE
        if public_key is not None and not isinstance(public_key, dsa.DSAPublicKey):
            return NOT_APPLICABLE

        numbers = private_key.private_numbers()
        parameters = _encode_parameters(
            numbers.public_numbers.parameter_numbers
        )
        # RFC 5958, п. 2: "a DSA key is an INTEGER"
        private_bytes = _encode_integer(numbers.x)
        public_bytes: Optional[bytes] = None
        if public_key is not None:
            public_bytes = _encode_integer(public_key.public_numbers().y)

        logger.debug(
            f"Packing DSA-{private_key.key_size} key "
            f"(public={public_bytes is not None})"
        )
        return Matched(
            KeyPackage.create(
                AlgorithmIdentifier(DSA_OID, parameters),
                private_key=private_bytes,
                public_key=public_bytes,
                attributes=attributes,
            )
        )


class DSAUnpacker:
    """
    Распаковщик пакетов id-dsa.

    Версия пакета не проверяется: наличие открытого ключа определяется
    только по полю publicKey.
    """

    def unpack(self, package: KeyPackage) -> UnpackOutcome:
        if package.algorithm_key != canonical_oid(DSA_OID):
            return NOT_APPLICABLE

        parameters = _decode_parameters(package.private_key_algorithm.parameters)
        x = _decode_integer(package.private_key, "private key")
        y: Optional[int] = None
        if package.public_key is not None:
            y = _decode_integer(package.public_key, "public key")
        extras = tuple(package.attributes)

        if parameters is None:
            logger.warning(
                "DSA key package has no domain parameters; "
                "returning incomplete key"
            )
            partial_public = PartialDSAPublicKey(y) if y is not None else None
            return Matched(UnpackedKey(PartialDSAPrivateKey(x), partial_public, extras))

        private_key = _private_key(x, parameters)
        public_key = _public_key(y, parameters) if y is not None else None
        return Matched(UnpackedKey(private_key, public_key, extras))


class DSAPlugin:
    kind = KeyKind.DSA
    algorithm_oid = DSA_OID
    key_types: Tuple[type, ...] = (dsa.DSAPrivateKey,)

    def __init__(self) -> None:
        self.packer = DSAPacker()
        self.unpacker = DSAUnpacker()


DSA_PLUGIN = DSAPlugin()


def pack_dsa(
    private_key: dsa.DSAPrivateKey,
    public_key: Optional[dsa.DSAPublicKey] = None,
    *,
    attributes: Iterable[Attribute] = (),
) -> KeyPackage:
    """
    Упаковать DSA-пару без обращения к реестру.

    Raises:
        KeyTypeMismatchError: Ключи не являются DSA-ключами
    """
    outcome = DSA_PLUGIN.packer.pack(private_key, public_key, attributes=attributes)
    if not isinstance(outcome, Matched):
        raise KeyTypeMismatchError("not a DSA key", algorithm=DSA_OID)
    return outcome.value


def unpack_dsa(
    package: KeyPackage,
) -> Tuple[AnyDSAPrivateKey, Optional[AnyDSAPublicKey], Tuple[Any, ...]]:
    """
    Распаковать пакет строго в DSA-пару.

    Raises:
        KeyTypeMismatchError: Пакет другого алгоритма
        InvalidParametersError, InvalidKeyMaterialError: Повреждённые данные
    """
    outcome = DSA_PLUGIN.unpacker.unpack(package)
    if not isinstance(outcome, Matched):
        raise KeyTypeMismatchError(
            "not a DSA key", algorithm=package.private_key_algorithm.algorithm
        )
    return outcome.value


__all__ = [
    "DSA_OID",
    "PartialDSAPrivateKey",
    "PartialDSAPublicKey",
    "DSAPacker",
    "DSAUnpacker",
    "DSAPlugin",
    "DSA_PLUGIN",
    "pack_dsa",
    "unpack_dsa",
]
