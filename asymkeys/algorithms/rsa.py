"""
RSA-ключи в асимметричном ключевом пакете (RFC 5958, RFC 8017).

Формат:
    - privateKeyAlgorithm: rsaEncryption (1.2.840.113549.1.1.1), параметры NULL
    - privateKey: PKCS#1 RSAPrivateKey (DER)
    - publicKey: PKCS#1 RSAPublicKey (DER), если передан открытый ключ

Ключевая арифметика и (де)сериализация PKCS#1 выполняются библиотекой
cryptography.

Examples:
    >>> from cryptography.hazmat.primitives.asymmetric import rsa
    >>> priv = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    >>> outcome = RSAPacker().pack(priv, priv.public_key())
    >>> outcome.value.version
    1
    >>> priv2, pub2, extras = unpack_rsa(outcome.value)
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Tuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from asymkeys.core.asn1 import canonical_oid
from asymkeys.core.exceptions import (
    InvalidKeyMaterialError,
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

RSA_ENCRYPTION_OID = "1.2.840.113549.1.1.1"

# DER NULL: обязательные параметры rsaEncryption
_DER_NULL = b"\x05\x00"

_KEY_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


class RSAPacker:
    """Упаковщик rsa.RSAPrivateKey (+ необязательный rsa.RSAPublicKey)."""

    def pack(
        self,
        private_key: Any,
        public_key: Any = None,
        *,
        attributes: Iterable[Attribute] = (),
        **options: Any,
    ) -> PackOutcome:
        # Прочие опции предназначены другим упаковщикам
        if not isinstance(private_key, rsa.RSAPrivateKey):
            return NOT_APPLICABLE
        if public_key is not None and not isinstance(public_key, rsa.RSAPublicKey):
            return NOT_APPLICABLE

        try:
            private_bytes = private_key.private_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PrivateFormat.TraditionalOpenSSL,
                encryption_algorithm=serialization.NoEncryption(),
            )
            public_bytes: Optional[bytes] = None
            if public_key is not None:
                public_bytes = public_key.public_bytes(
                    encoding=serialization.Encoding.DER,
                    format=serialization.PublicFormat.PKCS1,
                )
        except _KEY_ERRORS as e:
            raise InvalidKeyMaterialError(
                f"cannot serialize RSA key: {type(e).__name__}",
                algorithm=RSA_ENCRYPTION_OID,
            ) from e

        logger.debug(
            f"Packing RSA-{private_key.key_size} key "
            f"(public={public_bytes is not None})"
        )
        return Matched(
            KeyPackage.create(
                AlgorithmIdentifier(RSA_ENCRYPTION_OID, _DER_NULL),
                private_key=private_bytes,
                public_key=public_bytes,
                attributes=attributes,
            )
        )


class RSAUnpacker:
    """Распаковщик пакетов rsaEncryption."""

    def unpack(self, package: KeyPackage) -> UnpackOutcome:
        if package.algorithm_key != canonical_oid(RSA_ENCRYPTION_OID):
            return NOT_APPLICABLE

        try:
            private_key = serialization.load_der_private_key(
                package.private_key, password=None
            )
        except _KEY_ERRORS as e:
            raise InvalidKeyMaterialError(
                f"cannot parse RSA private key: {e}", algorithm=RSA_ENCRYPTION_OID
            ) from e
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise InvalidKeyMaterialError(
                f"private key is {type(private_key).__name__}, not RSA",
                algorithm=RSA_ENCRYPTION_OID,
            )

        public_key = None
        if package.public_key is not None:
            try:
                public_key = serialization.load_der_public_key(package.public_key)
            except _KEY_ERRORS as e:
                raise InvalidKeyMaterialError(
                    f"cannot parse RSA public key: {e}", algorithm=RSA_ENCRYPTION_OID
                ) from e
            if not isinstance(public_key, rsa.RSAPublicKey):
                raise InvalidKeyMaterialError(
                    f"public key is {type(public_key).__name__}, not RSA",
                    algorithm=RSA_ENCRYPTION_OID,
                )

        return Matched(
            UnpackedKey(private_key, public_key, tuple(package.attributes))
        )


class RSAPlugin:
    kind = KeyKind.RSA
    algorithm_oid = RSA_ENCRYPTION_OID
    key_types: Tuple[type, ...] = (rsa.RSAPrivateKey,)

    def __init__(self) -> None:
        self.packer = RSAPacker()
        self.unpacker = RSAUnpacker()


RSA_PLUGIN = RSAPlugin()


def pack_rsa(
    private_key: rsa.RSAPrivateKey,
    public_key: Optional[rsa.RSAPublicKey] = None,
    *,
    attributes: Iterable[Attribute] = (),
) -> KeyPackage:
    """
    Упаковать RSA-пару без обращения к реестру.

    Raises:
        KeyTypeMismatchError: Ключи не являются RSA-ключами
    """
    outcome = RSA_PLUGIN.packer.pack(private_key, public_key, attributes=attributes)
    if not isinstance(outcome, Matched):
        raise KeyTypeMismatchError("not an RSA key", algorithm=RSA_ENCRYPTION_OID)
    return outcome.value


def unpack_rsa(
    package: KeyPackage,
) -> Tuple[rsa.RSAPrivateKey, Optional[rsa.RSAPublicKey], Tuple[Any, ...]]:
    """
    Распаковать пакет строго в RSA-пару.

    Raises:
        KeyTypeMismatchError: Пакет другого алгоритма
        InvalidKeyMaterialError: Повреждённые ключевые данные
    """
    outcome = RSA_PLUGIN.unpacker.unpack(package)
    if not isinstance(outcome, Matched):
        raise KeyTypeMismatchError(
            "not an RSA key", algorithm=package.private_key_algorithm.algorithm
        )
    return outcome.value


__all__ = [
    "RSA_ENCRYPTION_OID",
    "RSAPacker",
    "RSAUnpacker",
    "RSAPlugin",
    "RSA_PLUGIN",
    "pack_rsa",
    "unpack_rsa",
]
