"""Встроенные плагины алгоритмов: RSA и DSA."""

from asymkeys.algorithms.dsa import (
    DSA_OID,
    DSA_PLUGIN,
    DSAPacker,
    DSAPlugin,
    DSAUnpacker,
    PartialDSAPrivateKey,
    PartialDSAPublicKey,
    pack_dsa,
    unpack_dsa,
)
from asymkeys.algorithms.rsa import (
    RSA_ENCRYPTION_OID,
    RSA_PLUGIN,
    RSAPacker,
    RSAPlugin,
    RSAUnpacker,
    pack_rsa,
    unpack_rsa,
)

BUILTIN_PLUGINS = (RSA_PLUGIN, DSA_PLUGIN)

__all__ = [
    "BUILTIN_PLUGINS",
    "DSA_OID",
    "DSA_PLUGIN",
    "DSAPacker",
    "DSAPlugin",
    "DSAUnpacker",
    "PartialDSAPrivateKey",
    "PartialDSAPublicKey",
    "pack_dsa",
    "unpack_dsa",
    "RSA_ENCRYPTION_OID",
    "RSA_PLUGIN",
    "RSAPacker",
    "RSAPlugin",
    "RSAUnpacker",
    "pack_rsa",
    "unpack_rsa",
]
