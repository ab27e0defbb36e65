"""
Ядро asymkeys: DER-читатель, кодек ключевого пакета, контракты и реестры.

Не зависит от конкретных алгоритмов; плагины подключаются через
RegistryBuilder.
"""

from asymkeys.core.der_reader import DERValueReader, ReaderState, read_der_value
from asymkeys.core.package import (
    V1,
    V2,
    AlgorithmIdentifier,
    Attribute,
    KeyPackage,
    decode_package,
    decode_package_sequence,
    encode_package,
    encode_package_sequence,
)
from asymkeys.core.protocols import (
    NOT_APPLICABLE,
    AlgorithmPlugin,
    KeyKind,
    Matched,
    NotApplicable,
    Packer,
    UnpackedKey,
    Unpacker,
)
from asymkeys.core.registry import (
    KeyPackageRegistry,
    PackerRegistry,
    RegistryBuilder,
    UnpackerRegistry,
)

__all__ = [
    "DERValueReader",
    "ReaderState",
    "read_der_value",
    "V1",
    "V2",
    "AlgorithmIdentifier",
    "Attribute",
    "KeyPackage",
    "encode_package",
    "decode_package",
    "encode_package_sequence",
    "decode_package_sequence",
    "NOT_APPLICABLE",
    "NotApplicable",
    "Matched",
    "UnpackedKey",
    "Packer",
    "Unpacker",
    "KeyKind",
    "AlgorithmPlugin",
    "PackerRegistry",
    "UnpackerRegistry",
    "KeyPackageRegistry",
    "RegistryBuilder",
]
