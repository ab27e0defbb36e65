#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Demo script for asymmetric key packages.

Usage:
    python scripts/demo_key_package.py
"""

from __future__ import annotations

import io
import sys
import tempfile
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric import dsa, ec, rsa

import asymkeys
from asymkeys import (
    DSA_PLUGIN,
    RSA_PLUGIN,
    AlgorithmIdentifier,
    Attribute,
    DispatchError,
    KeyPackage,
    KeyPackager,
    PartialDSAPrivateKey,
    RegistryBuilder,
    decode_package,
    encode_package,
)


def print_banner(text: str) -> None:
    """Print section banner."""
    print()
    print("=" * 70)
    print(f"  {text}")
    print("=" * 70)


def print_success(text: str) -> None:
    """Print success message."""
    print(f"✅ {text}")


def print_info(text: str) -> None:
    """Print info message."""
    print(f"ℹ️  {text}")


def print_data(label: str, data: bytes, max_len: int = 64) -> None:
    """Print data preview."""
    hex_data = data.hex()
    if len(hex_data) > max_len:
        preview = f"{hex_data[:max_len]}... ({len(data)} bytes)"
    else:
        preview = f"{hex_data} ({len(data)} bytes)"
    print(f"   {label}: {preview}")


def demo_rsa(packager: KeyPackager) -> None:
    """Demonstrate RSA packing."""
    print_banner("📦 Demo: RSA-2048 Key Package")

    print()
    print("Step 1: Generating RSA-2048 keypair...")
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    print_success("Keypair generated")

    print()
    print("Step 2: Encoding private + public key...")
    label = Attribute("1.2.840.113549.1.9.20", (b"\x0c\x04demo",))
    data = packager.encode(key, key.public_key(), attributes=[label])
    print_data("OneAsymmetricKey", data)

    pkg = decode_package(data)
    print_info(f"Version: v{pkg.version + 1}")
    print_info(f"Algorithm: {pkg.private_key_algorithm.algorithm}")

    print()
    print("Step 3: Decoding...")
    priv, pub, extras = packager.decode(data)
    assert priv.private_numbers() == key.private_numbers()
    assert pub is not None
    print_success(f"Keys restored, {len(extras)} attribute(s) returned as extras")


def demo_dsa(packager: KeyPackager) -> None:
    """Demonstrate DSA packing and missing domain parameters."""
    print_banner("📦 Demo: DSA-2048 Key Package")

    print()
    print("Step 1: Generating DSA-2048 key...")
    key = dsa.generate_private_key(key_size=2048)
    data = packager.encode(key)
    print_data("OneAsymmetricKey", data)

    priv, pub, _ = packager.decode(data)
    assert priv.private_numbers() == key.private_numbers()
    print_success(f"Private key restored (public key present: {pub is not None})")

    print()
    print("Step 2: Dropping domain parameters...")
    stripped = KeyPackage.create(
        AlgorithmIdentifier(DSA_PLUGIN.algorithm_oid),
        packager.pack(key).private_key,
    )
    partial, _, _ = packager.decode(encode_package(stripped))
    assert isinstance(partial, PartialDSAPrivateKey)
    print_info(f"Got {partial!r}")

    restored = partial.complete(key.parameters().parameter_numbers())
    assert restored.private_numbers() == key.private_numbers()
    print_success("Key completed with known parameters")


def demo_stream(packager: KeyPackager) -> None:
    """Demonstrate reading consecutive packages from a stream."""
    print_banner("🔄 Demo: Streaming Several Packages")

    stream = io.BytesIO()
    for _ in range(3):
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        packager.write(stream, key)
    stream.write(b"trailer")
    stream.seek(0)

    for i in range(3):
        result = packager.read(stream)
        print_info(f"Package {i + 1}: {result.consumed} bytes")
    print_success(f"Left in stream: {stream.read()!r}")

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "key.der"
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        size = packager.save(path, key, key.public_key())
        packager.load(path)
        print_success(f"Saved and loaded {path.name} ({size} bytes)")


def demo_dispatch() -> None:
    """Demonstrate dispatch errors with a custom registry."""
    print_banner("🧭 Demo: Custom Registry")

    rsa_only = KeyPackager(RegistryBuilder().register_plugin(RSA_PLUGIN).build())
    full = KeyPackager(
        RegistryBuilder().register_plugin(RSA_PLUGIN).register_plugin(DSA_PLUGIN).build()
    )

    dsa_data = full.encode(dsa.generate_private_key(key_size=2048))
    try:
        rsa_only.decode(dsa_data)
    except DispatchError as e:
        print_info(f"RSA-only registry: {e}")

    try:
        full.encode(ec.generate_private_key(ec.SECP256R1()))
    except DispatchError as e:
        print_info(f"EC key: {e}")

    print_success("Unsupported keys reported as dispatch errors")


def main() -> None:
    """Main demo function."""
    print()
    print("╔════════════════════════════════════════════════════════════════════╗")
    print("║                                                                    ║")
    print("║        🔐 ASYMMETRIC KEY PACKAGE DEMONSTRATION 🔐                 ║")
    print("║                                                                    ║")
    print("║     RFC 5958 OneAsymmetricKey for RSA and DSA                     ║")
    print("║                                                                    ║")
    print("╚════════════════════════════════════════════════════════════════════╝")

    try:
        packager = asymkeys.get_default_packager()

        demo_rsa(packager)
        demo_dsa(packager)
        demo_stream(packager)
        demo_dispatch()

        print()
        print_banner("🎉 All Demos Completed Successfully!")
        print()

    except KeyboardInterrupt:
        print()
        print()
        print("❌ Demo interrupted by user")
        sys.exit(1)
    except Exception as e:
        print()
        print()
        print(f"❌ Error: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
