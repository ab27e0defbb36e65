"""
Unit-тесты для фасада KeyPackager и функций уровня модуля.

Проверяет:
- encode/decode через реестр со встроенными плагинами
- Чтение ровно одного пакета из потока (хвост остаётся в потоке)
- write/save/load
- Ошибки диспетчеризации для незарегистрированных алгоритмов
- Применение PackageConfig (max_value_length, strict_version)
- Общий экземпляр get_default_packager()
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Iterator

import pytest
from cryptography.hazmat.primitives.asymmetric import dsa, ec, rsa

import asymkeys.packager as packager_module
from asymkeys.algorithms import RSA_PLUGIN
from asymkeys.config import PackageConfig
from asymkeys.core.exceptions import (
    LengthOutOfRangeError,
    MissingPrivateKeyError,
    NoPackerError,
    NoUnpackerError,
    TrailingDataError,
    TruncatedStreamError,
    VersionMismatchError,
)
from asymkeys.core.package import (
    V1,
    AlgorithmIdentifier,
    Attribute,
    KeyPackage,
    encode_package,
)
from asymkeys.core.registry import RegistryBuilder
from asymkeys.packager import (
    KeyPackager,
    ReadResult,
    build_default_registry,
    get_default_packager,
    reset_default_packager,
)


# ==============================================================================
# FIXTURES
# ==============================================================================


@pytest.fixture(scope="module")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def dsa_key() -> dsa.DSAPrivateKey:
    return dsa.generate_private_key(key_size=2048)


@pytest.fixture
def packager() -> KeyPackager:
    return KeyPackager(build_default_registry())


@pytest.fixture(autouse=True)
def isolated_default(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[None]:
    """Общий экземпляр собирается заново, без файла и переменных окружения."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ASYMKEYS_MAX_VALUE_LENGTH", raising=False)
    monkeypatch.delenv("ASYMKEYS_STRICT_VERSION", raising=False)
    reset_default_packager()
    yield
    reset_default_packager()


# ==============================================================================
# TEST: Encode / Decode
# ==============================================================================


class TestEncodeDecode:
    """Тесты кодирования и декодирования пар ключей."""

    def test_rsa_roundtrip(self, packager: KeyPackager, rsa_key: rsa.RSAPrivateKey) -> None:
        data = packager.encode(rsa_key, rsa_key.public_key())

        priv, pub, extras = packager.decode(data)

        assert priv.private_numbers() == rsa_key.private_numbers()
        assert pub.public_numbers() == rsa_key.public_key().public_numbers()
        assert extras == ()

    def test_dsa_roundtrip(self, packager: KeyPackager, dsa_key: dsa.DSAPrivateKey) -> None:
        data = packager.encode(dsa_key)

        priv, pub, extras = packager.decode(data)

        assert priv.private_numbers() == dsa_key.private_numbers()
        assert pub is None
        assert extras == ()

    def test_attributes_option_becomes_extras(
        self, packager: KeyPackager, rsa_key: rsa.RSAPrivateKey
    ) -> None:
        attr = Attribute("1.2.840.113549.1.9.20", (b"\x0c\x05label",))

        _, _, extras = packager.decode(packager.encode(rsa_key, attributes=[attr]))

        assert extras == (attr,)

    def test_unknown_option_passes_through_registry(
        self, packager: KeyPackager, dsa_key: dsa.DSAPrivateKey
    ) -> None:
        """Неизвестная опция доходит до плагинов и не вызывает TypeError."""
        data = packager.encode(dsa_key, colour="red")

        priv, _, _ = packager.decode(data)

        assert priv.private_numbers() == dsa_key.private_numbers()

    def test_pack_returns_package(
        self, packager: KeyPackager, rsa_key: rsa.RSAPrivateKey
    ) -> None:
        pkg = packager.pack(rsa_key)

        assert isinstance(pkg, KeyPackage)
        assert pkg.version == V1
        assert packager.unpack(pkg).public_key is None

    def test_unsupported_key_type(
        self, packager: KeyPackager
    ) -> None:
        key = ec.generate_private_key(ec.SECP256R1())

        with pytest.raises(NoPackerError):
            packager.encode(key)

    def test_none_private_key(self, packager: KeyPackager) -> None:
        with pytest.raises(MissingPrivateKeyError):
            packager.encode(None)

    def test_unregistered_algorithm(self, packager: KeyPackager) -> None:
        """Пакет с неизвестным OID: NoUnpackerError."""
        data = encode_package(
            KeyPackage.create(AlgorithmIdentifier("1.3.101.112"), b"\x04\x00")
        )

        with pytest.raises(NoUnpackerError) as exc_info:
            packager.decode(data)

        assert exc_info.value.algorithm == "1.3.101.112"

    def test_registry_without_dsa(self, dsa_key: dsa.DSAPrivateKey) -> None:
        """Реестр только с RSA не распаковывает DSA-пакеты."""
        rsa_only = KeyPackager(RegistryBuilder().register_plugin(RSA_PLUGIN).build())
        data = KeyPackager(build_default_registry()).encode(dsa_key)

        with pytest.raises(NoPackerError):
            rsa_only.encode(dsa_key)
        with pytest.raises(NoUnpackerError):
            rsa_only.decode(data)

    def test_decode_rejects_trailing_data(
        self, packager: KeyPackager, rsa_key: rsa.RSAPrivateKey
    ) -> None:
        with pytest.raises(TrailingDataError):
            packager.decode(packager.encode(rsa_key) + b"\x00")


# ==============================================================================
# TEST: Streams
# ==============================================================================


class TestStreams:
    """Тесты чтения и записи через поток."""

    def test_read_leaves_rest_of_stream(
        self, packager: KeyPackager, rsa_key: rsa.RSAPrivateKey
    ) -> None:
        data = packager.encode(rsa_key, rsa_key.public_key())
        stream = io.BytesIO(data + b"next record")

        result = packager.read(stream)

        assert isinstance(result, ReadResult)
        assert result.consumed == len(data)
        assert result.private_key.private_numbers() == rsa_key.private_numbers()
        assert stream.read() == b"next record"

    def test_read_consecutive_packages(
        self,
        packager: KeyPackager,
        rsa_key: rsa.RSAPrivateKey,
        dsa_key: dsa.DSAPrivateKey,
    ) -> None:
        stream = io.BytesIO()
        packager.write(stream, rsa_key)
        packager.write(stream, dsa_key, dsa_key.public_key())
        stream.seek(0)

        first = packager.read(stream)
        second = packager.read(stream)

        assert isinstance(first.private_key, rsa.RSAPrivateKey)
        assert isinstance(second.private_key, dsa.DSAPrivateKey)
        assert isinstance(second.public_key, dsa.DSAPublicKey)
        assert stream.read() == b""

    def test_write_returns_byte_count(
        self, packager: KeyPackager, rsa_key: rsa.RSAPrivateKey
    ) -> None:
        stream = io.BytesIO()

        written = packager.write(stream, rsa_key)

        assert written == len(stream.getvalue())
        assert stream.getvalue() == packager.encode(rsa_key)

    def test_read_truncated(
        self, packager: KeyPackager, rsa_key: rsa.RSAPrivateKey
    ) -> None:
        data = packager.encode(rsa_key)

        with pytest.raises(TruncatedStreamError):
            packager.read(io.BytesIO(data[:-10]))

    def test_max_value_length_applied(self, rsa_key: rsa.RSAPrivateKey) -> None:
        """Пакет длиннее max_value_length отклоняется до чтения содержимого."""
        small = KeyPackager(
            build_default_registry(), PackageConfig(max_value_length=64)
        )
        data = small.encode(rsa_key)
        stream = io.BytesIO(data)

        with pytest.raises(LengthOutOfRangeError):
            small.read(stream)

        assert stream.tell() < 10


# ==============================================================================
# TEST: Files
# ==============================================================================


class TestFiles:
    """Тесты сохранения и загрузки файлов."""

    def test_save_and_load(
        self, packager: KeyPackager, tmp_path: Path, rsa_key: rsa.RSAPrivateKey
    ) -> None:
        path = tmp_path / "key.der"

        size = packager.save(path, rsa_key, rsa_key.public_key())
        priv, pub, extras = packager.load(path)

        assert path.stat().st_size == size
        assert priv.private_numbers() == rsa_key.private_numbers()
        assert pub is not None
        assert extras == ()

    def test_load_missing_file(self, packager: KeyPackager, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            packager.load(tmp_path / "missing.der")

    def test_load_empty_file(self, packager: KeyPackager, tmp_path: Path) -> None:
        path = tmp_path / "empty.der"
        path.write_bytes(b"")

        with pytest.raises(TruncatedStreamError):
            packager.load(path)


# ==============================================================================
# TEST: Config
# ==============================================================================


class TestConfig:
    """Тесты применения конфигурации."""

    @pytest.fixture
    def mismatched(self, rsa_key: rsa.RSAPrivateKey) -> bytes:
        pkg = KeyPackager(build_default_registry()).pack(rsa_key)
        return encode_package(
            KeyPackage(
                V1, pkg.private_key_algorithm, pkg.private_key, public_key=b"\x30\x00"
            )
        )

    def test_default_config(self, packager: KeyPackager) -> None:
        assert packager.config == PackageConfig()

    def test_strict_version(self, mismatched: bytes) -> None:
        strict = KeyPackager(
            build_default_registry(), PackageConfig(strict_version=True)
        )

        with pytest.raises(VersionMismatchError):
            strict.decode(mismatched)


# ==============================================================================
# TEST: Default Packager
# ==============================================================================


class TestDefaultPackager:
    """Тесты общего экземпляра и функций уровня модуля."""

    def test_singleton(self) -> None:
        assert get_default_packager() is get_default_packager()

    def test_reset_creates_new_instance(self) -> None:
        first = get_default_packager()
        reset_default_packager()

        assert get_default_packager() is not first

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ASYMKEYS_STRICT_VERSION", "true")
        reset_default_packager()

        assert get_default_packager().config.strict_version is True

    def test_module_functions(
        self, tmp_path: Path, rsa_key: rsa.RSAPrivateKey
    ) -> None:
        data = packager_module.encode(rsa_key, rsa_key.public_key())
        priv, pub, _ = packager_module.decode(data)
        assert priv.private_numbers() == rsa_key.private_numbers()

        pkg = packager_module.pack(rsa_key)
        assert packager_module.unpack(pkg).public_key is None

        stream = io.BytesIO()
        packager_module.write(stream, rsa_key)
        stream.seek(0)
        assert packager_module.read(stream).consumed == len(stream.getvalue())

        path = tmp_path / "module.der"
        packager_module.save(path, rsa_key)
        assert packager_module.load(path).private_key.private_numbers() == (
            rsa_key.private_numbers()
        )
