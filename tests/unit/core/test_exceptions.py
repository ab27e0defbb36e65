"""
Unit-тесты для модуля exceptions.py.

Проверяет иерархию наследования, форматирование сообщений и отсутствие
ключевого материала в тексте ошибок.
"""

from __future__ import annotations

from typing import Type

import pytest

from asymkeys.core.exceptions import (
    # Base
    KeyPackageError,
    # Framing errors
    FramingError,
    IndefiniteLengthError,
    InvalidEncodingError,
    LengthOutOfRangeError,
    TruncatedStreamError,
    # Structural errors
    MalformedPackageError,
    StructureError,
    TrailingDataError,
    VersionMismatchError,
    # Dispatch errors
    DispatchError,
    MissingPrivateKeyError,
    NoPackerError,
    NoUnpackerError,
    # Algorithm errors
    AlgorithmError,
    InvalidKeyMaterialError,
    InvalidParametersError,
    KeyTypeMismatchError,
    # Programming errors
    RegistrationError,
)


# ==============================================================================
# BASE EXCEPTION TESTS
# ==============================================================================


class TestKeyPackageError:
    """Тесты базового исключения KeyPackageError."""

    def test_basic_initialization(self) -> None:
        """Тест базовой инициализации."""
        error = KeyPackageError("Test error message")

        assert error.message == "Test error message"
        assert error.algorithm is None
        assert error.context == {}

    def test_str_with_algorithm_and_context(self) -> None:
        """Алгоритм и контекст добавляются к сообщению."""
        error = KeyPackageError(
            "Operation failed", algorithm="1.2.3", context={"operation": "unpack"}
        )

        assert str(error) == (
            "KeyPackageError: Operation failed [algorithm=1.2.3] (operation=unpack)"
        )

    def test_repr(self) -> None:
        error = KeyPackageError("x", algorithm="1.2.3")

        assert repr(error) == (
            "KeyPackageError(message='x', algorithm='1.2.3', context={})"
        )


# ==============================================================================
# HIERARCHY TESTS
# ==============================================================================


class TestHierarchy:
    """Тесты иерархии наследования."""

    @pytest.mark.parametrize(
        "child, parent",
        [
            (FramingError, KeyPackageError),
            (InvalidEncodingError, FramingError),
            (IndefiniteLengthError, InvalidEncodingError),
            (LengthOutOfRangeError, InvalidEncodingError),
            (TruncatedStreamError, FramingError),
            (TruncatedStreamError, EOFError),
            (StructureError, KeyPackageError),
            (MalformedPackageError, StructureError),
            (TrailingDataError, StructureError),
            (VersionMismatchError, StructureError),
            (DispatchError, KeyPackageError),
            (MissingPrivateKeyError, DispatchError),
            (NoPackerError, DispatchError),
            (NoUnpackerError, DispatchError),
            (AlgorithmError, KeyPackageError),
            (InvalidParametersError, AlgorithmError),
            (InvalidKeyMaterialError, AlgorithmError),
            (KeyTypeMismatchError, AlgorithmError),
        ],
    )
    def test_subclass(self, child: Type[Exception], parent: Type[Exception]) -> None:
        assert issubclass(child, parent)

    def test_truncated_is_not_invalid_encoding(self) -> None:
        """Обрыв потока не является недопустимым кодированием."""
        assert not issubclass(TruncatedStreamError, InvalidEncodingError)

    def test_registration_error_outside_hierarchy(self) -> None:
        assert not issubclass(RegistrationError, KeyPackageError)


# ==============================================================================
# FRAMING ERROR TESTS
# ==============================================================================


class TestFramingErrors:
    """Тесты ошибок выделения значения."""

    def test_consumed_length_in_context(self) -> None:
        """В контексте: только число прочитанных байт."""
        error = IndefiniteLengthError(consumed=b"\x30\x80")

        assert error.consumed == b"\x30\x80"
        assert error.context["consumed"] == 2
        assert "30" not in error.message

    def test_length_out_of_range_message(self) -> None:
        error = LengthOutOfRangeError(1 << 70, 255)

        assert error.message == f"DER value length ({1 << 70}) out of range"
        assert error.context["limit"] == 255

    def test_truncated_attributes(self) -> None:
        error = TruncatedStreamError(5, 3, consumed=b"\x04\x05abc")

        assert error.expected == 5
        assert error.received == 3
        assert error.context == {"consumed": 5, "expected": 5, "received": 3}

    def test_truncated_caught_as_eof(self) -> None:
        with pytest.raises(EOFError):
            raise TruncatedStreamError(1, 0)


# ==============================================================================
# STRUCTURE AND DISPATCH ERROR TESTS
# ==============================================================================


class TestMessages:
    """Тесты фиксированных сообщений."""

    def test_trailing_data(self) -> None:
        error = TrailingDataError(3)

        assert error.message == "trailing data after key package"
        assert error.trailing == 3

    def test_version_mismatch(self) -> None:
        error = VersionMismatchError(0, True)

        assert error.version == 0
        assert error.has_public_key is True
        assert error.context == {"version": 0, "public_key": True}

    def test_missing_private_key(self) -> None:
        assert MissingPrivateKeyError().message == "nil private key"

    def test_no_packer(self) -> None:
        error = NoPackerError("RSAPrivateKey", tried=1)

        assert error.message == "no packer can pack key"
        assert error.key_type == "RSAPrivateKey"
        assert error.tried == 1

    def test_no_unpacker(self) -> None:
        error = NoUnpackerError("1.2.3.4")

        assert error.message == "no unpacker can unpack key package"
        assert error.algorithm == "1.2.3.4"
        assert error.tried == 0

    def test_key_type_mismatch(self) -> None:
        error = KeyTypeMismatchError("not an RSA key", algorithm="1.2.840.10040.4.1")

        assert "not an RSA key" in str(error)
        assert "1.2.840.10040.4.1" in str(error)
