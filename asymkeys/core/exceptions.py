"""
Централизованные исключения пакета asymkeys.

Иерархия типизированных исключений для чтения, разбора и диспетчеризации
асимметричных ключевых пакетов (RFC 5958). Каждый класс ошибок можно
перехватить отдельно, а все вместе через KeyPackageError.

Example:
    >>> from asymkeys.core.exceptions import KeyPackageError
    >>> try:
    ...     packager.decode(data)
    ... except KeyPackageError as e:
    ...     logger.error(f"Key package rejected: {e}")

Иерархия:
    KeyPackageError (базовое)
    ├── FramingError
    │   ├── InvalidEncodingError
    │   │   ├── IndefiniteLengthError
    │   │   └── LengthOutOfRangeError
    │   └── TruncatedStreamError
    ├── StructureError
    │   ├── MalformedPackageError
    │   ├── TrailingDataError
    │   └── VersionMismatchError
    ├── DispatchError
    │   ├── MissingPrivateKeyError
    │   ├── NoPackerError
    │   └── NoUnpackerError
    └── AlgorithmError
        ├── InvalidParametersError
        ├── InvalidKeyMaterialError
        └── KeyTypeMismatchError

    RegistrationError (не наследует KeyPackageError)

Security Note:
    Сообщения ошибок НЕ содержат ключевой материал. В context допускаются
    только размеры, OID и имена типов.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__: list[str] = [
    # Base exception
    "KeyPackageError",
    # Framing errors
    "FramingError",
    "InvalidEncodingError",
    "IndefiniteLengthError",
    "LengthOutOfRangeError",
    "TruncatedStreamError",
    # Structural errors
    "StructureError",
    "MalformedPackageError",
    "TrailingDataError",
    "VersionMismatchError",
    # Dispatch errors
    "DispatchError",
    "MissingPrivateKeyError",
    "NoPackerError",
    "NoUnpackerError",
    # Algorithm errors
    "AlgorithmError",
    "InvalidParametersError",
    "InvalidKeyMaterialError",
    "KeyTypeMismatchError",
    # Programming errors
    "RegistrationError",
]


# ==============================================================================
# BASE EXCEPTION
# ==============================================================================


class KeyPackageError(Exception):
    """
    Базовое исключение для всех ошибок обработки ключевых пакетов.

    Attributes:
        message: Человекочитаемое сообщение об ошибке
        algorithm: OID или имя алгоритма (опционально)
        context: Дополнительный контекст для отладки (без секретов!)

    Example:
        >>> raise KeyPackageError(
        ...     "Operation failed",
        ...     algorithm="1.2.840.113549.1.1.1",
        ...     context={"operation": "unpack"},
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        algorithm: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.algorithm = algorithm
        self.context = context or {}

    def __str__(self) -> str:
        """
        Строковое представление исключения.

        Example:
            >>> str(error)
            'NoUnpackerError: no unpacker can unpack key package [algorithm=1.2.3]'
        """
        parts = [self.__class__.__name__, ": ", self.message]

        if self.algorithm:
            parts.append(f" [algorithm={self.algorithm}]")

        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f" ({ctx_str})")

        return "".join(parts)

    def __repr__(self) -> str:
        """Представление для отладки."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"algorithm={self.algorithm!r}, "
            f"context={self.context!r})"
        )


# ==============================================================================
# FRAMING ERRORS
# ==============================================================================


class FramingError(KeyPackageError):
    """
    Ошибки выделения одного DER-значения из потока.

    Attributes:
        consumed: Байты, прочитанные из потока до возникновения ошибки
    """

    def __init__(
        self,
        message: str,
        *,
        consumed: bytes = b"",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        ctx = {"consumed": len(consumed)}
        if context:
            ctx.update(context)
        super().__init__(message, context=ctx)
        self.consumed = consumed


class InvalidEncodingError(FramingError):
    """Заголовок значения корректно прочитан, но не является допустимым DER."""

    pass


class IndefiniteLengthError(InvalidEncodingError):
    """
    Использована неопределённая длина (байт длины 0x80).

    Допустима в BER, запрещена в DER.
    """

    def __init__(self, *, consumed: bytes = b"") -> None:
        super().__init__(
            "indefinite-length encoded; not a DER value", consumed=consumed
        )


class LengthOutOfRangeError(InvalidEncodingError):
    """
    Декодированная длина не помещается в допустимый диапазон.

    Attributes:
        length: Декодированная длина
        limit: Максимально допустимая длина
    """

    def __init__(self, length: int, limit: int, *, consumed: bytes = b"") -> None:
        super().__init__(
            f"DER value length ({length}) out of range",
            consumed=consumed,
            context={"limit": limit},
        )
        self.length = length
        self.limit = limit


class TruncatedStreamError(FramingError, EOFError):
    """
    Поток закончился раньше, чем было прочитано значение целиком.

    Attributes:
        expected: Сколько байт требовалось на текущем шаге
        received: Сколько байт удалось получить на текущем шаге
    """

    def __init__(self, expected: int, received: int, *, consumed: bytes = b"") -> None:
        super().__init__(
            "unexpected end of stream",
            consumed=consumed,
            context={"expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received


# ==============================================================================
# STRUCTURAL ERRORS
# ==============================================================================


class StructureError(KeyPackageError):
    """Байты не соответствуют структуре OneAsymmetricKey."""

    pass


class MalformedPackageError(StructureError):
    """Буфер не разбирается как OneAsymmetricKey."""

    pass


class TrailingDataError(StructureError):
    """
    После одного полного значения в буфере остались байты.

    Attributes:
        trailing: Количество лишних байт
    """

    def __init__(self, trailing: int, *, what: str = "key package") -> None:
        super().__init__(
            f"trailing data after {what}", context={"trailing": trailing}
        )
        self.trailing = trailing


class VersionMismatchError(StructureError):
    """Версия пакета не согласуется с наличием открытого ключа."""

    def __init__(self, version: int, has_public_key: bool) -> None:
        super().__init__(
            "key package version disagrees with public key presence",
            context={"version": version, "public_key": has_public_key},
        )
        self.version = version
        self.has_public_key = has_public_key


# ==============================================================================
# DISPATCH ERRORS
# ==============================================================================


class DispatchError(KeyPackageError):
    """Не найден подходящий кандидат (packer/unpacker)."""

    pass


class MissingPrivateKeyError(DispatchError):
    """Закрытый ключ отсутствует (None): тип определить невозможно."""

    def __init__(self) -> None:
        super().__init__("nil private key")


class NoPackerError(DispatchError):
    """
    Ни один packer не смог упаковать ключ.

    Attributes:
        key_type: Имя типа закрытого ключа
        tried: Сколько кандидатов было опробовано
    """

    def __init__(self, key_type: str, tried: int = 0) -> None:
        super().__init__(
            "no packer can pack key",
            context={"key_type": key_type, "tried": tried},
        )
        self.key_type = key_type
        self.tried = tried


class NoUnpackerError(DispatchError):
    """
    Ни один unpacker не смог распаковать ключевой пакет.

    Attributes:
        tried: Сколько кандидатов было опробовано
    """

    def __init__(self, algorithm: str, tried: int = 0) -> None:
        super().__init__(
            "no unpacker can unpack key package",
            algorithm=algorithm,
            context={"tried": tried},
        )
        self.tried = tried


# ==============================================================================
# ALGORITHM ERRORS
# ==============================================================================


class AlgorithmError(KeyPackageError):
    """Ошибки алгоритмо-специфичных полей пакета."""

    pass


class InvalidParametersError(AlgorithmError):
    """Некорректное кодирование параметров алгоритма."""

    pass


class InvalidKeyMaterialError(AlgorithmError):
    """Некорректное кодирование закрытого или открытого ключа."""

    pass


class KeyTypeMismatchError(AlgorithmError):
    """
    Распакованный ключ имеет не тот тип, который ожидал вызывающий.

    Example:
        >>> unpack_rsa(dsa_package)
        KeyTypeMismatchError: not an RSA key
    """

    pass


# ==============================================================================
# PROGRAMMING ERRORS
# ==============================================================================


class RegistrationError(Exception):
    """
    Некорректная регистрация кандидата (None, неверный тип, неверный OID).

    Не наследует KeyPackageError.
    """

    pass
