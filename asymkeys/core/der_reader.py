"""
Потоковое чтение ровно одного DER-значения.

DERValueReader потребляет из бинарного потока только байты одного
TLV-значения (тег + длина + содержимое) и возвращает их целиком, не зная
заранее общей длины записи и не буферизуя поток сверх нужного.

Машина состояний:
    ReadTag -> ReadLength -> ReadValue -> Done

Поток может отдавать данные произвольными порциями: read(n) вправе вернуть
меньше n байт, поэтому каждое чтение повторяется до получения нужного
количества. Пустой ответ (b"") до завершения значения означает обрыв потока
(TruncatedStreamError). Исключения самого потока (OSError и др.)
пробрасываются без изменений.

Example:
    >>> import io
    >>> stream = io.BytesIO(bytes.fromhex("04 05 68656c6c6f ff"))
    >>> DERValueReader(stream).read()
    b'\\x04\\x05hello'
    >>> stream.read()
    b'\\xff'

Thread Safety:
    Экземпляр хранит позицию чтения и предназначен для одного значения.
    Не разделяйте его между потоками.
"""

from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import BinaryIO, Optional

from asymkeys.core.exceptions import (
    IndefiniteLengthError,
    LengthOutOfRangeError,
    TruncatedStreamError,
)

logger = logging.getLogger(__name__)

# Маска номера тега в первом байте; все единицы = high-tag-number form
_TAG_NUMBER_MASK = 0x1F
_CONTINUATION_BIT = 0x80
_LONG_FORM_BIT = 0x80
_INDEFINITE_LENGTH = 0x80

# Верхняя граница одного запроса к потоку
_MAX_READ_CHUNK = 64 * 1024


class ReaderState(str, Enum):
    """Состояния DERValueReader."""

    READ_TAG = "read_tag"
    READ_LENGTH = "read_length"
    READ_VALUE = "read_value"
    DONE = "done"


class DERValueReader:
    """
    Читает ровно одно DER-значение из бинарного потока.

    Attributes:
        state: Текущее состояние машины
        consumed: Все байты, прочитанные из потока (также после ошибки)

    Args:
        stream: Объект с методом read(n) -> bytes
        max_length: Максимальная длина содержимого. По умолчанию
            sys.maxsize (диапазон знакового size-типа платформы).

    Raises:
        ValueError: Если max_length вне диапазона 1..sys.maxsize
    """

    def __init__(self, stream: BinaryIO, *, max_length: Optional[int] = None) -> None:
        if max_length is None:
            max_length = sys.maxsize
        if not 1 <= max_length <= sys.maxsize:
            raise ValueError(f"max_length must be in 1..{sys.maxsize}")

        self._stream = stream
        self._max_length = max_length
        self._buffer = bytearray()
        # Начало последнего прочитанного фрагмента в _buffer
        self._pos = 0
        self._used = False
        self.state = ReaderState.READ_TAG

    @property
    def consumed(self) -> bytes:
        return bytes(self._buffer)

    def _read_more(self, amount: int) -> None:
        """Дочитать ровно amount байт в конец буфера."""
        self._pos = len(self._buffer)
        remaining = amount
        while remaining > 0:
            chunk = self._stream.read(min(remaining, _MAX_READ_CHUNK))
            if not chunk:
                raise TruncatedStreamError(
                    expected=amount,
                    received=amount - remaining,
                    consumed=self.consumed,
                )
            self._buffer += chunk
            remaining -= len(chunk)

    def _read_tag(self) -> None:
        self._read_more(1)
        if self._buffer[self._pos] & _TAG_NUMBER_MASK == _TAG_NUMBER_MASK:
            # High-tag-number form
            while True:
                self._read_more(1)
                if self._buffer[self._pos] & _CONTINUATION_BIT == 0:
                    break

    def _read_length(self) -> int:
        self._read_more(1)
        first = self._buffer[self._pos]
        if first & _LONG_FORM_BIT == 0:
            # Short form
            return first
        if first == _INDEFINITE_LENGTH:
            raise IndefiniteLengthError(consumed=self.consumed)

        # Long form
        self._read_more(first & 0x7F)
        return int.from_bytes(self._buffer[self._pos :], "big")

    def read(self) -> bytes:
        """
        Прочитать одно значение.

        Returns:
            Тег, длина и содержимое значения одним блоком байт

        Raises:
            TruncatedStreamError: Поток закончился раньше значения
            IndefiniteLengthError: Неопределённая длина (не DER)
            LengthOutOfRangeError: Длина вне допустимого диапазона
            RuntimeError: Повторный вызов read() на том же экземпляре
        """
        if self._used:
            raise RuntimeError("DERValueReader is single-use; create a new reader")
        self._used = True

        self._read_tag()
        self.state = ReaderState.READ_LENGTH

        length = self._read_length()
        if length > self._max_length:
            raise LengthOutOfRangeError(
                length, self._max_length, consumed=self.consumed
            )
        self.state = ReaderState.READ_VALUE

        self._read_more(length)
        self.state = ReaderState.DONE

        logger.debug(f"Read DER value: {len(self._buffer)} bytes (content={length})")
        return self.consumed


def read_der_value(stream: BinaryIO, max_length: Optional[int] = None) -> bytes:
    """Прочитать одно DER-значение из потока новым DERValueReader."""
    return DERValueReader(stream, max_length=max_length).read()


__all__ = [
    "DERValueReader",
    "ReaderState",
    "read_der_value",
]
