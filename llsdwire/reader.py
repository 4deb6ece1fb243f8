"""Budgeted byte source used by every parser.

``BudgetedReader`` wraps either an in-memory buffer or a readable binary
stream, counts every byte handed to the parser and refuses to go past the
caller's byte budget.
"""

import io
from typing import BinaryIO

from .constants import SIZE_UNLIMITED
from .errors import TruncatedInputError

Source = bytes | bytearray | memoryview | BinaryIO


class BudgetedReader:
    """Byte reader with a consumption counter and a one-byte pushback.

    Args:
        source: Bytes-like object or readable binary stream
        max_bytes: Byte budget, or SIZE_UNLIMITED
    """

    def __init__(self, source: Source, max_bytes: int = SIZE_UNLIMITED) -> None:
        if isinstance(source, (bytes, bytearray, memoryview)):
            self._stream: BinaryIO = io.BytesIO(bytes(source))
        else:
            self._stream = source
        self.max_bytes = max_bytes
        self.consumed = 0
        self._pushback = b""

    @property
    def unlimited(self) -> bool:
        return self.max_bytes == SIZE_UNLIMITED

    def remaining(self) -> int | None:
        """Bytes left in the budget, or None when unlimited."""
        if self.unlimited:
            return None
        return self.max_bytes - self.consumed

    def check_budget(self, n: int) -> None:
        """Fail if ``n`` more bytes would exceed the budget.

        Raises:
            TruncatedInputError: If the budget cannot cover ``n`` bytes
        """
        left = self.remaining()
        if left is not None and n > left:
            raise TruncatedInputError(f"need {n} bytes, {left} left in budget", self.consumed)

    def _fill(self, n: int) -> bytes:
        buf = bytearray(self._pushback[:n])
        self._pushback = self._pushback[n:]
        while len(buf) < n:
            chunk = self._stream.read(n - len(buf))
            if not chunk:
                break
            buf.extend(chunk)
        return bytes(buf)

    def peek(self) -> bytes:
        """Look at the next byte without consuming it.

        Returns b"" at end of input or when the budget is spent.
        """
        left = self.remaining()
        if left is not None and left <= 0:
            return b""
        if not self._pushback:
            self._pushback = self._fill(1)
        return self._pushback[:1]

    def lookahead(self) -> bytes:
        """Look at the next byte of the source, even past the budget.

        Nothing is consumed, so a token that would continue beyond the
        budget can be told apart from one that ends exactly at it. Returns
        b"" only at end of input.
        """
        if not self._pushback:
            self._pushback = self._fill(1)
        return self._pushback[:1]

    def getc(self) -> bytes:
        """Consume exactly one byte.

        Raises:
            TruncatedInputError: At end of input or when the budget is spent
        """
        return self.read_exact(1)

    def read_exact(self, n: int) -> bytes:
        """Consume exactly ``n`` bytes.

        Args:
            n: Number of bytes to read

        Returns:
            The bytes read

        Raises:
            TruncatedInputError: If the budget or the input runs out first
        """
        self.check_budget(n)
        data = self._fill(n)
        self.consumed += len(data)
        if len(data) < n:
            raise TruncatedInputError(f"expected {n} bytes, input ended after {len(data)}", self.consumed)
        return data

    def read_all(self) -> bytes:
        """Consume everything up to end of input or the end of the budget."""
        left = self.remaining()
        data = self._pushback
        self._pushback = b""
        if left is None:
            data += self._stream.read()
        else:
            data += self._fill(max(left - len(data), 0))
            data = data[:left]
        self.consumed += len(data)
        return data

    def skip_whitespace(self) -> None:
        while self.peek() in (b" ", b"\t", b"\r", b"\n"):
            self.getc()

    def finish(self) -> None:
        """Hand an unconsumed pushback byte back to a seekable stream."""
        if self._pushback and self._stream.seekable():
            self._stream.seek(-len(self._pushback), io.SEEK_CUR)
        self._pushback = b""
