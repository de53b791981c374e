from __future__ import annotations

from typing import BinaryIO

from midicsv_huff.errors import DecodingError, EncodingError

# Flush to the sink every 64 KiB of complete bytes.
_FLUSH_THRESHOLD = 64 * 1024
_READ_CHUNK = 64 * 1024


class BitWriter:
    """
    Writer di bit MSB-first sopra un sink binario.

    I bit pendenti (meno di 8) restano in current_byte/bit_count finché non
    si completa un byte; close() fa padding con zeri fino al confine di byte.

    Usare come context manager, così close() gira anche sui percorsi di errore:

        with BitWriter(sink) as bw:
            bw.write_bits(3, 2)
    """

    def __init__(self, sink: BinaryIO, *, close_sink: bool = False) -> None:
        self._sink = sink
        self._close_sink = close_sink
        self._out = bytearray()
        self._current_byte = 0
        self._bit_count = 0
        self._closed = False
        self.bits_written = 0

    def __enter__(self) -> BitWriter:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def write_bit(self, bit: int) -> None:
        if bit not in (0, 1):
            raise EncodingError(f"bit non valido: {bit!r}")
        if self._closed:
            raise ValueError("BitWriter già chiuso")
        self._current_byte = (self._current_byte << 1) | bit
        self._bit_count += 1
        self.bits_written += 1
        if self._bit_count == 8:
            self._out.append(self._current_byte)
            self._current_byte = 0
            self._bit_count = 0
            if len(self._out) >= _FLUSH_THRESHOLD:
                self._drain()

    def write_bits(self, value: int, width: int) -> None:
        """Write the low `width` bits of `value`, most significant first."""
        if width < 0:
            raise ValueError("width must be >= 0")
        if value < 0 or value >= (1 << width):
            raise EncodingError(f"{value} has more than {width} bits")
        for shift in range(width - 1, -1, -1):
            self.write_bit((value >> shift) & 1)

    def write_code(self, code: str) -> None:
        """Write a Huffman code given as a string of '0'/'1'."""
        for ch in code:
            if ch == "0":
                self.write_bit(0)
            elif ch == "1":
                self.write_bit(1)
            else:
                raise EncodingError(f"codice non binario: {code!r}")

    def _drain(self) -> None:
        if self._out:
            self._sink.write(bytes(self._out))
            self._out.clear()

    def close(self) -> None:
        if self._closed:
            return
        if self._bit_count > 0:
            # padding con zeri fino al byte successivo (non conta in bits_written)
            self._out.append(self._current_byte << (8 - self._bit_count))
            self._current_byte = 0
            self._bit_count = 0
        self._closed = True
        self._drain()
        self._sink.flush()
        if self._close_sink:
            self._sink.close()


class BitReader:
    """Reader di bit MSB-first: legge la sorgente a blocchi di 64 KiB e consuma un bit alla volta."""

    def __init__(self, source: BinaryIO) -> None:
        self._source = source
        self._chunk = b""
        self._idx = 0
        self._byte = 0
        self._bits_left = 0
        self.bits_read = 0

    def _next_byte(self) -> int | None:
        if self._idx >= len(self._chunk):
            self._chunk = self._source.read(_READ_CHUNK)
            self._idx = 0
            if not self._chunk:
                return None
        b = self._chunk[self._idx]
        self._idx += 1
        return b

    def read_bit(self) -> int | None:
        """Return the next bit, or None at end of stream."""
        if self._bits_left == 0:
            b = self._next_byte()
            if b is None:
                return None
            self._byte = b
            self._bits_left = 8
        self._bits_left -= 1
        self.bits_read += 1
        return (self._byte >> self._bits_left) & 1

    def read_bits(self, width: int) -> int:
        value = 0
        for _ in range(width):
            bit = self.read_bit()
            if bit is None:
                raise DecodingError(f"stream troncato: attesi {width} bit")
            value = (value << 1) | bit
        return value
