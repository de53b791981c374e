from __future__ import annotations

import heapq
import itertools
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from midicsv_huff.core.bitio import BitReader, BitWriter
from midicsv_huff.errors import DecodingError, EncodingError

# Larghezze dei campi della tabella serializzata
MAXBITS_BITS = 5
ENTRIES_BITS = 8
CODE_LEN_BITS = 5


# -------------------
# Strutture di base Huffman
# -------------------
@dataclass
class HuffmanNode:
    freq: int
    value: int  # >= 0 per foglie, id negativo per nodi interni
    left: Optional["HuffmanNode"] = None
    right: Optional["HuffmanNode"] = None

    @property
    def is_leaf(self) -> bool:
        return self.value >= 0


def build_freq_table(values: Iterable[int]) -> dict[int, int]:
    """Frequenze dei valori non negativi; i negativi significano "non applicabile"."""
    return dict(Counter(v for v in values if v >= 0))


def build_huffman_tree(freq: dict[int, int]) -> HuffmanNode | None:
    """
    Standard binary Huffman merge with a fully deterministic tie-break.

    The queue is ordered by (frequency, id): a leaf's id is its value, an
    interior node gets the next id of a strictly decreasing negative counter
    local to this call. The first node popped becomes the left child.
    """
    heap: list[tuple[int, int, HuffmanNode]] = []
    for value, f in freq.items():
        heapq.heappush(heap, (f, value, HuffmanNode(freq=f, value=value)))

    if not heap:
        return None

    interior_ids = itertools.count(-1, -1)
    while len(heap) > 1:
        f1, _, n1 = heapq.heappop(heap)
        f2, _, n2 = heapq.heappop(heap)
        parent = HuffmanNode(freq=f1 + f2, value=next(interior_ids), left=n1, right=n2)
        heapq.heappush(heap, (parent.freq, parent.value, parent))

    return heap[0][2]


def build_code_table(root: HuffmanNode) -> dict[int, str]:
    codes: dict[int, str] = {}

    def dfs(node: HuffmanNode, path: str) -> None:
        if node.is_leaf:
            # Caso speciale: un solo simbolo => codice "0"
            codes[node.value] = path or "0"
            return
        if node.left is not None:
            dfs(node.left, path + "0")
        if node.right is not None:
            dfs(node.right, path + "1")

    dfs(root, "")
    return codes


class HuffmanModel:
    """
    One trained (or deserialized) Huffman code over non-negative integers.

    The encode side holds value -> code, the decode side code -> value.
    Both directions are filled in either case so a model read back from a
    stream can be compared with the one that wrote it.
    """

    def __init__(self, max_bits: int, codes: dict[int, str]) -> None:
        self.max_bits = max_bits
        self.encodings: dict[int, str] = dict(codes)
        self.decodings: dict[str, int] = {c: v for v, c in codes.items()}
        self.max_code_len = max((len(c) for c in codes.values()), default=0)
        # maxBits + 1, allargato se un codice valido è più lungo
        self.bit_budget = max(max_bits + 1, self.max_code_len)

    @classmethod
    def train(cls, values: Iterable[int]) -> HuffmanModel:
        freq = build_freq_table(values)
        max_bits = max(freq, default=0).bit_length()
        root = build_huffman_tree(freq)
        codes = build_code_table(root) if root is not None else {}
        return cls(max_bits, codes)

    def __len__(self) -> int:
        return len(self.encodings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HuffmanModel):
            return NotImplemented
        return self.max_bits == other.max_bits and self.encodings == other.encodings

    def __repr__(self) -> str:
        return f"HuffmanModel(max_bits={self.max_bits}, entries={len(self)})"

    def encode(self, value: int) -> str:
        code = self.encodings.get(value)
        if code is not None:
            return code
        # Valore mai visto in training: si ripiega sul codice di 0.
        code = self.encodings.get(0)
        if code is None:
            raise EncodingError(f"valore {value} non addestrato e nessun codice per 0")
        return code

    def decode(self, bits: str) -> int | None:
        """Return the value coded by `bits`, or None if more bits are needed."""
        value = self.decodings.get(bits)
        if value is not None:
            return value
        if len(bits) >= self.bit_budget:
            raise DecodingError(f"nessun codice Huffman corrisponde a {bits!r}")
        return None

    def read_symbol(self, reader: BitReader) -> int:
        """Greedy prefix match, bounded by bit_budget."""
        bits = ""
        for _ in range(self.bit_budget):
            bit = reader.read_bit()
            if bit is None:
                raise DecodingError("stream troncato dentro un codice Huffman")
            bits += "1" if bit else "0"
            value = self.decode(bits)
            if value is not None:
                return value
        raise DecodingError(f"nessun codice Huffman corrisponde a {bits!r}")

    # ---------------------------
    # Serializzazione della tabella
    # ---------------------------

    def write(self, bw: BitWriter) -> int:
        """Serialize the table; return the number of bits it took."""
        before = bw.bits_written
        bw.write_bits(self.max_bits, MAXBITS_BITS)
        bw.write_bits(len(self.encodings), ENTRIES_BITS)
        for value in sorted(self.encodings):
            code = self.encodings[value]
            bw.write_bits(value, self.max_bits)
            bw.write_bits(len(code), CODE_LEN_BITS)
            bw.write_code(code)
        return bw.bits_written - before

    @classmethod
    def read(cls, br: BitReader) -> HuffmanModel:
        max_bits = br.read_bits(MAXBITS_BITS)
        n_entries = br.read_bits(ENTRIES_BITS)
        codes: dict[int, str] = {}
        for _ in range(n_entries):
            value = br.read_bits(max_bits)
            code_len = br.read_bits(CODE_LEN_BITS)
            code = "".join("1" if br.read_bits(1) else "0" for _ in range(code_len))
            if value in codes or code in codes.values():
                raise DecodingError("tabella Huffman corrotta (voce duplicata)")
            codes[value] = code
        return cls(max_bits, codes)


def is_prefix_free(codes: Iterable[str]) -> bool:
    # dopo l'ordinamento un prefisso precede sempre immediatamente una sua estensione
    ordered = sorted(codes)
    return all(not b.startswith(a) for a, b in zip(ordered, ordered[1:]))
