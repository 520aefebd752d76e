"""
Huffman codec: ties the frequency table, tree builder and bit packer together

compress() hands back every intermediate artifact (frequencies, tree, codes)
so a caller can show them. The compressed bytes are not self-describing:
keep the tree around to decompress. Its root frequency is the original
length, which tells the decoder where the real data ends; bit_length is an
optional extra check.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import bitpack
import huffman as huff

PathLike = Union[str, Path]


@dataclass
class CompressionResult:
    compressed: bytes
    tree: Optional[huff.HuffmanNode]
    codes: Dict[int, str] = field(default_factory=dict)
    frequencies: Dict[int, int] = field(default_factory=dict)
    bit_length: int = 0

    @property
    def pad_bits(self) -> int:
        return len(self.compressed) * 8 - self.bit_length

    @property
    def original_size(self) -> int:
        return sum(self.frequencies.values())

    @property
    def ratio(self) -> Optional[float]:
        return compression_ratio(self.original_size, len(self.compressed))

    def restore(self) -> bytes:
        return decompress(self.compressed, self.tree, self.bit_length)


def compress(data: bytes) -> CompressionResult:
    data = bytes(data)
    frequencies = huff.count_frequencies(data)
    root, codes = huff.build(frequencies)
    if root is None:
        return CompressionResult(b"", None)

    packed, pad_bits = bitpack.pack_bits(data, codes)
    return CompressionResult(
        compressed=packed,
        tree=root,
        codes=codes,
        frequencies=frequencies,
        bit_length=len(packed) * 8 - pad_bits,
    )


def decompress(compressed: bytes, tree: Optional[huff.HuffmanNode], bit_length: Optional[int] = None) -> bytes:
    return bitpack.decode(bytes(compressed), tree, bit_length)


# File level helpers

def compress_file(input_path: PathLike, output_path: PathLike) -> CompressionResult:
    data = Path(input_path).read_bytes()
    result = compress(data)
    Path(output_path).write_bytes(result.compressed)
    return result


def decompress_file(compressed_path: PathLike, output_path: PathLike,
                    tree: Optional[huff.HuffmanNode], bit_length: Optional[int] = None) -> bytes:
    restored = decompress(Path(compressed_path).read_bytes(), tree, bit_length)
    Path(output_path).write_bytes(restored)
    return restored


# Presentation data

def hex_dump(data: bytes, per_line: int = 45) -> List[str]:
    if per_line < 1:
        raise ValueError("per_line must be >= 1")
    return [
        " ".join(f"{b:02X}" for b in data[i:i + per_line])
        for i in range(0, len(data), per_line)
    ]


def preview_raw(data: bytes, limit: int = 20) -> bytes:
    return bytes(data[:limit])


def preview_readable(data: bytes, limit: int = 20) -> str:
    # printable ASCII only, 32..126
    chars = []
    for b in data:
        if len(chars) >= limit:
            break
        if 32 <= b <= 126:
            chars.append(chr(b))
    return "".join(chars)


def compression_ratio(original_size: int, compressed_size: int) -> Optional[float]:
    if original_size == 0:
        return None
    return compressed_size / original_size
