from typing import Dict, Optional, Tuple

from huffman import (
    CorruptStreamError,
    CorruptTreeError,
    EmptyInputError,
    HuffmanNode,
    UnknownSymbolError,
)


def pack_bits(data: bytes, code_map: Dict[int, str]) -> Tuple[bytes, int]:
    """
    Converts Huffman codes into packed bytes, most significant bit first
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = bytearray()
    acc = 0
    acc_bits = 0

    for b in data:
        bits = code_map.get(b)
        if bits is None:
            raise UnknownSymbolError(b)
        if not bits:
            raise CorruptTreeError(f"empty code for byte {b}")
        for ch in bits:
            acc = (acc << 1) | (1 if ch == '1' else 0)
            acc_bits += 1
            if acc_bits == 8:
                out.append(acc & 0xFF)
                acc = 0
                acc_bits = 0

    pad_bits = 0
    if acc_bits != 0:
        pad_bits = 8 - acc_bits
        acc = acc << pad_bits
        out.append(acc & 0xFF)

    return bytes(out), pad_bits


def encode(data: bytes, code_map: Dict[int, str]) -> bytes:
    packed, _ = pack_bits(data, code_map)
    return packed


def _bits_to_read(packed: bytes, bit_length: Optional[int]) -> int:
    available = len(packed) * 8
    if bit_length is None:
        return available
    if bit_length < 0 or bit_length > available:
        raise CorruptStreamError(
            f"bit length {bit_length} does not fit in {len(packed)} byte(s)"
        )
    if available - bit_length >= 8:
        raise CorruptStreamError(
            f"{available - bit_length} trailing bits is more than one byte of padding"
        )
    return bit_length


def _check_symbol_count(decoded: int, symbol_count: int, bits_read: int, packed: bytes) -> None:
    if decoded < symbol_count:
        raise CorruptStreamError(f"stream ran out after {decoded} of {symbol_count} symbols")
    if len(packed) * 8 - bits_read >= 8:
        raise CorruptStreamError("whole bytes left over after the last symbol")


def unpack_and_decode(packed: bytes, root: Optional[HuffmanNode], bit_length: Optional[int] = None) -> bytes:
    """
    Decode packed bits by walking the Huffman tree

    The root frequency is the number of bytes that were encoded, so decoding
    stops after that many symbols and the zero padding is never read. With
    bit_length exactly that many bits are read instead, and the walk has to
    finish on a leaf.
    """
    if root is None:
        if packed or bit_length:
            raise EmptyInputError("cannot decode a non-empty stream without a tree")
        return b""

    total_bits = _bits_to_read(packed, bit_length)
    symbol_count = root.frequency if bit_length is None else None

    decoded = bytearray()
    node = root
    bit_index = 0

    for byte in packed:
        if bit_index >= total_bits or len(decoded) == symbol_count:
            break
        for i in range(7, -1, -1):
            if bit_index >= total_bits or len(decoded) == symbol_count:
                break
            bit = (byte >> i) & 1
            bit_index += 1

            # Single symbol tree: every 0 bit is one more copy of the symbol
            if root.is_leaf:
                if bit:
                    raise CorruptStreamError(f"unexpected 1 bit at position {bit_index - 1}")
                decoded.append(root.symbol)
                continue

            child = node.right if bit else node.left
            if child is None:
                raise CorruptTreeError(f"missing {'right' if bit else 'left'} child at bit {bit_index - 1}")
            node = child

            # Leaf
            if node.is_leaf:
                decoded.append(node.symbol)
                node = root

    if symbol_count is not None:
        _check_symbol_count(len(decoded), symbol_count, bit_index, packed)
    elif node is not root:
        raise CorruptStreamError("stream ends in the middle of a code")

    return bytes(decoded)


decode = unpack_and_decode


def decode_with_table(packed: bytes, code_map: Dict[int, str], bit_length: Optional[int] = None,
                      symbol_count: Optional[int] = None) -> bytes:
    """
    Decode by matching accumulated bits against a reversed code table
    Same results as the tree walk, used as a second pipeline in experiments

    A code table does not know how many bytes it encoded, so either
    bit_length or symbol_count has to say where the real data ends.
    """
    if not code_map:
        if packed or bit_length or symbol_count:
            raise EmptyInputError("cannot decode a non-empty stream without codes")
        return b""
    if bit_length is None and symbol_count is None:
        raise ValueError("decode_with_table needs bit_length or symbol_count")

    total_bits = _bits_to_read(packed, bit_length)

    lookup = {code: symbol for symbol, code in code_map.items()}
    longest = max(len(code) for code in lookup)

    decoded = bytearray()
    current = ""
    bit_index = 0
    for byte in packed:
        for i in range(7, -1, -1):
            if bit_index >= total_bits or len(decoded) == symbol_count:
                break
            current += "1" if (byte >> i) & 1 else "0"
            bit_index += 1
            symbol = lookup.get(current)
            if symbol is not None:
                decoded.append(symbol)
                current = ""
            elif len(current) >= longest:
                raise CorruptStreamError(f"no code matches bits {current!r}")

    if symbol_count is not None:
        _check_symbol_count(len(decoded), symbol_count, bit_index, packed)
    if bit_length is not None and current:
        raise CorruptStreamError("stream ends in the middle of a code")

    return bytes(decoded)
