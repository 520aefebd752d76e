import math
import random

import pytest

import bitpack
import huffman as huff


def _tree_and_codes(data):
    ft = huff.count_frequencies(data)
    root, codes = huff.build(ft)
    return ft, root, codes


def test_pack_bits_pads_final_byte():
    _, _, codes = _tree_and_codes(b"ABAB")
    packed, pad_bits = bitpack.pack_bits(b"ABAB", codes)
    assert packed == bytes([0b01010000])
    assert pad_bits == 4


def test_pack_bits_no_padding_byte_on_boundary():
    codes = {ord('A'): "0", ord('B'): "1"}
    packed, pad_bits = bitpack.pack_bits(b"ABABABAB", codes)
    assert packed == bytes([0b01010101])
    assert pad_bits == 0


def test_pack_bits_spans_bytes():
    _, _, codes = _tree_and_codes(b"aaabbc")
    packed, pad_bits = bitpack.pack_bits(b"aaabbc", codes)
    # a a a b b c -> 0 0 0 11 11 10
    assert packed == bytes([0b00011111, 0b00000000])
    assert pad_bits == 7


def test_encode_empty():
    assert bitpack.encode(b"", {}) == b""


def test_encode_unknown_symbol():
    with pytest.raises(bitpack.UnknownSymbolError) as excinfo:
        bitpack.encode(b"AZ", {ord('A'): "0"})
    assert excinfo.value.symbol == ord('Z')
    assert isinstance(excinfo.value, huff.HuffmanError)
    assert isinstance(excinfo.value, ValueError)


def test_encode_rejects_empty_code():
    with pytest.raises(huff.CorruptTreeError):
        bitpack.encode(b"A", {ord('A'): ""})


def test_packed_size_matches_code_bits():
    rng = random.Random(3)
    data = bytes(rng.randrange(0, 256) for _ in range(3000))
    ft, _, codes = _tree_and_codes(data)
    packed = bitpack.encode(data, codes)
    assert len(packed) == math.ceil(huff.encoded_bit_length(ft, codes) / 8)


def test_decode_with_bit_length_stops_before_padding():
    _, root, codes = _tree_and_codes(b"ABAB")
    packed, pad_bits = bitpack.pack_bits(b"ABAB", codes)
    assert bitpack.decode(packed, root, len(packed) * 8 - pad_bits) == b"ABAB"


def test_decode_stops_at_root_frequency():
    # "A" has the all-zero code, the four padding bits must not become extra A's
    _, root, codes = _tree_and_codes(b"ABAB")
    packed = bitpack.encode(b"ABAB", codes)
    assert packed == bytes([0b01010000])
    assert bitpack.decode(packed, root) == b"ABAB"

    _, root, codes = _tree_and_codes(b"aaabbc")
    assert bitpack.decode(bitpack.encode(b"aaabbc", codes), root) == b"aaabbc"


def test_decode_single_symbol_tree_stops_at_root_frequency():
    root, _ = huff.build({0x41: 4})
    assert bitpack.decode(b"\x00", root) == b"AAAA"


def test_decode_runs_out_before_root_frequency():
    _, root, codes = _tree_and_codes(b"aaabbc")
    # 10 10 10 00 gives five symbols, the tree expects six
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode(bitpack.encode(b"ccc", codes), root)

    # c=00 d=01 e=10 a=110 b=111
    _, root, codes = _tree_and_codes(b"abcde")
    assert codes[ord('a')] == "110"
    # 110 00 00 0 -> a c c and a dangling 0
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode(bitpack.encode(b"a", codes), root)


def test_decode_rejects_trailing_bytes():
    _, root, codes = _tree_and_codes(b"ABAB")
    packed = bitpack.encode(b"ABAB", codes)
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode(packed + b"\x00", root)


def test_decode_single_symbol_tree():
    root, codes = huff.build({0x41: 4})
    packed, pad_bits = bitpack.pack_bits(b"AAAA", codes)
    assert packed == b"\x00"
    assert bitpack.decode(packed, root, 8 - pad_bits) == b"AAAA"


def test_decode_single_symbol_tree_rejects_one_bit():
    root, _ = huff.build({0x41: 4})
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode(b"\x80", root)


def test_decode_truncated_stream():
    _, root, codes = _tree_and_codes(b"aaabbc")
    packed = bitpack.encode(b"aaabbc", codes)
    # 0001 stops inside the code for b
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode(packed[:1], root, 4)


def test_decode_bit_length_out_of_range():
    _, root, codes = _tree_and_codes(b"aaabbc")
    packed = bitpack.encode(b"aaabbc", codes)
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode(packed, root, 17)
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode(packed, root, -1)
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode(packed, root, 3)


def test_decode_missing_child():
    root = huff.Internal(huff.Leaf(1, 1), huff.Leaf(2, 1))
    root.right = None
    with pytest.raises(huff.CorruptTreeError):
        bitpack.decode(b"\x80", root)


def test_decode_without_tree():
    assert bitpack.decode(b"", None) == b""
    assert bitpack.decode(b"", None, 0) == b""
    with pytest.raises(huff.EmptyInputError):
        bitpack.decode(b"\x00", None)


def test_table_decode_matches_tree_decode():
    rng = random.Random(11)
    data = bytes(rng.choice(b"abcdefgh  \n") for _ in range(5000))
    _, root, codes = _tree_and_codes(data)
    packed, pad_bits = bitpack.pack_bits(data, codes)
    bit_length = len(packed) * 8 - pad_bits
    assert bitpack.decode_with_table(packed, codes, bit_length) == data
    assert bitpack.decode(packed, root, bit_length) == data
    assert bitpack.decode_with_table(packed, codes, symbol_count=len(data)) == data
    assert bitpack.decode(packed, root) == data


def test_table_decode_symbol_count_skips_padding():
    codes = {ord('A'): "0", ord('B'): "1"}
    assert bitpack.decode_with_table(bytes([0b01010000]), codes, symbol_count=4) == b"ABAB"
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode_with_table(bytes([0b01010000]), codes, symbol_count=9)


def test_table_decode_errors():
    with pytest.raises(huff.EmptyInputError):
        bitpack.decode_with_table(b"\x00", {})
    with pytest.raises(ValueError):
        bitpack.decode_with_table(b"\x00", {ord('A'): "0"})
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode_with_table(b"\x80", {ord('A'): "0"}, symbol_count=1)
    with pytest.raises(huff.CorruptStreamError):
        bitpack.decode_with_table(b"\x10", {ord('a'): "0", ord('c'): "10", ord('b'): "11"}, 4)
