import heapq
import weakref
from typing import Dict, Iterator, List, Optional, Tuple


# Errors

class HuffmanError(ValueError):
    """Base class for every failure raised by the codec."""


class EmptyInputError(HuffmanError):
    pass


class UnknownSymbolError(HuffmanError):
    def __init__(self, symbol: int):
        super().__init__(f"no Huffman code for byte {symbol} (0x{symbol:02X})")
        self.symbol = symbol


class CorruptTreeError(HuffmanError):
    pass


class CorruptStreamError(HuffmanError):
    pass


# Tree nodes

class HuffmanNode: # common base for Leaf and Internal
    __slots__ = ("frequency", "_parent", "__weakref__")

    is_leaf = False

    def __init__(self, frequency):
        self.frequency = frequency
        self._parent = None # weakref to the parent, children never own it

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None


class Leaf(HuffmanNode):
    __slots__ = ("symbol",)

    is_leaf = True

    def __init__(self, symbol, frequency):
        super().__init__(frequency)
        self.symbol = symbol # byte value 0..255

    def __repr__(self):
        return f"Leaf(symbol={self.symbol}, frequency={self.frequency})"


class Internal(HuffmanNode):
    __slots__ = ("left", "right")

    def __init__(self, left, right):
        if left is None or right is None:
            raise CorruptTreeError("internal node needs exactly two children")
        super().__init__(left.frequency + right.frequency)
        self.left = left
        self.right = right
        left._parent = weakref.ref(self)
        right._parent = weakref.ref(self)

    def __repr__(self):
        return f"Internal(frequency={self.frequency})"


# Frequency table

def count_frequencies(data: bytes) -> Dict[int, int]:
    """
    Count occurrences of each byte value
    Only bytes that appear are present, keys come out in ascending byte order
    """
    counts = [0] * 256
    for b in data:
        counts[b] += 1
    return {byte: n for byte, n in enumerate(counts) if n}


# Tree building

def build_huffman_tree(frequency_table: Dict[int, int]) -> Optional[HuffmanNode]: # frequency_table: dict of byte -> count
    if not frequency_table:
        return None

    # (frequency, sequence, node); the sequence number keeps ties stable and
    # stops heapq from ever comparing two nodes directly
    priority_queue = []
    sequence = 0
    for symbol, frequency in frequency_table.items():
        if frequency < 1:
            raise HuffmanError(f"frequency for byte {symbol} must be >= 1, got {frequency}")
        priority_queue.append((frequency, sequence, Leaf(symbol, frequency)))
        sequence += 1
    heapq.heapify(priority_queue)

    while len(priority_queue) > 1:
        _, _, left = heapq.heappop(priority_queue)
        _, _, right = heapq.heappop(priority_queue)
        merged = Internal(left, right)
        heapq.heappush(priority_queue, (merged.frequency, sequence, merged))
        sequence += 1

    return priority_queue[0][2] # root of the tree


def generate_huffman_codes(root: Optional[HuffmanNode]) -> Dict[int, str]:
    codes: Dict[int, str] = {}
    if root is None:
        return codes

    # A lone leaf has an empty path, give it "0" so it can be packed
    if root.is_leaf:
        codes[root.symbol] = "0"
        return codes

    stack: List[Tuple[HuffmanNode, str]] = [(root, "")]
    while stack:
        node, current_code = stack.pop()
        if node.is_leaf:
            codes[node.symbol] = current_code
            continue
        # right pushed first so the left subtree is visited first
        stack.append((node.right, current_code + "1"))
        stack.append((node.left, current_code + "0"))
    return codes


def build(frequency_table: Dict[int, int]) -> Tuple[Optional[HuffmanNode], Dict[int, str]]:
    root = build_huffman_tree(frequency_table)
    return root, generate_huffman_codes(root)


# Inspection helpers

def iter_leaves(root: Optional[HuffmanNode]) -> Iterator[Leaf]:
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            yield node
        else:
            stack.append(node.right)
            stack.append(node.left)


def path_to_root(leaf: HuffmanNode) -> str:
    """
    Trace a leaf back up through its parent links and return its bit path
    For a lone-leaf tree this is "0", matching generate_huffman_codes
    """
    bits = []
    node = leaf
    parent = node.parent
    if parent is None:
        return "0" if node.is_leaf else ""
    while parent is not None:
        bits.append("0" if parent.left is node else "1")
        node, parent = parent, parent.parent
    return "".join(reversed(bits))


def tree_depth(root: Optional[HuffmanNode]) -> int:
    if root is None:
        return 0
    deepest = 0
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        if not node.is_leaf:
            stack.append((node.left, depth + 1))
            stack.append((node.right, depth + 1))
    return deepest


def code_lengths(codes: Dict[int, str]) -> Dict[int, int]:
    return {symbol: len(code) for symbol, code in codes.items()}


def encoded_bit_length(frequency_table: Dict[int, int], codes: Dict[int, str]) -> int:
    total = 0
    for symbol, frequency in frequency_table.items():
        code = codes.get(symbol)
        if code is None:
            raise UnknownSymbolError(symbol)
        total += frequency * len(code)
    return total
