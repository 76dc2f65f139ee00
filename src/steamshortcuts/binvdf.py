import logging
import struct
from collections import OrderedDict
from collections.abc import Mapping
from pathlib import Path

__all__ = (
    "BIN_NONE", "BIN_STRING", "BIN_INT32", "BIN_END", "ParseError",
    "VDFNode", "VDFString", "VDFUInt32", "VDFObject", "binary_loads",
    "binary_dumps", "binary_load", "binary_dump"
)

# Type tags preceding each entry in a binary VDF file
BIN_NONE = b"\x00"
BIN_STRING = b"\x01"
BIN_INT32 = b"\x02"
BIN_END = b"\x08"

UINT32_STRUCT = "<I"

logger = logging.getLogger("steamshortcuts")


class ParseError(ValueError):
    """
    Raised when binary VDF data is malformed or truncated
    """
    def __init__(self, message, offset):
        super().__init__(f"{message} (at byte offset {offset})")
        self.offset = offset


class VDFNode(object):
    """
    Base class for the values a binary VDF object can contain
    """
    __slots__ = ()


class VDFString(VDFNode):
    __slots__ = ("value",)

    def __init__(self, value=""):
        if not isinstance(value, str):
            raise TypeError(f"String node requires str, got {value!r}")

        self.value = value

    def __eq__(self, other):
        return isinstance(other, VDFString) and self.value == other.value

    def __repr__(self):
        return f"VDFString({self.value!r})"


class VDFUInt32(VDFNode):
    __slots__ = ("value",)

    def __init__(self, value=0):
        # Booleans are stored as 0/1
        if not isinstance(value, int):
            raise TypeError(f"UInt32 node requires int, got {value!r}")

        if not 0 <= value <= 0xffffffff:
            raise ValueError(f"{value} does not fit in an unsigned 32-bit int")

        self.value = int(value)

    def __eq__(self, other):
        return isinstance(other, VDFUInt32) and self.value == other.value

    def __repr__(self):
        return f"VDFUInt32({self.value:#x})"


class VDFObject(VDFNode):
    """
    Ordered collection of named VDF nodes.

    Keys are unique within an object. Iteration follows insertion order,
    which is also the order used when the object is encoded.
    """
    __slots__ = ("children",)

    def __init__(self, children=None):
        self.children = OrderedDict()

        if children:
            for key, node in children.items():
                self[key] = node

    @classmethod
    def from_dict(cls, data):
        """
        Create a VDFObject from plain Python values.

        Strings become string nodes, integers become unsigned 32-bit
        integer nodes and mappings become nested objects.
        """
        obj = cls()
        for key, value in data.items():
            if isinstance(value, VDFNode):
                obj[key] = value
            elif isinstance(value, str):
                obj[key] = VDFString(value)
            elif isinstance(value, int):
                obj[key] = VDFUInt32(value)
            elif isinstance(value, Mapping):
                obj[key] = cls.from_dict(value)
            else:
                raise TypeError(
                    f"Can't convert value {value!r} for key '{key}' into a "
                    "VDF node"
                )

        return obj

    def to_dict(self):
        """
        Convert the object into plain Python values
        """
        result = {}
        for key, node in self.children.items():
            if isinstance(node, VDFObject):
                result[key] = node.to_dict()
            else:
                result[key] = node.value

        return result

    def get(self, key, default=None):
        return self.children.get(key, default)

    def _get_typed(self, key, node_type):
        node = self.children.get(key)
        if isinstance(node, node_type):
            return node

        return None

    def get_string(self, key):
        """
        Return the string stored under the key, or None if the key is missing
        or holds a different kind of node
        """
        node = self._get_typed(key, VDFString)
        return node.value if node else None

    def get_uint32(self, key):
        """
        Return the integer stored under the key, or None if the key is missing
        or holds a different kind of node
        """
        node = self._get_typed(key, VDFUInt32)
        return node.value if node else None

    def get_object(self, key):
        """
        Return the nested object stored under the key, or None if the key is
        missing or holds a different kind of node
        """
        return self._get_typed(key, VDFObject)

    def items(self):
        return self.children.items()

    def keys(self):
        return self.children.keys()

    def __getitem__(self, key):
        return self.children[key]

    def __setitem__(self, key, node):
        if not isinstance(key, str):
            raise TypeError(f"VDF keys must be strings, got {key!r}")
        if not isinstance(node, VDFNode):
            raise TypeError(f"Value for key '{key}' is not a VDF node")

        self.children[key] = node

    def __delitem__(self, key):
        del self.children[key]

    def __contains__(self, key):
        return key in self.children

    def __iter__(self):
        return iter(self.children)

    def __len__(self):
        return len(self.children)

    def __eq__(self, other):
        if not isinstance(other, VDFObject):
            return False

        # Compare as plain dicts; order is not semantically meaningful
        return dict(self.children) == dict(other.children)

    def __repr__(self):
        return f"VDFObject({dict(self.children)!r})"


def binary_loads(data, raise_on_remaining=True):
    """
    Deserialize binary VDF data into a VDFObject

    :param bytes data: Binary VDF content. Empty content is parsed as an empty
                       object.
    :param bool raise_on_remaining: Raise ParseError if there is data left
                                    after the root object has been closed.
    :raises ParseError: If the data is malformed or truncated
    """
    data = bytes(data)

    if not data:
        return VDFObject()

    def read_cstring(i):
        end = data.find(BIN_NONE, i)
        if end == -1:
            raise ParseError("Unterminated string", i)

        return data[i:end].decode("utf-8", errors="replace"), end + 1

    root = VDFObject()
    # Objects that are still open, innermost last
    stack = [root]
    i = 0

    while stack:
        if i >= len(data):
            raise ParseError("Unexpected end of data inside object", i)

        tag = data[i:i+1]
        tag_offset = i
        i += 1

        if tag == BIN_END:
            stack.pop()
            continue

        if tag not in (BIN_NONE, BIN_STRING, BIN_INT32):
            raise ParseError(f"Unknown type tag {tag.hex()}", tag_offset)

        key, i = read_cstring(i)

        if tag == BIN_NONE:
            node = VDFObject()
            stack[-1][key] = node
            stack.append(node)
            continue

        if tag == BIN_STRING:
            value, i = read_cstring(i)
            node = VDFString(value)
        else:
            size = struct.calcsize(UINT32_STRUCT)
            if i + size > len(data):
                raise ParseError(f"Truncated integer for key '{key}'", i)

            value = struct.unpack_from(UINT32_STRUCT, data, i)[0]
            node = VDFUInt32(value)
            i += size

        stack[-1][key] = node

    if i < len(data):
        if raise_on_remaining:
            raise ParseError(
                f"{len(data) - i} bytes of unexpected data after root object",
                i
            )

        logger.debug(
            "Ignoring %d bytes after the binary VDF root object",
            len(data) - i
        )

    return root


def _encode_cstring(value, what):
    if "\x00" in value:
        raise ValueError(f"{what} {value!r} contains a NUL character")

    return value.encode("utf-8") + BIN_NONE


def _binary_dump_gen(obj):
    # Iterators over the objects being written, innermost last
    stack = [iter(obj.items())]

    while stack:
        for key, node in stack[-1]:
            key_bytes = _encode_cstring(key, "Key")

            if isinstance(node, VDFObject):
                yield BIN_NONE + key_bytes
                stack.append(iter(node.items()))
                break
            elif isinstance(node, VDFString):
                yield BIN_STRING + key_bytes
                yield _encode_cstring(node.value, "String value")
            elif isinstance(node, VDFUInt32):
                yield BIN_INT32 + key_bytes
                yield struct.pack(UINT32_STRUCT, node.value)
            else:
                raise TypeError(
                    f"Unsupported VDF node {node!r} for key '{key}'"
                )
        else:
            stack.pop()
            yield BIN_END


def binary_dumps(obj):
    """
    Serialize a VDFObject into binary VDF data
    """
    if not isinstance(obj, VDFObject):
        raise TypeError("Only a VDFObject can be serialized as the root node")

    return b"".join(_binary_dump_gen(obj))


def binary_load(path, raise_on_remaining=True):
    """
    Read and deserialize a binary VDF file
    """
    return binary_loads(
        Path(path).read_bytes(), raise_on_remaining=raise_on_remaining
    )


def binary_dump(obj, path):
    """
    Serialize a VDFObject and write it into a file, creating any missing
    parent directories
    """
    data = binary_dumps(obj)
    path = Path(path)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
