import struct

import pytest
import vdf

from steamshortcuts.binvdf import (ParseError, VDFObject, VDFString,
                                   VDFUInt32, binary_dump, binary_dumps,
                                   binary_load, binary_loads)


def _entry(tag, key, value=b""):
    return tag + key.encode("utf-8") + b"\x00" + value


class TestVDFNodes:
    def test_uint32_range(self):
        """
        Ensure integer nodes only accept unsigned 32-bit values
        """
        assert VDFUInt32(0).value == 0
        assert VDFUInt32(0xffffffff).value == 0xffffffff

        with pytest.raises(ValueError):
            VDFUInt32(-1)

        with pytest.raises(ValueError):
            VDFUInt32(2**32)

        with pytest.raises(TypeError):
            VDFUInt32("1")

    def test_string_requires_str(self):
        with pytest.raises(TypeError):
            VDFString(1)

    def test_object_typed_getters(self):
        """
        Retrieve values using the typed getters. A value of a different type
        is treated the same as a missing one.
        """
        obj = VDFObject.from_dict({
            "name": "Fake game",
            "appid": 4278190081,
            "tags": {"0": "favorite"}
        })

        assert obj.get_string("name") == "Fake game"
        assert obj.get_uint32("appid") == 4278190081
        assert obj.get_object("tags") == VDFObject.from_dict(
            {"0": "favorite"}
        )

        assert obj.get_string("appid") is None
        assert obj.get_uint32("name") is None
        assert obj.get_object("name") is None
        assert obj.get_string("missing") is None

    def test_object_equality_ignores_order(self):
        obj_a = VDFObject.from_dict({"a": "1", "b": 2})
        obj_b = VDFObject.from_dict({"b": 2, "a": "1"})

        assert obj_a == obj_b
        assert obj_a != VDFObject.from_dict({"a": "1", "b": "2"})
        assert list(obj_a) == ["a", "b"]
        assert list(obj_b) == ["b", "a"]

    def test_object_rejects_non_nodes(self):
        obj = VDFObject()

        with pytest.raises(TypeError):
            obj["key"] = "plain string"

        with pytest.raises(TypeError):
            VDFObject.from_dict({"key": 1.5})

    def test_object_to_dict(self):
        data = {
            "shortcuts": {
                "0": {"AppName": "Fake game", "IsHidden": 1, "tags": {}}
            }
        }

        assert VDFObject.from_dict(data).to_dict() == data


class TestBinaryLoads:
    def test_empty(self):
        """
        Empty data is parsed as an empty object
        """
        assert binary_loads(b"") == VDFObject()
        assert len(binary_loads(b"")) == 0

    def test_empty_root(self):
        assert binary_loads(b"\x08") == VDFObject()

    def test_nested(self):
        """
        Parse nested objects containing strings and integers
        """
        data = b"".join([
            _entry(b"\x00", "shortcuts"),
            _entry(b"\x00", "0"),
            _entry(b"\x02", "appid", struct.pack("<I", 0xff000001)),
            _entry(b"\x01", "AppName", "Fake gäme".encode("utf-8") + b"\x00"),
            _entry(b"\x00", "tags"),
            b"\x08",
            b"\x08",
            b"\x08",
            b"\x08"
        ])

        root = binary_loads(data)
        entry = root.get_object("shortcuts").get_object("0")

        assert entry.get_uint32("appid") == 0xff000001
        assert entry.get_string("AppName") == "Fake gäme"
        assert len(entry.get_object("tags")) == 0
        assert list(entry) == ["appid", "AppName", "tags"]

    def test_invalid_utf8(self):
        """
        Invalid UTF-8 sequences are replaced instead of raising an error
        """
        data = _entry(b"\x01", "name", b"bad \xff byte\x00") + b"\x08"

        assert binary_loads(data).get_string("name") == "bad \ufffd byte"

    def test_truncated_string(self):
        """
        Parse data with a string missing its terminator
        """
        data = _entry(b"\x00", "shortcuts") + b"\x01AppName\x00Fake game"

        with pytest.raises(ParseError) as exc:
            binary_loads(data)

        assert "Unterminated string" in str(exc.value)
        assert exc.value.offset == len(_entry(b"\x00", "shortcuts")) + 9

    def test_truncated_key(self):
        with pytest.raises(ParseError) as exc:
            binary_loads(b"\x01AppN")

        assert exc.value.offset == 1

    def test_truncated_integer(self):
        """
        Parse data with an integer that has less than 4 bytes
        """
        data = _entry(b"\x02", "appid", b"\x01\x02")

        with pytest.raises(ParseError) as exc:
            binary_loads(data)

        assert "Truncated integer" in str(exc.value)
        assert exc.value.offset == 7

    def test_unknown_tag(self):
        data = _entry(b"\x01", "a", b"b\x00") + b"\x07"

        with pytest.raises(ParseError) as exc:
            binary_loads(data)

        assert "Unknown type tag 07" in str(exc.value)
        assert exc.value.offset == 5

    @pytest.mark.parametrize(
        "data",
        [
            b"\x00shortcuts\x00",
            b"\x00shortcuts\x00\x08",
            b"\x01a\x00b\x00",
        ],
        ids=["open nested object", "open root object", "no root end"]
    )
    def test_unexpected_end(self, data):
        """
        Parse data that ends while an object is still open
        """
        with pytest.raises(ParseError) as exc:
            binary_loads(data)

        assert "Unexpected end of data" in str(exc.value)
        assert exc.value.offset == len(data)

    def test_unmatched_end(self):
        """
        Parse data containing an end marker without a matching object
        """
        data = b"\x01a\x00b\x00\x08\x08"

        with pytest.raises(ParseError) as exc:
            binary_loads(data)

        assert "unexpected data after root object" in str(exc.value)
        assert exc.value.offset == 6

    def test_remaining_data_ignored(self):
        data = b"\x01a\x00b\x00\x08garbage"

        root = binary_loads(data, raise_on_remaining=False)

        assert root == VDFObject.from_dict({"a": "b"})

    def test_deeply_nested_truncated(self):
        """
        Parse deeply nested objects that are never closed
        """
        data = b"\x00a\x00" * 5000

        with pytest.raises(ParseError) as exc:
            binary_loads(data)

        assert "Unexpected end of data" in str(exc.value)
        assert exc.value.offset == len(data)

    def test_deeply_nested(self):
        """
        Parse deeply nested objects and ensure they're serialized back
        into the same data
        """
        data = b"\x00a\x00" * 5000 + b"\x08" * 5001

        root = binary_loads(data)

        node = root
        for _ in range(5000):
            node = node.get_object("a")

        assert len(node) == 0
        assert binary_dumps(root) == data


class TestBinaryDumps:
    def test_layout(self):
        """
        Serialize an object and check the exact binary layout
        """
        obj = VDFObject.from_dict({
            "shortcuts": {
                "0": {"appid": 0xff000001, "AppName": "Game"}
            }
        })

        assert binary_dumps(obj) == b"".join([
            b"\x00shortcuts\x00",
            b"\x000\x00",
            b"\x02appid\x00\x01\x00\x00\xff",
            b"\x01AppName\x00Game\x00",
            b"\x08\x08\x08"
        ])

    def test_empty(self):
        assert binary_dumps(VDFObject()) == b"\x08"

    def test_roundtrip(self):
        """
        Encode a decoded tree and ensure the result decodes into an equal tree
        """
        data = b"".join([
            _entry(b"\x00", "shortcuts"),
            _entry(b"\x00", "0"),
            _entry(b"\x01", "AppName", b"Game\x00"),
            _entry(b"\x02", "LastPlayTime", struct.pack("<I", 1700000000)),
            _entry(b"\x00", "tags"),
            _entry(b"\x01", "0", b"favorite\x00"),
            b"\x08\x08\x08\x08"
        ])

        root = binary_loads(data)
        encoded = binary_dumps(root)

        assert encoded == data
        assert binary_loads(encoded) == root

    def test_nul_character(self):
        with pytest.raises(ValueError):
            binary_dumps(VDFObject.from_dict({"name": "bad\x00value"}))

        with pytest.raises(ValueError):
            binary_dumps(VDFObject.from_dict({"bad\x00key": "value"}))

    def test_root_must_be_object(self):
        with pytest.raises(TypeError):
            binary_dumps(VDFString("not an object"))


class TestVDFLibraryCompatibility:
    """
    Ensure the binary format is compatible with the one produced and read
    by the 'vdf' library
    """
    DATA = {
        "shortcuts": {
            "0": {
                "AppName": "Fake game",
                "Exe": '"/fake/path/game.exe"',
                "IsHidden": 0,
                "AllowOverlay": 1,
                "tags": {"0": "favorite", "1": "installed"}
            },
            "1": {
                "AppName": "Another game",
                "LastPlayTime": 1700000000,
                "tags": {}
            }
        }
    }

    def test_loads_vdf_output(self):
        root = binary_loads(vdf.binary_dumps(self.DATA))

        assert root.to_dict() == self.DATA

    def test_vdf_loads_output(self):
        data = binary_dumps(VDFObject.from_dict(self.DATA))

        assert vdf.binary_loads(data) == self.DATA


class TestBinaryFiles:
    def test_dump_and_load(self, tmp_path):
        """
        Write a binary VDF file into a directory that doesn't exist yet and
        read it back
        """
        path = tmp_path / "nested" / "dir" / "test.vdf"
        obj = VDFObject.from_dict({"a": {"b": "c", "d": 1}})

        binary_dump(obj, path)

        assert path.is_file()
        assert binary_load(path) == obj

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            binary_load(tmp_path / "missing.vdf")
