from lnpbp.invoice.bech32 import Variant, bech32_encode, bytes_to_u5
from lnpbp.invoice.errors import TextParseError
from lnpbp.invoice.text import (
    RAW_DATA_ENCODING_DEFLATE, compress, decode_blob, encode_blob, from_text,
    to_text,
)
import pytest


def test_text_roundtrip():
    data = b'\x00' * 100 + bytes(range(200))
    s = to_text(data)
    assert(s.startswith('i1'))
    assert(from_text(s) == data)
    # Upper case is just as valid, and surrounding whitespace is ignored
    assert(from_text(' ' + s.upper() + '\n') == data)


def test_text_compresses():
    data = b'a' * 1000
    assert(len(to_text(data)) < 100)


def test_text_rejects():
    s = to_text(b'hello')

    with pytest.raises(TextParseError):
        from_text(s[:5] + s[5:].upper())

    with pytest.raises(TextParseError):
        from_text(s[:-1] + ('q' if s[-1] != 'q' else 'p'))

    with pytest.raises(TextParseError):
        from_text(encode_blob('x', bytes([RAW_DATA_ENCODING_DEFLATE]) + compress(b'hello')))

    # Right prefix, but a bech32 (not bech32m) checksum
    data = bytes_to_u5(bytes([RAW_DATA_ENCODING_DEFLATE]) + compress(b'hello'))
    with pytest.raises(TextParseError):
        from_text(bech32_encode('i', data, Variant.BECH32))


def test_text_payload_marker():
    with pytest.raises(TextParseError, match="Empty payload"):
        from_text(encode_blob('i', b''))

    with pytest.raises(TextParseError, match="Unknown payload encoding"):
        from_text(encode_blob('i', b'\x02' + compress(b'hello')))

    with pytest.raises(TextParseError):
        from_text(encode_blob('i', b'\x01not deflate at all'))

    # Truncated stream
    with pytest.raises(TextParseError):
        from_text(encode_blob('i', b'\x01' + compress(b'hello' * 10)[:-2]))


def test_blob():
    s = encode_blob('txob', bytes(32))
    assert(s.startswith('txob1'))
    assert(decode_blob('txob', s) == bytes(32))
    with pytest.raises(TextParseError):
        decode_blob('rgb', s)
