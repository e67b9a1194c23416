"""Human-transcribable text form of binary data.

Binary data is DEFLATE-compressed, prefixed with a marker byte naming the
compression, and written out as a Bech32m string whose human readable part
says what kind of data follows (`i` for invoices).

"""
from .bech32 import Variant, bech32_decode, bech32_encode, bytes_to_u5, u5_to_bytes
from .errors import TextParseError
import zlib


INVOICE_HRP = 'i'

# Marker byte in front of the compressed payload.
RAW_DATA_ENCODING_DEFLATE = 0x01


def compress(data: bytes) -> bytes:
    c = zlib.compressobj(9, zlib.DEFLATED, -15)
    return c.compress(data) + c.flush()


def decompress(data: bytes) -> bytes:
    d = zlib.decompressobj(-15)
    try:
        out = d.decompress(data) + d.flush()
    except zlib.error as e:
        raise TextParseError("Bad compressed payload: {}".format(e))
    if not d.eof or d.unused_data:
        raise TextParseError("Truncated or trailing compressed payload")
    return out


def encode_blob(hrp: str, data: bytes) -> str:
    """Plain Bech32m, no compression: used for short fixed-size ids."""
    return bech32_encode(hrp, bytes_to_u5(data), Variant.BECH32M)


def decode_blob(hrp: str, s: str) -> bytes:
    got, data, variant = bech32_decode(s)
    if got != hrp:
        raise TextParseError("Expected prefix '{}', got '{}'".format(hrp, got), s)
    if variant != Variant.BECH32M:
        raise TextParseError("Expected a bech32m checksum", s)
    return u5_to_bytes(data)


def to_text(data: bytes, hrp: str = INVOICE_HRP) -> str:
    return encode_blob(hrp, bytes([RAW_DATA_ENCODING_DEFLATE]) + compress(data))


def from_text(s: str, hrp: str = INVOICE_HRP) -> bytes:
    payload = decode_blob(hrp, s.strip())
    if len(payload) == 0:
        raise TextParseError("Empty payload", s)
    if payload[0] != RAW_DATA_ENCODING_DEFLATE:
        raise TextParseError("Unknown payload encoding {:#04x}".format(payload[0]), s)
    return decompress(payload[1:])
