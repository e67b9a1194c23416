from lnpbp.invoice.bech32 import (
    Variant, bech32_decode, bech32_encode, bytes_to_u5, decode_segwit,
    encode_segwit, u5_to_bytes,
)
from lnpbp.invoice.errors import TextParseError
import pytest


def test_bech32m_vectors():
    for s in ['A1LQFN3A', 'a1lqfn3a',
              'abcdef1l7aum6echk45nj3s0wdvt2fg8x9yrzpqzd3ryx']:
        hrp, data, variant = bech32_decode(s)
        assert(variant == Variant.BECH32M)
        assert(bech32_encode(hrp, data, variant) == s.lower())


def test_bech32_vectors():
    hrp, data, variant = bech32_decode('A12UEL5L')
    assert(hrp == 'a')
    assert(data == b'')
    assert(variant == Variant.BECH32)


def test_invalid_strings():
    for s in ['A1lqfn3a',       # mixed case
              'a1lqfn3b',       # checksum
              'lqfn3a',         # no separator
              '1lqfn3a',        # empty hrp
              'a1lqfnba',       # 'b' is not in the alphabet
              'a1 lqfn3a']:
        with pytest.raises(TextParseError):
            bech32_decode(s)


def test_no_length_limit():
    data = bytes_to_u5(bytes(range(256)))
    s = bech32_encode('i', data)
    assert(len(s) > 90)
    assert(bech32_decode(s) == ('i', data, Variant.BECH32M))


def test_u5_padding():
    for b in [b'', b'\x00', b'\xff' * 7, bytes(range(33))]:
        assert(u5_to_bytes(bytes_to_u5(b)) == b)

    # 2 groups = 10 bits: the 2 padding bits must be zero
    assert(u5_to_bytes(bytes([31, 28])) == b'\xff')
    with pytest.raises(TextParseError):
        u5_to_bytes(bytes([31, 29]))


def test_segwit():
    hrp, witver, prog = decode_segwit('BC1QW508D6QEJXTDG4Y5R3ZARVARY0C5XW7KV8F3T4')
    assert(hrp == 'bc')
    assert(witver == 0)
    assert(prog == bytes.fromhex('751e76e8199196d454941c45d1b3a323f1433bd6'))
    assert(encode_segwit(hrp, witver, prog) == 'bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4')


def test_segwit_checksum_variant():
    prog = bytes.fromhex('751e76e8199196d454941c45d1b3a323f1433bd6')

    # Witness v0 must use bech32, later versions bech32m
    wrong = bech32_encode('bc', bytes([0]) + bytes_to_u5(prog), Variant.BECH32M)
    with pytest.raises(TextParseError):
        decode_segwit(wrong)

    taproot = encode_segwit('bc', 1, bytes(32))
    assert(decode_segwit(taproot) == ('bc', 1, bytes(32)))
    wrong = bech32_encode('bc', bytes([1]) + bytes_to_u5(bytes(32)), Variant.BECH32)
    with pytest.raises(TextParseError):
        decode_segwit(wrong)
