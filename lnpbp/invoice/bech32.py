# Copyright (c) 2017 Pieter Wuille
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
# THE SOFTWARE.

"""Bech32 and Bech32m checksummed strings (BIP-173, BIP-350)."""
from .errors import TextParseError
from enum import Enum
from typing import Tuple
import bitstring  # type: ignore


CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"


class Variant(Enum):
    BECH32 = 1
    BECH32M = 0x2bc830a3


def bech32_polymod(values: bytes) -> int:
    """Internal function that computes the Bech32 checksum."""
    generator = [0x3b6a57b2, 0x26508e6d, 0x1ea119fa, 0x3d4233dd, 0x2a1462b3]
    chk = 1
    for value in values:
        top = chk >> 25
        chk = (chk & 0x1ffffff) << 5 ^ value
        for i in range(5):
            chk ^= generator[i] if ((top >> i) & 1) else 0
    return chk


def bech32_hrp_expand(hrp: str) -> bytes:
    """Expand the HRP into values for checksum computation."""
    return bytes([ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp])


def bech32_verify_checksum(hrp: str, data: bytes) -> Variant:
    """Find the variant whose checksum matches, or fail."""
    const = bech32_polymod(bech32_hrp_expand(hrp) + data)
    for variant in Variant:
        if const == variant.value:
            return variant
    raise TextParseError("Checksum verification failed", hrp)


def bech32_create_checksum(hrp: str, data: bytes, variant: Variant) -> bytes:
    """Compute the checksum values given HRP and converted data characters."""
    values = bech32_hrp_expand(hrp) + data
    polymod = bech32_polymod(values + bytes([0, 0, 0, 0, 0, 0])) ^ variant.value
    return bytes([(polymod >> 5 * (5 - i)) & 31 for i in range(6)])


def bech32_encode(hrp: str, data: bytes, variant: Variant = Variant.BECH32M) -> str:
    """Compute a Bech32(m) string given HRP and 5-bit data values."""
    combined = bytes(data) + bech32_create_checksum(hrp, bytes(data), variant)
    return hrp + '1' + ''.join([CHARSET[d] for d in combined])


def bech32_decode(bech: str) -> Tuple[str, bytes, Variant]:
    """Validate a Bech32(m) string, and determine HRP, data and variant.

No upper bound is put on the length: invoices are much longer than the
90 characters BIP-173 allows for addresses.

    """
    if any(ord(x) < 33 or ord(x) > 126 for x in bech):
        raise TextParseError("Invalid character", bech)
    if bech.lower() != bech and bech.upper() != bech:
        raise TextParseError("Mixed case", bech)

    bech = bech.lower()
    pos = bech.rfind('1')
    if pos < 1 or pos + 7 > len(bech):
        raise TextParseError("Could not locate hrp separator '1'", bech)

    if not all(x in CHARSET for x in bech[pos + 1:]):
        raise TextParseError("Non-bech32 character found", bech)

    hrp = bech[:pos]
    data = bytes([CHARSET.find(x) for x in bech[pos + 1:]])
    variant = bech32_verify_checksum(hrp, data)
    return (hrp, data[:-6], variant)


# Bech32 works on 5-bit values.  Shim here.
def u5_to_bitarray(arr: bytes) -> bitstring.BitArray:
    ret = bitstring.BitArray()
    for a in arr:
        ret += bitstring.pack("uint:5", a)
    return ret


def bitarray_to_u5(barr) -> bytes:
    assert barr.len % 5 == 0
    ret = []
    s = bitstring.ConstBitStream(barr)
    while s.pos != s.len:
        ret.append(s.read(5).uint)
    return bytes(ret)


def bytes_to_u5(b: bytes) -> bytes:
    """Regroup bytes into 5-bit values, zero padding the last one."""
    barr = bitstring.BitArray(bytes=b)
    if barr.len % 5 != 0:
        barr.append(bitstring.Bits(length=5 - barr.len % 5))
    return bitarray_to_u5(barr)


def u5_to_bytes(data: bytes) -> bytes:
    """Regroup 5-bit values into bytes, rejecting anything but zero padding."""
    barr = u5_to_bitarray(data)
    padding = barr.len % 8
    if padding >= 5:
        raise TextParseError("Excess padding in data part")
    if padding and barr[barr.len - padding:].any(True):
        raise TextParseError("Non-zero padding in data part")
    return barr[:barr.len - padding].tobytes()


def decode_segwit(addr: str) -> Tuple[str, int, bytes]:
    """Decode a segwit address into HRP, witness version and program."""
    hrp, data, variant = bech32_decode(addr)
    if len(data) < 1:
        raise TextParseError("Empty witness data", addr)
    witver = data[0]
    if witver > 16:
        raise TextParseError("Invalid witness version {}".format(witver), addr)
    prog = u5_to_bytes(data[1:])
    if len(prog) < 2 or len(prog) > 40:
        raise TextParseError("Invalid witness program length", addr)
    if witver == 0 and len(prog) != 20 and len(prog) != 32:
        raise TextParseError("Invalid witness v0 program length", addr)
    if (witver == 0) != (variant == Variant.BECH32):
        raise TextParseError("Wrong checksum variant for witness version", addr)
    return hrp, witver, prog


def encode_segwit(hrp: str, witver: int, witprog: bytes) -> str:
    """Encode a segwit address."""
    variant = Variant.BECH32 if witver == 0 else Variant.BECH32M
    return bech32_encode(hrp, bytes([witver]) + bytes_to_u5(witprog), variant)
