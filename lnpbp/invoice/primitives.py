from .errors import DecodeError
from io import BufferedIOBase
from typing import Optional, Union
import coincurve
import hashlib
import struct


def try_unpack(name: str,
               io_in: BufferedIOBase,
               structfmt: str,
               empty_ok: bool) -> Optional[int]:
    """Unpack a single value using struct.unpack.

If empty_ok, returns None on EOF, otherwise never returns None."""
    b = io_in.read(struct.calcsize(structfmt))
    if len(b) == 0 and empty_ok:
        return None
    elif len(b) < struct.calcsize(structfmt):
        raise DecodeError("{}: not enough bytes".format(name))

    return struct.unpack(structfmt, b)[0]


def read_int(io_in: BufferedIOBase, structfmt: str, name: str) -> int:
    v = try_unpack(name, io_in, structfmt, empty_ok=False)
    assert v is not None
    return v


def write_int(io_out: BufferedIOBase, structfmt: str, v: int) -> None:
    try:
        io_out.write(struct.pack(structfmt, v))
    except struct.error as e:
        raise ValueError("{} does not fit {}: {}".format(v, structfmt, e))


def read_exact(io_in: BufferedIOBase, length: int, name: str) -> bytes:
    b = io_in.read(length)
    if len(b) != length:
        raise DecodeError("{}: expected {} bytes, got {}"
                          .format(name, length, len(b)))
    return b


def write_var_bytes(io_out: BufferedIOBase, b: bytes) -> None:
    """u16 length followed by the data"""
    write_int(io_out, '>H', len(b))
    io_out.write(b)


def read_var_bytes(io_in: BufferedIOBase, name: str) -> bytes:
    length = read_int(io_in, '>H', name)
    return read_exact(io_in, length, name)


def bigsize_write(io_out: BufferedIOBase, v: int) -> None:
    if v < 0:
        raise ValueError("BigSize cannot be negative: {}".format(v))
    if v < 253:
        io_out.write(bytes([v]))
    elif v < 2**16:
        io_out.write(bytes([253]) + struct.pack('>H', v))
    elif v < 2**32:
        io_out.write(bytes([254]) + struct.pack('>I', v))
    else:
        io_out.write(bytes([255]) + struct.pack('>Q', v))


def bigsize_read(io_in: BufferedIOBase) -> Optional[int]:
    "Returns value, or None on EOF"
    b = io_in.read(1)
    if len(b) == 0:
        return None
    if b[0] < 253:
        return int(b[0])
    elif b[0] == 253:
        v, minimum = read_int(io_in, '>H', 'BigSize'), 253
    elif b[0] == 254:
        v, minimum = read_int(io_in, '>I', 'BigSize'), 2**16
    else:
        v, minimum = read_int(io_in, '>Q', 'BigSize'), 2**32

    # BOLT #1: A reader MUST fail on a non-minimally encoded BigSize.
    if v < minimum:
        raise DecodeError("BigSize {} is not minimally encoded".format(v))
    return v


class ShortChannelId(object):
    def __init__(self, block, txnum, outnum):
        self.block = block
        self.txnum = txnum
        self.outnum = outnum

    @classmethod
    def from_bytes(cls, b):
        assert(len(b) == 8)
        i, = struct.unpack("!Q", b)
        return cls.from_int(i)

    @classmethod
    def from_int(cls, i):
        block = (i >> 40) & 0xFFFFFF
        txnum = (i >> 16) & 0xFFFFFF
        outnum = (i >> 0) & 0xFFFF
        return cls(block=block, txnum=txnum, outnum=outnum)

    @classmethod
    def from_str(cls, s):
        parts = s.split('x')
        if len(parts) != 3:
            raise ValueError("short_channel_id should be NxNxN: {}".format(s))
        block, txnum, outnum = parts
        return cls(block=int(block), txnum=int(txnum), outnum=int(outnum))

    def to_int(self):
        return self.block << 40 | self.txnum << 16 | self.outnum

    def to_bytes(self):
        return struct.pack("!Q", self.to_int())

    def __str__(self):
        return "{self.block}x{self.txnum}x{self.outnum}".format(self=self)

    def __repr__(self):
        return "ShortChannelId({})".format(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ShortChannelId):
            return False

        return self.to_int() == other.to_int()

    def __hash__(self):
        return hash(self.to_int())


class PublicKey(object):
    """A compressed secp256k1 point, used for node ids and signer keys."""
    length = 33

    def __init__(self, innerkey: Union[bytes, coincurve.PublicKey]):
        # We accept either 33-bytes raw keys, or an EC PublicKey as returned
        # by coincurve
        if isinstance(innerkey, bytes):
            if len(innerkey) == 33 and innerkey[0] in [2, 3]:
                try:
                    innerkey = coincurve.PublicKey(innerkey)
                except ValueError as e:
                    raise ValueError("Not a point on the curve: {}".format(e))
            else:
                raise ValueError(
                    "Byte keys must be 33-byte long starting from either 02 or 03"
                )

        elif not isinstance(innerkey, coincurve.PublicKey):
            raise ValueError(
                "Key must either be bytes or coincurve.PublicKey"
            )
        self.key = innerkey

    @classmethod
    def from_hex(cls, s: str) -> 'PublicKey':
        try:
            raw = bytes.fromhex(s)
        except ValueError:
            raise ValueError("Public key must be hex-encoded: {}".format(s))
        return cls(raw)

    def serializeCompressed(self) -> bytes:
        return self.key.format(compressed=True)

    def to_bytes(self) -> bytes:
        return self.serializeCompressed()

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, PublicKey)
                and self.to_bytes() == other.to_bytes())

    def __hash__(self):
        return hash(self.to_bytes())

    def __str__(self):
        return self.serializeCompressed().hex()

    def __repr__(self):
        return "PublicKey[0x{}]".format(self)


def tagged_hash(tag: bytes, msg: bytes) -> bytes:
    """BIP-340 style tagged SHA256: sha256(sha256(tag) || sha256(tag) || msg)"""
    tag_hash = hashlib.sha256(tag).digest()
    return hashlib.sha256(tag_hash + tag_hash + msg).digest()
