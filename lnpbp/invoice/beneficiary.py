"""Payment destinations an invoice may name.

A beneficiary is one of a closed set of variants (address, blinded UTXO,
descriptor, PSBT template, lightning node), plus `UnknownBeneficiary` which
keeps the raw bytes of variants defined after this code was written.

Binary form of every variant: `u8 kind | u16 length | payload`.

"""
from .bech32 import decode_segwit, encode_segwit
from .chain import Chain
from .errors import BeneficiaryParseError, DecodeError
from .fields import U32_MAX, U64_MAX, _check_range
from .primitives import (
    PublicKey, ShortChannelId, read_exact, read_int, read_var_bytes,
    tagged_hash, write_int, write_var_bytes,
)
from .text import decode_blob, encode_blob
from dataclasses import dataclass
from io import BufferedIOBase, BytesIO
from typing import Optional, Tuple
import base58
import base64
import os
import re
import struct


class Beneficiary(object):
    @classmethod
    def from_str(cls, s: str) -> 'Beneficiary':
        """Try each grammar in turn; the first one that parses wins.

Grammars may overlap, so the order (address, blinded UTXO, descriptor) is
part of the contract.  PSBT templates and lightning nodes have no text form
and are only ever built from their binary encoding.

        """
        for bcls in TEXT_GRAMMARS:
            try:
                return bcls.from_str(s)
            except ValueError:
                continue
        raise BeneficiaryParseError(s)

    def payload(self) -> bytes:
        raise NotImplementedError()

    @classmethod
    def from_payload(cls, payload: bytes) -> 'Beneficiary':
        raise NotImplementedError()

    def write(self, io_out: BufferedIOBase) -> None:
        write_int(io_out, 'B', self.kind)
        write_var_bytes(io_out, self.payload())

    @classmethod
    def read(cls, io_in: BufferedIOBase) -> 'Beneficiary':
        kind = read_int(io_in, 'B', 'beneficiary')
        payload = read_var_bytes(io_in, 'beneficiary')
        bcls = BINARY_KINDS.get(kind)
        if bcls is None:
            return UnknownBeneficiary(kind, payload)
        try:
            ret = bcls.from_payload(payload)
        except DecodeError:
            raise
        except ValueError as e:
            raise DecodeError("Bad {} beneficiary: {}".format(bcls.__name__, e))
        if ret.payload() != payload:
            raise DecodeError("{} beneficiary is not canonically encoded"
                              .format(bcls.__name__))
        return ret


# Map of classical address prefixes to (chain, is_p2sh)
base58_prefix_map = {
    0: (Chain.MAINNET, False),
    5: (Chain.MAINNET, True),
    111: (Chain.TESTNET3, False),
    196: (Chain.TESTNET3, True),
}

segwit_hrp_map = {
    'bc': Chain.MAINNET,
    'tb': Chain.TESTNET3,
    'bcrt': Chain.REGTEST,
}


@dataclass(frozen=True)
class Address(Beneficiary):
    """Addresses are useful when you do not like to leak public key
information."""
    kind = 0
    address: str
    chain: Chain

    @classmethod
    def from_str(cls, s: str) -> 'Address':
        s = s.strip()
        if s.lower().startswith(tuple(h + '1' for h in segwit_hrp_map)):
            hrp, witver, prog = decode_segwit(s)
            if hrp not in segwit_hrp_map:
                raise ValueError("Unknown segwit prefix {}".format(hrp))
            return cls(encode_segwit(hrp, witver, prog), segwit_hrp_map[hrp])

        addr = base58.b58decode_check(s)
        if len(addr) != 21 or addr[0] not in base58_prefix_map:
            raise ValueError("Unknown address type {}".format(s))
        return cls(s, base58_prefix_map[addr[0]][0])

    def payload(self) -> bytes:
        return self.address.encode('ascii')

    @classmethod
    def from_payload(cls, payload: bytes) -> 'Address':
        return cls.from_str(payload.decode('ascii'))

    def __str__(self):
        return self.address


@dataclass(frozen=True)
class BlindUtxo(Beneficiary):
    """An existing UTXO hidden behind a salted hash, so client-validated
data (like RGB assets) can be assigned to it without revealing it."""
    kind = 1
    hrp = 'txob'
    concealed: bytes

    def __post_init__(self):
        if len(self.concealed) != 32:
            raise ValueError("Concealed UTXO must be 32 bytes")

    @classmethod
    def conceal(cls, txid: str, vout: int, blinding: Optional[int] = None) -> 'BlindUtxo':
        if blinding is None:
            blinding = struct.unpack('<Q', os.urandom(8))[0]
        _check_range('vout', vout, U32_MAX)
        _check_range('blinding', blinding, U64_MAX)
        txid_bytes = bytes.fromhex(txid)[::-1]
        if len(txid_bytes) != 32:
            raise ValueError("txid must be 32 bytes")
        msg = txid_bytes + struct.pack('<IQ', vout, blinding)
        return cls(tagged_hash(b'lnpbp:seal:txout', msg))

    @classmethod
    def from_str(cls, s: str) -> 'BlindUtxo':
        return cls(decode_blob(cls.hrp, s.strip()))

    def payload(self) -> bytes:
        return self.concealed

    @classmethod
    def from_payload(cls, payload: bytes) -> 'BlindUtxo':
        return cls(payload)

    def __str__(self):
        return encode_blob(self.hrp, self.concealed)


# BIP-380 descriptor checksum
INPUT_CHARSET = "0123456789()[],'/*abcdefgh@:$%{}IJKLMNOPQRSTUVWXYZ&+-.;<=>?!^_|~ijklmnopqrstuvwxyzABCDEFGH`#\"\\ "
CHECKSUM_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
DESCRIPTOR_FUNCTIONS = ('sh', 'wsh', 'pk', 'pkh', 'wpkh', 'combo', 'multi',
                        'sortedmulti', 'multi_a', 'sortedmulti_a', 'tr',
                        'addr', 'raw', 'rawtr')


def descsum_polymod(symbols):
    """Internal function that computes the descriptor checksum."""
    generator = [0xf5dee51989, 0xa9fdca3312, 0x1bab10e32d, 0x3706b1677a, 0x644d626ffd]
    chk = 1
    for value in symbols:
        top = chk >> 35
        chk = (chk & 0x7ffffffff) << 5 ^ value
        for i in range(5):
            chk ^= generator[i] if ((top >> i) & 1) else 0
    return chk


def descsum_expand(s):
    """Internal function that does the character to symbol expansion"""
    groups = []
    symbols = []
    for c in s:
        if c not in INPUT_CHARSET:
            return None
        v = INPUT_CHARSET.find(c)
        symbols.append(v & 31)
        groups.append(v >> 5)
        if len(groups) == 3:
            symbols.append(groups[0] * 9 + groups[1] * 3 + groups[2])
            groups = []
    if len(groups) == 1:
        symbols.append(groups[0])
    elif len(groups) == 2:
        symbols.append(groups[0] * 3 + groups[1])
    return symbols


def descsum_create(s: str) -> str:
    """Add a checksum to a descriptor without"""
    symbols = descsum_expand(s) + [0, 0, 0, 0, 0, 0, 0, 0]
    checksum = descsum_polymod(symbols) ^ 1
    return s + '#' + ''.join(CHECKSUM_CHARSET[(checksum >> (5 * (7 - i))) & 31] for i in range(8))


def descsum_check(s: str) -> bool:
    """Verify that the checksum is correct in a descriptor"""
    if s[-9] != '#':
        return False
    if not all(x in CHECKSUM_CHARSET for x in s[-8:]):
        return False
    symbols = descsum_expand(s[:-9])
    if symbols is None:
        return False
    symbols += [CHECKSUM_CHARSET.find(x) for x in s[-8:]]
    return descsum_polymod(symbols) == 1


def _balanced(s: str) -> bool:
    pairs = {')': '(', ']': '[', '}': '{'}
    stack = []
    for c in s:
        if c in '([{':
            stack.append(c)
        elif c in pairs:
            if not stack or stack.pop() != pairs[c]:
                return False
    return not stack


@dataclass(frozen=True)
class Descriptor(Beneficiary):
    """Output script descriptor: a template for key derivation and script
generation."""
    kind = 2
    descriptor: str

    @classmethod
    def from_str(cls, s: str) -> 'Descriptor':
        s = s.strip()
        body = s
        if '#' in s:
            if len(s) < 9 or not descsum_check(s):
                raise ValueError("Bad descriptor checksum")
            body = s[:-9]
        if descsum_expand(body) is None:
            raise ValueError("Invalid character in descriptor")
        m = re.fullmatch(r'([a-z_]+)\((.+)\)', body)
        if m is None or m.group(1) not in DESCRIPTOR_FUNCTIONS:
            raise ValueError("Not a descriptor: {}".format(s))
        if not _balanced(m.group(2)):
            raise ValueError("Unbalanced brackets in descriptor")
        return cls(s)

    def with_checksum(self) -> str:
        if '#' in self.descriptor:
            return self.descriptor
        return descsum_create(self.descriptor)

    def payload(self) -> bytes:
        return self.descriptor.encode('ascii')

    @classmethod
    def from_payload(cls, payload: bytes) -> 'Descriptor':
        return cls.from_str(payload.decode('ascii'))

    def __str__(self):
        return self.descriptor


@dataclass(frozen=True)
class PsbtTemplate(Beneficiary):
    """Full transaction template in PSBT format"""
    kind = 3
    magic = b'psbt\xff'
    psbt: bytes

    def __post_init__(self):
        if not self.psbt.startswith(self.magic):
            raise ValueError("PSBT must start with the psbt magic bytes")

    @classmethod
    def from_str(cls, s: str) -> 'PsbtTemplate':
        raise BeneficiaryParseError(s, "PSBT templates have no text form")

    @classmethod
    def from_base64(cls, s: str) -> 'PsbtTemplate':
        return cls(base64.b64decode(s, validate=True))

    def to_base64(self) -> str:
        return base64.b64encode(self.psbt).decode('ASCII')

    def payload(self) -> bytes:
        return self.psbt

    @classmethod
    def from_payload(cls, payload: bytes) -> 'PsbtTemplate':
        return cls(payload)

    def __str__(self):
        return "PSBT!"


@dataclass(frozen=True)
class RouteHint(object):
    """One hop of a private route, laid out as in BOLT11's `r` field"""
    length = 33 + 8 + 4 + 4 + 2

    pubkey: PublicKey
    short_channel_id: ShortChannelId
    fee_base_msat: int
    fee_proportional_millionths: int
    cltv_expiry_delta: int

    @classmethod
    def from_bytes(cls, b: BufferedIOBase) -> 'RouteHint':
        pubkey = PublicKey(read_exact(b, 33, 'route hint'))
        scid = ShortChannelId.from_bytes(read_exact(b, 8, 'route hint'))
        fee_base, fee_prop, cltv = struct.unpack("!IIH", read_exact(b, 10, 'route hint'))
        return cls(pubkey, scid, fee_base, fee_prop, cltv)

    def to_bytes(self) -> bytes:
        return self.pubkey.to_bytes() + struct.pack(
            "!QIIH", self.short_channel_id.to_int(), self.fee_base_msat,
            self.fee_proportional_millionths, self.cltv_expiry_delta
        )

    def __str__(self):
        return "{}@{}".format(self.short_channel_id, self.pubkey)


@dataclass(frozen=True)
class LightningNode(Beneficiary):
    """Lightning node receiving the payment.

Most of what a BOLT11 invoice carries (amount, description, expiry) lives
in the invoice itself; only the node specifics are kept here.

    """
    kind = 4
    node_id: PublicKey
    features: bytes = b''
    lock: bytes = bytes(32)
    min_final_cltv_expiry: Optional[int] = None
    route_hints: Tuple[RouteHint, ...] = ()

    def __post_init__(self):
        # Accept any iterable but keep the value hashable
        object.__setattr__(self, 'route_hints', tuple(self.route_hints))
        if self.min_final_cltv_expiry is not None and not 0 <= self.min_final_cltv_expiry < 2**16:
            raise ValueError("min_final_cltv_expiry must fit u16")

    def payload(self) -> bytes:
        b = BytesIO()
        b.write(self.node_id.to_bytes())
        write_var_bytes(b, self.features)
        write_var_bytes(b, self.lock)
        if self.min_final_cltv_expiry is None:
            write_int(b, 'B', 0)
        else:
            write_int(b, 'B', 1)
            write_int(b, '>H', self.min_final_cltv_expiry)
        write_int(b, '>H', len(self.route_hints))
        for rh in self.route_hints:
            b.write(rh.to_bytes())
        return b.getvalue()

    @classmethod
    def from_payload(cls, payload: bytes) -> 'LightningNode':
        b = BytesIO(payload)
        node_id = PublicKey(read_exact(b, 33, 'node id'))
        features = read_var_bytes(b, 'features')
        lock = read_var_bytes(b, 'lock')
        flag = read_int(b, 'B', 'min_final_cltv_expiry')
        if flag == 0:
            cltv = None
        elif flag == 1:
            cltv = read_int(b, '>H', 'min_final_cltv_expiry')
        else:
            raise DecodeError("Invalid option flag {}".format(flag))
        count = read_int(b, '>H', 'route hints')
        hints = [RouteHint.from_bytes(b) for _ in range(count)]
        if b.read(1):
            raise DecodeError("Trailing bytes in lightning node")
        return cls(node_id, features, lock, cltv, tuple(hints))

    def __str__(self):
        return str(self.node_id)


@dataclass(frozen=True)
class UnknownBeneficiary(Beneficiary):
    """A variant this implementation does not know; kept byte for byte."""
    kind: int
    blob: bytes

    def payload(self) -> bytes:
        return self.blob

    def __str__(self):
        return "unknown:{}:{}".format(self.kind, self.blob.hex())


TEXT_GRAMMARS = [Address, BlindUtxo, Descriptor]

BINARY_KINDS = {bcls.kind: bcls for bcls in
                [Address, BlindUtxo, Descriptor, PsbtTemplate, LightningNode]}
