"""Small value types carried by an invoice.

All of them are immutable.  Each knows its text grammar (`from_str` /
`__str__`) and its canonical binary form (`read` / `write`).

"""
from .chain import Chain
from .errors import (
    AmountParseError, DecodeError, EndpointParseError, Iso4217Error,
    RecurrenceParseError, UnsupportedChain,
)
from .primitives import (
    PublicKey, read_exact, read_int, read_var_bytes, write_int, write_var_bytes,
)
from dataclasses import dataclass
from enum import Enum
from io import BufferedIOBase
from typing import Optional
import re


U8_MAX = 2**8 - 1
U16_MAX = 2**16 - 1
U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1


def _check_range(name: str, v: int, maximum: int) -> None:
    if not isinstance(v, int) or v < 0 or v > maximum:
        raise ValueError("{} must be an integer in 0..{}, not {!r}"
                         .format(name, maximum, v))


def _read_utf8(b: bytes, name: str) -> str:
    try:
        return b.decode('utf-8')
    except UnicodeDecodeError as e:
        raise DecodeError("{}: invalid UTF-8: {}".format(name, e))


class Amount(object):
    """Price of a single item, in the smallest unit of the asset."""

    def atomic_value(self) -> Optional[int]:
        """Only a plain amount converts to a single integer"""
        return None

    @classmethod
    def from_str(cls, s: str) -> 'Amount':
        if s.strip().lower() == 'any':
            return AnyAmount()
        parts = s.split('.')
        if not all(re.fullmatch(r'[0-9]+', p) for p in parts):
            raise AmountParseError(s)
        try:
            if len(parts) == 1:
                return NormalAmount(int(parts[0]))
            elif len(parts) == 2:
                return MilliAmount(int(parts[0]), int(parts[1]))
        except ValueError as e:
            raise AmountParseError(s, str(e))
        raise AmountParseError(s)

    @classmethod
    def read(cls, io_in: BufferedIOBase) -> 'Amount':
        kind = read_int(io_in, 'B', 'amount')
        if kind == 0:
            return AnyAmount()
        elif kind == 1:
            return NormalAmount(read_int(io_in, '>Q', 'amount'))
        elif kind == 2:
            return MilliAmount(read_int(io_in, '>Q', 'amount'),
                               read_int(io_in, '>H', 'amount'))
        raise DecodeError("Unknown amount kind {}".format(kind))

    def write(self, io_out: BufferedIOBase) -> None:
        raise NotImplementedError()


@dataclass(frozen=True)
class AnyAmount(Amount):
    """Payments of any amount are accepted: donations, tips..."""

    def write(self, io_out: BufferedIOBase) -> None:
        write_int(io_out, 'B', 0)

    def __str__(self):
        return "any"


@dataclass(frozen=True)
class NormalAmount(Amount):
    value: int

    def __post_init__(self):
        _check_range('amount', self.value, U64_MAX)

    def atomic_value(self) -> Optional[int]:
        return self.value

    def write(self, io_out: BufferedIOBase) -> None:
        write_int(io_out, 'B', 1)
        write_int(io_out, '>Q', self.value)

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class MilliAmount(Amount):
    integer: int
    fraction: int

    def __post_init__(self):
        _check_range('amount', self.integer, U64_MAX)
        _check_range('amount fraction', self.fraction, U16_MAX)

    def write(self, io_out: BufferedIOBase) -> None:
        write_int(io_out, 'B', 2)
        write_int(io_out, '>Q', self.integer)
        write_int(io_out, '>H', self.fraction)

    def __str__(self):
        return "{}.{}".format(self.integer, self.fraction)


class Recurrence(object):
    """Interval between recurrent payments.

Iterating a recurrent value yields itself forever; a non-recurrent one
yields nothing.

    """
    kind = 0
    maximum = 0
    unit = ''

    def is_recurrent(self) -> bool:
        return self.kind != 0

    def __iter__(self):
        while self.is_recurrent():
            yield self

    @classmethod
    def from_str(cls, s: str) -> 'Recurrence':
        s = s.strip().lower()
        if s == 'non-recurrent':
            return NonRecurrent()
        m = re.fullmatch(r'each ([0-9]+) (seconds|months|years)', s)
        if m is None:
            raise RecurrenceParseError(s)
        rcls = {'seconds': EverySeconds,
                'months': EveryMonths,
                'years': EveryYears}[m.group(2)]
        try:
            return rcls(int(m.group(1)))
        except ValueError as e:
            raise RecurrenceParseError(s, str(e))

    @classmethod
    def read(cls, io_in: BufferedIOBase) -> 'Recurrence':
        kind = read_int(io_in, 'B', 'recurrence')
        if kind == EverySeconds.kind:
            return EverySeconds(read_int(io_in, '>Q', 'recurrence'))
        elif kind == EveryMonths.kind:
            return EveryMonths(read_int(io_in, 'B', 'recurrence'))
        elif kind == EveryYears.kind:
            return EveryYears(read_int(io_in, 'B', 'recurrence'))
        # Non-recurrent is the default and is never written out.
        raise DecodeError("Invalid recurrence kind {}".format(kind))


@dataclass(frozen=True)
class NonRecurrent(Recurrence):
    def write(self, io_out: BufferedIOBase) -> None:
        raise ValueError("non-recurrent invoices carry no recurrence record")

    def __str__(self):
        return "non-recurrent"


@dataclass(frozen=True)
class _Every(Recurrence):
    count: int

    def __post_init__(self):
        _check_range(self.unit, self.count, self.maximum)

    def write(self, io_out: BufferedIOBase) -> None:
        write_int(io_out, 'B', self.kind)
        write_int(io_out, '>Q' if self.maximum == U64_MAX else 'B', self.count)

    def __str__(self):
        return "each {} {}".format(self.count, self.unit)


@dataclass(frozen=True)
class EverySeconds(_Every):
    kind = 1
    maximum = U64_MAX
    unit = 'seconds'


@dataclass(frozen=True)
class EveryMonths(_Every):
    kind = 2
    maximum = U8_MAX
    unit = 'months'


@dataclass(frozen=True)
class EveryYears(_Every):
    kind = 3
    maximum = U8_MAX
    unit = 'years'


@dataclass(frozen=True)
class Quantity(object):
    min: int = 0
    max: Optional[int] = None
    default: int = 1

    def __post_init__(self):
        _check_range('quantity min', self.min, U32_MAX)
        if self.max is not None:
            _check_range('quantity max', self.max, U32_MAX)
        _check_range('quantity default', self.default, U32_MAX)

    @classmethod
    def read(cls, io_in: BufferedIOBase) -> 'Quantity':
        qmin = read_int(io_in, '>I', 'quantity')
        qmax = None
        flag = read_int(io_in, 'B', 'quantity')
        if flag == 1:
            qmax = read_int(io_in, '>I', 'quantity')
        elif flag != 0:
            raise DecodeError("Invalid option flag {}".format(flag))
        return cls(qmin, qmax, read_int(io_in, '>I', 'quantity'))

    def write(self, io_out: BufferedIOBase) -> None:
        write_int(io_out, '>I', self.min)
        if self.max is None:
            write_int(io_out, 'B', 0)
        else:
            write_int(io_out, 'B', 1)
            write_int(io_out, '>I', self.max)
        write_int(io_out, '>I', self.default)

    def __str__(self):
        s = "{} items".format(self.default)
        if self.min == 0 and self.max is not None:
            s += " (or any amount up to {})".format(self.max)
        elif self.min != 0 and self.max is not None:
            s += " (or from {} to {})".format(self.min, self.max)
        elif self.min != 0:
            s += " (or any amount above {})".format(self.min)
        return s


@dataclass(frozen=True)
class Iso4217(object):
    """Three-letter currency code"""
    code: bytes

    def __post_init__(self):
        if len(self.code) != 3:
            raise Iso4217Error(repr(self.code), "wrong length")

    @classmethod
    def from_str(cls, s: str) -> 'Iso4217':
        code = s.encode('utf-8')
        if len(code) != 3:
            raise Iso4217Error(s, "wrong length")
        return cls(code)

    def __str__(self):
        return self.code.decode('latin-1')


@dataclass(frozen=True)
class CurrencyRequirement(object):
    """Fiat floor price: below it the merchant no longer accepts payment."""
    iso4217: Iso4217
    coins: int
    fractions: int
    price_provider: str

    def __post_init__(self):
        _check_range('coins', self.coins, U32_MAX)
        _check_range('fractions', self.fractions, U8_MAX)

    @classmethod
    def read(cls, io_in: BufferedIOBase) -> 'CurrencyRequirement':
        code = read_exact(io_in, 3, 'currency')
        coins = read_int(io_in, '>I', 'currency')
        fractions = read_int(io_in, 'B', 'currency')
        provider = _read_utf8(io_in.read(), 'price provider')
        return cls(Iso4217(code), coins, fractions, provider)

    def write(self, io_out: BufferedIOBase) -> None:
        io_out.write(self.iso4217.code)
        write_int(io_out, '>I', self.coins)
        write_int(io_out, 'B', self.fractions)
        io_out.write(self.price_provider.encode('utf-8'))

    def __str__(self):
        return "{}.{} {}".format(self.coins, self.fractions, self.iso4217)


@dataclass(frozen=True)
class Details(object):
    commitment: bytes
    source: str

    def __post_init__(self):
        if len(self.commitment) != 32:
            raise ValueError("Details commitment must be a 32-byte hash")

    @classmethod
    def read(cls, io_in: BufferedIOBase) -> 'Details':
        commitment = read_exact(io_in, 32, 'details')
        return cls(commitment, _read_utf8(io_in.read(), 'details source'))

    def write(self, io_out: BufferedIOBase) -> None:
        io_out.write(self.commitment)
        io_out.write(self.source.encode('utf-8'))

    def __str__(self):
        return "{}#commitment".format(self.source)


@dataclass(frozen=True)
class NodeAddr(object):
    node_id: PublicKey
    host: str
    port: int

    @classmethod
    def from_str(cls, s: str) -> 'NodeAddr':
        node_id, sep, addr = s.partition('@')
        host, sep2, port = addr.rpartition(':')
        if not sep or not sep2 or not host or not re.fullmatch(r'[0-9]+', port):
            raise ValueError("Node address must be <node_id>@<host>:<port>")
        if int(port) > U16_MAX:
            raise ValueError("Port {} out of range".format(port))
        return cls(PublicKey.from_hex(node_id), host, int(port))

    def __str__(self):
        return "{}@{}:{}".format(self.node_id, self.host, self.port)


class ConsignmentEndpoint(object):
    """A medium through which a consignment may be handed over"""
    kind = -1
    scheme = ''

    @classmethod
    def from_str(cls, s: str) -> 'ConsignmentEndpoint':
        scheme, sep, payload = s.partition(':')
        if not sep:
            raise EndpointParseError(s)
        for ecls in ENDPOINT_TYPES:
            if ecls.scheme == scheme:
                try:
                    return ecls.from_payload(payload)
                except ValueError as e:
                    raise EndpointParseError(s, str(e))
        raise EndpointParseError(s, "unknown scheme")

    @classmethod
    def from_payload(cls, payload: str) -> 'ConsignmentEndpoint':
        raise NotImplementedError()

    def payload(self) -> str:
        raise NotImplementedError()

    @classmethod
    def read(cls, io_in: BufferedIOBase) -> 'ConsignmentEndpoint':
        kind = read_int(io_in, 'B', 'endpoint')
        payload = _read_utf8(read_var_bytes(io_in, 'endpoint'), 'endpoint')
        for ecls in ENDPOINT_TYPES:
            if ecls.kind == kind:
                try:
                    return ecls.from_payload(payload)
                except ValueError as e:
                    raise DecodeError("Bad endpoint {}: {}".format(payload, e))
        raise DecodeError("Unknown endpoint kind {}".format(kind))

    def write(self, io_out: BufferedIOBase) -> None:
        write_int(io_out, 'B', self.kind)
        write_var_bytes(io_out, self.payload().encode('utf-8'))

    def __str__(self):
        return "{}:{}".format(self.scheme, self.payload())


@dataclass(frozen=True)
class StormEndpoint(ConsignmentEndpoint):
    kind = 0
    scheme = 'storm'
    node: NodeAddr

    @classmethod
    def from_payload(cls, payload: str) -> 'StormEndpoint':
        return cls(NodeAddr.from_str(payload))

    def payload(self) -> str:
        return str(self.node)


@dataclass(frozen=True)
class RgbHttpJsonRpcEndpoint(ConsignmentEndpoint):
    kind = 1
    scheme = 'rgbhttpjsonrpc'
    url: str

    @classmethod
    def from_payload(cls, payload: str) -> 'RgbHttpJsonRpcEndpoint':
        if not payload:
            raise ValueError("Empty URL")
        return cls(payload)

    def payload(self) -> str:
        return self.url


ENDPOINT_TYPES = [StormEndpoint, RgbHttpJsonRpcEndpoint]


class Network(Enum):
    """Network the payer is expected to use"""
    MAINNET = 0
    TESTNET3 = 1
    REGTEST = 2
    SIGNET = 3
    LIQUIDV1 = 4

    @classmethod
    def from_chain(cls, chain) -> 'Network':
        if isinstance(chain, str):
            try:
                chain = Chain.from_str(chain)
            except ValueError:
                raise UnsupportedChain(chain)
        if not isinstance(chain, Chain):
            raise UnsupportedChain(chain)
        return cls[chain.name]

    def to_chain(self) -> Chain:
        return Chain[self.name]

    @classmethod
    def read(cls, io_in: BufferedIOBase) -> 'Network':
        code = read_int(io_in, 'B', 'network')
        try:
            return cls(code)
        except ValueError:
            raise DecodeError("Unknown network {}".format(code))

    def write(self, io_out: BufferedIOBase) -> None:
        write_int(io_out, 'B', self.value)

    def __str__(self):
        return self.name.lower()
