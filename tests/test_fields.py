from io import BytesIO
from lnpbp.invoice.chain import Chain
from lnpbp.invoice.errors import (
    AmountParseError, DecodeError, EndpointParseError, Iso4217Error,
    RecurrenceParseError, UnsupportedChain,
)
from lnpbp.invoice.fields import (
    Amount, AnyAmount, ConsignmentEndpoint, CurrencyRequirement, Details,
    EveryMonths, EverySeconds, EveryYears, Iso4217, MilliAmount, Network,
    NodeAddr, NonRecurrent, NormalAmount, Quantity, Recurrence,
    RgbHttpJsonRpcEndpoint, StormEndpoint,
)
import itertools
import pytest


G = '0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798'


def encode(v):
    b = BytesIO()
    v.write(b)
    return b.getvalue()


def test_amount_grammar():
    assert(Amount.from_str('any') == AnyAmount())
    assert(Amount.from_str('  ANY ') == AnyAmount())
    assert(Amount.from_str('100') == NormalAmount(100))
    assert(Amount.from_str('1.5') == MilliAmount(1, 5))
    assert(Amount.from_str('18446744073709551615') == NormalAmount(2**64 - 1))

    for s in ['', '1.2.3', '-1', '1e3', '1.', '.5', 'many',
              '18446744073709551616', '1.65536',
              # Only ASCII digits
              '\u0661\u0662', '1.\u0665', '\uff11\uff10']:
        with pytest.raises(AmountParseError):
            Amount.from_str(s)


def test_amount_display_and_value():
    assert(str(AnyAmount()) == 'any')
    assert(str(NormalAmount(42)) == '42')
    assert(str(MilliAmount(3, 14)) == '3.14')

    assert(AnyAmount().atomic_value() is None)
    assert(NormalAmount(42).atomic_value() == 42)
    assert(MilliAmount(3, 14).atomic_value() is None)


def test_amount_encoding():
    assert(encode(AnyAmount()) == b'\x00')
    assert(encode(NormalAmount(1000)) == bytes.fromhex('0100000000000003e8'))
    assert(encode(MilliAmount(1, 2)) == bytes.fromhex('0200000000000000010002'))
    assert(Amount.read(BytesIO(bytes.fromhex('0200000000000000010002'))) == MilliAmount(1, 2))

    with pytest.raises(DecodeError):
        Amount.read(BytesIO(b'\x03'))
    with pytest.raises(DecodeError):
        Amount.read(BytesIO(b'\x01\x00'))


def test_recurrence():
    assert(Recurrence.from_str('non-recurrent') == NonRecurrent())
    assert(Recurrence.from_str('each 30 seconds') == EverySeconds(30))
    assert(Recurrence.from_str('Each 2 Months') == EveryMonths(2))
    assert(str(EveryYears(1)) == 'each 1 years')
    assert(str(NonRecurrent()) == 'non-recurrent')

    assert(not NonRecurrent().is_recurrent())
    assert(list(NonRecurrent()) == [])
    assert(list(itertools.islice(EveryMonths(1), 3)) == [EveryMonths(1)] * 3)

    with pytest.raises(RecurrenceParseError):
        Recurrence.from_str('each 256 months')
    with pytest.raises(RecurrenceParseError):
        Recurrence.from_str('every day')
    with pytest.raises(RecurrenceParseError):
        Recurrence.from_str('each \u0663 seconds')
    with pytest.raises(ValueError):
        EveryYears(-1)


def test_recurrence_encoding():
    assert(encode(EverySeconds(60)) == bytes.fromhex('01000000000000003c'))
    assert(encode(EveryMonths(1)) == bytes.fromhex('0201'))
    assert(Recurrence.read(BytesIO(bytes.fromhex('0301'))) == EveryYears(1))

    # Non-recurrent is the default: never written, never read
    with pytest.raises(ValueError):
        encode(NonRecurrent())
    with pytest.raises(DecodeError):
        Recurrence.read(BytesIO(b'\x00'))


def test_quantity():
    assert(str(Quantity()) == '1 items')
    assert(str(Quantity(0, 10, 2)) == '2 items (or any amount up to 10)')
    assert(str(Quantity(1, 10, 2)) == '2 items (or from 1 to 10)')
    assert(str(Quantity(5, None, 5)) == '5 items (or any amount above 5)')

    q = Quantity(1, 10, 2)
    assert(encode(q) == bytes.fromhex('00000001' + '01' + '0000000a' + '00000002'))
    assert(Quantity.read(BytesIO(encode(q))) == q)
    assert(encode(Quantity()) == bytes.fromhex('00000000' + '00' + '00000001'))

    with pytest.raises(DecodeError):
        Quantity.read(BytesIO(bytes.fromhex('00000000' + '02' + '00000001')))


def test_currency_requirement():
    assert(Iso4217.from_str('USD') == Iso4217(b'USD'))
    with pytest.raises(Iso4217Error):
        Iso4217.from_str('US')
    with pytest.raises(Iso4217Error):
        Iso4217(b'EURO')

    cr = CurrencyRequirement(Iso4217(b'USD'), 10, 50, 'bitfinex')
    assert(str(cr) == '10.50 USD')
    assert(encode(cr) == b'USD' + bytes.fromhex('0000000a32') + b'bitfinex')
    assert(CurrencyRequirement.read(BytesIO(encode(cr))) == cr)

    with pytest.raises(ValueError):
        CurrencyRequirement(Iso4217(b'USD'), 10, 256, '')


def test_details():
    d = Details(bytes(32), 'https://example.com/order/1')
    assert(str(d) == 'https://example.com/order/1#commitment')
    assert(Details.read(BytesIO(encode(d))) == d)

    with pytest.raises(ValueError):
        Details(bytes(31), 'x')


def test_endpoints():
    storm = ConsignmentEndpoint.from_str('storm:{}@127.0.0.1:9735'.format(G))
    assert(isinstance(storm, StormEndpoint))
    assert(storm.node == NodeAddr.from_str('{}@127.0.0.1:9735'.format(G)))
    assert(str(storm) == 'storm:{}@127.0.0.1:9735'.format(G))

    rpc = ConsignmentEndpoint.from_str('rgbhttpjsonrpc:https://rgb.example.com/rpc')
    assert(rpc == RgbHttpJsonRpcEndpoint('https://rgb.example.com/rpc'))

    for e in [storm, rpc]:
        assert(ConsignmentEndpoint.read(BytesIO(encode(e))) == e)
    assert(encode(rpc)[:3] == bytes.fromhex('01001b'))

    for s in ['storm', 'ftp:example.com', 'storm:nothing', 'rgbhttpjsonrpc:',
              'storm:{}@host:99999'.format(G)]:
        with pytest.raises(EndpointParseError):
            ConsignmentEndpoint.from_str(s)

    with pytest.raises(DecodeError):
        ConsignmentEndpoint.read(BytesIO(bytes.fromhex('05000178')))


def test_network():
    assert(Network.from_chain(Chain.SIGNET) == Network.SIGNET)
    assert(Network.from_chain('liquid') == Network.LIQUIDV1)
    assert(Network.from_chain('testnet') == Network.TESTNET3)
    assert(Network.REGTEST.to_chain() == Chain.REGTEST)
    assert(str(Network.MAINNET) == 'mainnet')
    assert(encode(Network.LIQUIDV1) == b'\x04')

    with pytest.raises(UnsupportedChain):
        Network.from_chain('dogecoin')
    with pytest.raises(DecodeError):
        Network.read(BytesIO(b'\x05'))
