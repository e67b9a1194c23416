from bitstring import ConstBitStream
from lnpbp.invoice.bech32 import CHARSET, Variant, bech32_decode, u5_to_bitarray
from lnpbp.invoice.beneficiary import Address, LightningNode, RouteHint
from lnpbp.invoice.bolt11 import minimal_uint, shorten_amount, to_bolt11
from lnpbp.invoice.chain import Chain
from lnpbp.invoice.errors import (
    MissingPaymentHash, UnsupportedBeneficiary, UnsupportedChain,
)
from lnpbp.invoice.fields import Network
from lnpbp.invoice.invoice import Invoice
from lnpbp.invoice.primitives import PublicKey, ShortChannelId
from decimal import Decimal
import coincurve
import datetime
import pytest


PRIVKEY = 'c28a9f80738f770d527803a566cf6fc3edf6cea586c4fc4a5223a5ad797e1ac3'
PAYMENT_HASH = bytes.fromhex('76272b9b95b14eb6bece3cd051006d8aabac63c3a50bd7ea2bb53612b0a9324b')
G2 = '02c6047f9441ed7d6d3045406e95c07cd85c778e4b8cef3ca7abac09b95c709ee5'
TIMESTAMP = 1579298293


def node_key():
    return coincurve.PrivateKey(secret=bytes.fromhex(PRIVKEY)).public_key


def lightning_invoice(msat=100000, **kwargs):
    node = LightningNode(PublicKey(node_key()), lock=PAYMENT_HASH, **kwargs)
    inv = Invoice(node, msat)
    inv.set_purpose('coffee')
    return inv


def parse(s):
    """Split a BOLT11 string into hrp, timestamp, tagged fields and check its signature"""
    hrp, data, variant = bech32_decode(s)
    assert(variant == Variant.BECH32)
    bits = u5_to_bitarray(data)
    sig = bits[-65 * 8:].tobytes()
    stream = ConstBitStream(bits[:-65 * 8])

    signer = coincurve.PublicKey.from_signature_and_message(
        sig, hrp.encode('ascii') + bits[:-65 * 8].tobytes())
    assert(signer.format() == node_key().format())

    timestamp = stream.read(35).uint
    tags = {}
    while stream.pos != stream.len:
        tag = CHARSET[stream.read(5).uint]
        length = stream.read(5).uint * 32 + stream.read(5).uint
        tags.setdefault(tag, []).append(stream.read(length * 5))
    return hrp, timestamp, tags


def test_shorten_amount():
    assert(shorten_amount(Decimal('0.000001')) == '1u')
    assert(shorten_amount(Decimal('0.0025')) == '2500u')
    assert(shorten_amount(Decimal('0.00000000001')) == '10p')
    assert(shorten_amount(Decimal(1)) == '1')


def test_minimal_uint():
    assert(minimal_uint(0).len == 0)
    assert(minimal_uint(18).len == 5)
    assert(minimal_uint(604800).uint == 604800)
    assert(minimal_uint(604800).len == 20)


def test_encode():
    secret = bytes(range(32))
    s = to_bolt11(lightning_invoice(min_final_cltv_expiry=18), PRIVKEY,
                  payment_secret=secret, timestamp=TIMESTAMP)
    assert(s.startswith('lnbc1u1'))

    hrp, timestamp, tags = parse(s)
    assert(hrp == 'lnbc1u')
    assert(timestamp == TIMESTAMP)
    assert(tags['p'][0][:256].tobytes() == PAYMENT_HASH)
    assert(tags['s'][0][:256].tobytes() == secret)
    assert(tags['d'][0][:48].tobytes() == b'coffee')
    assert(tags['c'][0].uint == 18)
    assert('x' not in tags and 'r' not in tags and '9' not in tags)


def test_encode_defaults():
    inv = lightning_invoice(msat=None)
    inv.remove_purpose()
    s = to_bolt11(inv, PRIVKEY, timestamp=TIMESTAMP)
    hrp, _, tags = parse(s)
    assert(hrp == 'lnbc')
    assert(tags['d'][0].len == 0)
    assert(tags['c'][0].len == 0)
    assert(len(tags['s'][0][:256].tobytes()) == 32)


def test_encode_optional_fields():
    hint = RouteHint(PublicKey.from_hex(G2), ShortChannelId(100, 2, 1), 1000, 10, 40)
    inv = lightning_invoice(features=b'\x02\x00', route_hints=[hint])
    inv.set_expiry(datetime.datetime(1970, 1, 1) + datetime.timedelta(seconds=TIMESTAMP + 3600))
    inv.set_network(Network.TESTNET3)

    hrp, _, tags = parse(to_bolt11(inv, PRIVKEY, timestamp=TIMESTAMP))
    assert(hrp == 'lntb1u')
    assert(tags['x'][0].uint == 3600)
    assert(tags['r'][0][:51 * 8].tobytes() == hint.to_bytes())
    assert(tags['9'][0].uint == 0x200)


def test_chain_selection():
    inv = lightning_invoice()
    assert(to_bolt11(inv, PRIVKEY, chain=Chain.SIGNET).startswith('lntbs1u1'))
    assert(to_bolt11(inv, PRIVKEY, chain='regtest').startswith('lnbcrt1u1'))
    inv.set_network(Network.TESTNET3)
    assert(to_bolt11(inv, PRIVKEY).startswith('lntb1u1'))

    with pytest.raises(UnsupportedChain):
        to_bolt11(inv, PRIVKEY, chain=Chain.LIQUIDV1)
    with pytest.raises(UnsupportedChain):
        to_bolt11(inv, PRIVKEY, chain='dogecoin')


def test_errors():
    inv = Invoice(Address.from_str('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4'), 1000)
    with pytest.raises(UnsupportedBeneficiary):
        to_bolt11(inv, PRIVKEY)

    inv = Invoice(LightningNode(PublicKey(node_key()), lock=bytes(20)))
    with pytest.raises(MissingPaymentHash):
        to_bolt11(inv, PRIVKEY)
