from lnpbp.invoice.primitives import PublicKey, ShortChannelId, tagged_hash
import hashlib
import pytest


G = '0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798'


def test_short_channel_id():
    num = 618150934845652992
    b = bytes.fromhex('08941d00090d0000')
    s = '562205x2317x0'
    expected = ShortChannelId(block=562205, txnum=2317, outnum=0)

    assert(ShortChannelId.from_int(num) == expected)
    assert(ShortChannelId.from_str(s) == expected)
    assert(ShortChannelId.from_bytes(b) == expected)

    assert(expected.to_bytes() == b)
    assert(str(expected) == s)
    assert(expected.to_int() == num)

    with pytest.raises(ValueError):
        ShortChannelId.from_str('562205x2317')


def test_pubkey():
    pk = PublicKey.from_hex(G)
    assert(pk.to_bytes() == bytes.fromhex(G))
    assert(str(pk) == G)
    assert(pk == PublicKey(bytes.fromhex(G)))
    assert({pk: 1}[PublicKey.from_hex(G)] == 1)

    with pytest.raises(ValueError):
        PublicKey(bytes.fromhex(G)[1:])
    with pytest.raises(ValueError):
        PublicKey(b'\x04' + bytes.fromhex(G)[1:])
    with pytest.raises(ValueError):
        PublicKey.from_hex('zz')


def test_tagged_hash():
    tag = hashlib.sha256(b'tag').digest()
    assert(tagged_hash(b'tag', b'msg') == hashlib.sha256(tag + tag + b'msg').digest())
    assert(tagged_hash(b'tag', b'msg') != tagged_hash(b'other', b'msg'))
