from lnpbp.invoice.beneficiary import Address
from lnpbp.invoice.fields import Network
from lnpbp.invoice.invoice import Invoice
from lnpbp.invoice.signing import sign, verify
import coincurve


PRIVKEY = 'c28a9f80738f770d527803a566cf6fc3edf6cea586c4fc4a5223a5ad797e1ac3'


def invoice():
    inv = Invoice(Address.from_str('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4'), 1000)
    inv.set_purpose('tea')
    return inv


def test_sign_and_verify():
    inv = invoice()
    assert(not verify(inv))

    sig = sign(inv, PRIVKEY)
    assert(len(sig) == 64)
    pubkey, stored = inv.signature
    assert(stored == sig)
    key = coincurve.PrivateKey(secret=bytes.fromhex(PRIVKEY))
    assert(pubkey.to_bytes() == key.public_key.format())
    assert(verify(inv))

    # Survives the text form
    assert(verify(Invoice.from_str(str(inv))))


def test_sign_accepts_key_objects():
    inv = invoice()
    sign(inv, coincurve.PrivateKey(secret=bytes.fromhex(PRIVKEY)))
    assert(verify(inv))


def test_changes_invalidate():
    inv = invoice()
    sign(inv, bytes.fromhex(PRIVKEY))
    inv.set_purpose('coffee')
    assert(inv.signature is None)
    assert(not verify(inv))


def test_kept_signature_goes_stale(monkeypatch):
    # Network changes keep the signature by default, but it no longer
    # matches the content.
    monkeypatch.delenv('LNPBP_INVOICE_STRICT_SIGNATURE', raising=False)
    inv = invoice()
    sign(inv, PRIVKEY)
    inv.set_network(Network.SIGNET)
    assert(inv.signature is not None)
    assert(not verify(inv))


def test_wrong_key():
    inv = invoice()
    sign(inv, PRIVKEY)
    other = invoice()
    sign(other, bytes([1] * 32))
    inv.set_signature(other.signature[0], inv.signature[1])
    assert(not verify(inv))
