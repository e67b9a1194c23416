"""BIP-340 signing and verification of invoices.

The signature is made over `Invoice.signature_hash()` and stored together
with the signer's public key in the invoice itself.

"""
from .primitives import PublicKey
from typing import Union
import coincurve


def sign(invoice, privkey: Union[bytes, str, coincurve.PrivateKey]) -> bytes:
    """Sign the invoice in place, returning the 64-byte signature."""
    if isinstance(privkey, str):
        privkey = bytes.fromhex(privkey)
    if isinstance(privkey, bytes):
        privkey = coincurve.PrivateKey(secret=privkey)

    sig = privkey.sign_schnorr(invoice.signature_hash())
    invoice.set_signature(PublicKey(privkey.public_key), sig)
    return sig


def verify(invoice) -> bool:
    """False if the invoice is unsigned or the signature does not match"""
    if invoice.signature is None:
        return False
    pubkey, sig = invoice.signature
    xonly = coincurve.PublicKeyXOnly(pubkey.to_bytes()[1:])
    return xonly.verify(sig, invoice.signature_hash())
