"""Conversion of lightning invoices to BOLT11 payment requests."""
from .beneficiary import LightningNode
from .bech32 import CHARSET, Variant, bech32_encode, bitarray_to_u5
from .chain import Chain
from .codec import timestamp_from_datetime
from .errors import MissingPaymentHash, UnsupportedBeneficiary, UnsupportedChain
from decimal import Decimal
from typing import Optional, Union
import bitstring  # type: ignore
import coincurve
import logging
import os
import time


logger = logging.getLogger(__name__)

# BOLT #11 currency prefixes
CURRENCIES = {
    Chain.MAINNET: 'bc',
    Chain.TESTNET3: 'tb',
    Chain.REGTEST: 'bcrt',
    Chain.SIGNET: 'tbs',
}


# BOLT #11:
#
# A writer MUST encode `amount` as a positive decimal integer with no
# leading zeroes, SHOULD use the shortest representation possible.
def shorten_amount(amount: Decimal) -> str:
    """ Given an amount in bitcoin, shorten it
    """
    # Convert to pico initially
    amount = int(amount * 10**12)
    units = ['p', 'n', 'u', 'm', '']
    for unit in units:
        if amount % 1000 == 0:
            amount //= 1000
        else:
            break
    return str(amount) + unit


# Tagged field containing BitArray
def tagged(char: str, bits) -> bitstring.BitArray:
    # Tagged fields need to be zero-padded to 5 bits.
    bits = bitstring.BitArray(bits)
    while bits.len % 5 != 0:
        bits.append('0b0')
    return bitstring.pack("uint:5, uint:5, uint:5",
                          CHARSET.find(char),
                          (bits.len // 5) // 32, (bits.len // 5) % 32) + bits


# Tagged field containing bytes
def tagged_bytes(char: str, b: bytes) -> bitstring.BitArray:
    return tagged(char, bitstring.BitArray(bytes=b))


def minimal_uint(v: int) -> bitstring.BitArray:
    """Big-endian value in as few 5-bit groups as possible (none for zero)."""
    length = -(-v.bit_length() // 5) * 5
    if length == 0:
        return bitstring.BitArray()
    return bitstring.BitArray(uint=v, length=length)


def _chain_of(invoice, chain: Optional[Union[Chain, str]]) -> Chain:
    if chain is None:
        if invoice.network is None:
            return Chain.MAINNET
        return invoice.network.to_chain()
    if isinstance(chain, str):
        try:
            return Chain.from_str(chain)
        except ValueError:
            raise UnsupportedChain(chain)
    return chain


def to_bolt11(invoice, privkey: Union[bytes, str],
              payment_secret: Optional[bytes] = None,
              chain: Optional[Union[Chain, str]] = None,
              timestamp: Optional[int] = None) -> str:
    """Encode an invoice paying a lightning node as a signed BOLT11 string.

The currency comes from `chain`, else from the invoice network, else
mainnet.  The node's lock is used as the payment hash, so it must be a
32-byte hash.  Without a `payment_secret` a random one is generated.

    """
    node = invoice.beneficiary
    if not isinstance(node, LightningNode):
        raise UnsupportedBeneficiary(node)

    chain = _chain_of(invoice, chain)
    if chain not in CURRENCIES:
        raise UnsupportedChain(chain)
    currency = CURRENCIES[chain]

    if len(node.lock) != 32:
        raise MissingPaymentHash(node.lock)

    if payment_secret is None:
        logger.debug("No payment secret given, generating a random one")
        payment_secret = os.urandom(32)
    elif len(payment_secret) != 32:
        raise ValueError("Payment secret must be 32 bytes")

    msat = invoice.amount.atomic_value()
    if msat:
        hrp = 'ln' + currency + shorten_amount(Decimal(msat) / 10**11)
    else:
        hrp = 'ln' + currency

    if timestamp is None:
        timestamp = int(time.time())

    # Start with the timestamp
    data = bitstring.pack('uint:35', timestamp)

    data += tagged_bytes('p', node.lock)
    data += tagged_bytes('s', payment_secret)
    data += tagged_bytes('d', (invoice.purpose or '').encode('utf-8'))

    if invoice.expiry is not None:
        expiry = timestamp_from_datetime(invoice.expiry)
        data += tagged('x', minimal_uint(max(0, expiry - timestamp)))

    cltv = node.min_final_cltv_expiry
    data += tagged('c', minimal_uint(0 if cltv is None else cltv))

    for rh in node.route_hints:
        data += tagged_bytes('r', rh.to_bytes())

    features = int.from_bytes(node.features, 'big')
    if features:
        data += tagged('9', minimal_uint(features))

    # We actually sign the hrp, then data (padded to 8 bits with zeroes).
    if isinstance(privkey, str):
        privkey = bytes.fromhex(privkey)
    key = coincurve.PrivateKey(secret=privkey)
    sig = key.sign_recoverable(hrp.encode('ascii') + data.tobytes())
    data += bitstring.BitArray(bytes=sig)

    return bech32_encode(hrp, bitarray_to_u5(data), Variant.BECH32)
