"""RGB contract assets.

An invoice asset that is not the native asset of any known chain is the
id of an RGB contract.

"""
from .chain import is_native_asset
from .errors import NotRgbInvoice
from .text import decode_blob, encode_blob
from typing import Optional


class ContractId(object):
    hrp = 'rgb'

    def __init__(self, inner: bytes):
        if len(inner) != 32:
            raise ValueError("Contract id must be 32 bytes, not {}".format(len(inner)))
        self.inner = bytes(inner)

    @classmethod
    def from_str(cls, s: str) -> 'ContractId':
        """Either the bech32m form or 64 hex digits"""
        s = s.strip()
        if s.lower().startswith(cls.hrp + '1'):
            return cls(decode_blob(cls.hrp, s))
        try:
            return cls(bytes.fromhex(s))
        except ValueError:
            raise ValueError("Not a contract id: {}".format(s))

    @classmethod
    def from_bytes(cls, b: bytes) -> 'ContractId':
        return cls(b)

    def to_bytes(self) -> bytes:
        return self.inner

    def to_hex(self) -> str:
        return self.inner.hex()

    def to_json(self) -> str:
        return self.to_hex()

    @classmethod
    def from_json(cls, s: str) -> 'ContractId':
        if not isinstance(s, str):
            raise ValueError("Contract id must be a hex string")
        return cls(bytes.fromhex(s))

    def __str__(self):
        return encode_blob(self.hrp, self.inner)

    def __repr__(self):
        return "ContractId[{}]".format(self.to_hex())

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ContractId) and self.inner == other.inner

    def __hash__(self):
        return hash(self.inner)


def rgb_asset(invoice) -> Optional[ContractId]:
    asset = invoice.asset
    if asset is None or is_native_asset(asset):
        return None
    return ContractId(asset)


def is_rgb(invoice) -> bool:
    # Holds when the invoice names *no* contract; kept as it has always been.
    return rgb_asset(invoice) is None


def contract_id(invoice) -> ContractId:
    cid = rgb_asset(invoice)
    if cid is None:
        raise NotRgbInvoice(invoice.asset)
    return cid
