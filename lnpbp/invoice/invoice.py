from . import codec, jsonfmt
from .beneficiary import Address, Beneficiary, Descriptor
from .chain import AssetClass, Chain, classify
from .config import strict_signature
from .errors import DecodeError, InconsistentInvoice
from .fields import (
    Amount, AnyAmount, ConsignmentEndpoint, CurrencyRequirement, Details,
    Network, NonRecurrent, NormalAmount, Quantity, Recurrence,
)
from .primitives import PublicKey, tagged_hash
from .text import from_text, to_text
from .tlv import ExtensionFields
from functools import total_ordering
from typing import Any, Dict, Iterator, List, Optional, Tuple
import datetime
import logging


logger = logging.getLogger(__name__)

SIGNATURE_TAG = b'lnpbp:invoice:signature'


def _check_beneficiary(b) -> Beneficiary:
    if not isinstance(b, Beneficiary):
        raise TypeError("beneficiary must be a Beneficiary, not {}".format(type(b)))
    return b


def _normalize_text(s: Optional[str]) -> Optional[str]:
    if s is None or s == '':
        return None
    try:
        s.encode('utf-8')
    except UnicodeEncodeError as e:
        raise ValueError("Text is not valid unicode: {}".format(e)) from e
    return s


def _normalize_expiry(expiry: datetime.datetime) -> datetime.datetime:
    # Stored as naive UTC with whole seconds, which is all the encoding keeps.
    if expiry.tzinfo is not None:
        expiry = expiry.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return expiry.replace(microsecond=0)


@total_ordering
class Invoice(object):
    """A universal payment request.

Fields are read-only: every mutator compares the new value with the current
one, returns False if nothing changes, and otherwise updates the field and
drops the signature, since the signature covers the whole encoding.

Invoices are ordered by their text form, not by amount or date: this is
what makes sorting and deduplication consistent with the wire format.

    """
    def __init__(self, beneficiary: Beneficiary,
                 amount: Optional[int] = None,
                 asset: Optional[bytes] = None,
                 strict_signature: Optional[bool] = None):
        if asset is not None and len(asset) != 32:
            raise ValueError("Asset id must be 32 bytes")

        self._version = codec.INVOICE_VERSION
        self._amount: Amount = AnyAmount() if amount is None else NormalAmount(amount)
        self._beneficiary = _check_beneficiary(beneficiary)
        self._alt_beneficiaries: List[Beneficiary] = []
        self._asset = None if asset is None else bytes(asset)
        self._expiry: Optional[datetime.datetime] = None
        self._recurrent: Recurrence = NonRecurrent()
        self._quantity: Optional[Quantity] = None
        self._currency_requirement: Optional[CurrencyRequirement] = None
        self._merchant: Optional[str] = None
        self._purpose: Optional[str] = None
        self._details: Optional[Details] = None
        self._signature: Optional[Tuple[PublicKey, bytes]] = None
        self._consignment_endpoints: List[ConsignmentEndpoint] = []
        self._network: Optional[Network] = None
        self._extension_fields = ExtensionFields()
        self._strict_signature = strict_signature

    @classmethod
    def with_descriptor(cls, descriptor: Descriptor, amount: Optional[int],
                        chain: Chain) -> 'Invoice':
        asset = None if chain == Chain.MAINNET else chain.native_asset
        return cls(descriptor, amount, asset)

    @classmethod
    def with_address(cls, address: Address, amount: Optional[int] = None) -> 'Invoice':
        asset = None if address.chain == Chain.MAINNET else address.chain.native_asset
        return cls(address, amount, asset)

    # Serialization

    @classmethod
    def _from_fields(cls, fields) -> 'Invoice':
        fields = dict(fields)
        inv = cls(fields.pop('beneficiary'))
        for name, value in fields.items():
            setattr(inv, '_' + name, value)
        return inv

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Invoice':
        return cls._from_fields(codec.decode(data))

    def to_bytes(self, signature: bool = True) -> bytes:
        try:
            return codec.encode(self, signature)
        except ValueError as e:
            raise InconsistentInvoice(
                "invoice data are inconsistent for canonical serialization: {}"
                .format(e)) from e

    @classmethod
    def from_str(cls, s: str) -> 'Invoice':
        return cls.from_bytes(from_text(s))

    @classmethod
    def from_hex(cls, s: str) -> 'Invoice':
        try:
            data = bytes.fromhex(s.strip())
        except ValueError as e:
            raise DecodeError("Invalid hex: {}".format(e))
        return cls.from_bytes(data)

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def to_text(self) -> str:
        return to_text(self.to_bytes())

    def to_json(self) -> Dict[str, Any]:
        return jsonfmt.invoice_to_json(self)

    @classmethod
    def from_json(cls, d: Dict[str, Any]) -> 'Invoice':
        return cls._from_fields(jsonfmt.invoice_fields_from_json(d))

    def __str__(self):
        return self.to_text()

    def __repr__(self):
        return "Invoice[{}, amount={}]".format(self._beneficiary, self._amount)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Invoice):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __lt__(self, other: 'Invoice') -> bool:
        if not isinstance(other, Invoice):
            return NotImplemented
        return self.to_text() < other.to_text()

    __hash__ = None  # type: ignore

    # Accessors

    @property
    def version(self) -> int:
        return self._version

    @property
    def amount(self) -> Amount:
        return self._amount

    @property
    def beneficiary(self) -> Beneficiary:
        return self._beneficiary

    @property
    def alt_beneficiaries(self) -> List[Beneficiary]:
        return list(self._alt_beneficiaries)

    @property
    def asset(self) -> Optional[bytes]:
        return self._asset

    @property
    def expiry(self) -> Optional[datetime.datetime]:
        return self._expiry

    @property
    def recurrent(self) -> Recurrence:
        return self._recurrent

    @property
    def quantity(self) -> Optional[Quantity]:
        return self._quantity

    @property
    def currency_requirement(self) -> Optional[CurrencyRequirement]:
        return self._currency_requirement

    @property
    def merchant(self) -> Optional[str]:
        return self._merchant

    @property
    def purpose(self) -> Optional[str]:
        return self._purpose

    @property
    def details(self) -> Optional[Details]:
        return self._details

    @property
    def signature(self) -> Optional[Tuple[PublicKey, bytes]]:
        return self._signature

    @property
    def consignment_endpoints(self) -> List[ConsignmentEndpoint]:
        return list(self._consignment_endpoints)

    @property
    def network(self) -> Optional[Network]:
        return self._network

    @property
    def extension_fields(self) -> ExtensionFields:
        return self._extension_fields.copy()

    @property
    def strict_signature(self) -> bool:
        if self._strict_signature is None:
            return strict_signature()
        return self._strict_signature

    def beneficiaries(self) -> Iterator[Beneficiary]:
        """The main beneficiary, then the alternatives, most desirable first"""
        yield self._beneficiary
        yield from self._alt_beneficiaries

    def classify_asset(self, chain: Optional[Chain]) -> AssetClass:
        return classify(self._asset, chain)

    # Mutators

    def _update(self, attr: str, value, signed: bool = True) -> bool:
        if getattr(self, attr) == value:
            return False
        setattr(self, attr, value)
        if signed and self._signature is not None:
            logger.debug("Invoice field %s changed, dropping signature", attr[1:])
            self._signature = None
        return True

    def set_amount(self, amount: Amount) -> bool:
        return self._update('_amount', amount)

    def set_beneficiary(self, beneficiary: Beneficiary) -> bool:
        return self._update('_beneficiary', _check_beneficiary(beneficiary))

    def add_alt_beneficiary(self, beneficiary: Beneficiary) -> bool:
        """Append an alternative, the least desirable so far"""
        return self._update('_alt_beneficiaries',
                            self._alt_beneficiaries + [_check_beneficiary(beneficiary)])

    def set_alt_beneficiaries(self, beneficiaries: List[Beneficiary]) -> bool:
        return self._update('_alt_beneficiaries',
                            [_check_beneficiary(b) for b in beneficiaries])

    def set_asset(self, asset: bytes) -> bool:
        if len(asset) != 32:
            raise ValueError("Asset id must be 32 bytes")
        return self._update('_asset', bytes(asset))

    def remove_asset(self) -> bool:
        return self._update('_asset', None)

    def set_recurrent(self, recurrent: Recurrence) -> bool:
        return self._update('_recurrent', recurrent)

    def set_expiry(self, expiry: datetime.datetime) -> bool:
        return self._update('_expiry', _normalize_expiry(expiry))

    def set_no_expiry(self) -> bool:
        return self._update('_expiry', None)

    def set_quantity(self, quantity: Quantity) -> bool:
        return self._update('_quantity', quantity)

    def remove_quantity(self) -> bool:
        return self._update('_quantity', None)

    def set_currency_requirement(self, currency_data: CurrencyRequirement) -> bool:
        return self._update('_currency_requirement', currency_data)

    def remove_currency_requirement(self) -> bool:
        return self._update('_currency_requirement', None)

    def set_merchant(self, merchant: str) -> bool:
        return self._update('_merchant', _normalize_text(merchant))

    def remove_merchant(self) -> bool:
        return self._update('_merchant', None)

    def set_purpose(self, purpose: str) -> bool:
        return self._update('_purpose', _normalize_text(purpose))

    def remove_purpose(self) -> bool:
        return self._update('_purpose', None)

    def set_details(self, details: Details) -> bool:
        return self._update('_details', details)

    def remove_details(self) -> bool:
        return self._update('_details', None)

    def add_consignment_endpoint(self, endpoint: ConsignmentEndpoint) -> bool:
        # The signature survives unless strict signature handling is on.
        if endpoint in self._consignment_endpoints:
            return False
        return self._update('_consignment_endpoints',
                            self._consignment_endpoints + [endpoint],
                            signed=self.strict_signature)

    def set_network(self, network: Network) -> bool:
        # The signature survives unless strict signature handling is on.
        return self._update('_network', network, signed=self.strict_signature)

    def add_extension_field(self, typenum: int, value: bytes) -> bool:
        """Attach a raw record for a field this library does not know."""
        if typenum in codec.RECOGNIZED_TYPES:
            raise ValueError("Field type {} is not an extension".format(typenum))
        if self._extension_fields.get(typenum) == bytes(value):
            return False
        extensions = ExtensionFields(r for r in self._extension_fields
                                     if r.typenum != typenum)
        extensions.append(typenum, value)
        return self._update('_extension_fields', extensions)

    # Signature

    def signature_hash(self) -> bytes:
        """Digest the signer commits to: the encoding without the signature"""
        return tagged_hash(SIGNATURE_TAG, self.to_bytes(signature=False))

    def set_signature(self, pubkey: PublicKey, signature: bytes) -> None:
        if len(signature) != 64:
            raise ValueError("Signature must be 64 bytes")
        self._signature = (pubkey, bytes(signature))

    def remove_signature(self) -> None:
        self._signature = None
