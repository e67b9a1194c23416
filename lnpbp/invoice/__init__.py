from .beneficiary import (
    Address, Beneficiary, BlindUtxo, Descriptor, LightningNode, PsbtTemplate,
    RouteHint, UnknownBeneficiary,
)
from .chain import AssetClass, Chain, classify
from .errors import (
    DecodeError, GrammarError, InconsistentInvoice, InvoiceError,
    NotRgbInvoice, TextParseError,
)
from .fields import (
    AnyAmount, ConsignmentEndpoint, CurrencyRequirement, Details, Iso4217,
    MilliAmount, Network, NonRecurrent, NormalAmount, Quantity, Recurrence,
)
from .invoice import Invoice
from .primitives import PublicKey, ShortChannelId

__version__ = "0.2.0"

__all__ = [
    "Invoice",
    "Beneficiary",
    "Address",
    "BlindUtxo",
    "Descriptor",
    "PsbtTemplate",
    "LightningNode",
    "RouteHint",
    "UnknownBeneficiary",
    "AnyAmount",
    "NormalAmount",
    "MilliAmount",
    "Recurrence",
    "NonRecurrent",
    "Quantity",
    "Iso4217",
    "CurrencyRequirement",
    "Details",
    "ConsignmentEndpoint",
    "Network",
    "Chain",
    "AssetClass",
    "classify",
    "PublicKey",
    "ShortChannelId",
    "InvoiceError",
    "TextParseError",
    "DecodeError",
    "GrammarError",
    "NotRgbInvoice",
    "InconsistentInvoice",
    "__version__",
]
