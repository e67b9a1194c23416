class InvoiceError(ValueError):
    """Base class for everything the invoice library reports as bad input."""


class TextParseError(InvoiceError):
    """The text (bech32m) form is malformed."""
    def __init__(self, reason: str, text: str = None):
        if text is not None:
            msg = "{}: {}".format(reason, text)
        else:
            msg = reason
        super().__init__(msg)
        self.reason = reason
        self.text = text


class DecodeError(InvoiceError):
    """The canonical binary form is malformed or not canonical."""


class GrammarError(InvoiceError):
    """A value's text form matches none of its grammars."""
    what = 'value'

    def __init__(self, s: str, detail: str = None):
        msg = "Invalid {} '{}'".format(self.what, s)
        if detail:
            msg += ": {}".format(detail)
        super().__init__(msg)
        self.input = s


class AmountParseError(GrammarError):
    what = 'amount'


class BeneficiaryParseError(GrammarError):
    what = 'beneficiary'


class EndpointParseError(GrammarError):
    what = 'consignment endpoint'


class Iso4217Error(GrammarError):
    what = 'ISO 4217 currency code'


class ChainParseError(GrammarError):
    what = 'chain'


class RecurrenceParseError(GrammarError):
    what = 'recurrence'


class Bolt11Error(InvoiceError):
    """The invoice cannot be represented as a BOLT11 invoice."""


class UnsupportedBeneficiary(Bolt11Error):
    def __init__(self, beneficiary):
        super().__init__(
            "Beneficiary {} is not a lightning node".format(beneficiary))
        self.beneficiary = beneficiary


class UnsupportedChain(Bolt11Error):
    def __init__(self, chain):
        super().__init__("Chain {} is not supported".format(chain))
        self.chain = chain


class MissingPaymentHash(Bolt11Error):
    def __init__(self, lock: bytes):
        super().__init__(
            "Lock {} is not a 32-byte payment hash".format(lock.hex()))
        self.lock = lock


class NotRgbInvoice(InvoiceError):
    def __init__(self, asset=None):
        super().__init__("the operation is supported only for RGB invoices")
        self.asset = asset


class InconsistentInvoice(RuntimeError):
    """A constructed invoice failed to serialize: this is a bug, not bad input."""
