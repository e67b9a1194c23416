"""Canonical binary encoding of invoices.

Layout: `u8 version | amount | beneficiary` followed by a TLV stream holding
the optional fields.  Records the reader does not know are kept verbatim
and written back in type order among the known ones, so data from newer
writers survives a decode/encode cycle untouched.

Readers are strict: anything that would not re-encode to the very same
bytes (defaults spelled out, trailing bytes, unordered types...) is
rejected, because the encoding is also what gets signed.

"""
from .beneficiary import Beneficiary
from .errors import DecodeError
from .fields import (
    Amount, ConsignmentEndpoint, CurrencyRequirement, Details, Network,
    NonRecurrent, Quantity, Recurrence,
)
from .primitives import PublicKey, read_exact, read_int, write_int
from .tlv import ExtensionFields, TlvRecord, read_stream, write_stream
from io import BufferedIOBase, BytesIO
from typing import Any, Callable, Dict, List
import datetime
import logging


logger = logging.getLogger(__name__)

INVOICE_VERSION = 0

# TLV types of the optional fields
TLV_SIGNATURE = 0x00
TLV_ALT_BENEFICIARIES = 0x01
TLV_ASSET = 0x02
TLV_EXPIRY = 0x03
TLV_RECURRENT = 0x04
TLV_MERCHANT = 0x05
TLV_QUANTITY = 0x06
TLV_PURPOSE = 0x07
TLV_CURRENCY_REQUIREMENT = 0x08
TLV_DETAILS = 0x09
TLV_CONSIGNMENT_ENDPOINTS = 0x0a
TLV_NETWORK = 0x0b

EPOCH = datetime.datetime(1970, 1, 1)


def timestamp_from_datetime(dt: datetime.datetime) -> int:
    return int((dt - EPOCH).total_seconds())


def datetime_from_timestamp(ts: int) -> datetime.datetime:
    try:
        return EPOCH + datetime.timedelta(seconds=ts)
    except OverflowError:
        raise DecodeError("Expiry {} out of range".format(ts))


def _write_list(io_out: BufferedIOBase, items: List[Any]) -> None:
    write_int(io_out, '>H', len(items))
    for item in items:
        item.write(io_out)


def _read_list(io_in: BufferedIOBase, reader: Callable[[BufferedIOBase], Any], name: str) -> List[Any]:
    count = read_int(io_in, '>H', name)
    if count == 0:
        raise DecodeError("{}: empty lists are never encoded".format(name))
    return [reader(io_in) for _ in range(count)]


def _utf8(s: str) -> bytes:
    return s.encode('utf-8')


def _write_signature(io_out, sig) -> None:
    pubkey, signature = sig
    io_out.write(pubkey.to_bytes())
    io_out.write(signature)


def _read_signature(io_in):
    try:
        pubkey = PublicKey(read_exact(io_in, 33, 'signature'))
    except DecodeError:
        raise
    except ValueError as e:
        raise DecodeError("Bad signature public key: {}".format(e))
    return (pubkey, read_exact(io_in, 64, 'signature'))


def _read_text(io_in, name):
    try:
        s = io_in.read().decode('utf-8')
    except UnicodeDecodeError as e:
        raise DecodeError("{}: invalid UTF-8: {}".format(name, e))
    if s == '':
        raise DecodeError("{}: empty strings are never encoded".format(name))
    return s


def _read_endpoints(io_in):
    endpoints = _read_list(io_in, ConsignmentEndpoint.read, 'consignment endpoints')
    if len(set(endpoints)) != len(endpoints):
        raise DecodeError("Duplicate consignment endpoint")
    return endpoints


# (type, attribute, writer, reader) for every optional field.  The
# attribute is skipped on write when absent (None) or empty.
FIELDS = [
    (TLV_SIGNATURE, 'signature', _write_signature, _read_signature),
    (TLV_ALT_BENEFICIARIES, 'alt_beneficiaries',
     _write_list,
     lambda io_in: _read_list(io_in, Beneficiary.read, 'alt beneficiaries')),
    (TLV_ASSET, 'asset',
     lambda io_out, v: io_out.write(v),
     lambda io_in: read_exact(io_in, 32, 'asset')),
    (TLV_EXPIRY, 'expiry',
     lambda io_out, v: write_int(io_out, '>q', timestamp_from_datetime(v)),
     lambda io_in: datetime_from_timestamp(read_int(io_in, '>q', 'expiry'))),
    (TLV_RECURRENT, 'recurrent',
     lambda io_out, v: v.write(io_out),
     Recurrence.read),
    (TLV_MERCHANT, 'merchant',
     lambda io_out, v: io_out.write(_utf8(v)),
     lambda io_in: _read_text(io_in, 'merchant')),
    (TLV_QUANTITY, 'quantity',
     lambda io_out, v: v.write(io_out),
     Quantity.read),
    (TLV_PURPOSE, 'purpose',
     lambda io_out, v: io_out.write(_utf8(v)),
     lambda io_in: _read_text(io_in, 'purpose')),
    (TLV_CURRENCY_REQUIREMENT, 'currency_requirement',
     lambda io_out, v: v.write(io_out),
     CurrencyRequirement.read),
    (TLV_DETAILS, 'details',
     lambda io_out, v: v.write(io_out),
     Details.read),
    (TLV_CONSIGNMENT_ENDPOINTS, 'consignment_endpoints',
     _write_list,
     _read_endpoints),
    (TLV_NETWORK, 'network',
     lambda io_out, v: v.write(io_out),
     Network.read),
]

RECOGNIZED_TYPES = {f[0] for f in FIELDS}


def _is_default(v: Any) -> bool:
    return (v is None
            or (isinstance(v, (list, tuple)) and len(v) == 0)
            or isinstance(v, NonRecurrent))


def write_invoice(io_out: BufferedIOBase, invoice, signature: bool = True) -> None:
    """Write `invoice`; without `signature` the signature record is left out."""
    write_int(io_out, 'B', invoice.version)
    invoice.amount.write(io_out)
    invoice.beneficiary.write(io_out)

    records: List[TlvRecord] = []
    for typenum, attr, writer, _ in FIELDS:
        if typenum == TLV_SIGNATURE and not signature:
            continue
        val = getattr(invoice, attr)
        if _is_default(val):
            continue
        buf = BytesIO()
        writer(buf, val)
        records.append(TlvRecord(typenum, buf.getvalue()))

    for r in invoice.extension_fields:
        if r.typenum in RECOGNIZED_TYPES:
            raise ValueError("Extension field {} clashes with a known field"
                             .format(r.typenum))
        records.append(r)

    write_stream(io_out, records)


def read_invoice(io_in: BufferedIOBase) -> Dict[str, Any]:
    """Decode an invoice into a dict of field name to value."""
    version = read_int(io_in, 'B', 'version')
    if version != INVOICE_VERSION:
        raise DecodeError("Unsupported invoice version {}".format(version))

    fields: Dict[str, Any] = {
        'version': version,
        'amount': Amount.read(io_in),
        'beneficiary': Beneficiary.read(io_in),
    }
    extensions = ExtensionFields()

    readers = {f[0]: (f[1], f[3]) for f in FIELDS}
    for record in read_stream(io_in):
        if record.typenum not in readers:
            logger.debug("Keeping unknown invoice field %d (%d bytes)",
                         record.typenum, len(record.value))
            extensions.append(record.typenum, record.value)
            continue

        attr, reader = readers[record.typenum]
        buf = BytesIO(record.value)
        fields[attr] = reader(buf)
        if buf.read(1):
            raise DecodeError("Trailing bytes in {} field".format(attr))

    fields['extension_fields'] = extensions
    return fields


def encode(invoice, signature: bool = True) -> bytes:
    b = BytesIO()
    write_invoice(b, invoice, signature)
    return b.getvalue()


def decode(data: bytes) -> Dict[str, Any]:
    return read_invoice(BytesIO(data))
