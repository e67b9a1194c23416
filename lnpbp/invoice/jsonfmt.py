"""JSON projection of an invoice.

Field names are camelCase.  This form is for humans and scripts; it makes
no promise of stability beyond the field names, and unknown (extension)
records are not part of it.

"""
from .beneficiary import (
    Address, Beneficiary, BlindUtxo, Descriptor, LightningNode, PsbtTemplate,
    RouteHint, UnknownBeneficiary,
)
from .errors import DecodeError, InvoiceError
from .fields import (
    Amount, ConsignmentEndpoint, CurrencyRequirement, Details, Iso4217,
    Network, NonRecurrent, Quantity, Recurrence,
)
from .primitives import PublicKey, ShortChannelId
from typing import Any, Dict, Optional
import datetime


def _opt(v, fn):
    return None if v is None else fn(v)


def route_hint_to_json(rh: RouteHint) -> Dict[str, Any]:
    return {
        'pubkey': str(rh.pubkey),
        'shortChannelId': str(rh.short_channel_id),
        'feeBaseMsat': rh.fee_base_msat,
        'feeProportionalMillionths': rh.fee_proportional_millionths,
        'cltvExpiryDelta': rh.cltv_expiry_delta,
    }


def route_hint_from_json(d: Dict[str, Any]) -> RouteHint:
    return RouteHint(PublicKey.from_hex(d['pubkey']),
                     ShortChannelId.from_str(d['shortChannelId']),
                     d['feeBaseMsat'],
                     d['feeProportionalMillionths'],
                     d['cltvExpiryDelta'])


def beneficiary_to_json(b: Beneficiary) -> Dict[str, Any]:
    """Beneficiaries become single-key objects named after their variant"""
    if isinstance(b, Address):
        return {'address': b.address}
    elif isinstance(b, BlindUtxo):
        return {'blindUtxo': str(b)}
    elif isinstance(b, Descriptor):
        return {'descriptor': b.descriptor}
    elif isinstance(b, PsbtTemplate):
        return {'psbt': b.to_base64()}
    elif isinstance(b, LightningNode):
        return {'lightningNode': {
            'nodeId': str(b.node_id),
            'features': b.features.hex(),
            'lock': b.lock.hex(),
            'minFinalCltvExpiry': b.min_final_cltv_expiry,
            'routeHints': [route_hint_to_json(rh) for rh in b.route_hints],
        }}
    elif isinstance(b, UnknownBeneficiary):
        return {'unknown': {'kind': b.kind, 'blob': b.blob.hex()}}
    raise TypeError("Unknown beneficiary type {}".format(type(b)))


def beneficiary_from_json(d: Dict[str, Any]) -> Beneficiary:
    if len(d) != 1:
        raise DecodeError("Beneficiary must have exactly one variant: {}".format(d))
    (variant, v), = d.items()
    if variant == 'address':
        return Address.from_str(v)
    elif variant == 'blindUtxo':
        return BlindUtxo.from_str(v)
    elif variant == 'descriptor':
        return Descriptor.from_str(v)
    elif variant == 'psbt':
        return PsbtTemplate.from_base64(v)
    elif variant == 'lightningNode':
        return LightningNode(PublicKey.from_hex(v['nodeId']),
                             bytes.fromhex(v.get('features', '')),
                             bytes.fromhex(v.get('lock', '00' * 32)),
                             v.get('minFinalCltvExpiry'),
                             [route_hint_from_json(rh)
                              for rh in v.get('routeHints', [])])
    elif variant == 'unknown':
        return UnknownBeneficiary(v['kind'], bytes.fromhex(v['blob']))
    raise DecodeError("Unknown beneficiary variant {}".format(variant))


def invoice_to_json(invoice) -> Dict[str, Any]:
    sig = invoice.signature
    quantity = invoice.quantity
    currency = invoice.currency_requirement
    details = invoice.details
    return {
        'version': invoice.version,
        'amount': str(invoice.amount),
        'beneficiary': beneficiary_to_json(invoice.beneficiary),
        'altBeneficiaries': [beneficiary_to_json(b)
                             for b in invoice.alt_beneficiaries],
        'asset': _opt(invoice.asset, bytes.hex),
        'expiry': _opt(invoice.expiry, datetime.datetime.isoformat),
        'recurrent': str(invoice.recurrent),
        'quantity': None if quantity is None else {
            'min': quantity.min,
            'max': quantity.max,
            'default': quantity.default,
        },
        'currencyRequirement': None if currency is None else {
            'iso4217': str(currency.iso4217),
            'coins': currency.coins,
            'fractions': currency.fractions,
            'priceProvider': currency.price_provider,
        },
        'merchant': invoice.merchant,
        'purpose': invoice.purpose,
        'details': None if details is None else {
            'commitment': details.commitment.hex(),
            'source': details.source,
        },
        'signature': None if sig is None else {
            'pubkey': str(sig[0]),
            'signature': sig[1].hex(),
        },
        'consignmentEndpoints': [str(e) for e in invoice.consignment_endpoints],
        'network': _opt(invoice.network, str),
    }


def _text(v: Optional[str]) -> Optional[str]:
    return v if v else None


def _fields_from_json(d: Dict[str, Any]) -> Dict[str, Any]:
    version = d.get('version', 0)
    if version != 0:
        raise DecodeError("Unsupported invoice version {}".format(version))

    endpoints = [ConsignmentEndpoint.from_str(e)
                 for e in d.get('consignmentEndpoints', [])]
    if len(set(endpoints)) != len(endpoints):
        raise DecodeError("Duplicate consignment endpoint")

    expiry = _opt(d.get('expiry'), datetime.datetime.fromisoformat)
    if expiry is not None and expiry.tzinfo is not None:
        expiry = expiry.astimezone(datetime.timezone.utc).replace(tzinfo=None)

    asset = _opt(d.get('asset'), bytes.fromhex)
    if asset is not None and len(asset) != 32:
        raise DecodeError("Asset id must be 32 bytes")

    q = d.get('quantity')
    c = d.get('currencyRequirement')
    det = d.get('details')
    sig = d.get('signature')
    net = d.get('network')

    return {
        'amount': Amount.from_str(d.get('amount', 'any')),
        'beneficiary': beneficiary_from_json(d['beneficiary']),
        'alt_beneficiaries': [beneficiary_from_json(b)
                              for b in d.get('altBeneficiaries', [])],
        'asset': asset,
        'expiry': None if expiry is None else expiry.replace(microsecond=0),
        'recurrent': Recurrence.from_str(d.get('recurrent', str(NonRecurrent()))),
        'quantity': None if q is None else Quantity(q.get('min', 0),
                                                    q.get('max'),
                                                    q.get('default', 1)),
        'currency_requirement': None if c is None else CurrencyRequirement(
            Iso4217.from_str(c['iso4217']), c['coins'], c['fractions'],
            c.get('priceProvider', '')),
        'merchant': _text(d.get('merchant')),
        'purpose': _text(d.get('purpose')),
        'details': None if det is None else Details(
            bytes.fromhex(det['commitment']), det['source']),
        'signature': None if sig is None else (
            PublicKey.from_hex(sig['pubkey']), bytes.fromhex(sig['signature'])),
        'consignment_endpoints': endpoints,
        'network': None if net is None else Network[net.upper()],
    }


def invoice_fields_from_json(d: Dict[str, Any]) -> Dict[str, Any]:
    """Field values of an invoice, keyed the way the binary decoder keys them"""
    try:
        fields = _fields_from_json(d)
    except InvoiceError:
        raise
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise DecodeError("Malformed invoice JSON: {!r}".format(e))
    if fields['signature'] is not None and len(fields['signature'][1]) != 64:
        raise DecodeError("Signature must be 64 bytes")
    return fields
