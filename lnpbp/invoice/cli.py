"""Command line tool to create invoices and convert them between formats."""
from .beneficiary import Beneficiary, BlindUtxo
from .invoice import Invoice
from .rgb import ContractId
import argparse
import base58
import base64
import json
import logging
import re
import secrets
import sys
import yaml


logger = logging.getLogger(__name__)

FORMATS = ['debug', 'bech32', 'base58', 'base64', 'yaml', 'json', 'hex', 'rust', 'raw']
FORMAT_ALIASES = {'bin': 'raw'}


def parse_format(s: str) -> str:
    fmt = s.strip().lower()
    fmt = FORMAT_ALIASES.get(fmt, fmt)
    if fmt not in FORMATS:
        raise argparse.ArgumentTypeError("Unknown format: {}".format(s))
    return fmt


def rust_array(b: bytes) -> str:
    return "[\n" + "".join("    0x{:02X},\n".format(c) for c in b) + "]"


def read_input(cls, data: bytes, fmt: str):
    """Parse `data` as an instance of `cls` (Invoice or ContractId)."""
    text = data.decode('utf-8', errors='replace').strip()
    if fmt == 'bech32':
        return cls.from_str(text)
    elif fmt == 'base58':
        return cls.from_bytes(base58.b58decode(text))
    elif fmt == 'base64':
        return cls.from_bytes(base64.b64decode(text, validate=True))
    elif fmt == 'yaml':
        try:
            return cls.from_json(yaml.safe_load(text))
        except yaml.YAMLError as e:
            raise ValueError("Invalid YAML: {}".format(e))
    elif fmt == 'json':
        return cls.from_json(json.loads(text))
    elif fmt == 'hex':
        return cls.from_bytes(bytes.fromhex(text))
    elif fmt == 'raw':
        return cls.from_bytes(data)
    raise ValueError("Can't read data from {} format".format(fmt))


def write_output(obj, fmt: str) -> bytes:
    """Render `obj` completely before anything reaches the output."""
    if fmt == 'raw':
        return obj.to_bytes()
    elif fmt == 'debug':
        s = "{!r}\n{}".format(obj, json.dumps(obj.to_json(), indent=4))
    elif fmt == 'bech32':
        s = str(obj)
    elif fmt == 'base58':
        s = base58.b58encode(obj.to_bytes()).decode('ASCII')
    elif fmt == 'base64':
        s = base64.b64encode(obj.to_bytes()).decode('ASCII')
    elif fmt == 'yaml':
        s = yaml.safe_dump(obj.to_json(), sort_keys=False).rstrip('\n')
    elif fmt == 'json':
        s = json.dumps(obj.to_json())
    elif fmt == 'hex':
        s = obj.to_bytes().hex()
    elif fmt == 'rust':
        s = rust_array(obj.to_bytes())
    else:
        raise ValueError("Unknown format: {}".format(fmt))
    return (s + '\n').encode('utf-8')


def _stdin() -> bytes:
    return sys.stdin.buffer.read()


def cmd_create(args) -> bytes:
    asset = None if args.asset is None else ContractId.from_str(args.asset).to_bytes()
    invoice = Invoice(Beneficiary.from_str(args.beneficiary), args.amount, asset)
    return write_output(invoice, 'bech32')


def cmd_convert(args) -> bytes:
    data = _stdin() if args.invoice is None else args.invoice.encode('utf-8')
    return write_output(read_input(Invoice, data, args.input), args.output)


def cmd_rgb_convert(args) -> bytes:
    data = _stdin() if args.asset is None else args.asset.encode('utf-8')
    return write_output(read_input(ContractId, data, args.input), args.output)


def cmd_conceal(args) -> bytes:
    txid, sep, vout = args.outpoint.rpartition(':')
    if not sep or not re.fullmatch(r'[0-9]+', vout):
        raise ValueError("Outpoint must be <txid>:<vout>: {}".format(args.outpoint))
    blinding = secrets.randbits(64)
    seal = BlindUtxo.conceal(txid, int(vout), blinding)
    return "{}:{}#{}\n{}\n".format(txid, vout, blinding, seal).encode('utf-8')


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='lnpbp-invoice',
        description="Universal LNP/BP invoice tool")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="log debug information to stderr")
    subcmds = parser.add_subparsers(required=True, dest='command')

    create = subcmds.add_parser("create", help="creates new invoice")
    create.add_argument('beneficiary', help="address, blinded UTXO or descriptor")
    create.add_argument('amount', type=int, nargs='?',
                        help="amount, in satoshis or smallest asset division")
    create.add_argument('asset', nargs='?', help="asset, if not bitcoin")
    create.set_defaults(func=cmd_create)

    convert = subcmds.add_parser(
        "convert", help="converts invoice data between representations")
    convert.add_argument('invoice', nargs='?',
                         help="invoice data; if none are given reads from STDIN")
    convert.add_argument('-i', '--input', type=parse_format, default='bech32')
    convert.add_argument('-o', '--output', type=parse_format, default='yaml')
    convert.set_defaults(func=cmd_convert)

    rgb_convert = subcmds.add_parser(
        "rgb-convert", help="converts RGB asset id between representations")
    rgb_convert.add_argument('asset', nargs='?',
                             help="asset id; if none is given reads from STDIN")
    rgb_convert.add_argument('-i', '--input', type=parse_format, default='hex')
    rgb_convert.add_argument('-o', '--output', type=parse_format, default='bech32')
    rgb_convert.set_defaults(func=cmd_rgb_convert)

    conceal = subcmds.add_parser(
        "conceal", help="creates blinded UTXO representation from a given outpoint")
    conceal.add_argument('outpoint', help="<txid>:<vout>")
    conceal.set_defaults(func=cmd_conceal)
    return parser


def main(argv=None) -> int:
    args = get_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler()
        ]
    )

    try:
        out = args.func(args)
    except ValueError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print("Error: {}".format(e), file=sys.stderr)
        return 1

    sys.stdout.buffer.write(out)
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
