from .errors import DecodeError
from .primitives import bigsize_read, bigsize_write
from io import BufferedIOBase, BytesIO
from typing import Iterable, Iterator, List, Optional


class TlvRecord(object):
    """A single type-length-value record, value kept as raw bytes."""

    def __init__(self, typenum: int, value: bytes):
        if typenum < 0:
            raise ValueError("TLV type cannot be negative: {}".format(typenum))
        self.typenum = typenum
        self.value = bytes(value)

    def write(self, io_out: BufferedIOBase) -> None:
        bigsize_write(io_out, self.typenum)
        bigsize_write(io_out, len(self.value))
        io_out.write(self.value)

    def to_bytes(self) -> bytes:
        b = BytesIO()
        self.write(b)
        return b.getvalue()

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, TlvRecord)
                and self.typenum == other.typenum
                and self.value == other.value)

    def __hash__(self):
        return hash((self.typenum, self.value))

    def __repr__(self):
        return "TlvRecord[{}={}]".format(self.typenum, self.value.hex())


class ExtensionFields(object):
    """Records whose types this implementation does not understand.

They are kept in the order they were added (which, for decoded data, is
ascending type order) so that they can be written back untouched.

    """
    def __init__(self, records: Optional[Iterable[TlvRecord]] = None):
        self.records: List[TlvRecord] = []
        for r in records or []:
            self.append(r.typenum, r.value)

    def get(self, typenum: int) -> Optional[bytes]:
        for r in self.records:
            if r.typenum == typenum:
                return r.value
        return None

    def append(self, typenum: int, value: bytes) -> None:
        if self.get(typenum) is not None:
            raise ValueError("Duplicate extension field {}".format(typenum))
        self.records.append(TlvRecord(typenum, value))

    def copy(self) -> 'ExtensionFields':
        return ExtensionFields(self.records)

    def __iter__(self) -> Iterator[TlvRecord]:
        return iter(list(self.records))

    def __len__(self):
        return len(self.records)

    def __contains__(self, typenum: int) -> bool:
        return self.get(typenum) is not None

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, ExtensionFields)
                and self.records == other.records)

    def __repr__(self):
        return "ExtensionFields[{}]".format(
            ", ".join([repr(r) for r in self.records]))


def write_stream(io_out: BufferedIOBase, records: Iterable[TlvRecord]) -> None:
    """Write records in ascending type order, as the TLV rules require."""
    ordered = sorted(records, key=lambda r: r.typenum)
    for prev, cur in zip(ordered, ordered[1:]):
        if prev.typenum == cur.typenum:
            raise ValueError("Duplicate TLV type {}".format(cur.typenum))
    for r in ordered:
        r.write(io_out)


def read_stream(io_in: BufferedIOBase) -> List[TlvRecord]:
    """Read TLV records until EOF.

Types must be strictly increasing, so that a decoded stream always
writes back to the very same bytes.

    """
    records: List[TlvRecord] = []
    while True:
        tlv_type = bigsize_read(io_in)
        if tlv_type is None:
            return records

        if records and tlv_type <= records[-1].typenum:
            raise DecodeError("TLV type {} follows {}: not strictly ascending"
                              .format(tlv_type, records[-1].typenum))

        tlv_len = bigsize_read(io_in)
        if tlv_len is None:
            raise DecodeError("{}: truncated tlv_len field".format(tlv_type))
        binval = io_in.read(tlv_len)
        if len(binval) != tlv_len:
            raise DecodeError("{}: truncated tlv value".format(tlv_type))
        records.append(TlvRecord(tlv_type, binval))
