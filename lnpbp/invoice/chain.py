"""Known chains and classification of invoice assets against them.

An asset id is a plain 32-byte value.  The native asset of a bitcoin chain
is its genesis block hash; the native asset of Liquid is L-BTC.  All ids
are kept in internal byte order (the reverse of how block explorers show
them).

"""
from .errors import ChainParseError
from enum import Enum
from typing import Optional


def _display_hex(s: str) -> bytes:
    return bytes.fromhex(s)[::-1]


class Chain(Enum):
    MAINNET = 'mainnet'
    TESTNET3 = 'testnet3'
    REGTEST = 'regtest'
    SIGNET = 'signet'
    LIQUIDV1 = 'liquidv1'

    @property
    def native_asset(self) -> bytes:
        return NATIVE_ASSETS[self]

    @classmethod
    def from_str(cls, s: str) -> 'Chain':
        name = s.strip().lower()
        if name in CHAIN_ALIASES:
            return CHAIN_ALIASES[name]
        raise ChainParseError(s)

    def __str__(self):
        return self.value


NATIVE_ASSETS = {
    Chain.MAINNET: _display_hex(
        '000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f'),
    Chain.TESTNET3: _display_hex(
        '000000000933ea01ad0ee984209779baaec3ced90fa3f408719526f8d77f4943'),
    Chain.REGTEST: _display_hex(
        '0f9188f13cb7b2c71f2a335e3a4fc328bf5beb436012afca590b1a11466e2206'),
    Chain.SIGNET: _display_hex(
        '00000008819873e925422c1ff0f99f7cc9bbb232af63a077a480a3633bee1ef6'),
    Chain.LIQUIDV1: _display_hex(
        '6f0279e9ed041c3d710a9f57d0c02928416460c4b722ae3457a11eec381c526d'),
}

CHAIN_ALIASES = {
    'mainnet': Chain.MAINNET,
    'bitcoin': Chain.MAINNET,
    'testnet': Chain.TESTNET3,
    'testnet3': Chain.TESTNET3,
    'regtest': Chain.REGTEST,
    'signet': Chain.SIGNET,
    'liquidv1': Chain.LIQUIDV1,
    'liquid': Chain.LIQUIDV1,
}

# Chains whose native assets an invoice may name explicitly.  Regtest is
# left out: its genesis is shared by every private test network.
KNOWN_CHAINS = (Chain.MAINNET, Chain.SIGNET, Chain.LIQUIDV1, Chain.TESTNET3)


def parse_asset_id(s: str) -> bytes:
    try:
        asset = bytes.fromhex(s.strip())
    except ValueError:
        raise ValueError("Asset id must be 32 hex-encoded bytes: {}".format(s))
    if len(asset) != 32:
        raise ValueError("Asset id must be 32 bytes, not {}".format(len(asset)))
    return asset


class AssetClass(object):
    NATIVE = 'native'
    INVALID_NATIVE_CHAIN = 'invalid-native-chain'
    NON_NATIVE = 'non-native'

    def __init__(self, kind: str, asset: Optional[bytes] = None):
        self.kind = kind
        self.asset = asset

    @classmethod
    def native(cls) -> 'AssetClass':
        return cls(cls.NATIVE)

    @classmethod
    def invalid_native_chain(cls) -> 'AssetClass':
        return cls(cls.INVALID_NATIVE_CHAIN)

    @classmethod
    def non_native(cls, asset: bytes) -> 'AssetClass':
        return cls(cls.NON_NATIVE, asset)

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, AssetClass)
                and self.kind == other.kind
                and self.asset == other.asset)

    def __hash__(self):
        return hash((self.kind, self.asset))

    def __repr__(self):
        if self.asset is None:
            return "AssetClass[{}]".format(self.kind)
        return "AssetClass[{}, {}]".format(self.kind, self.asset.hex())


def is_native_asset(asset: bytes) -> bool:
    return any(asset == c.native_asset for c in KNOWN_CHAINS)


def classify(asset: Optional[bytes], chain: Optional[Chain]) -> AssetClass:
    """Tell how an invoice asset relates to the chain it is paid on.

No asset means "bitcoin", which only makes sense on mainnet.  A known
native asset is fine on its own chain and an error anywhere else; any
other id is an asset living outside the base chain's native unit.

    """
    if asset is None:
        if chain == Chain.MAINNET:
            return AssetClass.native()
        return AssetClass.invalid_native_chain()

    if chain is not None and asset == chain.native_asset:
        return AssetClass.native()

    if is_native_asset(asset):
        return AssetClass.invalid_native_chain()

    return AssetClass.non_native(asset)
