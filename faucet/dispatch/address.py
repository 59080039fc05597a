from dataclasses import dataclass
from enum import Enum

import base58
from bip_utils import (
    Bech32ChecksumError,
    SegwitBech32Decoder,
    SegwitBech32Encoder,
)


class BtcNetwork(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"

    @classmethod
    def from_string(cls, network: str):
        # Bitcoin Core reports "main" and "test" in getblockchaininfo
        n = network.strip().lower()
        if n in ("main", "mainnet", "bitcoin"):
            return cls.MAINNET
        if n in ("test", "testnet", "testnet3"):
            return cls.TESTNET
        if n == "signet":
            return cls.SIGNET
        if n == "regtest":
            return cls.REGTEST

        raise ValueError(
            f"Unknown network {network}. Must be one of mainnet, testnet, signet or regtest"
        )


class AddressKind(str, Enum):
    P2PKH = "p2pkh"
    P2SH = "p2sh"
    P2WPKH = "p2wpkh"
    P2WSH = "p2wsh"
    P2TR = "p2tr"
    WITNESS_UNKNOWN = "witness_unknown"


_BECH32_HRP = {
    "bc": (BtcNetwork.MAINNET,),
    "tb": (BtcNetwork.TESTNET, BtcNetwork.SIGNET),
    "bcrt": (BtcNetwork.REGTEST,),
}

_TEST_NETWORKS = (BtcNetwork.TESTNET, BtcNetwork.SIGNET, BtcNetwork.REGTEST)

_BASE58_VERSIONS = {
    0x00: (AddressKind.P2PKH, (BtcNetwork.MAINNET,)),
    0x05: (AddressKind.P2SH, (BtcNetwork.MAINNET,)),
    0x6F: (AddressKind.P2PKH, _TEST_NETWORKS),
    0xC4: (AddressKind.P2SH, _TEST_NETWORKS),
}


class AddressParseError(ValueError):
    pass


@dataclass(frozen=True)
class BitcoinAddress:
    address: str
    kind: AddressKind
    networks: tuple
    program: bytes
    witness_version: int | None = None

    def is_valid_for_network(self, network: BtcNetwork) -> bool:
        return network in self.networks

    def __str__(self) -> str:
        return self.address


def _witness_kind(witver: int, program: bytes) -> AddressKind:
    if witver == 0:
        return AddressKind.P2WPKH if len(program) == 20 else AddressKind.P2WSH
    if witver == 1 and len(program) == 32:
        return AddressKind.P2TR

    return AddressKind.WITNESS_UNKNOWN


def _decode_segwit(hrp: str, address: str) -> tuple[int, bytes]:
    if address != address.lower() and address != address.upper():
        raise AddressParseError(f"Mixed case segwit address: {address}")

    try:
        witver, program = SegwitBech32Decoder.Decode(hrp, address.lower())
    except (ValueError, Bech32ChecksumError) as e:
        raise AddressParseError(f"Invalid segwit address: {address}: {e}") from e

    if witver > 16 or not 2 <= len(program) <= 40:
        raise AddressParseError(f"Invalid witness program: {address}")
    if witver == 0 and len(program) not in (20, 32):
        raise AddressParseError(f"Invalid witness v0 program length: {address}")

    # Encoding picks bech32 for v0 and bech32m for v1+, a mismatch means
    # the address carries the other checksum
    if SegwitBech32Encoder.Encode(hrp, witver, program) != address.lower():
        raise AddressParseError(
            f"Wrong checksum variant for witness v{witver}: {address}"
        )

    return witver, bytes(program)


def parse_address(address: str) -> BitcoinAddress:
    """Parse a bitcoin address string.

    Supports segwit addresses (bech32 for witness v0, bech32m for v1+)
    and legacy base58check P2PKH / P2SH addresses. The result records
    every network the address is valid on; signet shares its encoding
    with testnet.

    Raises
    ------
    AddressParseError
        If the string is not a well formed address.
    """
    if not isinstance(address, str) or address.strip() == "":
        raise AddressParseError("Address must be a non-empty string")

    address = address.strip()
    lowered = address.lower()
    sep = lowered.rfind("1")
    hrp = lowered[:sep] if sep > 0 else ""

    if hrp in _BECH32_HRP:
        witver, program = _decode_segwit(hrp, address)
        return BitcoinAddress(
            # bech32 is case insensitive, always keep the canonical lower case
            address=lowered,
            kind=_witness_kind(witver, program),
            networks=_BECH32_HRP[hrp],
            program=program,
            witness_version=witver,
        )

    try:
        decoded = base58.b58decode_check(address)
    except ValueError as e:
        raise AddressParseError(f"Invalid base58 address: {address}") from e

    if len(decoded) != 21 or decoded[0] not in _BASE58_VERSIONS:
        raise AddressParseError(f"Unknown address version or length: {address}")

    kind, networks = _BASE58_VERSIONS[decoded[0]]
    return BitcoinAddress(
        address=address, kind=kind, networks=networks, program=decoded[1:]
    )
