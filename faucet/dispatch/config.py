import sys
from decimal import Decimal, InvalidOperation

from decouple import config
from loguru import logger
from pydantic import BaseModel, ConfigDict

from faucet.bitcoind.models import SATS_PER_BTC
from faucet.dispatch.address import (
    AddressParseError,
    BitcoinAddress,
    BtcNetwork,
    parse_address,
)

DEFAULT_MAX_SENDABLE = 1_000_000
DEFAULT_MIN_SENDABLE = 420


def parse_amount(value: str) -> int:
    """Parse an amount into satoshis.

    Accepts a plain integer (satoshis), ``"<n> sat"`` / ``"<n> sats"``
    or ``"<x> BTC"``.
    """
    parts = value.strip().split()
    if len(parts) == 1:
        return _non_negative(int(parts[0]))

    if len(parts) != 2:
        raise ValueError(f"Invalid amount: {value}")

    number, denomination = parts
    denomination = denomination.lower()
    if denomination in ("sat", "sats", "satoshi", "satoshis"):
        return _non_negative(int(number))

    if denomination == "btc":
        try:
            btc = Decimal(number)
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {value}") from e

        if not btc.is_finite():
            raise ValueError(f"Invalid amount: {value}")

        sats = btc * SATS_PER_BTC
        if sats != sats.to_integral_value():
            raise ValueError(f"Amount {value} has more precision than 1 sat")

        return _non_negative(int(sats))

    raise ValueError(f"Unknown denomination in amount: {value}")


def _non_negative(sats: int) -> int:
    if sats < 0:
        raise ValueError("Amount must not be negative")

    return sats


class DispatchConfig(BaseModel):
    """Process wide settings for on-chain sends. Never mutated after startup."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    network: BtcNetwork = BtcNetwork.SIGNET
    change_address: BitcoinAddress
    max_sendable: int = DEFAULT_MAX_SENDABLE
    min_sendable: int = DEFAULT_MIN_SENDABLE


def amount_from_env(key: str, default: int) -> int:
    raw = config(key, default=None)
    if raw is None:
        logger.info(f"{key} not set, using default of {default}")
        return default

    try:
        value = parse_amount(raw)
    except ValueError as e:
        logger.warning(f"error parsing the {key} {e}, using default of {default}")
        return default

    logger.info(f"{key} set to {value} sat")
    return value


def load_dispatch_config() -> DispatchConfig:
    network = BtcNetwork.from_string(config("network", default="signet"))

    raw_change = config("change_address", default="")
    try:
        change_address = parse_address(raw_change)
    except AddressParseError:
        logger.error(
            "You have to provide a valid change address. "
            "Please set change_address in the .env file or the environment"
        )
        sys.exit(1)

    if not change_address.is_valid_for_network(network):
        logger.warning(
            f"Change address {change_address} doesn't belong to the {network.value} network"
        )

    return DispatchConfig(
        network=network,
        change_address=change_address,
        max_sendable=amount_from_env("max_sendable_amount", DEFAULT_MAX_SENDABLE),
        min_sendable=amount_from_env("min_sendable_amount", DEFAULT_MIN_SENDABLE),
    )


_dispatch_config: DispatchConfig | None = None


def get_dispatch_config() -> DispatchConfig:
    global _dispatch_config
    if _dispatch_config is None:
        _dispatch_config = load_dispatch_config()

    return _dispatch_config
