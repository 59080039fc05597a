import faucet.bitcoind.service as wallet_service
from faucet.bitcoind.models import SignedTransaction, UnspentOutput
from faucet.dispatch.address import BtcNetwork, parse_address
from faucet.dispatch.config import DispatchConfig
from faucet.errors import JsonRpcNotWorkingError

# BIP173 / BIP350 test vectors
SIGNET_P2WPKH = "tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx"
SIGNET_P2WSH = "tb1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3q0sl5k7"
SIGNET_P2TR = "tb1pqqqqp399et2xygdj5xreqhjjvcmzhxw4aywxecjdzew6hylgvsesf3hn0c"
MAINNET_P2WPKH = "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"
MAINNET_P2TR = "bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqzk5jj0"
MAINNET_P2PKH = "1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2"
MAINNET_P2SH = "3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy"
TESTNET_P2PKH = "mipcBbFg9gMiCh81Kj8tqqdgoZub1ZJRfn"
TESTNET_P2SH = "2MzQwSSnBHWHqSAqtTVQ6v47XtaisrJa1Vc"

CHANGE_ADDRESS = SIGNET_P2WSH

NODE_ID_A = "02" + "11" * 32
NODE_ID_B = "03" + "22" * 32


def make_config(
    min_sendable: int = 5_000_000, max_sendable: int = 5_000_000, **kwargs
) -> DispatchConfig:
    # min_sendable defaults high so that amounts pass the lower bound check
    return DispatchConfig(
        network=kwargs.get("network", BtcNetwork.SIGNET),
        change_address=parse_address(kwargs.get("change_address", CHANGE_ADDRESS)),
        min_sendable=min_sendable,
        max_sendable=max_sendable,
    )


def utxo(amount: int, n: int = 0) -> UnspentOutput:
    return UnspentOutput(txid=f"{n:064x}", vout=n, amount_sats=amount)


class FakeWallet:
    """Stands in for Bitcoin Core's wallet and records every call."""

    def __init__(self, unspents=None, fail_on: str = None, complete: bool = True):
        self.unspents = unspents or []
        self.fail_on = fail_on
        self.complete = complete
        self.calls = []
        self.created = []

    def _record(self, method: str):
        self.calls.append(method)
        if self.fail_on == method:
            raise JsonRpcNotWorkingError(f"{method} failed")

    async def list_unspent(self):
        self._record("listunspent")
        return list(self.unspents)

    async def create_raw_transaction(self, tx):
        self._record("createrawtransaction")
        self.created.append(tx)
        return "rawtx"

    async def sign_raw_transaction_with_wallet(self, raw_tx):
        self._record("signrawtransactionwithwallet")
        if not self.complete:
            raise JsonRpcNotWorkingError("incomplete signature")

        return SignedTransaction(hex=f"signed-{raw_tx}", complete=True)

    async def send_raw_transaction(self, signed_tx):
        self._record("sendrawtransaction")
        return "ab" * 32


def monkeypatch_wallet(monkeypatch, wallet: FakeWallet):
    for name in (
        "list_unspent",
        "create_raw_transaction",
        "sign_raw_transaction_with_wallet",
        "send_raw_transaction",
    ):
        monkeypatch.setattr(wallet_service, name, getattr(wallet, name))
