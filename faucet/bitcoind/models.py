from decimal import Decimal

from fastapi import Query
from pydantic import BaseModel

SATS_PER_BTC = 100_000_000


def btc_to_sats(value) -> int:
    # Bitcoin Core reports amounts in BTC. Go through str so floats
    # like 0.1 don't pick up binary rounding errors.
    return int((Decimal(str(value)) * SATS_PER_BTC).to_integral_value())


def sats_to_btc_str(sats: int) -> str:
    return f"{Decimal(sats) / SATS_PER_BTC:.8f}"


class UnspentOutput(BaseModel):
    txid: str = Query(..., description="The transaction id this output belongs to")
    vout: int = Query(..., description="The output index within the transaction")
    amount_sats: int = Query(..., description="The value of the output in sats")

    @property
    def outpoint(self) -> str:
        return f"{self.txid}:{self.vout}"

    @classmethod
    def from_rpc(cls, r):
        return cls(txid=r["txid"], vout=r["vout"], amount_sats=btc_to_sats(r["amount"]))

    def to_rpc_input(self) -> dict:
        return {"txid": self.txid, "vout": self.vout}


class TransactionRequest(BaseModel):
    inputs: list[UnspentOutput] = Query(
        ..., description="Outputs spent by the transaction, in selection order"
    )
    outputs: dict[str, int] = Query(
        ..., description="Destination address to amount in sats"
    )
    fee: int = Query(..., description="The absolute fee paid in sats")

    @property
    def input_total(self) -> int:
        return sum(i.amount_sats for i in self.inputs)

    def rpc_inputs(self) -> list:
        return [i.to_rpc_input() for i in self.inputs]

    def rpc_outputs(self) -> dict:
        return {addr: sats_to_btc_str(sats) for addr, sats in self.outputs.items()}


class SignedTransaction(BaseModel):
    hex: str = Query(..., description="The hex encoded signed transaction")
    complete: bool = Query(
        ..., description="If the transaction has a complete set of signatures"
    )
    errors: list[dict] = Query(
        [], description="Script verification errors reported by the wallet"
    )

    @classmethod
    def from_rpc(cls, r):
        return cls(
            hex=r["hex"],
            complete=r["complete"],
            errors=r.get("errors", []),
        )


class BlockchainInfo(BaseModel):
    chain: str = Query(..., description="Current network name (main, test, signet, regtest)")
    blocks: int = Query(..., description="The height of the most-work fully-validated chain")
    initial_block_download: bool = Query(
        ..., description="Whether the node is in initial block download mode"
    )

    @classmethod
    def from_rpc(cls, r):
        return cls(
            chain=r["chain"],
            blocks=r["blocks"],
            initial_block_download=r["initialblockdownload"],
        )
