from fastapi.exceptions import HTTPException
from loguru import logger

from faucet.bitcoind.models import (
    BlockchainInfo,
    SignedTransaction,
    TransactionRequest,
    UnspentOutput,
)
from faucet.bitcoind.utils import bitcoin_rpc_async
from faucet.dispatch.address import BtcNetwork
from faucet.errors import JsonRpcNotWorkingError


def _unexpected_answer(method: str, result, e: Exception) -> JsonRpcNotWorkingError:
    logger.error(f"Unexpected answer from Bitcoin Core for {method}: {result!r} ({e})")
    return JsonRpcNotWorkingError(f"unexpected answer for {method}")


@logger.catch(exclude=(HTTPException,), reraise=True)
async def get_blockchain_info() -> BlockchainInfo:
    result = await bitcoin_rpc_async("getblockchaininfo")

    try:
        return BlockchainInfo.from_rpc(result)
    except (KeyError, TypeError, ValueError) as e:
        raise _unexpected_answer("getblockchaininfo", result, e) from e


async def check_bitcoin_network(network: BtcNetwork) -> bool:
    """Log whether the wallet's node runs on ``network``. Never raises."""
    try:
        info = await get_blockchain_info()
    except JsonRpcNotWorkingError as e:
        logger.warning(f"Unable to reach Bitcoin Core at startup: {e.reason}")
        return False

    try:
        chain = BtcNetwork.from_string(info.chain)
    except ValueError:
        chain = None

    if chain != network:
        logger.warning(
            f"Bitcoin Core runs on {info.chain} but the faucet is configured for {network.value}"
        )
        return False

    logger.success(f"Connected to Bitcoin Core on {info.chain} at height {info.blocks}")
    return True


@logger.catch(exclude=(HTTPException,), reraise=True)
async def list_unspent() -> list[UnspentOutput]:
    logger.trace("list_unspent()")
    result = await bitcoin_rpc_async("listunspent")

    try:
        return [UnspentOutput.from_rpc(u) for u in result]
    except (KeyError, TypeError, ValueError) as e:
        raise _unexpected_answer("listunspent", result, e) from e


@logger.catch(exclude=(HTTPException,), reraise=True)
async def create_raw_transaction(tx: TransactionRequest) -> str:
    logger.trace(f"create_raw_transaction(inputs={len(tx.inputs)}, outputs={tx.outputs})")
    # locktime 0, signal replace-by-fee
    params = [tx.rpc_inputs(), tx.rpc_outputs(), 0, True]
    result = await bitcoin_rpc_async("createrawtransaction", params)

    if not isinstance(result, str):
        raise _unexpected_answer("createrawtransaction", result, TypeError("not a hex string"))

    return result


@logger.catch(exclude=(HTTPException,), reraise=True)
async def sign_raw_transaction_with_wallet(raw_tx: str) -> SignedTransaction:
    logger.trace("sign_raw_transaction_with_wallet()")
    result = await bitcoin_rpc_async("signrawtransactionwithwallet", [raw_tx])

    try:
        signed = SignedTransaction.from_rpc(result)
    except (KeyError, TypeError, ValueError) as e:
        raise _unexpected_answer("signrawtransactionwithwallet", result, e) from e

    if not signed.complete:
        reasons = "; ".join(str(e.get("error", "unknown")) for e in signed.errors)
        logger.error(f"Wallet couldn't fully sign the transaction: {reasons}")
        raise JsonRpcNotWorkingError(f"incomplete signature: {reasons}")

    return signed


@logger.catch(exclude=(HTTPException,), reraise=True)
async def send_raw_transaction(signed_tx: str) -> str:
    logger.trace("send_raw_transaction()")
    result = await bitcoin_rpc_async("sendrawtransaction", [signed_tx])

    if not isinstance(result, str):
        raise _unexpected_answer("sendrawtransaction", result, TypeError("not a txid"))

    return result
