from fastapi.exceptions import HTTPException
from loguru import logger

import faucet.bitcoind.service as wallet
from faucet.dispatch.coin_select import FIXED_FEE, build_transaction
from faucet.dispatch.config import DispatchConfig
from faucet.dispatch.models import SendRequest
from faucet.dispatch.reservations import UtxoReservations, utxo_reservations
from faucet.dispatch.validator import validate_send_request


@logger.catch(exclude=(HTTPException,), reraise=True)
async def send_to_address(
    req: SendRequest,
    cfg: DispatchConfig,
    reservations: UtxoReservations = utxo_reservations,
) -> str:
    """Pay ``req.amount`` sats to ``req.address`` from the wallet.

    Every step is tried exactly once, the first failure ends the request.
    Returns the id of the broadcast transaction.
    """
    address, amount = validate_send_request(req.address, req.amount, cfg)
    logger.info(f"Sending {amount} sat to {address}")

    unspents = reservations.available(await wallet.list_unspent())
    tx = build_transaction(
        unspents, str(address), amount, str(cfg.change_address), FIXED_FEE
    )

    with reservations.hold(tx.inputs):
        raw_tx = await wallet.create_raw_transaction(tx)
        signed = await wallet.sign_raw_transaction_with_wallet(raw_tx)
        txid = await wallet.send_raw_transaction(signed.hex)

    logger.success(f"Sent {amount} sat to {address} in transaction {txid}")
    return txid
