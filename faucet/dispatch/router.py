from fastapi import APIRouter, Depends, status
from starlette.responses import PlainTextResponse

from faucet.dispatch.config import DispatchConfig, get_dispatch_config
from faucet.dispatch.models import SendRequest
from faucet.dispatch.service import send_to_address

router = APIRouter(tags=["Faucet"])

responses = {
    400: {"description": "Invalid address, amount too large or too little"},
    500: {"description": "Bitcoin Core is not working or the faucet ran out of money"},
}


@router.post(
    "/send/",
    name="send",
    summary="Send coins to an on-chain address",
    description="""
Sends `amount` sats to `address`. The address must belong to the network the faucet
runs on. On success the body is the transaction id followed by a newline.
    """,
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    responses=responses,
)
async def send_path(
    req: SendRequest, cfg: DispatchConfig = Depends(get_dispatch_config)
):
    txid = await send_to_address(req, cfg)
    return PlainTextResponse(f"{txid}\n")
