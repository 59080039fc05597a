from fastapi import APIRouter, Depends, status
from starlette.responses import PlainTextResponse

from faucet.lightning.models import ChannelRequest
from faucet.lightning.service import ChannelFunder, get_channel_funder

router = APIRouter(tags=["Lightning"])


@router.post(
    "/channel/",
    name="channel",
    summary="Open a Lightning channel to a node",
    description="""
Opens a public channel of a fixed size to `node_id`, pushing a fixed amount to the
peer. Only one channel is funded at a time, concurrent requests wait for their turn.
On success the body is the channel id.
    """,
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "CLN refused to open the channel"},
        500: {"description": "CLN is not working"},
        503: {"description": "The Lightning node is not initialized yet"},
    },
)
async def open_channel_path(
    req: ChannelRequest, funder: ChannelFunder = Depends(get_channel_funder)
):
    channel_id = await funder.open_channel(req.node_id)
    return PlainTextResponse(channel_id)
