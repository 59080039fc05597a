import asyncio

from decouple import config
from fastapi import HTTPException, status
from loguru import logger

from faucet.dispatch.config import amount_from_env
from faucet.lightning.ln_base import ChannelFundingNodeBase
from faucet.lightning.models import ChannelLeaseConfig, NodeInfo

DEFAULT_CHANNEL_VALUE = 1_000_000
DEFAULT_PUSH_VALUE = 1_000_000


class ChannelFunder:
    """Opens fixed size channels, one at a time.

    Owns the only handle to the Lightning node and a lock around it: a
    second channel request waits until the running funding call returns.
    Waiting suspends the calling task only, the event loop keeps serving
    other requests.
    """

    def __init__(self, node: ChannelFundingNodeBase, lease: ChannelLeaseConfig):
        self._node = node
        self._lock = asyncio.Lock()
        self.lease = lease

    @property
    def node(self) -> ChannelFundingNodeBase:
        return self._node

    async def open_channel(self, node_id: str) -> str:
        if self._lock.locked():
            logger.debug(f"Channel funding in progress, {node_id} has to wait")

        async with self._lock:
            logger.info(
                f"Opening a {self.lease.channel_lease_value} sat channel to {node_id}"
            )
            return await self._node.fund_channel(
                node_id,
                self.lease.channel_lease_value,
                self.lease.channel_lease_push * 1000,
            )


def load_channel_lease_config() -> ChannelLeaseConfig:
    return ChannelLeaseConfig(
        channel_lease_value=amount_from_env("channel_value", DEFAULT_CHANNEL_VALUE),
        channel_lease_push=amount_from_env("push_value", DEFAULT_PUSH_VALUE),
    )


def _node_from_config(node_type: str) -> ChannelFundingNodeBase:
    if node_type == "cln_jrpc":
        from faucet.lightning.cln_jrpc import LnNodeCLNjRPC

        return LnNodeCLNjRPC(config("cln_jrpc_path"))

    raise NotImplementedError(f"Lightning node type {node_type} is not supported")


_funder: ChannelFunder | None = None


async def initialize_channel_funder(node_type: str) -> NodeInfo:
    global _funder
    node = _node_from_config(node_type)
    info = await node.initialize()
    _funder = ChannelFunder(node, load_channel_lease_config())

    return info


def get_channel_funder() -> ChannelFunder:
    if _funder is None:
        raise HTTPException(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Lightning node is not initialized yet.",
        )

    return _funder


async def shutdown_channel_funder():
    global _funder
    if _funder is not None and hasattr(_funder.node, "close"):
        await _funder.node.close()

    _funder = None
