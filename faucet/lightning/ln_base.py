from abc import abstractmethod

from faucet.lightning.models import NodeInfo


class ChannelFundingNodeBase:
    """A Lightning node able to open channels funded from its own wallet."""

    @abstractmethod
    def get_implementation_name(self) -> str:
        raise NotImplementedError()

    @abstractmethod
    async def initialize(self) -> NodeInfo:
        raise NotImplementedError()

    @abstractmethod
    async def fund_channel(self, node_id: str, amount_sat: int, push_msat: int) -> str:
        """Open a public channel to ``node_id`` and return its channel id."""
        raise NotImplementedError()
