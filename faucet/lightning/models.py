from fastapi import Query
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChannelRequest(BaseModel):
    node_id: str = Field(
        ...,
        description="The hex encoded, compressed public key of the node to open a channel to",
    )

    @field_validator("node_id")
    @classmethod
    def check_public_key(cls, node_id: str) -> str:
        node_id = node_id.strip().lower()

        if len(node_id) != 66:
            raise ValueError("node_id must be a 33 byte compressed public key in hex")

        try:
            bytes.fromhex(node_id)
        except ValueError as e:
            raise ValueError("node_id must be hex encoded") from e

        if node_id[:2] not in ("02", "03"):
            raise ValueError("node_id must be a compressed public key")

        return node_id


class ChannelLeaseConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    channel_lease_value: int = Field(
        ..., ge=0, description="Size of every channel the faucet opens in sats"
    )
    channel_lease_push: int = Field(
        ..., ge=0, description="Amount pushed to the peer on channel open in sats"
    )


class NodeInfo(BaseModel):
    identity_pubkey: str = Query(..., description="The identity pubkey of the node")
    alias: str = Query("", description="The alias of the node")
    network: str = Query("", description="The network the node is running on")
    block_height: int = Query(0, description="The node's current view of the chain height")

    @classmethod
    def from_cln_jrpc(cls, r):
        return cls(
            identity_pubkey=r["id"],
            alias=r.get("alias", ""),
            network=r.get("network", ""),
            block_height=r.get("blockheight", 0),
        )
