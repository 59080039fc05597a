import pytest
from pydantic import ValidationError

from faucet.lightning.models import ChannelRequest, NodeInfo
from tests.utils import NODE_ID_A


def test_channel_request():
    assert ChannelRequest(node_id=NODE_ID_A).node_id == NODE_ID_A

    node_id = "03" + "ab" * 32
    assert ChannelRequest(node_id=f" {node_id.upper()} ").node_id == node_id


@pytest.mark.parametrize(
    "node_id",
    [
        "",
        "02" + "11" * 31,
        "04" + "11" * 32,
        "02" + "zz" * 32,
    ],
)
def test_invalid_node_id(node_id):
    with pytest.raises(ValidationError):
        ChannelRequest(node_id=node_id)


def test_node_info_from_cln():
    info = NodeInfo.from_cln_jrpc(
        {"id": NODE_ID_A, "alias": "faucet", "network": "signet", "blockheight": 42}
    )

    assert info.identity_pubkey == NODE_ID_A
    assert info.network == "signet"
    assert info.block_height == 42
