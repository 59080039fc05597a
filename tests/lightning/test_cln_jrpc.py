import asyncio
import json

import pytest

from faucet.errors import ChannelError, JsonRpcNotWorkingError
from faucet.lightning.cln_jrpc import LnNodeCLNjRPC
from tests.utils import NODE_ID_A

getinfo_result = {
    "id": NODE_ID_A,
    "alias": "signet-faucet",
    "network": "signet",
    "blockheight": 150000,
}


async def _start_fake_cln(path, answers: dict, received: list):
    async def handle(reader, writer):
        while True:
            line = await reader.readline()
            if not line:
                break

            if line.strip() == b"":
                continue

            req = json.loads(line)
            received.append(req)
            answer = answers[req["method"]]
            res = {"jsonrpc": "2.0", "id": req["id"], **answer}
            writer.write(json.dumps(res).encode("utf-8") + b"\n\n")
            await writer.drain()

        writer.close()

    return await asyncio.start_unix_server(handle, path=path)


@pytest.mark.asyncio
async def test_fund_channel_over_socket(tmp_path):
    path = str(tmp_path / "lightning-rpc")
    received = []
    answers = {
        "getinfo": {"result": getinfo_result},
        "fundchannel": {"result": {"txid": "aa" * 32, "channel_id": "cc" * 32}},
    }
    server = await _start_fake_cln(path, answers, received)

    node = LnNodeCLNjRPC(path)
    info = await node.initialize()
    channel_id = await node.fund_channel(NODE_ID_A, 1_000_000, 5_000_000)
    await node.close()
    server.close()

    assert info.alias == "signet-faucet"
    assert channel_id == "cc" * 32
    assert received[0]["method"] == "getinfo"
    assert received[0]["params"] == {}
    assert received[1]["method"] == "fundchannel"
    assert received[1]["params"] == {
        "id": NODE_ID_A,
        "amount": 1_000_000,
        "announce": True,
        "minconf": 0,
        "push_msat": 5_000_000,
    }


@pytest.mark.asyncio
async def test_fund_channel_error_is_passed_verbatim(tmp_path):
    path = str(tmp_path / "lightning-rpc")
    message = "Unknown peer 02111111"
    answers = {
        "getinfo": {"result": getinfo_result},
        "fundchannel": {"error": {"code": -1, "message": message}},
    }
    server = await _start_fake_cln(path, answers, [])

    node = LnNodeCLNjRPC(path)
    await node.initialize()

    with pytest.raises(ChannelError) as exc_info:
        await node.fund_channel(NODE_ID_A, 1_000_000, 0)

    await node.close()
    server.close()

    assert exc_info.value.message == message
    assert exc_info.value.detail == f"Some problem with cln {message}"


@pytest.mark.asyncio
async def test_missing_socket(tmp_path):
    node = LnNodeCLNjRPC(str(tmp_path / "missing"))

    with pytest.raises(JsonRpcNotWorkingError):
        await node.initialize()


@pytest.mark.asyncio
async def test_not_connected():
    node = LnNodeCLNjRPC("/nonexistent")

    with pytest.raises(JsonRpcNotWorkingError):
        await node.fund_channel(NODE_ID_A, 1_000_000, 0)
