import asyncio
import json
import os
from typing import Dict, List, Union

from fastapi.exceptions import HTTPException
from loguru import logger

from faucet.errors import ChannelError, JsonRpcNotWorkingError
from faucet.lightning.ln_base import ChannelFundingNodeBase
from faucet.lightning.models import NodeInfo

_SOCKET_BUFFER_SIZE_LIMIT = 1024 * 1024 * 10  # 10 MB


class LnNodeCLNjRPC(ChannelFundingNodeBase):
    """Talks to Core Lightning over its JSON-RPC unix socket.

    Requests are written to the socket and matched to their answers by id
    in a background read loop. The connection isn't meant to be shared by
    concurrent callers, callers serialize access themselves.
    """

    def __init__(self, socket_path: str) -> None:
        self._socket_path = socket_path
        self._current_id = 0
        self._futures: dict[int, asyncio.Future] = {}
        self._reader: asyncio.StreamReader = None
        self._writer: asyncio.StreamWriter = None
        self._loop: asyncio.AbstractEventLoop = None
        self._read_task: asyncio.Task = None

    def get_implementation_name(self) -> str:
        return "CLN_JRPC"

    @logger.catch(exclude=(HTTPException,), reraise=True)
    async def initialize(self) -> NodeInfo:
        logger.info("Initializing CLN JSON-RPC implementation.")

        if not os.path.exists(self._socket_path):
            logger.error(f"Socket file {self._socket_path} is not readable.")
            raise JsonRpcNotWorkingError(f"missing socket {self._socket_path}")

        logger.info(
            f"Establishing a connection to the CLN socket at {self._socket_path}"
        )

        self._loop = asyncio.get_running_loop()

        try:
            self._reader, self._writer = await asyncio.open_unix_connection(
                path=self._socket_path,
                limit=_SOCKET_BUFFER_SIZE_LIMIT,
            )
        except OSError as e:
            logger.error(f"Unable to connect to CLN: {e}")
            raise JsonRpcNotWorkingError(str(e)) from e

        self._read_task = asyncio.create_task(self._read_loop())

        info = await self.get_node_info()
        logger.success(
            f"Connected to CLN node with alias {info.alias} and pubkey {info.identity_pubkey[:10]}...{info.identity_pubkey[-10:]}"
        )

        return info

    async def close(self):
        if self._writer is not None:
            self._writer.close()
        if self._read_task is not None:
            self._read_task.cancel()

    @logger.catch(exclude=(HTTPException,), reraise=True)
    async def get_node_info(self) -> NodeInfo:
        res = await self._send_request("getinfo")
        if "error" in res:
            self._raise_rpc_not_working("getting info", res)

        return NodeInfo.from_cln_jrpc(res["result"])

    @logger.catch(exclude=(HTTPException,), reraise=True)
    async def fund_channel(self, node_id: str, amount_sat: int, push_msat: int) -> str:
        logger.trace(
            f"fund_channel(node_id={node_id}, amount_sat={amount_sat}, push_msat={push_msat})"
        )

        # fundchannel id amount [feerate] [announce] [minconf] [utxos] [push_msat] [close_to] [request_amt] [compact_lease] [reserve]
        params = {
            "id": node_id,
            "amount": amount_sat,
            "announce": True,
            "minconf": 0,
            "push_msat": push_msat,
        }
        res = await self._send_request("fundchannel", params)

        if "error" in res:
            message = res["error"].get("message", str(res["error"]))
            logger.error(f"CLN refused to open a channel to {node_id}: {message}")
            raise ChannelError(message)

        res = res["result"]
        logger.info(f"Opened channel {res['channel_id']} with funding tx {res['txid']}")

        return res["channel_id"]

    async def _read_loop(self):
        logger.trace("_read_loop()")

        while not self._writer.is_closing():
            try:
                data = await self._reader.readline()
            except (ValueError, asyncio.exceptions.LimitOverrunError) as e:
                logger.exception(e)
                continue

            if data == b"":
                logger.error("CLN closed the JSON-RPC connection")
                self._fail_pending(ConnectionResetError("CLN closed the connection"))
                break

            data = data.decode("utf-8")
            if data.strip() == "":
                continue

            try:
                self._handle_response(data)
            except (ValueError, KeyError) as e:
                logger.exception(e)

    def _handle_response(self, data):
        logger.trace(f"_handle_response(data={data})")

        response = json.loads(data)
        id = response["id"]

        future = self._futures.pop(id, None)
        if future is None:
            logger.warning(f"Got a response for unknown request id {id}")
            return

        if not future.done():
            future.set_result(response)

    def _fail_pending(self, e: Exception):
        for future in self._futures.values():
            if not future.done():
                future.set_exception(e)

        self._futures.clear()

    async def _send_request(self, method: str, params: Union[Dict, List, None] = None):
        if self._writer is None or self._writer.is_closing():
            logger.error(f"Not connected to CLN, unable to call {method}")
            raise JsonRpcNotWorkingError("not connected to CLN")

        self._current_id += 1
        id = self._current_id
        data = self._build_request_data(method, id, params)
        logger.trace(f"Sending request: {data} with id {id}")

        future = self._loop.create_future()
        self._futures[id] = future

        try:
            self._writer.write(data.encode("utf-8"))
            await self._writer.drain()
            return await future
        except (ConnectionError, OSError) as e:
            self._futures.pop(id, None)
            logger.error(f"CLN JSON-RPC call {method} failed: {e!r}")
            raise JsonRpcNotWorkingError(repr(e)) from e

    def _build_request_data(self, method: str, id: int, params) -> str:
        return json.dumps(
            {
                "jsonrpc": "2.0",
                "id": id,
                "method": method,
                "params": params if params is not None else {},
            }
        ) + "\n"

    def _raise_rpc_not_working(self, action, res):
        err = res["error"]
        logger.error(f"Error while {action}: {err}")

        raise JsonRpcNotWorkingError(f"Error while {action}: {err}")
