import asyncio
import itertools
import json
from decimal import Decimal
from functools import partial
from pathlib import Path

import aiohttp
from decouple import config
from loguru import logger
from starlette import status

from faucet.errors import JsonRpcNotWorkingError


class _BitcoinConfig:
    def __init__(self) -> None:
        self.rpc_url = config("bitcoind_url", default="http://localhost:38332")
        self.cookie_file = config("bitcoind_cookie_file", default="")
        self.timeout = config("bitcoind_rpc_timeout", default=30, cast=float)
        self._username = config("bitcoind_user", default="")
        self._pw = config("bitcoind_pw", default="")

    def credentials(self) -> tuple[str, str]:
        # The cookie is rewritten each time bitcoind restarts, read it per call
        if self.cookie_file:
            content = Path(self.cookie_file).read_text().strip()
            user, _, pw = content.partition(":")
            return user, pw

        return self._username, self._pw


_bitcoin_config: _BitcoinConfig | None = None


def get_bitcoin_config() -> _BitcoinConfig:
    global _bitcoin_config
    if _bitcoin_config is None:
        _bitcoin_config = _BitcoinConfig()

    return _bitcoin_config


# https://github.com/python/cpython/blob/3.10/Lib/asyncio/tasks.py#L31
_generate_rpc_id = itertools.count(1).__next__

_decimal_loads = partial(json.loads, parse_float=Decimal)


def _build_request_data(method: str, params: list | None = None) -> str:
    return json.dumps(
        {
            "jsonrpc": "2.0",
            "id": _generate_rpc_id(),
            "method": method,
            "params": params or [],
        }
    )


async def bitcoin_rpc_async(method: str, params: list | None = None):
    """Make an RPC request to the Bitcoin Core wallet.

    Returns the ``result`` member of the answer. Any failure on the way,
    be it the connection, a timeout, an unexpected HTTP status or an
    ``error`` object in the answer, is logged and raised as
    :class:`JsonRpcNotWorkingError`.
    """
    cfg = get_bitcoin_config()

    try:
        user, pw = cfg.credentials()
    except OSError as e:
        logger.error(f"Unable to read the Bitcoin Core cookie file: {e}")
        raise JsonRpcNotWorkingError(str(e)) from e

    auth = aiohttp.BasicAuth(user, pw)
    headers = {"Content-type": "text/json"}
    data = _build_request_data(method, params)
    timeout = aiohttp.ClientTimeout(total=cfg.timeout)

    try:
        async with aiohttp.ClientSession(
            auth=auth, headers=headers, timeout=timeout
        ) as session:
            async with session.post(cfg.rpc_url, data=data) as resp:
                if resp.status == status.HTTP_401_UNAUTHORIZED:
                    msg = "Access denied to Bitcoin Core RPC. Check if the credentials are correct"
                    logger.error(msg)
                    raise JsonRpcNotWorkingError(msg)

                if resp.status == status.HTTP_403_FORBIDDEN:
                    msg = "Access denied to Bitcoin Core RPC. If this is a remote node, check rpcallowip"
                    logger.error(msg)
                    raise JsonRpcNotWorkingError(msg)

                # Bitcoin Core answers RPC errors with 500 and a JSON body
                body = await resp.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error(f"Bitcoin Core RPC call {method} failed: {e!r}")
        raise JsonRpcNotWorkingError(repr(e)) from e

    try:
        answer = _decimal_loads(body)
    except ValueError as e:
        logger.error(f"Unknown answer from Bitcoin Core for {method}: {body[:200]}")
        raise JsonRpcNotWorkingError(body[:200]) from e

    error = answer.get("error") if isinstance(answer, dict) else None
    if error:
        m = error.get("message", str(error)) if isinstance(error, dict) else str(error)
        logger.error(f"Bitcoin Core returned an error for {method}: {m}")
        raise JsonRpcNotWorkingError(m)

    if not isinstance(answer, dict) or "result" not in answer:
        logger.error(f"Unknown answer from Bitcoin Core for {method}: {body[:200]}")
        raise JsonRpcNotWorkingError(body[:200])

    return answer["result"]
