import sys
from contextlib import asynccontextmanager
from pathlib import Path

from decouple import UndefinedValueError
from decouple import config as dconfig
from fastapi import FastAPI
from loguru import logger
from starlette import status
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import FileResponse

from faucet.bitcoind.service import check_bitcoin_network
from faucet.dispatch.config import get_dispatch_config
from faucet.dispatch.router import router as dispatch_router
from faucet.errors import DispatchError, dispatch_error_handler
from faucet.lightning.router import router as ln_router
from faucet.lightning.service import (
    initialize_channel_funder,
    shutdown_channel_funder,
)
from faucet.logging import configure_logger

# start server with "uvicorn faucet.main:app"

configure_logger()

_INDEX_PAGE = Path(__file__).parent / "static" / "index.html"

node_type = dconfig("ln_node", default="none").lower()
if node_type == "":
    node_type = "none"


async def _initialize_lightning():
    if node_type == "none":
        logger.info("Lightning node is disabled, skipping initialization")
        return

    try:
        await initialize_channel_funder(node_type)
    except (DispatchError, NotImplementedError, UndefinedValueError) as e:
        logger.error(f"Unable to initialize the Lightning node: {e}")
        sys.exit(1)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # setup
    cfg = get_dispatch_config()
    logger.info(
        f"Faucet running on {cfg.network.value}, change goes to {cfg.change_address}"
    )
    await check_bitcoin_network(cfg.network)
    await _initialize_lightning()

    yield

    # cleanup
    await shutdown_channel_funder()


def build_app(lightning_enabled: bool) -> FastAPI:
    app = FastAPI(lifespan=lifespan)
    app.include_router(dispatch_router)
    if lightning_enabled:
        app.include_router(ln_router)

    app.add_exception_handler(DispatchError, dispatch_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", status_code=status.HTTP_200_OK, include_in_schema=False)
    def index():
        return FileResponse(_INDEX_PAGE, media_type="text/html")

    return app


app = build_app(node_type != "none")
