import pytest
from starlette.testclient import TestClient

from faucet.dispatch.config import get_dispatch_config
from faucet.dispatch.reservations import utxo_reservations
from faucet.main import build_app
from tests.utils import make_config


@pytest.fixture
def dispatch_config():
    return make_config()


@pytest.fixture
def test_client(dispatch_config):
    app = build_app(lightning_enabled=False)
    app.dependency_overrides[get_dispatch_config] = lambda: dispatch_config
    client = TestClient(app)
    yield client


@pytest.fixture
def ln_app(dispatch_config):
    app = build_app(lightning_enabled=True)
    app.dependency_overrides[get_dispatch_config] = lambda: dispatch_config
    yield app


@pytest.fixture(autouse=True)
def clear_reservations():
    yield
    utxo_reservations._reserved.clear()
