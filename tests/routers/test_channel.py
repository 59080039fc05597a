from fastapi import status
from starlette.testclient import TestClient

import faucet.lightning.service as ln_service
from faucet.errors import ChannelError
from faucet.lightning.models import ChannelLeaseConfig
from faucet.lightning.service import ChannelFunder
from tests.utils import NODE_ID_A


class FakeNode:
    def __init__(self, error: str = None):
        self.error = error
        self.calls = []

    async def fund_channel(self, node_id, amount_sat, push_msat):
        self.calls.append((node_id, amount_sat, push_msat))
        if self.error:
            raise ChannelError(self.error)

        return "cc" * 32


def _install_funder(monkeypatch, node) -> ChannelFunder:
    lease = ChannelLeaseConfig(channel_lease_value=1_000_000, channel_lease_push=1_000)
    funder = ChannelFunder(node, lease)
    monkeypatch.setattr(ln_service, "_funder", funder)
    return funder


def test_open_channel(monkeypatch, ln_app):
    node = FakeNode()
    _install_funder(monkeypatch, node)

    response = TestClient(ln_app).post("/channel/", json={"node_id": NODE_ID_A})

    assert response.status_code == status.HTTP_200_OK
    assert response.text == "cc" * 32
    assert node.calls == [(NODE_ID_A, 1_000_000, 1_000_000)]


def test_open_channel_cln_error(monkeypatch, ln_app):
    _install_funder(monkeypatch, FakeNode(error="Peer not connected"))

    response = TestClient(ln_app).post("/channel/", json={"node_id": NODE_ID_A})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.text == "Some problem with cln Peer not connected"


def test_open_channel_invalid_node_id(monkeypatch, ln_app):
    node = FakeNode()
    _install_funder(monkeypatch, node)

    response = TestClient(ln_app).post("/channel/", json={"node_id": "nope"})

    assert response.status_code == 422
    assert node.calls == []


def test_open_channel_not_initialized(monkeypatch, ln_app):
    monkeypatch.setattr(ln_service, "_funder", None)

    response = TestClient(ln_app).post("/channel/", json={"node_id": NODE_ID_A})

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
