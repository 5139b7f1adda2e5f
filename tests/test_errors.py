"""Exception hierarchy: what callers can catch at each layer."""

from __future__ import annotations

import pytest

from pool_watcher.errors import (
    ChainError,
    ConfigurationError,
    PoolWatcherError,
    ProtocolError,
    RpcError,
    SinkError,
    TargetLoadError,
    TransportError,
    UnknownEventError,
    UnsupportedNetworkError,
)


@pytest.mark.parametrize(
    "exc",
    [
        TransportError("down"),
        ProtocolError("bad shape"),
        RpcError("eth_getLogs", -32005, "limit exceeded"),
    ],
)
def test_chain_errors_share_a_base(exc):
    assert isinstance(exc, ChainError)
    assert isinstance(exc, PoolWatcherError)


def test_rpc_error_keeps_method_and_code():
    exc = RpcError("eth_getLogs", -32005, "limit exceeded")
    assert isinstance(exc, ProtocolError)
    assert exc.method == "eth_getLogs"
    assert exc.code == -32005
    assert str(exc) == "eth_getLogs failed: [-32005] limit exceeded"


def test_unknown_event_message():
    exc = UnknownEventError("Swap")
    assert isinstance(exc, ConfigurationError)
    assert exc.event_name == "Swap"
    assert str(exc) == "Unsupported event: Swap"


def test_unsupported_network_message():
    exc = UnsupportedNetworkError("solana")
    assert isinstance(exc, ConfigurationError)
    assert exc.network == "solana"
    assert str(exc) == "Unsupported chain: solana"


def test_sink_and_loader_errors_are_not_chain_errors():
    for exc in (SinkError("x"), TargetLoadError("y")):
        assert isinstance(exc, PoolWatcherError)
        assert not isinstance(exc, ChainError)
