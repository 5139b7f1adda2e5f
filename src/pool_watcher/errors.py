"""Exception hierarchy shared by all pool_watcher components."""

from __future__ import annotations


class PoolWatcherError(Exception):
    """Base class for every error raised by pool_watcher."""


# ── Chain ──────────────────────────────────────────────


class ChainError(PoolWatcherError):
    """Failure talking to a network's JSON-RPC endpoint."""


class TransportError(ChainError):
    """Network or HTTP level failure (timeout, refused connection, 5xx)."""


class ProtocolError(ChainError):
    """The endpoint answered, but not with the shape we expected."""


class RpcError(ProtocolError):
    """The endpoint returned a JSON-RPC error object."""

    def __init__(self, method: str, code: int | None, message: str) -> None:
        super().__init__(f"{method} failed: [{code}] {message}")
        self.method = method
        self.code = code


# ── Configuration ──────────────────────────────────────


class ConfigurationError(PoolWatcherError):
    """Invalid or incomplete configuration."""


class UnknownEventError(ConfigurationError):
    """An event name with no known topic hash."""

    def __init__(self, event_name: str) -> None:
        super().__init__(f"Unsupported event: {event_name}")
        self.event_name = event_name


class UnsupportedNetworkError(ConfigurationError):
    """A network identifier with no RPC endpoint."""

    def __init__(self, network: str) -> None:
        super().__init__(f"Unsupported chain: {network}")
        self.network = network


# ── Persistence / input ────────────────────────────────


class SinkError(PoolWatcherError):
    """A single record could not be written to the sink."""


class TargetLoadError(PoolWatcherError):
    """The target list could not be loaded."""
