"""pool_watcher - polls EVM JSON-RPC endpoints for pool/pair creation logs."""

__version__ = "0.1.0"
