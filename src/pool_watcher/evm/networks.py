"""RPC endpoint lookup per network."""

from __future__ import annotations

from typing import Mapping

from pool_watcher.errors import ConfigurationError, UnsupportedNetworkError

# network id (as used in the targets CSV) -> Alchemy subdomain
ALCHEMY_NETWORKS = {
    "celo": "celo-mainnet",
    "coinbase_base": "base-mainnet",
    "ethereum": "eth-mainnet",
    "fantom": "fantom-mainnet",
    "linea": "linea-mainnet",
    "mantle": "mantle-mainnet",
}

ALCHEMY_URL = "https://{subdomain}.g.alchemy.com/v2/{api_key}"


class NetworkRegistry:
    """Resolves a network id to its JSON-RPC URL.

    Explicit endpoint overrides win over the Alchemy templates, and may add
    networks Alchemy does not serve.
    """

    def __init__(
        self,
        alchemy_api_key: str = "",
        overrides: Mapping[str, str] | None = None,
    ) -> None:
        self._api_key = alchemy_api_key
        self._overrides = dict(overrides or {})

    def networks(self) -> list[str]:
        return sorted(set(ALCHEMY_NETWORKS) | set(self._overrides))

    def resolve(self, network: str) -> str:
        if url := self._overrides.get(network):
            return url

        subdomain = ALCHEMY_NETWORKS.get(network)
        if subdomain is None:
            raise UnsupportedNetworkError(network)
        if not self._api_key:
            raise ConfigurationError(
                f"No Alchemy API key configured for {network} (set ALCHEMY_API_KEY)"
            )
        return ALCHEMY_URL.format(subdomain=subdomain, api_key=self._api_key)

    def describe(self, network: str) -> str:
        """The endpoint URL with the API key masked, for display."""
        url = self.resolve(network)
        if self._api_key:
            url = url.replace(self._api_key, "***")
        return url
