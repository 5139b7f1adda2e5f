"""Event name to topic hash catalog."""

from __future__ import annotations

import re
from typing import Iterator, Mapping

from pool_watcher.errors import ConfigurationError, UnknownEventError

# keccak256 of the event signatures emitted by the factory contracts:
#   PairCreated(address,address,address,uint256)         Uniswap V2 style
#   PoolCreated(address,address,uint24,int24,address)    Uniswap V3 style
BUILTIN_TOPICS = {
    "PairCreated": "0x0d3648bd0f6ba80134a33ba9275ac585d9d315f0ad8355cddefde31afa28d0e9",
    "PoolCreated": "0x783cca1c0412dd0d695e784568c96da2e9c22ff989357a2e8b1d9b2b4e6b7118",
}

_TOPIC_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


class EventCatalog:
    """Read-only mapping from symbolic event names to topic hashes."""

    def __init__(self, extra: Mapping[str, str] | None = None) -> None:
        topics = dict(BUILTIN_TOPICS)
        for name, topic in (extra or {}).items():
            if not _TOPIC_RE.match(topic):
                raise ConfigurationError(
                    f"Event {name!r}: topic must be 32-byte 0x hex, got {topic!r}"
                )
            topics[name] = topic.lower()
        self._topics = topics

    def topic_for(self, event_name: str) -> str:
        try:
            return self._topics[event_name]
        except KeyError:
            raise UnknownEventError(event_name) from None

    def names(self) -> list[str]:
        return sorted(self._topics)

    def __contains__(self, event_name: object) -> bool:
        return event_name in self._topics

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
