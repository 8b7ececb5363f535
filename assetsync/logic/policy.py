"""Rules for which stored values a re-scrape may overwrite."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Sequence

PRESERVE_HOSTS = "cdn.steamstatic.com"


def preserve_hosts() -> tuple[str, ...]:
    raw = os.environ.get("ASSETSYNC_PRESERVE_HOSTS", PRESERVE_HOSTS)
    return tuple(host.strip() for host in raw.split(",") if host.strip())


@dataclass(frozen=True, slots=True)
class PreservePolicy:
    """Treat values pointing at a canonical host as authoritative."""

    substrings: Sequence[str] = field(default_factory=preserve_hosts)

    def __call__(self, value: str | None) -> bool:
        if not value:
            return False
        return any(marker in value for marker in self.substrings)


NEVER_PRESERVE = PreservePolicy(substrings=())
