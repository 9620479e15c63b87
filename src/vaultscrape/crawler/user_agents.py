"""
User agent rotation.

The agent pool is an immutable tuple handed in at construction; nothing here
reads or mutates module-level state after import.
"""

from __future__ import annotations

import random
from typing import Callable, Sequence, Tuple

DEFAULT_USER_AGENTS: Tuple[str, ...] = (
    # Chrome
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    # Firefox
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0",
    # Safari
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    # Edge
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
)


class UserAgentRotator:
    """Picks a random agent from a fixed pool."""

    def __init__(
        self,
        agents: Sequence[str] = DEFAULT_USER_AGENTS,
        choice: Callable[[Sequence[str]], str] = random.choice,
    ) -> None:
        self.agents: Tuple[str, ...] = tuple(agents) or DEFAULT_USER_AGENTS
        self._choice = choice

    def get_random_user_agent(self) -> str:
        return self._choice(self.agents)

    def __len__(self) -> int:
        return len(self.agents)
