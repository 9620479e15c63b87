"""
Fetch-side building blocks: robots.txt gate, request throttle, retry
controller and user agent rotation.
"""

from .politeness import PolitenessGate
from .rate_limiter import RequestThrottle
from .retry import compute_backoff_delay, with_retry
from .robots_parser import RobotsGate, is_path_allowed
from .user_agents import DEFAULT_USER_AGENTS, UserAgentRotator

__all__ = [
    "DEFAULT_USER_AGENTS",
    "PolitenessGate",
    "RequestThrottle",
    "RobotsGate",
    "UserAgentRotator",
    "compute_backoff_delay",
    "is_path_allowed",
    "with_retry",
]
