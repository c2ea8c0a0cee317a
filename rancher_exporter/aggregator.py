"""Reduces a flat service list to one state per environment."""
from __future__ import annotations

import logging
from typing import Dict, Iterable

from .walker import Service

logger = logging.getLogger(__name__)

ACTIVE_STATE = "active"


def aggregate(services: Iterable[Service]) -> Dict[str, str]:
    """Return ``{environment name: state}``.

    The first service seen sets the environment's state; after that only
    non-active states overwrite it, so the last non-active state wins and an
    environment is ``"active"`` only when every service is.
    """
    env_state: Dict[str, str] = {}
    unresolved = 0
    for service in services:
        name = service.environment
        if name is None:
            unresolved += 1
            continue
        if name not in env_state or service.state != ACTIVE_STATE:
            env_state[name] = service.state
    if unresolved:
        logger.debug("Skipped %s services with an unknown environment id", unresolved)
    return env_state


__all__ = ["ACTIVE_STATE", "aggregate"]
