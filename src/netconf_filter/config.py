"""Service configuration and request size limits.

The compiler itself never bounds its work; runtime grows with the number of
filter nodes times module candidates times branching. Callers exposed to
untrusted input check :class:`FilterLimits` first with :func:`check_limits`.

Configuration is read from the environment:

    NETCONF_FILTER_REGISTRY   Path of the JSON module registry.
    NETCONF_FILTER_LIMITS     Comma separated ``key=value`` overrides, e.g.
                              ``max_depth=16,max_nodes=2000``.
    NETCONF_FILTER_LOG_LEVEL  Logging level name (default ``INFO``).
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from .errors import FilterTooComplex
from .models import FilterNode

logger = logging.getLogger(__name__)


def max_depth_ceiling() -> int:
    """Deepest filter the recursive compiler can walk in this interpreter."""
    return sys.getrecursionlimit() // 2


@dataclass
class FilterLimits:
    """Upper bounds applied to incoming subtree filters.

    Args:
        max_depth: Maximum element nesting of any top-level filter element.
        max_nodes: Maximum total number of filter elements.
    """

    max_depth: int = 32
    max_nodes: int = 10000


@dataclass
class ServiceConfig:
    """Runtime configuration of the filter service."""

    registry_path: Optional[Path] = None
    limits: FilterLimits = field(default_factory=FilterLimits)
    log_level: str = "INFO"


def _parse_limits(text: str) -> FilterLimits:
    limits = FilterLimits()
    for pair in text.split(","):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        key = key.strip()
        if not hasattr(limits, key):
            logger.warning(f"Ignoring unknown filter limit {key!r}")
            continue
        try:
            setattr(limits, key, int(value.strip()))
        except ValueError:
            logger.warning(f"Ignoring non-integer value for filter limit {key!r}: {value!r}")
    ceiling = max_depth_ceiling()
    if limits.max_depth > ceiling:
        logger.warning(
            f"Capping max_depth {limits.max_depth} to {ceiling} (interpreter recursion limit)"
        )
        limits.max_depth = ceiling
    return limits


def load_config_from_env() -> ServiceConfig:
    """Build a :class:`ServiceConfig` from environment variables."""
    registry = os.getenv("NETCONF_FILTER_REGISTRY")
    return ServiceConfig(
        registry_path=Path(registry) if registry else None,
        limits=_parse_limits(os.getenv("NETCONF_FILTER_LIMITS", "")),
        log_level=os.getenv("NETCONF_FILTER_LOG_LEVEL", "INFO").upper(),
    )


def check_limits(nodes: Iterable[FilterNode], limits: FilterLimits) -> None:
    """Reject filters deeper or larger than ``limits`` allow.

    Raises:
        FilterTooComplex: If a limit is exceeded.
    """
    max_depth = min(limits.max_depth, max_depth_ceiling())
    total = 0
    for node in nodes:
        depth = node.depth()
        if depth > max_depth:
            raise FilterTooComplex(
                f"Filter element <{node.name}> is nested {depth} levels deep "
                f"(limit {max_depth})"
            )
        total += sum(1 for _ in node.iter_nodes())
        if total > limits.max_nodes:
            raise FilterTooComplex(
                f"Filter has more than {limits.max_nodes} elements"
            )
