"""Reusable facade combining registry, limits and monitoring.

``FilterService`` is what the HTTP application and the CLI hold on to: it
owns a module resolver, applies the configured :class:`FilterLimits` to
subtree content and records every build in the performance monitor.

Design notes:
    * The registry comes from the cached loader when a path is configured,
      otherwise the service starts with an empty registry (every subtree
      element is then skipped, xpath filters still work).
    * Building never mutates the registry, so one service instance can be
      shared by concurrent requests.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Union

from .cache import get_cached_registry
from .config import FilterLimits, ServiceConfig, check_limits
from .dispatcher import FilterCarrier, build_filters, carrier_from_xml
from .errors import FilterError
from .models import FilterSet
from .monitoring import get_monitor
from .registry import ModuleResolver, SchemaRegistry
from .xml_parser import parse_filter

logger = logging.getLogger(__name__)


class FilterService:
    """Build XPath filter sets for retrieval requests.

    Args:
        resolver: Module lookup; an empty :class:`SchemaRegistry` by default.
        limits: Size limits applied to subtree filters.
        source: Human-readable origin of the registry (for ``/health``).
    """

    def __init__(
        self,
        resolver: Optional[ModuleResolver] = None,
        limits: Optional[FilterLimits] = None,
        source: str = "empty",
    ) -> None:
        self.resolver = resolver if resolver is not None else SchemaRegistry()
        self.limits = limits or FilterLimits()
        self.source = source

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "FilterService":
        """Create a service from configuration, loading the registry if set.

        Raises:
            RegistryError: If the configured registry cannot be loaded.
        """
        if config.registry_path is None:
            logger.warning("No module registry configured; subtree filters will match nothing")
            return cls(limits=config.limits)
        registry = get_cached_registry(config.registry_path)
        return cls(registry, config.limits, source=str(config.registry_path))

    def build(self, carrier: FilterCarrier) -> FilterSet:
        """Resolve a filter carrier, enforcing limits on subtree content.

        Raises:
            FilterError: Any error of the filter taxonomy.
        """
        monitor = get_monitor()
        start = time.perf_counter()
        try:
            if carrier.filter_type == "subtree" and isinstance(carrier.payload, (str, bytes)):
                if carrier.payload.strip():
                    carrier = FilterCarrier(
                        attributes=carrier.attributes, payload=parse_filter(carrier.payload)
                    )
            if carrier.filter_type == "subtree" and isinstance(carrier.payload, (list, tuple)):
                check_limits(carrier.payload, self.limits)
            filters = build_filters(carrier, self.resolver)
        except FilterError as exc:
            monitor.record_filter_error(exc.error_tag)
            logger.warning(f"Filter rejected ({exc.error_tag}): {exc.message}")
            raise
        monitor.record_filter_build(
            carrier.filter_type, len(filters), time.perf_counter() - start
        )
        return filters

    def decode_carrier(self, text: Union[str, bytes]) -> FilterCarrier:
        """Decode a complete ``<filter>`` element given as XML text."""
        try:
            return carrier_from_xml(text)
        except FilterError as exc:
            get_monitor().record_filter_error(exc.error_tag)
            logger.warning(f"Filter rejected ({exc.error_tag}): {exc.message}")
            raise

    def build_from_xml(self, text: Union[str, bytes]) -> FilterSet:
        """Resolve a complete ``<filter>`` element given as XML text."""
        return self.build(self.decode_carrier(text))

    @property
    def module_count(self) -> int:
        modules = getattr(self.resolver, "modules", None)
        return len(modules) if modules is not None else 0

