"""Schema module registry used to qualify filter elements.

The compiler never talks to a global schema context; it depends on the
abstract :class:`ModuleResolver` capability so callers (and tests) can inject
any fixed module set. :class:`SchemaRegistry` is the bundled implementation,
backed by a list of :class:`SchemaModule` records that can be loaded from a
JSON document shaped like an ``ietf-yang-library`` module listing::

    {
        "modules": [
            {
                "name": "ietf-interfaces",
                "namespace": "urn:ietf:params:xml:ns:yang:ietf-interfaces",
                "revision": "2018-02-20",
                "top-level-nodes": ["interfaces", "interfaces-state"]
            }
        ]
    }

A registry must not be mutated while a compile is running against it.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .errors import RegistryError
from .models import ModuleCandidate

logger = logging.getLogger(__name__)


class ModuleResolver(ABC):
    """Capability mapping namespaces and top-level names to schema modules."""

    @abstractmethod
    def resolve_by_namespace(self, uri: str) -> Optional[str]:
        """Return the name of the module owning ``uri`` or ``None``."""

    @abstractmethod
    def resolve_by_name(self, local_name: str) -> List[ModuleCandidate]:
        """Return every module defining a top-level node ``local_name``."""


@dataclass
class SchemaModule:
    """Minimal description of a YANG module.

    Attributes:
        name: Module name, used as the XPath prefix.
        namespace: Module namespace URI.
        revision: Optional revision date string.
        top_level_nodes: Names of the module's top-level data nodes.
    """

    name: str
    namespace: str
    revision: Optional[str] = None
    top_level_nodes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "revision": self.revision,
            "top-level-nodes": list(self.top_level_nodes),
        }


def _top_level_nodes(entry: dict) -> List[str]:
    nodes = entry.get("top-level-nodes", [])
    if not isinstance(nodes, list) or not all(isinstance(node, str) for node in nodes):
        raise RegistryError(
            f"Module {entry.get('name')!r}: 'top-level-nodes' must be a list of strings"
        )
    return list(nodes)


class SchemaRegistry(ModuleResolver):
    """In-memory module set implementing :class:`ModuleResolver`.

    Name lookups scan all modules in registration order, which keeps the
    candidate order (and therefore the output order) deterministic.

    Example:
        >>> registry = SchemaRegistry([SchemaModule("m", "urn:m", top_level_nodes=["top"])])
        >>> registry.resolve_by_namespace("urn:m")
        'm'
        >>> registry.resolve_by_name("top")
        [ModuleCandidate(name='m', namespace='urn:m')]
    """

    def __init__(self, modules: Optional[Iterable[SchemaModule]] = None) -> None:
        self._modules: List[SchemaModule] = []
        self._by_namespace: Dict[str, SchemaModule] = {}
        for module in modules or []:
            self.add(module)

    def add(self, module: SchemaModule) -> None:
        """Register ``module``; a second module for a namespace replaces the first."""
        existing = self._by_namespace.get(module.namespace)
        if existing is not None:
            logger.warning(
                f"Module {module.name} replaces {existing.name} for namespace {module.namespace}"
            )
            self._modules.remove(existing)
        self._modules.append(module)
        self._by_namespace[module.namespace] = module

    @property
    def modules(self) -> List[SchemaModule]:
        return list(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def resolve_by_namespace(self, uri: str) -> Optional[str]:
        module = self._by_namespace.get(uri)
        return module.name if module is not None else None

    def resolve_by_name(self, local_name: str) -> List[ModuleCandidate]:
        return [
            ModuleCandidate(module.name, module.namespace)
            for module in self._modules
            if local_name in module.top_level_nodes
        ]

    @classmethod
    def from_dict(cls, data: dict) -> "SchemaRegistry":
        """Build a registry from the JSON document structure described above.

        Raises:
            RegistryError: If the document lacks a ``modules`` list or a module
                entry lacks ``name``/``namespace``.
        """
        if not isinstance(data, dict) or not isinstance(data.get("modules"), list):
            raise RegistryError("Registry document must contain a 'modules' list")
        modules = []
        for entry in data["modules"]:
            try:
                modules.append(
                    SchemaModule(
                        name=entry["name"],
                        namespace=entry["namespace"],
                        revision=entry.get("revision"),
                        top_level_nodes=_top_level_nodes(entry),
                    )
                )
            except (KeyError, TypeError, AttributeError) as exc:
                raise RegistryError(f"Invalid module entry {entry!r}: {exc}") from exc
        return cls(modules)

    def to_dict(self) -> dict:
        return {"modules": [module.to_dict() for module in self._modules]}


def load_registry(path: Union[str, Path]) -> SchemaRegistry:
    """Load a :class:`SchemaRegistry` from a JSON file.

    Args:
        path: Location of the registry document.

    Returns:
        The populated registry.

    Raises:
        RegistryError: If the file is missing, not JSON, or structurally invalid.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise RegistryError(f"Registry file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise RegistryError(f"Registry file {path} is not valid JSON: {exc}") from exc
    registry = SchemaRegistry.from_dict(data)
    logger.info(f"Loaded {len(registry)} schema modules from {path}")
    return registry
