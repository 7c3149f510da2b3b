"""Incrementally built XPath path used while compiling one filter branch.

An :class:`XPathFragment` only grows: node steps, attribute predicates and
content predicates are appended, never removed. Each fragment is consumed
exactly once, either by :meth:`XPathFragment.finalize` (producing the final
string) or by being handed to exactly one recursive continuation. Using a
fragment after it has been finalized raises ``RuntimeError``.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .errors import UnrepresentableContent

# (module prefix, attribute name, attribute value)
AttributePredicate = Tuple[str, str, str]


def quote_literal(value: str) -> str:
    """Wrap ``value`` as an XPath 1.0 string literal.

    Single quotes are used unless the value contains one, in which case
    double quotes are used.

    Raises:
        UnrepresentableContent: If the value contains both quote characters.

    Example:
        >>> quote_literal("eth0")
        "'eth0'"
        >>> quote_literal("it's")
        '"it\\'s"'
    """
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    raise UnrepresentableContent(
        f"Value {value!r} contains both quote characters and cannot be "
        "written as an XPath 1.0 literal"
    )


def _qualified(name: str, prefix: Optional[str]) -> str:
    return f"{prefix}:{name}" if prefix else name


class XPathFragment:
    """Append-only buffer holding one in-progress path."""

    __slots__ = ("_parts", "_consumed")

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._consumed = False

    def _check(self) -> None:
        if self._consumed:
            raise RuntimeError("XPath fragment already consumed")

    def add_node(
        self,
        name: str,
        prefix: Optional[str] = None,
        attributes: Sequence[AttributePredicate] = (),
    ) -> "XPathFragment":
        """Append a ``/prefix:name`` step followed by its attribute predicates."""
        self._check()
        self._parts.append(f"/{_qualified(name, prefix)}")
        self.add_attributes(attributes)
        return self

    def add_attributes(self, attributes: Sequence[AttributePredicate]) -> "XPathFragment":
        """Append one ``[@module:name='value']`` predicate per attribute."""
        self._check()
        for module, name, value in attributes:
            self._parts.append(f"[@{module}:{name}={quote_literal(value)}]")
        return self

    def add_content(
        self,
        name: str,
        value: str,
        prefix: Optional[str] = None,
        attributes: Sequence[AttributePredicate] = (),
    ) -> "XPathFragment":
        """Append a ``[prefix:name='value']`` content-match predicate.

        Attribute predicates of the content node are placed on the node test,
        before the comparison.
        """
        self._check()
        literal = quote_literal(value)
        self._parts.append(f"[{_qualified(name, prefix)}")
        self.add_attributes(attributes)
        self._parts.append(f"={literal}]")
        return self

    def add_text_match(self, value: str) -> "XPathFragment":
        """Append a ``[text()='value']`` predicate on the current step."""
        self._check()
        self._parts.append(f"[text()={quote_literal(value)}]")
        return self

    def copy(self) -> "XPathFragment":
        """Return an independent fragment holding the same path so far."""
        self._check()
        clone = XPathFragment()
        clone._parts = list(self._parts)
        return clone

    def finalize(self) -> str:
        """Consume the fragment and return the finished expression."""
        self._check()
        self._consumed = True
        path = "".join(self._parts)
        self._parts = []
        return path

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __str__(self) -> str:
        return "".join(self._parts)

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else str(self)
        return f"XPathFragment({state!r})"
