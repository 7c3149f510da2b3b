"""Error taxonomy for filter resolution.

Every failure of a filter build is reported as exactly one subclass of
:class:`FilterError`. Each class carries the NETCONF ``error-tag`` that a
server would place in its ``<rpc-error>`` so the HTTP and CLI surfaces can
report it without a lookup table.

Unresolved namespaces are *not* errors: an element or attribute whose
namespace maps to no module simply contributes nothing to the result.
"""

from __future__ import annotations


class FilterError(Exception):
    """Base class for all filter resolution failures."""

    error_tag = "operation-failed"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "error_tag": self.error_tag,
            "detail": self.message,
        }


class MissingSelectAttribute(FilterError):
    """An ``xpath`` filter was given without a ``select`` attribute."""

    error_tag = "missing-attribute"


class UnparsableFilterContent(FilterError):
    """The subtree payload could not be decoded as an element tree."""

    error_tag = "malformed-message"


class UnrepresentableContent(FilterError):
    """A literal contains both quote characters.

    XPath 1.0 string literals cannot escape quotes, so such values are
    rejected instead of producing an ambiguous predicate.
    """

    error_tag = "invalid-value"


class AllocationFailure(FilterError):
    """Memory ran out while building fragments; the whole call is aborted."""

    error_tag = "resource-denied"


class FilterTooComplex(FilterError):
    """The filter exceeds the configured depth or node count limits."""

    error_tag = "too-big"


class RegistryError(FilterError):
    """A schema registry document is missing or malformed."""

    error_tag = "operation-failed"
