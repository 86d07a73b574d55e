"""Exception hierarchy for schema catalog operations.

Lookups that simply find nothing return ``None``; the classes below cover the
cases where the schema input itself is unusable:

* :class:`InvalidSchemaError` - a document cannot be registered (unparseable,
  not an ``xs:schema`` root, or no target namespace to file it under).
* :class:`MalformedChainError` - a restriction/extension walk revisited a type
  or exceeded :attr:`ResolverConfig.max_chain_depth`.
* :class:`UnsupportedDerivationKind` - a simpleType chain reached a ``list`` or
  ``union`` derivation, which has no single restriction base to follow.
"""

from __future__ import annotations

from typing import List, Optional


class CatalogError(Exception):
    """Base class for all catalog errors."""


class InvalidSchemaError(CatalogError):
    """Raised when a schema document cannot be registered."""


class MalformedChainError(CatalogError):
    """Raised when a derivation chain is cyclic or pathologically deep.

    Attributes:
        chain: Names of the type definitions visited before the walk stopped,
            most-derived first.
    """

    def __init__(self, message: str, chain: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.chain = list(chain or [])


class UnsupportedDerivationKind(CatalogError):
    """Raised when a simpleType chain hits a ``list`` or ``union`` derivation."""

    def __init__(self, type_name: Optional[str], derivation: str) -> None:
        super().__init__(
            f"simpleType '{type_name or '<anonymous>'}' is derived by {derivation}, "
            "which has no restriction base"
        )
        self.type_name = type_name
        self.derivation = derivation
