"""
Parsed middleware - value object for middleware descriptors.

A descriptor is ``name`` or ``name:param1,param2``. Malformed descriptors
(empty name, trailing colon) are accepted as-is; they simply never match an
alias, a group or a priority entry.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParsedMiddleware:
    """A middleware name plus its ordered parameters."""

    name: str
    parameters: tuple[str, ...] = ()

    @classmethod
    def parse(cls, descriptor: str) -> ParsedMiddleware:
        name, sep, rest = descriptor.partition(":")
        if not sep:
            return cls(name)
        return cls(name, tuple(rest.split(",")))

    @property
    def signature(self) -> str:
        """Deduplication key: the normalized descriptor."""
        if not self.parameters:
            return self.name
        return f"{self.name}:{','.join(self.parameters)}"

    def __str__(self) -> str:
        return self.signature
