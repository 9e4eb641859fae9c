"""Platform identity parsing."""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class PlatformIdentity:
    """A platform name, optionally pinned to a version."""

    name: str
    version: Optional[str] = None

    def with_default_version(self, default: Optional[str]) -> "PlatformIdentity":
        """Return an identity whose unset version is filled from a default."""
        if self.version is not None:
            return self
        return replace(self, version=default)

    def __str__(self) -> str:
        if self.version is None:
            return self.name
        return f"{self.name}@{self.version}"


def resolve_identity(token: str) -> PlatformIdentity:
    """
    Parse ``name`` or ``name@version`` into a PlatformIdentity.

    The token is split at the first ``@``; an explicit version overrides any
    registry default. A trailing ``@`` with nothing after it leaves the
    version unset.

    Example:
        >>> resolve_identity("android@4.0.0")
        PlatformIdentity(name='android', version='4.0.0')
        >>> resolve_identity("ios")
        PlatformIdentity(name='ios', version=None)
    """
    name, _, version = token.partition("@")
    return PlatformIdentity(name=name, version=version or None)
