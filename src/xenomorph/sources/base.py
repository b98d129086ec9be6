"""
SourcePackage Protocol - Interface shared by all source adapters.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from xenomorph.core.config import Config
from xenomorph.models.package import Format, PackageInfo


@runtime_checkable
class SourcePackage(Protocol):
    """
    Protocol that all source adapters implement.

    Constructing an adapter parses the package metadata into `info`; the
    payload is only materialized by unpack().
    """

    format: Format
    info: PackageInfo

    @classmethod
    def detect(cls, path: Path, config: Config | None = None) -> bool:
        """Return True if the file looks like a package of this format."""
        ...

    def unpack(self) -> Path:
        """Extract the payload into `<name>-<version>` and return that directory."""
        ...

    def increment_release(self, bump: int) -> None:
        """Bump the release number ahead of conversion."""
        ...
