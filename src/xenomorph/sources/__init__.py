"""Source adapters: read a package file into a PackageInfo."""

from pathlib import Path

from xenomorph.core.config import Config
from xenomorph.core.errors import UnknownPackageFormat
from xenomorph.sources.base import SourcePackage
from xenomorph.sources.deb import DebSource
from xenomorph.sources.lsb import LsbSource
from xenomorph.sources.pkg import PkgSource
from xenomorph.sources.rpm import RpmSource
from xenomorph.sources.tgz import TgzSource

# Lsb must come before Rpm, as an lsb package is also an rpm.
DETECTION_ORDER: tuple[type[SourcePackage], ...] = (LsbSource, RpmSource, DebSource, TgzSource, PkgSource)


def open_source(path: Path, config: Config) -> SourcePackage:
    """Factory function picking the first source adapter that recognizes the file."""
    for adapter in DETECTION_ORDER:
        if adapter.detect(path, config):
            return adapter(path, config)
    raise UnknownPackageFormat(path)


__all__ = [
    "SourcePackage",
    "DebSource",
    "RpmSource",
    "LsbSource",
    "PkgSource",
    "TgzSource",
    "open_source",
]
