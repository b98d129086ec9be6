"""
Linux Standard Base source adapter.

An lsb package is an rpm named lsb-* that requires lsb; it is read as an rpm
and then marked up as LSB.
"""

import logging
from pathlib import Path

from xenomorph.core.config import Config
from xenomorph.core.errors import ExternalToolFailure
from xenomorph.models.package import Format
from xenomorph.sources.rpm import RpmReader, RpmSource

logger = logging.getLogger(__name__)


class LsbSource:
    """Reads an lsb rpm by delegating to RpmSource."""

    format = Format.LSB

    @classmethod
    def detect(cls, path: Path, config: Config | None = None) -> bool:
        if not path.name.startswith("lsb-") or path.suffix.lower() != ".rpm":
            return False
        reader = RpmReader(path, config or Config())
        try:
            requires = reader.read_requires()
        except ExternalToolFailure as exc:
            logger.debug(f"Cannot check {path} for an lsb requirement: {exc}")
            return False
        return any(req.split()[0] == "lsb" for req in requires)

    def __init__(self, path: Path, config: Config, reader: RpmReader | None = None):
        self.rpm = RpmSource(path, config, reader=reader)
        self.info = self.rpm.info
        self.info.original_format = Format.LSB
        self.info.distribution = "Linux Standard Base"
        if "lsb" not in self.info.dependencies:
            self.info.dependencies.append("lsb")
        # lsb packages are expected to have their scripts run
        self.info.use_scripts = True

    def increment_release(self, bump: int) -> None:
        # lsb release numbers are left exactly as shipped
        pass

    def unpack(self) -> Path:
        return self.rpm.unpack()
