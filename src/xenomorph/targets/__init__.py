"""Target adapters: write a format's metadata bundle into a work directory."""

from pathlib import Path

from xenomorph.core.config import Config
from xenomorph.models.package import Format, PackageInfo
from xenomorph.targets.base import TargetPackage
from xenomorph.targets.deb import DebTarget
from xenomorph.targets.lsb import LsbTarget
from xenomorph.targets.pkg import PkgTarget
from xenomorph.targets.rpm import RpmTarget
from xenomorph.targets.tgz import TgzTarget


def make_target(fmt: Format, info: PackageInfo, work_dir: Path, config: Config) -> TargetPackage:
    """Factory function to create a target adapter for a format."""
    match fmt:
        case Format.DEB:
            return DebTarget(info, work_dir, config)
        case Format.RPM:
            return RpmTarget(info, work_dir, config)
        case Format.LSB:
            return LsbTarget(info, work_dir, config)
        case Format.PKG:
            return PkgTarget(info, work_dir, config)
        case Format.TGZ:
            return TgzTarget(info, work_dir, config)
        case _:
            raise ValueError(f"Unknown target format: {fmt!r}")


__all__ = [
    "TargetPackage",
    "DebTarget",
    "RpmTarget",
    "LsbTarget",
    "PkgTarget",
    "TgzTarget",
    "make_target",
]
