"""
TargetPackage Protocol - Interface shared by all target adapters.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from xenomorph import __version__
from xenomorph.core.reconcile import patch_after_install
from xenomorph.models.package import Format, PackageInfo, Script


@runtime_checkable
class TargetPackage(Protocol):
    """
    Protocol that all target adapters implement.

    A target adapter owns one PackageInfo clone and writes the metadata files
    its native builder needs into the work directory. generate() may only be
    called once.
    """

    format: Format
    info: PackageInfo
    work_dir: Path

    def generate(self) -> None:
        """Write the target's metadata bundle into the work directory."""
        ...


class SingleUse:
    """Mixin refusing to run generate() twice on the same adapter."""

    _generated = False

    def _claim(self) -> None:
        if self._generated:
            raise RuntimeError(f"{type(self).__name__}.generate() has already been called")
        self._generated = True


# Top-level work dir entries written by target adapters, never payload.
TARGET_METADATA = ("debian", "install", "pkginfo", "prototype")


def is_target_metadata(relative: str) -> bool:
    """Whether a work dir relative path belongs to some target's metadata."""
    top, _, rest = relative.partition("/")
    return top in TARGET_METADATA or (not rest and top.endswith(".spec"))


def conversion_trailer(info: PackageInfo) -> str:
    return f"(Converted from a {info.original_format} package by xenomorph version {__version__}.)"


def scripts_to_write(info: PackageInfo) -> dict[Script, str]:
    """
    Scripts a target should emit, in lifecycle order.

    Lifecycle scripts are only carried over with use_scripts, but the
    after-install script always receives the ownership fixup code.
    """
    scripts = info.active_scripts() if info.use_scripts else {}
    after_install = patch_after_install(
        scripts.get(Script.AFTER_INSTALL, ""),
        info.file_info,
        info.name,
    )
    if after_install.strip():
        scripts[Script.AFTER_INSTALL] = after_install
    return {script: scripts[script] for script in Script if script in scripts}
