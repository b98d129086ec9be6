"""
Run configuration.

A Config is built once by the CLI (or by a caller using the library) and
handed to every component that needs to know about verbosity or options.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path

DEFAULT_PATCH_DIRS = (Path("/var/lib/alien"), Path("/usr/share/alien/patches"))


class Verbosity(IntEnum):
    """How much of the external tool activity to report."""

    NORMAL = 0
    VERBOSE = 1  # show each command run
    VERY_VERBOSE = 2  # also show command output


@dataclass
class Config:
    verbosity: Verbosity = Verbosity.NORMAL

    # Generic conversion options
    use_scripts: bool = False
    keep_version: bool = False
    bump: int = 1
    target_arch: str | None = None

    # deb target options
    patch: Path | None = None
    nopatch: bool = False
    anypatch: bool = False
    fixperms: bool = False
    patch_dirs: tuple[Path, ...] = field(default=DEFAULT_PATCH_DIRS)

    # tgz source options
    tgz_description: str | None = None
    tgz_version: str | None = None

    def __post_init__(self):
        if self.nopatch and self.patch is not None:
            raise ValueError("The options --nopatch and --patch cannot be used together.")
        if self.bump < 0:
            raise ValueError(f"Release bump must not be negative, got {self.bump}")

    @property
    def verbose(self) -> bool:
        return self.verbosity >= Verbosity.VERBOSE
