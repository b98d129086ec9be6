"""
Ownership & Mode Reconciliation.

rpm headers (and Solaris pkgmaps) carry per-file owner, group and mode that
override whatever the payload archive produced. Ownership that the build host
cannot represent, because the accounts do not exist there or the run is not
privileged, is recorded in PackageInfo.file_info and replayed at install time
by a fixup block injected into the after-install script.
"""

import grp
import logging
import os
import pwd
from dataclasses import dataclass
from pathlib import Path

from xenomorph.core.errors import UnresolvedIdentity
from xenomorph.models.package import FileInfo

logger = logging.getLogger(__name__)

FIXUP_HEADER = "# xenomorph added permissions fixup code"
SHELL_INTERPRETERS = {"/bin/sh", "/bin/bash", "/usr/bin/sh", "/usr/bin/bash", "/bin/dash"}
SPECIAL_BITS = 0o7000


@dataclass
class OwnershipEntry:
    """One row of authoritative per-file metadata."""

    mode: int
    owner: str
    group: str
    path: str


def root_uid(name: str) -> int:
    """Return 0 if name is a root-equivalent user on this host."""
    try:
        uid = pwd.getpwnam(name).pw_uid
    except KeyError as exc:
        raise UnresolvedIdentity(name, "user") from exc
    if uid != 0:
        raise UnresolvedIdentity(name, "user")
    return uid


def root_gid(name: str) -> int:
    """Return 0 if name is a root-equivalent group on this host."""
    try:
        gid = grp.getgrnam(name).gr_gid
    except KeyError as exc:
        raise UnresolvedIdentity(name, "group") from exc
    if gid != 0:
        raise UnresolvedIdentity(name, "group")
    return gid


def reconcile_ownership(
    entries: list[OwnershipEntry],
    work_dir: Path,
    is_root: bool | None = None,
) -> dict[str, FileInfo]:
    """
    Apply authoritative ownership/mode to extracted files.

    Args:
        entries: Per-file metadata rows, paths absolute within the package.
        work_dir: Directory the payload was extracted into.
        is_root: Whether chown is possible; defaults to checking the euid.

    Returns:
        file_info mapping for every file whose ownership had to be postponed.
    """
    if is_root is None:
        is_root = os.geteuid() == 0

    file_info: dict[str, FileInfo] = {}
    for entry in entries:
        mode = entry.mode & 0o7777  # drop the file type bits
        info = FileInfo()

        try:
            uid = root_uid(entry.owner)
        except UnresolvedIdentity as exc:
            logger.debug(f"{entry.path}: {exc}")
            info.owner = entry.owner
            uid = 0
        try:
            gid = root_gid(entry.group)
        except UnresolvedIdentity as exc:
            logger.debug(f"{entry.path}: {exc}")
            info.owner += f":{entry.group}"
            gid = 0

        if info.owner:
            if mode & SPECIAL_BITS:
                info.mode = mode
            file_info[entry.path] = info

        # Ghost files are in the metadata but not in the payload.
        target = work_dir / entry.path.lstrip("/")
        if not target.exists() or target.is_symlink():
            continue
        if is_root:
            os.chown(target, uid, gid)
        os.chmod(target, mode)

    return file_info


def _quote(value: str) -> str:
    # no single quotes in single quotes...
    return "'" + value.replace("'", "'\"'\"'") + "'"


def ownership_fixup(file_info: dict[str, FileInfo]) -> str:
    """Shell commands that restore the recorded ownership and modes."""
    lines = [FIXUP_HEADER]
    for path in sorted(file_info):
        info = file_info[path]
        lines.append(f"chown {_quote(info.owner)} {_quote(path)}")
        if info.mode is not None:
            lines.append(f"chmod {_quote(format(info.mode, 'o'))} {_quote(path)}")
    return "\n".join(lines)


def is_shell_script(script: str) -> bool:
    """True if the script has no shebang or a shebang naming a POSIX shell."""
    first_line = script.split("\n", 1)[0]
    if not first_line.startswith("#!"):
        return True
    interpreter = first_line[2:].strip().split(" ", 1)[0]
    return interpreter in SHELL_INTERPRETERS


def patch_after_install(script: str, file_info: dict[str, FileInfo], package: str = "") -> str:
    """
    Inject the ownership fixup block after the first line of an after-install script.

    A script is synthesized when there is none. Scripts in other languages are
    returned untouched with a warning.
    """
    if not file_info:
        return script

    # If there is no after-install script, make one up.
    if not script.strip():
        script = "#!/bin/sh\n"

    if not is_shell_script(script):
        logger.warning(
            f"Unable to add ownership fixup code to the after-install script of "
            f"{package or 'the package'} as it is not a shell script!"
        )
        return script

    index = script.find("\n")
    if index == -1:
        index = len(script)
    return script[:index] + "\n" + ownership_fixup(file_info) + script[index:]
