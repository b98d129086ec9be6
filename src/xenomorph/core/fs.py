"""Filesystem helpers shared by the source and target adapters."""

import logging
import lzma
import os
import shutil
import tarfile
import zlib
from pathlib import Path

from xenomorph.core.errors import MalformedArchive

logger = logging.getLogger(__name__)

# What tarfile and the decompressors under it raise on truncated or corrupt input.
TAR_READ_ERRORS = (tarfile.TarError, EOFError, zlib.error, lzma.LZMAError)


def make_unpack_work_dir(name: str) -> Path:
    """
    Create the `<name>-<version>` working directory in the current directory.

    If the parent directory is setuid/setgid, mkdir makes the new directory
    inherit those bits, so the mode is forced to 0755 afterwards.
    """
    work_dir = Path(name)
    try:
        work_dir.mkdir()
    except OSError as exc:
        raise OSError(f"unable to mkdir {work_dir}: {exc}") from exc
    os.chmod(work_dir, 0o755)
    logger.debug(f"Created work directory {work_dir}")
    return work_dir


def _is_safe_tar_target(destination: Path, member_name: str) -> bool:
    """Check if a tar member path stays inside destination directory."""
    target_path = (destination / member_name.lstrip("/")).resolve()
    destination_root = destination.resolve()
    return target_path == destination_root or target_path.is_relative_to(destination_root)


def extract_tar(tar: tarfile.TarFile, destination: Path) -> None:
    """
    Extract a payload tarball, keeping modes (setuid included), symlinks and devices.

    Member paths escaping the destination are rejected up front.
    """
    try:
        members = tar.getmembers()
        for member in members:
            if not _is_safe_tar_target(destination, member.name):
                raise MalformedArchive(f"Unsafe archive path detected: {member.name}")
        tar.extractall(destination, members=members, filter="fully_trusted")
    except TAR_READ_ERRORS as exc:
        raise MalformedArchive(f"Cannot extract {tar.name or 'tarball'}: {exc}") from exc


def move_entries(entries: list[Path], destination: Path) -> None:
    """Move each entry into destination, keeping its base name."""
    for entry in entries:
        shutil.move(str(entry), str(destination / entry.name))


def write_text(path: Path, content: str, mode: int | None = None) -> None:
    path.write_text(content, encoding="utf-8")
    if mode is not None:
        os.chmod(path, mode)
