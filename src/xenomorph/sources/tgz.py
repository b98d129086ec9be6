"""
Slackware .tgz (and generic tarball) source adapter.

A tarball carries no metadata beyond its file name, so most fields are
derived from the name or supplied through the config. Slackware packages
keep their scripts in install/, which is not part of the payload.
"""

import logging
import shutil
import stat
import tarfile
from datetime import datetime
from pathlib import Path, PurePosixPath

from xenomorph.core.arch import rpm_to_deb_arch
from xenomorph.core.config import Config
from xenomorph.core.errors import MalformedArchive
from xenomorph.core.fs import TAR_READ_ERRORS, extract_tar, make_unpack_work_dir
from xenomorph.core.version import increment_release
from xenomorph.models.package import Format, PackageInfo, Script, normalize_payload_path

logger = logging.getLogger(__name__)

TGZ_SUFFIXES = (".tgz", ".taz", ".tar.gz", ".tar.z", ".tar.bz", ".tar.bz2")
SCRIPT_DIR = "/install"


def strip_suffix(filename: str) -> str:
    lowered = filename.lower()
    for suffix in sorted(TGZ_SUFFIXES, key=len, reverse=True):
        if lowered.endswith(suffix):
            return filename[: -len(suffix)]
    return filename


def describe_file(path: Path) -> str:
    """An `ls -l` style line for the tarball, used as its binary_info."""
    st = path.stat()
    mtime = datetime.fromtimestamp(st.st_mtime).strftime("%b %d %H:%M")
    return f"{stat.filemode(st.st_mode)} {st.st_nlink} {st.st_uid} {st.st_gid} {st.st_size} {mtime} {path.name}"


def open_tarball(path: Path) -> tarfile.TarFile:
    try:
        return tarfile.open(path, mode="r:*")
    except tarfile.TarError as exc:
        raise MalformedArchive(f"Cannot read tarball {path}: {exc}") from exc


class TgzSource:
    """Reads a Slackware package or a plain compressed tarball."""

    format = Format.TGZ

    @classmethod
    def detect(cls, path: Path, config: Config | None = None) -> bool:
        return path.name.lower().endswith(TGZ_SUFFIXES)

    def __init__(self, path: Path, config: Config):
        self.path = path
        self.config = config

        base = strip_suffix(path.name)
        name, sep, version = base.rpartition("-")
        if not sep or not name:
            name, version = base, "1"

        self.info = PackageInfo(
            file=path,
            name=name,
            version=config.tgz_version or version,
            release="1",
            arch="all",
            group="unknown",
            summary="Converted tgz package",
            description=config.tgz_description or "Converted tgz package",
            copyright="unknown",
            distribution="Slackware/tarball",
            original_format=Format.TGZ,
            binary_info=describe_file(path),
        )
        if config.target_arch:
            self.info.arch = rpm_to_deb_arch(config.target_arch)

        try:
            with open_tarball(path) as tar:
                for member in tar:
                    self._record(tar, member)
        except TAR_READ_ERRORS as exc:
            raise MalformedArchive(f"Cannot read tarball {path}: {exc}") from exc

        logger.debug(f"Parsed {path}: {self.info.name} {self.info.version}")

    def _record(self, tar: tarfile.TarFile, member: tarfile.TarInfo) -> None:
        path = normalize_payload_path(member.name)
        if path == "/":
            return

        if path == SCRIPT_DIR or path.startswith(SCRIPT_DIR + "/"):
            script = Script.from_name(Format.TGZ, PurePosixPath(path).name)
            if script is not None and member.isfile():
                extracted = tar.extractfile(member)
                if extracted is not None:
                    self.info.scripts[script] = extracted.read().decode("utf-8", errors="replace")
            return

        # Slackware has no conffile notion; plain files under /etc are the best guess.
        if path.startswith("/etc/") and member.isfile() and not member.mode & 0o111:
            self.info.add_conffile(path)
        self.info.files.append(path)

    def increment_release(self, bump: int) -> None:
        self.info.release = increment_release(self.info.release, bump)

    def unpack(self) -> Path:
        work_dir = make_unpack_work_dir(self.info.workdir_name)
        with open_tarball(self.path) as tar:
            extract_tar(tar, work_dir)

        scripts = work_dir / SCRIPT_DIR.lstrip("/")
        if scripts.is_dir() and not scripts.is_symlink():
            shutil.rmtree(scripts)
        return work_dir
