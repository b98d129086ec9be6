"""
Solaris pkg (package datastream) source adapter.

pkginfo names the package inside the datastream, pkgtrans translates it
into a directory holding the pkginfo and pkgmap tables, install/ and the
payload under reloc/ or root/.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from xenomorph.core.arch import rpm_to_deb_arch
from xenomorph.core.config import Config
from xenomorph.core.errors import ExternalToolFailure, MalformedArchive, MissingRequiredField
from xenomorph.core.fs import make_unpack_work_dir
from xenomorph.core.process import command_exists, format_cmdline, run_command
from xenomorph.core.reconcile import OwnershipEntry, reconcile_ownership
from xenomorph.core.version import increment_release
from xenomorph.models.package import Format, PackageInfo, Script

logger = logging.getLogger(__name__)

DATASTREAM_MAGIC = b"# PaCkAgE DaTaStReAm"
PAYLOAD_DIRS = ("reloc", "root")
METADATA = ("pkginfo", "pkgmap", "install")


def parse_pkg_info(info: PackageInfo, content: str) -> None:
    """
    Read the KEY="value" pkginfo table (see pkginfo(4)).

    ARCH and VERSION are mandatory. Lines without '=' continue the value of
    the previous key.
    """
    fields: dict[str, str] = {}
    key = ""
    for line in content.splitlines():
        if "=" in line:
            key, value = line.split("=", 1)
            key = key.strip()
            fields[key] = value
        elif key and line.strip():
            fields[key] += "\n" + line

    values = {k: v.strip().strip('"') for k, v in fields.items()}
    for required in ("ARCH", "VERSION"):
        if required not in values:
            raise MissingRequiredField(required, info.file)

    info.arch = rpm_to_deb_arch(values["ARCH"])
    info.version = values["VERSION"]
    info.description = values.get("DESC", "")
    if values.get("NAME"):
        info.summary = values["NAME"]
    if values.get("VENDOR"):
        info.maintainer = values["VENDOR"]


def parse_pkg_map(info: PackageInfo, content: str) -> tuple[list[str], list[OwnershipEntry]]:
    """
    Read the pkgmap table (see pkgmap(4)) into files and conffiles.

    Only part 1 of multi-part packages is considered. Returns the install
    script names found in `i` entries together with the ownership rows of the
    payload entries.
    """
    scripts: list[str] = []
    ownership: list[OwnershipEntry] = []

    for line in content.splitlines():
        fields = line.split()
        # ': <parts> <maxsize>' preamble
        if len(fields) < 3 or fields[0] == ":":
            continue
        if fields[0] != "1":
            continue

        ftype = fields[1]
        if ftype == "i":
            if Script.from_name(Format.PKG, fields[2]) is not None:
                scripts.append(fields[2])
            continue
        if ftype not in ("f", "d") or len(fields) < 4:
            continue

        path = "/" + fields[3].lstrip("/")
        if ftype == "f" and path.startswith("/etc/"):
            info.add_conffile(path)
        info.files.append(path)

        if len(fields) >= 7:
            try:
                ownership.append(OwnershipEntry(int(fields[4], 8), fields[5], fields[6], path))
            except ValueError:
                logger.debug(f"Skipping pkgmap entry with bad mode: {line}")

    return scripts, ownership


def require_tool(tool: str) -> None:
    if not command_exists(tool):
        raise ExternalToolFailure(tool, format_cmdline([tool]), None)


class PkgSource:
    """Reads a Solaris package datastream."""

    format = Format.PKG

    @classmethod
    def detect(cls, path: Path, config: Config | None = None) -> bool:
        try:
            with open(path, "rb") as handle:
                first_line = handle.readline()
        except OSError:
            return False
        return DATASTREAM_MAGIC in first_line

    def __init__(self, path: Path, config: Config):
        require_tool("pkginfo")
        require_tool("pkgtrans")
        self.config = config

        stem, sep, _ = path.name.partition("-")
        if not sep or not stem:
            raise MissingRequiredField("name", path)

        self.info = PackageInfo(
            file=path,
            name=stem,
            release="1",
            group="unknown",
            summary="Converted Solaris pkg package",
            original_format=Format.PKG,
            distribution="Solaris",
            binary_info="unknown",
        )
        self.pkgname = self._query_pkgname(path)

        with tempfile.TemporaryDirectory(prefix="xenomorph-pkg-") as tmp:
            run_command(["pkgtrans", "-i", path, tmp, self.pkgname], config)
            pkg_dir = Path(tmp) / self.pkgname
            self._read(pkg_dir)

        logger.debug(f"Parsed {path}: {self.info.name} {self.info.version}")

    def _query_pkgname(self, path: Path) -> str:
        output = run_command(["pkginfo", "-d", path], self.config).text
        lines = output.splitlines()
        fields = lines[0].split() if lines else []
        if len(fields) < 2:
            raise MalformedArchive(f"pkginfo returned no package name for {path}")
        return fields[1]

    def _read(self, pkg_dir: Path) -> None:
        try:
            pkginfo = (pkg_dir / "pkginfo").read_text(encoding="utf-8", errors="replace")
            pkgmap = (pkg_dir / "pkgmap").read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError as exc:
            raise MalformedArchive(f"pkgtrans did not produce {exc.filename}") from exc

        parse_pkg_info(self.info, pkginfo)
        if self.config.target_arch:
            self.info.arch = rpm_to_deb_arch(self.config.target_arch)
        script_names, self.ownership = parse_pkg_map(self.info, pkgmap)

        install_dir = pkg_dir / "install"
        copyright_file = install_dir / "copyright"
        if copyright_file.is_file():
            self.info.copyright = copyright_file.read_text(encoding="utf-8", errors="replace")
        else:
            self.info.copyright = "unknown"

        for name in script_names:
            script_file = install_dir / name
            if script_file.is_file():
                script = Script.from_name(Format.PKG, name)
                self.info.scripts[script] = script_file.read_text(encoding="utf-8", errors="replace")

    def increment_release(self, bump: int) -> None:
        self.info.release = increment_release(self.info.release, bump)

    def unpack(self) -> Path:
        work_dir = make_unpack_work_dir(self.info.workdir_name)
        run_command(["pkgtrans", self.info.file, work_dir, self.pkgname], self.config)

        # pkgtrans creates <work_dir>/<pkgname>; make that the work dir itself
        staged = work_dir.with_name(work_dir.name + "_1")
        (work_dir / self.pkgname).rename(staged)
        work_dir.rmdir()
        staged.rename(work_dir)
        os.chmod(work_dir, 0o755)

        for name in METADATA:
            entry = work_dir / name
            if entry.is_dir():
                shutil.rmtree(entry)
            elif entry.exists():
                entry.unlink()

        for name in PAYLOAD_DIRS:
            payload = work_dir / name
            if payload.is_dir():
                shutil.copytree(payload, work_dir, symlinks=True, dirs_exist_ok=True)
                shutil.rmtree(payload)

        self.info.file_info = reconcile_ownership(self.ownership, work_dir)
        return work_dir
