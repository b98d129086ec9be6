"""
RPM source adapter.

All metadata is obtained by querying the rpm tool; the payload is obtained
with rpm2cpio and unpacked with cpio.
"""

import logging
import lzma
import os
from pathlib import Path

from xenomorph.core.arch import rpm_to_deb_arch
from xenomorph.core.config import Config
from xenomorph.core.errors import ExternalToolFailure, MissingRequiredField
from xenomorph.core.fs import make_unpack_work_dir, move_entries
from xenomorph.core.process import run_command
from xenomorph.core.reconcile import OwnershipEntry, reconcile_ownership
from xenomorph.core.version import increment_release
from xenomorph.models.package import Format, PackageInfo, Script, normalize_payload_path

logger = logging.getLogger(__name__)

NONE_VALUE = "(none)"
NO_FILES = "(contains no files)"
CPIO_MAGICS = (b"070701", b"070702", b"070707")
FILE_MODES_FORMAT = "[%{FILEMODES} %{FILEUSERNAME} %{FILEGROUPNAME} %{FILENAMES}\n]"


class RpmReader:
    """
    Thin wrapper over the rpm query interface for a single package file.

    Queries run with LANG=C so rpm does not localize its output.
    """

    def __init__(self, path: Path, config: Config):
        self.path = path
        self.config = config

    def _query(self, *args: str) -> str:
        result = run_command(["rpm", *args, self.path], self.config, env={"LANG": "C"})
        return result.text

    def read_field(self, tag: str) -> str | None:
        """Query a single header tag; rpm's '(none)' placeholder becomes None."""
        value = self._query("-qp", "--queryformat", tag)
        if value == NONE_VALUE:
            return None
        return value

    def read_file_list(self, flag: str) -> list[str]:
        """List payload files (-l) or config files (-c)."""
        output = self._query("-qp", flag)
        return [
            line.strip()
            for line in output.splitlines()
            if line.strip() and line.strip() != NO_FILES
        ]

    def read_info(self) -> str:
        """Human readable header dump (rpm -qpi)."""
        return self._query("-qpi")

    def read_requires(self) -> list[str]:
        return [line.strip() for line in self._query("-qpR").splitlines() if line.strip()]

    def read_file_modes(self) -> list[OwnershipEntry]:
        """Per-file mode, owner and group from the header."""
        entries = []
        for line in self._query("-qp", "--queryformat", FILE_MODES_FORMAT).splitlines():
            fields = line.split(" ", 3)
            if len(fields) != 4:
                continue
            mode, owner, group, path = fields
            try:
                entries.append(OwnershipEntry(int(mode), owner, group, path))
            except ValueError:
                logger.debug(f"Skipping unparsable file mode line: {line}")
        return entries

    def cpio_archive(self) -> bytes:
        """
        The payload as a cpio archive.

        Older rpm2cpio builds pass lzma payloads through compressed, so the
        cpio magic is checked and the stream decompressed when it is missing.
        """
        data = run_command(["rpm2cpio", self.path], self.config).stdout
        if data.startswith(CPIO_MAGICS):
            return data
        try:
            return lzma.decompress(data)
        except lzma.LZMAError:
            logger.debug("rpm2cpio output is neither cpio nor lzma, passing it to cpio as is")
            return data


def sanitize_script(body: str, prefix: str | None) -> str:
    """
    Make an rpm scriptlet standalone.

    rpm runs scriptlets with /bin/sh by default but many rely on bash, so the
    shebang is forced to bash. A relocatable package also gets
    RPM_INSTALL_PREFIX defined, since rpm normally provides it.
    """
    prefix_code = ""
    if prefix:
        prefix_code = f"\nRPM_INSTALL_PREFIX={prefix}\nexport RPM_INSTALL_PREFIX"

    if body.startswith("#!") and body[2:].lstrip().startswith("/"):
        first, sep, rest = body.partition("\n")
        first = first.replace("/bin/sh", "/bin/bash", 1)
        return f"{first}{prefix_code}{sep}{rest}"
    return f"#!/bin/bash{prefix_code}\n{body}"


def fix_directory_modes(work_dir: Path, listing: list[str]) -> None:
    """
    cpio creates parent directories that are not in the archive with mode
    0700, which would make them inaccessible once installed. Those are set
    to 0755.
    """
    archived = {normalize_payload_path(name) for name in listing}
    for path in sorted(work_dir.rglob("*")):
        if path.is_symlink() or not path.is_dir():
            continue
        if "/" + path.relative_to(work_dir).as_posix() not in archived:
            os.chmod(path, 0o755)


def relocate(work_dir: Path, prefix: str) -> bool:
    """
    Move the payload of a relocatable package under its install prefix.

    Returns False and leaves the tree alone when the prefix (or one of its
    parent directories) is already part of the payload.
    """
    target = work_dir / prefix.strip("/")
    if target == work_dir or target.exists():
        return False

    entries = sorted(work_dir.iterdir())
    current = work_dir
    for part in Path(prefix.strip("/")).parts:
        current = current / part
        if current.exists():
            logger.debug(f"Not relocating to {prefix}: {current} already in payload")
            return False
        current.mkdir()
        os.chmod(current, 0o755)

    move_entries(entries, target)
    return True


class RpmSource:
    """Reads a .rpm package."""

    format = Format.RPM

    @classmethod
    def detect(cls, path: Path, config: Config | None = None) -> bool:
        return path.suffix.lower() == ".rpm"

    def __init__(self, path: Path, config: Config, reader: RpmReader | None = None):
        self.config = config
        self.reader = reader or RpmReader(path, config)
        reader = self.reader

        self.prefix = reader.read_field("%{PREFIXES}")

        info = PackageInfo(file=path, original_format=Format.RPM)
        for conffile in reader.read_file_list("-c"):
            info.add_conffile(conffile)
        for name in reader.read_file_list("-l"):
            info.add_file(name)
        info.binary_info = reader.read_info()

        name = reader.read_field("%{NAME}")
        if not name:
            raise MissingRequiredField("NAME", path)
        info.name = name
        version = reader.read_field("%{VERSION}")
        if not version:
            raise MissingRequiredField("VERSION", path)
        info.version = version
        release = reader.read_field("%{RELEASE}")
        if not release:
            raise MissingRequiredField("RELEASE", path)
        info.release = release

        description = reader.read_field("%{DESCRIPTION}") or ""
        # Older rpms have no summary, but do have a description.
        info.summary = (
            reader.read_field("%{SUMMARY}")
            or description.split("\n", 1)[0]
            or "Converted RPM package"
        )
        info.description = description or info.summary
        info.copyright = reader.read_field("%{LICENSE}") or self._legacy_copyright() or "unknown"
        info.group = reader.read_field("%{GROUP}") or ""
        info.changelog = reader.read_field("%{CHANGELOGTEXT}") or ""
        info.distribution = "Red Hat"
        info.arch = rpm_to_deb_arch(reader.read_field("%{ARCH}") or "")
        if config.target_arch:
            info.arch = rpm_to_deb_arch(config.target_arch)

        for script in Script:
            body = reader.read_field(script.rpm_query_tag)
            if body is not None:
                info.scripts[script] = sanitize_script(body, self.prefix)

        self.info = info
        logger.debug(f"Parsed {path}: {info.name} {info.version}-{info.release}")

    def _legacy_copyright(self) -> str | None:
        # rpm 4.x dropped the COPYRIGHT tag and refuses to query it
        try:
            return self.reader.read_field("%{COPYRIGHT}")
        except ExternalToolFailure as exc:
            logger.debug(f"No COPYRIGHT tag: {exc}")
            return None

    def increment_release(self, bump: int) -> None:
        self.info.release = increment_release(self.info.release, bump)

    def unpack(self) -> Path:
        work_dir = make_unpack_work_dir(self.info.workdir_name)
        archive = self.reader.cpio_archive()

        run_command(
            [
                "cpio",
                "--extract",
                "--make-directories",
                "--no-absolute-filenames",
                "--preserve-modification-time",
            ],
            self.config,
            cwd=work_dir,
            input=archive,
        )
        listing = run_command(["cpio", "-it", "--quiet"], self.config, input=archive)
        fix_directory_modes(work_dir, listing.text.splitlines())

        if self.prefix and relocate(work_dir, self.prefix):
            prefix = self.prefix.rstrip("/")
            self.info.conffiles = [prefix + conffile for conffile in self.info.conffiles]

        self.info.file_info = reconcile_ownership(self.reader.read_file_modes(), work_dir)
        return work_dir
