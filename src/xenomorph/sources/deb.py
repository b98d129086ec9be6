"""
Debian .deb source adapter.

Metadata comes from the control tarball (control, conffiles and the
maintainer scripts); the payload comes from the data tarball. Both are
obtained through a MemberExtractor, so dpkg-deb is used when installed and
the ar archive is decoded directly otherwise.
"""

import io
import logging
import tarfile
from pathlib import Path, PurePosixPath

from xenomorph.core.arch import rpm_to_deb_arch
from xenomorph.core.config import Config
from xenomorph.core.container import MemberExtractor, select_extractor
from xenomorph.core.errors import MalformedArchive, MissingRequiredField
from xenomorph.core.fs import TAR_READ_ERRORS, extract_tar, make_unpack_work_dir
from xenomorph.core.version import increment_release, split_version
from xenomorph.models.package import Format, PackageInfo, Script

logger = logging.getLogger(__name__)

CONTROL_FILES = ("control", "conffiles", "preinst", "postinst", "prerm", "postrm")


def open_tar_bytes(data: bytes) -> tarfile.TarFile | None:
    """Open decompressed tar bytes; a zero-length member yields None."""
    if not data:
        return None
    try:
        return tarfile.open(fileobj=io.BytesIO(data), mode="r:")
    except tarfile.TarError as exc:
        raise MalformedArchive(f"Cannot read nested tarball: {exc}") from exc


def read_control_files(control_tar: bytes) -> dict[str, str]:
    """Pull the interesting control files out of the control tarball, keyed by base name."""
    found: dict[str, str] = {}
    tar = open_tar_bytes(control_tar)
    if tar is None:
        return found
    try:
        with tar:
            for member in tar.getmembers():
                name = PurePosixPath(member.name).name
                if name not in CONTROL_FILES or not member.isfile():
                    continue
                extracted = tar.extractfile(member)
                if extracted is None:
                    continue
                found[name] = extracted.read().decode("utf-8", errors="replace")
    except TAR_READ_ERRORS as exc:
        raise MalformedArchive(f"Cannot read control tarball: {exc}") from exc
    return found


def parse_control(info: PackageInfo, control: str) -> None:
    """
    Fill PackageInfo from a Debian control paragraph.

    The first Description line is the summary; folded continuation lines form
    the long description, with ' .' paragraph separators becoming empty lines.
    """
    field = ""
    description: list[str] = []

    for line in control.splitlines():
        if line[:1] in (" ", "\t"):
            if field == "description":
                stripped = line.strip()
                description.append("" if stripped == "." else stripped)
            continue
        if ":" not in line:
            continue

        key, value = line.split(":", 1)
        # Really old debs might have oddly capitalized field names.
        field = key.strip().lower()
        value = value.strip()

        match field:
            case "package":
                info.name = value
            case "version":
                info.version, info.release = split_version(value)
            case "architecture":
                info.arch = value
            case "maintainer":
                info.maintainer = value
            case "section":
                info.group = value
            case "description":
                info.summary = value
            case "depends":
                info.dependencies = [dep for dep in value.split(", ") if dep]

    info.description = "\n".join(description)


class DebSource:
    """Reads a .deb package."""

    format = Format.DEB

    @classmethod
    def detect(cls, path: Path, config: Config | None = None) -> bool:
        return path.suffix.lower() == ".deb"

    def __init__(self, path: Path, config: Config, extractor: MemberExtractor | None = None):
        self.config = config
        self.extractor = extractor or select_extractor(path, config)
        self.info = PackageInfo(
            file=path,
            distribution="Debian",
            original_format=Format.DEB,
        )

        control_files = read_control_files(self.extractor.extract_member("control.tar"))
        control = control_files.pop("control", None)
        if control is None:
            raise MalformedArchive(f"Control file not found in {path}")

        parse_control(self.info, control)
        if not self.info.name:
            raise MissingRequiredField("Package", path)
        if not self.info.version:
            raise MissingRequiredField("Version", path)

        self.info.copyright = f"see /usr/share/doc/{self.info.name}/copyright"
        if not self.info.group:
            self.info.group = "unknown"
        self.info.binary_info = control

        for conffile in control_files.pop("conffiles", "").splitlines():
            if conffile.strip():
                self.info.add_conffile(conffile.strip())

        for name, body in control_files.items():
            script = Script.from_name(Format.DEB, name)
            if script is not None:
                self.info.scripts[script] = body

        self._data = self.extractor.extract_member("data.tar")
        tar = open_tar_bytes(self._data)
        if tar is not None:
            try:
                with tar:
                    for member in tar.getmembers():
                        # the archive root './' is not a payload entry
                        if member.name.strip("./"):
                            self.info.add_file(member.name)
            except TAR_READ_ERRORS as exc:
                raise MalformedArchive(f"Cannot list the payload of {path}: {exc}") from exc

        if config.target_arch:
            self.info.arch = rpm_to_deb_arch(config.target_arch)

        logger.debug(f"Parsed {path}: {self.info.name} {self.info.version}-{self.info.release}")

    def increment_release(self, bump: int) -> None:
        self.info.release = increment_release(self.info.release, bump)

    def unpack(self) -> Path:
        work_dir = make_unpack_work_dir(self.info.workdir_name)
        tar = open_tar_bytes(self._data)
        if tar is not None:
            with tar:
                extract_tar(tar, work_dir)
        return work_dir
