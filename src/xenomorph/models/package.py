"""
Canonical Package Model.

Every source adapter decodes into a PackageInfo and every target adapter
encodes from one. Architecture strings are kept in Debian style; paths are
kept as absolute POSIX strings.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Format(Enum):
    """Package formats xenomorph can read and write."""

    DEB = "deb"
    RPM = "rpm"
    LSB = "lsb"
    PKG = "pkg"
    TGZ = "tgz"

    def __str__(self) -> str:
        return self.value

    @property
    def install_command(self) -> list[str]:
        """Command line prefix the native installer takes a package file after."""
        match self:
            case Format.DEB:
                return ["dpkg", "--no-force-overwrite", "-i"]
            case Format.RPM | Format.LSB:
                return ["rpm", "-ivh"]
            case Format.PKG:
                return ["/usr/sbin/pkgadd", "-d", "."]
            case Format.TGZ:
                return ["/sbin/installpkg"]


class Script(Enum):
    """
    Lifecycle hook scripts.

    | Script           | deb      | rpm scriptlet | rpm query tag | tgz            | pkg          |
    |------------------|----------|---------------|---------------|----------------|--------------|
    | BEFORE_INSTALL   | preinst  | %pre          | %{PREIN}      | predoinst.sh   | preinstall   |
    | AFTER_INSTALL    | postinst | %post         | %{POSTIN}     | doinst.sh      | postinstall  |
    | BEFORE_UNINSTALL | prerm    | %preun        | %{PREUN}      | predelete.sh   | preremove    |
    | AFTER_UNINSTALL  | postrm   | %postun       | %{POSTUN}     | delete.sh      | postremove   |
    """

    BEFORE_INSTALL = "before-install"
    AFTER_INSTALL = "after-install"
    BEFORE_UNINSTALL = "before-uninstall"
    AFTER_UNINSTALL = "after-uninstall"

    def name_for(self, fmt: Format) -> str:
        """Return this script's on-disk name in the given format."""
        return SCRIPT_NAMES[_naming_format(fmt)][self]

    @classmethod
    def from_name(cls, fmt: Format, name: str) -> "Script | None":
        """Look a script up by its name in the given format."""
        for script, script_name in SCRIPT_NAMES[_naming_format(fmt)].items():
            if script_name == name:
                return script
        return None

    @property
    def rpm_query_tag(self) -> str:
        return RPM_QUERY_TAGS[self]


SCRIPT_NAMES: dict[Format, dict[Script, str]] = {
    Format.DEB: {
        Script.BEFORE_INSTALL: "preinst",
        Script.AFTER_INSTALL: "postinst",
        Script.BEFORE_UNINSTALL: "prerm",
        Script.AFTER_UNINSTALL: "postrm",
    },
    Format.RPM: {
        Script.BEFORE_INSTALL: "%pre",
        Script.AFTER_INSTALL: "%post",
        Script.BEFORE_UNINSTALL: "%preun",
        Script.AFTER_UNINSTALL: "%postun",
    },
    Format.TGZ: {
        Script.BEFORE_INSTALL: "predoinst.sh",
        Script.AFTER_INSTALL: "doinst.sh",
        Script.BEFORE_UNINSTALL: "predelete.sh",
        Script.AFTER_UNINSTALL: "delete.sh",
    },
    Format.PKG: {
        Script.BEFORE_INSTALL: "preinstall",
        Script.AFTER_INSTALL: "postinstall",
        Script.BEFORE_UNINSTALL: "preremove",
        Script.AFTER_UNINSTALL: "postremove",
    },
}

RPM_QUERY_TAGS: dict[Script, str] = {
    Script.BEFORE_INSTALL: "%{PREIN}",
    Script.AFTER_INSTALL: "%{POSTIN}",
    Script.BEFORE_UNINSTALL: "%{PREUN}",
    Script.AFTER_UNINSTALL: "%{POSTUN}",
}


def _naming_format(fmt: Format) -> Format:
    # LSB packages are rpms and share rpm's scriptlet names.
    return Format.RPM if fmt is Format.LSB else fmt


def normalize_payload_path(name: str) -> str:
    """
    Turn an archive member name into an absolute payload path.

    './usr/bin/x' -> '/usr/bin/x'
    'usr/bin/x'   -> '/usr/bin/x'
    './'          -> '/'
    """
    if name.startswith("./"):
        name = name[1:]
    elif name == ".":
        name = "/"
    if not name.startswith("/"):
        name = "/" + name
    if len(name) > 1:
        name = name.rstrip("/")
    return name


@dataclass
class FileInfo:
    """Ownership (and, for setuid/setgid files, mode) that could not be applied on disk."""

    owner: str = ""
    mode: int | None = None


@dataclass
class PackageInfo:
    """
    Canonical package metadata.

    One instance is produced per source package; each target format works on
    its own clone() so generating one format never leaks into another.
    """

    file: Path = field(default_factory=Path)
    name: str = ""
    version: str = ""
    release: str = ""
    arch: str = ""  # Debian-style
    maintainer: str = ""
    dependencies: list[str] = field(default_factory=list)
    group: str = ""
    summary: str = ""
    description: str = ""
    copyright: str = ""
    original_format: Format = Format.DEB
    distribution: str = ""
    binary_info: str = ""
    conffiles: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    changelog: str = ""
    use_scripts: bool = False
    scripts: dict[Script, str] = field(default_factory=dict)
    file_info: dict[str, FileInfo] = field(default_factory=dict)

    @property
    def workdir_name(self) -> str:
        return f"{self.name}-{self.version}"

    def clone(self) -> "PackageInfo":
        """Deep copy for handing to a single target adapter."""
        return copy.deepcopy(self)

    def add_file(self, name: str) -> str:
        """Record a payload entry, normalizing its path. Returns the stored path."""
        path = normalize_payload_path(name)
        self.files.append(path)
        return path

    def add_conffile(self, path: str) -> None:
        path = normalize_payload_path(path)
        if path not in self.conffiles:
            self.conffiles.append(path)

    def active_scripts(self) -> dict[Script, str]:
        """Scripts with a non-blank body, in lifecycle order."""
        return {
            script: self.scripts[script]
            for script in Script
            if self.scripts.get(script, "").strip()
        }
