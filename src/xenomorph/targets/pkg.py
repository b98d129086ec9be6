"""
Solaris pkg target adapter.

Writes the prototype and pkginfo files pkgmk needs, plus install/ holding
the copyright file and the package scripts.
"""

import grp
import logging
import os
import pwd
import stat
from pathlib import Path

from xenomorph.core.config import Config
from xenomorph.core.fs import write_text
from xenomorph.models.package import Format, PackageInfo
from xenomorph.targets.base import SingleUse, is_target_metadata, scripts_to_write

logger = logging.getLogger(__name__)


def convert_name(name: str) -> str:
    """Abbreviate a package name the way Solaris package names usually are."""
    if name.startswith("lib"):
        name = "l" + name[len("lib") :]
    if name.endswith("-perl"):
        name = name[: -len("-perl")] + "p"
    if name.startswith("perl-"):
        name = "pl" + name[len("perl-") :]
    return name


def _owner_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def prototype_entry(path: Path, relative: str) -> str | None:
    """One pkgproto(1) style line for a payload entry; None for unsupported types."""
    st = os.lstat(path)
    if stat.S_ISLNK(st.st_mode):
        return f"s none {relative}={os.readlink(path)}"

    if stat.S_ISDIR(st.st_mode):
        ftype = "d"
    elif stat.S_ISREG(st.st_mode):
        ftype = "f"
    else:
        logger.warning(f"Leaving {relative} out of the prototype: unsupported file type")
        return None
    mode = format(stat.S_IMODE(st.st_mode), "04o")
    return f"{ftype} none {relative} {mode} {_owner_name(st.st_uid)} {_group_name(st.st_gid)}"


def pkginfo_value(text: str) -> str:
    # pkginfo values are single line and double quoted
    return " ".join(text.split()).replace('"', "'")


class PkgTarget(SingleUse):
    """Prepares an unpacked work directory for pkgmk."""

    format = Format.PKG

    def __init__(self, info: PackageInfo, work_dir: Path, config: Config):
        self.info = info
        self.work_dir = work_dir
        self.config = config
        self.converted_name = convert_name(info.name)

    def generate(self) -> None:
        self._claim()
        prototype = self.payload_prototype()

        info = self.info
        pkginfo = (
            f'PKG="{self.converted_name}"\n'
            f'NAME="{info.name}"\n'
            f'ARCH="{info.arch}"\n'
            f'VERSION="{info.version}"\n'
            'CATEGORY="application"\n'
            'VENDOR="xenomorph-converted package"\n'
            "EMAIL=\n"
            "PSTAMP=xenomorph\n"
            "MAXINST=1000\n"
            'BASEDIR="/"\n'
            'CLASSES="none"\n'
            f'DESC="{pkginfo_value(info.description)}"\n'
        )
        write_text(self.work_dir / "pkginfo", pkginfo)
        prototype.append("i pkginfo=./pkginfo")

        install_dir = self.work_dir / "install"
        install_dir.mkdir(exist_ok=True)
        os.chmod(install_dir, 0o755)

        write_text(install_dir / "copyright", info.copyright)
        prototype.append("i copyright=./install/copyright")

        for script, body in scripts_to_write(info).items():
            name = script.name_for(Format.PKG)
            write_text(install_dir / name, body, mode=0o755)
            prototype.append(f"i {name}=./install/{name}")

        write_text(self.work_dir / "prototype", "\n".join(prototype) + "\n")

    def payload_prototype(self) -> list[str]:
        entries = []
        for path in sorted(self.work_dir.rglob("*")):
            relative = path.relative_to(self.work_dir).as_posix()
            if is_target_metadata(relative):
                continue
            entry = prototype_entry(path, relative)
            if entry is not None:
                entries.append(entry)
        return entries
