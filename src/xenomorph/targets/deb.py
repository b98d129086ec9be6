"""
Debian target adapter.

Writes a debhelper based debian/ directory into the work directory, either
generated from the package metadata or taken from a debianization patch.
"""

import gzip
import logging
import os
import pwd
import socket
from email.utils import formatdate
from pathlib import Path

from xenomorph import __version__
from xenomorph.core.config import Config
from xenomorph.core.errors import PatchConflict
from xenomorph.core.fs import write_text
from xenomorph.core.process import run_command
from xenomorph.core.version import deb_release, deb_version, split_version
from xenomorph.models.package import Format, PackageInfo
from xenomorph.targets.base import (
    TARGET_METADATA,
    SingleUse,
    conversion_trailer,
    scripts_to_write,
)

logger = logging.getLogger(__name__)

DEBHELPER_COMPAT = 7

# No trailing slashes on these directory names!
FHS_MOVES = (
    ("usr/man", "usr/share/man"),
    ("usr/info", "usr/share/info"),
    ("usr/doc", "usr/share/doc"),
)

RULES_TEMPLATE = """\
#!/usr/bin/make -f
# debian/rules for xenomorph

PACKAGE = $(shell dh_listpackages)

build:
	dh_testdir

clean:
	dh_testdir
	dh_testroot
	dh_clean -d

binary-indep: build

binary-arch: build
	dh_testdir
	dh_testroot
	dh_prep
	dh_installdirs

	dh_installdocs
	dh_installchangelogs

# Copy the packages' files.
	find . -maxdepth 1 -mindepth 1 {exclude} -print0 | \\
	xargs -0 -r -i cp -a {{}} debian/$(PACKAGE)

#
# If you need to move files around in debian/$(PACKAGE) or do some
# binary patching, do it here
#
{moves}

# This has been known to break on some wacky binaries.
#	dh_strip
	dh_compress
{fixperms}	dh_fixperms
	dh_makeshlibs
	dh_installdeb
	-dh_shlibdeps
	dh_gencontrol
	dh_md5sums
	dh_builddeb

binary: binary-indep binary-arch
.PHONY: build clean binary-indep binary-arch binary
"""


def _passwd_entry() -> pwd.struct_passwd | None:
    try:
        return pwd.getpwuid(os.getuid())
    except KeyError:
        return None


def login_name() -> str:
    entry = _passwd_entry()
    return entry.pw_name if entry else os.environ.get("USER", str(os.getuid()))


def fetch_realname() -> str:
    entry = _passwd_entry()
    if entry and entry.pw_gecos.split(",", 1)[0]:
        return entry.pw_gecos.split(",", 1)[0]
    return login_name()


def fetch_email_address() -> str:
    """$EMAIL, or user@mailname with the host name standing in for /etc/mailname."""
    email = os.environ.get("EMAIL")
    if email:
        return email
    try:
        mailname = Path("/etc/mailname").read_text(encoding="utf-8").strip()
    except OSError:
        mailname = socket.gethostname()
    return f"{login_name()}@{mailname}"


def format_description(description: str, info: PackageInfo) -> str:
    """
    Reformat a long description into Debian control file syntax.

    Each line is indented by one space, tabs are expanded, trailing
    whitespace is dropped and empty lines become ' .'. The conversion
    trailer closes the description.
    """
    lines = []
    for line in description.splitlines():
        line = line.replace("\t", " " * 8).rstrip()
        lines.append(f" {line or '.'}")

    # remove leading blank lines
    while lines and lines[0] == " .":
        lines.pop(0)
    if lines:
        lines.append(" .")
    lines.append(f" {conversion_trailer(info)}")
    return "\n".join(lines)


def find_patch(info: PackageInfo, config: Config) -> Path | None:
    """Locate a debianization patch for this package, if one should be used."""
    if config.nopatch:
        return None
    if config.patch is not None:
        return config.patch

    def candidates(pattern: str) -> list[Path]:
        return [path for directory in config.patch_dirs for path in sorted(directory.glob(pattern))]

    patches = candidates(f"{info.name}_{info.version}-{info.release}*.diff.gz")
    if not patches:
        # Try not matching the release, see if that helps.
        patches = candidates(f"{info.name}_{info.version}*.diff.gz")
    if not patches and config.anypatch:
        # Fall back to anything that matches the name.
        patches = candidates(f"{info.name}_*.diff.gz")

    return patches[0] if patches else None


class DebTarget(SingleUse):
    """Debianizes an unpacked work directory."""

    format = Format.DEB

    def __init__(self, info: PackageInfo, work_dir: Path, config: Config):
        self.info = info
        self.work_dir = work_dir
        self.config = config
        self.debian_dir = work_dir / "debian"
        self.dir_map: dict[str, str] = {}
        self.patch: Path | None = None
        self.realname = ""
        self.email = ""
        self.date = ""

    def generate(self) -> None:
        self._claim()
        self.sanitize_info()
        self.debian_dir.mkdir()

        self.patch = find_patch(self.info, self.config)
        if self.patch is not None:
            self.apply_patch(self.patch)
            return

        self.realname = fetch_realname()
        self.email = fetch_email_address()
        self.date = formatdate(localtime=True)

        self.write_changelog()
        self.write_control()
        self.write_copyright()
        self.write_conffiles()
        self.write_compat()
        self.plan_fhs_moves()
        self.write_rules()
        self.write_scripts()

    def sanitize_info(self) -> None:
        info = self.info
        info.version = deb_version(info.version)
        info.release = deb_release(info.release)
        info.description = format_description(info.description, info)

    def apply_patch(self, patch: Path) -> None:
        """Debianize with a patch instead of generating debian/."""
        logger.info(f"Debianizing {self.info.name} with {patch}")
        data = patch.read_bytes()
        if data[:2] == b"\x1f\x8b":
            data = gzip.decompress(data)

        before = set(self.work_dir.rglob("*.rej")) | set(self.work_dir.rglob("*.orig"))
        run_command(["patch", "-p1"], self.config, cwd=self.work_dir, input=data)

        rejects = sorted(set(self.work_dir.rglob("*.rej")) - before)
        if rejects:
            raise PatchConflict(patch, rejects)
        for orig in set(self.work_dir.rglob("*.orig")) - before:
            orig.unlink()

        rules = self.debian_dir / "rules"
        if rules.exists():
            os.chmod(rules, 0o755)

        changelog = self.debian_dir / "changelog"
        if changelog.is_file():
            first_line = changelog.read_text(encoding="utf-8", errors="replace").split("\n", 1)[0]
            start, end = first_line.find("("), first_line.find(")")
            if 0 <= start < end:
                version = "".join(first_line[start + 1 : end].split())
                self.info.version, self.info.release = split_version(version)

    def write_changelog(self) -> None:
        info = self.info
        entry = [
            f"{info.name} ({info.version}-{info.release}) experimental; urgency=low",
            "",
            f"  * Converted from {info.original_format} format to .deb by xenomorph version {__version__}",
            "",
        ]
        if info.changelog.strip():
            entry.extend(f"  {line}".rstrip() for line in info.changelog.strip("\n").splitlines())
            entry.append("")
        entry.append(f" -- {self.realname} <{self.email}>  {self.date}")
        write_text(self.debian_dir / "changelog", "\n".join(entry) + "\n")

    def write_control(self) -> None:
        info = self.info
        depends = ", ".join(["${shlibs:Depends}", *info.dependencies])
        control = (
            f"Source: {info.name}\n"
            "Section: alien\n"
            "Priority: extra\n"
            f"Maintainer: {self.realname} <{self.email}>\n"
            "\n"
            f"Package: {info.name}\n"
            f"Architecture: {info.arch}\n"
            f"Depends: {depends}\n"
            f"Description: {info.summary}\n"
            f"{info.description}\n"
        )
        write_text(self.debian_dir / "control", control)

    def write_copyright(self) -> None:
        info = self.info
        text = (
            "This package was debianized by the xenomorph program by converting\n"
            f"a binary .{info.original_format} package on {self.date}\n"
            "\n"
            f"Copyright: {info.copyright}\n"
            "\n"
            "Information from the binary package:\n"
            f"{info.binary_info}\n"
        )
        write_text(self.debian_dir / "copyright", text)

    def write_conffiles(self) -> None:
        # debhelper takes care of files in /etc.
        conffiles = [path for path in self.info.conffiles if not path.startswith("/etc")]
        if conffiles:
            write_text(self.debian_dir / "conffiles", "\n".join(conffiles) + "\n")

    def write_compat(self) -> None:
        write_text(self.debian_dir / "compat", f"{DEBHELPER_COMPAT}\n")

    def write_rules(self) -> None:
        exclude = " ".join(f"-not -name {name}" for name in TARGET_METADATA)
        moves = "".join(
            f"\tmkdir -p debian/$(PACKAGE)/{new}\n"
            f"\tcp -a debian/$(PACKAGE)/{old}/. debian/$(PACKAGE)/{new}\n"
            f"\trm -rf debian/$(PACKAGE)/{old}\n"
            for old, new in self.dir_map.items()
        )
        rules = RULES_TEMPLATE.format(
            exclude=f"{exclude} -not -name '*.spec'",
            moves=moves,
            fixperms="" if self.config.fixperms else "#",
        )
        write_text(self.debian_dir / "rules", rules, mode=0o755)

    def write_scripts(self) -> None:
        for script, body in scripts_to_write(self.info).items():
            write_text(self.debian_dir / script.name_for(Format.DEB), body, mode=0o755)

    def plan_fhs_moves(self) -> None:
        """
        Pick the old-style directories debian/rules moves to FHS locations.

        The move happens on the copy in debian/$(PACKAGE), the work
        directory is left as unpacked for the other targets.
        """
        for old, new in FHS_MOVES:
            old_dir = self.work_dir / old
            if old_dir.is_dir() and not old_dir.is_symlink() and not (self.work_dir / new).exists():
                self.dir_map[old] = new
                logger.debug(f"Will move /{old} to /{new} in the package")
