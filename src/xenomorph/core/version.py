"""
Version and release normalization.

Source formats that embed the release (and sometimes an epoch) in the version
string are split at parse time; each target recombines and sanitizes them
according to its own version grammar.
"""

import re

from xenomorph.core.errors import VersionGrammarViolation

DEFAULT_RELEASE = "1"

# lib/dpkg/parsehelp.c parseversion
_DEB_VERSION_CHARS = re.compile(r"[^-.+~:0-9A-Za-z]")


def split_version(raw: str) -> tuple[str, str]:
    """
    Split a 'epoch:version-release' string into (version, release).

    '1.0.0'     -> ('1.0.0', '1')
    '1.0.0-2'   -> ('1.0.0', '2')
    '3:1.0.0-2' -> ('1.0.0', '2')   epoch is discarded
    """
    raw = raw.strip()
    version, sep, release = raw.rpartition("-")
    if not sep:
        version, release = raw, DEFAULT_RELEASE

    # Ignore epochs.
    if ":" in version:
        version = version.split(":", 1)[1]
    return version, release


def increment_release(release: str, bump: int) -> str:
    """Add bump to a numeric release; a non-numeric release becomes the bump itself."""
    if release.isdigit():
        return str(int(release) + bump)
    return str(bump)


def deb_version(version: str) -> str:
    """Sanitize an upstream version for dpkg."""
    cleaned = _DEB_VERSION_CHARS.sub("", version)
    if not cleaned[:1].isdigit():
        # dpkg-deb requires the version to start with a digit
        cleaned = "0" + cleaned

    epoch, sep, _ = cleaned.partition(":")
    if sep and not epoch.isdigit():
        raise VersionGrammarViolation(version, "deb", f"epoch {epoch!r} is not numeric")
    return cleaned


def deb_release(release: str) -> str:
    """Make sure a Debian revision contains digits."""
    if release.isdigit():
        return release
    return release + "-1"


def rpm_version(version: str) -> str:
    """rpm forbids '-' in the Version tag."""
    converted = version.replace("-", "_")
    if not converted or any(ch.isspace() for ch in converted):
        raise VersionGrammarViolation(version, "rpm", "must be non-empty without whitespace")
    return converted
