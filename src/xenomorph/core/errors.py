"""
Exception taxonomy for package conversion.

Archive and parse errors abort the conversion of a single input file; the
driver decides whether to carry on with the rest.
"""

from pathlib import Path


class XenomorphError(Exception):
    """Base exception for all xenomorph errors."""


class UnknownPackageFormat(XenomorphError):
    """Raised when no source adapter recognizes an input file."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Unknown type of package, {path}")


class MalformedArchive(XenomorphError):
    """Raised when a package container cannot be decoded."""


class MissingMember(MalformedArchive):
    """Raised when a member-archive has no member with the requested prefix."""

    def __init__(self, prefix: str, archive: Path | None = None):
        self.prefix = prefix
        self.archive = archive
        where = f" in {archive}" if archive else ""
        super().__init__(f"Cannot find {prefix} member{where}")


class UnknownCodec(MalformedArchive):
    """Raised when a recognized member carries an unsupported compression suffix."""

    def __init__(self, member: str):
        self.member = member
        super().__init__(f"Unknown compression for member {member!r}")


class MissingRequiredField(XenomorphError):
    """Raised when a package lacks a field conversion cannot do without."""

    def __init__(self, field: str, path: Path | None = None):
        self.field = field
        self.path = path
        where = f" in {path}" if path else ""
        super().__init__(f"Required field {field!r} not found{where}")


class UnresolvedIdentity(XenomorphError):
    """Raised when a user or group name does not map to a root identity on this host."""

    def __init__(self, name: str, kind: str):
        self.name = name
        self.kind = kind
        super().__init__(f"{kind} {name!r} does not resolve to a root identity")


class ExternalToolFailure(XenomorphError):
    """Raised when an external tool is missing or exits non-zero."""

    def __init__(self, tool: str, cmdline: str, returncode: int | None, stderr: str = ""):
        self.tool = tool
        self.cmdline = cmdline
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            message = f"{tool} is not installed (needed for: {cmdline})"
        else:
            message = f"Error executing command ({cmdline}), exit code {returncode}"
            if stderr.strip():
                message += f" - stderr:\n{stderr.strip()}"
        super().__init__(message)


class PatchConflict(XenomorphError):
    """Raised when applying a debianization patch leaves .rej files behind."""

    def __init__(self, patch: Path, rejects: list[Path]):
        self.patch = patch
        self.rejects = rejects
        names = ", ".join(str(r) for r in rejects)
        super().__init__(f"Patch {patch} failed with .rej files ({names}); giving up")


class VersionGrammarViolation(XenomorphError):
    """Raised when a version cannot be made legal for a target format."""

    def __init__(self, version: str, target: str, reason: str = ""):
        self.version = version
        self.target = target
        detail = f": {reason}" if reason else ""
        super().__init__(f"Version {version!r} is not valid for {target}{detail}")
