"""
xenomorph - Package format converter.

Decodes deb, rpm, LSB rpm, Solaris pkg and Slackware tgz packages into a
canonical PackageInfo model and writes the metadata another format's native
build tooling needs to rebuild the same payload.
"""

__version__ = "1.0.0"


def __getattr__(name: str):
    """Lazy import for the conversion entry points."""
    if name == "PackageInfo":
        from xenomorph.models.package import PackageInfo

        return PackageInfo
    if name == "Format":
        from xenomorph.models.package import Format

        return Format
    if name == "convert_file":
        from xenomorph.core.converter import convert_file

        return convert_file
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["PackageInfo", "Format", "convert_file", "__version__"]
