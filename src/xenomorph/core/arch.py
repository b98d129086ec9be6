"""Architecture name translation between rpm and Debian conventions."""

import re

RPM_TO_DEB_ARCH = {
    "1": "i386",
    "2": "alpha",
    "3": "sparc",
    "6": "m68k",
    "noarch": "all",
    "ppc": "powerpc",
    "x86_64": "amd64",
    "em64t": "amd64",
    "armv4l": "arm",
    "armv7l": "armel",
    "parisc": "hppa",
    "ppc64le": "ppc64el",
}

DEB_TO_RPM_ARCH = {
    "amd64": "x86_64",
    "powerpc": "ppc",
    "hppa": "parisc",
    "all": "noarch",
    "ppc64el": "ppc64le",
}

# 386, 486, 586, 686 and Pentium are all treated as i386
_X86_32 = re.compile(r"^[iI][0-9]86$")


def rpm_to_deb_arch(arch: str) -> str:
    arch = arch.strip()
    if arch.lower() == "pentium" or _X86_32.match(arch):
        return "i386"
    return RPM_TO_DEB_ARCH.get(arch, arch)


def deb_to_rpm_arch(arch: str) -> str:
    return DEB_TO_RPM_ARCH.get(arch, arch)
