"""Tests for version/release normalization and architecture names."""

import pytest

from xenomorph.core.arch import deb_to_rpm_arch, rpm_to_deb_arch
from xenomorph.core.errors import VersionGrammarViolation
from xenomorph.core.version import (
    deb_release,
    deb_version,
    increment_release,
    rpm_version,
    split_version,
)


# ═══════════════════════════════════════════
# Splitting
# ═══════════════════════════════════════════


class TestSplitVersion:
    def test_no_release(self):
        assert split_version("1.0.0") == ("1.0.0", "1")

    def test_with_release(self):
        assert split_version("1.0.0-2") == ("1.0.0", "2")

    def test_epoch_discarded(self):
        assert split_version("3:1.0.0-2") == ("1.0.0", "2")

    def test_splits_on_last_hyphen(self):
        assert split_version("1.0-beta-3") == ("1.0-beta", "3")

    def test_epoch_without_release(self):
        assert split_version("2:4.5") == ("4.5", "1")


class TestIncrementRelease:
    def test_numeric(self):
        assert increment_release("2", 1) == "3"
        assert increment_release("2", 5) == "7"

    def test_non_numeric_becomes_bump(self):
        assert increment_release("1.el8", 1) == "1"

    def test_zero_bump(self):
        assert increment_release("4", 0) == "4"


# ═══════════════════════════════════════════
# Target grammars
# ═══════════════════════════════════════════


class TestDebVersion:
    def test_valid_unchanged(self):
        assert deb_version("1.2.3+dfsg~rc1") == "1.2.3+dfsg~rc1"

    def test_invalid_characters_dropped(self):
        assert deb_version("1.0 beta_2") == "1.0beta2"

    def test_must_start_with_digit(self):
        assert deb_version("v2.1") == "0v2.1"

    def test_non_numeric_epoch(self):
        with pytest.raises(VersionGrammarViolation):
            deb_version("1a:2.0")


class TestDebRelease:
    def test_numeric_unchanged(self):
        assert deb_release("3") == "3"

    def test_non_numeric_gets_suffix(self):
        assert deb_release("2.el8") == "2.el8-1"


class TestRpmVersion:
    def test_hyphen_replaced(self):
        assert rpm_version("1.0-beta") == "1.0_beta"

    def test_empty(self):
        with pytest.raises(VersionGrammarViolation):
            rpm_version("")

    def test_whitespace(self):
        with pytest.raises(VersionGrammarViolation):
            rpm_version("1.0 beta")


# ═══════════════════════════════════════════
# Architecture tables
# ═══════════════════════════════════════════


class TestArch:
    @pytest.mark.parametrize(
        "rpm_arch, deb_arch",
        [
            ("noarch", "all"),
            ("x86_64", "amd64"),
            ("em64t", "amd64"),
            ("ppc", "powerpc"),
            ("ppc64le", "ppc64el"),
            ("parisc", "hppa"),
            ("armv7l", "armel"),
            ("i686", "i386"),
            ("i386", "i386"),
            ("pentium", "i386"),
            ("1", "i386"),
            ("3", "sparc"),
        ],
    )
    def test_rpm_to_deb(self, rpm_arch, deb_arch):
        assert rpm_to_deb_arch(rpm_arch) == deb_arch

    def test_unknown_passes_through(self):
        assert rpm_to_deb_arch("s390x") == "s390x"
        assert deb_to_rpm_arch("s390x") == "s390x"

    def test_deb_to_rpm(self):
        assert deb_to_rpm_arch("amd64") == "x86_64"
        assert deb_to_rpm_arch("all") == "noarch"
        assert deb_to_rpm_arch("powerpc") == "ppc"
