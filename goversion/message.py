"""
Message module for the Go Release Watcher.

Builds the chat message announcing a new Go release. Versions are classified
with semantic versioning: a release whose patch number is above its own
X.Y.0 baseline is a minor (point) release, anything else is a major release.
The two kinds link to different release-notes anchors and milestones.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from goversion.config import DEFAULT_LISTING_URL
from goversion.utils import get_logger


# Module logger
logger = get_logger("message")

RELEASE_NOTES_URL = "https://go.dev/doc/devel/release"
MILESTONE_SEARCH_URL = "https://github.com/golang/go/issues?q=milestone%3A"
CHERRY_PICK_FILTER = "+label%3ACherryPickApproved"
DOWNLOAD_SUFFIX = ".darwin-amd64.pkg"

_NUM = r"0|[1-9][0-9]*"
_IDENT = r"[0-9A-Za-z-]+"
SEMVER_PATTERN = re.compile(
    rf"^v(?P<major>{_NUM})"
    rf"(?:\.(?P<minor>{_NUM})"
    rf"(?:\.(?P<patch>{_NUM})"
    rf"(?:-(?P<prerelease>{_IDENT}(?:\.{_IDENT})*))?"
    rf"(?:\+(?P<build>{_IDENT}(?:\.{_IDENT})*))?"
    r")?)?$"
)
_LEADING_NON_DIGITS = re.compile(r"^[^0-9]*")


@dataclass(frozen=True)
class SemVer:
    """A parsed semantic version. Missing minor/patch parts are zero."""
    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""

    @property
    def baseline(self) -> "SemVer":
        """The X.Y.0 release of the same major.minor line."""
        return SemVer(self.major, self.minor, 0)

    def __str__(self) -> str:
        text = f"v{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        return text


def strip_version_prefix(version: str) -> str:
    """Drop everything before the first digit, e.g. "go1.19.4" -> "1.19.4"."""
    return _LEADING_NON_DIGITS.sub("", version)


def parse_semver(version: str) -> Optional[SemVer]:
    """
    Parse a release identifier as a semantic version.

    The non-numeric prefix is stripped and "v" is prepended before
    validation, so "go1.19.4" is read as "v1.19.4".

    Args:
        version: Release identifier.

    Returns:
        SemVer, or None if the identifier is not a valid semantic version.
    """
    match = SEMVER_PATTERN.match("v" + strip_version_prefix(version))
    if not match:
        return None

    return SemVer(
        major=int(match.group("major")),
        minor=int(match.group("minor") or 0),
        patch=int(match.group("patch") or 0),
        prerelease=match.group("prerelease") or "",
        build=match.group("build") or "",
    )


def _prerelease_key(prerelease: str) -> Tuple:
    # A release sorts after any of its pre-releases
    if not prerelease:
        return (1,)
    parts = []
    for ident in prerelease.split("."):
        if ident.isdigit():
            parts.append((0, int(ident), ""))
        else:
            parts.append((1, 0, ident))
    return (0, tuple(parts))


def compare_semver(a: SemVer, b: SemVer) -> int:
    """
    Compare two versions with semantic-versioning precedence.

    Build metadata is ignored.

    Returns:
        -1, 0 or 1 as a is lower than, equal to, or higher than b.
    """
    key_a = ((a.major, a.minor, a.patch), _prerelease_key(a.prerelease))
    key_b = ((b.major, b.minor, b.patch), _prerelease_key(b.prerelease))
    return (key_a > key_b) - (key_a < key_b)


def is_minor_release(semver: SemVer) -> bool:
    """True if the version is above the X.Y.0 release of its line."""
    return compare_semver(semver, semver.baseline) > 0


def format_release_message(version: str, listing_url: str = DEFAULT_LISTING_URL) -> str:
    """
    Format the chat message announcing a release.

    Falls back to the major-release layout, with the literal version as the
    download file name, when the version is not valid semver.

    Args:
        version: Release identifier such as "go1.19.4".
        listing_url: Base URL of the download listing.

    Returns:
        Message text, including Slack link markup.
    """
    semver = parse_semver(version)
    number = strip_version_prefix(version)

    if semver is None:
        logger.warning(f"Version {version!r} is not valid semver, formatting as a major release")
        download = version
        anchor = number
        milestone = number
    elif is_minor_release(semver):
        download = f"go{number}"
        anchor = f"{semver.major}.{semver.minor}.minor"
        milestone = f"{number}{CHERRY_PICK_FILTER}"
    else:
        download = f"go{semver.major}.{semver.minor}"
        anchor = f"{semver.major}.{semver.minor}"
        milestone = f"{semver.major}.{semver.minor}"

    return (
        f"A new Go version [{version}] is available, download for MacOS here: "
        f"{listing_url}{download}{DOWNLOAD_SUFFIX} "
        f"<Release Notes|{RELEASE_NOTES_URL}#go{anchor}> "
        f"<Github Milestone|{MILESTONE_SEARCH_URL}Go{milestone}>"
    )
