"""
Parse module for the Go Release Watcher.

This module extracts the latest release version from the lines of the Go
download listing page. The listing shows the most recent release first, so
the first matching entry wins.

Two strategies are available behind the VersionExtractor interface:
- MarkerExtractor: fixed substring scan over the raw lines
- SoupExtractor: structured parse with BeautifulSoup
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from bs4 import BeautifulSoup

from goversion.utils import WatcherError, get_logger


# Module logger
logger = get_logger("parse")

# Markers identifying the macOS amd64 installer entry
DOWNLOAD_MARKER = "downloadBox"
PLATFORM_SUFFIX = "darwin-amd64.pkg"

LINE_PREFIX = '<a class="download downloadBox" href="/dl/'
LINE_SUFFIX = '.darwin-amd64.pkg">'


class ExtractionNotFoundError(WatcherError):
    """Raised when no listing entry matches the download markers."""


class VersionExtractor(ABC):
    """Strategy for pulling the release version out of the listing page."""

    name = ""

    @abstractmethod
    def find_version(self, lines: Iterable[str]) -> Optional[str]:
        """Return the version of the first matching entry, or None."""

    def extract(self, lines: Iterable[str]) -> str:
        """
        Extract the latest release version.

        Args:
            lines: Lines of the listing page, in page order.

        Returns:
            Version identifier such as "go1.19.4".

        Raises:
            ExtractionNotFoundError: If no entry matches.
        """
        version = self.find_version(lines)
        if not version:
            raise ExtractionNotFoundError("no version found in go.dev/dl page")

        logger.info(f"Latest version: {version}")
        return version


class MarkerExtractor(VersionExtractor):
    """Scan lines for the download marker and platform suffix."""

    name = "markers"

    def __init__(
        self,
        marker: str = DOWNLOAD_MARKER,
        platform_suffix: str = PLATFORM_SUFFIX,
        prefix: str = LINE_PREFIX,
        suffix: str = LINE_SUFFIX
    ):
        self.marker = marker
        self.platform_suffix = platform_suffix
        self.prefix = prefix
        self.suffix = suffix

    def find_version(self, lines: Iterable[str]) -> Optional[str]:
        for line in lines:
            if self.marker in line and self.platform_suffix in line:
                # strip line down to the goX.Y.Z version
                return strip_affixes(line.strip(), self.prefix, self.suffix)
        return None


class SoupExtractor(VersionExtractor):
    """Find the first download anchor by class and href with BeautifulSoup."""

    name = "html"

    def __init__(self, marker: str = DOWNLOAD_MARKER, platform_suffix: str = PLATFORM_SUFFIX):
        self.marker = marker
        self.platform_suffix = platform_suffix

    def find_version(self, lines: Iterable[str]) -> Optional[str]:
        soup = BeautifulSoup("\n".join(lines), "html.parser")

        for anchor in soup.find_all("a", href=True):
            classes = anchor.get("class") or []
            href = str(anchor["href"])
            if self.marker in classes and href.endswith(self.platform_suffix):
                filename = href.rstrip("/").rsplit("/", 1)[-1]
                return filename[:-len("." + self.platform_suffix)]

        return None


EXTRACTORS = {
    MarkerExtractor.name: MarkerExtractor,
    SoupExtractor.name: SoupExtractor,
}


def get_extractor(name: str) -> VersionExtractor:
    """
    Build an extractor by strategy name.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return EXTRACTORS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown extractor '{name}'. Expected one of: {', '.join(sorted(EXTRACTORS))}"
        )


def strip_affixes(line: str, prefix: str, suffix: str) -> str:
    """Remove a fixed prefix and suffix from a line when present."""
    if suffix and line.endswith(suffix):
        line = line[:-len(suffix)]
    if prefix and line.startswith(prefix):
        line = line[len(prefix):]
    return line
