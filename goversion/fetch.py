"""
Fetch module for the Go Release Watcher.

Downloads the Go download listing page in a single attempt and hands it on
as lines. Transport failures and non-2xx answers raise FetchError.
"""

from typing import List, Optional

import requests

from goversion.config import DEFAULT_TIMEOUT
from goversion.utils import WatcherError, get_logger


# Module logger
logger = get_logger("fetch")

DEFAULT_USER_AGENT = "GoReleaseWatcher/1.0"


class FetchError(WatcherError):
    """Raised when the listing page cannot be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def create_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    """
    Create a requests session with default headers.

    No retry adapter is mounted: every request is attempted once.
    """
    session = requests.Session()
    session.headers.update({
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    })
    return session


def fetch_listing_lines(
    url: str,
    session: requests.Session,
    timeout: int = DEFAULT_TIMEOUT
) -> List[str]:
    """
    Fetch the download listing page and split it into lines.

    Args:
        url: Listing page URL.
        session: Configured requests session.
        timeout: Request timeout in seconds.

    Returns:
        Lines of the page body, in page order.

    Raises:
        FetchError: On transport errors or a non-2xx status.
    """
    logger.debug(f"Fetching {url}")

    try:
        response = session.get(url, timeout=timeout)
    except requests.exceptions.Timeout as e:
        raise FetchError(f"timeout fetching {url}: {e}") from e
    except requests.exceptions.RequestException as e:
        raise FetchError(f"unable to fetch {url}: {e}") from e

    if not 200 <= response.status_code < 300:
        raise FetchError(
            f"unable to fetch {url}: HTTP {response.status_code}",
            status_code=response.status_code
        )

    logger.info(f"Fetched {url} ({len(response.text)} bytes)")
    return response.text.splitlines()
