"""
Notify module for the Go Release Watcher.

Posts release messages to a chat webhook (Slack incoming-webhook format).
Each message is posted once; only an HTTP 200 response counts as delivered.
"""

from typing import Optional

import requests

from goversion.config import DEFAULT_TIMEOUT
from goversion.utils import WatcherError, get_logger


# Module logger
logger = get_logger("notify")


class NotifyError(WatcherError):
    """Base exception for webhook failures."""


class NotifyTransportError(NotifyError):
    """Raised when the webhook request could not be sent."""


class NotifyNonSuccessError(NotifyError):
    """Raised when the webhook answers with a status other than 200."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def post_webhook_message(
    url: str,
    text: str,
    session: Optional[requests.Session] = None,
    timeout: int = DEFAULT_TIMEOUT
) -> None:
    """
    Post a message to the webhook as JSON {"text": text}.

    Args:
        url: Webhook URL.
        text: Message text.
        session: Optional requests session, a plain request is made otherwise.
        timeout: Request timeout in seconds.

    Raises:
        NotifyTransportError: If the request fails before a response arrives.
        NotifyNonSuccessError: If the response status is not 200.
    """
    poster = session if session is not None else requests

    try:
        response = poster.post(url, json={"text": text}, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise NotifyTransportError(f"unable to post webhook message: {e}") from e

    if response.status_code != 200:
        raise NotifyNonSuccessError(
            f"non-200 webhook response: HTTP {response.status_code}: {response.text}",
            status_code=response.status_code,
            body=response.text
        )

    logger.info("Successfully posted webhook message")


class WebhookNotifier:
    """Sends messages to one webhook URL."""

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT
    ):
        self.url = url
        self.session = session
        self.timeout = timeout

    def send(self, text: str) -> None:
        post_webhook_message(self.url, text, session=self.session, timeout=self.timeout)
