import logging
import time
from abc import ABC, abstractmethod

import requests

logger = logging.getLogger(__name__)

MAX_RETRIES = 5
RETRY_BASE_DELAY = 1.0
REQUEST_TIMEOUT = 30.0


class BaseClient(ABC):
    @abstractmethod
    def make_session(self) -> requests.Session:
        """Create and configure an HTTP session with auth headers."""

    def request(self, session, method, url, **kwargs):
        """Issue a request, backing off on 429 and raising on other HTTP errors."""
        kwargs.setdefault('timeout', REQUEST_TIMEOUT)
        send = getattr(session, method.lower())

        for attempt in range(MAX_RETRIES):
            response = send(url, **kwargs)

            if response.status_code == 429:
                retry_after = float(response.headers.get('Retry-After', RETRY_BASE_DELAY))
                delay = max(retry_after, RETRY_BASE_DELAY * (2 ** attempt))
                logger.warning(
                    "Rate limited (429) on %s, attempt %d/%d, waiting %.1fs",
                    url, attempt + 1, MAX_RETRIES, delay,
                )
                time.sleep(delay)
                continue

            response.raise_for_status()
            return response

        raise requests.exceptions.HTTPError(
            f"Rate limit exceeded after {MAX_RETRIES} retries for {url}"
        )
