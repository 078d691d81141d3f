"""
Page fetching for site adapters.

Wraps a single ``requests.Session`` and hands back parsed ``BeautifulSoup``
documents. Network failures surface as :class:`FetchError`; callers that need
a page to be *complete* go through :meth:`PageFetcher.fetch_verified`, which
keeps retrying until the adapter's marker check passes.
"""
import time
from dataclasses import dataclass

import requests
from bs4 import BeautifulSoup

from .config import DEFAULT_USER_AGENT, DEFAULT_TIMEOUT
from .exceptions import FetchError, VerificationError, RetryExhaustedError
from .logging import logger


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry a transient failure.

    ``max_attempts=0`` retries until the page loads.
    """
    max_attempts: int = 0
    delay: float = 0.0

    @property
    def unbounded(self):
        return self.max_attempts <= 0


def retry_until_valid(action, validate, url, policy=None, sleep=time.sleep):
    """Run ``action`` until it returns a result accepted by ``validate``.

    A :class:`FetchError` from ``action`` and a rejected result are both
    treated as transient. Nothing is skipped: the loop only ends with a valid
    result, or with :class:`RetryExhaustedError` when ``policy`` caps attempts.

    Args:
        action (callable): Zero-argument callable performing one fetch
        validate (callable): Predicate over the fetched result
        url (str): URL being fetched, for diagnostics
        policy (RetryPolicy): Attempt cap and delay between attempts
        sleep (callable): Sleep function, injectable for tests

    Returns:
        The first result for which ``validate`` returned True.
    """
    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        attempt += 1
        logger.trace(f"    [FETCH] Attempt {attempt} for {url}")
        try:
            result = action()
        except FetchError as e:
            last_error = e
            logger.warning(f"    [RETRY] {e}. Trying again...")
        else:
            if validate(result):
                if attempt > 1:
                    logger.info(f"    [FETCH] Loaded {url} after {attempt} attempts")
                return result
            last_error = VerificationError(url)
            logger.warning(f"    [RETRY] Page did not load properly: {url}. Trying again...")

        if not policy.unbounded and attempt >= policy.max_attempts:
            logger.error(f"    [FETCH FATAL] All {attempt} attempts failed for {url}.")
            raise RetryExhaustedError(url, attempt, last_error)
        if policy.delay:
            sleep(policy.delay)


class PageFetcher:
    """Fetches pages, JSON and binary assets over one HTTP session."""

    def __init__(self, session=None, user_agent=DEFAULT_USER_AGENT, timeout=DEFAULT_TIMEOUT,
                 retry_policy=None, parser='html.parser'):
        self.session = session or requests.Session()
        self.session.headers['User-Agent'] = user_agent or DEFAULT_USER_AGENT
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self.parser = parser

    @classmethod
    def from_config(cls, fetch_config):
        """Build a fetcher from the dict returned by ``config.load_fetch_config``."""
        policy = RetryPolicy(
            max_attempts=fetch_config.get('max_attempts', 0),
            delay=fetch_config.get('retry_delay', 0.0),
        )
        return cls(
            user_agent=fetch_config.get('user_agent', DEFAULT_USER_AGENT),
            timeout=fetch_config.get('timeout', DEFAULT_TIMEOUT),
            retry_policy=policy,
        )

    def get(self, url, **kwargs):
        """GET ``url`` and return the response, raising FetchError on failure."""
        try:
            response = self.session.get(url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchError(url, f"Request failed: {e}") from e
        return response

    def parse(self, markup):
        return BeautifulSoup(markup, self.parser)

    def fetch(self, url):
        """Fetch ``url`` and parse it as an HTML document."""
        logger.debug(f"    [FETCH] {url}")
        response = self.get(url)
        return self.parse(response.text)

    def fetch_json(self, url, params=None):
        """Fetch ``url`` and decode the body as JSON."""
        logger.debug(f"    [FETCH] {url} (json)")
        response = self.get(url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(url, f"Invalid JSON response: {e}") from e

    def download(self, url):
        """Download a binary asset.

        Returns:
            tuple: (content bytes, media type from Content-Type or None)
        """
        logger.debug(f"    [FETCH] {url} (binary)")
        response = self.get(url)
        content_type = response.headers.get('Content-Type')
        if content_type:
            content_type = content_type.split(';', 1)[0].strip().lower()
        return response.content, content_type

    def fetch_verified(self, url, verify):
        """Fetch ``url`` until ``verify(soup)`` accepts the parsed page."""
        return retry_until_valid(lambda: self.fetch(url), verify, url, self.retry_policy)

    def download_verified(self, url):
        """Download ``url`` until a non-empty body comes back."""
        return retry_until_valid(lambda: self.download(url), lambda result: bool(result[0]), url, self.retry_policy)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
