#!/usr/bin/env python3
"""
HTTP fetcher for record sources.

Wraps a requests session with polite headers, per-request timeouts and
exponential backoff on rate limiting and server errors.
"""

import time
import logging
from typing import Any, Dict, Optional

import requests

from ..config import CollectionConfig
from ..exceptions import (
    ErrorRecovery, SourceConnectionError, SourceParseError, SourceTimeoutError
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class HttpFetcher:
    """Fetches JSON and text with retries and backoff."""

    def __init__(self,
                 source_name: str,
                 timeout: int = 10,
                 max_retries: int = 3,
                 backoff_base: float = 1.0,
                 backoff_max: float = 60.0,
                 user_agent: str = "DiabetesInsightEngine/1.0",
                 session: Optional[requests.Session] = None):
        """
        Initialize fetcher.

        Args:
            source_name: Source name used in errors and logs
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per request
            backoff_base: Base delay for exponential backoff
            backoff_max: Maximum delay between attempts
            user_agent: User-Agent string for requests
            session: Optional preconfigured session
        """
        self.source_name = source_name
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max

        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json, application/rss+xml, application/xml;q=0.9, */*;q=0.8",
            "Accept-Language": "en;q=0.9",
        })

    @classmethod
    def from_config(cls, source_name: str, config: CollectionConfig,
                    session: Optional[requests.Session] = None) -> 'HttpFetcher':
        return cls(
            source_name=source_name,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            backoff_base=config.backoff_base_seconds,
            backoff_max=config.backoff_max_seconds,
            user_agent=config.user_agent,
            session=session,
        )

    def _retry_delay(self, error: Exception, attempt: int, response: Optional[requests.Response] = None) -> float:
        delay = ErrorRecovery.get_retry_delay(error, attempt, self.backoff_base)
        if response is not None:
            retry_after = response.headers.get('Retry-After', '')
            if retry_after.isdigit():
                delay = max(delay, float(retry_after))
        return min(delay, self.backoff_max)

    def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        GET a URL, retrying on timeouts, connection failures, 429 and 5xx.

        Raises:
            SourceTimeoutError: If every attempt timed out
            SourceConnectionError: On other failures after retries, or
                immediately on non-retryable HTTP errors
        """
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            response = None
            try:
                logger.debug(f"Fetching {url} (attempt {attempt + 1}/{self.max_retries})")
                response = self.session.get(url, params=params, timeout=self.timeout)

                if response.status_code in RETRYABLE_STATUS:
                    last_error = SourceConnectionError(
                        self.source_name, url,
                        requests.exceptions.HTTPError(f"HTTP {response.status_code}")
                    )
                    last_error.context['status_code'] = response.status_code
                    logger.warning(f"{self.source_name}: HTTP {response.status_code} from {url}")
                elif response.status_code >= 400:
                    error = SourceConnectionError(
                        self.source_name, url,
                        requests.exceptions.HTTPError(f"HTTP {response.status_code}")
                    )
                    error.context['status_code'] = response.status_code
                    raise error
                else:
                    return response

            except requests.exceptions.Timeout:
                last_error = SourceTimeoutError(self.source_name, self.timeout)
                logger.warning(f"{self.source_name}: timeout fetching {url}")
            except requests.exceptions.RequestException as e:
                last_error = SourceConnectionError(self.source_name, url, e)
                logger.warning(f"{self.source_name}: request failed for {url}: {e}")

            if attempt < self.max_retries - 1:
                delay = self._retry_delay(last_error, attempt, response)
                logger.debug(f"Retrying {url} in {delay:.1f}s")
                time.sleep(delay)

        logger.error(f"{self.source_name}: failed to fetch {url} after {self.max_retries} attempts")
        raise last_error

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET and decode a JSON body.

        Raises:
            SourceParseError: If the body is not valid JSON
        """
        response = self.get(url, params)
        try:
            return response.json()
        except ValueError as e:
            raise SourceParseError(self.source_name, 'JSON response', e)

    def get_text(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        return self.get(url, params).text

    def check_available(self, url: str) -> Dict[str, Any]:
        """Single-attempt availability check."""
        try:
            response = self.session.get(url, timeout=self.timeout)
            return {
                'available': response.status_code < 400,
                'status_code': response.status_code,
                'response_time_ms': response.elapsed.total_seconds() * 1000
            }
        except requests.exceptions.RequestException as e:
            return {
                'available': False,
                'error': str(e)
            }

    def close(self) -> None:
        self.session.close()
