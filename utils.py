"""
HTTP session, URL helpers and an operation timer
"""
import time
import random
import logging
from typing import Optional, List
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import config

logger = logging.getLogger(__name__)


class RobustSession:
    """requests session that logs and swallows fetch failures, returning None instead"""

    def __init__(self, max_retries: int = None, timeout: int = None, user_agents: List[str] = None):
        self.session = requests.Session()
        self.timeout = timeout if timeout is not None else config.timeout
        self.user_agents = user_agents or config.user_agents

        # Pages are fetched once; a failed fetch degrades the analysis instead of retrying
        retry_strategy = Retry(
            total=max_retries if max_retries is not None else config.max_retries,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            raise_on_status=False
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        })

    def get(self, url: str, **kwargs) -> Optional[requests.Response]:
        """GET url, returning None on any HTTP or network failure"""
        try:
            self.session.headers['User-Agent'] = random.choice(self.user_agents)

            response = self.session.get(url, timeout=self.timeout, **kwargs)

            if response.status_code == 200:
                logger.debug(f"Successfully fetched {url}")
                return response
            elif response.status_code == 403:
                logger.warning(f"Access forbidden for {url}")
                return None
            elif response.status_code == 404:
                logger.warning(f"Page not found: {url}")
                return None
            else:
                logger.warning(f"HTTP {response.status_code} for {url}")
                return None

        except requests.exceptions.Timeout:
            logger.error(f"Timeout error for {url}")
            return None
        except requests.exceptions.ConnectionError:
            logger.error(f"Connection error for {url}")
            return None
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error for {url}: {e}")
            return None


def validate_url(url: str) -> bool:
    """True for absolute http(s) URLs"""
    try:
        result = urlparse(url)
        return result.scheme in ('http', 'https') and bool(result.netloc)
    except (TypeError, ValueError):
        return False


def normalize_domain(url: str) -> str:
    """Extract and normalize domain from URL"""
    try:
        domain = urlparse(url).netloc.lower()
    except (TypeError, ValueError):
        return ""
    if domain.startswith('www.'):
        domain = domain[4:]
    return domain


def page_title_from_url(url: str) -> str:
    """Last path segment of a URL, or the URL itself"""
    segment = url.rstrip('/').split('/')[-1]
    return segment or url


class PerformanceMonitor:
    """Monitor and log performance metrics"""

    def __init__(self):
        self.metrics = {}

    def start_timer(self, operation: str):
        """Start timing an operation"""
        self.metrics[operation] = {'start': time.time()}

    def end_timer(self, operation: str) -> float:
        """End timing and log results"""
        if operation not in self.metrics:
            return 0
        duration = time.time() - self.metrics[operation]['start']
        self.metrics[operation]['duration'] = duration
        logger.info(f"Operation '{operation}' completed in {duration:.2f} seconds")
        return duration
