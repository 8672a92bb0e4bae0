#!/usr/bin/env python3
"""
Web Content Fetcher for the Deal URL Extractor
Retrieves product page HTML through an ordered cascade of CORS proxies
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple
from urllib.parse import quote

import requests

from config import config

logger = logging.getLogger(__name__)


class UrlExtractionError(Exception):
    """Base error for the URL extraction engine"""


class ProxyExhausted(UrlExtractionError):
    """Every proxy failed or returned unusable content"""

    def __init__(self, url: str, attempts: List[Tuple[str, str]]):
        self.url = url
        self.attempts = attempts
        summary = ', '.join(f"{name}: {reason}" for name, reason in attempts) or 'no proxies configured'
        super().__init__(f"All proxy methods failed for {url} ({summary})")


@dataclass(frozen=True)
class ProxyProvider:
    """A third-party proxy endpoint; '{url}' in the template receives the target"""
    name: str
    template: str
    encode: bool = True

    def build_url(self, url: str) -> str:
        target = quote(url, safe='') if self.encode else url
        return self.template.format(url=target)


DEFAULT_PROXY_PROVIDERS: Tuple[ProxyProvider, ...] = (
    ProxyProvider('allorigins', 'https://api.allorigins.win/raw?url={url}'),
    ProxyProvider('corsproxy', 'https://corsproxy.io/?{url}'),
    ProxyProvider('codetabs', 'https://api.codetabs.com/v1/proxy?quest={url}'),
    ProxyProvider('thingproxy', 'https://thingproxy.freeboard.io/fetch/{url}', encode=False),
)


class ContentVerdict(Enum):
    FULL = "full"
    PARTIAL = "partial"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ContentAcceptancePolicy:
    """Decides whether a proxy response body looks like a real product page"""
    full_min_length: int = 500
    partial_min_length: int = 200
    keywords: Tuple[str, ...] = ('price', 'product', 'title')
    blocked_phrases: Tuple[str, ...] = ('automated access', 'captcha')

    def evaluate(self, html: Optional[str]) -> ContentVerdict:
        if not html:
            return ContentVerdict.REJECTED

        lowered = html.lower()
        length = len(html)
        has_keyword = any(keyword in lowered for keyword in self.keywords)

        if length <= self.full_min_length and not has_keyword:
            return ContentVerdict.REJECTED
        if length > self.full_min_length and not any(phrase in lowered for phrase in self.blocked_phrases):
            return ContentVerdict.FULL
        if length > self.partial_min_length and has_keyword:
            return ContentVerdict.PARTIAL
        return ContentVerdict.REJECTED


def select_providers(names: Sequence[str]) -> Tuple[ProxyProvider, ...]:
    """Pick providers by name, in the given order; unknown names are skipped"""
    if not names:
        return DEFAULT_PROXY_PROVIDERS
    by_name = {provider.name: provider for provider in DEFAULT_PROXY_PROVIDERS}
    selected = []
    for name in names:
        provider = by_name.get(name.lower())
        if provider:
            selected.append(provider)
        else:
            logger.warning(f"Unknown proxy provider '{name}' ignored")
    return tuple(selected) or DEFAULT_PROXY_PROVIDERS


@dataclass
class WebContentFetcher:
    """Fetch product page content through the proxy cascade"""
    session: Optional[requests.Session] = None
    providers: Sequence[ProxyProvider] = field(default_factory=lambda: select_providers(config.PROXY_NAMES))
    policy: ContentAcceptancePolicy = field(default_factory=ContentAcceptancePolicy)
    timeout: float = config.REQUEST_TIMEOUT
    user_agent: str = config.USER_AGENT

    def __post_init__(self):
        # Only a session created here is ours to close
        self._owns_session = self.session is None
        if self.session is None:
            self.session = requests.Session()

    def close(self):
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def headers(self) -> dict:
        return {
            'User-Agent': self.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
            'Upgrade-Insecure-Requests': '1',
        }

    def fetch_via_proxy(self, url: str) -> str:
        """Return the first acceptable page body, or raise ProxyExhausted"""
        attempts: List[Tuple[str, str]] = []

        for provider in self.providers:
            logger.info(f"🌐 Attempting to fetch via {provider.name}...")
            try:
                response = self.session.get(
                    provider.build_url(url),
                    headers=self.headers,
                    timeout=self.timeout,
                )
            except requests.exceptions.Timeout:
                logger.warning(f"⏱️ {provider.name} timed out after {self.timeout}s")
                attempts.append((provider.name, 'timeout'))
                continue
            except requests.exceptions.RequestException as e:
                logger.warning(f"❌ {provider.name} error: {e}")
                attempts.append((provider.name, f'error: {e}'))
                continue

            if not response.ok:
                logger.warning(f"❌ {provider.name} failed with status: {response.status_code}")
                attempts.append((provider.name, f'status {response.status_code}'))
                continue

            html = response.text or ''
            verdict = self.policy.evaluate(html)
            if verdict is ContentVerdict.FULL:
                logger.info(f"✅ Successfully fetched via {provider.name} ({len(html)} chars)")
                return html
            if verdict is ContentVerdict.PARTIAL:
                logger.info(f"⚠️ {provider.name} returned partial content ({len(html)} chars), using it")
                return html

            logger.warning(f"⚠️ {provider.name} returned limited content ({len(html)} chars)")
            attempts.append((provider.name, f'unusable content ({len(html)} chars)'))

        raise ProxyExhausted(url, attempts)


def fetch_via_proxy(url: str) -> str:
    """Fetch a page with a default-configured fetcher"""
    with WebContentFetcher() as fetcher:
        return fetcher.fetch_via_proxy(url)
