#!/usr/bin/env python3
"""
Web Content Fetcher Tests
=========================

The proxy cascade is exercised against a mocked requests session; nothing
here touches the network.

Run:
    pytest tests/test_web_content_fetcher.py
"""

import unittest
from unittest.mock import Mock, patch

import requests

from web_content_fetcher import (
    DEFAULT_PROXY_PROVIDERS,
    ContentAcceptancePolicy,
    ContentVerdict,
    ProxyExhausted,
    ProxyProvider,
    WebContentFetcher,
    fetch_via_proxy,
    select_providers,
)

TARGET_URL = "https://www.amazon.com/dp/B000123456"
FULL_PAGE = "<html><body>" + "product details " * 60 + "</body></html>"


def make_response(status=200, text=''):
    response = Mock()
    response.ok = 200 <= status < 400
    response.status_code = status
    response.text = text
    return response


def make_fetcher(*results):
    session = Mock()
    session.get.side_effect = list(results)
    return WebContentFetcher(session=session, providers=DEFAULT_PROXY_PROVIDERS, timeout=5), session


class TestContentAcceptancePolicy(unittest.TestCase):

    def setUp(self):
        self.policy = ContentAcceptancePolicy()

    def test_long_clean_page_is_full(self):
        self.assertIs(self.policy.evaluate('a' * 600), ContentVerdict.FULL)

    def test_short_page_without_keywords_is_rejected(self):
        self.assertIs(self.policy.evaluate('<html>Service unavailable</html>'), ContentVerdict.REJECTED)

    def test_medium_page_with_keyword_is_partial(self):
        self.assertIs(self.policy.evaluate('product ' * 40), ContentVerdict.PARTIAL)

    def test_tiny_page_with_keyword_is_rejected(self):
        self.assertIs(self.policy.evaluate('price: unknown'), ContentVerdict.REJECTED)

    def test_captcha_page_without_keyword_is_rejected(self):
        self.assertIs(self.policy.evaluate('Enter the captcha below. ' * 40), ContentVerdict.REJECTED)

    def test_captcha_page_with_keyword_is_only_partial(self):
        html = 'To discuss automated access to Amazon data please contact us. product ' * 10
        self.assertIs(self.policy.evaluate(html), ContentVerdict.PARTIAL)

    def test_empty_body_is_rejected(self):
        self.assertIs(self.policy.evaluate(''), ContentVerdict.REJECTED)
        self.assertIs(self.policy.evaluate(None), ContentVerdict.REJECTED)

    def test_thresholds_are_configurable(self):
        strict = ContentAcceptancePolicy(full_min_length=5000)
        self.assertIsNot(strict.evaluate('a' * 600), ContentVerdict.FULL)


class TestProxyProviders(unittest.TestCase):

    def test_at_least_four_default_providers(self):
        self.assertGreaterEqual(len(DEFAULT_PROXY_PROVIDERS), 4)

    def test_build_url_encodes_target(self):
        provider = ProxyProvider('allorigins', 'https://api.allorigins.win/raw?url={url}')
        self.assertEqual(
            provider.build_url(TARGET_URL),
            'https://api.allorigins.win/raw?url=https%3A%2F%2Fwww.amazon.com%2Fdp%2FB000123456',
        )

    def test_build_url_without_encoding(self):
        provider = ProxyProvider('thingproxy', 'https://thingproxy.freeboard.io/fetch/{url}', encode=False)
        self.assertEqual(provider.build_url(TARGET_URL), 'https://thingproxy.freeboard.io/fetch/' + TARGET_URL)

    def test_select_providers_by_name(self):
        selected = select_providers(['codetabs', 'nope', 'allorigins'])
        self.assertEqual([provider.name for provider in selected], ['codetabs', 'allorigins'])

    def test_select_providers_defaults(self):
        self.assertEqual(select_providers([]), DEFAULT_PROXY_PROVIDERS)
        self.assertEqual(select_providers(['nope']), DEFAULT_PROXY_PROVIDERS)


class TestFetchViaProxy(unittest.TestCase):

    def test_first_good_proxy_wins(self):
        fetcher, session = make_fetcher(make_response(200, FULL_PAGE))
        self.assertEqual(fetcher.fetch_via_proxy(TARGET_URL), FULL_PAGE)
        self.assertEqual(session.get.call_count, 1)

    def test_sends_browser_headers_and_timeout(self):
        fetcher, session = make_fetcher(make_response(200, FULL_PAGE))
        fetcher.fetch_via_proxy(TARGET_URL)
        _, kwargs = session.get.call_args
        self.assertIn('Mozilla', kwargs['headers']['User-Agent'])
        self.assertIn('Accept-Language', kwargs['headers'])
        self.assertEqual(kwargs['timeout'], 5)

    def test_falls_through_bad_status_and_errors(self):
        fetcher, session = make_fetcher(
            make_response(503),
            requests.exceptions.ConnectionError('boom'),
            make_response(200, FULL_PAGE),
        )
        self.assertEqual(fetcher.fetch_via_proxy(TARGET_URL), FULL_PAGE)
        self.assertEqual(session.get.call_count, 3)
        called_urls = [call.args[0] for call in session.get.call_args_list]
        self.assertTrue(called_urls[0].startswith('https://api.allorigins.win/'))
        self.assertTrue(called_urls[1].startswith('https://corsproxy.io/'))
        self.assertTrue(called_urls[2].startswith('https://api.codetabs.com/'))

    def test_skips_unusable_content(self):
        fetcher, session = make_fetcher(
            make_response(200, '<html>Robot check</html>'),
            make_response(200, FULL_PAGE),
        )
        self.assertEqual(fetcher.fetch_via_proxy(TARGET_URL), FULL_PAGE)

    def test_accepts_partial_content(self):
        partial = 'product ' * 40
        fetcher, _ = make_fetcher(make_response(200, partial))
        self.assertEqual(fetcher.fetch_via_proxy(TARGET_URL), partial)

    def test_exhaustion_raises(self):
        fetcher, session = make_fetcher(
            make_response(500),
            requests.exceptions.Timeout(),
            make_response(200, 'tiny'),
            make_response(403),
        )
        with self.assertRaises(ProxyExhausted) as ctx:
            fetcher.fetch_via_proxy(TARGET_URL)
        self.assertEqual(len(ctx.exception.attempts), len(DEFAULT_PROXY_PROVIDERS))
        self.assertEqual(ctx.exception.attempts[1], ('corsproxy', 'timeout'))
        self.assertIn(TARGET_URL, str(ctx.exception))
        self.assertEqual(session.get.call_count, 4)


class TestSessionLifecycle(unittest.TestCase):

    @patch('web_content_fetcher.requests.Session')
    def test_owned_session_closed_on_exit(self, session_cls):
        with WebContentFetcher(providers=DEFAULT_PROXY_PROVIDERS) as fetcher:
            self.assertIs(fetcher.session, session_cls.return_value)
        session_cls.return_value.close.assert_called_once_with()

    @patch('web_content_fetcher.requests.Session')
    def test_module_fetch_closes_its_session(self, session_cls):
        session = session_cls.return_value
        session.get.side_effect = requests.exceptions.ConnectionError('down')
        with self.assertRaises(ProxyExhausted):
            fetch_via_proxy(TARGET_URL)
        session.close.assert_called_once_with()

    def test_injected_session_is_not_closed(self):
        session = Mock()
        WebContentFetcher(session=session, providers=DEFAULT_PROXY_PROVIDERS).close()
        session.close.assert_not_called()


if __name__ == '__main__':
    unittest.main()
