#!/usr/bin/env python3
"""
URL Data Extraction Service for deal listings

Turns a pasted product URL into a normalized product record: detect the store,
fetch the page through the proxy cascade, run the field extractors and fall back
to what the URL alone tells us when the page cannot be fetched or is junk.
"""

import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Union
from urllib.parse import unquote, urlparse

from product_extractor import (
    MAX_IMAGES,
    extract_availability,
    extract_brand,
    extract_category,
    extract_description,
    extract_images_intelligently,
    extract_price_intelligently,
    extract_rating,
    extract_title_intelligently,
    infer_category_from_text,
    is_generic_title,
    parsed_page,
    synthesize_description,
)
from store_detector import STORE_CONFIGS, Store, StoreMatch, detect_store, parse_store
from web_content_fetcher import ProxyExhausted, WebContentFetcher

logger = logging.getLogger(__name__)

ULTIMATE_FALLBACK_TITLE = "Deal Alert"
ULTIMATE_FALLBACK_DESCRIPTION = "Check out this amazing deal!"

MODAL_STORES = (Store.AMAZON, Store.WALMART, Store.TARGET)

STORE_COLORS = {
    Store.AMAZON: '#FF9900',
    Store.WALMART: '#0071CE',
    Store.TARGET: '#CC0000',
}
DEFAULT_STORE_COLOR = '#007AFF'

MODAL_FIELDS = (
    ('Product Title', 'Enter product title'),
    ('Sale Price', '$0.00'),
    ('Original Price', '$0.00'),
    ('Product Image URL', 'https://'),
    ('Description', 'Product description...'),
)


@dataclass
class ExtractedProductRecord:
    """Normalized product data extracted for one URL"""
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    images: List[str] = field(default_factory=list)
    price: Optional[str] = None
    original_price: Optional[str] = None
    store: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    rating: Optional[str] = None
    review_count: Optional[str] = None
    availability: Optional[str] = None
    coupon_code: Optional[str] = None  # reserved, nothing populates it yet
    is_store_detected: bool = False

    def __post_init__(self):
        unique: List[str] = []
        for url in self.images or []:
            if url not in unique:
                unique.append(url)
        self.images = unique[:MAX_IMAGES]
        if self.image is None and self.images:
            self.image = self.images[0]

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def ultimate_fallback(cls) -> 'ExtractedProductRecord':
        return cls(title=ULTIMATE_FALLBACK_TITLE, description=ULTIMATE_FALLBACK_DESCRIPTION)


class ExtractionObserver:
    """Receives stage outcomes of an extraction run"""

    def on_stage(self, stage: str, outcome: str, **details) -> None:
        pass


class LoggingObserver(ExtractionObserver):
    """Narrates extraction stages to the module logger"""

    ICONS = {
        'detect_store': '🏪',
        'fetch': '🌐',
        'extract': '🤖',
        'assemble': '🧩',
        'fallback': '🔁',
        'error': '❌',
    }

    def on_stage(self, stage: str, outcome: str, **details) -> None:
        extra = ', '.join(f"{key}={value}" for key, value in details.items())
        message = f"{self.ICONS.get(stage, '•')} {stage}: {outcome}" + (f" ({extra})" if extra else '')
        if stage == 'error':
            logger.error(message)
        else:
            logger.info(message)


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

_ASIN = re.compile(r'/(?:dp|gp/product|gp/aw/d)/([A-Z0-9]{10})', re.IGNORECASE)
_PATH_NOISE = {'product', 'products', 'item', 'items', 'p', 'ip', 'pd', 'pdp', 'dp', 'gp', 'shop', 'buy',
               'catalog', 'collection', 'collections', '-', 'ref'}


def is_valid_url_format(url: str) -> bool:
    """True when the URL parses with a scheme and a host"""
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
        parsed.port
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def _path_segments(url: str) -> List[str]:
    try:
        path = urlparse(url).path
    except ValueError:
        return []
    return [unquote(segment) for segment in path.split('/') if segment]


def _humanize_slug(slug: str) -> Optional[str]:
    words = [word for word in re.split(r'[-_+\s]+', slug) if word]
    if not words:
        return None
    name = ' '.join(word[:1].upper() + word[1:] for word in words)
    return name if 3 <= len(name) <= 150 else None


def extract_asin(url: str) -> Optional[str]:
    match = _ASIN.search(url or '')
    return match.group(1).upper() if match else None


def amazon_slug_title(url: str) -> Optional[str]:
    """Humanize the path segment that precedes Amazon's /dp/ marker"""
    segments = _path_segments(url)
    for index, segment in enumerate(segments):
        if segment.lower() == 'dp' and index > 0:
            return _humanize_slug(segments[index - 1])
    return None


def title_from_path(url: str) -> Optional[str]:
    """Best readable product name hiding in a URL path"""
    for segment in reversed(_path_segments(url)):
        segment = re.sub(r'\.(?:html?|php|aspx?|jsp)$', '', segment, flags=re.IGNORECASE)
        if segment.lower() in _PATH_NOISE or segment.lower().startswith('ref='):
            continue
        # Skip pure ids such as 123456 or A-12345678
        if re.fullmatch(r'(?:[A-Za-z]-?)?\d+', segment) or not re.search(r'[A-Za-z]{3,}', segment):
            continue
        name = _humanize_slug(segment)
        if name:
            return name
    return None


def infer_brand_from_title(title: Optional[str], match: StoreMatch) -> Optional[str]:
    if not title:
        return None
    lowered = title.lower()
    if lowered.startswith(('amazon basics', 'amazonbasics')):
        return 'Amazon Basics'
    if lowered.startswith('amazon essentials'):
        return 'Amazon Essentials'
    if match.store is Store.AMAZON and re.match(r'^(?:amazon\s+)?(?:echo|kindle|fire tv|fire hd|ring|blink)\b', lowered):
        return 'Amazon'
    return None


def strip_currency(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = re.sub(r'[^\d.]', '', str(value))
    return cleaned or None


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def build_url_fallback(url: str, match: Optional[StoreMatch] = None) -> ExtractedProductRecord:
    """Synthesize a partial record from the URL alone"""
    match = match or detect_store(url)
    store_name = match.config.name if match.config else None
    record = ExtractedProductRecord(store=store_name, is_store_detected=match.store is not None)

    if match.store is Store.AMAZON:
        title = amazon_slug_title(url)
        asin = extract_asin(url)
    else:
        title = title_from_path(url)
        asin = None

    if title:
        record.title = title
        record.brand = infer_brand_from_title(title, match)
        record.category = infer_category_from_text(title)
        record.description = synthesize_description(title, store_name)
    elif store_name:
        record.title = f"{store_name} Product Deal"
        record.description = f"Great deal from {store_name}! Check out this amazing offer."
        if asin:
            record.description += f" (ASIN {asin})"
    else:
        record.title = 'Great Deal'
        record.description = 'Amazing deal! Limited time offer.'

    return record


def extract_from_html(html: str, url: str, match: StoreMatch) -> ExtractedProductRecord:
    """Run every field extractor over fetched HTML"""
    store = match.store
    # One parse of the page is shared by every extractor and dropped on exit
    with parsed_page():
        title = extract_title_intelligently(html, store)
        price, original_price = extract_price_intelligently(html, store)
        rating, review_count = extract_rating(html, store)

        return ExtractedProductRecord(
            title=title,
            description=extract_description(html, store, title),
            images=extract_images_intelligently(html, store),
            price=price,
            original_price=original_price,
            store=match.config.name if match.config else None,
            category=extract_category(html, store, url),
            brand=extract_brand(html, store),
            rating=rating,
            review_count=review_count,
            availability=extract_availability(html, store),
            is_store_detected=match.store is not None,
        )


def has_real_data(record: ExtractedProductRecord) -> bool:
    """Whether the HTML produced anything better than a URL-derived guess"""
    if record.price or record.original_price or record.images:
        return True
    title = record.title
    return bool(title and len(title) > 10 and not is_generic_title(title))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_url_data(url: str,
                     fetcher: Optional[WebContentFetcher] = None,
                     observer: Optional[ExtractionObserver] = None) -> ExtractedProductRecord:
    """Extract product data for a URL; never raises"""
    observer = observer or LoggingObserver()
    try:
        if not is_valid_url_format(url):
            observer.on_stage('detect_store', 'invalid_url')
            return ExtractedProductRecord.ultimate_fallback()

        match = detect_store(url)
        observer.on_stage('detect_store', match.key or 'generic')

        owns_fetcher = fetcher is None
        fetcher = fetcher or WebContentFetcher()
        try:
            html = fetcher.fetch_via_proxy(url)
        except ProxyExhausted as e:
            observer.on_stage('fetch', 'exhausted', attempts=len(e.attempts))
            observer.on_stage('fallback', 'url_only', reason='fetch_failed')
            return build_url_fallback(url, match)
        except Exception as e:
            logger.warning(f"⚠️ Proxy fetch failed unexpectedly for {url}: {e}")
            observer.on_stage('fetch', 'failed', error=type(e).__name__)
            observer.on_stage('fallback', 'url_only', reason='fetch_failed')
            return build_url_fallback(url, match)
        finally:
            if owns_fetcher:
                fetcher.close()
        observer.on_stage('fetch', 'ok', length=len(html))

        record = extract_from_html(html, url, match)
        observer.on_stage('extract', 'done', title=bool(record.title), price=bool(record.price),
                          images=len(record.images))

        # Only Amazon URLs carry enough structure to beat a junk page
        if not has_real_data(record) and match.store is Store.AMAZON:
            observer.on_stage('assemble', 'no_real_data')
            observer.on_stage('fallback', 'url_only', reason='no_real_data')
            return build_url_fallback(url, match)

        observer.on_stage('assemble', 'accepted')
        return record

    except Exception as e:
        logger.exception(f"URL extraction failed for {url!r}")
        observer.on_stage('error', type(e).__name__, message=str(e))
        return ExtractedProductRecord.ultimate_fallback()


def validate_url(url: str,
                 fetcher: Optional[WebContentFetcher] = None,
                 observer: Optional[ExtractionObserver] = None) -> Dict:
    """Validate URL syntax and return extracted data ready for form binding"""
    if not is_valid_url_format(url):
        return {'is_reachable': False, 'error': 'Invalid URL format'}

    try:
        record = extract_url_data(url, fetcher=fetcher, observer=observer)
    except Exception as e:
        logger.error(f"URL validation failed: {e}")
        return {'is_reachable': False, 'error': str(e) or 'Validation failed'}

    data = record.to_dict()
    data['price'] = strip_currency(data['price'])
    data['original_price'] = strip_currency(data['original_price'])
    return {'is_reachable': True, **data}


def should_use_store_modal(url: str) -> Dict:
    """Whether a store-specific entry form exists for this URL's store"""
    match = detect_store(url)
    return {
        'use_modal': match.store in MODAL_STORES,
        'store': match.key,
    }


def get_store_modal_config(store: Union[Store, str, None]) -> Optional[Dict]:
    """UI hints (logo, accent color, field labels) for a store's entry form"""
    if not isinstance(store, Store):
        store = parse_store(store)
    if store is None or store is Store.GENERIC:
        return None

    config = STORE_CONFIGS[store]
    return {
        'name': config.name,
        'logo': f"https://logo.clearbit.com/{config.domains[0]}",
        'color': STORE_COLORS.get(store, DEFAULT_STORE_COLOR),
        'fields': [{'label': label, 'placeholder': placeholder} for label, placeholder in MODAL_FIELDS],
    }
