#!/usr/bin/env python3
"""
Product Extractor for the Deal URL Extractor

This module holds the field extractors that recover a product's title, prices,
images, description, category, brand, rating and availability from raw page HTML.

Every field is an ordered cascade of small strategy functions with the shape
``(html, store_config) -> value | None``. Store-specific strategies come first,
followed by generic cross-store ones, and the first strategy producing a valid
value wins (see ``first_non_null``). No strategy raises on malformed markup:
a missing match simply yields ``None``.
"""

import html as html_lib
import json
import logging
import math
import re
from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from bs4 import BeautifulSoup

from store_detector import Store, StoreConfig, config_for, parse_store

logger = logging.getLogger(__name__)

T = TypeVar('T')
Strategy = Callable[[str, StoreConfig], Optional[T]]
StoreRef = Union[Store, StoreConfig, str, None]

MAX_IMAGES = 10
MAX_DESCRIPTION_LENGTH = 500
MIN_DESCRIPTION_LENGTH = 20
MAX_RAW_DESCRIPTION_LENGTH = 2000
MIN_TITLE_LENGTH = 10


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def first_non_null(strategies: Iterable[Strategy], html: str, config: StoreConfig) -> Optional[T]:
    """Run strategies in order and return the first non-empty result"""
    for strategy in strategies:
        result = strategy(html, config)
        if result is not None and result != []:
            return result
    return None


def for_store(store: Store, strategy: Strategy) -> Strategy:
    """Restrict a strategy to pages of one store"""
    def gated(html: str, config: StoreConfig):
        if config.store is not store:
            return None
        return strategy(html, config)
    gated.__name__ = f"{store.value}_{getattr(strategy, '__name__', 'strategy')}"
    return gated


def _resolve_config(store: StoreRef) -> StoreConfig:
    if isinstance(store, StoreConfig):
        return store
    if isinstance(store, str):
        return config_for(parse_store(store))
    return config_for(store)


# Parsed trees live only as long as the outermost parsed_page() block
_page_cache = ContextVar('page_cache', default=None)


@contextmanager
def parsed_page():
    """Share parsed markup between extractors for the duration of one extraction"""
    if _page_cache.get() is not None:
        yield
        return
    token = _page_cache.set({})
    try:
        yield
    finally:
        _page_cache.reset(token)


def page_scoped(extractor: Callable) -> Callable:
    """Run a public extractor inside its own parsed_page() block"""
    @wraps(extractor)
    def wrapper(*args, **kwargs):
        with parsed_page():
            return extractor(*args, **kwargs)
    return wrapper


def _cached(kind: str, html: str, build: Callable[[str], Any]) -> Any:
    cache = _page_cache.get()
    if cache is None:
        return build(html)
    key = (kind, html)
    if key not in cache:
        cache[key] = build(html)
    return cache[key]


def _soup(html: str) -> BeautifulSoup:
    return _cached('soup', html, lambda markup: BeautifulSoup(markup, 'html.parser'))


def _collapse(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


def _clean_text(raw: Any) -> Optional[str]:
    """Unescape entities, drop tags and collapse whitespace"""
    if raw is None:
        return None
    text = html_lib.unescape(str(raw))
    text = re.sub(r'<[^>]*>', ' ', text)
    text = _collapse(text)
    return text or None


def _element_text(element) -> Optional[str]:
    if element is None:
        return None
    content = element.get('content') if element.name == 'meta' else None
    return _clean_text(content or element.get_text(separator=' ', strip=True))


def _meta_content(html: str, *names: str) -> Iterable[str]:
    """Yield meta tag contents matching a property or name, in the given order"""
    soup = _soup(html)
    for name in names:
        for attr in ('property', 'name', 'itemprop'):
            tag = soup.find('meta', attrs={attr: name})
            if tag and tag.get('content'):
                yield tag['content']
                break


def _regex_values(html: str, patterns: Sequence[str], limit: int = 3) -> Iterable[str]:
    """Yield the first capture group of up to `limit` matches per pattern"""
    for pattern in patterns:
        for count, match in enumerate(re.finditer(pattern, html, re.IGNORECASE | re.DOTALL)):
            if count >= limit:
                break
            value = next((group for group in match.groups() if group), None)
            if value:
                yield value


def _selector_values(html: str, selectors: Sequence[str]) -> Iterable[str]:
    soup = _soup(html)
    for selector in selectors:
        for element in soup.select(selector):
            text = _element_text(element)
            if text:
                yield text


def _first_valid(values: Iterable[Any], validate: Callable[[Any], Optional[T]]) -> Optional[T]:
    for value in values:
        accepted = validate(value)
        if accepted is not None:
            return accepted
    return None


def selector_strategy(field_name: str, validate: Callable[[str], Optional[T]]) -> Strategy:
    """Build a strategy from one of the StoreConfig selector lists"""
    def strategy(html: str, config: StoreConfig):
        return _first_valid(_selector_values(html, getattr(config, field_name)), validate)
    strategy.__name__ = f"{field_name}_strategy"
    return strategy


def regex_strategy(patterns: Sequence[str], validate: Callable[[str], Optional[T]]) -> Strategy:
    def strategy(html: str, config: StoreConfig):
        return _first_valid(_regex_values(html, patterns), validate)
    return strategy


def meta_strategy(names: Sequence[str], validate: Callable[[str], Optional[T]]) -> Strategy:
    def strategy(html: str, config: StoreConfig):
        return _first_valid(_meta_content(html, *names), validate)
    return strategy


# ---------------------------------------------------------------------------
# JSON-LD structured data
# ---------------------------------------------------------------------------

def _is_product_node(node: Dict) -> bool:
    node_type = node.get('@type')
    if isinstance(node_type, list):
        return 'Product' in node_type
    return node_type == 'Product'


def _json_ld_products(html: str) -> Tuple[Dict, ...]:
    """All schema.org Product nodes found in JSON-LD script blocks"""
    return _cached('json_ld', html, _parse_json_ld_products)


def _parse_json_ld_products(html: str) -> Tuple[Dict, ...]:
    products = []
    for script in _soup(html).find_all('script', type='application/ld+json'):
        try:
            data = json.loads(script.string or '')
        except (json.JSONDecodeError, TypeError):
            continue

        stack = [data]
        while stack:
            node = stack.pop(0)
            if isinstance(node, dict):
                if _is_product_node(node):
                    products.append(node)
                stack.extend(value for key, value in node.items() if key in ('@graph', 'itemListElement', 'item', 'mainEntity'))
            elif isinstance(node, list):
                stack.extend(node)
    return tuple(products)


def _ld_field(product: Dict, *path: str) -> Any:
    value: Any = product
    for key in path:
        if isinstance(value, list):
            value = value[0] if value else None
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def json_ld_strategy(extract: Callable[[Dict], Any], validate: Callable[[Any], Optional[T]]) -> Strategy:
    def strategy(html: str, config: StoreConfig):
        return _first_valid((extract(product) for product in _json_ld_products(html)), validate)
    return strategy


def _ld_name(value: Any) -> Any:
    """Brand-like fields may be plain strings or {"name": ...} objects"""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        return value.get('name')
    return value


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------

_GENERIC_TITLE_PATTERNS = [re.compile(pattern, re.IGNORECASE) for pattern in (
    r'^(?:www\.)?amazon(?:\.[a-z.]+)?$',
    r'^(?:www\.)?walmart(?:\.com)?$',
    r'^(?:www\.)?target(?:\.com)?$',
    r'^(?:www\.)?[\w-]+\.(?:com|net|org|co\.uk|ca|in|de|fr|io)$',
    r'^(?:www\.)?(?:walmart|target)(?:\.com)?\s*[:|-]',
    r'^amazon\.[a-z.]+\s*:\s*online shopping\b',
    r'spend less\.?\s*smile more',
    r'save money\.?\s*live better',
    r'expect more\.?\s*pay less',
    r'^loading',
    r'^error',
    r'^page not found',
    r'^404\b',
    r'^ref=.*detail.*$',
    r'^robot check',
    r'^access denied',
    r'^sorry\b',
    r'^just a moment',
    r'^attention required',
    r'captcha',
)]

_TITLE_AFFIXES = (
    r'\s+[-|:]\s+(?:walmart\.com|target|amazon\.com)\s*$',
    r'\s*\|\s*[\w .&\'-]{2,30}$',
)


def is_generic_title(title: Optional[str]) -> bool:
    if not title:
        return False
    text = title.strip()
    return any(pattern.search(text) for pattern in _GENERIC_TITLE_PATTERNS)


def clean_title(title: str) -> str:
    text = _collapse(title)
    text = re.sub(r'[^\w\s\-()\[\],.&\'+/]', '', text)
    return _collapse(text)


def _strip_store_affixes(title: str) -> str:
    amazon_prefix = re.match(r'^\s*amazon\.[a-z.]+\s*:\s*', title, re.IGNORECASE)
    if amazon_prefix:
        title = title[amazon_prefix.end():]
        # Amazon appends " : Category" after the product name
        title = re.sub(r'\s+:\s+[^:]{2,40}$', '', title)
    for affix in _TITLE_AFFIXES:
        title = re.sub(affix, '', title, flags=re.IGNORECASE)
    return title


def accept_title(raw: Any) -> Optional[str]:
    """Clean a title candidate, rejecting generic and too-short ones"""
    text = _clean_text(raw)
    if not text or is_generic_title(text):
        return None
    text = _strip_store_affixes(text)
    cleaned = clean_title(text)
    if len(cleaned) <= MIN_TITLE_LENGTH or is_generic_title(cleaned):
        return None
    return cleaned[:300].rstrip()


_TITLE_MARKUP_PATTERNS = (
    r'<title[^>]*>([^<]+)</title>',
    r'<h1[^>]*class=["\'][^"\']*product[^"\']*["\'][^>]*>([^<]+)</h1>',
    r'<span[^>]*id=["\']?productTitle["\']?[^>]*>([^<]+)</span>',
    r'<div[^>]*class=["\'][^"\']*product[^"\']*title[^"\']*["\'][^>]*>([^<]+)</div>',
)

_TITLE_JSON_PATTERNS = (
    r'"name"\s*:\s*"([^"]+)"',
    r'"title"\s*:\s*"([^"]+)"',
)

_AMAZON_TITLE_PATTERNS = (
    r'id=["\']productTitle["\'][^>]*>\s*([^<]+?)\s*<',
    r'"productTitle"\s*:\s*"([^"]+)"',
    r'<img[^>]*id=["\']landingImage["\'][^>]*alt=["\']([^"\']+)["\']',
    r'<img[^>]*alt=["\']([^"\']+)["\'][^>]*id=["\']landingImage["\']',
    r'(Amazon\s+Fire\s+HD\s+\d+[^<>"\']*?[Tt]ablet)',
    r'(Fire\s+HD\s+\d+[^<>"\']*?[Tt]ablet)',
    r'data-asin[^>]*>\s*([^<]*(?:Amazon|Fire|HD)[^<]*)<',
)


@page_scoped
def extract_amazon_title(html: str) -> Optional[str]:
    """Heuristic pass over product-name-shaped text on Amazon pages"""
    return _first_valid(_regex_values(html, _AMAZON_TITLE_PATTERNS), accept_title)


TITLE_STRATEGIES: List[Strategy] = [
    selector_strategy('title_selectors', accept_title),
    regex_strategy(_TITLE_MARKUP_PATTERNS, accept_title),
    meta_strategy(('og:title', 'title', 'twitter:title'), accept_title),
    json_ld_strategy(lambda product: product.get('name'), accept_title),
    regex_strategy(_TITLE_JSON_PATTERNS, accept_title),
    regex_strategy((r'<h1[^>]*>([^<]+)</h1>',), accept_title),
    for_store(Store.AMAZON, lambda html, config: extract_amazon_title(html)),
]


@page_scoped
def extract_title_intelligently(html: str, store: StoreRef = None) -> Optional[str]:
    """Extract the product title"""
    if not html:
        return None
    return first_non_null(TITLE_STRATEGIES, html, _resolve_config(store))


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

_MONEY = r'([\d,]+(?:\.\d{1,2})?)'
_DOLLAR_AMOUNT = re.compile(r'\$\s?(\d[\d,]*(?:\.\d{1,2})?)')


def normalize_price(raw: Any) -> Optional[str]:
    """Reduce a price candidate to a plain positive decimal string"""
    if raw is None or isinstance(raw, bool):
        return None
    match = re.search(r'\d[\d,]*(?:\.\d+)?', str(raw))
    if not match:
        return None
    cleaned = match.group(0).replace(',', '')
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return cleaned


def _price_selector_strategy(html: str, config: StoreConfig) -> Optional[str]:
    soup = _soup(html)
    for selector in config.price_selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        price = normalize_price(element.get('content') or element.get_text(separator=' ', strip=True))
        if price:
            return price
    return None


_AMAZON_PRICE_PATTERNS = (
    r'apexPriceToPay[^>]*>\s*<span[^>]*class=["\'][^"\']*\ba-offscreen\b[^"\']*["\'][^>]*>\s*\$\s?' + _MONEY,
    r'priceToPay[^>]*>\s*<span[^>]*class=["\'][^"\']*\ba-offscreen\b[^"\']*["\'][^>]*>\s*\$\s?' + _MONEY,
    r'"priceAmount"\s*:\s*"?([\d.]+)',
    r'class=["\'][^"\']*\ba-offscreen\b[^"\']*["\'][^>]*>\s*\$\s?' + _MONEY,
)

_AMAZON_ORIGINAL_PRICE_PATTERNS = (
    r'class=["\'][^"\']*\ba-text-strike\b[^"\']*["\'][^>]*>\s*\$\s?' + _MONEY,
    r'data-a-strike=["\']true["\'][^>]*>\s*<span[^>]*\ba-offscreen\b[^>]*>\s*\$\s?' + _MONEY,
    r'(?:list-price|listPrice|List Price)[^$<]{0,80}(?:<[^>]*>\s*)*\$\s?' + _MONEY,
    r'\b[Ww]as:?\s*\$\s?' + _MONEY,
)

_WALMART_PRICE_PATTERNS = (
    r'"currentPrice"\s*:\s*\{[^{}]*?"price"\s*:\s*([\d.]+)',
    r'"priceInfo"\s*:\s*\{[^{}]*?"price"\s*:\s*([\d.]+)',
)

_WALMART_ORIGINAL_PRICE_PATTERNS = (
    r'"wasPrice"\s*:\s*\{[^{}]*?"price"\s*:\s*([\d.]+)',
    r'"listPrice"\s*:\s*\{[^{}]*?"price"\s*:\s*([\d.]+)',
    r'class=["\'][^"\']*strike[^"\']*["\'][^>]*>\s*\$\s?' + _MONEY,
)

_TARGET_PRICE_PATTERNS = (
    r'"current_retail"\s*:\s*([\d.]+)',
    r'"formatted_current_price"\s*:\s*"\$\s?' + _MONEY,
)

_TARGET_ORIGINAL_PRICE_PATTERNS = (
    r'"reg_retail"\s*:\s*([\d.]+)',
    r'"formatted_comparison_price"\s*:\s*"(?:reg\s*)?\$\s?' + _MONEY,
    r'\b[Rr]eg\s*\$\s?' + _MONEY,
)

_GENERIC_PRICE_PATTERNS = (
    r'["\']price["\']\s*:\s*["\']?\$?' + _MONEY,
    r'["\']currentPrice["\']\s*:\s*["\']?\$?' + _MONEY,
    r'["\']salePrice["\']\s*:\s*["\']?\$?' + _MONEY,
    r'class=["\'][^"\']*price[^"\']*["\'][^>]*>\s*\$\s?' + _MONEY,
)

_GENERIC_ORIGINAL_PRICE_PATTERNS = (
    r'["\'](?:listPrice|regularPrice|originalPrice|wasPrice|compareAtPrice|compare_at_price)["\']\s*:\s*["\']?\$?' + _MONEY,
    r'class=["\'][^"\']*(?:was-price|compare-at|price--compare|regular-price|original-price|price-strike)[^"\']*["\'][^>]*>\s*\$?\s?' + _MONEY,
)

PRICE_STRATEGIES: List[Strategy] = [
    for_store(Store.AMAZON, regex_strategy(_AMAZON_PRICE_PATTERNS, normalize_price)),
    for_store(Store.WALMART, regex_strategy(_WALMART_PRICE_PATTERNS, normalize_price)),
    for_store(Store.TARGET, regex_strategy(_TARGET_PRICE_PATTERNS, normalize_price)),
    _price_selector_strategy,
    meta_strategy(('product:price:amount', 'og:price:amount', 'price'), normalize_price),
    json_ld_strategy(lambda product: _ld_field(product, 'offers', 'price') or _ld_field(product, 'offers', 'lowPrice'),
                     normalize_price),
    regex_strategy(_GENERIC_PRICE_PATTERNS, normalize_price),
]

ORIGINAL_PRICE_STRATEGIES: List[Strategy] = [
    for_store(Store.AMAZON, regex_strategy(_AMAZON_ORIGINAL_PRICE_PATTERNS, normalize_price)),
    for_store(Store.WALMART, regex_strategy(_WALMART_ORIGINAL_PRICE_PATTERNS, normalize_price)),
    for_store(Store.TARGET, regex_strategy(_TARGET_ORIGINAL_PRICE_PATTERNS, normalize_price)),
    regex_strategy(_GENERIC_ORIGINAL_PRICE_PATTERNS, normalize_price),
]


def _dollar_amounts(html: str) -> List[str]:
    """Distinct dollar amounts in the document, cheapest first"""
    amounts: Dict[float, str] = {}
    for raw in _DOLLAR_AMOUNT.findall(html):
        price = normalize_price(raw)
        if price:
            amounts.setdefault(float(price), price)
    return [amounts[value] for value in sorted(amounts)]


@page_scoped
def extract_price_intelligently(html: str, store: StoreRef = None) -> Tuple[Optional[str], Optional[str]]:
    """Extract (price, original_price) as plain decimal strings"""
    if not html:
        return None, None

    config = _resolve_config(store)
    price = first_non_null(PRICE_STRATEGIES, html, config)
    original_price = first_non_null(ORIGINAL_PRICE_STRATEGIES, html, config)

    if price is None or original_price is None:
        amounts = _dollar_amounts(html)
        if price is None and amounts:
            price = amounts[0]
        if original_price is None and len(amounts) > 1 and amounts[-1] != price:
            original_price = amounts[-1]

    # A "was" price at or below the current price is noise
    if price and original_price and float(original_price) <= float(price):
        original_price = None

    return price, original_price


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

_IMAGE_EXTENSION = re.compile(r'\.(?:jpe?g|png|webp|gif|avif)(?![a-z])', re.IGNORECASE)
_IMAGE_ATTRIBUTES = ('data-old-hires', 'data-src', 'data-lazy-src', 'data-zoom-image', 'data-large', 'src')
_GALLERY_CLASS = re.compile(r'gallery|carousel|slider|slide|thumbnail|product', re.IGNORECASE)

_AMAZON_IMAGE_PATTERNS = (
    r'"hiRes"\s*:\s*"((?:https?:)?//[^"]+)"',
    r'"large"\s*:\s*"((?:https?:)?//[^"]+)"',
    r'(https://m\.media-amazon\.com/images/I/[A-Za-z0-9%+._,-]+\.(?:jpg|jpeg|png|webp))',
)


def normalize_image_url(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    url = html_lib.unescape(raw.strip()).replace('\\/', '/')
    if url.startswith('//'):
        url = 'https:' + url
    if not url.lower().startswith('http') or re.search(r'\s', url):
        return None
    if not _IMAGE_EXTENSION.search(url):
        return None
    return url


def upgrade_amazon_image(url: str) -> str:
    """Rewrite an Amazon thumbnail URL to its 1500px rendition"""
    if 'media-amazon.com' not in url and 'images-amazon.com' not in url:
        return url
    return re.sub(r'\._[A-Za-z0-9_,]+_\.(jpe?g|png|webp)', r'._AC_SL1500_.\1', url)


def _image_sources(element) -> List[str]:
    sources = [element.get(attr) for attr in _IMAGE_ATTRIBUTES if element.get(attr)]
    dynamic = element.get('data-a-dynamic-image')
    if dynamic:
        try:
            sources.extend(json.loads(html_lib.unescape(dynamic)).keys())
        except (json.JSONDecodeError, AttributeError):
            pass
    return sources


def _store_image_candidates(html: str, config: StoreConfig) -> List[str]:
    soup = _soup(html)
    candidates = []
    for selector in config.image_selectors:
        for element in soup.select(selector):
            images = [element] if element.name == 'img' else element.find_all('img')
            for image in images:
                candidates.extend(_image_sources(image))
    return candidates


def _amazon_image_candidates(html: str, config: StoreConfig) -> List[str]:
    if config.store is not Store.AMAZON:
        return []
    return list(_regex_values(html, _AMAZON_IMAGE_PATTERNS, limit=MAX_IMAGES))


def _meta_image_candidates(html: str, config: StoreConfig) -> List[str]:
    candidates = list(_meta_content(html, 'og:image', 'og:image:secure_url', 'twitter:image', 'twitter:image:src'))
    for link in _soup(html).find_all('link', attrs={'itemprop': 'image'}):
        if link.get('href'):
            candidates.append(link['href'])
    return candidates


def _json_ld_image_candidates(html: str, config: StoreConfig) -> List[str]:
    candidates = []
    for product in _json_ld_products(html):
        images = product.get('image')
        if not isinstance(images, list):
            images = [images]
        for image in images:
            if isinstance(image, dict):
                image = image.get('url') or image.get('contentUrl')
            if isinstance(image, str):
                candidates.append(image)
    return candidates


def _gallery_image_candidates(html: str, config: StoreConfig) -> List[str]:
    candidates = []
    for image in _soup(html).find_all('img'):
        classes = ' '.join(image.get('class') or [])
        parent = image.parent
        parent_classes = ' '.join(parent.get('class') or []) if parent is not None and parent.name else ''
        if _GALLERY_CLASS.search(classes) or _GALLERY_CLASS.search(parent_classes):
            candidates.extend(_image_sources(image))
    return candidates


IMAGE_SOURCES: List[Callable[[str, StoreConfig], List[str]]] = [
    _store_image_candidates,
    _amazon_image_candidates,
    _meta_image_candidates,
    _json_ld_image_candidates,
    _gallery_image_candidates,
]


@page_scoped
def extract_images_intelligently(html: str, store: StoreRef = None) -> List[str]:
    """Collect up to ten distinct product image URLs in discovery order"""
    if not html:
        return []

    config = _resolve_config(store)
    images: List[str] = []
    for source in IMAGE_SOURCES:
        for candidate in source(html, config):
            url = normalize_image_url(candidate)
            if not url:
                continue
            if config.store is Store.AMAZON:
                url = upgrade_amazon_image(url)
            if url not in images:
                images.append(url)
            if len(images) >= MAX_IMAGES:
                return images
    return images


# ---------------------------------------------------------------------------
# Description
# ---------------------------------------------------------------------------

def accept_description(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    lines = [_clean_text(line) for line in html_lib.unescape(raw).splitlines()]
    text = '\n'.join(line for line in lines if line)
    if not MIN_DESCRIPTION_LENGTH <= len(text) <= MAX_RAW_DESCRIPTION_LENGTH:
        return None
    return text[:MAX_DESCRIPTION_LENGTH].rstrip()


def _amazon_feature_bullets(html: str, config: StoreConfig) -> Optional[str]:
    bullets = []
    for item in _soup(html).select('#feature-bullets li'):
        text = _element_text(item)
        if text and not text.lower().startswith('make sure this fits'):
            bullets.append(f"• {text}")
    if not bullets:
        return None
    return accept_description('\n'.join(bullets))


DESCRIPTION_STRATEGIES: List[Strategy] = [
    for_store(Store.AMAZON, _amazon_feature_bullets),
    selector_strategy('description_selectors', accept_description),
    meta_strategy(('description', 'og:description', 'twitter:description'), accept_description),
    json_ld_strategy(lambda product: product.get('description'), accept_description),
    regex_strategy((r'"description"\s*:\s*"([^"]{20,2000})"',), accept_description),
]


def synthesize_description(title: Optional[str], store_name: Optional[str]) -> Optional[str]:
    if title and store_name:
        return f"Great {store_name} deal! {title} - Limited time offer available now."
    if title:
        return f"Amazing deal on {title}! Don't miss out on this limited time offer."
    return None


@page_scoped
def extract_description(html: str, store: StoreRef = None, title: Optional[str] = None) -> Optional[str]:
    """Extract the product description, or synthesize one from the title"""
    config = _resolve_config(store)
    description = first_non_null(DESCRIPTION_STRATEGIES, html, config) if html else None
    if description:
        return description
    store_name = config.name if config.store is not Store.GENERIC else None
    return synthesize_description(title, store_name)


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------

CATEGORY_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (('gaming', 'xbox', 'playstation', 'nintendo'), 'Video Games'),
    (('electronics', 'laptop', 'laptops', 'computer', 'computers', 'headphones', 'tablet', 'camera', 'monitor', 'echo', 'kindle'), 'Electronics'),
    (('kitchen', 'cookware', 'appliances', 'blender', 'coffee'), 'Home & Kitchen'),
    (('furniture', 'decor', 'bedding', 'hangers', 'storage'), 'Home'),
    (('toys', 'toy', 'lego', 'puzzle', 'games'), 'Toys & Games'),
    (('clothing', 'apparel', 'fashion', 'shoes', 'shirt', 'dress', 'jacket', 'sneakers'), 'Clothing, Shoes & Jewelry'),
    (('beauty', 'makeup', 'skincare', 'cosmetics'), 'Beauty & Personal Care'),
    (('health', 'vitamins', 'supplements', 'household'), 'Health & Household'),
    (('sports', 'outdoors', 'fitness', 'camping'), 'Sports & Outdoors'),
    (('books', 'book'), 'Books'),
    (('grocery', 'snacks', 'food'), 'Grocery'),
    (('pet', 'pets', 'dog'), 'Pet Supplies'),
    (('baby', 'diapers'), 'Baby'),
    (('automotive',), 'Automotive'),
    (('tools', 'hardware', 'drill'), 'Tools & Home Improvement'),
    (('office', 'stationery'), 'Office Products'),
)

_CATEGORY_STOPWORDS = {
    'home', 'home page', 'shop', 'products', 'all', 'all departments', 'back to results', 'see more', 'target', 'walmart',
}


def infer_category_from_text(text: Optional[str]) -> Optional[str]:
    """Map keywords in a URL or product name to a coarse category"""
    if not text:
        return None
    tokens = set(re.split(r'[^a-z0-9]+', text.lower()))
    for keywords, category in CATEGORY_KEYWORDS:
        if tokens.intersection(keywords):
            return category
    return None


def accept_category(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    text = _clean_text(raw.split('>')[0])
    if not text or not 2 <= len(text) <= 60 or not re.search(r'[A-Za-z]', text):
        return None
    if text.lower() in _CATEGORY_STOPWORDS:
        return None
    return text


def _walmart_category_path(html: str, config: StoreConfig) -> Optional[str]:
    for path in _regex_values(html, (r'"categoryPathName"\s*:\s*"([^"]+)"',)):
        for segment in path.split('/'):
            category = accept_category(segment)
            if category:
                return category
    return None


def _breadcrumb_links(html: str, config: StoreConfig) -> Optional[str]:
    links = _selector_values(html, ('.breadcrumb a', '[itemprop="itemListElement"] a'))
    return _first_valid(links, accept_category)


CATEGORY_STRATEGIES: List[Strategy] = [
    selector_strategy('category_selectors', accept_category),
    for_store(Store.WALMART, _walmart_category_path),
    json_ld_strategy(lambda product: product.get('category'), accept_category),
    regex_strategy((r'"@type"\s*:\s*"ListItem"[^{}]*?"name"\s*:\s*"([^"]+)"',
                    r'"category"\s*:\s*"([^"]+)"'), accept_category),
    meta_strategy(('product:category', 'og:category'), accept_category),
    _breadcrumb_links,
]


@page_scoped
def extract_category(html: str, store: StoreRef = None, url: Optional[str] = None) -> Optional[str]:
    """Extract the product category; URL keywords take precedence"""
    category = infer_category_from_text(url)
    if category:
        return category
    if not html:
        return None
    return first_non_null(CATEGORY_STRATEGIES, html, _resolve_config(store))


# ---------------------------------------------------------------------------
# Brand
# ---------------------------------------------------------------------------

_BRAND_SHAPE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 &'.,+\-]{0,49}$")
_BRAND_DENYLIST = re.compile(
    r'\b(?:customer|customers|visit|click|store|review|reviews|ratings?|see more|shop all|undefined|null|n/a|brand)\b',
    re.IGNORECASE,
)


def accept_brand(raw: Any) -> Optional[str]:
    text = _clean_text(_ld_name(raw))
    if not text:
        return None
    text = re.sub(r'^(?:visit\s+the\s+|brand\s*:\s*|by\s+)', '', text, flags=re.IGNORECASE)
    text = re.sub(r'\s+store$', '', text, flags=re.IGNORECASE).strip()
    if not _BRAND_SHAPE.match(text) or _BRAND_DENYLIST.search(text):
        return None
    return text


BRAND_STRATEGIES: List[Strategy] = [
    selector_strategy('brand_selectors', accept_brand),
    for_store(Store.AMAZON, regex_strategy((
        r'id=["\']bylineInfo["\'][^>]*>\s*([^<]+?)\s*<',
        r'Brand\s*:?\s*</span>\s*</td>\s*<td[^>]*>\s*<span[^>]*>\s*([^<]+?)\s*<',
    ), accept_brand)),
    json_ld_strategy(lambda product: product.get('brand'), accept_brand),
    meta_strategy(('product:brand', 'og:brand', 'brand'), accept_brand),
    regex_strategy((
        r'"brand"\s*:\s*\{[^{}]*?"name"\s*:\s*"([^"]+)"',
        r'"brand"\s*:\s*"([^"]+)"',
        r'"brandName"\s*:\s*"([^"]+)"',
        r'itemprop=["\']brand["\'][^>]*>\s*(?:<[^>]+>\s*)*([^<]+?)\s*<',
    ), accept_brand),
]


@page_scoped
def extract_brand(html: str, store: StoreRef = None) -> Optional[str]:
    """Extract the product brand"""
    if not html:
        return None
    return first_non_null(BRAND_STRATEGIES, html, _resolve_config(store))


# ---------------------------------------------------------------------------
# Rating and review count
# ---------------------------------------------------------------------------

def accept_rating(raw: Any) -> Optional[str]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value) or not 0 <= value <= 5:
        return None
    return f"{value:g}"


def accept_review_count(raw: Any) -> Optional[str]:
    if raw is None or isinstance(raw, bool):
        return None
    digits = re.sub(r'\D', '', str(raw))
    if not digits:
        return None
    return str(int(digits))


RATING_STRATEGIES: List[Strategy] = [
    for_store(Store.AMAZON, regex_strategy((r'(\d(?:\.\d+)?)\s+out\s+of\s+5\s+stars?',), accept_rating)),
    for_store(Store.WALMART, regex_strategy((r'"averageRating"\s*:\s*([\d.]+)',), accept_rating)),
    for_store(Store.TARGET, regex_strategy((r'"rating"\s*:\s*\{[^{}]*?"average"\s*:\s*([\d.]+)',), accept_rating)),
    json_ld_strategy(lambda product: _ld_field(product, 'aggregateRating', 'ratingValue'), accept_rating),
    regex_strategy((
        r'"ratingValue"\s*:\s*"?([\d.]+)',
        r'itemprop=["\']ratingValue["\'][^>]*content=["\']([\d.]+)',
        r'content=["\']([\d.]+)["\'][^>]*itemprop=["\']ratingValue',
        r'(\d(?:\.\d+)?)\s+out\s+of\s+5\b',
    ), accept_rating),
]

REVIEW_COUNT_STRATEGIES: List[Strategy] = [
    for_store(Store.AMAZON, regex_strategy((
        r'id=["\']acrCustomerReviewText["\'][^>]*>\s*([\d,]+)',
        r'([\d,]+)\s+(?:global\s+)?ratings\b',
    ), accept_review_count)),
    for_store(Store.WALMART, regex_strategy((
        r'"numberOfReviews"\s*:\s*(\d+)',
        r'"totalReviewCount"\s*:\s*(\d+)',
    ), accept_review_count)),
    for_store(Store.TARGET, regex_strategy((r'"rating"\s*:\s*\{[^{}]*?"count"\s*:\s*(\d+)',), accept_review_count)),
    json_ld_strategy(lambda product: _ld_field(product, 'aggregateRating', 'reviewCount')
                     or _ld_field(product, 'aggregateRating', 'ratingCount'), accept_review_count),
    regex_strategy((
        r'"reviewCount"\s*:\s*"?([\d,]+)',
        r'"ratingCount"\s*:\s*"?([\d,]+)',
        r'itemprop=["\']reviewCount["\'][^>]*content=["\']([\d,]+)',
        r'([\d,]+)\s+(?:customer\s+)?(?:reviews|ratings)\b',
    ), accept_review_count),
]


@page_scoped
def extract_rating(html: str, store: StoreRef = None) -> Tuple[Optional[str], Optional[str]]:
    """Extract (rating, review_count); rating lies in [0, 5]"""
    if not html:
        return None, None
    config = _resolve_config(store)
    return (
        first_non_null(RATING_STRATEGIES, html, config),
        first_non_null(REVIEW_COUNT_STRATEGIES, html, config),
    )


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------

_AVAILABILITY_LABELS = {
    'instock': 'In Stock',
    'outofstock': 'Out of Stock',
    'soldout': 'Out of Stock',
    'preorder': 'Pre-order',
    'presale': 'Pre-order',
    'backorder': 'Backorder',
    'limitedavailability': 'Limited Availability',
    'discontinued': 'Discontinued',
    'onlineonly': 'Online Only',
    'instoreonly': 'In Store Only',
    'currentlyunavailable': 'Currently Unavailable',
}

_AVAILABILITY_WORDS = re.compile(r'stock|available|unavailable|ships|order|left|sold out|pickup|delivery', re.IGNORECASE)


def accept_availability(raw: Any) -> Optional[str]:
    text = _clean_text(raw)
    if not text:
        return None
    text = re.sub(r'^https?://schema\.org/', '', text, flags=re.IGNORECASE).strip(' .')
    key = re.sub(r'[\s_\-]', '', text.lower())
    if key in _AVAILABILITY_LABELS:
        return _AVAILABILITY_LABELS[key]
    if 2 < len(text) <= 100 and _AVAILABILITY_WORDS.search(text):
        return text[0].upper() + text[1:]
    return None


def _itemprop_availability(html: str, config: StoreConfig) -> Optional[str]:
    for tag in _soup(html).find_all(attrs={'itemprop': 'availability'}):
        value = tag.get('href') or tag.get('content') or tag.get_text(strip=True)
        availability = accept_availability(value)
        if availability:
            return availability
    return None


AVAILABILITY_STRATEGIES: List[Strategy] = [
    selector_strategy('availability_selectors', accept_availability),
    for_store(Store.WALMART, regex_strategy((r'"availabilityStatus"\s*:\s*"([A-Z_]+)"',), accept_availability)),
    for_store(Store.TARGET, regex_strategy((r'"availability_status"\s*:\s*"([A-Z_]+)"',), accept_availability)),
    json_ld_strategy(lambda product: _ld_field(product, 'offers', 'availability'), accept_availability),
    meta_strategy(('product:availability', 'og:availability'), accept_availability),
    _itemprop_availability,
    regex_strategy((r'"availability"\s*:\s*"([^"]+)"',), accept_availability),
    regex_strategy((r'\b(only \d+ left in stock|out of stock|currently unavailable|sold out|in stock)\b',),
                   accept_availability),
]


@page_scoped
def extract_availability(html: str, store: StoreRef = None) -> Optional[str]:
    """Extract a display string for stock availability"""
    if not html:
        return None
    return first_non_null(AVAILABILITY_STRATEGIES, html, _resolve_config(store))
