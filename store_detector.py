#!/usr/bin/env python3
"""
Store Detector for the Deal URL Extractor

Classifies a product URL against the table of known storefronts and hands
back the selector configuration the field extractors use for that store.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class Store(Enum):
    AMAZON = "amazon"
    WALMART = "walmart"
    TARGET = "target"
    GENERIC = "generic"


@dataclass(frozen=True)
class StoreConfig:
    """Static extraction configuration for one storefront"""
    store: Store
    name: str
    domains: Tuple[str, ...] = ()
    title_selectors: Tuple[str, ...] = ()
    price_selectors: Tuple[str, ...] = ()
    image_selectors: Tuple[str, ...] = ()
    description_selectors: Tuple[str, ...] = ()
    category_selectors: Tuple[str, ...] = ()
    brand_selectors: Tuple[str, ...] = ()
    availability_selectors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StoreMatch:
    """Result of store detection; both fields are None for unknown stores"""
    store: Optional[Store] = None
    config: Optional[StoreConfig] = None

    @property
    def key(self) -> Optional[str]:
        return self.store.value if self.store else None


# Declaration order is the detection order
STORE_CONFIGS: Dict[Store, StoreConfig] = {
    Store.AMAZON: StoreConfig(
        store=Store.AMAZON,
        name="Amazon",
        domains=("amazon.com", "amazon.in", "amazon.co.uk", "amazon.de", "amazon.fr", "amzn."),
        title_selectors=(
            "#productTitle",
            ".product-title",
            '[data-automation-id="product-title"]',
            "h1.a-size-large",
            ".a-size-large.product-title-word-break",
        ),
        price_selectors=(
            ".a-price.a-text-price.a-size-medium.apexPriceToPay",
            "#corePrice_feature_div .a-offscreen",
            ".a-offscreen",
            ".a-price-whole",
            '[data-automation-id="list-price"]',
            ".a-price-range",
        ),
        image_selectors=(
            "#landingImage",
            "#imgBlkFront",
            ".a-dynamic-image",
            '[data-automation-id="product-image"]',
            ".imgTagWrapper img",
            "#altImages img",
        ),
        description_selectors=(
            "#feature-bullets ul",
            "#productDescription",
            ".a-unordered-list.a-vertical.a-spacing-mini",
            '[data-automation-id="product-overview"]',
        ),
        category_selectors=(
            "#wayfinding-breadcrumbs_feature_div li a",
            "#nav-subnav .nav-a-content",
        ),
        brand_selectors=(
            "#bylineInfo",
            "tr.po-brand td.a-span9 span",
        ),
        availability_selectors=(
            "#availability span",
            "#availability",
            "#outOfStock",
        ),
    ),
    Store.WALMART: StoreConfig(
        store=Store.WALMART,
        name="Walmart",
        domains=("walmart.com", "walmart.ca"),
        title_selectors=(
            '[data-automation-id="product-title"]',
            'h1[data-testid="product-title"]',
            "h1#main-title",
            ".prod-ProductTitle",
        ),
        price_selectors=(
            '[itemprop="price"]',
            '[data-testid="price-current"]',
            ".price-current",
            ".price-group",
        ),
        image_selectors=(
            '[data-testid="hero-image"]',
            '[data-testid="media-thumbnail"] img',
            ".prod-hero-image",
            ".slide-content img",
        ),
        description_selectors=(
            '[data-testid="product-description"]',
            ".about-desc",
            ".dangerous-html",
        ),
        category_selectors=(
            '[data-testid="breadcrumb"] a',
            'nav[aria-label="breadcrumb"] a',
        ),
        brand_selectors=(
            '[data-seo-id="brand-name"]',
            'a[link-identifier="brandName"]',
            ".prod-brandName",
        ),
        availability_selectors=(
            '[data-testid="fulfillment-badge"]',
            '[data-automation-id="fulfillment-badge"]',
        ),
    ),
    Store.TARGET: StoreConfig(
        store=Store.TARGET,
        name="Target",
        domains=("target.com",),
        title_selectors=(
            '[data-test="product-title"]',
            'h1[data-test="product-title"]',
        ),
        price_selectors=(
            '[data-test="product-price"]',
            '[data-test="product-price-reg"]',
            ".h-text-red",
        ),
        image_selectors=(
            '[data-test="product-image"]',
            '[data-test="image-gallery-item-0"] img',
            ".ProductImages img",
        ),
        description_selectors=(
            '[data-test="item-details-description"]',
            '[data-test="item-details-specifications"]',
        ),
        category_selectors=(
            '[data-test="@web/Breadcrumbs/BreadcrumbLink"]',
            'nav[aria-label="Breadcrumbs"] a',
        ),
        brand_selectors=(
            '[data-test="@web/ProductDetailPageHighlights/BrandLink"]',
            'a[data-test="shopAllBrandLink"]',
        ),
        availability_selectors=(
            '[data-test="fulfillment-cell-shipping"]',
            '[data-test="soldOutBlock"]',
        ),
    ),
    Store.GENERIC: StoreConfig(store=Store.GENERIC, name="Generic"),
}


def config_for(store: Optional[Store]) -> StoreConfig:
    """Configuration for a store, falling back to the empty generic one"""
    return STORE_CONFIGS.get(store or Store.GENERIC, STORE_CONFIGS[Store.GENERIC])


def parse_store(key: Optional[str]) -> Optional[Store]:
    """Resolve a raw store key ("amazon") or display name ("Amazon") to a Store"""
    if not key:
        return None
    lowered = key.strip().lower()
    for store in Store:
        if store.value == lowered:
            return store
    return None


def _hostname(url: str) -> Optional[str]:
    if not isinstance(url, str) or not url.strip():
        return None
    try:
        parsed = urlparse(url.strip())
        # Accessing .port validates the netloc
        parsed.port
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None
    return parsed.hostname.lower()


def detect_store(url: str) -> StoreMatch:
    """Detect which known storefront a URL belongs to"""
    hostname = _hostname(url)
    if not hostname:
        return StoreMatch()

    for store, config in STORE_CONFIGS.items():
        if any(domain in hostname for domain in config.domains):
            logger.debug(f"🏪 {hostname} matched store {store.value}")
            return StoreMatch(store=store, config=config)

    return StoreMatch()
