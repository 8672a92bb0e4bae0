#!/usr/bin/env python3
"""
Configuration for the Deal URL Extractor
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
script_dir = os.path.dirname(os.path.abspath(__file__))
load_dotenv(os.path.join(script_dir, '.env'))

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    """Application configuration"""

    # Proxy cascade
    REQUEST_TIMEOUT = float(os.getenv('URL_EXTRACTOR_TIMEOUT', 10))
    PROXY_NAMES = _split_list(os.getenv('URL_EXTRACTOR_PROXIES'))
    USER_AGENT = os.getenv('URL_EXTRACTOR_USER_AGENT', DEFAULT_USER_AGENT)

    # Server
    HOST = os.getenv('FLASK_HOST', '127.0.0.1')
    PORT = int(os.getenv('FLASK_PORT', 5001))
    DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    CORS_ORIGINS = _split_list(os.getenv('CORS_ORIGINS')) or [
        "http://localhost:*",
        "http://127.0.0.1:*",
    ]

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


config = Config()
