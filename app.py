#!/usr/bin/env python3
"""
Flask Web Application for the Deal URL Extractor
"""

from flask import Flask, request, jsonify
from flask_cors import CORS
import logging

from config import config
from url_service import (
    extract_url_data,
    get_store_modal_config,
    should_use_store_modal,
    validate_url,
)

# Configure logging
logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for the deal form front-ends
CORS(app,
     origins=config.CORS_ORIGINS,
     methods=['GET', 'POST', 'OPTIONS'],
     allow_headers=['Content-Type', 'Accept'],
     supports_credentials=False)


def _requested_url():
    """Pull the 'url' field from a JSON body, or None when absent"""
    data = request.get_json(silent=True)
    if not data:
        return None
    url = data.get('url')
    if not isinstance(url, str) or not url.strip():
        return None
    return url.strip()


@app.route('/health', methods=['GET'])
def health():
    """Simple health endpoint"""
    return jsonify({'status': 'ok'})


@app.route('/api/extract', methods=['POST'])
def extract():
    """Extract product data for a pasted deal URL"""
    try:
        url = _requested_url()
        if not url:
            return jsonify({'error': 'URL required'}), 400

        logger.info(f"Extracting deal data for {url}")
        record = extract_url_data(url)
        return jsonify(record.to_dict())

    except Exception as e:
        logger.exception(f"Error extracting deal data: {e}")
        return jsonify({'error': f'Extraction failed: {str(e)}'}), 500


@app.route('/api/validate', methods=['POST'])
def validate():
    """Validate a URL and return form-ready product fields"""
    try:
        url = _requested_url()
        if not url:
            return jsonify({'error': 'URL required'}), 400

        return jsonify(validate_url(url))

    except Exception as e:
        logger.exception(f"Error validating URL: {e}")
        return jsonify({'error': f'Validation failed: {str(e)}'}), 500


@app.route('/api/store-modal', methods=['GET'])
def store_modal():
    """Tell the form whether a store-specific entry modal applies"""
    url = request.args.get('url', '').strip()
    if not url:
        return jsonify({'error': 'URL required'}), 400

    result = should_use_store_modal(url)
    if result['use_modal']:
        result['config'] = get_store_modal_config(result['store'])
    return jsonify(result)


if __name__ == '__main__':
    logger.info(f"Starting deal URL extractor on {config.HOST}:{config.PORT}")
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
