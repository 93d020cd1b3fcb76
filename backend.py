#!/usr/bin/env python3
"""
Content Library Backend
Flask API server for catalog search, faceted filtering, sorting, and pagination
"""

import atexit
import logging
from datetime import datetime

from flask import Flask, request, jsonify, send_from_directory
from flask_cors import CORS
from cachetools import TTLCache

from config import SECRET_KEY, DEBUG, PORT, LOG_LEVEL, QUERY_CACHE_TTL, MAX_CACHE_SIZE
from catalog_loader import CatalogStore
from data_models import QueryState
from presenters import present_result
from query_engine import run_query
from query_state import (
    InvalidActionError,
    reduce,
    state_from_args,
    state_from_dict,
    with_page,
)

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__, static_folder='.')
app.config['SECRET_KEY'] = SECRET_KEY
CORS(app)

# Initialize services
catalog_store = CatalogStore()
cache = TTLCache(maxsize=MAX_CACHE_SIZE, ttl=QUERY_CACHE_TTL)
cache_stats = {"hits": 0, "misses": 0}


# Helper functions
def ensure_catalog():
    """Load the catalog on first use"""
    catalog_store.refresh_if_empty()
    return catalog_store


def query_payload(state: QueryState) -> dict:
    """Run the query pipeline for a state, serving repeats from the cache"""
    store = ensure_catalog()
    key = (store.generation, state)
    if key in cache:
        cache_stats["hits"] += 1
        return cache[key]

    cache_stats["misses"] += 1
    result = run_query(store.items, state)
    payload = present_result(
        result,
        with_page(state, result.page),
        warning=store.warning,
        loading=store.loading,
    )
    cache[key] = payload
    return payload


@app.errorhandler(InvalidActionError)
def handle_invalid_action(e):
    return jsonify({"error": str(e)}), 400


# Routes
@app.route('/')
def serve_index():
    """Serve the main HTML page"""
    return send_from_directory('.', 'index.html')


@app.route('/<path:filename>')
def serve_static(filename):
    """Serve static files"""
    return send_from_directory('.', filename)


@app.route('/api/catalog', methods=['GET'])
def get_catalog():
    """Return the normalized catalog and any load warning"""
    store = ensure_catalog()
    return jsonify({
        "items": [item.to_dict() for item in store.items],
        "warning": store.warning,
        "loading": store.loading,
    })


@app.route('/api/query', methods=['GET'])
def query_from_args():
    """Search and filter with the state given as query-string arguments"""
    state = state_from_args(request.args)
    return jsonify(query_payload(state))


@app.route('/api/query', methods=['POST'])
def query_from_body():
    """Search and filter with the state given as a JSON body"""
    data = request.get_json(silent=True) or {}
    state = state_from_dict(data)
    return jsonify(query_payload(state))


@app.route('/api/state', methods=['POST'])
def apply_action():
    """Apply one UI action to a state and return the next state with its results"""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise InvalidActionError("Request body must be a JSON object")
    action = data.get('action')
    if not isinstance(action, dict):
        return jsonify({"error": "An action object is required"}), 400

    state = reduce(state_from_dict(data.get('state')), action)
    payload = query_payload(state)
    return jsonify({"state": payload["state"], "result": payload})


@app.route('/api/catalog/reload', methods=['POST'])
def reload_catalog():
    """Fetch the catalog again (single attempt, fallback on failure)"""
    if catalog_store.loading:
        return jsonify({"error": "Catalog load already in progress"}), 409
    if not catalog_store.refresh():
        return jsonify({"error": "Catalog store is closed"}), 503
    logger.info(f"Catalog reloaded: {len(catalog_store.items)} items")
    return jsonify({
        "message": "Catalog reloaded",
        "count": len(catalog_store.items),
        "warning": catalog_store.warning,
    })


@app.route('/api/cache/clear', methods=['POST'])
def clear_cache():
    """Clear the cache"""
    cache.clear()
    cache_stats["hits"] = 0
    cache_stats["misses"] = 0
    return jsonify({"message": "Cache cleared successfully"})


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "catalog_size": len(catalog_store.items),
        "catalog_warning": catalog_store.warning,
        "cache_size": len(cache),
        "cache_stats": cache_stats
    })


@atexit.register
def shutdown():
    catalog_store.close()


if __name__ == '__main__':
    logger.info(f"Starting Content Library Backend on port {PORT}")
    logger.info(f"Debug mode: {DEBUG}")
    ensure_catalog()
    logger.info(f"Frontend will be accessible at: http://localhost:{PORT}")

    app.run(host='0.0.0.0', port=PORT, debug=DEBUG)
