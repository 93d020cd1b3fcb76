"""
Config settings for the content library app.
"""
import os

# Flask Configuration
SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-key-change-in-production')
DEBUG = os.environ.get('DEBUG', 'False').lower() == 'true'
PORT = int(os.environ.get('PORT', 8001))
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

# Cache Configuration
QUERY_CACHE_TTL = int(os.environ.get('QUERY_CACHE_TTL', 300))  # 5 minute cache
MAX_CACHE_SIZE = 1000

# Catalog Configuration
CATALOG_URL = os.environ.get(
    'CATALOG_URL',
    'https://pub-9d76e1d511764457a42a4f9797dbe836.r2.dev/index.json?v=20251119',
)
# No timeout unless one is configured; a hung fetch only holds the loading flag
_fetch_timeout = os.environ.get('CATALOG_FETCH_TIMEOUT')
CATALOG_FETCH_TIMEOUT = float(_fetch_timeout) if _fetch_timeout else None
FALLBACK_WARNING = "Using fallback sample data."

# Query Configuration
PAGE_SIZE_OPTIONS = (6, 12, 24, 48)
DEFAULT_PAGE_SIZE = 12
DEFAULT_SORT = 'relevance'

# Reading time estimate for documents without read_time_min
WORDS_PER_MINUTE = 200
DEFAULT_WORD_COUNT = 1200

# Relevance recency bonus: max(0, RECENCY_WINDOW_YEARS - age in years)
RECENCY_WINDOW_YEARS = 2
DAYS_PER_YEAR = 365

