# batwiki/config.py
from __future__ import annotations

import os

# Wikipedia endpoints (the only values that may come from the environment)
SEARCH_API_URL = os.environ.get(
    "BATWIKI_SEARCH_API_URL", "https://en.wikipedia.org/w/api.php"
)
SUMMARY_API_URL = os.environ.get(
    "BATWIKI_SUMMARY_API_URL", "https://en.wikipedia.org/api/rest_v1"
)
ARTICLE_BASE_URL = "https://en.wikipedia.org/wiki"

# Wikimedia asks API clients to identify themselves
DEFAULT_UA = "batwiki/0.1 (https://github.com/batwiki/batwiki)"

# Revalidation hints (seconds), advisory for whatever cache sits below
SEARCH_REVALIDATE_SECONDS = 300
SUMMARY_REVALIDATE_SECONDS = 3600
RECENT_CHANGES_REVALIDATE_SECONDS = 60
CATEGORIES_REVALIDATE_SECONDS = 3600

# Search configuration
MAIN_NAMESPACE = 0
MAX_SEARCH_LIMIT = 500
DEFAULT_ARTICLE_LIMIT = 24
SEARCH_PROPS = ("title", "snippet", "size", "wordcount", "timestamp")

# Recent changes / categories
RECENT_CHANGES_FETCH_SIZE = 100
DEFAULT_CHANGES_LIMIT = 10
RECENT_CHANGES_PROPS = ("title", "timestamp", "comment", "user", "sizes")
CATEGORY_LIMIT = 50

# Display
UNKNOWN_DATE = "Unknown date"
