"""Storefront FastAPI application.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay in storefront/domain.toml:
#   - unset / "test" → in-memory providers
#   - "production"   → PostgreSQL via DATABASE_URL
from storefront.api import create_app
from storefront.domain import storefront
from storefront.utils.logging import configure_logging

configure_logging()
storefront.init()

app = create_app()
