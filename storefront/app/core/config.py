"""
Flat configuration values for modules that are imported before the app starts
(the database engine).
New code should use storefront.app.core.settings.get_settings() instead.
"""
from dotenv import load_dotenv

from storefront.app.core.settings import get_settings

# Pick up .env before pydantic-settings reads the environment
load_dotenv()

_settings = get_settings()

DB_URL = _settings.db_url
DB_POOL_SIZE = _settings.DB_POOL_SIZE
DB_MAX_OVERFLOW = _settings.DB_MAX_OVERFLOW
DB_POOL_RECYCLE = _settings.DB_POOL_RECYCLE
