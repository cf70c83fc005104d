import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for OrderDesk.
    Projects should provide database paths and API keys via environment variables.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')
    BRAND_NAME = os.getenv('BRAND_NAME', 'OrderDesk')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))
    ORDERS_DB = os.getenv('ORDERS_DB', os.path.join(DB_DIR, 'orders.db'))

    # Comma separated list of origins allowed to call /api/*
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', 'http://localhost:3000')

    # Listing
    ORDERS_PER_PAGE = int(os.getenv('ORDERS_PER_PAGE', '10'))
    API_MAX_PAGE_SIZE = int(os.getenv('API_MAX_PAGE_SIZE', '100'))
    BULK_ORDER_LIMIT = int(os.getenv('BULK_ORDER_LIMIT', '500'))

    # AI message suggestions ('openai' or 'gemini')
    AI_PROVIDER = os.getenv('AI_PROVIDER', 'gemini' if os.getenv('USE_GEMINI') == 'true' else 'openai')
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-3.5-turbo')
    OPENAI_BASE_URL = os.getenv('OPENAI_BASE_URL', 'https://api.openai.com/v1')
    GEMINI_API_KEY = os.getenv('GEMINI_API_KEY')
    GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-1.5-pro')
    AI_TIMEOUT = int(os.getenv('AI_TIMEOUT', '30'))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def defaults(cls):
        """Upper-case settings as a dict, for seeding app.config"""
        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config import, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val:
            return val
    except RuntimeError:
        pass
    try:
        from config import Config as HostConfig
        val = getattr(HostConfig, key, None)
        if val:
            return val
    except ImportError:
        pass
    return os.getenv(key, default)
