import os
from dotenv import load_dotenv

load_dotenv()

IS_PRODUCTION = (
    os.getenv('ENVIRONMENT') == 'production' or
    os.getenv('FLASK_ENV') == 'production' or
    os.getenv('PRODUCTION') == '1'
)

DB_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'databases')


class Config:
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    BRAND_NAME = os.getenv('BRAND_NAME', 'My Shop Orders')

    # Database paths
    DB_DIR = DB_DIR
    ORDERS_DB = os.path.join(DB_DIR, 'orders.db')

    # Frontend allowed to call /api/*
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', 'http://localhost:3000')

    # AI message suggestions (leave keys empty to use templates)
    AI_PROVIDER = os.getenv('AI_PROVIDER', 'openai')
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
    GEMINI_API_KEY = os.getenv('GEMINI_API_KEY', '')

    LOG_LEVEL = 'WARNING' if IS_PRODUCTION else 'INFO'
