"""
AI Module
=========

Marketing message helper: LLM-backed suggestions and tone variants with a
deterministic template fallback.

Usage:
    from orderdesk.modules.ai import ai_bp, ai_service

    ai_service.init_app(app)
    app.register_blueprint(ai_bp)  # Registers at /api/ai
"""

from flask import Blueprint

from .service import ai_service, AIService, AIServiceError, Suggestion, VariantResult

ai_bp = Blueprint(
    'ai',
    __name__,
    url_prefix='/api/ai'
)

from . import routes

__all__ = ['ai_bp', 'ai_service', 'AIService', 'AIServiceError', 'Suggestion', 'VariantResult']
