"""
AI Routes
=========

JSON endpoints for message suggestions and variants.
"""

import logging

from flask import request, jsonify

from . import ai_bp
from .service import ai_service
from orderdesk.core import db_log
from orderdesk.modules.dashboard import api_auth_required

logger = logging.getLogger(__name__)

CAMPAIGN_TYPES = ('email', 'sms', 'both')


def _json_body():
    """Request JSON as a dict; a missing body counts as empty, other JSON types as None"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        return None
    return data


def _bad_body():
    return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400


def _text_field(data, key, errors, min_len, max_len, label, required=True):
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            errors.append({'field': key, 'message': f'{label} is required'})
        return ''
    if not isinstance(value, str):
        errors.append({'field': key, 'message': f'{label} must be a string'})
        return ''
    value = value.strip()
    if not (min_len <= len(value) <= max_len):
        errors.append({'field': key, 'message': f'{label} must be between {min_len} and {max_len} characters'})
    return value


@ai_bp.route('/suggest-message', methods=['POST'])
@api_auth_required
def suggest_message():
    """Suggest a campaign message for an audience"""
    data = _json_body()
    if data is None:
        return _bad_body()
    errors = []

    campaign_type = data.get('campaign_type')
    if isinstance(campaign_type, str):
        campaign_type = campaign_type.strip()
    if campaign_type not in CAMPAIGN_TYPES:
        errors.append({'field': 'campaign_type', 'message': 'Campaign type must be email, sms, or both'})
    audience_description = _text_field(
        data, 'audience_description', errors, 10, 500, 'Audience description'
    )

    if errors:
        return jsonify({'success': False, 'error': 'Validation error', 'errors': errors}), 400

    suggestion = ai_service.suggest_message(campaign_type, audience_description)
    db_log('info', 'ai', 'Message suggested', {
        'campaign_type': campaign_type, 'source': suggestion.source
    })
    return jsonify({'success': True, 'data': suggestion.text, 'source': suggestion.source})


@ai_bp.route('/message-variants', methods=['POST'])
@api_auth_required
def message_variants():
    """Generate tone variants of a message"""
    data = _json_body()
    if data is None:
        return _bad_body()
    errors = []

    message = _text_field(data, 'message', errors, 10, 1000, 'Message')
    objective = _text_field(data, 'objective', errors, 0, 200, 'Objective', required=False)

    if errors:
        return jsonify({'success': False, 'error': 'Validation error', 'errors': errors}), 400

    result = ai_service.generate_message_variants(message, objective)
    db_log('info', 'ai', 'Message variants generated', {
        'count': len(result.variants), 'source': result.source
    })
    return jsonify({
        'success': True,
        'data': {
            'message_variants': result.variants,
            'original_message': message,
        },
        'source': result.source,
    })


@ai_bp.route('/status')
@api_auth_required
def status():
    """Which provider would answer, and whether any is configured"""
    providers = ai_service.available_providers()
    return jsonify({
        'success': True,
        'provider': providers[0] if providers else ai_service.provider,
        'configured': ai_service.is_configured,
        'fallback': 'template',
    })
