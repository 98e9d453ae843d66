"""
Web API for the article fact checker
Exposes the verification pipeline as a JSON endpoint
"""

import logging
from typing import Optional

from flask import Flask, jsonify, request

from ..pipeline import VerificationPipeline

logger = logging.getLogger(__name__)


def create_app(pipeline: Optional[VerificationPipeline] = None) -> Flask:
    """
    Create the Flask application.

    Args:
        pipeline: Pipeline used for every request, built from defaults if None
    """
    app = Flask(__name__)
    app.config["PIPELINE"] = pipeline or VerificationPipeline.from_config()

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.route('/api/check-numbers', methods=['POST'])
    def check_numbers():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        article = payload.get('article')
        source_text = payload.get('sourceText')
        if not isinstance(article, str) or not isinstance(source_text, str) \
                or not article.strip() or not source_text.strip():
            return jsonify({'error': 'Article and source text are required'}), 400

        try:
            report = app.config["PIPELINE"].verify(
                article, source_text, line_by_line=bool(payload.get('lineByLine', False))
            )
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            logger.error(f"Verification failed: {e}", exc_info=True)
            return jsonify({'error': str(e) or 'Failed to check numbers and quotes'}), 500

        return jsonify(report.to_response())

    return app
