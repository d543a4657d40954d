from flask import Flask, jsonify
from flask_cors import CORS
import logging
from .config.environment import apply_overrides, credentials_from_env, load_environment


def create_app(config_overrides=None):
    """
    Build the Flask app.

    ``config_overrides`` land in app.config. Keys that are also service settings
    (credentials, TTS_* tuning, endpoint overrides) are applied process-wide, and
    the cached services are rebuilt so they pick them up.
    """
    # Initialize Flask app
    app = Flask(__name__)

    # Configure logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    # Settings come from the environment (.env supported); overrides win
    app.config.from_mapping(load_environment())
    if config_overrides:
        app.config.from_mapping(config_overrides)
        if apply_overrides(config_overrides):
            from .shared.utils.service_loader import reset_services
            reset_services()
    APPLICATION_ENV = app.config['APPLICATION_ENV']
    SERVICE_NAME = app.config['APP_NAME']

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    # Liveness check: no provider or registry access
    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({
            'status': 'healthy',
            'service': SERVICE_NAME,
            'environment': APPLICATION_ENV
        }), 200

    @app.route('/', methods=['GET'])
    def home():
        return jsonify({
            'message': 'Polyvox text-to-speech gateway',
            'service': SERVICE_NAME,
            'version': '1.0.0',
            'docs': '/api/v1/speech/providers',
            'environment': APPLICATION_ENV
        }), 200

    # Status reports which providers the server holds credentials for
    @app.route('/status', methods=['GET'])
    def status():
        from .shared.utils.service_loader import get_tts_service

        providers = get_tts_service().providers()
        configured = [name for name in providers if credentials_from_env(name) is not None]
        return jsonify({
            'status': 'operational',
            'providers': len(providers),
            'configured_providers': configured,
            'environment': APPLICATION_ENV
        }), 200

    from .speech.constants import API_PREFIX
    from .speech.routes import speech
    app.register_blueprint(speech, url_prefix=API_PREFIX)
    logger.info(f"Registered speech blueprint at {API_PREFIX}")

    return app
