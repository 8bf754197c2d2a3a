"""Flask application factory."""
from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
from app.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize CSRF protection
    csrf = CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'error': 'csrf', 'message': 'Your session has expired. Reload the page.'}), 400

    # Setup Prometheus metrics instrumentation
    from app.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: Enable ProxyFix for HTTPS behind Nginx reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=1,      # Trust X-Forwarded-For with 1 proxy
            x_proto=1,    # Trust X-Forwarded-Proto
            x_host=1,     # Trust X-Forwarded-Host
            x_port=1,     # Trust X-Forwarded-Port
            x_prefix=0    # No prefix (not behind a URL prefix)
        )

    # Initialize database
    init_db(app)

    # Load the shopper's customer group before each request
    from app.middleware import load_customer_context

    @app.before_request
    def before_request_handler():
        """Load customer context for each request."""
        load_customer_context()

    # Error Handlers
    from app.exceptions import PricingError

    @app.errorhandler(PricingError)
    def handle_pricing_error(error):
        """Handle engine and API exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"PricingError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"PricingError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'error': 'not_found', 'message': 'Not Found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}", exc_info=True)
        return jsonify({'status': 'error', 'error': 'internal_error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from app.blueprints.catalog import catalog_bp
    from app.blueprints.cart import cart_bp
    from app.blueprints.metrics import metrics_bp

    app.register_blueprint(catalog_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from app.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(
        f"Pricing: modes={app.config.get('PRICING_ENABLED_MODES')} "
        f"group_prices={app.config.get('PRICING_GROUP_PRICES_ENABLED')} "
        f"mix_and_match={app.config.get('PRICING_MIX_AND_MATCH_ENABLED')}"
    )

    return app
