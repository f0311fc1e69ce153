from flask import Flask, jsonify
import os

from config import Config
from logging_config import logger
from dashboard_routes import dashboard_bp
from auth import init_auth_tables
from fishing_store import init_fishing_tables

app = Flask(__name__)
app.secret_key = Config.FLASK_SECRET_KEY
app.json.ensure_ascii = False

app.register_blueprint(dashboard_bp)


def init_tables():
    """Create every table the app reads from."""
    for init_fn in (init_auth_tables, init_fishing_tables):
        try:
            init_fn()
        except Exception as e:
            logger.error(f"Could not initialize tables via {init_fn.__name__}: {e}")
            raise


init_tables()


@app.errorhandler(404)
def not_found(e):
    return jsonify({'error': 'Not found'}), 404


@app.errorhandler(500)
def internal_error(e):
    logger.error(f"Unhandled server error: {e}")
    return jsonify({'error': 'Internal Server Error'}), 500


@app.route('/health')
def health():
    return jsonify({'status': 'ok', 'demo_mode': Config.DEMO_MODE})


if __name__ == '__main__':
    port = int(os.getenv('PORT', Config.PORT))
    logger.info(f"Starting Tidelog on port {port}")
    app.run(host='0.0.0.0', port=port, debug=Config.DEBUG)
