"""
CORS for the JSON API.
Origins come from CORS_ORIGINS (comma separated); health checks are not exposed.
"""
from flask_cors import CORS

API_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
API_HEADERS = ["Content-Type", "Authorization", "Accept"]


def parse_origins(value):
    if not value or value.strip() == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def init_cors(app):
    origins = parse_origins(app.config.get('CORS_ORIGINS'))
    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        methods=API_METHODS,
        allow_headers=API_HEADERS,
        supports_credentials=origins != '*',
        max_age=86400,
    )
    app.logger.info("CORS enabled for /api/* (origins: %s)", origins)
