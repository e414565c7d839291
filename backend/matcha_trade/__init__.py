from flask import Flask, g
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine, select
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from datetime import timedelta
from logging.config import dictConfig
from typing import Optional, Dict, Any
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def _configure_logging(level: str):
    dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {'format': '%(asctime)s %(levelname)s [%(name)s] %(message)s'},
        },
        'handlers': {
            'console': {'class': 'logging.StreamHandler', 'formatter': 'default'},
        },
        'loggers': {
            'matcha_trade': {'level': level, 'handlers': ['console'], 'propagate': False},
        },
    })


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///dev.db')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(minutes=int(os.getenv('JWT_ACCESS_TOKEN_MINUTES', '480')))
    app.config['SESSION_TIMEOUT_MINUTES'] = int(os.getenv('SESSION_TIMEOUT_MINUTES', '15'))
    app.config['EXPORT_CONFIRMATION_MINUTES'] = int(os.getenv('EXPORT_CONFIRMATION_MINUTES', '5'))
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    _configure_logging(app.config['LOG_LEVEL'])

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    from .models.authz import User, RevokedToken

    @jwt.user_lookup_loader
    def _load_user(_jwt_header, jwt_data):
        # identity is the user id serialized as string
        return get_db().get(User, int(jwt_data['sub']))

    @jwt.token_in_blocklist_loader
    def _token_revoked(_jwt_header, jwt_payload) -> bool:
        jti = jwt_payload.get('jti')
        return get_db().execute(select(RevokedToken.id).where(RevokedToken.jti == jti)).first() is not None

    from .routes.iam import iam_bp
    from .routes.catalog import catalog_bp
    from .routes.pricing import pricing_bp
    from .routes.inventory import inv_bp
    from .routes.orders import orders_bp
    from .routes.forecasts import forecasts_bp
    from .routes.versions import versions_bp
    from .routes.notifications import notifications_bp
    from .routes.analytics import analytics_bp
    from .routes.settings import settings_bp
    from .routes.security import security_bp, exports_bp
    app.register_blueprint(iam_bp, url_prefix='/iam')
    app.register_blueprint(catalog_bp, url_prefix='/catalog')
    app.register_blueprint(pricing_bp, url_prefix='/pricing')
    app.register_blueprint(inv_bp, url_prefix='/inventory')
    app.register_blueprint(orders_bp, url_prefix='/orders')
    app.register_blueprint(forecasts_bp, url_prefix='/forecasts')
    app.register_blueprint(versions_bp, url_prefix='/versions')
    app.register_blueprint(notifications_bp, url_prefix='/notifications')
    app.register_blueprint(analytics_bp, url_prefix='/analytics')
    app.register_blueprint(settings_bp, url_prefix='/settings')
    app.register_blueprint(security_bp, url_prefix='/security')
    app.register_blueprint(exports_bp, url_prefix='/exports')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    from .services.visibility import redact_response

    @app.after_request
    def apply_visibility(response):
        # guards populate g.capabilities; anonymous endpoints carry no sensitive fields
        if g.get('capabilities') is not None:
            response = redact_response(response, g.capabilities, g.get('panic', False))
        if g.get('simulated'):
            response.headers['X-Simulation-Mode'] = '1'
        return response

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            # aborted requests must not leave half-applied changes for the next commit
            get_db().rollback()
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            return payload, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        get_db().rollback()
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    from .openapi import build_openapi_spec

    @app.route('/openapi.json')
    def openapi_spec():
        return build_openapi_spec()

    @app.route('/docs')
    def docs_index():
        # Lightweight HTML referencing Redoc CDN (no local install) for quick browsing
        return (
            "<!DOCTYPE html><html><head><title>Matcha Trade Desk API</title>"
            "<link rel=\"stylesheet\" href=\"https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.css\" />"
            "</head><body><redoc spec-url='/openapi.json'></redoc>"
            "<script src='https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.js'></script>"
            "</body></html>"
        )

    return app


def get_db():
    return SessionLocal()
