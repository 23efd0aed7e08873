import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from campus_events.auth.guards import RoutePrefixGuard
from campus_events.auth.jwt_handler import TokenService
from campus_events.core import config
from campus_events.core.config import AuthSettings, load_auth_settings, validate_runtime_config
from campus_events.core.errors import register_error_handlers
from campus_events.database import init_db
from campus_events.routes import analytics_routes, auth_routes, event_routes, pages

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )


def create_app(settings: AuthSettings | None = None) -> FastAPI:
    settings = settings or load_auth_settings()
    validate_runtime_config(settings)

    app = FastAPI(title='Campus Events')
    app.state.auth_settings = settings
    app.state.tokens = TokenService(settings)

    app.add_middleware(RoutePrefixGuard)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_error_handlers(app)

    @app.on_event('startup')
    def initialize_database() -> None:
        try:
            init_db()
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL.')

    @app.get('/health')
    def health():
        return {'status': 'Campus Events API Running'}

    app.include_router(auth_routes.router, prefix='/auth')
    app.include_router(event_routes.router, prefix='/events')
    app.include_router(analytics_routes.router, prefix='/analytics')
    app.include_router(pages.router)

    return app


configure_logging()
app = create_app()
