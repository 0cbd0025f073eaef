import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from etuition.core import config
from etuition.database import Database
from etuition.routes import (
    application_routes,
    bookmark_routes,
    dashboard_routes,
    messaging_routes,
    notification_routes,
    payment_routes,
    review_routes,
    role_request_routes,
    schedule_routes,
    tuition_routes,
    user_routes,
)
from etuition.services.payment_gateway import CheckoutGateway

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
)

app = FastAPI(title='eTuition API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PATCH', 'PUT', 'DELETE', 'OPTIONS'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_services() -> None:
    config.validate_runtime_config()

    if getattr(app.state, 'database', None) is None:
        app.state.database = Database(config.DATABASE_URL)
    if getattr(app.state, 'payment_gateway', None) is None:
        app.state.payment_gateway = CheckoutGateway()

    try:
        app.state.database.create_all()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.on_event('shutdown')
def shutdown_services() -> None:
    gateway = getattr(app.state, 'payment_gateway', None)
    if gateway is not None:
        gateway.close()
    database = getattr(app.state, 'database', None)
    if database is not None:
        database.dispose()


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    message = 'Internal server error' if config.is_production() else str(exc)
    return JSONResponse(status_code=500, content={'message': message})


@app.get('/')
def root():
    db_status = 'Connected'
    db_error = None
    try:
        app.state.database.ping()
    except SQLAlchemyError as exc:
        db_status = 'Failed'
        db_error = 'Database unavailable' if config.is_production() else str(exc)

    return {
        'status': 'Server Running',
        'db_status': db_status,
        'db_error': db_error,
        'timestamp': datetime.now().isoformat(),
    }


app.include_router(user_routes.router)
app.include_router(tuition_routes.router)
app.include_router(application_routes.router)
app.include_router(payment_routes.router)
app.include_router(role_request_routes.router)
app.include_router(review_routes.router)
app.include_router(bookmark_routes.router)
app.include_router(notification_routes.router)
app.include_router(messaging_routes.router)
app.include_router(schedule_routes.router)
app.include_router(dashboard_routes.router)
