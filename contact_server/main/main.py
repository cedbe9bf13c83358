import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from contact_server.bootstrap import create_tables
from contact_server.config import config_instance, Settings
from contact_server.database.contact import ContactStore, PersistenceError
from contact_server.database.database_sessions import create_db_engine
from contact_server.email import NotificationDispatcher, build_dispatcher
from contact_server.models.contact import ValidationError
from contact_server.routers.contact.contact_route import contact_router
from contact_server.routers.email.email_route import email_router
from contact_server.routers.health.health_route import health_router
from contact_server.utils.my_logger import init_logger

# used to logging debug information for the application
app_logger = init_logger("contact_form_server")

description = """
**Contact Form Server**,

    accepts contact form submissions, stores them and notifies the site operator by email,
    first through SendGrid and then through SMTP when SendGrid is unavailable.
"""


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# # # # # # # # # # # # # # ERROR HANDLERS
# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #

async def validation_error_handler(request: Request, exc: ValidationError):
    app_logger.info(f"""
    Validation Error

    Debug Information
        request_url: {request.url}
        request_method: {request.method}
        error_detail: {exc.message}
        status_code: {exc.status_code}
    """)
    return JSONResponse(status_code=exc.status_code, content={'error': exc.message, 'missing': exc.missing})


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """malformed JSON or values of the wrong type are client errors like a missing field"""
    fields = sorted({".".join(str(part) for part in error.get('loc', ()) if part != 'body')
                     for error in exc.errors()} - {""})
    app_logger.info(f"""
    Invalid Request Body

    Debug Information
        request_url: {request.url}
        request_method: {request.method}
        fields: {fields}
    """)
    return JSONResponse(status_code=400, content={'error': "Invalid request body", 'fields': fields})


async def persistence_error_handler(request: Request, exc: PersistenceError):
    """
    **persistence_error_handler**
        the full detail is always logged, the client only sees it outside production
    :param request:
    :param exc:
    :return:
    """
    app_logger.error(msg=f"""
    Database Error

    Debug Information
        request_url: {request.url}
        request_method: {request.method}
        error_detail: {exc.message}
        status_code: {exc.status_code}
    """)
    content = {'error': "Failed to save contact"}
    settings: Settings = request.app.state.settings
    if not settings.is_production:
        content['details'] = exc.message
    return JSONResponse(status_code=exc.status_code, content=content)


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# # # # # # # # # # # # # # APPLICATION
# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #

def create_app(settings: Settings | None = None, engine: Engine | None = None,
               dispatcher: NotificationDispatcher | None = None) -> FastAPI:
    """
    **create_app**
        wires the contact store and the notification dispatcher into the application,
        anything not passed in is built from configuration
    :param settings:
    :param engine: database engine, owns the connection pool
    :param dispatcher: notification provider chain
    :return: FastAPI
    """
    settings = settings or config_instance()
    owns_engine = engine is None
    engine = engine or create_db_engine(settings.DATABASE_SETTINGS)
    dispatcher = dispatcher or build_dispatcher(settings.EMAIL_SETTINGS)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        # a failed initialization is logged inside create_tables and the server keeps serving
        await asyncio.to_thread(create_tables, engine)
        app_logger.info(f"SendGrid configured: {'YES' if settings.EMAIL_SETTINGS.sendgrid_configured else 'NO'}")
        app_logger.info(f"SMTP configured: {'YES' if settings.EMAIL_SETTINGS.smtp_configured else 'NO'}")
        yield
        if owns_engine:
            engine.dispose()

    app = FastAPI(
        title="Contact Form Server",
        description=description,
        version="1.0.0",
        lifespan=lifespan)

    app.state.settings = settings
    app.state.contact_store = ContactStore(engine=engine)
    app.state.dispatcher = dispatcher

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"])

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        app_logger.info(f"On Entry to : {request.url.path} method: {request.method}")
        response = await call_next(request)
        app_logger.info(f"On Exit from : {request.url.path} status: {response.status_code}")
        return response

    @app.get("/", include_in_schema=True)
    async def home_route(request: Request):
        """static service descriptor"""
        email_settings = request.app.state.settings.EMAIL_SETTINGS
        return JSONResponse(content={
            'message': "Contact form server is running!",
            'endpoints': {
                'health': "/health",
                'contact': "/api/contact",
                'test_email': "/test-email"},
            'email': {
                'sendgrid_configured': email_settings.sendgrid_configured,
                'smtp_configured': email_settings.smtp_configured,
                'fully_configured': email_settings.is_configured},
            'timestamp': datetime.now(tz=timezone.utc).isoformat()})

    app.include_router(contact_router)
    app.include_router(health_router)
    app.include_router(email_router)
    return app


def run(app: FastAPI | None = None):
    settings = config_instance()
    app_logger.info(f"Contact server listening on port {settings.PORT}")
    uvicorn.run(app or create_app(settings=settings), host=settings.HOST, port=settings.PORT, workers=1)
