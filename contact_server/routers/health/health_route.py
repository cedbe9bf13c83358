import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from contact_server.database.contact import ContactStore
from contact_server.utils.my_logger import init_logger

health_router = APIRouter()

health_logger = init_logger('health-logger')


@health_router.get('/health')
async def health_check(request: Request):
    """
        database reachability, table presence and which email providers are configured,
        only flags are reported never the credentials themselves
    """
    contact_store: ContactStore = request.app.state.contact_store
    db_status = await asyncio.to_thread(contact_store.probe)

    if not db_status.ok:
        health_logger.error(f"Health check failed: {db_status.error}")
        _payload = dict(status="ERROR", database="Disconnected", error=db_status.error)
        return JSONResponse(content=_payload, status_code=500)

    email_settings = request.app.state.settings.EMAIL_SETTINGS
    _payload = dict(status="OK",
                    database="Connected",
                    table_exists=db_status.table_exists,
                    email=email_settings.configured_flags(),
                    timestamp=datetime.now(tz=timezone.utc).isoformat())
    return JSONResponse(content=_payload, status_code=200)
