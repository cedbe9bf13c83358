import asyncio

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from contact_server.database.contact import ContactStore
from contact_server.email import NotificationDispatcher
from contact_server.models.contact import ContactModel
from contact_server.utils.my_logger import init_logger

contact_router = APIRouter()

contact_logger = init_logger('contact-logger')


@contact_router.api_route('/api/contact', methods=['POST'])
async def create_contact(request: Request, contact_data: ContactModel):
    """
        will save the contact form then try to notify the operator, the notification
        outcome is reported but never changes the status of the response
    :param request:
    :param contact_data:
    :return:
    """
    submission = contact_data.to_submission()
    contact_logger.info(f"Received contact form from: {submission.email}")

    contact_store: ContactStore = request.app.state.contact_store
    dispatcher: NotificationDispatcher = request.app.state.dispatcher

    # raises PersistenceError, the only failure that fails the whole request
    contact_id, created_at = await asyncio.to_thread(contact_store.insert, submission)
    contact_logger.info(f"Successfully saved contact with ID: {contact_id}")

    notification = await dispatcher.dispatch(submission=submission, contact_id=contact_id, submitted_at=created_at)

    _payload = dict(ok=True,
                    id=contact_id,
                    created_at=created_at.isoformat() if created_at else None,
                    message="Contact saved successfully",
                    notification_sent=notification.delivered)
    return JSONResponse(content=_payload, status_code=200)
