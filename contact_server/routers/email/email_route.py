from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from contact_server.email import NotificationDispatcher
from contact_server.models.contact import Submission
from contact_server.utils.my_logger import init_logger

email_router = APIRouter()

email_route_logger = init_logger('test-email-logger')

TEST_CONTACT_ID: int = 999
TEST_SUBMISSION = Submission(name='Test User',
                             email='test@example.com',
                             message='This is a test message to verify email functionality is working correctly.',
                             phone='123-456-7890',
                             company='Test Company',
                             purpose='testing')


@email_router.post('/test-email')
async def send_test_email(request: Request):
    """
        sends a notification with fixed sample data through the provider chain,
        the method reported is the provider that actually delivered it
    :param request:
    :return:
    """
    email_route_logger.info("Testing email configuration...")
    dispatcher: NotificationDispatcher = request.app.state.dispatcher

    if not dispatcher.is_configured:
        email_settings = request.app.state.settings.EMAIL_SETTINGS
        _payload = dict(error="No email method configured", config=email_settings.configured_flags())
        return JSONResponse(content=_payload, status_code=400)

    try:
        notification = await dispatcher.dispatch(submission=TEST_SUBMISSION, contact_id=TEST_CONTACT_ID)
    except Exception as e:
        email_route_logger.error(f"Email test failed: {e}")
        return JSONResponse(content=dict(error="Failed to send test email", details=str(e)), status_code=500)

    if not notification.delivered:
        _payload = dict(error="Failed to send test email with all configured methods")
        return JSONResponse(content=_payload, status_code=500)

    _payload = dict(success=True,
                    message="Test email sent successfully! Check your inbox.",
                    method=notification.provider)
    return JSONResponse(content=_payload, status_code=200)
