import os

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

NOT_PROVIDED: str = "Not provided"
NOT_SPECIFIED: str = "Not specified"


def nl2br(value: str) -> Markup:
    """escapes the text and turns each line break into <br>"""
    return Markup("<br>").join(escape(line) for line in value.splitlines())


env = Environment(loader=FileSystemLoader(os.path.dirname(os.path.abspath(__file__))),
                  autoescape=select_autoescape(enabled_extensions=('html',), default_for_string=False))
env.filters['nl2br'] = nl2br


class EmailTemplate:
    """
        Used to create email templates based on Jinja2 for the contact notification
    """

    def __init__(self, template=None):
        self.template = env.get_template(template)

    def render(self, **kwargs):
        return self.template.render(**kwargs)

    @staticmethod
    def _context(name: str, email: str, message: str, phone: str | None, company: str | None,
                 purpose: str | None, submitted: str, contact_id: int) -> dict[str, str | int]:
        return dict(name=name, email=email, message=message,
                    phone=phone or NOT_PROVIDED,
                    company=company or NOT_PROVIDED,
                    purpose=purpose or NOT_SPECIFIED,
                    submitted=submitted, contact_id=contact_id)

    @staticmethod
    async def contact_notification_subject(name: str) -> str:
        # header values may not span lines
        return f"New Contact from {' '.join(name.split())}"

    @staticmethod
    async def contact_notification_text(**kwargs) -> str:
        template = "contact_notification.txt"
        return EmailTemplate(template).render(**EmailTemplate._context(**kwargs))

    @staticmethod
    async def contact_notification_html(**kwargs) -> str:
        template = "contact_notification.html"
        return EmailTemplate(template).render(**EmailTemplate._context(**kwargs))
