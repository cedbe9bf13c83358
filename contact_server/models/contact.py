from pydantic import BaseModel, ConfigDict

REQUIRED_FIELDS: tuple[str, ...] = ('name', 'email', 'message')


class ValidationError(Exception):
    """Raised when a submission is missing one of the required fields"""

    def __init__(self, missing: list[str]):
        self.missing = missing
        self.status_code = 400
        self.message = f"Missing required fields: {', '.join(missing)}"
        super().__init__(self.message)


class Submission(BaseModel):
    """a validated, trimmed contact form submission"""
    name: str
    email: str
    message: str
    phone: str | None = None
    company: str | None = None
    purpose: str | None = None

    model_config = ConfigDict(title="Contact Submission", frozen=True)


class ContactModel(BaseModel):
    """
        Contact form request body, every field is optional here so that a missing
        field is reported by name instead of as a schema error
    """
    name: str | None = None
    email: str | None = None
    message: str | None = None
    phone: str | None = None
    company: str | None = None
    purpose: str | None = None

    model_config = ConfigDict(title="Contact Form Schema", extra="ignore", str_strip_whitespace=True,
                              coerce_numbers_to_str=True)

    def to_submission(self) -> Submission:
        """
            presence and trim checks only, email format and message length are deliberately not enforced
        :return: Submission
        """
        missing = [field for field in REQUIRED_FIELDS if not getattr(self, field)]
        if missing:
            raise ValidationError(missing=missing)

        return Submission(name=self.name,
                          email=self.email,
                          message=self.message,
                          phone=self.phone or None,
                          company=self.company or None,
                          purpose=self.purpose or None)
