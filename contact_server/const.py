"""column sizes of the contacts table"""
NAME_LEN: int = 100
EMAIL_LEN: int = 100
PHONE_LEN: int = 20
COMPANY_LEN: int = 100
PURPOSE_LEN: int = 100

CONTACTS_TABLE: str = "contacts"
