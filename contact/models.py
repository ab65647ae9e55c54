"""
Contact Form Data

Submissions are never stored: a Submission lives for one request, long
enough to be validated and mailed.
"""
from dataclasses import dataclass

MAX_NAME_LEN = 120
MAX_EMAIL_LEN = 254
MAX_ORG_LEN = 200
MAX_INTEREST_LEN = 80
MAX_MESSAGE_LEN = 5000


@dataclass(frozen=True)
class Submission:
    """A normalized contact form submission."""

    name: str
    email: str
    message: str
    organization: str = ''
    interest: str = ''
    ip_address: str = 'unknown'
