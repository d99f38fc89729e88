import hmac
from typing import Optional

from errors import InvalidSecret, MissingSecret


def verify_admin_password(supplied: Optional[str], expected: str) -> None:
    """Gate a destructive write behind the shared admin password.

    Raises MissingSecret when nothing (or an empty string) was supplied and
    InvalidSecret when the value does not match. Returns None on success.
    """
    if not supplied:
        raise MissingSecret()
    if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        raise InvalidSecret()
