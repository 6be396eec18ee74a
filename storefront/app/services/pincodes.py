"""Postal code (pincode) format check."""
import re
from typing import Any

from storefront.app.core.constants import PINCODE_LENGTH, MSG_INVALID_PINCODE
from storefront.app.core.exceptions import ServiceError

# [0-9] rather than \d: str patterns match any Unicode digit with \d
_PINCODE_RE = re.compile(r"[0-9]{%d}" % PINCODE_LENGTH)


class InvalidPincodeError(ServiceError):
    def __init__(self, postal_code: Any):
        self.postal_code = postal_code
        super().__init__(MSG_INVALID_PINCODE, 422)


def validate_format(code: Any) -> bool:
    """True iff `code` is exactly six ASCII digits. No trimming, never raises."""
    if not isinstance(code, str):
        return False
    # fullmatch: `$` would also accept a trailing newline
    return _PINCODE_RE.fullmatch(code) is not None


def require_valid_pincode(code: Any) -> str:
    if not validate_format(code):
        raise InvalidPincodeError(code)
    return code
