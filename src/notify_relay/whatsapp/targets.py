"""Recipient addressing for the WhatsApp network."""

import re

from notify_relay.errors import InvalidTarget

USER_DOMAIN = "s.whatsapp.net"

_NON_DIGIT = re.compile(r"\D")


def normalize_target(phone: str) -> str:
    """Build a user JID from a free-form phone string.

    Every non-digit character is dropped, so "+1 (234) 567-890",
    "1234567890" and "1234567890@s.whatsapp.net" all map to
    "1234567890@s.whatsapp.net".

    Raises:
        InvalidTarget: If the input contains no digits.
    """
    digits = _NON_DIGIT.sub("", phone or "")
    if not digits:
        raise InvalidTarget("phone number must contain at least one digit")
    return f"{digits}@{USER_DOMAIN}"
