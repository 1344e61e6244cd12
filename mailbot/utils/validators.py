import re

from .error_handler import ExtractionFailure


class InputValidator:
    """Syntax checks for values that end up in outgoing mail headers"""

    # "Display Name <addr-spec>" form
    ANGLE_ADDR_REGEX = re.compile(r'<([^<>]*)>\s*$')

    @classmethod
    def addr_spec(cls, email: str) -> str:
        """The bare address inside ``email``, unwrapping a display-name form"""
        match = cls.ANGLE_ADDR_REGEX.search(email)
        return (match.group(1) if match else email).strip()

    @classmethod
    def validate_email(cls, email: str) -> str:
        """
        Check that the recipient holds a local@domain address, returning it unchanged.

        Accepts bare addresses, display-name forms ("Bob <bob@example.com>"),
        IDN domains and address literals; deliverability is left to Gmail.
        """
        addr = cls.addr_spec(email)
        local, at, domain = addr.rpartition("@")
        if not (local and at and domain):
            raise ExtractionFailure("Invalid email address format")

        if len(addr) > 254:  # RFC 5321 limit
            raise ExtractionFailure("Email address too long")

        return email

    @classmethod
    def validate_header_value(cls, name: str, value: str) -> str:
        """Reject values that would break out of a single header line"""
        if "\r" in value or "\n" in value:
            raise ExtractionFailure(f"Line break in {name} header")
        return value
