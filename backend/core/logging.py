"""PII redaction shared by every log handler."""

import logging
import re

IBAN_PATTERN = re.compile(r"([A-Z]{2}\d{2}[A-Z0-9]{1,30})")
EMAIL_PATTERN = re.compile(r"(\b\S+@\S+\.\S+\b)")
PHONE_PATTERN = re.compile(r"(\+?\d[\d \-/]{6,})")


def _mask_iban(match: re.Match) -> str:
    """Mask IBAN: show first 2 chars, mask the rest."""
    iban = match.group(1)
    if len(iban) <= 4:
        return "**" + "*" * (len(iban) - 2)
    return iban[:2] + "**" + "*" * (len(iban) - 4)


def _mask_email(match: re.Match) -> str:
    """Mask email: keep first char of the user part and the domain."""
    email = match.group(1)
    user, domain = email.split("@", 1)
    masked_user = "*" if len(user) <= 1 else user[0] + "*" * (len(user) - 1)
    return f"{masked_user}@{domain}"


def _mask_phone(match: re.Match) -> str:
    phone = match.group(1)
    if len(phone) <= 2:
        return "*" * len(phone)
    return phone[:2] + "*" * (len(phone) - 2)


def redact_pii(text):
    """Redact IBANs, emails and phone numbers; non-strings pass through."""
    if not isinstance(text, str):
        return text
    text = IBAN_PATTERN.sub(_mask_iban, text)
    text = EMAIL_PATTERN.sub(_mask_email, text)
    return PHONE_PATTERN.sub(_mask_phone, text)


class PIIRedactionFilter(logging.Filter):
    """Filter to redact PII from log messages and string args."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = redact_pii(str(record.msg))
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(redact_pii(arg) for arg in record.args)
        return True


def get_logger(name: str) -> logging.Logger:
    """Get a logger with PII redaction applied."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, PIIRedactionFilter) for f in logger.filters):
        logger.addFilter(PIIRedactionFilter())
    return logger
