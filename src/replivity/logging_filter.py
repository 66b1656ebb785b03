"""
Logging filter for PII redaction
Redacts emails, credentials and bearer tokens before records are emitted
"""
import hashlib
import logging
import re


class PIIRedactionFilter(logging.Filter):
    """
    Logging filter that redacts sensitive data from log messages

    Redacts:
    - Email addresses
    - API keys and tokens
    - Passwords
    - Authorization headers
    """

    EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

    # Two groups: \1 is kept, \2 is redacted
    SECRET_PATTERNS = [
        re.compile(r"(api[_-]?key|apikey)[\"']?\s*[:=]\s*[\"']?([a-zA-Z0-9_\-]{16,})", re.IGNORECASE),
        re.compile(r"(secret[_-]?key|secretkey)[\"']?\s*[:=]\s*[\"']?([a-zA-Z0-9_\-]{16,})", re.IGNORECASE),
        re.compile(r"((?:access[_-]?)?token)[\"']?\s*[:=]\s*[\"']?([a-zA-Z0-9_\-\.]{20,})", re.IGNORECASE),
        re.compile(r"(bearer\s+)([a-zA-Z0-9_\-\.]{20,})", re.IGNORECASE),
        re.compile(r"(password|passwd|pwd)[\"']?\s*[:=]\s*[\"']?([^\s\"',]{4,})", re.IGNORECASE),
    ]

    # Provider keys without a label (OpenAI/Anthropic style)
    BARE_KEY_PATTERN = re.compile(r"\bsk-[a-zA-Z0-9_\-]{20,}")

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redact_pii(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self.redact_pii(v) if isinstance(v, str) else v
                               for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self.redact_pii(arg) if isinstance(arg, str) else arg
                                    for arg in record.args)

        return True

    def redact_pii(self, text: str) -> str:
        """
        Redact PII from text

        Args:
            text: Text to redact

        Returns:
            Redacted text
        """
        if not text:
            return text

        redacted = self.EMAIL_PATTERN.sub(self._redact_email, text)
        redacted = self.BARE_KEY_PATTERN.sub("***REDACTED***", redacted)
        for pattern in self.SECRET_PATTERNS:
            redacted = pattern.sub(r"\1***REDACTED***", redacted)
        return redacted

    def _redact_email(self, match: re.Match) -> str:
        """Keep the first two characters and the domain, plus a short hash for correlation"""
        email = match.group(0)
        local, domain = email.split("@", 1)
        if len(local) <= 2:
            return f"**@{domain}"

        email_hash = hashlib.sha256(email.encode()).hexdigest()[:6]
        return f"{local[:2]}***{email_hash}@{domain}"


def setup_pii_redaction():
    """
    Install the PII redaction filter on every root handler

    Call this after setup_logging()
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if not any(isinstance(f, PIIRedactionFilter) for f in handler.filters):
            handler.addFilter(PIIRedactionFilter())

    logging.getLogger(__name__).info("PII redaction filter enabled for all handlers")
