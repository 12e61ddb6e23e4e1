"""
Logging helpers shared by every app.

ThreadSafeStreamHandler serializes writes so gthread/gevent Gunicorn workers
never interleave or hit "reentrant call" errors on stderr. SecretMaskingFilter
hides API keys and OAuth tokens that end up in log messages.
"""
import logging
import re
import threading


class ThreadSafeStreamHandler(logging.StreamHandler):
    """StreamHandler whose writes are guarded by a process-wide RLock."""

    _write_lock = threading.RLock()

    def emit(self, record):
        try:
            msg = self.format(record)
            with self._write_lock:
                self.stream.write(msg + self.terminator)
                self.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


_SECRET_PATTERNS = [
    re.compile(r'(Bearer\s+)[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE),
    re.compile(r'((?:access_token|refresh_token|client_secret|api_key)["\']?\s*[:=]\s*["\']?)[^"\'\s,&}]+', re.IGNORECASE),
    re.compile(r'(sk_(?:live|test)_)[A-Za-z0-9]+'),
    re.compile(r'(hooks\.slack\.com/services/)[A-Za-z0-9/]+'),
]


def mask_secret(value, visible=4):
    """Mask a secret keeping only the last few characters."""
    if not value:
        return ''
    value = str(value)
    if len(value) <= visible:
        return '*' * len(value)
    return '*' * (len(value) - visible) + value[-visible:]


def mask_secrets_in_text(text):
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r'\1[FILTERED]', text)
    return text


class SecretMaskingFilter(logging.Filter):
    """Rewrites the rendered message of a record with secrets masked."""

    def filter(self, record):
        try:
            message = record.getMessage()
        except Exception:
            return True
        masked = mask_secrets_in_text(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True
