"""
agentstack logging utilities.

Provides configurable logging for chain RPC calls, HTTP traffic and
multi-chain scans. RPC provider URLs often embed API keys in their path or
query string; those are masked before anything reaches a handler.
"""

import logging
import re
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Create package-specific loggers
_sdk_logger = logging.getLogger("agentstack")
_rpc_logger = logging.getLogger("agentstack.rpc")
_http_logger = logging.getLogger("agentstack.http")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Provider keys embedded in RPC URL paths (Infura /v3/<key>, Alchemy /v2/<key>)
    (re.compile(r"(/v[23]/)[A-Za-z0-9_-]{16,}"), r"\1[REDACTED]"),
    # Key-like query parameters
    (re.compile(r"((?:api[-_]?key|key|token)=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    # Basic-auth credentials in URLs
    (re.compile(r"(https?://)[^/@\s]+:[^/@\s]+@"), r"\1[REDACTED]@"),
    # Secret/token patterns
    (re.compile(r"(secret|token|password|api_key)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_SENSITIVE_QUERY_KEYS = {"apikey", "api_key", "api-key", "key", "token"}

_DEFAULT_SENSITIVE_KEYS = {
    "authorization",
    "x-payment",
    "api_key",
    "secret",
    "token",
    "password",
}


def configure_logging(
    level: int = logging.INFO,
    rpc_level: int | None = None,
    http_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure agentstack logging.

    Args:
        level: Default log level for all package loggers (default: INFO)
        rpc_level: Log level for chain RPC calls (default: same as level)
        http_level: Log level for registration/probe HTTP traffic (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from agentstack.logging import configure_logging

        # Trace every eth_call and eth_getLogs
        configure_logging(level=logging.INFO, rpc_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _sdk_logger.setLevel(level)
    _sdk_logger.addHandler(handler)

    _rpc_logger.setLevel(rpc_level if rpc_level is not None else level)
    _http_logger.setLevel(http_level if http_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get an agentstack logger.

    Args:
        name: Logger name suffix (e.g., "rpc", "scan"). If None, returns the main logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _sdk_logger
    return logging.getLogger(f"agentstack.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask API keys, credentials and secrets in a string.

    Args:
        text: Text that may contain sensitive data

    Returns:
        Text with sensitive data masked
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def redact_url(url: str) -> str:
    """
    Return ``url`` with credentials, key-like query values and provider keys masked.

    Args:
        url: An RPC or HTTP URL

    Returns:
        URL safe to log
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return mask_sensitive_data(url)

    netloc = parts.netloc
    if "@" in netloc:
        netloc = "[REDACTED]@" + netloc.rsplit("@", 1)[1]

    query = parts.query
    if query:
        pairs = [
            (key, "[REDACTED]" if key.lower() in _SENSITIVE_QUERY_KEYS else value)
            for key, value in parse_qsl(query, keep_blank_values=True)
        ]
        query = urlencode(pairs, safe="[]")

    path = mask_sensitive_data(parts.path)
    return urlunsplit((parts.scheme, netloc, path, query, parts.fragment))


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Set of keys to mask (default: authorization, x-payment, api_key, secret, token, password)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    if sensitive_keys is None:
        sensitive_keys = _DEFAULT_SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in sensitive_keys or any(sk in key_lower for sk in sensitive_keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
) -> None:
    """
    Log an HTTP request at DEBUG level with sensitive data masked.

    Args:
        method: HTTP method (GET, POST, etc.)
        url: Request URL
        headers: Request headers (optional)
        body: Request body (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {redact_url(url)}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(headers)}")

    if body:
        log_parts.append(f"body={safe_log_dict(body)}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
) -> None:
    """
    Log an HTTP response at DEBUG level.

    Args:
        status_code: HTTP status code
        url: Request URL
        elapsed_ms: Request duration in milliseconds (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {redact_url(url)}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    _http_logger.debug(" | ".join(log_parts))


def log_rpc_call(
    chain_id: int,
    method: str,
    url: str,
    elapsed_ms: float | None = None,
    error: str | None = None,
) -> None:
    """
    Log a JSON-RPC call at DEBUG level.

    Args:
        chain_id: Chain the call went to
        method: JSON-RPC method (eth_call, eth_getLogs, ...)
        url: RPC endpoint URL (keys are masked)
        elapsed_ms: Call duration in milliseconds (optional)
        error: Error description if the call failed (optional)
    """
    if not _rpc_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} chain={chain_id} url={redact_url(url)}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if error:
        log_parts.append(f"error={mask_sensitive_data(error)}")

    _rpc_logger.debug(" | ".join(log_parts))


# Export public API
__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "redact_url",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
    "log_rpc_call",
]
