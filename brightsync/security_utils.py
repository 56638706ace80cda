#!/usr/bin/env python3
"""
security_utils.py (Brightsync)

Shared security utilities for OAuth2 state handling, URL validation,
and secure logging.
"""

from __future__ import annotations

import hmac
import secrets


# ============================================================================
# Secure Logging
# ============================================================================

def mask_sensitive(value: str, visible_chars: int = 4) -> str:
    """
    Mask a sensitive value for safe logging.

    Args:
        value: The sensitive string to mask
        visible_chars: Number of characters to show at start and end

    Returns:
        Masked string like "abc1****xyz9"
    """
    if not value:
        return "****"

    if len(value) <= visible_chars * 2:
        return "****"

    return f"{value[:visible_chars]}****{value[-visible_chars:]}"


# ============================================================================
# URL Validation
# ============================================================================

def validate_url(url: str) -> str:
    """
    Validate and normalize a URL.

    Args:
        url: URL to validate

    Returns:
        Normalized URL

    Raises:
        ValueError: If URL is invalid
    """
    if not url:
        raise ValueError("URL cannot be empty")

    url = url.strip()

    if not url.startswith(('http://', 'https://')):
        raise ValueError(f"URL must start with http:// or https://: {url}")

    if '..' in url or '\x00' in url:
        raise ValueError(f"Invalid URL: {url}")

    return url.rstrip('/')


# ============================================================================
# OAuth2 State (CSRF protection, RFC 6749 section 10.12)
# ============================================================================

def new_state(nbytes: int = 32) -> str:
    """Generate an unguessable per-request OAuth2 state value."""
    return secrets.token_urlsafe(nbytes)


def states_match(expected: str, received: str) -> bool:
    """Constant-time comparison of the state sent and the state returned."""
    if not expected or not received:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))
