#!/usr/bin/env python3
"""
auth.py - OAuth2 authorization-code flow against the Brightspace auth service

    1. build_authorization_url()  -> send the user there (RFC 6749 4.1.1)
    2. the auth service redirects back with ?code=...&state=...
    3. exchange_code()            -> access token response (RFC 6749 4.1.3)
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from brightsync.config_utils import BrightsyncConfig
from brightsync.errors import connection_error, http_status_error, state_mismatch_error
from brightsync.security_utils import mask_sensitive, states_match

logger = logging.getLogger(__name__)

SCOPE = "core:*:*"


def build_authorization_url(config: BrightsyncConfig, redirect_uri: str, state: str) -> str:
    """Authorization request URL for the configured client."""
    params = {
        "response_type": "code",
        "redirect_uri": redirect_uri,
        "client_id": config.require("client_id"),
        "scope": SCOPE,
        "state": state,
    }
    return config.authorization_endpoint + "?" + urlencode(params)


def verify_state(expected: str, received: str) -> None:
    """Raise AuthorizationError unless the returned state is the one we sent."""
    if not states_match(expected, received):
        raise state_mismatch_error(expected, received)


def exchange_code(
    config: BrightsyncConfig,
    code: str,
    redirect_uri: str,
) -> Dict[str, Any]:
    """
    Exchange an authorization code for an access token.

    The client authenticates with HTTP Basic and the payload is sent as
    application/x-www-form-urlencoded (RFC 6749 2.3.1 and 4.1.3).

    Returns:
        The token response (access_token, token_type, expires_in, ...)
    """
    url = config.token_endpoint
    payload = {
        "grant_type": "authorization_code",
        "redirect_uri": redirect_uri,
        "code": code,
    }
    auth = (config.require("client_id"), config.require("client_secret"))

    logger.info("POST %s", url)
    try:
        resp = requests.post(url, auth=auth, data=payload)
    except requests.RequestException as e:
        raise connection_error("POST", url, e)

    if not resp.ok:
        raise http_status_error("POST", url, resp.status_code, resp.text)

    token = resp.json()
    logger.debug("Received access token %s", mask_sensitive(token.get("access_token", "")))
    return token


def access_token_from(token_response: Dict[str, Any]) -> Optional[str]:
    return token_response.get("access_token")
