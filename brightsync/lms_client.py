#!/usr/bin/env python3
"""
lms_client.py - Shared Brightspace API client helper

Thin bearer-token JSON transport over requests. Every non-2xx response and
every connection failure is raised as LmsTransportError; callers decide
which statuses (e.g. 404 on listings) are not really errors.
"""

import logging
from typing import Any, Optional

import requests

from brightsync.config_utils import BrightsyncConfig, get_config
from brightsync.errors import ConfigurationError, connection_error, http_status_error, invalid_json_error
from brightsync.security_utils import mask_sensitive

logger = logging.getLogger(__name__)


class LmsClient:
    """Bearer-authenticated access to the LMS Learning Platform API"""

    def __init__(self, access_token: str, config: Optional[BrightsyncConfig] = None):
        self.access_token = access_token
        self.config = config if config is not None else get_config()

    def __repr__(self) -> str:
        return f"LmsClient(token={mask_sensitive(self.access_token)!r})"

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token}"}

    def url(self, path: str) -> str:
        """Absolute URL for a path relative to the LP API root"""
        return self.config.lp_url + path.lstrip("/")

    def request(self, method: str, url: str, body: Any = None) -> requests.Response:
        logger.info("%s %s", method, url)
        try:
            resp = requests.request(method, url, headers=self.headers, json=body)
        except requests.RequestException as e:
            raise connection_error(method, url, e)

        if not resp.ok:
            raise http_status_error(method, url, resp.status_code, resp.text)
        return resp

    def get(self, url: str) -> Any:
        return _json_or_none(self.request("GET", url))

    def post(self, url: str, body: Any) -> Any:
        return _json_or_none(self.request("POST", url, body))

    def put(self, url: str, body: Any) -> Any:
        return _json_or_none(self.request("PUT", url, body))

    def whoami(self) -> Any:
        """Profile of the user the access token belongs to"""
        return self.get(self.url("users/whoami"))


def _json_or_none(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except requests.exceptions.JSONDecodeError as e:
        raise invalid_json_error(resp.request.method, resp.url, resp.status_code, resp.text, e)


def make_lms_client(access_token: str, config: Optional[BrightsyncConfig] = None) -> LmsClient:
    """
    Create and return an LMS API client.

    Args:
        access_token: OAuth2 bearer token
        config: Optional BrightsyncConfig (loads fresh if not provided)

    Returns:
        LmsClient instance
    """
    if not access_token:
        raise ConfigurationError(
            message="No access token provided",
            suggestion=(
                "Pass --token or set BRIGHTSPACE_ACCESS_TOKEN.\n"
                "  Get a token with: brightsync auth-url / brightsync token"
            ),
        )
    return LmsClient(access_token, config)
