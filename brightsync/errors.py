# errors.py
"""
# Brightsync
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

Custom exception classes with improved error messages for Brightsync

All exceptions include:
- Clear error description
- Actionable suggestions
- Relevant context
"""
from typing import Optional, Dict, Any


class BrightsyncError(Exception):
    """Base exception for all Brightsync errors"""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        self.cause = cause
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error with all details"""
        lines = [
            "",
            "=" * 70,
            f"❌ {self.__class__.__name__}",
            "=" * 70,
            "",
            self.message,
        ]

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append("")
            lines.append("💡 Suggestion:")
            lines.append(f"  {self.suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        lines.append("")
        lines.append("=" * 70)
        lines.append("")

        return "\n".join(lines)


class ConfigurationError(BrightsyncError):
    """Configuration is missing or invalid"""
    pass


class LmsTransportError(BrightsyncError):
    """HTTP or network failure talking to the LMS"""

    def __init__(
        self,
        message: str,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
        suggestion: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response_text = response_text
        context: Dict[str, Any] = {"request": f"{method} {url}"}
        if status_code is not None:
            context["status"] = status_code
        if response_text:
            context["response"] = response_text[:500]
        super().__init__(message, suggestion=suggestion, context=context, cause=cause)


class AmbiguousMatchError(BrightsyncError):
    """More than one org unit matched a business key exactly"""
    pass


class OrgUnitTypeNotFoundError(BrightsyncError):
    """No org unit type exists for a configured type code"""
    pass


class PrerequisiteMissingError(BrightsyncError):
    """An entity that must already exist in the LMS was not found"""
    pass


class AuthorizationError(BrightsyncError):
    """OAuth2 authorization response could not be trusted"""
    pass


class MalformedOrgUnitError(BrightsyncError):
    """The LMS returned an org unit without a usable identifier"""
    pass


# Specific error factory functions

def http_status_error(method: str, url: str, status_code: int, response_text: str) -> LmsTransportError:
    """Create error for a non-2xx LMS response"""
    suggestion = None
    if status_code == 401:
        suggestion = (
            "The access token was rejected. Get a fresh one:\n"
            "  brightsync auth-url --redirect-uri <uri>\n"
            "  brightsync token --code <code> --redirect-uri <uri>"
        )
    elif status_code == 403:
        suggestion = "Check that the token's user has the permissions this call needs."
    return LmsTransportError(
        message=f"LMS request failed with HTTP {status_code}",
        method=method,
        url=url,
        status_code=status_code,
        response_text=response_text,
        suggestion=suggestion,
    )


def connection_error(method: str, url: str, cause: Exception) -> LmsTransportError:
    """Create error when the LMS could not be reached at all"""
    return LmsTransportError(
        message="Could not reach the LMS",
        method=method,
        url=url,
        suggestion="Verify HOST_URL and your network connection",
        cause=cause,
    )


def invalid_json_error(method: str, url: str, status_code: int, response_text: str,
                       cause: Exception) -> LmsTransportError:
    """Create error for a successful LMS response whose body is not JSON"""
    return LmsTransportError(
        message="LMS response is not valid JSON",
        method=method,
        url=url,
        status_code=status_code,
        response_text=response_text,
        suggestion=(
            "The LMS (or a proxy in front of it) answered with something else,\n"
            "  often a maintenance or login page. Check HOST_URL and try again later."
        ),
        cause=cause,
    )


def ambiguous_match_error(match_filter: Dict[str, Any], count: int) -> AmbiguousMatchError:
    """Create error when exact-match filtering leaves several items"""
    return AmbiguousMatchError(
        message="multiple items found",
        suggestion=(
            "Codes are expected to be unique per org unit type.\n"
            "  Remove or recode the duplicates in the LMS and run again."
        ),
        context={
            "filter": match_filter,
            "matches": count,
        }
    )


def org_unit_type_not_found_error(code: str) -> OrgUnitTypeNotFoundError:
    """Create error for an unknown org unit type code"""
    return OrgUnitTypeNotFoundError(
        message=f"no organizational unit type found for {code}",
        suggestion=(
            "Check the *_TYPE_CODE settings against the org unit types\n"
            "  defined in the LMS (Admin Tools → Org Unit Editor → Org Unit Type Editor)"
        ),
        context={"code": code}
    )


def organization_not_found_error(name: str) -> PrerequisiteMissingError:
    """Create error when the root organization cannot be resolved"""
    return PrerequisiteMissingError(
        message=f"Organization not found: {name}",
        suggestion=(
            "Brightsync never creates the organization itself.\n"
            "  Set ORGANIZATION_NAME to the exact name of an existing organization."
        ),
        context={
            "organization_name": name,
        }
    )


def missing_setting_error(name: str, env_var: str) -> ConfigurationError:
    """Create error for a required setting that is not configured"""
    return ConfigurationError(
        message=f"Setting '{name}' is not configured",
        suggestion=(
            f"Set {env_var} environment variable:\n"
            f"  export {env_var}=...\n\n"
            "Or add it to brightsync.yaml:\n"
            f"  {name}: ..."
        ),
        context={
            "checked_locations": [
                f"{env_var} environment variable",
                "brightsync.yaml",
                "~/.brightsync/config.yaml",
            ]
        }
    )


def state_mismatch_error(expected: str, received: str) -> AuthorizationError:
    """Create error when the OAuth2 state round trip does not match"""
    return AuthorizationError(
        message="Authorization response state does not match the request",
        suggestion="Start over with: brightsync auth-url --redirect-uri <uri>",
        context={
            "expected_state": expected,
            "received_state": received,
        }
    )


def missing_identifier_error(org_unit: Any) -> MalformedOrgUnitError:
    """Create error when an org unit carries neither Id nor Identifier"""
    return MalformedOrgUnitError(
        message="LMS org unit has neither 'Id' nor 'Identifier'",
        suggestion="The LMS may have answered a create request with an empty body.",
        context={"org_unit": org_unit}
    )
