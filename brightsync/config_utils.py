# config_utils.py - YAML Configuration System for Brightsync
"""
Brightsync configuration utilities with YAML file support.

Configuration Resolution Order (highest to lowest priority):
1. Environment variables (HOST_URL, COURSE_OFFERING_TYPE_CODE, etc.)
2. brightsync.yaml in the working directory
3. ~/.brightsync/config.yaml (global defaults)

Usage:
    from brightsync.config_utils import get_config

    config = get_config()
    print(config.lp_url)
    print(config.require("semester_type_code"))
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import yaml

from brightsync.errors import ConfigurationError, missing_setting_error
from brightsync.security_utils import validate_url


DEFAULT_LP_PATH = "/d2l/api/lp/1.10/"
DEFAULT_AUTH_SITE = "https://auth.brightspace.com"
DEFAULT_CONTENT_PATH = "/content/enforced/"

CONFIG_FILENAME = "brightsync.yaml"

# setting name -> environment variable
ENV_VARS: Dict[str, str] = {
    "host_url": "HOST_URL",
    "lp_path": "LP_PATH",
    "auth_site": "AUTH_SITE",
    "client_id": "CLIENT_ID",
    "client_secret": "CLIENT_SECRET",
    "course_offering_type_code": "COURSE_OFFERING_TYPE_CODE",
    "course_template_type_code": "COURSE_TEMPLATE_TYPE_CODE",
    "semester_type_code": "SEMESTER_TYPE_CODE",
    "organization_name": "ORGANIZATION_NAME",
    "organization_type_id": "ORGANIZATION_TYPE_ID",
    "template_parent_org_unit_id": "TEMPLATE_PARENT_ORG_UNIT_ID",
    "offering_path": "OFFERING_PATH",
    "template_path": "TEMPLATE_PATH",
}

INT_SETTINGS = {"organization_type_id", "template_parent_org_unit_id"}
URL_SETTINGS = {"host_url", "auth_site"}


@dataclass
class BrightsyncConfig:
    """Complete Brightsync configuration"""
    # LMS connection
    host_url: Optional[str] = None
    lp_path: str = DEFAULT_LP_PATH

    # OAuth2 client
    auth_site: str = DEFAULT_AUTH_SITE
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    # Org unit type codes
    course_offering_type_code: Optional[str] = None
    course_template_type_code: Optional[str] = None
    semester_type_code: Optional[str] = None

    # Root organization (looked up, never created)
    organization_name: Optional[str] = None
    organization_type_id: Optional[int] = None

    # Course template placement
    template_parent_org_unit_id: Optional[int] = None
    template_path: str = DEFAULT_CONTENT_PATH
    offering_path: str = DEFAULT_CONTENT_PATH

    # Extra settings from config file
    extra: Dict[str, Any] = field(default_factory=dict)

    # Track where values came from (for debugging)
    _sources: Dict[str, str] = field(default_factory=dict)

    @property
    def lp_url(self) -> str:
        """Base URL for Learning Platform API calls, always ending in '/'"""
        host = self.require("host_url").rstrip("/")
        path = "/" + self.lp_path.strip("/") + "/"
        return host + path

    @property
    def authorization_endpoint(self) -> str:
        return self.auth_site.rstrip("/") + "/oauth2/auth"

    @property
    def token_endpoint(self) -> str:
        return self.auth_site.rstrip("/") + "/core/connect/token"

    def require(self, name: str) -> Any:
        """Return a setting, raising ConfigurationError if it is unset"""
        value = getattr(self, name)
        if value is None or value == "":
            raise missing_setting_error(name, ENV_VARS.get(name, name.upper()))
        return value

    def source_of(self, name: str) -> str:
        return self._sources.get(name, "default")


class ConfigLoader:
    """Load configuration from multiple sources"""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()
        self.config = BrightsyncConfig()

    def load(self) -> BrightsyncConfig:
        """Load configuration from all sources in priority order"""
        # Load in reverse priority (lowest first, higher overwrites)
        self._load_global_config()
        self._load_yaml_config()
        self._load_env_vars()
        return self.config

    def _load_global_config(self):
        """Load ~/.brightsync/config.yaml if it exists"""
        global_config = Path.home() / ".brightsync" / "config.yaml"
        if global_config.exists():
            self._load_yaml_file(global_config, "global")

    def _load_yaml_config(self):
        """Load brightsync.yaml from the working directory"""
        yaml_path = self.config_dir / CONFIG_FILENAME
        if yaml_path.exists():
            self._load_yaml_file(yaml_path, CONFIG_FILENAME)

    def _load_yaml_file(self, path: Path, source_name: str):
        """Load settings from a YAML file"""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                message=f"Failed to parse {path.name}",
                suggestion="Fix the YAML syntax or delete the file",
                context={"file": str(path)},
                cause=e,
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                message=f"{path.name} must contain a mapping of settings",
                context={"file": str(path), "found": type(data).__name__},
            )

        for key, value in data.items():
            if key in ENV_VARS:
                self._set(key, value, source_name)
            else:
                self.config.extra[key] = value

    def _load_env_vars(self):
        """Load from environment variables (highest priority)"""
        for name, env_var in ENV_VARS.items():
            value = os.environ.get(env_var)
            if value:
                self._set(name, value, f"env:{env_var}")

    def _set(self, name: str, value: Any, source_name: str):
        if name in INT_SETTINGS and value is not None:
            try:
                value = int(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    message=f"Setting '{name}' must be an integer, got {value!r}",
                    context={"source": source_name},
                    cause=e,
                )
        if name in URL_SETTINGS and value:
            try:
                value = validate_url(str(value))
            except ValueError as e:
                raise ConfigurationError(
                    message=f"Setting '{name}' is not a valid URL: {value!r}",
                    context={"source": source_name},
                    cause=e,
                )
        setattr(self.config, name, value)
        self.config._sources[name] = source_name


# ============================================================================
# Public API
# ============================================================================

def get_config(config_dir: Optional[Path] = None) -> BrightsyncConfig:
    """
    Get complete Brightsync configuration.

    Args:
        config_dir: Directory holding brightsync.yaml (defaults to cwd)

    Returns:
        BrightsyncConfig with all settings resolved
    """
    loader = ConfigLoader(config_dir)
    return loader.load()


def create_config_template(include_comments: bool = True) -> str:
    """
    Generate a brightsync.yaml template.

    Args:
        include_comments: Whether to include explanatory comments

    Returns:
        YAML string ready to write to file
    """
    if include_comments:
        return '''# Brightsync Configuration File
# Every setting can be overridden by the environment variable in brackets.

# LMS host and Learning Platform API path [HOST_URL, LP_PATH]
host_url: https://REPLACE_WITH_YOUR_LMS_HOST
lp_path: /d2l/api/lp/1.10/

# OAuth2 client registration [AUTH_SITE, CLIENT_ID, CLIENT_SECRET]
# Prefer the environment variable for the secret.
auth_site: https://auth.brightspace.com
client_id: REPLACE_WITH_YOUR_CLIENT_ID

# Org unit type codes [COURSE_OFFERING_TYPE_CODE, COURSE_TEMPLATE_TYPE_CODE, SEMESTER_TYPE_CODE]
course_offering_type_code: Course Offering
course_template_type_code: Course Template
semester_type_code: Semester

# Organization that new semesters are placed under [ORGANIZATION_NAME, ORGANIZATION_TYPE_ID]
organization_name: REPLACE_WITH_YOUR_ORGANIZATION
# organization_type_id: REPLACE_WITH_ORGANIZATION_TYPE_ID

# Parent org unit for new course templates [TEMPLATE_PARENT_ORG_UNIT_ID]
# template_parent_org_unit_id: REPLACE_WITH_PARENT_ORG_UNIT_ID

# Content paths [TEMPLATE_PATH, OFFERING_PATH]
template_path: /content/enforced/
offering_path: /content/enforced/
'''
    else:
        return '''host_url: https://REPLACE_WITH_YOUR_LMS_HOST
lp_path: /d2l/api/lp/1.10/
auth_site: https://auth.brightspace.com
client_id: REPLACE_WITH_YOUR_CLIENT_ID
course_offering_type_code: Course Offering
course_template_type_code: Course Template
semester_type_code: Semester
organization_name: REPLACE_WITH_YOUR_ORGANIZATION
template_path: /content/enforced/
offering_path: /content/enforced/
'''
