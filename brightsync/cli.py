# cli.py - Command line interface for Brightsync
"""
Brightsync CLI - Push SIS course offerings into Brightspace

COMMANDS:
    Setup:
        brightsync init [--force]                       Write a brightsync.yaml template
        brightsync config                               Show resolved configuration

    Authorization:
        brightsync auth-url --redirect-uri URI          Print the OAuth2 authorization URL
        brightsync token --code CODE --redirect-uri URI Exchange the code for an access token

    LMS:
        brightsync whoami                               Show the token's user profile
        brightsync upsert --code C --name N --year Y    Insert or update a course offering
        brightsync upsert --file offering.yaml          Same, reading the SIS record from a file

    Other:
        brightsync version                              Show version information

EXAMPLES:
    # Authorize, then export the token for later commands
    brightsync auth-url --redirect-uri http://localhost:3000/callback
    brightsync token --code abc123 --redirect-uri http://localhost:3000/callback
    export BRIGHTSPACE_ACCESS_TOKEN=...

    # Upsert a course offering for academic year 2016
    brightsync upsert --code sef7 --name "Sefanja's Course 7" --year 2016
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from brightsync import __version__
from brightsync.auth import access_token_from, build_authorization_url, exchange_code, verify_state
from brightsync.config_utils import CONFIG_FILENAME, ENV_VARS, create_config_template, get_config
from brightsync.errors import BrightsyncError, ConfigurationError
from brightsync.lms_client import make_lms_client
from brightsync.models import SisCourseOffering
from brightsync.orgstructure import upsert_course_offering
from brightsync.security_utils import mask_sensitive, new_state


# ============================================================================
# Logging setup with icons
# ============================================================================

# Message-only; no per-line timestamps
LOG_FORMAT = "%(message)s"

LEVEL_ICONS = {
    logging.DEBUG: "🔍",
    logging.INFO: "✔️",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "💥",
}


class IconLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        icon = LEVEL_ICONS.get(record.levelno, "✔️")
        base = super().format(record)
        return f"{icon} {base}"


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler()
    formatter = IconLogFormatter(LOG_FORMAT)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)


def _fail(error: BrightsyncError) -> None:
    click.echo(error.format_message(), err=True)
    sys.exit(1)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


token_option = click.option(
    '--token',
    envvar='BRIGHTSPACE_ACCESS_TOKEN',
    help='OAuth2 access token (default: $BRIGHTSPACE_ACCESS_TOKEN)',
)


# ============================================================================
# Click Group Setup
# ============================================================================

@click.group()
@click.option('--verbose', '-v', count=True, help='-v for request log, -vv for debug detail')
def cli(verbose: int):
    """
    Brightsync - Push SIS course offerings into Brightspace

    Authorize against the LMS, then upsert course offerings into its
    org structure.
    """
    setup_logging(verbose)


# ============================================================================
# Setup Commands
# ============================================================================

@cli.command()
@click.option('--force', is_flag=True, help='Overwrite an existing brightsync.yaml')
@click.option('--no-comments', is_flag=True, help='Write the settings without explanatory comments')
def init(force: bool, no_comments: bool):
    """
    Write a brightsync.yaml template in the current directory
    """
    target = Path.cwd() / CONFIG_FILENAME
    if target.exists() and not force:
        click.echo(f"[!] {CONFIG_FILENAME} already exists (use --force to overwrite)", err=True)
        sys.exit(1)

    target.write_text(create_config_template(include_comments=not no_comments), encoding="utf-8")
    click.echo(f"[v] Wrote {target}")
    click.echo("    Fill in the REPLACE_WITH_... values, then run: brightsync config")


@cli.command('config')
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
def show_config(as_json: bool):
    """
    Show the resolved configuration and where each value came from
    """
    try:
        config = get_config()
    except BrightsyncError as e:
        _fail(e)

    secrets_ = {"client_secret"}
    rows = {}
    for name in ENV_VARS:
        value = getattr(config, name)
        if name in secrets_ and value:
            value = mask_sensitive(str(value))
        rows[name] = {"value": value, "source": config.source_of(name)}

    if as_json:
        _echo_json(rows)
        return

    click.echo("\nBrightsync Configuration")
    click.echo("=" * 50)
    for name, row in rows.items():
        value = row["value"] if row["value"] not in (None, "") else "(not set)"
        click.echo(f"  {name:<30} {value}  [{row['source']}]")
    if config.extra:
        click.echo(f"\n  Unrecognized keys: {', '.join(sorted(config.extra))}")


# ============================================================================
# Authorization Commands
# ============================================================================

@cli.command('auth-url')
@click.option('--redirect-uri', required=True, help='Callback URI registered for the client')
@click.option('--state', help='State to send (default: freshly generated)')
def auth_url(redirect_uri: str, state: Optional[str]):
    """
    Print the URL that starts the OAuth2 authorization-code flow

    Keep the printed state: the auth service returns it with the code, and
    'brightsync token --expected-state' checks it.
    """
    try:
        config = get_config()
        state = state or new_state()
        url = build_authorization_url(config, redirect_uri, state)
    except BrightsyncError as e:
        _fail(e)

    click.echo(url)
    click.echo(f"\nstate: {state}", err=True)


@cli.command()
@click.option('--code', required=True, help='Authorization code from the callback')
@click.option('--redirect-uri', required=True, help='Same redirect URI used for auth-url')
@click.option('--state', help='State returned with the code')
@click.option('--expected-state', help='State printed by auth-url')
@click.option('--json', 'as_json', is_flag=True, help='Print the whole token response')
def token(code: str, redirect_uri: str, state: Optional[str], expected_state: Optional[str], as_json: bool):
    """
    Exchange an authorization code for an access token
    """
    try:
        if state is not None or expected_state is not None:
            verify_state(expected_state or "", state or "")
        config = get_config()
        token_response = exchange_code(config, code, redirect_uri)
    except BrightsyncError as e:
        _fail(e)

    if as_json:
        _echo_json(token_response)
    else:
        click.echo(access_token_from(token_response) or "")


# ============================================================================
# LMS Commands
# ============================================================================

@cli.command()
@token_option
def whoami(token: Optional[str]):
    """
    Show the profile of the user the access token belongs to
    """
    try:
        client = make_lms_client(token, get_config())
        _echo_json(client.whoami())
    except BrightsyncError as e:
        _fail(e)


def _load_sis_record(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(
            message=f"Could not parse {path.name}",
            suggestion="Provide a JSON or YAML object with Code, Name and AcademicYear",
            context={"file": str(path)},
            cause=e,
        )
    if not isinstance(data, dict):
        raise ConfigurationError(
            message=f"{path.name} must contain a single SIS course offering object",
            context={"file": str(path)},
        )
    return data


@cli.command()
@click.option('--code', help='SIS course code, e.g. sef7')
@click.option('--name', help='Course offering name')
@click.option('--year', type=int, help='Academic year, e.g. 2016')
@click.option('--file', 'record_file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='JSON/YAML file with Code, Name and AcademicYear')
@token_option
def upsert(code: Optional[str], name: Optional[str], year: Optional[int],
           record_file: Optional[Path], token: Optional[str]):
    """
    Insert or update a course offering from the SIS

    Creates the course template and semester first when they do not exist.
    Prints the course offering, whether untouched, updated or inserted.

    Examples:
        brightsync upsert --code sef7 --name "Sefanja's Course 7" --year 2016
        brightsync upsert --file offering.yaml
    """
    try:
        if record_file:
            record = _load_sis_record(record_file)
        else:
            record = {"Code": code, "Name": name, "AcademicYear": year}
        sis = SisCourseOffering.from_dict(record)

        client = make_lms_client(token, get_config())
        result = upsert_course_offering(sis, client)
    except BrightsyncError as e:
        _fail(e)

    _echo_json(result)


# ============================================================================
# Other
# ============================================================================

@cli.command()
def version():
    """Show version information"""
    click.echo(f"Brightsync CLI v{__version__}")
    click.echo("Push SIS course offerings into Brightspace")


def main():
    cli()


if __name__ == '__main__':
    main()
