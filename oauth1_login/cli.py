"""CLI commands for oauth1-login."""

import logging
from pathlib import Path

import click
import yaml

from oauth1_login.auth_header import HeaderValueEncoding, OAuthParameters
from oauth1_login.config import load_config, validate_config
from oauth1_login.signature import (
    SigningKeyStrategy,
    next_nonce,
    obtain_request_token_header,
    sign,
    signature_base_string,
    signing_key,
    upgrade_request_token_header,
)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "oauth1-login"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"


def get_config_path(config: str | None) -> Path:
    """Get config file path, creating default if needed."""
    if config:
        return Path(config)

    # Use default location
    if not DEFAULT_CONFIG_FILE.exists():
        DEFAULT_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        DEFAULT_CONFIG_FILE.write_text("providers: {}\n")

    return DEFAULT_CONFIG_FILE


def config_option():
    """Decorator for --config option."""
    return click.option(
        "--config", "-c",
        default=None,
        type=click.Path(exists=False),
        help=f"Config file path (default: {DEFAULT_CONFIG_FILE})"
    )


def parse_pairs(values: tuple[str, ...]) -> list[tuple[str, str]]:
    """Parse repeated key=value options."""
    pairs = []
    for item in values:
        if "=" not in item:
            raise click.BadParameter(f"expected key=value, got '{item}'")
        key, value = item.split("=", 1)
        pairs.append((key, value))
    return pairs


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """OAuth 1.0a login CLI."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@main.command()
@config_option()
def providers(config: str | None):
    """List configured identity providers."""
    cfg = load_config(get_config_path(config))
    for name in cfg.providers:
        click.echo(name)


@main.command()
@config_option()
def validate(config: str | None):
    """Validate the configuration file."""
    try:
        cfg = load_config(get_config_path(config))
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    errors = validate_config(cfg)
    if errors:
        for error in errors:
            click.echo(f"Error: {error}", err=True)
        raise SystemExit(1)
    click.echo("Configuration is valid.")


@main.command("config")
@config_option()
@click.option("--resolved", is_flag=True, help="Show config with env vars resolved")
def config_cmd(config: str | None, resolved: bool):
    """Show the current configuration."""
    config_path = get_config_path(config)
    if resolved:
        cfg = load_config(config_path)
        click.echo(yaml.dump(cfg.model_dump(mode="json"), default_flow_style=False))
    else:
        with open(config_path) as f:
            click.echo(f.read())


@main.command("sign")
@click.option("--url", required=True, help="Base URL of the request")
@click.option("--method", "-X", default="POST", help="HTTP method")
@click.option("--consumer-key", required=True)
@click.option("--consumer-secret", required=True)
@click.option("--callback", default=None, help="oauth_callback (request token leg)")
@click.option("--token", default=None, help="oauth_token (access token leg)")
@click.option("--token-secret", default="", help="Token secret (rfc5849 keys only)")
@click.option(
    "--key-strategy",
    type=click.Choice([s.value for s in SigningKeyStrategy]),
    default=SigningKeyStrategy.CONSUMER_SECRET_ONLY.value,
)
@click.option("--nonce", default=None)
@click.option("--timestamp", default=None)
@click.option("--param", "-p", multiple=True, help="Extra signed parameter as key=value")
def sign_cmd(
    url: str,
    method: str,
    consumer_key: str,
    consumer_secret: str,
    callback: str | None,
    token: str | None,
    token_secret: str,
    key_strategy: str,
    nonce: str | None,
    timestamp: str | None,
    param: tuple[str, ...],
):
    """Print the signature base string and signed Authorization header."""
    if (callback is None) == (token is None):
        click.echo("Error: exactly one of --callback or --token is required", err=True)
        raise SystemExit(1)

    nonce = nonce or next_nonce()
    if callback is not None:
        header = obtain_request_token_header(callback, consumer_key, nonce, timestamp)
    else:
        header = upgrade_request_token_header(consumer_key, token, nonce, timestamp)

    extra = parse_pairs(param)
    key = signing_key(SigningKeyStrategy(key_strategy), consumer_secret, token_secret)
    base_string = signature_base_string(header, method, url, extra)
    signed = sign(header, method, url, key, extra)

    click.echo(f"Base string: {base_string}")
    click.echo(f"Signature: {signed.parameter(OAuthParameters.SIGNATURE)}")
    click.echo(f"Authorization: {signed.render(HeaderValueEncoding.URI_ENCODE)}")


@main.command("request-token")
@click.argument("provider")
@config_option()
def request_token_cmd(provider: str, config: str | None):
    """Obtain a request token and print the authorization URL."""
    from oauth1_login.oauth1a import authorize_url, request_token
    from oauth1_login.transport import HttpxTransport

    cfg = load_config(get_config_path(config))
    settings = cfg.providers.get(provider)
    if settings is None:
        click.echo(f"Error: provider '{provider}' not found", err=True)
        raise SystemExit(1)

    transport = HttpxTransport(timeout=cfg.timeout)
    try:
        token = request_token(
            transport, settings, cfg.callback_url(provider), debug=cfg.debug
        )
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    finally:
        transport.close()

    click.echo(f"Request token: {token.token}")
    click.echo(f"Authorize URL: {authorize_url(settings, token)}")


@main.command()
@config_option()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", "-p", default=8000, type=int, help="Port for HTTP transport")
@click.option("--env-file", "-e", default=".env", type=click.Path(), help="Path to .env file (default: .env)")
def serve(config: str | None, host: str, port: int, env_file: str):  # pragma: no cover
    """Start the login server."""
    import uvicorn
    from dotenv import load_dotenv

    from oauth1_login.app import create_app

    # Load environment variables from .env file
    load_dotenv(env_file)

    cfg = load_config(str(get_config_path(config)))
    uvicorn.run(create_app(cfg), host=host, port=port)
