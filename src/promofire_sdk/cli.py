"""
Command-line interface for Promofire SDK.

Every command builds a client from PromofireSettings (PROMOFIRE_* environment
variables or .env), starts configuration and issues its call right away; the
call waits for the session like any other SDK consumer would.

Available commands:
- availability: Check whether code generation is available
- campaigns / campaign: List campaigns or show one
- generate-code / generate-codes: Create one or many codes
- redeem: Redeem a code
- me / my-codes / my-redeems: Current customer data
- redeems: Redeems of codes, optionally filtered
- logout: Remove the persisted session token
- debug-token: Show the persisted session token
"""

import asyncio
import json
import logging
import sys
from datetime import datetime

import click

from promofire_sdk.client import PromofireClient
from promofire_sdk.config import PromofireSettings
from promofire_sdk.exceptions import PromofireError
from promofire_sdk.models import CreateCodesRequest
from promofire_sdk.models import UserInfo
from promofire_sdk.token_store import TOKEN_KEY
from promofire_sdk.token_store import FileTokenStore

logger = logging.getLogger("promofire_sdk.cli")


def _echo_model(result) -> None:
    if isinstance(result, list):
        click.echo(json.dumps([item.to_dict() for item in result], indent=2))
    else:
        click.echo(json.dumps(result.to_dict(), indent=2))


def _parse_payload(ctx, param, value):
    if value is None:
        return None
    try:
        data = json.loads(value)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise click.BadParameter("must be a JSON object")
    return data


def _run_with_client(ctx: click.Context, call):
    """Configure a client, run ``call(client)`` and print the outcome."""
    settings: PromofireSettings = ctx.obj["settings"]
    user_info: UserInfo | None = ctx.obj.get("user_info")

    async def _run():
        async with PromofireClient(settings) as client:
            client.configure(settings.secret, user_info)
            return await call(client)

    try:
        return asyncio.run(_run())
    except PromofireError as exc:
        logger.debug("Command failed", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc


@click.group()
@click.option("--secret", envvar="PROMOFIRE_SECRET", help="SDK secret")
@click.option("--user-id", default=None, help="Your own identifier of the customer")
@click.option("--email", default=None, help="Customer e-mail")
@click.option("--debug", is_flag=True, help="Log HTTP traffic")
@click.pass_context
def cli(ctx, secret, user_id, email, debug):
    """Promofire SDK CLI"""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    settings = PromofireSettings()
    if secret:
        settings.secret = secret
    if debug:
        settings.debug = True
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    if user_id or email:
        ctx.obj["user_info"] = UserInfo(customer_user_id=user_id, email=email)


def _require_secret(ctx: click.Context) -> None:
    if not ctx.obj["settings"].secret:
        raise click.UsageError("SDK secret is required (--secret or PROMOFIRE_SECRET)")


@cli.command()
@click.pass_context
def availability(ctx):
    """Check whether code generation is available."""
    _require_secret(ctx)
    available = _run_with_client(ctx, lambda c: c.is_code_generation_available())
    click.echo("available" if available else "unavailable")


@cli.command()
@click.option("--limit", default=10, show_default=True, type=int)
@click.option("--offset", default=0, show_default=True, type=int)
@click.pass_context
def campaigns(ctx, limit, offset):
    """List campaigns (code templates)."""
    _require_secret(ctx)
    _echo_model(_run_with_client(ctx, lambda c: c.get_campaigns(limit, offset)))


@cli.command()
@click.option("--id", "campaign_id", required=True, help="Campaign UUID")
@click.pass_context
def campaign(ctx, campaign_id):
    """Show a single campaign."""
    _require_secret(ctx)
    _echo_model(_run_with_client(ctx, lambda c: c.get_campaign(campaign_id)))


@cli.command("generate-code")
@click.option("--template-id", required=True, help="Campaign UUID")
@click.option("--value", required=True, help="Code value")
@click.option(
    "--payload",
    default=None,
    callback=_parse_payload,
    help="JSON object attached to the code",
)
@click.pass_context
def generate_code(ctx, template_id, value, payload):
    """Generate a single code."""
    _require_secret(ctx)
    _echo_model(
        _run_with_client(ctx, lambda c: c.generate_code(value, template_id, payload))
    )


@cli.command("generate-codes")
@click.option("--template-id", required=True, help="Campaign UUID")
@click.option("--count", required=True, type=int, help="Number of codes")
@click.option(
    "--payload",
    default=None,
    callback=_parse_payload,
    help="JSON object attached to the codes",
)
@click.pass_context
def generate_codes(ctx, template_id, count, payload):
    """Generate a batch of codes."""
    _require_secret(ctx)
    try:
        request = CreateCodesRequest(
            template_id=template_id, count=count, payload=payload
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    _echo_model(_run_with_client(ctx, lambda c: c.generate_codes(request)))


@cli.command()
@click.option("--code", "code_value", required=True, help="Code value to redeem")
@click.pass_context
def redeem(ctx, code_value):
    """Redeem a code."""
    _require_secret(ctx)
    _run_with_client(ctx, lambda c: c.redeem_code(code_value))
    click.echo(f"Redeemed {code_value}")


@cli.command()
@click.pass_context
def me(ctx):
    """Show the current customer."""
    _require_secret(ctx)
    _echo_model(_run_with_client(ctx, lambda c: c.get_current_user()))


@cli.command("my-codes")
@click.option("--limit", default=10, show_default=True, type=int)
@click.option("--offset", default=0, show_default=True, type=int)
@click.pass_context
def my_codes(ctx, limit, offset):
    """List codes owned by the current customer."""
    _require_secret(ctx)
    _echo_model(
        _run_with_client(ctx, lambda c: c.get_current_user_codes(limit, offset))
    )


@cli.command("my-redeems")
@click.option("--limit", default=10, show_default=True, type=int)
@click.option("--offset", default=0, show_default=True, type=int)
@click.option("--from", "date_from", required=True, type=click.DateTime())
@click.option("--to", "date_to", default=None, type=click.DateTime())
@click.option("--code", "code_value", default=None)
@click.pass_context
def my_redeems(ctx, limit, offset, date_from, date_to, code_value):
    """List redeems made by the current customer."""
    _require_secret(ctx)
    date_to = date_to or datetime.now()
    _echo_model(
        _run_with_client(
            ctx,
            lambda c: c.get_current_user_redeems(
                limit, offset, date_from, date_to, code_value
            ),
        )
    )


@cli.command()
@click.option("--limit", default=10, show_default=True, type=int)
@click.option("--offset", default=0, show_default=True, type=int)
@click.option("--from", "date_from", required=True, type=click.DateTime())
@click.option("--to", "date_to", default=None, type=click.DateTime())
@click.option("--code", "code_value", default=None)
@click.option("--redeemer-id", default=None, help="Customer UUID")
@click.pass_context
def redeems(ctx, limit, offset, date_from, date_to, code_value, redeemer_id):
    """List redeems of codes."""
    _require_secret(ctx)
    date_to = date_to or datetime.now()
    _echo_model(
        _run_with_client(
            ctx,
            lambda c: c.get_code_redeems(
                limit, offset, date_from, date_to, code_value, redeemer_id
            ),
        )
    )


@cli.command()
@click.pass_context
def logout(ctx):
    """Remove the persisted session token."""
    settings: PromofireSettings = ctx.obj["settings"]
    asyncio.run(FileTokenStore(settings.token_cache_path).clear())
    click.echo("Session token removed")


@cli.command("debug-token")
@click.pass_context
def debug_token(ctx):
    """Show the persisted session token (prefix only)."""
    settings: PromofireSettings = ctx.obj["settings"]
    path = settings.token_cache_path
    click.echo(f"Checking token at: {path}")

    if not path.exists():
        click.echo("Token file does not exist.")
        sys.exit(1)

    try:
        token = json.loads(path.read_text()).get(TOKEN_KEY)
    except (json.JSONDecodeError, OSError, AttributeError) as e:
        click.echo(f"Failed to read token: {e}")
        sys.exit(1)

    if not token:
        click.echo(f"Missing '{TOKEN_KEY}'")
        sys.exit(1)
    click.echo(f"Token prefix: {token[:10]}...")


if __name__ == "__main__":
    cli()
