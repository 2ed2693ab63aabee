# app/cli/shipping.py
import asyncio
import click

from app.core.exceptions import DatabaseError, SettingsError
from app.core.logging_config import configure_logging
from app.database import Base, async_session, engine
from app import models  # noqa: F401  registers models with Base
from app.services.settings_service import SettingsService
from app.services.shipping.rule_service import ShippingRuleService


@click.group()
def cli():
    """Shipping rules and settings maintenance"""
    configure_logging()


@cli.command("create-tables")
def create_tables():
    """Create the shipping tables directly using SQLAlchemy"""

    async def _create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()
        click.echo("All tables created successfully!")

    asyncio.run(_create_tables())


@cli.command("list-rules")
@click.option("--active-only", is_flag=True, help="Only the rules the checkout applies")
def list_rules(active_only):
    """List shipping rules in evaluation order"""

    async def _list():
        async with async_session() as session:
            service = ShippingRuleService(session)
            try:
                rules = await (service.get_active_rules() if active_only else service.list_rules())
            except DatabaseError as e:
                raise click.ClickException(str(e))

            if not rules:
                click.echo("No shipping rules found")
                return

            for rule in rules:
                status = "active" if rule.active else "inactive"
                conditions = rule.condition_value.model_dump(exclude_unset=True) if rule.condition_value else {}
                adjustment = ""
                if rule.discount_type:
                    adjustment = f" {rule.discount_type.value}={rule.discount_value}"
                click.echo(
                    f"[{rule.id}] priority={rule.priority} {rule.rule_type.value}/{rule.condition_type.value}"
                    f"{adjustment} ({status}) conditions={conditions}"
                )

    asyncio.run(_list())


@cli.command("set-production-days")
@click.argument("days", type=click.IntRange(min=0))
def set_production_days(days):
    """Set the production lead time added to every shipping option"""

    async def _set():
        async with async_session() as session:
            try:
                saved = await SettingsService(session).set_production_days(days)
            except SettingsError as e:
                raise click.ClickException(str(e))
            click.echo(f"Production days set to {saved}")

    asyncio.run(_set())


if __name__ == "__main__":
    cli()
