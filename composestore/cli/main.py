"""CLI main entry point

composestore serve [--host HOST] [--port PORT] [--reload] [--log-level LEVEL]
composestore appstore list
composestore appstore register URL [--wait/--no-wait] [--timeout SECONDS]
composestore appstore unregister ID
composestore apps [--category NAME] [--author-type TYPE] [--recommend]
composestore categories
"""

import sys

import click
from rich.console import Console
from rich.table import Table

from composestore import __version__
from composestore.appstore.catalog import filter_catalog, store_info_list
from composestore.appstore.categories import aggregate_categories
from composestore.appstore.exceptions import AppStoreError, InventoryError
from composestore.appstore.installed import installed_store_app_ids
from composestore.appstore.tasks import TaskStatus
from composestore.core.config import get_config
from composestore.core.log import configure_logging
from composestore.services import build_services

console = Console()


def _title(info) -> str:
    return info.title.get("en_us") or next(iter(info.title.values()), "")


@click.group()
@click.version_option(version=__version__, prog_name="composestore")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: from configuration)",
)
@click.pass_context
def cli(ctx, log_level):
    """composestore - compose app store catalog"""
    config = get_config()
    configure_logging((log_level or config.log_level).upper(), config.log_file)
    ctx.obj = config


@cli.command(name="serve")
@click.option("--host", default=None, help="Host to bind to (default: from configuration)")
@click.option("--port", default=None, type=int, help="Port to bind to (default: from configuration)")
@click.option("--reload", is_flag=True, help="Enable auto-reload (development mode)")
@click.pass_obj
def serve_cmd(config, host, port, reload):
    """Serve the app management HTTP API"""
    import uvicorn

    host = host or config.host
    port = port or config.port
    click.secho(f"Starting composestore API at http://{host}:{port}", fg="cyan")
    uvicorn.run(
        "composestore.webui.app:app_factory",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


@cli.group(name="appstore")
def appstore_group():
    """Manage registered app stores"""


@appstore_group.command(name="list")
@click.pass_obj
def appstore_list_cmd(config):
    """List registered app stores"""
    services = build_services(config)
    try:
        table = Table(title="App Stores")
        table.add_column("ID", justify="right")
        table.add_column("URL")
        table.add_column("Synchronized")
        for source in services.registry.list():
            synced = services.catalog.backend.is_materialized(source)
            table.add_row(str(source.id), source.url, "yes" if synced else "no")
        console.print(table)
    finally:
        services.close()


@appstore_group.command(name="register")
@click.argument("url")
@click.option("--wait/--no-wait", default=True, show_default=True, help="Report the outcome; with --no-wait it still completes before exit")
@click.option("--timeout", default=None, type=float, help="Seconds before registration is cancelled")
@click.pass_obj
def appstore_register_cmd(config, url, wait, timeout):
    """Register an app store by URL"""
    services = build_services(config)
    cancel_pending = True
    try:
        try:
            result = services.registry.register(url, timeout=timeout)
        except AppStoreError as e:
            click.secho(f"Error: {e}", fg="red", err=True)
            sys.exit(1)

        if result.already_registered:
            click.secho("appstore is already registered", fg="yellow")
            return

        if not wait:
            click.echo("registration started in the background")
            cancel_pending = False
            return

        with console.status(f"Registering {url}..."):
            status = result.task.wait()

        if status is TaskStatus.COMPLETED:
            click.secho(f"App store registered: {url}", fg="green")
        else:
            click.secho(f"Registration {status.value}: {result.task.error}", fg="red", err=True)
            sys.exit(1)
    finally:
        services.close(cancel_pending=cancel_pending)


@appstore_group.command(name="unregister")
@click.argument("appstore_id", type=int)
@click.pass_obj
def appstore_unregister_cmd(config, appstore_id):
    """Unregister the app store at position APPSTORE_ID"""
    services = build_services(config)
    try:
        removed = services.registry.unregister(appstore_id)
        click.secho(f"app store is unregistered: {removed.url}", fg="green")
    except AppStoreError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    finally:
        services.close()


@cli.command(name="apps")
@click.option("--category", default=None, help="Filter by category")
@click.option("--author-type", default=None, help="official, by_casaos or community")
@click.option("--recommend", is_flag=True, help="Only recommended apps")
@click.pass_obj
def apps_cmd(config, category, author_type, recommend):
    """List store apps"""
    services = build_services(config)
    try:
        try:
            catalog = filter_catalog(
                services.catalog.catalog(),
                category=category,
                author_type=author_type,
                recommend=recommend,
                recommend_source=services.catalog.recommend,
            )
        except AppStoreError as e:
            click.secho(f"Error: {e}", fg="red", err=True)
            sys.exit(1)

        try:
            installed = set(installed_store_app_ids(services.inventory.list_installed()))
        except InventoryError as e:
            click.secho(f"Warning: {e}", fg="yellow", err=True)
            installed = set()

        table = Table(title="Store Apps")
        table.add_column("ID")
        table.add_column("Title")
        table.add_column("Category")
        table.add_column("Author")
        table.add_column("Installed")
        for store_app_id, info in store_info_list(catalog).items():
            table.add_row(
                store_app_id,
                _title(info),
                info.category,
                info.author,
                "yes" if store_app_id in installed else "",
            )
        console.print(table)
    finally:
        services.close()


@cli.command(name="categories")
@click.pass_obj
def categories_cmd(config):
    """List categories with app counts"""
    services = build_services(config)
    try:
        try:
            categories = aggregate_categories(services.catalog.category_map())
        except AppStoreError as e:
            click.secho(f"Error: {e}", fg="red", err=True)
            sys.exit(1)

        table = Table(title="Categories")
        table.add_column("ID", justify="right")
        table.add_column("Name")
        table.add_column("Count", justify="right")
        table.add_column("Description")
        for category in categories:
            table.add_row(str(category.id), category.name, str(category.count or 0), category.description)
        console.print(table)
    finally:
        services.close()


if __name__ == "__main__":
    cli()
