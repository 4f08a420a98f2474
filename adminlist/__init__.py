import json

import click
from dotenv import load_dotenv
from flask import Flask

from adminlist.core_services.Config import Config
from adminlist.core_services.Request import RequestContext
from adminlist.dsl.modellist.routes import register_routes


def AdminList(app: Flask, tables: dict = None, debug=False, **kwargs):
    """
    Wire admin lists into a Flask app.

    ``tables`` maps table ids to factories ``fn(request_context) -> TableBuilder``.
    The shared Config is stored under ``app.config["ADMINLIST"]``.
    """
    load_dotenv()

    config = Config()
    if debug:
        config.set("ADMINLIST_DEBUG", True)
    app.config["ADMINLIST"] = config

    tables = dict(tables or {})
    app.adminlist_tables = tables
    register_routes(app, tables, url_prefix=kwargs.get("url_prefix", "/adminlist"))

    @app.cli.group("adminlist")
    def adminlist_cli():
        """Inspect registered admin lists."""

    @adminlist_cli.command("tables")
    def list_tables():
        for table_id in sorted(tables):
            click.echo(table_id)

    @adminlist_cli.command("show")
    @click.argument("table_id")
    @click.option("--page", default=1, type=int)
    @click.option("--limit", default=None, type=int)
    @click.option("--filters", default="", help='JSON list of "type:value" tokens')
    def show_table(table_id, page, limit, filters):
        factory = tables.get(table_id)
        if factory is None:
            click.echo(f"Error: unknown table '{table_id}'", err=True)
            raise SystemExit(1)

        params = {f"{table_id}[page]": str(page), f"{table_id}[filters]": filters}
        if limit:
            params[f"{table_id}[limit]"] = str(limit)
        builder = factory(RequestContext(params))
        click.echo(json.dumps(builder.to_dict(), indent=2, default=str))

    return app
