from typing import Callable

from flask import Flask, abort, jsonify, request

from adminlist.core_services.Request import RequestContext

TableFactory = Callable[[RequestContext], "TableBuilder"]


def _make_table(tables: dict[str, TableFactory], table_id: str):
    factory = tables.get(table_id)
    if factory is None:
        abort(404, description=f"Unknown table '{table_id}'")
    return factory(RequestContext.from_flask(request))


def register_routes(app: Flask, tables: dict[str, TableFactory], url_prefix: str = "/adminlist"):
    """
    Expose every registered table as JSON and as an xlsx download.

    ``tables`` maps a table id to a factory receiving the request context and
    returning a configured TableBuilder.
    """

    def list_table(table_id):
        return jsonify(_make_table(tables, table_id).get_response())

    def export_table(table_id):
        return _make_table(tables, table_id).export_excel(filename=f"{table_id}.xlsx")

    app.add_url_rule(f"{url_prefix}/<table_id>", "adminlist_table", list_table, methods=["GET", "POST"])
    app.add_url_rule(f"{url_prefix}/<table_id>/export", "adminlist_export", export_table, methods=["GET"])
    return app
