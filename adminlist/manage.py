import argparse
import json

from adminlist.core_services.Config import Config
from adminlist.core_services.Request import RequestContext
from adminlist.core_services.Sqlite3Database import Sqlite3Database
from adminlist.database.Model import Model
from adminlist.dsl.modellist.builder import TableBuilder
from adminlist.dsl.modellist.filters import encode_filter_tokens


def make_model(table: str, database: str, config: Config) -> Model:
    """Introspected model over an existing sqlite table."""
    model_class = type(table.title().replace("_", ""), (Model,), {"__table__": table})
    return model_class(Sqlite3Database(database, config=config))


def make_builder(args, config: Config) -> TableBuilder:
    params = {f"{args.table}[page]": str(args.page)}
    if args.limit:
        params[f"{args.table}[limit]"] = str(args.limit)
    if args.order_field:
        params[f"{args.table}[order_field]"] = args.order_field
        params[f"{args.table}[order_dir]"] = args.order_dir

    filters = {}
    if args.search:
        filters["search"] = args.search
    if filters:
        params[f"{args.table}[filters]"] = encode_filter_tokens(filters)

    model = make_model(args.table, args.database or config.database, config)
    builder = TableBuilder(model, args.table, RequestContext(params), config=config)
    if args.columns:
        builder.reset_fields()
        for key in args.columns.split(","):
            builder.field(key.strip())
    return builder


def add_list_arguments(parser):
    parser.add_argument("table", help="Table name")
    parser.add_argument("--database", help="Sqlite database path (defaults to ADMINLIST_DATABASE)")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--limit", type=int, help="Rows per page")
    parser.add_argument("--order-field", help="Column to sort by")
    parser.add_argument("--order-dir", choices=["asc", "desc"], default="asc")
    parser.add_argument("--search", help="Free-text search over textual columns")
    parser.add_argument("--columns", help="Comma separated columns to show, in order")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Admin list tool")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    list_parser = subparsers.add_parser("list", help="Print one page of a table as JSON")
    add_list_arguments(list_parser)

    export_parser = subparsers.add_parser("export", help="Write one page of a table to an xlsx file")
    add_list_arguments(export_parser)
    export_parser.add_argument("--output", help="Target file (defaults to <table>.xlsx)")

    args = parser.parse_args(argv)
    config = Config(dotenv=True)

    if args.command == "list":
        builder = make_builder(args, config)
        print(json.dumps(builder.to_dict(), indent=2, default=str))

    elif args.command == "export":
        builder = make_builder(args, config)
        output = args.output or f"{args.table}.xlsx"
        builder.build_workbook().save(output)
        print(f"Exported {len(builder.get_rows())} rows to {output}")

    else:
        parser.print_help()
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
