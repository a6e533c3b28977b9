"""
Command-line entry point.

  erdforge ddl diagram.json --dialect PostgreSQL [-o schema.sql]
  erdforge import --db-type MySQL --host db --user app --database shop -o shop.json
  erdforge layout diagram.json [-o arranged.json]
  erdforge sample -o sample.json

Connection passwords may come from ERDFORGE_DB_PASSWORD (.env) instead of --password.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .codec import dumps, load_diagram
from .config import Settings, load_env
from .ddl import generate_model_ddl
from .dialects import default_port, supported_dialects
from .errors import ErdForgeError
from .introspection import ConnectionInfo, import_schema
from .layout import arrange_tables
from .model import sample_model

logger = logging.getLogger(__name__)


def _emit(content: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(content, encoding="utf-8")
        logger.info(f"Wrote {output}")
    else:
        sys.stdout.write(content)
        if not content.endswith("\n"):
            sys.stdout.write("\n")


def _cmd_ddl(args) -> int:
    model = load_diagram(args.diagram)
    _emit(generate_model_ddl(model, args.dialect), args.output)
    return 0


def _cmd_import(args) -> int:
    port = args.port or default_port(args.db_type)
    info = ConnectionInfo(
        db_type=args.db_type,
        host=args.host,
        port=port,
        user_id=args.user,
        password=args.password or os.environ.get("ERDFORGE_DB_PASSWORD", ""),
        database=args.database,
        schema=args.schema,
    )
    result = import_schema(info)
    if not result.is_success:
        print(f"Import failed: {result.error_message}", file=sys.stderr)
        return 1
    _emit(dumps(result.schema.to_model()), args.output)
    return 0


def _cmd_layout(args) -> int:
    model = load_diagram(args.diagram)
    arrange_tables(model.tables)
    _emit(dumps(model), args.output or args.diagram)
    return 0


def _cmd_sample(args) -> int:
    _emit(dumps(sample_model()), args.output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="erdforge", description="ERD modeling tools")
    sub = parser.add_subparsers(dest="command", required=True)
    dialects = list(supported_dialects())

    p = sub.add_parser("ddl", help="Generate a CREATE TABLE script from a diagram file")
    p.add_argument("diagram", help="Path to the diagram JSON file")
    p.add_argument("--dialect", default="MySQL", help=f"Target dialect ({', '.join(dialects)})")
    p.add_argument("-o", "--output", help="Write the script here instead of stdout")
    p.set_defaults(func=_cmd_ddl)

    p = sub.add_parser("import", help="Import a live database schema into a diagram file")
    p.add_argument("--db-type", default="MySQL", help=f"Database type ({', '.join(dialects)})")
    p.add_argument("--host", default="localhost")
    p.add_argument("--port", type=int, default=None, help="Default: the engine's standard port")
    p.add_argument("--user", default="")
    p.add_argument("--password", default="")
    p.add_argument("--database", default="")
    p.add_argument("--schema", default="public", help="PostgreSQL schema (default: public)")
    p.add_argument("-o", "--output", help="Write the diagram here instead of stdout")
    p.set_defaults(func=_cmd_import)

    p = sub.add_parser("layout", help="Re-run the automatic grid layout on a diagram file")
    p.add_argument("diagram", help="Path to the diagram JSON file")
    p.add_argument("-o", "--output", help="Default: overwrite the input file")
    p.set_defaults(func=_cmd_layout)

    p = sub.add_parser("sample", help="Write the built-in sample diagram")
    p.add_argument("-o", "--output", help="Write the diagram here instead of stdout")
    p.set_defaults(func=_cmd_sample)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (ErdForgeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
