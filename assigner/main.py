"""pr-assigner entry point.

Subcommands:
- serve (default): run the HTTP API server.
- init-db: create the database schema and exit.
- reassign / deactivate: call a running server through the HTTP client.

Usage: assigner [serve|init-db] [-c config.yaml] [--check]
       assigner reassign --url URL PR_ID OLD_USER_ID
       assigner deactivate --url URL TEAM USER_ID [USER_ID ...]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from assigner.config import AppConfig, load_config
from assigner.logging import setup_logging

SUBCOMMANDS = ("serve", "init-db", "reassign", "deactivate")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI with optional subcommand (serve is the default)."""
    argv = argv if argv is not None else sys.argv[1:]
    sub = "serve"
    rest = list(argv)
    if argv and not argv[0].startswith("-") and argv[0] in SUBCOMMANDS:
        sub = argv[0]
        rest = argv[1:]

    parser = argparse.ArgumentParser(
        prog=f"assigner {sub}",
        description="pr-assigner - reviewer assignment service for team pull requests",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    if sub in ("reassign", "deactivate"):
        parser.add_argument("--url", default="http://localhost:8080", help="API base URL")
    if sub == "reassign":
        parser.add_argument("pull_request_id")
        parser.add_argument("old_user_id")
    if sub == "deactivate":
        parser.add_argument("team_name")
        parser.add_argument("user_ids", nargs="+")
    parsed = parser.parse_args(rest)
    parsed.subcommand = sub
    return parsed


def _resolve_config_path(config_path: Path) -> Path:
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            logging.basicConfig(level=logging.INFO)
            logging.getLogger("assigner").warning("config.yaml not found, using config.example.yaml")
            return Path("config.example.yaml")
    return config_path


def _init_db(config: AppConfig) -> int:
    from assigner.store.sqlite import SQLiteStore

    store = SQLiteStore(config.database.path, busy_timeout=config.database.busy_timeout)
    store.close()
    logging.getLogger("assigner").info("Database schema ready at %s", config.database.path)
    return 0


def _run_client_command(args: argparse.Namespace) -> int:
    import requests

    from assigner.client import AssignerAPIError, AssignerClient

    client = AssignerClient(args.url)
    try:
        if args.subcommand == "reassign":
            result = client.reassign_reviewer(args.pull_request_id, args.old_user_id)
        else:
            result = client.deactivate_team_members(args.team_name, args.user_ids)
    except (AssignerAPIError, requests.RequestException) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point: dispatch to server, init-db or client commands."""
    args = parse_args(argv)

    config = load_config(_resolve_config_path(args.config))
    setup_logging(config.logging)
    log = logging.getLogger("assigner.main")

    if args.check:
        print("Config OK:", config.database.path, f"{config.server.host}:{config.server.port}")
        return 0

    if args.subcommand in ("reassign", "deactivate"):
        return _run_client_command(args)

    try:
        if args.subcommand == "init-db":
            return _init_db(config)

        from assigner.api.server import run_server

        run_server(config)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        log.exception("Fatal error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
