import argparse
import json
import logging
import sys
from typing import Optional

from . import reporting, runner, sysinfo
from .config import (
    PAGE_SIZES,
    PROTOCOLS,
    ToolConfig,
    build_target,
    check_page_size,
    env_override,
    load_config,
    resolve_isql,
)
from .engine import fetch_engine_facts
from .errors import FbBenchError
from .isql_client import IsqlClient

logger = logging.getLogger("fbbench")


def main(argv: Optional[list] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        cfg = env_override(load_config(args.config))
        _apply_args(cfg, args)

        if args.command == "run":
            return _run(cfg, args)

        if args.command == "sysinfo":
            return _sysinfo(args)

        if args.command == "facts":
            return _facts(cfg, args)
    except FbBenchError as exc:
        logger.error("%s", exc)
        return 1
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    parser.print_help()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Firebird storage/engine benchmark via isql",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to an INI config with [firebird] and [benchmark] sections.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command")

    run_cmd = sub.add_parser(
        "run",
        help="Run the full benchmark and print the JSON report.",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""Examples:
  python3 run.py run --records 100000
  python3 run.py run --folder /mnt/nvme --output result.json
  python3 run.py run --protocol tcp --host dbhost --database /data/fbbench.fdb""",
    )
    _add_target_args(run_cmd)
    run_cmd.add_argument("--folder", help="Folder for the database file (default: temp dir).")
    run_cmd.add_argument("--records", type=int, help="Rows inserted by the insert phase.")
    run_cmd.add_argument(
        "--page-size",
        type=int,
        help="Database page size in bytes (%s)." % ", ".join(str(size) for size in PAGE_SIZES),
    )
    run_cmd.add_argument(
        "--tolerate-select-errors",
        action="store_true",
        default=None,
        help="Keep going when the select phase fails.",
    )
    run_cmd.add_argument(
        "--no-engine-facts",
        action="store_true",
        help="Skip the engine version/protocol query.",
    )
    run_cmd.add_argument(
        "--no-storage",
        action="store_true",
        help="Skip physical storage facts.",
    )
    run_cmd.add_argument("--output", help="Write the JSON report to this file instead of stdout.")

    sysinfo_cmd = sub.add_parser("sysinfo", help="Print host (and optionally storage) facts.")
    sysinfo_cmd.add_argument("--path", help="Also collect storage facts for this path.")

    facts_cmd = sub.add_parser(
        "facts",
        help="Print engine facts for an existing database.",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""Examples:
  python3 run.py facts --database /var/lib/firebird/data/employee.fdb""",
    )
    _add_target_args(facts_cmd)

    return parser


def _add_target_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--database", help="Database file path.")
    cmd.add_argument("--protocol", choices=PROTOCOLS, help="Connection protocol.")
    cmd.add_argument("--host", help="Server host for tcp/inet protocols.")


def _apply_args(cfg: ToolConfig, args) -> None:
    if getattr(args, "database", None):
        cfg.run.database = args.database
    if getattr(args, "protocol", None):
        cfg.firebird.protocol = args.protocol
    if getattr(args, "host", None):
        cfg.firebird.host = args.host
    if getattr(args, "folder", None):
        cfg.run.folder = args.folder
    if getattr(args, "records", None) is not None:
        if args.records < 0:
            raise ValueError("--records must be >= 0")
        cfg.run.records = args.records
    if getattr(args, "page_size", None) is not None:
        cfg.firebird.page_size = check_page_size(args.page_size)
    if getattr(args, "tolerate_select_errors", None):
        cfg.run.tolerate_select_errors = True
    if getattr(args, "no_engine_facts", False):
        cfg.run.collect_engine_facts = False
    if getattr(args, "no_storage", False):
        cfg.run.collect_storage_facts = False


def _run(cfg: ToolConfig, args) -> int:
    client = IsqlClient(cfg.firebird, resolve_isql(cfg.firebird))
    report = runner.run_benchmark(client, cfg)
    logger.info("Benchmark finished\n%s", reporting.format_report(report))
    output = reporting.to_json(report)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fp:
            fp.write(output + "\n")
        logger.info("Report written to %s", args.output)
    else:
        print(output)
    return 0


def _sysinfo(args) -> int:
    profile = sysinfo.get_profile()
    data = {"system": sysinfo.collect_system_facts(profile)}
    if args.path:
        data["storage"] = sysinfo.collect_storage_facts(profile, args.path)
    print(json.dumps(data, ensure_ascii=False, indent=2))
    return 0


def _facts(cfg: ToolConfig, args) -> int:
    if not cfg.run.database:
        raise ValueError("facts needs --database")
    client = IsqlClient(cfg.firebird, resolve_isql(cfg.firebird))
    target = build_target(cfg.run.database, cfg.firebird.protocol, cfg.firebird.host)
    facts = fetch_engine_facts(client, target)
    print(json.dumps({reporting.ENGINE_FIELD: facts}, ensure_ascii=False, indent=2))
    return 0 if facts is not None else 1


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


if __name__ == "__main__":
    sys.exit(main())
