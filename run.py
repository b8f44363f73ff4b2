"""
Entry point: a thin wrapper around fbbench.cli for running from a checkout.

Usage:
  python3 run.py run --records 100000
  python3 run.py run --folder /mnt/nvme --output result.json
  python3 run.py sysinfo --path /mnt/nvme
  python3 run.py facts --database /data/employee.fdb

Configuration:
- Optional INI file via --config, or the FBBENCH_CONFIG environment variable.
- Credentials come from ISC_USER / ISC_PASSWORD (default SYSDBA / masterkey);
  the isql location from FBBENCH_ISQL or the FIREBIRD install dir.
"""

import os
import sys

from fbbench.cli import main as cli_main


def _inject_config(args):
    if "--config" in args:
        return args
    config_path = os.environ.get("FBBENCH_CONFIG")
    if not config_path:
        return args
    return ["--config", config_path] + args


if __name__ == "__main__":
    sys.exit(cli_main(_inject_config(sys.argv[1:])))
