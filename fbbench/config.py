import configparser
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import SetupError

DEFAULT_USER = "SYSDBA"
DEFAULT_PASSWORD = "masterkey"
DEFAULT_PAGE_SIZE = 16384
PAGE_SIZES = (4096, 8192, 16384, 32768)
DEFAULT_RECORDS = 5000000
DATABASE_FILENAME = "fbbench.fdb"

PROTOCOLS = ("embedded", "tcp", "inet", "xnet", "wnet")
ISQL_NAMES = ("isql-fb", "isql")


@dataclass
class FirebirdConfig:
    user: str = DEFAULT_USER
    password: str = DEFAULT_PASSWORD
    isql_path: Optional[str] = None
    install_dir: Optional[str] = None
    protocol: str = "embedded"
    host: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass
class RunOptions:
    database: Optional[str] = None
    folder: Optional[str] = None
    records: int = DEFAULT_RECORDS
    tolerate_select_errors: bool = False
    collect_engine_facts: bool = True
    collect_storage_facts: bool = True


@dataclass
class ToolConfig:
    firebird: FirebirdConfig = field(default_factory=FirebirdConfig)
    run: RunOptions = field(default_factory=RunOptions)


def load_config(path: Optional[str] = None) -> ToolConfig:
    """
    Read an INI file with optional [firebird] and [benchmark] sections.
    Without a path the built-in defaults are returned.
    """
    if path is None:
        return ToolConfig()

    parser = configparser.ConfigParser()
    read = parser.read(path)
    if not read:
        raise FileNotFoundError("Config file not found: %s" % path)

    fb_raw = _section_to_dict(parser, "firebird")
    run_raw = _section_to_dict(parser, "benchmark")

    protocol = fb_raw.get("protocol", "embedded").lower()
    if protocol not in PROTOCOLS:
        raise ValueError(
            "Unknown protocol in firebird section: %s (expected one of %s)"
            % (protocol, ", ".join(PROTOCOLS))
        )

    firebird = FirebirdConfig(
        user=fb_raw.get("user", DEFAULT_USER),
        password=fb_raw.get("password", DEFAULT_PASSWORD),
        isql_path=fb_raw.get("isql_path"),
        install_dir=fb_raw.get("install_dir"),
        protocol=protocol,
        host=fb_raw.get("host"),
        page_size=check_page_size(int(fb_raw.get("page_size", DEFAULT_PAGE_SIZE))),
    )

    run = RunOptions(
        database=run_raw.get("database"),
        folder=run_raw.get("folder"),
        records=int(run_raw.get("records", DEFAULT_RECORDS)),
        tolerate_select_errors=_to_bool(run_raw.get("tolerate_select_errors", "false")),
        collect_engine_facts=_to_bool(run_raw.get("engine_facts", "true")),
        collect_storage_facts=_to_bool(run_raw.get("storage_facts", "true")),
    )
    if run.records < 0:
        raise ValueError("records must be >= 0, got %s" % run.records)

    return ToolConfig(firebird=firebird, run=run)


def _section_to_dict(parser: configparser.ConfigParser, section: str) -> Dict[str, str]:
    if not parser.has_section(section):
        return {}
    return {k: v for k, v in parser.items(section)}


def env_override(config: ToolConfig) -> ToolConfig:
    """
    Credentials and install paths from the environment win over the file so
    that passwords never need to be committed.
    """
    user = os.environ.get("ISC_USER")
    password = os.environ.get("ISC_PASSWORD")
    install_dir = os.environ.get("FIREBIRD")
    isql_path = os.environ.get("FBBENCH_ISQL")
    if user:
        config.firebird.user = user
    if password:
        config.firebird.password = password
    if install_dir:
        config.firebird.install_dir = install_dir
    if isql_path:
        config.firebird.isql_path = isql_path
    return config


def resolve_isql(config: FirebirdConfig) -> str:
    """
    Locate the isql binary: explicit path, then the install dir, then PATH.
    """
    if config.isql_path:
        if os.path.isfile(config.isql_path):
            return config.isql_path
        found = shutil.which(config.isql_path)
        if found:
            return found
        raise SetupError("isql client not found: %s" % config.isql_path)

    if config.install_dir:
        for name in ISQL_NAMES:
            for sub in ("bin", ""):
                for suffix in ("", ".exe"):
                    candidate = os.path.join(config.install_dir, sub, name + suffix)
                    if os.path.isfile(candidate):
                        return candidate

    for name in ISQL_NAMES:
        found = shutil.which(name)
        if found:
            return found
    raise SetupError(
        "isql client not found; set FBBENCH_ISQL, FIREBIRD or add isql to PATH."
    )


def database_path(options: RunOptions) -> str:
    if options.database:
        return options.database
    folder = options.folder or tempfile.gettempdir()
    if not os.path.isdir(folder):
        raise SetupError("Target folder does not exist or is not a directory: %s" % folder)
    return os.path.join(folder, DATABASE_FILENAME)


def build_target(path: str, protocol: str = "embedded", host: Optional[str] = None) -> str:
    """
    Connection string for isql: bare path, host:path, or proto://path.
    """
    if protocol == "embedded":
        return path
    if protocol == "tcp":
        return "%s:%s" % (host or "localhost", path)
    if protocol in ("inet", "xnet", "wnet"):
        if protocol == "inet" and host:
            return "inet://%s/%s" % (host, path)
        return "%s://%s" % (protocol, path)
    raise ValueError("Unknown protocol: %s" % protocol)


def check_page_size(page_size: int) -> int:
    if page_size not in PAGE_SIZES:
        raise ValueError(
            "page_size must be one of %s, got %s"
            % (", ".join(str(size) for size in PAGE_SIZES), page_size)
        )
    return page_size


def _to_bool(value: Any) -> bool:
    return str(value).lower() in ("1", "true", "yes", "on")
