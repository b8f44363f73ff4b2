import logging
from typing import Optional, Sequence

from .config import ToolConfig, database_path
from .engine import fetch_engine_facts
from .lifecycle import DatabaseLifecycle
from .models import BenchmarkReport, WorkloadPhase
from .reporting import aggregate
from .sysinfo import HostProfile, collect_storage_facts, collect_system_facts, get_profile
from .workload import default_phases, run_phases

logger = logging.getLogger(__name__)


def run_benchmark(
    client,
    config: ToolConfig,
    phases: Optional[Sequence[WorkloadPhase]] = None,
    profile: Optional[HostProfile] = None,
) -> BenchmarkReport:
    """
    One full run: create the database, execute the phases, read engine and
    host facts, drop the database, then build the report.

    Setup and execution errors propagate with no report. The database file is
    removed however the run ends.
    """
    options = config.run
    path = database_path(options)
    if phases is None:
        phases = default_phases(options)
    profile = profile or get_profile()

    lifecycle = DatabaseLifecycle(client, config.firebird)
    with lifecycle.ephemeral(path) as handle:
        results = run_phases(client, phases, handle.target)
        engine = None
        if options.collect_engine_facts:
            engine = fetch_engine_facts(client, handle.target)
        system = collect_system_facts(profile)
        storage = None
        if options.collect_storage_facts:
            storage = collect_storage_facts(profile, path)

    return aggregate(results, storage=storage, system=system, engine=engine)
