import json
from collections import OrderedDict
from typing import Any, Dict, Optional, Sequence

from .models import BenchmarkReport, FactMap, PhaseResult

ENGINE_FIELD = "firebird"


def aggregate(
    phase_results: Sequence[PhaseResult],
    storage: Optional[FactMap],
    system: FactMap,
    engine: Optional[FactMap],
) -> BenchmarkReport:
    timings: Dict[str, int] = OrderedDict()
    for result in phase_results:
        timings[result.phase_name] = result.elapsed_ms
    return BenchmarkReport(
        timings=timings,
        system=OrderedDict(system),
        storage=OrderedDict(storage) if storage is not None else None,
        engine=OrderedDict(engine) if engine is not None else None,
    )


def report_to_dict(report: BenchmarkReport) -> Dict[str, Any]:
    """
    Flatten the report: one `<phase>Ms` field per timed phase followed by the
    storage, system and engine groups. Absent groups are kept as None.
    """
    data: Dict[str, Any] = OrderedDict()
    for name, elapsed_ms in report.timings.items():
        data["%sMs" % name] = elapsed_ms
    data["storage"] = dict(report.storage) if report.storage is not None else None
    data["system"] = dict(report.system)
    data[ENGINE_FIELD] = dict(report.engine) if report.engine is not None else None
    return data


def to_json(report: BenchmarkReport) -> str:
    return json.dumps(report_to_dict(report), ensure_ascii=False, indent=2)


def format_report(report: BenchmarkReport) -> str:
    parts = ["%s: %s ms" % (name, elapsed_ms) for name, elapsed_ms in report.timings.items()]
    if report.engine:
        parts.append(
            "Engine: %s"
            % ", ".join("%s=%s" % (key, value) for key, value in report.engine.items())
        )
    return "\n".join(parts)
