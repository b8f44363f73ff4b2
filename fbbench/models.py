from dataclasses import dataclass, field
from typing import Dict, Optional

FactMap = Dict[str, Optional[str]]


@dataclass
class ExecutionResult:
    sql: str
    success: bool
    returncode: int
    elapsed_ms: float
    raw_output: str = ""
    error_output: str = ""


@dataclass(frozen=True)
class WorkloadPhase:
    name: str
    sql: str
    timed: bool = True
    ignore_errors: bool = False


@dataclass(frozen=True)
class PhaseResult:
    phase_name: str
    elapsed_ms: int


@dataclass(frozen=True)
class EphemeralDatabase:
    path: str
    target: str


@dataclass(frozen=True)
class BenchmarkReport:
    timings: Dict[str, int] = field(default_factory=dict)
    system: FactMap = field(default_factory=dict)
    storage: Optional[FactMap] = None
    engine: Optional[FactMap] = None
