"""
cpustat settings.

Defines the configuration dataclass shared by:
- the module-level ``get()`` / ``count()`` surface
- the CLI (flags override environment)
- host selection and error logging

All values can be injected through ``CPUSTAT_*`` environment variables
so embedding scripts stay untouched.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from cpustat.errors import ConfigError

HOST_CHOICES = ("auto", "procfs", "psutil")

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def parse_core_sched(value: Optional[str]) -> Optional[bool]:
    """
    Parse a core-scheduling flag.

    ``None``, ``""`` and ``"auto"`` mean "ask the host". Anything else must
    be a recognizable boolean.
    """
    if value is None:
        return None
    v = value.strip().lower()
    if v in ("", "auto"):
        return None
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigError(f"Invalid core_sched value '{value}' (expected auto, 1 or 0).")


@dataclass(frozen=True)
class CpuStatSettings:
    """
    High-level cpustat settings.

    Notes:
    - `host` selects the counter source ("auto" | "procfs" | "psutil").
    - `core_sched` is None to probe the host, or a forced True/False.
    - `enable_logging` adds a rotating error log under `logs_dir`.
    - `session_id` names the log directory; empty means one per process.
    """

    host: str = "auto"
    proc_stat_path: str = "/proc/stat"
    cpu_possible_path: str = "/sys/devices/system/cpu/possible"
    core_sched: Optional[bool] = None
    logs_dir: str = "./logs"
    enable_logging: bool = False
    session_id: str = ""

    def __post_init__(self):
        if self.host not in HOST_CHOICES:
            raise ConfigError(
                f"Invalid host '{self.host}' (expected one of {', '.join(HOST_CHOICES)})."
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CpuStatSettings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            host=env.get("CPUSTAT_HOST", defaults.host).strip().lower(),
            proc_stat_path=env.get("CPUSTAT_PROC_STAT", defaults.proc_stat_path),
            cpu_possible_path=env.get(
                "CPUSTAT_CPU_POSSIBLE", defaults.cpu_possible_path
            ),
            core_sched=parse_core_sched(env.get("CPUSTAT_CORE_SCHED")),
            logs_dir=env.get("CPUSTAT_LOGS_DIR", defaults.logs_dir),
            enable_logging=env.get("CPUSTAT_ENABLE_LOGGING", "") == "1",
            session_id=env.get("CPUSTAT_SESSION_ID", defaults.session_id),
        )

    def with_overrides(self, **changes) -> "CpuStatSettings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
