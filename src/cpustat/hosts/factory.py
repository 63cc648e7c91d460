from pathlib import Path

from cpustat.hosts.base_host import BaseHost
from cpustat.hosts.procfs_host import ProcStatHost
from cpustat.hosts.psutil_host import PsutilHost
from cpustat.settings import CpuStatSettings


def make_host(settings: CpuStatSettings) -> BaseHost:
    """
    Build the counter source selected by `settings.host`.

    "auto" prefers /proc/stat when it exists and falls back to psutil.
    """
    kind = settings.host
    if kind == "auto":
        kind = "procfs" if Path(settings.proc_stat_path).exists() else "psutil"

    if kind == "procfs":
        return ProcStatHost(
            proc_stat_path=settings.proc_stat_path,
            cpu_possible_path=settings.cpu_possible_path,
        )
    return PsutilHost()
