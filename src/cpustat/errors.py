class CpuStatError(Exception):
    """Base class for every error raised by cpustat."""


class OutOfRangeUnit(CpuStatError, IndexError):
    """
    Raised when a CPU index is outside ``[-1, count())``.

    Carries the offending value and the current valid upper bound so
    callers can report a precise diagnostic.
    """

    def __init__(self, cpu: int, max_cpu: int):
        self.cpu = cpu
        self.max_cpu = max_cpu
        super().__init__(f"invalid CPU number: {cpu} (max: {max_cpu})")

    def __reduce__(self):
        return (type(self), (self.cpu, self.max_cpu))


class HostReadError(CpuStatError):
    """Raised when a host cannot read its counter source."""


class ConfigError(CpuStatError, ValueError):
    """Raised for invalid settings or environment values."""
