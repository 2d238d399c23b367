import os

from screenlogic import __version__

__all__ = [
    "LOGIN_CLIENT_NAME",
    "LOGIN_PASSWORD",
    "LOGIN_PREAMBLE",
    "SCREENLOGIC_DEBUG",
    "SCREENLOGIC_DEFAULT_PORT",
    "SCREENLOGIC_HOST",
    "SCREENLOGIC_KEEP_ALIVE",
    "SCREENLOGIC_LOG_FORMAT",
    "SCREENLOGIC_LOG_HUMAN_OUTPUT",
    "SCREENLOGIC_LOG_JSON_FILE",
    "SCREENLOGIC_MAX_RETRIES",
    "SCREENLOGIC_METRICS_PORT",
    "SCREENLOGIC_PERF_THRESHOLD_MS",
    "SCREENLOGIC_PERF_TRACKING",
    "SCREENLOGIC_TIMEOUT",
    "SCREENLOGIC_VERSION",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
SCREENLOGIC_VERSION: str = __version__

# Login handshake. The controller performs no verification of these values.
LOGIN_PREAMBLE: bytes = b"CONNECTSERVERHOST\r\n\r\n"
LOGIN_CLIENT_NAME: str = "automation"
LOGIN_PASSWORD: str = "0000000000000000"  # <= 16 bytes

SCREENLOGIC_DEFAULT_PORT: int = 80


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


_host = os.environ.get("SCREENLOGIC_HOST")
SCREENLOGIC_HOST: str | None = _host if _host else None
SCREENLOGIC_TIMEOUT: float = _float_env("SCREENLOGIC_TIMEOUT", 5.0)
SCREENLOGIC_KEEP_ALIVE: float = _float_env("SCREENLOGIC_KEEP_ALIVE", 60.0)
SCREENLOGIC_MAX_RETRIES: int = _int_env("SCREENLOGIC_MAX_RETRIES", 3)
_metrics_port = os.environ.get("SCREENLOGIC_METRICS_PORT", "")
# Unset: the probe CLI serves no metrics
SCREENLOGIC_METRICS_PORT: int | None = int(_metrics_port) if _metrics_port.isdigit() else None

SCREENLOGIC_DEBUG: bool = os.environ.get("SCREENLOGIC_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
SCREENLOGIC_LOG_FORMAT: str = os.environ.get("SCREENLOGIC_LOG_FORMAT", "human")  # "json", "human", or "both"
SCREENLOGIC_LOG_JSON_FILE: str = os.environ.get("SCREENLOGIC_LOG_JSON_FILE", "")
SCREENLOGIC_LOG_HUMAN_OUTPUT: str = os.environ.get("SCREENLOGIC_LOG_HUMAN_OUTPUT", "stderr")

# Performance Instrumentation
SCREENLOGIC_PERF_TRACKING: bool = os.environ.get("SCREENLOGIC_PERF_TRACKING", "true").casefold() in YES_ANSWER
_perf_threshold = os.environ.get("SCREENLOGIC_PERF_THRESHOLD_MS", "500")
SCREENLOGIC_PERF_THRESHOLD_MS: int = (
    int(_perf_threshold) if _perf_threshold and _perf_threshold.isdigit() else 500
)
