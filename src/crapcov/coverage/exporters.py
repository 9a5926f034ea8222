"""Coverage export subprocesses.

Each run invokes at most one export, synchronously, with no retry: coverage
data is static for the run, so a failed export is fatal.
"""

from __future__ import annotations

import subprocess
import time
from pathlib import Path

import structlog

from crapcov.core.errors import CoverageError

log = structlog.get_logger(__name__)


def xccov_command(xcrun: str, xcresult: str) -> list[str]:
    return [xcrun, "xccov", "view", "--report", "--json", xcresult]


def llvm_cov_command(xcrun: str, profdata: str, binary: str) -> list[str]:
    return [xcrun, "llvm-cov", "export", f"-instr-profile={profdata}", binary, "--format=text"]


def run_export(cmd: list[str], *, timeout_sec: float) -> bytes:
    """Run an export command and return its stdout.

    Raises:
        CoverageError: If the tool is missing, times out, or exits non-zero.
            The exit code and captured output are carried verbatim.
    """
    tool = " ".join(cmd[:2])
    start = time.monotonic()
    log.info("coverage_export_started", command=cmd, timeout_sec=timeout_sec)

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            timeout=timeout_sec,
            check=False,
        )
    except FileNotFoundError as e:
        raise CoverageError.tool_not_found(cmd[0]) from e
    except subprocess.TimeoutExpired as e:
        raise CoverageError.export_timeout(tool, timeout_sec) from e

    duration_ms = int((time.monotonic() - start) * 1000)

    if result.returncode != 0:
        output = (result.stdout + result.stderr).decode(errors="replace")
        log.error(
            "coverage_export_failed",
            command=cmd,
            exit_code=result.returncode,
            duration_ms=duration_ms,
        )
        raise CoverageError.export_failed(tool, result.returncode, output)

    log.info("coverage_export_finished", command=cmd, duration_ms=duration_ms)
    return result.stdout


def export_function_report(xcresult: str, *, xcrun: str = "xcrun", timeout_sec: float) -> bytes:
    """Export the function/file report of an .xcresult bundle as JSON."""
    return run_export(xccov_command(xcrun, xcresult), timeout_sec=timeout_sec)


def export_segments(
    profdata: str,
    binary: str,
    *,
    xcrun: str = "xcrun",
    timeout_sec: float,
) -> bytes:
    """Export llvm-cov segment data for an instrumented binary as JSON."""
    return run_export(llvm_cov_command(xcrun, profdata, binary), timeout_sec=timeout_sec)


def read_payload(path: str) -> bytes:
    """Read a pre-exported payload from disk.

    Raises:
        CoverageError: If the file cannot be read.
    """
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise CoverageError.decode_failed(Path(path).name, f"cannot read {path}: {e}") from e
