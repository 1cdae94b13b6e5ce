"""
Run summaries, threshold verdicts and JSON result artifacts

Latency percentiles and request totals come from the load runtime's stats
(Locust's RequestStats); this module only reads and formats them.
"""
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loadgen.exceptions import ResultsWriteError
from loadgen.profiles import LoadProfile, Thresholds

logger = logging.getLogger(__name__)

RULE = "=" * 80


@dataclass(frozen=True)
class ThresholdResult:
    """One checked limit, e.g. p(95) < 2000ms"""
    name: str
    limit: float
    observed: float
    passed: bool


def success_verdict(success_rate: float) -> str:
    """Qualitative verdict for a success rate in [0, 1]"""
    if success_rate >= 0.85:
        return "Excellent! System handled challenging load well."
    if success_rate >= 0.70:
        return "Acceptable, but system struggled under load."
    return "System struggled significantly under load."


def format_status_summary(snapshot: dict) -> str:
    """Status-code counts and success rate from a StatusAccumulator snapshot"""
    status = snapshot["status"]
    lines = [
        "Status Code Summary:",
        f"  200 OK: {status['200']}",
        f"  400 Bad Request: {status['400']}",
        f"  500+ Server Error: {status['5xx']}",
        f"  Other: {status['other']}",
    ]
    if snapshot.get("timeouts"):
        lines.append(f"  Timeouts: {snapshot['timeouts']}")
    if snapshot["total"]:
        rate = snapshot["success_rate"]
        lines.append(f"Success Rate: {rate * 100:.2f}%")
        lines.append(success_verdict(rate))
    return "\n".join(lines)


def evaluate_thresholds(total: Any, thresholds: Thresholds) -> list[ThresholdResult]:
    """
    Check the runtime's aggregate entry against a profile's thresholds.

    `total` is a Locust StatsEntry (stats.total). With no requests at all the
    latency checks pass vacuously and the failure check fails.
    """
    results = []
    has_requests = total.num_requests > 0

    for percentile, limit in thresholds.percentiles().items():
        observed = total.get_response_time_percentile(percentile) if has_requests else 0.0
        results.append(ThresholdResult(
            name=f"p({int(percentile * 100)})",
            limit=limit,
            observed=float(observed or 0.0),
            passed=(observed or 0.0) < limit,
        ))

    fail_ratio = float(total.fail_ratio) if has_requests else 1.0
    results.append(ThresholdResult(
        name="failure_rate",
        limit=thresholds.max_failure_rate,
        observed=fail_ratio,
        passed=has_requests and fail_ratio < thresholds.max_failure_rate,
    ))
    return results


def _entry_stats(entry: Any) -> dict:
    has_requests = entry.num_requests > 0
    return {
        "num_requests": entry.num_requests,
        "num_failures": entry.num_failures,
        "fail_ratio": entry.fail_ratio,
        "avg_response_time": entry.avg_response_time,
        "max_response_time": entry.max_response_time,
        "p50": entry.get_response_time_percentile(0.5) if has_requests else None,
        "p90": entry.get_response_time_percentile(0.9) if has_requests else None,
        "p95": entry.get_response_time_percentile(0.95) if has_requests else None,
        "p99": entry.get_response_time_percentile(0.99) if has_requests else None,
        "total_rps": entry.total_rps,
    }


def format_run_summary(
    profile: LoadProfile,
    stats: Any,
    snapshot: dict,
    threshold_results: list[ThresholdResult],
) -> str:
    """Human-readable end-of-run report"""
    total = stats.total
    has_requests = total.num_requests > 0

    def pct(p: float) -> float:
        return total.get_response_time_percentile(p) if has_requests else 0.0

    lines = [
        RULE,
        f"{profile.name.upper()} TEST SUMMARY".center(80),
        RULE,
        "",
        "OVERALL RESULTS",
        f"  Total requests:  {total.num_requests}",
        f"  Total failures:  {total.num_failures}",
        f"  Failure rate:    {total.fail_ratio * 100:.2f}%",
        f"  Requests/sec:    {total.total_rps:.2f}",
        "",
        "RESPONSE TIMES",
        f"  Average:         {total.avg_response_time:.2f} ms",
        f"  P50:             {pct(0.5):.2f} ms",
        f"  P95:             {pct(0.95):.2f} ms",
        f"  P99:             {pct(0.99):.2f} ms",
        f"  Max:             {total.max_response_time:.2f} ms",
        "",
        "BY ENDPOINT",
    ]
    for (name, method), entry in sorted(stats.entries.items()):
        lines.append(
            f"  {method:<5} {name:<22} {entry.num_requests:>8} reqs  "
            f"{entry.avg_response_time:>9.2f} ms avg  {entry.num_failures:>6} failed"
        )

    lines += ["", format_status_summary(snapshot), "", "THRESHOLDS"]
    for result in threshold_results:
        verdict = "PASS" if result.passed else "FAIL"
        if result.name == "failure_rate":
            lines.append(
                f"  errors < {result.limit * 100:.0f}%: {verdict} ({result.observed * 100:.2f}%)"
            )
        else:
            lines.append(f"  {result.name} < {result.limit:.0f}ms: {verdict} ({result.observed:.2f}ms)")
    lines.append(RULE)
    return "\n".join(lines)


def build_results_document(
    profile: LoadProfile,
    base_url: str,
    stats: Any,
    snapshot: dict,
    threshold_results: list[ThresholdResult],
    started_at: Optional[datetime] = None,
) -> dict:
    """JSON-serialisable record of one run"""
    return {
        "profile": profile.name,
        "description": profile.description,
        "base_url": base_url,
        "started_at": started_at.isoformat() if started_at else None,
        "finished_at": datetime.now(timezone.utc).isoformat(),
        "stages": [asdict(stage) for stage in profile.stages],
        "total": _entry_stats(stats.total),
        "endpoints": {
            f"{method} {name}": _entry_stats(entry)
            for (name, method), entry in sorted(stats.entries.items())
        },
        "status": snapshot,
        "thresholds": [asdict(result) for result in threshold_results],
        "passed": all(result.passed for result in threshold_results),
    }


def write_results(document: dict, results_dir: Path, filename: str) -> Path:
    """Write the result artifact; returns its path"""
    path = Path(results_dir) / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document, indent=2))
    except OSError as e:
        raise ResultsWriteError(f"Could not write results to {path}", path=str(path), cause=e) from e
    logger.info(f"Results written to {path}")
    return path
