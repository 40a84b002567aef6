import gzip
import sys
import zlib
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

import user_agent
from log_record import DecodedRequest, RecordError, decode_request

# Package metadata and dependency resolution endpoints of the registry.
INSTALL_PATHS = frozenset(
    (
        "/api/v1/dependencies",
        "/latest_specs.4.8.gz",
        "/prerelease_specs.4.8.gz",
        "/specs.4.8.gz",
        "/versions",
    )
)

CATEGORIES = ("client", "bundler", "runtime")
PROGRESS_EVERY = 100_000

StatsMap = Dict[str, Dict[str, Counter]]


@dataclass
class SourceResult:
    source: str
    stats: StatsMap = field(default_factory=dict)
    lines: int = 0
    skipped: int = 0
    error: Optional[str] = None


def hour_bucket(timestamp: str) -> str:
    """Truncate `2023-04-01T10:15:30Z` to `2023-04-01T10:00:00`."""
    if len(timestamp) < 14:
        raise RecordError(f"timestamp too short: {timestamp!r}")
    return timestamp[:14] + "00:00"


def is_install_request(request: DecodedRequest) -> bool:
    return request.request_path in INSTALL_PATHS


def new_stats() -> StatsMap:
    return {}


def update_stats(stats: StatsMap, request: DecodedRequest) -> bool:
    """Count one request. Returns False when it does not contribute."""
    if not is_install_request(request):
        return False

    hour = hour_bucket(request.timestamp)
    parsed = user_agent.parse(request.user_agent)
    if parsed is None:
        return False

    versions = {"client": parsed.client, "bundler": parsed.bundler, "runtime": parsed.runtime}
    counters = stats.setdefault(hour, {})
    for category in CATEGORIES:
        version = versions[category]
        if version is not None:
            counters.setdefault(category, Counter())[version] += 1
    return True


def merge_stats(left: StatsMap, right: StatsMap) -> StatsMap:
    """Sum two stats maps into a new one. Neither input is modified."""
    merged = {
        hour: {category: Counter(versions) for category, versions in names.items()}
        for hour, names in left.items()
    }
    for hour, names in right.items():
        target = merged.setdefault(hour, {})
        for category, versions in names.items():
            target.setdefault(category, Counter()).update(versions)
    return merged


def open_log(path: str):
    if path.endswith(".gz"):
        return gzip.open(path, "rb")
    return open(path, "rb")


def _skip(result: Optional[SourceResult], source: str, lineno: int, exc: Exception, verbose: bool) -> None:
    if result is not None:
        result.skipped += 1
    if verbose:
        print(f"{source}:{lineno}: skipped line: {exc}", file=sys.stderr)


def iter_requests(
    lines: Iterable[Any],
    source: str = "<lines>",
    verbose: bool = False,
    result: Optional[SourceResult] = None,
) -> Iterator[Tuple[int, DecodedRequest]]:
    """Decode raw lines (bytes or str), skipping unreadable and malformed ones."""
    lineno = 0
    for lineno, raw in enumerate(lines, 1):
        if result is not None:
            result.lines += 1
        if verbose and lineno % PROGRESS_EVERY == 0:
            print(".", end="", file=sys.stderr, flush=True)

        try:
            line = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            request = decode_request(line)
        except (UnicodeDecodeError, RecordError) as exc:
            _skip(result, source, lineno, exc, verbose)
            continue
        yield lineno, request

    if verbose and lineno >= PROGRESS_EVERY:
        print(file=sys.stderr)


def analyze_lines(
    lines: Iterable[Any],
    source: str = "<lines>",
    verbose: bool = False,
    result: Optional[SourceResult] = None,
) -> StatsMap:
    stats = new_stats()
    for lineno, request in iter_requests(lines, source, verbose, result):
        try:
            update_stats(stats, request)
        except RecordError as exc:
            _skip(result, source, lineno, exc, verbose)
    return stats


def unknown_user_agents(
    lines: Iterable[Any],
    source: str = "<lines>",
    verbose: bool = False,
    result: Optional[SourceResult] = None,
) -> Iterator[str]:
    """Yield the user agent of every request that no dialect recognises, on any path."""
    for _, request in iter_requests(lines, source, verbose, result):
        if user_agent.parse(request.user_agent) is None:
            yield request.user_agent


def analyze_file(path: str, verbose: bool = False) -> SourceResult:
    result = SourceResult(source=path)
    try:
        with open_log(path) as handle:
            result.stats = analyze_lines(handle, path, verbose, result)
    except (OSError, EOFError, zlib.error) as exc:
        result.stats = new_stats()
        result.error = str(exc)
    return result


def print_unknown_file(path: str, verbose: bool = False, out=None) -> SourceResult:
    out = out or sys.stdout
    result = SourceResult(source=path)
    try:
        with open_log(path) as handle:
            for agent in unknown_user_agents(handle, path, verbose, result):
                print(agent, file=out)
    except (OSError, EOFError, zlib.error) as exc:
        result.error = str(exc)
    return result


def report_source(result: SourceResult, verbose: bool = False) -> None:
    if result.error:
        print(f"Failed to process {result.source}: {result.error}", file=sys.stderr)
    elif verbose:
        print(f"{result.source}: {result.lines} lines, {result.skipped} skipped", file=sys.stderr)


def to_plain(stats: StatsMap) -> Dict[str, Dict[str, Dict[str, int]]]:
    return {
        hour: {category: dict(versions) for category, versions in names.items()}
        for hour, names in stats.items()
    }
