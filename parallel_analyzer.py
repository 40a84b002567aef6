import argparse
import sys
from functools import reduce
from pathlib import Path

from analysis_core import analyze_file, merge_stats, new_stats, print_unknown_file, report_source
from report import build_plot, print_stats, write_json

DEFAULT_LOG = "test/sample_10.log.gz"


def assigned_sources(paths, rank, world_size):
    """Sources handled by one rank, dealt round-robin."""
    return paths[rank::world_size]


def failed_sources(results):
    return [(result.source, result.error) for result in results if result.error]


def run_aggregate(paths, comm, verbose=False):
    """Build stats for this rank's sources and fold every rank's stats on rank 0.

    Returns `(stats, failures)` on rank 0 and None on worker ranks.
    """
    rank = comm.Get_rank()
    results = [analyze_file(path, verbose) for path in assigned_sources(paths, rank, comm.Get_size())]
    for result in results:
        report_source(result, verbose)

    local_stats = reduce(merge_stats, (result.stats for result in results), new_stats())
    gathered = comm.gather((local_stats, failed_sources(results)), root=0)
    if rank != 0:
        return None

    stats = reduce(merge_stats, (worker_stats for worker_stats, _ in gathered), new_stats())
    failures = [failure for _, worker_failures in gathered for failure in worker_failures]
    return stats, failures


def run_unknown(paths, comm, verbose=False, out=None):
    """Print unrecognised user agents of this rank's sources; rank 0 returns all failures."""
    rank = comm.Get_rank()
    results = [print_unknown_file(path, verbose, out) for path in assigned_sources(paths, rank, comm.Get_size())]
    for result in results:
        report_source(result, verbose)

    gathered = comm.gather(failed_sources(results), root=0)
    if rank != 0:
        return None
    return [failure for worker_failures in gathered for failure in worker_failures]


def parse_args(argv=None, description="Parse RubyGems.org Fastly JSON log files across MPI ranks."):
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("-u", "--unknown", action="store_true", help="Print only unrecognized user agent strings.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Be verbose.")
    parser.add_argument("--output", help="Also write the merged stats as JSON to this path.")
    parser.add_argument("--plot", help="Optional path to write a client version plot (PNG).")
    parser.add_argument("logs", metavar="FILE", nargs="*", default=[DEFAULT_LOG],
                        help="Paths to the log file(s) to process.")
    return parser.parse_args(argv)


def run(args, comm, out=None):
    if args.unknown:
        failures = run_unknown(args.logs, comm, args.verbose, out)
        if failures is None:
            return 0
        return 1 if failures else 0

    merged = run_aggregate(args.logs, comm, args.verbose)
    if merged is None:
        return 0

    stats, failures = merged
    print_stats(stats, out)

    if args.output:
        write_json(stats, Path(args.output))
    if args.plot:
        build_plot(stats, Path(args.plot))

    if failures:
        print(f"{len(failures)} of {len(args.logs)} log files failed:", file=sys.stderr)
        for source, error in failures:
            print(f"- {source}: {error}", file=sys.stderr)
        return 1
    return 0


def main(argv=None):
    args = parse_args(argv)

    from mpi4py import MPI

    return run(args, MPI.COMM_WORLD)


if __name__ == "__main__":
    sys.exit(main())
