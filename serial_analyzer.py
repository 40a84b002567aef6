import sys
from pathlib import Path

from analysis_core import analyze_file, merge_stats, new_stats, print_unknown_file, report_source
from parallel_analyzer import failed_sources, parse_args
from report import build_plot, print_stats, write_json

DESCRIPTION = "Single-process RubyGems.org Fastly JSON log parser for comparison."


def main(argv=None, out=None):
    args = parse_args(argv, description=DESCRIPTION)

    if args.unknown:
        results = [print_unknown_file(log, args.verbose, out) for log in args.logs]
        for result in results:
            report_source(result, args.verbose)
        return 1 if failed_sources(results) else 0

    merged_stats = new_stats()
    results = []
    for log in args.logs:
        result = analyze_file(log, args.verbose)
        report_source(result, args.verbose)
        merged_stats = merge_stats(merged_stats, result.stats)
        results.append(result)

    print_stats(merged_stats, out)
    if args.output:
        write_json(merged_stats, Path(args.output))
    if args.plot:
        build_plot(merged_stats, Path(args.plot))

    return 1 if failed_sources(results) else 0


if __name__ == "__main__":
    sys.exit(main())
