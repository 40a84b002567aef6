import argparse
import gzip
import json
import os
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Synthetic RubyGems.org Fastly traffic.
# - endpoints: mostly install/resolve routes, some gem downloads and pages
# - user agents: the four known client dialects plus unrecognised noise

PATHS = [
    ("/api/v1/dependencies", 0.25),
    ("/versions", 0.20),
    ("/specs.4.8.gz", 0.10),
    ("/latest_specs.4.8.gz", 0.10),
    ("/prerelease_specs.4.8.gz", 0.05),
    ("/gems/rails-7.0.4.gem", 0.15),
    ("/info/rack", 0.10),
    ("/", 0.05),
]

CLIENTS = [("3.4.10", 0.35), ("3.3.26", 0.25), ("2.7.6", 0.20), ("1.8.23", 0.10), ("3.5.0.dev", 0.10)]
BUNDLERS = [("2.4.10", 0.40), ("2.3.26", 0.30), ("1.17.3", 0.20), ("1.0.22", 0.10)]
RUBIES = [("3.2.2", 0.40), ("3.1.4", 0.25), ("2.7.8", 0.20), ("2.5.0", 0.10), ("3.3.0-preview1", 0.05)]
PLATFORMS = [("x86_64-pc-linux-gnu", 0.6), ("arm64-darwin22", 0.3), ("x64-mingw-ucrt", 0.1)]

UNKNOWN_AGENTS = [
    "curl/8.1.2",
    "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/115.0",
    "Go-http-client/1.1",
    "",
]

DIALECTS = [("bundler_ruby", 0.50), ("ruby", 0.25), ("bundler", 0.05), ("gem", 0.10), ("unknown", 0.10)]


def weighted_choice(options):
    r = random.random()
    cumulative = 0.0
    for value, weight in options:
        cumulative += weight
        if r <= cumulative:
            return value
    return options[-1][0]


def random_user_agent():
    dialect = weighted_choice(DIALECTS)
    client = weighted_choice(CLIENTS)
    if dialect == "bundler_ruby":
        return (
            f"bundler/{weighted_choice(BUNDLERS)} rubygems/{client} ruby/{weighted_choice(RUBIES)} "
            f"({weighted_choice(PLATFORMS)}) command/install options/jobs "
            f"{random.getrandbits(64):016x}"
        )
    if dialect == "ruby":
        return (
            f"Ruby, RubyGems/{client} {weighted_choice(PLATFORMS)} Ruby/{weighted_choice(RUBIES)} "
            "(2023-03-30 patchlevel 53)"
        )
    if dialect == "bundler":
        return f"bundler/{weighted_choice(BUNDLERS)} rubygems/{client}"
    if dialect == "gem":
        return f"Ruby, Gems {client}"
    return random.choice(UNKNOWN_AGENTS)


def generate_record(base_time, span_hours):
    dt = base_time + timedelta(seconds=random.randint(0, span_hours * 3600 - 1))
    return {
        "timestamp": dt.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "user_agent": random_user_agent(),
        "request_path": weighted_choice(PATHS),
    }


def write_log(path, rows, span_hours):
    base_time = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
    with gzip.open(path, "wt", encoding="utf-8") as handle:
        for _ in range(rows):
            handle.write(json.dumps(generate_record(base_time, span_hours)) + "\n")
    return path


def parse_args():
    parser = argparse.ArgumentParser(description="Generate synthetic RubyGems.org Fastly JSON log files.")
    parser.add_argument("--files", type=int, default=3, help="Number of log files to generate.")
    parser.add_argument("--rows", type=int, default=5000, help="Lines per log file.")
    parser.add_argument("--output-dir", default="logs", help="Directory for generated log files.")
    parser.add_argument("--span-hours", type=int, default=24, help="Time window for timestamps.")
    parser.add_argument("--seed", type=int, help="RNG seed for reproducibility.")
    return parser.parse_args()


def main():
    args = parse_args()
    if args.seed is not None:
        random.seed(args.seed)
    if args.span_hours < 1:
        raise SystemExit(f"--span-hours must be >= 1 (got {args.span_hours})")

    os.makedirs(args.output_dir, exist_ok=True)

    generated = []
    for index in range(1, args.files + 1):
        path = Path(args.output_dir) / f"fastly-{index:02d}.log.gz"
        generated.append(write_log(path, args.rows, args.span_hours))

    print(f"Generated {len(generated)} log files in {Path(args.output_dir).resolve()}")
    for path in generated:
        print(f"  - {path.name}: {args.rows} lines")


if __name__ == "__main__":
    main()
