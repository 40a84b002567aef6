import json
import sys
from collections import Counter
from pathlib import Path

from analysis_core import StatsMap, to_plain


def render_stats(stats: StatsMap) -> str:
    return json.dumps(to_plain(stats), indent=2, sort_keys=True)


def print_stats(stats: StatsMap, out=None) -> None:
    print(render_stats(stats), file=out or sys.stdout)


def write_json(stats: StatsMap, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as handle:
        json.dump(to_plain(stats), handle, indent=2, sort_keys=True)


def top_versions(stats: StatsMap, category: str, top_k: int = 5):
    totals = Counter()
    for names in stats.values():
        totals.update(names.get(category, {}))
    return [version for version, _ in totals.most_common(top_k)]


def build_plot(stats: StatsMap, output_path: Path, category: str = "client", top_k: int = 5):
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    hours = sorted(stats)
    fig, ax = plt.subplots(figsize=(10, 4))

    for version in top_versions(stats, category, top_k):
        counts = [stats[hour].get(category, {}).get(version, 0) for hour in hours]
        ax.plot(range(len(hours)), counts, marker="o", label=version)

    ax.set_title(f"Requests per hour by {category} version")
    ax.set_ylabel("Requests")
    ax.set_xticks(range(len(hours)))
    ax.set_xticklabels([hour[5:13] for hour in hours], rotation=45, ha="right")
    if hours:
        ax.legend(title=category)

    fig.tight_layout()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
