from __future__ import annotations

import argparse
import json
from pathlib import Path

from appforge.evaluation.metrics import collect_outcomes, failed_outcomes, success_rate


def main():
    parser = argparse.ArgumentParser(description="Subtask success rate across saved run results.")
    parser.add_argument("paths", nargs="+", help="Result JSON files written with --output.")
    args = parser.parse_args()

    outcomes = []
    for path in args.paths:
        outcomes.extend(collect_outcomes(json.loads(Path(path).read_text(encoding="utf-8"))))

    print(f"Subtasks: {len(outcomes)}")
    print(f"Success rate: {success_rate(outcomes):.2%}")
    for task_id, error in failed_outcomes(outcomes).items():
        print(f"  {task_id}: {error}")


if __name__ == "__main__":
    main()
