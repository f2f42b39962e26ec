from __future__ import annotations

import subprocess
import sys


def main():
    subprocess.run(
        [
            sys.executable,
            "-m",
            "appforge.entrypoints.cli",
            "Build a todo app with user login",
            "--context",
            '{"appType": "web"}',
            "--output",
            "result.json",
        ],
        check=True,
    )


if __name__ == "__main__":
    main()
