#!/usr/bin/env python3
"""
Fail the build if services/controllers contain raw SQL/connection usage.
"""

import sys
from pathlib import Path

FORBIDDEN = [
    "conn.execute",
    "transactional_connection(",
    "sa_connection(",
    "with transactional_connection",
    "db.session",
]


def scan_paths(paths):
    violations = []
    for path in paths:
        for file in sorted(Path(path).rglob("*.py")):
            text = file.read_text(encoding="utf-8")
            for idx, line in enumerate(text.splitlines(), start=1):
                for token in FORBIDDEN:
                    if token in line:
                        violations.append(f"{file}:{idx}: {line.strip()}")
                        break
    return violations


def main() -> int:
    backend = Path(__file__).resolve().parent.parent / "backend"
    violations = scan_paths([backend / "services", backend / "controllers"])
    if violations:
        print("Forbidden data-layer usage found:")
        for v in violations:
            print(v)
        return 1
    print("Layering check passed: no forbidden tokens in services/controllers.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
