#!/usr/bin/env python
"""
Test runner script for student-intake.

Usage:
    python run_tests.py                    # Run all tests
    python run_tests.py --unit             # Run only infrastructure tests
    python run_tests.py --form             # Run only form engine tests
    python run_tests.py --coverage         # Run with coverage report
    python run_tests.py --all-checks       # Run tests, mypy and black
"""

import argparse
import os
import subprocess
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent


def _ensure_venv_python():
    """Re-run the script under `.venv` python so pytest inherits the project virtualenv."""
    if os.name == "nt":
        candidate = ROOT_DIR / ".venv" / "Scripts" / "python.exe"
    else:
        candidate = ROOT_DIR / ".venv" / "bin" / "python"

    if candidate.exists():
        candidate = candidate.resolve()
        current = Path(sys.executable).resolve()
        if current != candidate:
            print(f"Re-launching tests under virtual environment: {candidate}")
            os.execv(str(candidate), [str(candidate)] + sys.argv)


def run_command(cmd: list, description: str) -> bool:
    """Run a command and return True if successful."""
    print(f"\n{'='*80}")
    print(f"Running: {description}")
    print(f"Command: {' '.join(cmd)}")
    print(f"{'='*80}\n")

    result = subprocess.run(cmd, cwd=str(ROOT_DIR))
    success = result.returncode == 0
    print(f"\n{description} - {'PASSED' if success else 'FAILED'}")
    return success


def main():
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")
    _ensure_venv_python()

    parser = argparse.ArgumentParser(description="Run student-intake tests and quality checks")
    parser.add_argument("--unit", action="store_true", help="Run only tests/unit")
    parser.add_argument("--form", action="store_true", help="Run only tests/form")
    parser.add_argument("--coverage", action="store_true", help="Run tests with coverage report")
    parser.add_argument("--mypy", action="store_true", help="Run mypy type checking")
    parser.add_argument("--black-check", action="store_true", help="Check code formatting with black")
    parser.add_argument("--all-checks", action="store_true", help="Run all quality checks")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    args = parser.parse_args()

    results = []

    pytest_cmd = [sys.executable, "-m", "pytest"]
    if args.verbose:
        pytest_cmd.append("-vv")
    if args.unit:
        pytest_cmd.append("tests/unit")
    elif args.form:
        pytest_cmd.append("tests/form")
    if args.coverage or args.all_checks:
        pytest_cmd.extend(["--cov=intake", "--cov-report=term-missing"])
    results.append(run_command(pytest_cmd, "Tests"))

    if args.mypy or args.all_checks:
        results.append(run_command(["mypy", "intake", "--ignore-missing-imports"], "Type Checking (mypy)"))

    if args.black_check or args.all_checks:
        results.append(
            run_command(["black", "--check", "--line-length=120", "intake", "tests"], "Code Formatting (black)")
        )

    print(f"\n{'='*80}")
    print("TEST SUMMARY")
    print(f"{'='*80}")
    print(f"\nPassed: {sum(results)}/{len(results)}")

    if all(results):
        print("\nALL CHECKS PASSED!")
        return 0
    print("\nSOME CHECKS FAILED")
    return 1


if __name__ == "__main__":
    sys.exit(main())
