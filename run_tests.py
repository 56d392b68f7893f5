#!/usr/bin/env python3
"""
CLI test runner for the facial screening engine.

Usage: python run_tests.py [--verbose] [--failfast] [--list] [pattern]
  --verbose   Show detailed output for each test
  --failfast  Stop on the first failure or error
  --list      Print the selected test ids without running them
  pattern     Optional: run only tests whose id contains this string
              (e.g. "api", "session", "scorer")
"""

import sys
import os
import argparse
import unittest

# Ensure project root is on path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)


def iter_tests(suite):
    """Flatten nested suites into individual test cases."""
    for item in suite:
        if isinstance(item, unittest.TestSuite):
            yield from iter_tests(item)
        else:
            yield item


def load_suite(pattern=None):
    """Discover tests under tests/, optionally keeping only ids matching pattern."""
    loader = unittest.TestLoader()
    suite = loader.discover(os.path.join(PROJECT_ROOT, "tests"), pattern="test_*.py")
    if not pattern:
        return suite
    pat = pattern.lower()
    selected = [t for t in iter_tests(suite) if pat in t.id().lower()]
    if not selected:
        print(f"No tests match '{pattern}'; running the full suite")
        return suite
    return unittest.TestSuite(selected)


def run_tests(verbose=False, pattern=None, failfast=False):
    """Discover and run tests. Returns (total, failures, errors)."""
    suite = load_suite(pattern)
    runner = unittest.TextTestRunner(verbosity=2 if verbose else 1, failfast=failfast)
    result = runner.run(suite)
    return result.testsRun, len(result.failures), len(result.errors)


def main():
    parser = argparse.ArgumentParser(
        description="Run the facial screening engine test suite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_tests.py
  python run_tests.py --verbose
  python run_tests.py api
  python run_tests.py session --failfast
  python run_tests.py scorer --list
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--failfast", "-x", action="store_true", help="Stop on first failure")
    parser.add_argument("--list", "-l", action="store_true", help="List tests and exit")
    parser.add_argument("pattern", nargs="?", default=None, help="Run only tests matching this string")
    args = parser.parse_args()

    if args.list:
        for test in iter_tests(load_suite(args.pattern)):
            print(test.id())
        return 0

    print("=" * 60)
    print("Facial Screening Engine - Test Suite")
    print("=" * 60)
    if args.pattern:
        print(f"Filter: tests matching '{args.pattern}'")
    print()

    total, failures, errors = run_tests(
        verbose=args.verbose, pattern=args.pattern, failfast=args.failfast
    )

    print()
    print("=" * 60)
    if failures == 0 and errors == 0:
        print(f"OK - {total} test(s) passed")
        return 0
    print(f"FAILED - {failures} failure(s), {errors} error(s) out of {total} test(s)")
    print()
    print("Troubleshooting:")
    print("  • Failures in test_signals / test_risk_scorer point at signal or scoring changes")
    print("  • Errors usually mean a missing dependency (numpy, flask, opencv-python, mediapipe)")
    print("  • Run with --verbose to see full tracebacks")
    return 1


if __name__ == "__main__":
    sys.exit(main())
