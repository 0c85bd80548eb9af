"""
DEX Manager test suites package.

Kept importable so that page objects and framework modules can be used from:
  - the UI suites under `ui_testing/tests`
  - the offline unit suite under `unit`
  - programmatic runners (e.g., `run_tests.py`)
"""
