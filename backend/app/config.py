"""
Runtime settings, read from the environment at call time so tests can override them.
"""
import os

APP_VERSION = "0.1.0"


def min_tax_year() -> int:
    return int(os.getenv("MIN_TAX_YEAR", "2000"))
