"""Shared test configuration.

Points the application at a throwaway SQLite file, with cheap bcrypt rounds,
before any ``registers`` module reads its settings.
"""

import os
import tempfile
from pathlib import Path

_TMP_DIR = Path(tempfile.mkdtemp(prefix="registers-tests-"))

os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'registers-test.db'}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_ENV"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
