"""Runtime configuration loaded from the environment (and an optional .env file)."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)

DEFAULT_DB_PATH = Path(__file__).parent / "chart_store" / "medchart.db"

DB_PATH = Path(os.getenv("MEDCHART_DB_PATH") or DEFAULT_DB_PATH)
LOG_LEVEL = os.getenv("MEDCHART_LOG_LEVEL", "WARNING").upper()
