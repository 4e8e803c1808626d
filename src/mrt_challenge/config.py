"""Configuration settings for the MRT challenge."""

import os
from dotenv import load_dotenv

load_dotenv()

# Optional CSV replacing the bundled station table
STATIONS_CSV = os.getenv("MRT_STATIONS_CSV")

# Game
GAME_DURATION_SECONDS = int(os.getenv("MRT_GAME_DURATION_SEC", "900"))  # 15 minutes
DEFAULT_LANGUAGE = os.getenv("MRT_DEFAULT_LANGUAGE", "english")

# Logging
LOG_LEVEL = os.getenv("MRT_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# HTTP API
API_HOST = os.getenv("MRT_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("MRT_API_PORT", "8000"))
# When off, the countdown only advances through POST /game/tick
API_AUTOTICK = os.getenv("MRT_API_AUTOTICK", "1").lower() not in ("0", "false", "no")
