import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'scrapbooks.db'}")

# Unreadable page bodies are copied here before they get overwritten
RECOVERY_DIR = Path(os.getenv("RECOVERY_DIR", str(BASE_DIR / "recovery")))

SLIDESHOW_INTERVAL = float(os.getenv("SLIDESHOW_INTERVAL", "5.0"))  # seconds

PAGE_WIDTH = int(os.getenv("PAGE_WIDTH", "400"))
PAGE_HEIGHT = int(os.getenv("PAGE_HEIGHT", "600"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8002"))
