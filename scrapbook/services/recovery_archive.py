import json
import logging
import re
from datetime import datetime
from pathlib import Path

from scrapbook import config

logger = logging.getLogger(__name__)


class RecoveryArchive:
    """
    Keeps copies of scrapbook bodies that could not be decoded.

    Opening an unreadable scrapbook replaces its pages with a blank one, and
    the next save overwrites the stored body. Archiving the old bytes once that
    save succeeds leaves them available for manual salvage.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = root or config.RECOVERY_DIR

    def archive(self, scrapbook_id: str, body: bytes, error: str | None = None) -> Path:
        """Save the unreadable body and an error report. Returns the archive directory."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        safe_id = re.sub(r"[^\w\-.]", "_", str(scrapbook_id))
        session_dir = self.root / f"{timestamp}_{safe_id}"
        session_dir.mkdir(parents=True, exist_ok=True)

        self._save_bytes(body, session_dir / "body.bin")
        self._save_json(
            {
                "scrapbook_id": str(scrapbook_id),
                "size": len(body),
                "error": error,
                "archived_at": datetime.now().isoformat(),
            },
            session_dir / "report.json",
        )

        logger.warning("Archived unreadable body of scrapbook %s to %s", scrapbook_id, session_dir)
        return session_dir

    def _save_bytes(self, data: bytes, path: Path) -> None:
        with open(path, "wb") as f:
            f.write(data)

    def _save_json(self, data: dict | list, path: Path) -> None:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)


recovery_archive = RecoveryArchive()
