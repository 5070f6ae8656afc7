"""Session file persistence: load soft, save atomically."""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..config import LOG_LEVEL
from ..models.session import Cookie, session_adapter
from .errors import PersistError

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)


class SessionStore:
    """Reads and writes the cookie set that lets WhatsApp Web resume without a QR scan."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Optional[list[Cookie]]:
        """Return the stored session, or None if there is no usable one.

        Missing, unreadable, malformed and empty files all count as "no session".
        This never raises.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info(f"No session file at {self.path}")
            return None
        except OSError as e:
            logger.warning(f"Could not read session file {self.path}: {e}")
            return None

        try:
            cookies = session_adapter.validate_python(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Ignoring malformed session file {self.path}: {e}")
            return None

        if not cookies:
            logger.info(f"Session file {self.path} is empty")
            return None

        logger.info(f"Session file loaded ({len(cookies)} cookies)")
        return cookies

    def save(self, session: list[Cookie]) -> None:
        """Write the session atomically (temp file in the same directory, then rename).

        Raises:
            PersistError: the session is empty or the file could not be written.
        """
        if not session:
            raise PersistError("Refusing to persist an empty session.")

        data = json.dumps([cookie.to_record() for cookie in session], indent=2)
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            raise PersistError(f"Could not write session file {self.path}: {e}") from e

        logger.info(f"Session saved to {self.path} ({len(session)} cookies)")
