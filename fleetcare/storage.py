"""Local file storage for attachments, addressed by relative reference."""

import logging
import time
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Stores files under `root`; references are paths relative to it."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, reference: str) -> Path:
        path = (self.root / reference).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Reference escapes storage root: {reference}")
        return path

    def save(self, folder: str, file_name: str, content: bytes) -> str:
        """Write `content` and return its reference. Names are prefixed with a timestamp."""
        stored_name = f"{int(time.time() * 1000)}-{Path(file_name).name}"
        reference = f"{folder}/{stored_name}"
        path = self.path_for(reference)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        logger.debug("Stored %s", reference)
        return reference

    def delete(self, reference: str) -> bool:
        """Remove a stored file. Returns False if it was already gone."""
        path = self.path_for(reference)
        if not path.exists():
            return False
        path.unlink()
        logger.debug("Deleted %s", reference)
        return True
