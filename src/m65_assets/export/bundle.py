"""Output files, assembled in memory and written at the end."""

import logging
from pathlib import Path

from pydantic import BaseModel

from m65_assets.errors import ExportError

logger = logging.getLogger(__name__)


def expand_template(template: str, **values: str) -> str:
    """Replace `{key}` and `%key%` placeholders."""
    res = template
    for key, value in values.items():
        res = res.replace("{" + key + "}", value).replace(f"%{key}%", value)
    return res


class OutputBundle(BaseModel):
    """Ordered output files of a build."""

    files: dict[Path, bytes] = {}

    def add(self, path: Path, data: bytes, description: str = "data") -> None:
        """Add a file; adding the same path twice is an error."""
        if path in self.files:
            raise ExportError(f"{path}: output written twice in one build")
        logger.debug(f"Prepared {description} {path} ({len(data)} bytes)")
        self.files[path] = data

    def write(self) -> list[Path]:
        """Write all files; on failure, remove files written so far."""
        written: list[Path] = []
        try:
            for path, data in self.files.items():
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)
                written.append(path)
                logger.info(f"Exported {path} ({len(data)} bytes)")
        except OSError as e:
            for path in written:
                path.unlink(missing_ok=True)
            raise ExportError(f"Failed writing {path}: {e}") from e
        return written
