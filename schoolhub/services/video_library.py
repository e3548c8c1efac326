"""Recorded class videos stored as ``<base>/<teacher email>/<file>``."""

import logging
import mimetypes
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..domain.errors import NotFoundError, RangeNotSatisfiableError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
DEFAULT_CONTENT_TYPE = "video/mp4"

_RANGE_RE = re.compile(r"^bytes=(\d*)-(\d*)$")


def class_code_from_filename(filename: str) -> str:
    parts = filename.split("_")
    return parts[0] if len(parts) > 1 else "Unknown"


def parse_range(header: Optional[str], size: int) -> Optional[Tuple[int, int]]:
    """
    Translate a single ``Range`` header into inclusive byte offsets.

    Returns None when the header is absent or not a single byte range, in
    which case the whole file is served. Raises RangeNotSatisfiableError
    when the range does not overlap the file.
    """
    if not header:
        return None
    match = _RANGE_RE.match(header.strip())
    if not match:
        return None
    first, last = match.groups()
    if not first and not last:
        return None
    if not first:
        suffix = int(last)
        if suffix == 0 or size == 0:
            raise RangeNotSatisfiableError(f"Range {header} not satisfiable", size)
        return max(size - suffix, 0), size - 1
    start = int(first)
    end = int(last) if last else size - 1
    if start >= size or start > end:
        raise RangeNotSatisfiableError(f"Range {header} not satisfiable", size)
    return start, min(end, size - 1)


class VideoLibrary:
    def __init__(self, base_dir: Path, chunk_size: int = CHUNK_SIZE) -> None:
        self.base_dir = base_dir.resolve()
        self.chunk_size = chunk_size

    def list_teachers(self) -> List[Dict[str, Any]]:
        if not self.base_dir.is_dir():
            logger.warning("Video directory %s does not exist", self.base_dir)
            return []
        teachers = []
        for teacher_dir in sorted(self.base_dir.iterdir()):
            if not teacher_dir.is_dir():
                continue
            videos = []
            for item in sorted(teacher_dir.iterdir()):
                if not item.is_file():
                    continue
                stats = item.stat()
                videos.append(
                    {
                        "filename": item.name,
                        "size": stats.st_size,
                        "modified": datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
                        "class_code": class_code_from_filename(item.name),
                    }
                )
            teachers.append(
                {
                    "teacher_email": teacher_dir.name,
                    "video_count": len(videos),
                    "videos": videos,
                }
            )
        return teachers

    def resolve(self, teacher_email: str, filename: str) -> Path:
        """Return the video path, refusing anything outside the library."""
        candidate = (self.base_dir / teacher_email / filename).resolve()
        try:
            candidate.relative_to(self.base_dir)
        except ValueError as exc:
            raise NotFoundError("File not found") from exc
        if candidate.parent.parent != self.base_dir or not candidate.is_file():
            raise NotFoundError("File not found")
        return candidate

    @staticmethod
    def content_type(path: Path) -> str:
        guessed, _ = mimetypes.guess_type(path.name)
        return guessed or DEFAULT_CONTENT_TYPE

    def iter_bytes(self, path: Path, start: int, end: int) -> Iterator[bytes]:
        remaining = end - start + 1
        with path.open("rb") as handle:
            handle.seek(start)
            while remaining > 0:
                chunk = handle.read(min(self.chunk_size, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk
