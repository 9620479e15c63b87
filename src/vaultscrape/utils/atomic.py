"""
Atomic JSON persistence for the disk-backed cache.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


async def atomic_json_dump(data: Any, path: Path, timeout: float = 2.0) -> bool:
    """
    Write ``data`` as JSON to ``path`` without ever exposing a partial file.

    The document is written to a sibling temp file and swapped in with
    ``os.replace``. Returns False (and logs) on serialization errors, I/O
    errors or timeout; the temp file is always removed.
    """
    path = Path(path)
    temp_path = None

    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            payload = json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.warning("Cannot serialize data to JSON", path=str(path), error=str(e))
            return False

        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".atomic_{path.name}.", suffix=".tmp")
        os.close(fd)
        temp_path = Path(temp_name)

        loop = asyncio.get_running_loop()

        async def write_and_replace() -> None:
            await loop.run_in_executor(None, temp_path.write_text, payload, "utf-8")
            await loop.run_in_executor(None, os.replace, str(temp_path), str(path))

        await asyncio.wait_for(write_and_replace(), timeout=timeout)
        return True

    except asyncio.TimeoutError:
        logger.warning("Atomic write timed out", path=str(path), timeout=timeout)
        return False
    except OSError as e:
        logger.warning("Atomic write failed", path=str(path), error=str(e))
        return False
    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as e:
                logger.debug("Could not remove temp file", temp_file=str(temp_path), error=str(e))
