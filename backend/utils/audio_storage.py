import logging
import os
from typing import Optional
from uuid import uuid4

from core.config import settings

log = logging.getLogger(__name__)


def save_file(data: bytes, directory: str, filename: Optional[str] = None, suffix: str = ".mp3") -> str:
    """
    Write `data` to a new file under `directory` and return its path.
    Files are write-once: an existing path is never overwritten.
    """
    os.makedirs(directory, exist_ok=True)
    name = filename or f"{uuid4().hex}{suffix}"
    path = os.path.join(directory, os.path.basename(name))
    with open(path, "xb") as f:
        f.write(data)
    return path


def save_agent_audio_file(data: bytes, subdir: str = "tts", filename: Optional[str] = None) -> str:
    return save_file(data, os.path.join(settings.audio_dir, subdir), filename, suffix=".mp3")


def remove_file_quietly(path: Optional[str]) -> None:
    """Best-effort cleanup; a failure is logged and swallowed."""
    if not path:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        log.warning("Could not delete file %s", path, exc_info=True)


def resolve_audio_path(relative: str) -> Optional[str]:
    """Map a client-supplied relative path to a file inside the audio dir, or None."""
    root = os.path.realpath(settings.audio_dir)
    candidate = os.path.realpath(os.path.join(root, relative))
    if os.path.commonpath([root, candidate]) != root:
        return None
    return candidate if os.path.isfile(candidate) else None
