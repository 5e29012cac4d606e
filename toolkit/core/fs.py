"""Filesystem helpers."""

from pathlib import Path

from toolkit.core.logger import LogIcon, logger

DIR_MODE = 0o755


def create_dir_if_not_exist(path: str | Path) -> Path:
    """Create ``path`` (and parents) with mode 0755 unless it already exists."""
    directory = Path(path)
    if not directory.exists():
        # exist_ok keeps concurrent creators from racing into FileExistsError
        directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        logger.info("Created directory", icon=LogIcon.FOLDER, path=str(directory))
    return directory
