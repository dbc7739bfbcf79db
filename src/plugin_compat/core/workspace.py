# Working copy module: temporary clone directories
#
# Main functions:
#   - working_copy(): context manager yielding a fresh unique directory and
#     removing it on exit, whatever happened inside
#   - remove_directory(): recursive best-effort removal (Windows compatible)

import os
import shutil
import stat
import subprocess
import sys
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .process_control import IS_WINDOWS, background_subprocess_kwargs
from ..infra.logger import log_warning

WORKING_COPY_PREFIX = "plugin-compat-"


def _clear_readonly(func, path, _exc_info) -> None:
    # git marks pack files read-only, which rmtree cannot unlink on Windows
    os.chmod(path, stat.S_IWRITE)
    func(path)


def remove_directory(target_path: Path) -> bool:
    """Remove a directory tree; return False if something was left behind."""
    target_path = Path(target_path)
    if not target_path.exists():
        return True

    try:
        if sys.version_info >= (3, 12):
            shutil.rmtree(target_path, onexc=_clear_readonly)
        else:
            shutil.rmtree(target_path, onerror=_clear_readonly)
    except OSError as e:
        if IS_WINDOWS:
            subprocess.run(
                ['cmd.exe', '/c', 'rmdir', '/s', '/q', str(target_path)],
                check=False,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=30,
                **background_subprocess_kwargs(),
            )
        if target_path.exists():
            log_warning(f"failed to remove working copy: {target_path} - {e}")
            return False

    return True


@contextmanager
def working_copy(base_dir: Optional[Path] = None) -> Iterator[Path]:
    """Create a uniquely named temporary directory for one repository check."""
    path = Path(tempfile.mkdtemp(prefix=WORKING_COPY_PREFIX, dir=base_dir))
    try:
        yield path
    finally:
        remove_directory(path)
