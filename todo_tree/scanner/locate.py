"""
ripgrep executable resolution.

Checks, in priority order, the user-configured path, the interpreter's
script directories (where a pip-installed ripgrep lands) and finally PATH.
"""

import logging
import os
import platform
import shutil
import sysconfig
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


def exe_name() -> str:
    return "rg.exe" if platform.system() == "Windows" else "rg"


def bundled_locations() -> List[Path]:
    """Platform-appropriate places a bundled ripgrep may live"""
    locations = []
    schemes = [None, f"{os.name}_user"]
    for scheme in schemes:
        try:
            scripts = sysconfig.get_path("scripts", scheme) if scheme else sysconfig.get_path("scripts")
        except KeyError:
            continue
        if scripts:
            candidate = Path(scripts) / exe_name()
            if candidate not in locations:
                locations.append(candidate)
    return locations


def _existing(path: Optional[Union[str, Path]]) -> Optional[Path]:
    if not path:
        return None
    candidate = Path(path).expanduser()
    return candidate if candidate.is_file() else None


def locate_ripgrep(configured: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """
    Return the first ripgrep executable that exists on disk, or None.

    A configured path that does not exist is skipped, not fatal; the caller
    decides what to do when nothing is found.
    """
    found = _existing(configured)
    if found:
        return found
    if configured:
        logger.warning(f"Configured ripgrep path does not exist: {configured}")

    for candidate in bundled_locations():
        found = _existing(candidate)
        if found:
            logger.debug(f"Using bundled ripgrep at {found}")
            return found

    found = _existing(shutil.which(exe_name()))
    if found:
        logger.debug(f"Using ripgrep from PATH at {found}")
    return found
