"""
External program discovery and the ASTRAL launcher helper.
"""

import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config.settings import Settings
from ..core.exceptions import ValidationError, FileSystemError
from ..core.types import PathLike


@dataclass
class DependencyStatus:
    name: str
    executable: str
    path: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.path is not None

    def render(self) -> str:
        if self.found:
            return f"[PASS] {self.name}: {self.path}"
        return f"[FAIL] {self.name}: '{self.executable}' not found in PATH"


def check_dependencies(settings: Settings) -> List[DependencyStatus]:
    """Resolve every external program the pipeline drives."""
    statuses = [
        DependencyStatus("IQ-TREE", settings.executables.iqtree),
        DependencyStatus("ASTRAL", settings.executables.astral),
    ]
    for status in statuses:
        status.path = shutil.which(status.executable)
        if not status.found:
            logger.warning(f"{status.name} executable '{status.executable}' was not found")
    return statuses


def write_astral_wrapper(jar_path: PathLike, output: PathLike = "astral") -> Path:
    """
    Write an executable bash launcher for an ASTRAL jar file.

    ASTRAL is distributed as a jar that expects its native libraries in a
    ``lib`` directory next to it; the launcher points ``java.library.path``
    there and forwards all arguments.

    Args:
        jar_path: Path to the ASTRAL jar
        output: Launcher file to create

    Returns:
        Path to the launcher
    """
    jar = Path(jar_path)
    if not jar.is_file():
        raise ValidationError(
            f"ASTRAL jar file not found: {jar}",
            field_name="jar_path",
            field_value=jar,
        )
    jar = jar.resolve()
    launcher = Path(output)

    script = (
        "#!/bin/bash\n"
        f'java -D"java.library.path={jar.parent}/lib" -jar {jar} "$@"\n'
    )
    try:
        launcher.write_text(script)
        mode = os.stat(launcher).st_mode
        os.chmod(launcher, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        raise FileSystemError(
            f"Failed writing ASTRAL launcher: {launcher} - {e}",
            file_path=str(launcher),
            operation="write"
        ) from e

    logger.info(f"ASTRAL launcher written to {launcher}")
    return launcher
