"""Copy of extra static content into a provisioned server."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, List

from constants import Constants
from errors import DeploymentPrecondition

logger = logging.getLogger(__name__)


def warn_extra_config(content_dir: Path) -> bool:
    config = content_dir / Constants.STANDALONE / "configurations" / Constants.STANDALONE_XML
    if config.exists():
        logger.warning(
            "The file %s overrides the generated configuration, unexpected behavior can occur "
            "when starting the server", config
        )
        return True
    return False


def copy_extra_content(dirs: Iterable[str], target: Path, base_dir: Path = Path(".")) -> List[Path]:
    """Copy each directory's tree over ``target``; relative dirs resolve against ``base_dir``.

    Raises:
        DeploymentPrecondition: a content directory does not exist.
    """
    copied = []
    for entry in dirs:
        source = Path(entry).expanduser()
        if not source.is_absolute():
            source = Path(base_dir) / source
        if not source.is_dir():
            raise DeploymentPrecondition(f"Extra content dir {source} doesn't exist")
        warn_extra_config(source)
        shutil.copytree(source, target, dirs_exist_ok=True)
        logger.debug("Copied extra content %s into %s", source, target)
        copied.append(source)
    return copied
