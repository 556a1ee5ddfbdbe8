"""Input/output path validation for tirpsim."""

import logging
import os
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


def validate_input_exists(path: Union[str, Path], description: str = "Input") -> Path:
    """
    Validate that an input file or directory exists and is readable.

    Args:
        path: Path to check
        description: Description for error message

    Returns:
        The path as a Path object

    Raises:
        FileNotFoundError: If the path doesn't exist
        PermissionError: If the path cannot be read
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{description} not found: {path}")
    if not os.access(path, os.R_OK):
        raise PermissionError(f"{description} is not readable: {path}")
    return path


def validate_output_path(path: Union[str, Path], description: str = "Output") -> Path:
    """
    Validate that an output file can be created.

    The parent directory must already exist; output files are never placed
    in directories the run would have to create.

    Args:
        path: Output file path
        description: Description for error message

    Returns:
        The path as a Path object

    Raises:
        FileNotFoundError: If the parent directory doesn't exist
        IsADirectoryError: If the path is an existing directory
        PermissionError: If the directory or file is not writable
    """
    path = Path(path)
    parent = path.parent if str(path.parent) else Path(".")
    if not parent.is_dir():
        raise FileNotFoundError(
            f"{description} directory does not exist: {parent}"
        )
    if path.is_dir():
        raise IsADirectoryError(f"{description} path is a directory: {path}")
    if path.exists() and not os.access(path, os.W_OK):
        raise PermissionError(f"{description} file is not writable: {path}")
    if not os.access(parent, os.W_OK):
        raise PermissionError(f"{description} directory is not writable: {parent}")
    logger.debug(f"{description} path ok: {path}")
    return path
