"""Utility modules for tirpsim."""

from tirpsim.utils.logging_utils import setup_logger
from tirpsim.utils.validation import validate_input_exists, validate_output_path
