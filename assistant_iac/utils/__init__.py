"""
Utility functions for Pulumi infrastructure.

Provides naming conventions, tag factories, logging and output utilities.
"""

from assistant_iac.utils.naming import ResourceNamer
from assistant_iac.utils.tags import create_tags, merge_tags, freeze_tags
from assistant_iac.utils.logger import configure_logging, get_logger
from assistant_iac.utils.outputs import write_outputs_to_env

__all__ = [
    "ResourceNamer",
    "create_tags",
    "merge_tags",
    "freeze_tags",
    "configure_logging",
    "get_logger",
    "write_outputs_to_env",
]
