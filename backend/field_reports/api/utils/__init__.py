# API Utilities
from field_reports.api.utils.sequencers import (
    allocate_project_number,
    format_project_number,
    get_project_number_prefix,
    project_number_exists,
)

__all__ = [
    # sequencers
    "allocate_project_number",
    "format_project_number",
    "get_project_number_prefix",
    "project_number_exists",
]
