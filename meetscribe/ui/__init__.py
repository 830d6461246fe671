"""Terminal rendering for MeetScribe."""

from .status_view import build_status_table, build_status_panel, print_status

__all__ = [
    "build_status_table",
    "build_status_panel",
    "print_status",
]
