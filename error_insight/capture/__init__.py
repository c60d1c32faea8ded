"""
capture/ - Local state capture

Bounded, redacted snapshots of the variables visible in each stack frame
at the failure point.
"""

from .redaction import (
    REDACTED_PLACEHOLDER,
    is_sensitive_name,
    scrub,
)
from .state_dumper import StateDumper

__all__ = [
    "REDACTED_PLACEHOLDER",
    "is_sensitive_name",
    "scrub",
    "StateDumper",
]
