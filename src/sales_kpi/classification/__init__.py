"""Status classification for both source schemas."""

from .rules import classify, classify_record, classify_stage, classify_status

__all__ = ["classify", "classify_record", "classify_stage", "classify_status"]
