"""Marker-block merge engine, adoption modes, stack detection and rendering."""

from standards_sync.merge.adoption import PIN_MARKER_ID, AdoptionResult, adopt
from standards_sync.merge.engine import (
    BlockOutcome,
    BlockStatus,
    MergeResult,
    mark_template,
    merge_file,
    merge_text,
)
from standards_sync.merge.render import TEMPLATE_TOKENS, render_template, unresolved_tokens
from standards_sync.merge.stack import StackProfile, detect_stack, stack_profile

__all__ = [
    "PIN_MARKER_ID",
    "TEMPLATE_TOKENS",
    "AdoptionResult",
    "BlockOutcome",
    "BlockStatus",
    "MergeResult",
    "StackProfile",
    "adopt",
    "detect_stack",
    "mark_template",
    "merge_file",
    "merge_text",
    "render_template",
    "stack_profile",
    "unresolved_tokens",
]
