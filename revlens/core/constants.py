"""Shared constants for RevLens.

This module contains constants that are used across multiple modules
to avoid duplication and ensure consistency.
"""

# =============================================================================
# Default User Configuration
# =============================================================================

# Projects are owned by this user until real authentication is wired in
DEFAULT_USER_ID = "00000000-0000-0000-0000-000000000001"

DEFAULT_USERNAME = "admin"

DEFAULT_EMAIL = "admin@revlens.local"

# =============================================================================
# Project Status
# =============================================================================

PROJECT_PENDING = "pending"
PROJECT_ANALYZING = "analyzing"
PROJECT_COMPLETED = "completed"
PROJECT_FAILED = "failed"

PROJECT_STATUSES = (
    PROJECT_PENDING,
    PROJECT_ANALYZING,
    PROJECT_COMPLETED,
    PROJECT_FAILED,
)

# =============================================================================
# Dispatch Queue
# =============================================================================

DEFAULT_QUEUE_NAME = "analysis:queue"

# =============================================================================
# Uploads
# =============================================================================

MAX_FILENAME_LENGTH = 255

# Leading bytes inspected by the control-character heuristic
TEXT_SAMPLE_SIZE = 512

# Fraction of control bytes at or above which content is treated as binary
BINARY_CONTROL_RATIO = 0.3
