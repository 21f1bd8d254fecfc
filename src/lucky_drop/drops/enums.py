"""
Drop Enums

All enum types used by gift drops and the recipient reveal flow.
Values must match exactly with the stored documents.
"""

from enum import Enum

# ════════════════════════════════════════════════════════════════════════════
# Drop Document Enums
# ════════════════════════════════════════════════════════════════════════════


class DistributionMode(str, Enum):
    """How the recipient ends up with a gift. Fixed at creation."""

    RANDOM = "random"  # Server draws one gift uniformly at random
    MANUAL = "manual"  # Recipient picks a gift


class DropStatus(str, Enum):
    """Publication status of a drop."""

    DRAFT = "draft"
    LIVE = "live"


class MediaType(str, Enum):
    """Kinds of personal media a gifter can attach."""

    CARD = "card"  # Image shown as a greeting card
    AUDIO = "audio"
    VIDEO = "video"


class ReactionMediaType(str, Enum):
    """Reaction formats suggested with a thank-you note."""

    AUDIO = "audio"
    VIDEO = "video"
    SELFIE = "selfie"


# ════════════════════════════════════════════════════════════════════════════
# Reveal Flow Enums
# ════════════════════════════════════════════════════════════════════════════


class Stage(str, Enum):
    """Nodes of the recipient reveal state machine."""

    INITIAL = "initial"  # Link opened, nothing shown yet
    MEDIA = "media"  # Playing gifter media
    SELECTING = "selecting"  # Choosing (manual) or about to draw (random)
    REVEALING = "revealing"  # Selection persisted, reveal animation running
    REVEALED = "revealed"  # Selected gift shown
    DETAILS = "details"  # Collecting shipping details
    THANKING = "thanking"  # Details saved, optional thank-you note
    DONE = "done"  # Terminal
