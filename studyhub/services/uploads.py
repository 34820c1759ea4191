"""
Upload gating

Pure accept/reject decisions over the metadata a client declares for a
file. The service never stores file bytes; content only keeps a reference
to where the file lives.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

MB = 1024 * 1024


class UploadRule(str, Enum):
    PROFILE_IMAGE = "profile_image"
    NOTES = "notes"
    VIDEO = "video"
    PAPER = "paper"


@dataclass(frozen=True)
class UploadPolicy:
    mime_types: FrozenSet[str]
    extensions: FrozenSet[str]
    max_size: int


@dataclass(frozen=True)
class UploadDecision:
    accepted: bool
    reason: Optional[str] = None


POLICIES: Dict[UploadRule, UploadPolicy] = {
    UploadRule.PROFILE_IMAGE: UploadPolicy(
        mime_types=frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}),
        extensions=frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"}),
        max_size=5 * MB,
    ),
    UploadRule.NOTES: UploadPolicy(
        mime_types=frozenset({
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/pdf",
            "text/plain",
        }),
        extensions=frozenset({".pptx", ".docx", ".pdf", ".txt"}),
        max_size=50 * MB,
    ),
    UploadRule.VIDEO: UploadPolicy(
        mime_types=frozenset({
            "video/mp4",
            "video/avi",
            "video/x-msvideo",
            "video/quicktime",
            "video/x-matroska",
            "video/webm",
        }),
        extensions=frozenset({".mp4", ".avi", ".mov", ".mkv", ".webm"}),
        max_size=500 * MB,
    ),
    UploadRule.PAPER: UploadPolicy(
        mime_types=frozenset({"application/pdf"}),
        extensions=frozenset({".pdf"}),
        max_size=100 * MB,
    ),
}


def check_upload(rule, filename: str, mime_type: str, size: int) -> UploadDecision:
    """
    Decide whether a declared file satisfies ``rule``.

    Args:
        rule: UploadRule (or its string value)
        filename: original file name, used for the extension check
        mime_type: declared MIME type
        size: size in bytes

    Returns:
        UploadDecision with a human readable reason when rejected
    """
    policy = POLICIES[UploadRule(rule)]

    if size is None or size <= 0:
        return UploadDecision(False, "File is empty")
    if size > policy.max_size:
        return UploadDecision(
            False,
            f"File exceeds the {policy.max_size // MB} MB limit",
        )

    mime = (mime_type or "").split(";")[0].strip().lower()
    if mime not in policy.mime_types:
        return UploadDecision(False, f"File type {mime or 'unknown'} is not allowed")

    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in policy.extensions:
        return UploadDecision(False, f"File extension {extension or '(none)'} is not allowed")

    return UploadDecision(True)
