"""
Chat attachment validation and storage.

Files live in the attachments bucket under <chat id>/<user id>/ and are
linked from messages through a signed download URL.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from config.settings import (
    ALLOWED_ATTACHMENT_TYPES,
    MAX_ATTACHMENT_SIZE,
    MAX_ATTACHMENTS_PER_MESSAGE,
    get_settings,
)
from models.chat import FileAttachment
from shared.db import get_supabase_client


class AttachmentError(ValueError):
    """File rejected before upload (type, size or count)."""


@dataclass(frozen=True)
class UploadProgress:
    file_id: str
    progress: int  # percent
    status: str  # uploading | completed | error
    error: Optional[str] = None


def storage_name(name: str) -> str:
    """Last path component of a client-supplied file name."""
    base = name.replace("\\", "/").rsplit("/", 1)[-1].strip()
    return "file" if base in ("", ".", "..") else base


def validate_file(name: str, content_type: str, size: int) -> None:
    """
    Check a single file against the attachment rules.

    Raises:
        AttachmentError: If the type is not allowed or the file is too large
    """
    if content_type not in ALLOWED_ATTACHMENT_TYPES:
        raise AttachmentError(
            f"File type {content_type} is not supported. Allowed types: images, "
            "videos, PDFs, Word documents, and text files."
        )
    if size > MAX_ATTACHMENT_SIZE:
        raise AttachmentError(
            f"File {name} is {size / 1024 / 1024:.1f}MB, which exceeds the "
            f"{MAX_ATTACHMENT_SIZE // (1024 * 1024)}MB limit."
        )


def validate_files(files: Sequence[tuple[str, str, int]]) -> None:
    """
    Check every (name, content_type, size) for one message.

    Raises:
        AttachmentError: On the first file that fails, or too many files
    """
    if len(files) > MAX_ATTACHMENTS_PER_MESSAGE:
        raise AttachmentError(
            f"You can only upload up to {MAX_ATTACHMENTS_PER_MESSAGE} files per message."
        )
    for name, content_type, size in files:
        validate_file(name, content_type, size)


def upload_attachment(
    data: bytes,
    name: str,
    content_type: str,
    chat_id: str,
    user_id: str,
    on_progress: Optional[Callable[[UploadProgress], None]] = None,
    supabase: Optional[Any] = None,
) -> FileAttachment:
    """
    Validate and store one attachment.

    Args:
        data: File contents
        name: Original file name
        content_type: MIME type
        chat_id: Chat the file belongs to
        user_id: Uploading user
        on_progress: Optional callback for start/completion/error
        supabase: Optional client

    Returns:
        FileAttachment with a signed download URL

    Raises:
        AttachmentError: If the file fails validation
    """
    validate_file(name, content_type, len(data))

    settings = get_settings()
    supabase = supabase or get_supabase_client()
    file_id = uuid.uuid4().hex[:12]
    path = f"{chat_id}/{user_id}/{file_id}_{storage_name(name)}"
    bucket = supabase.storage.from_(settings.attachments_bucket)

    def report(progress: int, status: str, error: Optional[str] = None) -> None:
        if on_progress is not None:
            on_progress(UploadProgress(file_id, progress, status, error))

    report(0, "uploading")
    try:
        bucket.upload(
            path,
            data,
            {
                "content-type": content_type,
                "metadata": {
                    "originalName": name,
                    "uploadedBy": user_id,
                    "chatId": chat_id,
                },
            },
        )
        signed = bucket.create_signed_url(path, settings.signed_url_ttl_seconds)
    except Exception as e:
        report(0, "error", str(e))
        raise

    report(100, "completed")
    return FileAttachment(
        id=file_id,
        name=name,
        size=len(data),
        type=content_type,
        path=path,
        url=signed.get("signedURL") or signed.get("signedUrl", ""),
    )


def delete_attachment(path: str, supabase: Optional[Any] = None) -> None:
    """Remove a stored attachment by its bucket path."""
    supabase = supabase or get_supabase_client()
    supabase.storage.from_(get_settings().attachments_bucket).remove([path])
