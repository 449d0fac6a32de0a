"""Avatar file storage: validate uploaded images, store them on disk, keep the account pointer in sync."""

import logging
import time
from datetime import UTC, datetime
from pathlib import Path

from cashflowops.core.errors import ValidationError
from cashflowops.schemas.account import Account
from cashflowops.stores.base import AccountStore

logger = logging.getLogger(__name__)

# Content type -> stored file extension. The client filename is never used on disk.
ALLOWED_IMAGE_TYPES: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class AvatarStorage:
    """Local-directory storage for avatar binaries, addressed by a public URL prefix."""

    def __init__(self, base_dir: str | Path, url_prefix: str, max_bytes: int) -> None:
        self.base_dir = Path(base_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    def validate(self, content_type: str | None, data: bytes) -> str:
        """Return the file extension for an acceptable upload or raise ValidationError."""
        ctype = (content_type or "").split(";")[0].strip().lower()
        ext = ALLOWED_IMAGE_TYPES.get(ctype)
        if ext is None:
            raise ValidationError("Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed.")
        if not data:
            raise ValidationError("No file uploaded")
        if len(data) > self.max_bytes:
            raise ValidationError(
                f"File size too large. Maximum {self.max_bytes // (1024 * 1024)}MB allowed."
            )
        return ext

    def save(self, account_id: str, content_type: str | None, data: bytes) -> str:
        """Write the image and return its public URL."""
        ext = self.validate(content_type, data)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{account_id}_{time.time_ns()}{ext}"
        (self.base_dir / filename).write_bytes(data)
        return f"{self.url_prefix}/{filename}"

    def remove(self, url: str | None) -> bool:
        """Delete the file behind a URL this storage issued. Foreign URLs are left alone."""
        if not url or not url.startswith(self.url_prefix + "/"):
            return False
        path = self.base_dir / Path(url).name
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True


def upload_avatar(
    store: AccountStore,
    storage: AvatarStorage,
    account: Account,
    content_type: str | None,
    data: bytes,
) -> Account:
    """Store a new avatar, point the account at it, then remove the previous file."""
    previous = account.avatar_url
    url = storage.save(account.id, content_type, data)
    try:
        account = store.update_fields(account.id, avatar_url=url, updated_at=datetime.now(UTC))
    except Exception:
        storage.remove(url)
        raise
    if previous and previous != url:
        storage.remove(previous)
    logger.info("Avatar updated for account id=%s: %s", account.id, url)
    return account


def delete_avatar(store: AccountStore, storage: AvatarStorage, account: Account) -> Account:
    """Clear the avatar pointer and remove the stored file."""
    previous = account.avatar_url
    account = store.update_fields(account.id, avatar_url=None, updated_at=datetime.now(UTC))
    if previous:
        storage.remove(previous)
        logger.info("Avatar removed for account id=%s", account.id)
    return account
