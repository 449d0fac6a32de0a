"""Profile endpoints: edit own account fields and manage the avatar image."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from cashflowops.api.deps import get_account_store, get_avatar_storage
from cashflowops.api.v1.auth import get_current_account
from cashflowops.core.errors import ValidationError
from cashflowops.schemas.account import (
    Account,
    AccountEnvelope,
    AccountOut,
    AvatarResponse,
    ProfileUpdateRequest,
)
from cashflowops.schemas.auth import TokenResponse
from cashflowops.services import identity
from cashflowops.services.avatars import AvatarStorage, delete_avatar, upload_avatar
from cashflowops.stores.base import AccountStore

router = APIRouter()


@router.put("", response_model=TokenResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current: Annotated[Account, Depends(get_current_account)],
    store: Annotated[AccountStore, Depends(get_account_store)],
) -> TokenResponse:
    """
    Update username, email and profile fields. Omitted fields are unchanged.
    Returns the updated account and a fresh token.
    """
    account, token = identity.update_profile(store, current, body.model_dump(exclude_unset=True))
    return TokenResponse(token=token, account=AccountOut.model_validate(account))


@router.post("/avatar", response_model=AvatarResponse)
async def post_avatar(
    avatar: Annotated[UploadFile, File(description="JPEG, PNG, GIF or WebP image")],
    current: Annotated[Account, Depends(get_current_account)],
    store: Annotated[AccountStore, Depends(get_account_store)],
    storage: Annotated[AvatarStorage, Depends(get_avatar_storage)],
) -> AvatarResponse:
    """Upload a profile picture (multipart field `avatar`). Replaces and removes any previous one."""
    # Read one byte past the limit so oversize uploads are rejected without buffering them whole.
    data = await avatar.read(storage.max_bytes + 1)
    if not data:
        raise ValidationError("No file uploaded")
    account = await run_in_threadpool(upload_avatar, store, storage, current, avatar.content_type, data)
    return AvatarResponse(avatar_url=account.avatar_url or "", account=AccountOut.model_validate(account))


@router.delete("/avatar", response_model=AccountEnvelope)
def remove_avatar(
    current: Annotated[Account, Depends(get_current_account)],
    store: Annotated[AccountStore, Depends(get_account_store)],
    storage: Annotated[AvatarStorage, Depends(get_avatar_storage)],
) -> AccountEnvelope:
    """Remove the profile picture."""
    account = delete_avatar(store, storage, current)
    return AccountEnvelope(account=AccountOut.model_validate(account))
