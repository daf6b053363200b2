from fastapi import APIRouter, Depends, HTTPException
from typing import List
from app.auth import get_current_user
from app.dependencies import get_connection_service, get_credential_store, get_dispatcher
from app.errors import SocialCoreError
from app.models import AccountPublishResult, PublishRequest, SocialAccount
from app.services.connections import ConnectionService
from app.services.credential_store import CredentialStore
from app.services.publisher import PublishDispatcher

router = APIRouter()

@router.get("/accounts", response_model=List[SocialAccount])
async def get_social_accounts(
    current_user = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Get all connected social accounts for the current user
    """
    try:
        return store.list_for_user(current_user.id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch social accounts: {str(e)}")

@router.delete("/accounts/{account_id}")
async def disconnect_social_account(
    account_id: str,
    current_user = Depends(get_current_user),
    connections: ConnectionService = Depends(get_connection_service),
):
    """
    Disconnect a social account
    """
    try:
        await connections.disconnect_account(current_user.id, account_id)
    except SocialCoreError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to disconnect account: {str(e)}")

    return {"success": True, "message": "Account disconnected successfully"}

@router.post("/publish", response_model=List[AccountPublishResult])
async def publish(
    request: PublishRequest,
    current_user = Depends(get_current_user),
    dispatcher: PublishDispatcher = Depends(get_dispatcher),
):
    """
    Publish one post to several accounts at once. Partial success is normal;
    each account gets its own result.
    """
    return await dispatcher.publish_to_many(request.account_ids, request.content, user_id=current_user.id)
