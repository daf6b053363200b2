import html
import json
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse
from app.auth import get_current_user, open_session, seal_session
from app.dependencies import get_connection_service, get_oauth_engine
from app.errors import MissingVerifier, SocialCoreError
from app.models import OAuthCallbackRequest
from app.oauth.engine import OAuthFlowEngine
from app.services.connections import ConnectionService
from config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()
callback_router = APIRouter()

SESSION_COOKIE = "oauth_session"
CALLBACK_PATH = "/auth/callback"


def _success_page(platform: str, origin: str) -> str:
    message = json.dumps({"type": "oauth_success", "platform": platform})
    return f"""
    <html>
        <head><title>Account connected</title></head>
        <body>
            <h2>Successfully connected your {html.escape(platform)} account!</h2>
            <p>This window will close automatically...</p>
            <script>
                if (window.opener) {{
                    window.opener.postMessage({message}, {json.dumps(origin)});
                }}
                setTimeout(function() {{ window.close(); }}, 2000);
            </script>
        </body>
    </html>
    """


def _error_page(platform: str, origin: str, error: SocialCoreError) -> str:
    message = json.dumps({"type": "oauth_error", "platform": platform, "code": error.code, "error": error.message})
    return f"""
    <html>
        <head><title>Connection failed</title></head>
        <body>
            <h2>Connection Failed</h2>
            <p>{html.escape(error.message)}</p>
            <button onclick="window.close()">Close Window</button>
            <script>
                if (window.opener) {{
                    window.opener.postMessage({message}, {json.dumps(origin)});
                }}
            </script>
        </body>
    </html>
    """


@router.get("/{platform}/connect")
async def connect(
    platform: str,
    response: Response,
    current_user = Depends(get_current_user),
    engine: OAuthFlowEngine = Depends(get_oauth_engine),
):
    """
    Start an OAuth connection and return the authorization URL to open
    """
    settings = get_settings()
    auth_request = engine.begin_authorization(platform, session_id=current_user.id)

    response.set_cookie(
        SESSION_COOKIE,
        seal_session(current_user.id),
        max_age=settings.oauth_flow_ttl_seconds,
        path=CALLBACK_PATH,
        httponly=True,
        samesite="lax",
        secure=settings.app_origin.startswith("https"),
    )
    return {"authorization_url": auth_request.url}


@callback_router.get(CALLBACK_PATH + "/{platform}", response_class=HTMLResponse)
async def oauth_callback(
    platform: str,
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    error_description: Optional[str] = Query(None),
    connections: ConnectionService = Depends(get_connection_service),
    engine: OAuthFlowEngine = Depends(get_oauth_engine),
):
    """
    Handle the platform's redirect: finish the connection and signal the opener window
    """
    settings = get_settings()
    sealed = request.cookies.get(SESSION_COOKIE)
    session_id = open_session(sealed, settings.oauth_flow_ttl_seconds) if sealed else None

    try:
        if session_id is None:
            raise MissingVerifier("No authorization in progress for this browser session")
        if error:
            engine.abort(platform, session_id, error, error_description)
        if not code or not state:
            engine.abort(platform, session_id, "Missing authorization code or state")

        account = await connections.connect_account(session_id, platform, state, code)
    except SocialCoreError as e:
        logger.warning("OAuth callback for %s failed: %s", platform, e.message)
        page = HTMLResponse(content=_error_page(platform, settings.app_origin, e), status_code=e.status_code)
        page.delete_cookie(SESSION_COOKIE, path=CALLBACK_PATH)
        return page

    page = HTMLResponse(content=_success_page(account.platform.value, settings.app_origin))
    page.delete_cookie(SESSION_COOKIE, path=CALLBACK_PATH)
    return page


@router.post("/{platform}/complete")
async def complete(
    platform: str,
    callback: OAuthCallbackRequest,
    current_user = Depends(get_current_user),
    connections: ConnectionService = Depends(get_connection_service),
    engine: OAuthFlowEngine = Depends(get_oauth_engine),
):
    """
    Complete an OAuth flow for clients that relay code and state themselves
    """
    if callback.error:
        engine.abort(platform, current_user.id, callback.error, callback.error_description)
    if not callback.code or not callback.state:
        engine.abort(platform, current_user.id, "Missing authorization code or state")

    try:
        account = await connections.connect_account(current_user.id, platform, callback.state, callback.code)
    except SocialCoreError:
        raise
    except Exception as e:
        logger.exception("OAuth completion for %s failed", platform)
        raise HTTPException(status_code=500, detail=f"OAuth completion failed: {str(e)}")

    return {
        "success": True,
        "account": account.model_dump(mode="json"),
        "message": {"type": "oauth_success", "platform": account.platform.value},
    }
