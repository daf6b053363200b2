import logging
from fastapi import APIRouter, Depends, HTTPException
from app.auth import get_current_user
from app.dependencies import get_content_generator
from app.models import DraftRequest
from app.services.content_generator import ContentGenerator

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/generate")
def generate_draft(
    request: DraftRequest,
    current_user = Depends(get_current_user),
    generator: ContentGenerator = Depends(get_content_generator),
):
    """
    Generate an AI-assisted post draft for a platform
    """
    try:
        text = generator.generate_draft(request.prompt, request.platform, request.tone)
    except Exception as e:
        logger.exception("Draft generation failed for user %s", current_user.id)
        raise HTTPException(status_code=502, detail=f"Failed to generate content: {str(e)}")

    return {"platform": request.platform.value, "content": text}
