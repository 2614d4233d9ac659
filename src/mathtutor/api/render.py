"""``POST /api/render``: server-side markdown + LaTeX rendering."""

from fastapi import APIRouter

from .deps import MarkdownRendererDep
from .models import RenderRequest, RenderResponse

router = APIRouter(tags=["render"])


@router.post("/render")
def render_answer(
    payload: RenderRequest, renderer: MarkdownRendererDep
) -> RenderResponse:
    """Render accumulated answer text to a sanitized HTML fragment."""
    return RenderResponse(html=renderer.render(payload.text))
