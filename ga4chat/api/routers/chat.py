"""POST /api/chat -- natural-language question in, formatted GA4 answer out."""
from pydantic import BaseModel, Field
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ga4chat.api.deps import RATE_LIMIT, limiter, require_team_token
from ga4chat.copilot.service import ChatAnswer, ChatPipeline, get_pipeline
from ga4chat.copilot.spec import ChatMessage

router = APIRouter(dependencies=[Depends(require_team_token)])


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000, description="Natural-language analytics question")
    history: list[ChatMessage] = Field(default_factory=list, description="Prior turns, oldest first")


@router.post("/chat", response_model=ChatAnswer, response_model_exclude_none=True)
@limiter.limit(RATE_LIMIT)
def chat_endpoint(
    request: Request,
    req: ChatRequest,
    pipeline: ChatPipeline = Depends(get_pipeline),
):
    """Full pipeline: interpret -> GA4 runReport -> format."""
    answer = pipeline.answer(req.message, req.history)
    if answer.type == "error":
        return JSONResponse(status_code=500, content=answer.to_wire())
    return answer
