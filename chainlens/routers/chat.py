from fastapi import APIRouter, Depends, Request, Response

from chainlens.deps import get_chat_pipeline
from chainlens.models.dto import ChatHistory, ChatRequest, ChatResponse
from chainlens.routers.errors import pipeline_error_response
from chainlens.services.chat import ChatPipeline

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
def chat(req: ChatRequest, request: Request, response: Response,
         pipeline: ChatPipeline = Depends(get_chat_pipeline)):
    result = pipeline.process(req.message, req.session_id)
    if result.error is not None:
        return pipeline_error_response(result.error, request)
    response.headers["X-Narrator"] = result.narrator
    return ChatResponse(data=result.data)


# History is not persisted; these keep the client contract.
@router.get("/history/{session_id}")
def get_history(session_id: str):
    return {"success": True, "data": ChatHistory(session_id=session_id).model_dump(by_alias=True)}


@router.delete("/history/{session_id}")
def clear_history(session_id: str):
    return {"success": True, "message": "Chat history cleared"}
