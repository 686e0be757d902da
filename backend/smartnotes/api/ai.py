from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from smartnotes.ai.assistant import StudyAssistant
from smartnotes.api.deps import get_assistant
from smartnotes.models.ai import ExplainIn, NoteContentIn, StudyTipsIn

router = APIRouter(prefix="/api/ai", tags=["ai"])


def _bad_request(exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


# GatewayError propagates to the app-level handler (502)


@router.post("/summarize")
async def summarize(payload: NoteContentIn, assistant: StudyAssistant = Depends(get_assistant)):
    try:
        return {"summary": await assistant.summarize(payload.noteContent)}
    except ValueError as exc:
        return _bad_request(exc)


@router.post("/explain")
async def explain(payload: ExplainIn, assistant: StudyAssistant = Depends(get_assistant)):
    try:
        return {"explanation": await assistant.explain(payload.selectedText)}
    except ValueError as exc:
        return _bad_request(exc)


@router.post("/quiz")
async def quiz(payload: NoteContentIn, assistant: StudyAssistant = Depends(get_assistant)):
    try:
        return {"quiz": await assistant.quiz(payload.noteContent)}
    except ValueError as exc:
        return _bad_request(exc)


@router.post("/enhance")
async def enhance(payload: NoteContentIn, assistant: StudyAssistant = Depends(get_assistant)):
    try:
        return {"enhancedNotes": await assistant.enhance(payload.noteContent)}
    except ValueError as exc:
        return _bad_request(exc)


@router.post("/study-tips")
async def study_tips(payload: StudyTipsIn, assistant: StudyAssistant = Depends(get_assistant)):
    try:
        return {"studyTips": await assistant.study_tips(payload.noteContent, payload.subject)}
    except ValueError as exc:
        return _bad_request(exc)
