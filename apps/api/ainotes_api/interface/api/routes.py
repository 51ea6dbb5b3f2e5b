import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ainotes_api.dependencies import get_indexer, get_store
from ainotes_api.domain.exceptions import NoteNotFoundError, ProviderError, ProviderTimeout
from ainotes_api.domain.schemas import AskIn, AskOut, EmbedAndSaveIn, NoteListOut, NoteOut
from ainotes_api.indexing.indexer import Indexer
from ainotes_api.store import NoteStore

router = APIRouter()
logger = logging.getLogger("ainotes.api")


def _provider_http_error(e: ProviderError) -> HTTPException:
    status = 504 if isinstance(e, ProviderTimeout) else 502
    return HTTPException(status_code=status, detail=str(e))


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/notes", response_model=NoteListOut)
def getallnotes(store: NoteStore = Depends(get_store)):
    notes = store.list_notes()
    return NoteListOut(items=[NoteOut(**n.__dict__) for n in notes])


@router.post("/notes", response_model=NoteOut)
def embedandsave(
    payload: EmbedAndSaveIn,
    request: Request,
    indexer: Indexer = Depends(get_indexer),
):
    try:
        saved = indexer.embed_and_save(payload.title, payload.note, payload.all, note_id=payload.id)
    except ProviderError as e:
        logger.warning("note_embed_failed", extra={"rid": getattr(request.state, "request_id", ""), "error": str(e)})
        raise _provider_http_error(e) from e
    logger.info(
        "note_save",
        extra={"rid": getattr(request.state, "request_id", ""), "id": saved.id, "requested_id": payload.id},
    )
    return NoteOut(**saved.__dict__)


@router.delete("/notes/{note_id}")
def deletenote(
    note_id: int,
    request: Request,
    indexer: Indexer = Depends(get_indexer),
):
    try:
        indexer.delete_note(note_id)
    except NoteNotFoundError as e:
        raise HTTPException(status_code=404, detail="note_not_found") from e
    logger.info("note_delete", extra={"rid": getattr(request.state, "request_id", ""), "id": note_id})
    return {"ok": True}


@router.post("/ai/ask", response_model=AskOut)
def llm_req(
    payload: AskIn,
    request: Request,
    indexer: Indexer = Depends(get_indexer),
):
    question = payload.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="question_empty")
    try:
        answer = indexer.answer(question, payload.notes_context)
    except ProviderError as e:
        logger.warning("ask_failed", extra={"rid": getattr(request.state, "request_id", ""), "error": str(e)})
        raise _provider_http_error(e) from e
    return AskOut(answer=answer)
