"""
Contributor and sentence catalog REST endpoints.

All endpoints delegate to ``RecordingRepository``; no business logic here.
"""

from fastapi import APIRouter

from src.core.models import ContributorCreate, ContributorResponse, SentenceResponse
from src.services.storage.database import get_session
from src.services.storage.repository import RecordingRepository

router = APIRouter(tags=["catalog"])


def _to_response(contributor) -> ContributorResponse:
    return ContributorResponse(
        id=contributor.id,
        name=contributor.name,
        display_name=contributor.display_name,
        created_at=contributor.created_at,
    )


@router.get("/contributors", response_model=list[ContributorResponse])
async def list_contributors():
    """List contributors in creation order."""
    async with get_session() as session:
        contributors = await RecordingRepository(session).list_contributors()
    return [_to_response(c) for c in contributors]


@router.post("/contributors", response_model=ContributorResponse, status_code=201)
async def create_contributor(body: ContributorCreate):
    """Register a contributor; ``name`` must match ``[a-z0-9_]+``."""
    async with get_session() as session:
        contributor = await RecordingRepository(session).create_contributor(
            name=body.name.strip(),
            display_name=body.display_name.strip(),
        )
    return _to_response(contributor)


@router.delete("/contributors/{name}")
async def delete_contributor(name: str):
    """Delete a contributor; their recordings are kept."""
    async with get_session() as session:
        await RecordingRepository(session).delete_contributor(name)
    return {"name": name, "deleted": True}


@router.get("/sentences", response_model=list[SentenceResponse])
async def list_sentences():
    """List the sentence catalog in traversal order."""
    async with get_session() as session:
        sentences = await RecordingRepository(session).list_sentences()
    return [SentenceResponse(id=s.id, text=s.text) for s in sentences]
