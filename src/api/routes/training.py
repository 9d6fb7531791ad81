"""
Training trigger endpoint.

Forwards a contributor to the external training service and returns the
log lines it produced.
"""

from fastapi import APIRouter

from src.core.exceptions import InvalidContributorError
from src.core.models import TrainingRequest, TrainingResponse
from src.services.storage.database import get_session
from src.services.storage.repository import RecordingRepository
from src.services.training import TrainingClient

router = APIRouter(tags=["training"])


@router.post("/train", response_model=TrainingResponse)
async def start_training(body: TrainingRequest):
    """Start a training job for one contributor's recordings."""
    async with get_session() as session:
        contributor = await RecordingRepository(session).get_contributor(body.owner)
    if contributor is None:
        raise InvalidContributorError(body.owner)

    logs = await TrainingClient().train(body.owner)
    return TrainingResponse(owner=body.owner, logs=logs)
