from fastapi import APIRouter, Depends

from relay.schemas import PresignRequest, PresignResponse
from relay.services.storage import StorageService, get_storage_service

router = APIRouter(prefix="/api", tags=["files"])


@router.post("/presign", response_model=PresignResponse)
async def presign_upload(
    payload: PresignRequest,
    storage: StorageService = Depends(get_storage_service),
) -> PresignResponse:
    return storage.presign_upload(payload)
