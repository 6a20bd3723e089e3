# app/routers/files.py
from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from app.dependencies import get_storage_service
from app.services.storage import BlobNotFoundError, Storage, guess_content_type

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{key:path}")
async def download_file(key: str, storage: Storage = Depends(get_storage_service)):
    """
    Serves issued PDFs for the local/memory backends; S3 URLs point at the bucket.
    """
    try:
        data = await run_in_threadpool(storage.get_bytes, key)
    except BlobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        # LocalStorage rejects keys escaping its base path
        raise HTTPException(status_code=400, detail=str(e)) from e
    return Response(content=data, media_type=guess_content_type(key))
