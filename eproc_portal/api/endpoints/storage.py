# /storage endpoints (procurement document PDFs)

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from eproc_portal.api.deps import get_current_user_id, get_storage_service
from eproc_portal.models.storage import DeleteFileRequest, FileListResponse, SignedUrlRequest, SignedUrlResponse, UploadResult
from eproc_portal.services.storage_service import StorageService, StorageServiceError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/upload",
    response_model=UploadResult,
    status_code=status.HTTP_201_CREATED,
    summary="Upload PDF",
    description="Stores a PDF under `<key_prefix>/<timestamp>-<name>.pdf` and returns a signed URL.",
    responses={400: {"description": "Not a PDF, empty, too large or bad key prefix"}},
)
async def upload_document(
    file: UploadFile = File(...),
    key_prefix: str = Form(..., description='Folder inside the bucket, e.g. "rfps".'),
    user_id: str = Depends(get_current_user_id),
    storage_service: StorageService = Depends(get_storage_service),
):
    content = await file.read()
    try:
        result = await storage_service.upload_pdf(content, file.filename or "", file.content_type, key_prefix)
    except StorageServiceError as e:
        logger.warning(f"Upload by {user_id} rejected: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.info(f"User {user_id} uploaded {result.path}")
    return result


@router.post(
    "/signed-url",
    response_model=SignedUrlResponse,
    summary="Get Signed URL",
)
async def create_signed_url(
    body: SignedUrlRequest,
    user_id: str = Depends(get_current_user_id),
    storage_service: StorageService = Depends(get_storage_service),
):
    try:
        signed_url = await storage_service.get_signed_url(body.path, body.expires_in)
    except StorageServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return SignedUrlResponse(signed_url=signed_url)


@router.delete(
    "/delete",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete File",
)
async def delete_document(
    body: DeleteFileRequest,
    user_id: str = Depends(get_current_user_id),
    storage_service: StorageService = Depends(get_storage_service),
):
    try:
        await storage_service.delete_file(body.path)
    except StorageServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.info(f"User {user_id} deleted {body.path}")


@router.get(
    "/list",
    response_model=FileListResponse,
    summary="List Files",
    responses={400: {"description": "Bad folder name"}},
)
async def list_documents(
    folder: str = Query(..., description='Folder inside the bucket, e.g. "rfps".'),
    user_id: str = Depends(get_current_user_id),
    storage_service: StorageService = Depends(get_storage_service),
):
    try:
        paths = await storage_service.list_files(folder)
    except StorageServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return FileListResponse(folder=folder.strip("/"), paths=paths)
