"""
Image upload API endpoints

Files are stored under UPLOAD_DIR and served back from /uploads.
"""
from fastapi import APIRouter, Depends, File, UploadFile
from typing import List

from constants import HTTPStatus
from dependencies import get_current_user
from models import User
from schemas import MultiUploadResponse, UploadResponse
from services.upload_service import UploadService
from utils.error_handlers import handle_api_errors

router = APIRouter()


@router.post("/uploads", response_model=UploadResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Upload image")
async def upload_image(file: UploadFile = File(...), user: User = Depends(get_current_user)):
    return {"url": await UploadService().save(file)}


@router.post("/uploads/images", response_model=MultiUploadResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Upload images")
async def upload_images(images: List[UploadFile] = File(...), user: User = Depends(get_current_user)):
    return {"urls": await UploadService().save_all(images)}


@router.post("/uploads/multiple", response_model=MultiUploadResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Upload files")
async def upload_files(files: List[UploadFile] = File(...), user: User = Depends(get_current_user)):
    return {"urls": await UploadService().save_all(files)}
