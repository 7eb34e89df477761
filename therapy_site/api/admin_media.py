from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from therapy_site.api.deps import get_media_service, get_translator
from therapy_site.config.settings import Config, get_config
from therapy_site.core.auth import require_admin
from therapy_site.core.logging import log_error, log_info
from therapy_site.infra.storage import StorageError
from therapy_site.models.database import AdminUser, MediaAsset
from therapy_site.models.response import (
    MediaAssetList,
    MediaAssetOut,
    MediaAssetResponse,
    PublicFileListing,
    SuccessResponse,
)
from therapy_site.services.media_service import MediaService, list_public_files

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/media", response_model=MediaAssetList)
def list_media(media: MediaService = Depends(get_media_service)):
    return MediaAssetList(assets=[MediaAssetOut.model_validate(a) for a in media.list_assets()])


@router.post("/media", response_model=MediaAssetResponse)
async def upload_media(
    request: Request,
    file: Optional[UploadFile] = File(None),
    type: str = Form("IMAGE"),
    title: Optional[str] = Form(None),
    alt_text: Optional[str] = Form(None, alias="altText"),
    admin: AdminUser = Depends(require_admin),
    media: MediaService = Depends(get_media_service),
    cfg: Config = Depends(get_config),
    _=Depends(get_translator),
):
    """Upload one image or video to the media bucket"""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail=_("error.file_required"))

    media_type = "VIDEO" if type.upper() == "VIDEO" else "IMAGE"
    limit = cfg.media.max_video_bytes if media_type == "VIDEO" else cfg.media.max_image_bytes

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail=_("error.file_required"))
    if len(content) > limit:
        raise HTTPException(
            status_code=413,
            detail=_("error.file_too_large", max_mb=limit // (1024 * 1024)),
        )

    try:
        asset = await media.upload(
            content,
            file.filename,
            file.content_type,
            media_type,
            title or None,
            alt_text or None,
            admin.id,
        )
    except StorageError as e:
        log_error(request, f"Media upload error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.upload_failed"))
    except Exception as e:
        media.db.rollback()
        log_error(request, f"Media upload error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.upload_failed"))

    log_info(request, f"Media uploaded: {asset.storage_path} ({asset.size} bytes)")
    return MediaAssetResponse(asset=MediaAssetOut.model_validate(asset))


@router.delete("/media/{asset_id}", response_model=SuccessResponse)
async def delete_media(
    request: Request,
    asset_id: int,
    media: MediaService = Depends(get_media_service),
    _=Depends(get_translator),
):
    asset = await run_in_threadpool(media.db.get, MediaAsset, asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail=_("error.not_found"))

    try:
        await media.delete(asset)
    except Exception as e:
        media.db.rollback()
        log_error(request, f"Media delete error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.delete_failed"))

    log_info(request, f"Media deleted: {asset_id}")
    return SuccessResponse()


@router.get("/media/files", response_model=PublicFileListing)
def list_static_files(cfg: Config = Depends(get_config)):
    """Images and videos bundled under the public directory"""
    return list_public_files(cfg.site.public_dir)
