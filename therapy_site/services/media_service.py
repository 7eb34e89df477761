import asyncio
import logging
import os
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from therapy_site.infra.storage import ObjectStorage, StorageError
from therapy_site.models.database import MediaAsset
from therapy_site.models.response import PublicFile, PublicFileListing
from therapy_site.utils.filename import media_kind, safe_extension

logger = logging.getLogger(__name__)


def build_storage_path(filename: str, now: Optional[datetime] = None) -> str:
    """uploads/YYYY/MM/DD/<uuid><ext>"""
    now = now or datetime.utcnow()
    return f"uploads/{now:%Y/%m/%d}/{uuid.uuid4()}{safe_extension(filename)}"


class MediaService:
    """Uploaded media: binary in the object store, metadata in the database"""

    def __init__(self, db: Session, storage: ObjectStorage):
        self.db = db
        self.storage = storage
        self.bucket = storage.config.media_bucket

    def list_assets(self) -> List[MediaAsset]:
        return self.db.query(MediaAsset).order_by(MediaAsset.created_at.desc(), MediaAsset.id.desc()).all()

    def _save(self, asset: MediaAsset) -> None:
        self.db.add(asset)
        self.db.commit()
        self.db.refresh(asset)

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str],
        media_type: str,
        title: Optional[str],
        alt_text: Optional[str],
        created_by_id: Optional[int],
    ) -> MediaAsset:
        """Store the binary, then the record; a failed record write removes the stored object"""
        storage_path = build_storage_path(filename)
        public_url = await self.storage.upload(
            self.bucket,
            storage_path,
            content,
            content_type=content_type or "application/octet-stream",
            cache_control="3600",
        )
        asset = MediaAsset(
            url=public_url,
            storage_path=storage_path,
            type=media_type,
            title=title,
            alt_text=alt_text,
            size=len(content),
            created_by_id=created_by_id,
        )
        try:
            await asyncio.to_thread(self._save, asset)
        except Exception:
            self.db.rollback()
            try:
                await self.storage.delete(self.bucket, storage_path)
            except StorageError as e:
                logger.warning(f"Media object left in storage: {storage_path}: {e}")
            raise
        return asset

    def _remove(self, asset: MediaAsset) -> None:
        self.db.delete(asset)
        self.db.commit()

    async def delete(self, asset: MediaAsset) -> None:
        """Remove the stored object, then the record; a failure in either step propagates"""
        if asset.storage_path:
            await self.storage.delete(self.bucket, asset.storage_path)
        await asyncio.to_thread(self._remove, asset)


def list_public_files(public_dir: str) -> PublicFileListing:
    """Walk public/images and public/videos for files bundled with the site"""
    files: List[PublicFile] = []
    counts = {"image": 0, "video": 0}

    for top in ("images", "videos"):
        root_dir = os.path.join(public_dir, top)
        if not os.path.isdir(root_dir):
            continue
        for dirpath, _dirnames, filenames in os.walk(root_dir):
            folder = os.path.relpath(dirpath, public_dir).replace(os.sep, "/")
            for name in filenames:
                kind = media_kind(name)
                if not kind:
                    continue
                full_path = os.path.join(dirpath, name)
                relative = os.path.relpath(full_path, public_dir).replace(os.sep, "/")
                files.append(
                    PublicFile(
                        name=name,
                        url=f"/{relative}",
                        type=kind,
                        size=os.path.getsize(full_path),
                        folder=folder,
                    )
                )
                counts[kind] += 1

    # Videos first, then by name
    files.sort(key=lambda f: (f.type != "video", f.name))
    return PublicFileListing(
        files=files,
        folders=sorted({f.folder for f in files}),
        stats={
            "totalImages": counts["image"],
            "totalVideos": counts["video"],
            "totalSize": sum(f.size for f in files),
        },
    )
