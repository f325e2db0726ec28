"""Media library bookkeeping for Cloudinary-hosted images."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.media import MediaAsset

logger = logging.getLogger(__name__)

DEFAULT_FILE_TYPE = "image/png"


@dataclass
class SyncCounts:
    synced: int = 0
    updated: int = 0
    skipped: int = 0
    total: int = 0


def resource_file_name(resource: dict[str, Any]) -> str:
    public_id = resource.get("public_id") or ""
    return public_id.rsplit("/", 1)[-1] or public_id


def resource_metadata(resource: dict[str, Any], synced_at: datetime | None = None) -> dict[str, Any]:
    metadata = {
        "public_id": resource.get("public_id"),
        "width": resource.get("width"),
        "height": resource.get("height"),
        "resource_type": resource.get("resource_type"),
        "folder": resource.get("folder"),
    }
    if synced_at is not None:
        metadata["synced_at"] = synced_at.isoformat()
    return metadata


def asset_values(resource: dict[str, Any], synced_at: datetime | None = None) -> dict[str, Any]:
    """Column values for a Cloudinary resource."""
    return {
        "file_url": resource.get("secure_url") or resource.get("url"),
        "file_type": resource.get("format") or DEFAULT_FILE_TYPE,
        "file_size": resource.get("bytes"),
        "extra_metadata": resource_metadata(resource, synced_at),
    }


def new_asset(
    org_id: str,
    user_id: str | None,
    resource: dict[str, Any],
    file_name: str | None = None,
    synced_at: datetime | None = None,
) -> MediaAsset:
    return MediaAsset(
        org_id=org_id,
        uploaded_by=user_id,
        file_name=file_name or resource_file_name(resource),
        provider="cloudinary",
        **asset_values(resource, synced_at),
    )


async def sync_resources(
    session: AsyncSession,
    org_id: str,
    user_id: str | None,
    resources: list[dict[str, Any]],
) -> SyncCounts:
    """Upsert Cloudinary resources into media_assets keyed by ``metadata.public_id``."""
    counts = SyncCounts(total=len(resources))
    result = await session.execute(select(MediaAsset).where(MediaAsset.org_id == org_id))
    by_public_id = {
        (asset.extra_metadata or {}).get("public_id"): asset
        for asset in result.scalars().all()
        if (asset.extra_metadata or {}).get("public_id")
    }

    now = datetime.now(timezone.utc)
    for resource in resources:
        public_id = resource.get("public_id")
        if not public_id or not (resource.get("secure_url") or resource.get("url")):
            counts.skipped += 1
            continue

        existing = by_public_id.get(public_id)
        if existing is None:
            asset = new_asset(org_id, user_id, resource, synced_at=now)
            session.add(asset)
            by_public_id[public_id] = asset
            counts.synced += 1
        else:
            for key, value in asset_values(resource, now).items():
                setattr(existing, key, value)
            counts.updated += 1

    await session.flush()
    logger.info(
        "Cloudinary sync completed",
        extra={
            "org_id": org_id,
            "synced": counts.synced,
            "updated": counts.updated,
            "skipped": counts.skipped,
            "total": counts.total,
        },
    )
    return counts
