"""API routes for user settings."""

from fastapi import APIRouter, Depends

from api.dependencies import get_backup_service
from src.clarityledger.data.backup import AppSettings, BackupService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=AppSettings)
async def get_settings(service: BackupService = Depends(get_backup_service)) -> AppSettings:
    """Get the stored settings."""
    return service.get_settings()


@router.put("/", response_model=AppSettings)
async def update_settings(settings: AppSettings, service: BackupService = Depends(get_backup_service)) -> AppSettings:
    """Replace the stored settings."""
    service.save_settings(settings)
    return settings
