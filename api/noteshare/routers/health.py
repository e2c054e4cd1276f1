from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session
import os
import platform
import psutil
from datetime import datetime
import logging

from ..config.database import get_db
from ..config.settings import AI_PROVIDER, CHAT_MODEL, ENV, GOOGLE_API_KEY, OPENAI_API_KEY
from ..utils.file_utils import FileStorage, get_file_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
def health_check(db: Session = Depends(get_db), storage: FileStorage = Depends(get_file_storage)):
    """Check database, upload storage and host resources"""
    try:
        db.execute(text("SELECT 1"))
        database = {"status": "healthy"}
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        database = {"status": "unhealthy", "error": str(e)}

    upload_dir = str(storage.base_dir)
    storage_info = {
        "path": upload_dir,
        "exists": os.path.isdir(upload_dir),
        "writable": os.access(upload_dir, os.W_OK),
    }

    memory = psutil.virtual_memory()
    disk = psutil.disk_usage(upload_dir if storage_info["exists"] else "/")

    ai_key_present = bool(GOOGLE_API_KEY) if AI_PROVIDER == "google" else bool(OPENAI_API_KEY)

    healthy = database["status"] == "healthy" and storage_info["exists"] and storage_info["writable"]
    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now().isoformat(),
        "environment": ENV,
        "python_version": platform.python_version(),
        "database": database,
        "storage": storage_info,
        "ai": {"provider": AI_PROVIDER, "model": CHAT_MODEL, "api_key_configured": ai_key_present},
        "memory": {
            "total": f"{memory.total / (1024**3):.2f} GB",
            "available": f"{memory.available / (1024**3):.2f} GB",
            "percent": f"{memory.percent}%",
        },
        "disk": {
            "total": f"{disk.total / (1024**3):.2f} GB",
            "free": f"{disk.free / (1024**3):.2f} GB",
            "percent": f"{disk.percent}%",
        },
    }
