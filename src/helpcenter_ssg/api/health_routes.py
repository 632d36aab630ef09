from pathlib import Path

from fastapi import APIRouter, Depends

from .dependencies import get_dist_dir

router = APIRouter(tags=["health"])

@router.get("/health")
def health(dist_dir: Path = Depends(get_dist_dir)):
    return {
        "status": "ok",
        "dist": str(dist_dir),
        "prerendered": (dist_dir / "index.html").is_file(),
    }
