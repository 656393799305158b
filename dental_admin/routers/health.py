"""Health check endpoints"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import text
from dental_admin.database import get_db
from dental_admin.services.catalog import load_catalog

router = APIRouter()


@router.get("/healthz")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "dental-plan-admin-api"}


@router.get("/readyz")
async def readiness_check(db: Session = Depends(get_db)):
    """Readiness check with dependencies"""
    try:
        db.execute(text("SELECT 1"))
        catalog = load_catalog()

        return {
            "status": "ready",
            "service": "dental-plan-admin-api",
            "dependencies": {
                "database": "healthy",
                "catalog": f"{len(catalog['benefits'])} benefits"
            }
        }
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Service not ready: {str(e)}"
        )
