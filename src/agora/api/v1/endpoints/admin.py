"""Administrative maintenance endpoints."""

from typing import Any

from fastapi import APIRouter

from agora.services.reconcile import reconcile_counters

from ..dependencies import AdminUserDep, SessionDep

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/reconcile")
async def reconcile(
    admin: AdminUserDep,
    db: SessionDep,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Recount denormalized counters and repair any that drifted."""
    report = reconcile_counters(db, dry_run=dry_run)
    return {"success": True, "report": report.as_dict()}
