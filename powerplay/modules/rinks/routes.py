from fastapi import APIRouter, Depends
from powerplay.core.dependencies import require_capability
from powerplay.database.supabase_client import get_service_supabase
from powerplay.modules.rinks.schemas import RinkCreate, RinkUpdate, RinkResponse
from powerplay.modules.rinks.service import RinkService
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/rinks", tags=["rinks"])


def get_rink_service(supabase: Client = Depends(get_service_supabase)) -> RinkService:
    return RinkService(supabase)


@router.get("", response_model=List[RinkResponse])
async def list_rinks(
    region: Optional[str] = None,
    service: RinkService = Depends(get_rink_service)
):
    """List rinks, optionally filtered by region ('서울특별시 성북구')"""
    return service.list_rinks(region)


@router.get("/regions", response_model=List[str])
async def list_regions(service: RinkService = Depends(get_rink_service)):
    """Distinct regions of all rinks, sorted"""
    return service.list_regions()


@router.get("/{rink_id}", response_model=RinkResponse)
async def get_rink(
    rink_id: str,
    service: RinkService = Depends(get_rink_service)
):
    """Get rink by ID"""
    return service.get_rink(rink_id)


@router.post("", response_model=RinkResponse, status_code=201)
async def create_rink(
    rink_data: RinkCreate,
    profile: Dict = Depends(require_capability("rinks:manage")),
    service: RinkService = Depends(get_rink_service)
):
    """Create a rink (admin)"""
    return service.create_rink(rink_data)


@router.patch("/{rink_id}", response_model=RinkResponse)
async def update_rink(
    rink_id: str,
    rink_data: RinkUpdate,
    profile: Dict = Depends(require_capability("rinks:manage")),
    service: RinkService = Depends(get_rink_service)
):
    """Update a rink (admin)"""
    return service.update_rink(rink_id, rink_data)


@router.delete("/{rink_id}", status_code=204)
async def delete_rink(
    rink_id: str,
    profile: Dict = Depends(require_capability("rinks:manage")),
    service: RinkService = Depends(get_rink_service)
):
    """Delete a rink (admin)"""
    service.delete_rink(rink_id)
    return None
