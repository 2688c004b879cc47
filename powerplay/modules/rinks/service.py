from supabase import Client
from powerplay.modules.rinks.regions import extract_region, unique_regions
from powerplay.modules.rinks.schemas import RinkCreate, RinkUpdate, RinkResponse
from typing import List, Optional
from fastapi import HTTPException


def _to_response(row: dict) -> RinkResponse:
    return RinkResponse(**row, region=extract_region(row.get("address")))


class RinkService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _all_rows(self) -> List[dict]:
        result = self.supabase.table("rinks")\
            .select("*")\
            .order("name_ko")\
            .execute()
        return result.data or []

    def list_rinks(self, region: Optional[str] = None) -> List[RinkResponse]:
        """All rinks by Korean name, optionally limited to one region"""
        try:
            rinks = [_to_response(row) for row in self._all_rows()]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if region:
            rinks = [r for r in rinks if r.region == region]
        return rinks

    def list_regions(self) -> List[str]:
        try:
            return unique_regions(self._all_rows())
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_rink(self, rink_id: str) -> RinkResponse:
        try:
            result = self.supabase.table("rinks")\
                .select("*")\
                .eq("id", rink_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Rink not found")
        return _to_response(result.data[0])

    def create_rink(self, rink_data: RinkCreate) -> RinkResponse:
        name_ko = rink_data.name_ko.strip()
        name_en = rink_data.name_en.strip()
        if not name_ko or not name_en:
            raise HTTPException(status_code=400, detail="Name is required")
        payload = rink_data.model_dump()
        payload.update({"name_ko": name_ko, "name_en": name_en})
        try:
            result = self.supabase.table("rinks").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create rink")
            return _to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_rink(self, rink_id: str, rink_data: RinkUpdate) -> RinkResponse:
        update_data = rink_data.model_dump(exclude_unset=True)
        for key in ("name_ko", "name_en"):
            if key in update_data:
                update_data[key] = (update_data[key] or "").strip()
                if not update_data[key]:
                    raise HTTPException(status_code=400, detail="Name is required")
        if not update_data:
            return self.get_rink(rink_id)
        try:
            result = self.supabase.table("rinks")\
                .update(update_data)\
                .eq("id", rink_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Rink not found")
            return _to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_rink(self, rink_id: str) -> bool:
        try:
            result = self.supabase.table("rinks")\
                .delete()\
                .eq("id", rink_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
