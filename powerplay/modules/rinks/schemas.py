from pydantic import BaseModel
from typing import Optional, Literal

RinkType = Literal["FULL", "MINI"]


class RinkCreate(BaseModel):
    name_ko: str
    name_en: str
    address: Optional[str] = None
    map_url: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    rink_type: RinkType = "FULL"


class RinkUpdate(BaseModel):
    name_ko: Optional[str] = None
    name_en: Optional[str] = None
    address: Optional[str] = None
    map_url: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    rink_type: Optional[RinkType] = None


class RinkResponse(BaseModel):
    id: str
    name_ko: str
    name_en: Optional[str] = None
    address: Optional[str] = None
    map_url: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    rink_type: Optional[str] = None
    region: str = ""
