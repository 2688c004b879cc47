from fastapi import APIRouter, Depends, HTTPException
from powerplay.core.dependencies import get_request_locale
from powerplay.locales import LOCALES, DEFAULT_LOCALE, get_catalog
from typing import Dict

router = APIRouter(prefix="/i18n", tags=["i18n"])


@router.get("")
async def current_locale(locale: str = Depends(get_request_locale)):
    """Locale resolved for this request plus the supported ones"""
    return {"locale": locale, "default": DEFAULT_LOCALE, "supported": list(LOCALES)}


@router.get("/{locale}", response_model=Dict[str, str])
async def catalog(locale: str):
    if locale not in LOCALES:
        raise HTTPException(status_code=404, detail="Locale not found")
    return get_catalog(locale)
