"""
Update Rinks Script
Geocodes every rink through the Naver Maps API and writes the resulting
UPDATE statements to an SQL file for review before it is applied.
Run with: python -m powerplay.scripts.update_rinks [output.sql]
"""

import sys
import time
import logging
from typing import Dict, Optional

import httpx
from supabase import Client

from powerplay.config import settings
from powerplay.database.supabase_client import get_service_supabase

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.apigw.ntruss.com/map-geocode/v2/geocode"
REQUEST_DELAY_SECONDS = 0.1
DEFAULT_OUTPUT = "rink_updates.sql"

# Rink name -> street address used as the geocoding query
RINK_ADDRESSES = {
    "제니스스포츠클럽아이스링크": "서울특별시 구로구 안양천로 539-10",
    "목동종합운동장실내아이스링크": "서울특별시 양천구 안양천로 939",
    "고려대학교서울캠퍼스아이스링크": "서울특별시 성북구 안암로 145",
    "광운대학교 아이스링크장": "서울특별시 노원구 광운로 21",
    "동천재활체육센터동천빙상경기장": "서울특별시 노원구 노원로18길 41",
    "태릉선수촌실내빙상장": "서울특별시 노원구 화랑로 727",
    "의정부 실내빙상장": "경기도 의정부시 체육로 90",
    "고양어울림누리 얼음마루": "경기도 고양시 덕양구 어울림로 33",
    "아이스하우스": "경기도 수원시 권선구 수인로 296",
    "탄천종합운동장 빙상장": "경기도 성남시 분당구 탄천로 215",
    "분당올림픽 스포츠센터 아이스링크": "경기도 성남시 분당구 중앙공원로 35",
    "과천시민회관빙상장": "경기도 과천시 통영대전고속도로 1",
    "안양종합운동장 실내빙상장": "경기도 안양시 동안구 평촌대로 389",
    "선학국제빙상경기장": "인천광역시 연수구 경원대로 526",
    "춘천송암스포츠타운빙상경기장": "강원도 춘천시 스포츠타운길 113",
    "강릉실내빙상장": "강원도 강릉시 포남동 200",
    "강릉올림픽파크강릉하키센터": "강원도 강릉시 수리골길 102",
    "동래아이스링크": "부산광역시 동래구 쇠미로 219",
    "아르떼수성랜드 아이스링크": "대구광역시 수성구 무학로 42",
    "대구공공시설관리공단 대구실내빙상장": "대구광역시 북구 고성로 191",
    "남선공원 종합체육관": "대전광역시 서구 남선로 66",
    "울산과학대학교동부캠퍼스아이스링크": "울산광역시 동구 봉수로 101",
    "청주실내빙상장": "충청북도 청주시 청원구 사천로 33",
    "이순신 빙상장": "충청남도 아산시 남부로 370-24",
    "전주화산체육관빙상경기장": "전라북도 전주시 완산구 백제대로 310",
    "부영국제빙상장": "전라남도 나주시 빛가람로 793",
    "포항아이스링크": "경상북도 포항시 북구 장량로 18",
    "금오랜드 아이스링크": "경상북도 구미시 금오산로 341",
    "의창 스포츠센터빙상장": "경상남도 창원시 의창구 원이대로 56",
    "브랭섬홀 아시아 아이스링크": "제주특별자치도 서귀포시 대정읍 글로벌에듀로 234",
}

# Used when the geocoder has no result
FALLBACK_COORDS = {
    "제니스스포츠클럽아이스링크": {"lat": 37.4998, "lng": 126.8681, "address": "서울특별시 구로구 안양천로 539-10"},
    "목동종합운동장실내아이스링크": {"lat": 37.530734, "lng": 126.879257, "address": "서울특별시 양천구 안양천로 939"},
    "고려대학교서울캠퍼스아이스링크": {"lat": 37.589964, "lng": 127.031827, "address": "서울특별시 성북구 안암로 145"},
    "광운대학교 아이스링크장": {"lat": 37.62031, "lng": 127.05716, "address": "서울특별시 노원구 광운로 21"},
    "안양종합운동장 실내빙상장": {"lat": 37.4050, "lng": 126.9480, "address": "경기도 안양시 동안구 평촌대로 389"},
    "과천시민회관빙상장": {"lat": 37.42825, "lng": 126.98909, "address": "경기도 과천시 통영대전고속도로 1"},
}

RINK_TYPES = {
    "제니스스포츠클럽아이스링크": "FULL",
    "목동종합운동장실내아이스링크": "FULL",
    "고려대학교서울캠퍼스아이스링크": "FULL",
    "광운대학교 아이스링크장": "FULL",
    "안양종합운동장 실내빙상장": "FULL",
}


def geocode(client: httpx.Client, query: str) -> Optional[Dict]:
    """First Naver geocoding hit as {"lat", "lng", "address"}, None when nothing matches"""
    try:
        response = client.get(
            GEOCODE_URL,
            params={"query": query},
            headers={
                "X-NCP-APIGW-API-KEY-ID": settings.naver_client_id or "",
                "X-NCP-APIGW-API-KEY": settings.naver_client_secret or "",
                "Accept": "application/json",
            },
        )
        response.raise_for_status()
        addresses = response.json().get("addresses") or []
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error geocoding '{query}': {e}")
        return None
    if not addresses:
        logger.debug(f"No geocoding results for '{query}'")
        return None
    first = addresses[0]
    return {
        "lat": float(first["y"]),
        "lng": float(first["x"]),
        "address": first.get("roadAddress") or query,
    }


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_update_sql(rink: dict, coords: Dict, rink_type: str) -> str:
    return (
        f"UPDATE rinks SET lat={coords['lat']}, lng={coords['lng']}, "
        f"address={_quote(coords['address'])}, rink_type={_quote(rink_type)} "
        f"WHERE id={_quote(str(rink['id']))};"
    )


def generate_sql(supabase: Client, client: httpx.Client, delay: float = REQUEST_DELAY_SECONDS) -> str:
    rinks = supabase.table("rinks").select("*").execute().data or []
    logger.info(f"Processing {len(rinks)} rinks...")

    lines = ["-- Rink Data Updates"]
    for rink in rinks:
        name = rink.get("name_ko") or ""
        query = RINK_ADDRESSES.get(name, name)
        coords = geocode(client, query)
        if not coords and name in FALLBACK_COORDS:
            logger.info(f"Using fallback coordinates for {name}")
            coords = FALLBACK_COORDS[name]

        if coords:
            lines.append(build_update_sql(rink, coords, RINK_TYPES.get(name, "FULL")))
            logger.info(f"Found: {name}")
        else:
            lines.append(f"-- Could not find address for {name} (Search: {query})")
            logger.warning(f"Skipped: {name}")
        if delay:
            time.sleep(delay)
    return "\n".join(lines) + "\n"


def main():
    output = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_OUTPUT
    if not settings.naver_client_id or not settings.naver_client_secret:
        logger.error("NAVER_CLIENT_ID / NAVER_CLIENT_SECRET not configured")
        sys.exit(1)
    try:
        with httpx.Client(timeout=10.0) as client:
            sql = generate_sql(get_service_supabase(), client)
        with open(output, "w", encoding="utf-8") as f:
            f.write(sql)
        logger.info(f"Done. SQL written to {output}")
    except Exception as e:
        logger.error(f"Error during rink update: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
