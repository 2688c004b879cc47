"""
Tests for translation lookup, locale negotiation and the locale middleware.
"""

from powerplay.core.middleware import split_locale_prefix
from powerplay.locales import t, normalize_locale, negotiate_locale, get_catalog, LOCALES


def test_translation_formats_arguments():
    assert t("tx_refund", "ko", percent=50) == "경기 취소 환불 (50%)"
    assert "50" in t("tx_refund", "en", percent=50)


def test_unknown_locale_falls_back_to_korean():
    assert t("tx_charge", "fr") == t("tx_charge", "ko")


def test_unknown_key_returns_key():
    assert t("does_not_exist", "en") == "does_not_exist"


def test_catalogs_have_the_same_keys():
    assert set(get_catalog("en")) == set(get_catalog("ko"))


def test_normalize_locale():
    assert normalize_locale("en-US") == "en"
    assert normalize_locale("KO_kr") == "ko"
    assert normalize_locale("de") is None
    assert normalize_locale("") is None


def test_negotiate_prefers_quality():
    assert negotiate_locale("de-DE,en;q=0.8,ko;q=0.9") == "ko"
    assert negotiate_locale("en-GB,en;q=0.9") == "en"
    assert negotiate_locale("fr,de") is None
    assert negotiate_locale(None) is None


def test_split_locale_prefix():
    assert split_locale_prefix("/en/api/v1/matches") == ("en", "/api/v1/matches")
    assert split_locale_prefix("/ko") == ("ko", "/")
    assert split_locale_prefix("/api/v1/matches") == (None, "/api/v1/matches")
    assert split_locale_prefix("/english/page") == (None, "/english/page")


def test_locale_prefix_is_stripped(client):
    response = client.get("/en/api/v1/i18n")
    assert response.status_code == 200
    assert response.json()["locale"] == "en"
    assert response.headers["content-language"] == "en"


def test_accept_language_and_query_override(client):
    response = client.get("/api/v1/i18n", headers={"Accept-Language": "en-US,en;q=0.9"})
    assert response.json()["locale"] == "en"
    response = client.get("/api/v1/i18n?locale=ko", headers={"Accept-Language": "en"})
    assert response.json()["locale"] == "ko"


def test_catalog_endpoint(client):
    response = client.get("/api/v1/i18n/en")
    assert response.status_code == 200
    assert response.json()["app_name"] == "Power Play"
    assert client.get("/api/v1/i18n/fr").status_code == 404
    assert set(LOCALES) == {"ko", "en"}
