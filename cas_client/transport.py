"""
HTTP clients used to talk to the CAS server
"""
import httpx

from . import settings


def _client_options(cas_settings: settings.CasSettings | None) -> dict:
    cas_settings = cas_settings or settings.cas
    return {
        "verify": cas_settings.verify_tls,
        "timeout": cas_settings.timeout,
        "headers": {"User-Agent": cas_settings.user_agent},
    }


def new_http_client(cas_settings: settings.CasSettings | None = None) -> httpx.Client:
    return httpx.Client(**_client_options(cas_settings))


def new_async_http_client(
    cas_settings: settings.CasSettings | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(**_client_options(cas_settings))
