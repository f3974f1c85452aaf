"""Feed definitions and the registry that owns one client per feed."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

import httpx

from . import elections
from .config import Settings
from .models.client_config import ClientConfig
from .models.feed_status import FeedStatus
from .schemas import (
    CurrencyQuotation,
    DolarQuotation,
    ElectionAPIResponse,
    IndexPoint,
    validate_non_empty,
    validator_for,
)
from .upstream import UpstreamResultsClient

logger = logging.getLogger(__name__)

_SECOND_MS = 1000
_MINUTE_MS = 60 * _SECOND_MS
_HOUR_MS = 60 * _MINUTE_MS


@dataclass(frozen=True)
class FeedSpec:
    name: str
    title: str
    url: str
    validate: Callable[[Any], Any]
    poll_interval_ms: int
    cache_ttl_ms: int
    params: Mapping[str, Any] = field(default_factory=dict)
    transform: Callable[[Any], Any] | None = None


def election_params(s: Settings, categoria_id: int) -> dict[str, Any]:
    params: dict[str, Any] = {
        "anioEleccion": s.ELECTION_YEAR,
        "tipoRecuento": elections.RECUENTO_PROVISORIO,
        "tipoEleccion": elections.TIPO_GENERALES,
        "categoriaId": categoria_id,
    }
    if s.ELECTION_DISTRICT_ID:
        params["distritoId"] = s.ELECTION_DISTRICT_ID
    return params


def default_specs(s: Settings) -> list[FeedSpec]:
    """All known feeds. Cadences follow how fast each source actually changes."""
    return [
        FeedSpec(
            name="dolar",
            title="Dólar",
            url=f"{s.DOLAR_API_URL}/dolares",
            validate=validate_non_empty(list[DolarQuotation]),
            poll_interval_ms=30 * _SECOND_MS,
            cache_ttl_ms=30 * _SECOND_MS,
        ),
        FeedSpec(
            name="cotizaciones",
            title="Cotizaciones",
            url=f"{s.DOLAR_API_URL}/cotizaciones",
            validate=validate_non_empty(list[CurrencyQuotation]),
            poll_interval_ms=30 * _SECOND_MS,
            cache_ttl_ms=30 * _SECOND_MS,
        ),
        FeedSpec(
            name="inflacion",
            title="Inflación mensual",
            url=f"{s.ARGENTINA_DATA_API_URL}/finanzas/indices/inflacion",
            validate=validate_non_empty(list[IndexPoint]),
            poll_interval_ms=_HOUR_MS,
            cache_ttl_ms=_HOUR_MS,
        ),
        FeedSpec(
            name="riesgo_pais",
            title="Riesgo país",
            url=f"{s.ARGENTINA_DATA_API_URL}/finanzas/indices/riesgo-pais",
            validate=validate_non_empty(list[IndexPoint]),
            poll_interval_ms=_HOUR_MS,
            cache_ttl_ms=_HOUR_MS,
        ),
        *(
            FeedSpec(
                name=elections.feed_name(categoria),
                title=f"Elecciones: {elections.CATEGORY_TITLES[categoria]}",
                url=s.ELECTION_API_URL,
                validate=validator_for(ElectionAPIResponse),
                poll_interval_ms=10 * _SECOND_MS,
                cache_ttl_ms=10 * _SECOND_MS,
                params=election_params(s, categoria_id),
                transform=elections.process_results,
            )
            for categoria, categoria_id in elections.CATEGORIES.items()
        ),
    ]


def client_config_for(spec: FeedSpec, s: Settings) -> ClientConfig:
    return ClientConfig(
        poll_interval_ms=spec.poll_interval_ms,
        cache_ttl_ms=spec.cache_ttl_ms,
        max_retries=s.MAX_RETRIES,
        backoff_schedule_ms=tuple(s.BACKOFF_MS),
        request_timeout_ms=s.REQUEST_TIMEOUT_MS,
        exhaustion_policy=s.EXHAUSTION_POLICY,
    )


class FeedRegistry:
    """Owns the enabled feed clients and the HTTP client they share."""

    def __init__(
        self,
        clients: Iterable[UpstreamResultsClient],
        titles: Mapping[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._clients: dict[str, UpstreamResultsClient] = {}
        for client in clients:
            if client.name in self._clients:
                raise ValueError(f"duplicate feed name: {client.name}")
            self._clients[client.name] = client
        self._titles = dict(titles or {})
        self._http = http_client

    @classmethod
    def from_settings(
        cls,
        s: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        specs: list[FeedSpec] | None = None,
    ) -> "FeedRegistry":
        http_client = httpx.AsyncClient(
            headers={"User-Agent": s.USER_AGENT, "Accept": "application/json"},
            transport=transport,
            follow_redirects=True,
        )
        enabled = set(s.FEEDS_ENABLED)
        chosen = [spec for spec in (specs or default_specs(s)) if spec.name in enabled]
        clients = [
            UpstreamResultsClient(
                spec.name,
                spec.url,
                client_config_for(spec, s),
                spec.validate,
                params=spec.params,
                transform=spec.transform,
                http_client=http_client,
            )
            for spec in chosen
        ]
        titles = {spec.name: spec.title for spec in chosen}
        return cls(clients, titles=titles, http_client=http_client)

    def names(self) -> list[str]:
        return list(self._clients)

    def title(self, name: str) -> str:
        return self._titles.get(name, name)

    def get(self, name: str) -> UpstreamResultsClient:
        return self._clients[name]

    def find(self, name: str) -> UpstreamResultsClient | None:
        return self._clients.get(name)

    def start_all(self) -> None:
        for client in self._clients.values():
            client.start()
        logger.info("Started %d feed(s): %s", len(self._clients), ", ".join(self._clients))

    def stop_all(self) -> None:
        for client in self._clients.values():
            client.stop()

    async def aclose(self) -> None:
        self.stop_all()
        for client in self._clients.values():
            await client.aclose()
        if self._http is not None:
            await self._http.aclose()

    def statuses(self) -> list[FeedStatus]:
        return [client.status() for client in self._clients.values()]


__all__ = [
    "FeedRegistry",
    "FeedSpec",
    "client_config_for",
    "default_specs",
    "election_params",
]
