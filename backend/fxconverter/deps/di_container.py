"""
Dependency injection container using dependency-injector.
Wires the HTTP client, rate tiers, repositories, services, and controllers.
"""

from typing import Optional

from dependency_injector import containers, providers

from fxconverter.core.config import Settings, settings
from fxconverter.core.integrations.http.http_client import HttpClient
from fxconverter.core.integrations.observability import Diagnostics
from fxconverter.controllers.conversion_controller import ConversionController
from fxconverter.controllers.health_controller import HealthController
from fxconverter.controllers.history_controller import HistoryController
from fxconverter.repositories.cache_repository import FileCacheRepository, InMemoryCacheRepository
from fxconverter.repositories.history_repository import FileHistoryRepository, InMemoryHistoryRepository
from fxconverter.services.conversion_service import ConversionService
from fxconverter.services.health_service import HealthService
from fxconverter.services.history_service import HistoryService
from fxconverter.sources.cached import CachedSource
from fxconverter.sources.static import StaticFallbackSource
from fxconverter.sources.upstream import UpstreamSource


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    # Configuration
    config = providers.Configuration()

    diagnostics = providers.Singleton(Diagnostics)

    http_client = providers.Singleton(
        HttpClient,
        base_url=config.upstream_base_url,
        timeout=config.upstream_timeout,
        headers=providers.Dict({"User-Agent": config.upstream_user_agent}),
    )

    # Rate tiers
    upstream_source = providers.Singleton(
        UpstreamSource,
        http_client=http_client,
        timeout=config.upstream_timeout,
        timeseries_timeout=config.upstream_timeseries_timeout,
        diagnostics=diagnostics,
    )

    static_source = providers.Singleton(StaticFallbackSource)

    cache_repository = providers.Selector(
        config.cache_backend,
        memory=providers.Singleton(InMemoryCacheRepository),
        file=providers.Singleton(FileCacheRepository, directory=config.cache_dir),
    )

    cached_source = providers.Singleton(
        CachedSource,
        inner=upstream_source,
        repository=cache_repository,
        symbols_ttl=config.symbols_cache_ttl,
        rate_ttl=config.rate_cache_ttl,
        time_series_ttl=config.timeseries_cache_ttl,
    )

    # Services
    conversion_service = providers.Singleton(
        ConversionService,
        primary=cached_source,
        fallback=static_source,
        diagnostics=diagnostics,
    )

    history_repository = providers.Selector(
        config.history_backend,
        memory=providers.Singleton(InMemoryHistoryRepository),
        file=providers.Singleton(FileHistoryRepository, path=config.history_file),
    )

    history_service = providers.Singleton(
        HistoryService,
        repository=history_repository,
        max_records=config.history_max_records,
    )

    health_service = providers.Singleton(
        HealthService,
        cache_repository=cache_repository,
        history_repository=history_repository,
        diagnostics=diagnostics,
    )

    # Controllers
    conversion_controller = providers.Factory(
        ConversionController,
        conversion_service=conversion_service,
    )

    history_controller = providers.Factory(
        HistoryController,
        history_service=history_service,
    )

    health_controller = providers.Factory(
        HealthController,
        health_service=health_service,
    )


def build_container(app_settings: Optional[Settings] = None) -> Container:
    """Create a container configured from application settings."""
    app_settings = app_settings or settings
    container = Container()
    container.config.from_dict({
        "upstream_base_url": app_settings.UPSTREAM_BASE_URL,
        "upstream_timeout": app_settings.UPSTREAM_TIMEOUT,
        "upstream_timeseries_timeout": app_settings.UPSTREAM_TIMESERIES_TIMEOUT,
        "upstream_user_agent": app_settings.UPSTREAM_USER_AGENT,
        "cache_backend": app_settings.CACHE_BACKEND,
        "cache_dir": app_settings.CACHE_DIR,
        "symbols_cache_ttl": app_settings.SYMBOLS_CACHE_TTL,
        "rate_cache_ttl": app_settings.RATE_CACHE_TTL,
        "timeseries_cache_ttl": app_settings.TIMESERIES_CACHE_TTL,
        "history_backend": app_settings.HISTORY_BACKEND,
        "history_file": app_settings.HISTORY_FILE,
        "history_max_records": app_settings.HISTORY_MAX_RECORDS,
    })
    return container


# Global container instance
_container: Optional[Container] = None


def get_container() -> Container:
    """Get the global dependency injection container."""
    global _container
    if _container is None:
        _container = build_container()
    return _container


def set_container(container: Optional[Container]) -> None:
    """Replace the global container; None resets it to be rebuilt lazily."""
    global _container
    _container = container
