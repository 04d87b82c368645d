from concurrent.futures import ThreadPoolExecutor

from dependency_injector import containers, providers

from diamondapi.config import Settings
from diamondapi.providers.player.moogold import PlayerIdVerifier
from diamondapi.providers.sheets.google_sheets import GoogleSheetsMirror, SheetSyncAdapter


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class IntegrationModule(containers.DeclarativeContainer):
    """External collaborators shared across requests."""

    config = providers.DependenciesContainer()

    sheet_sync_executor = providers.Singleton(
        ThreadPoolExecutor,
        max_workers=config.config.provided.SHEET_SYNC_MAX_WORKERS,
        thread_name_prefix="sheet-sync",
    )
    sheets_mirror = providers.Singleton(GoogleSheetsMirror, settings=config.config)
    sheet_sync = providers.Singleton(
        SheetSyncAdapter, mirror=sheets_mirror, executor=sheet_sync_executor
    )
    player_verifier = providers.Singleton(PlayerIdVerifier, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "diamondapi.deps",
            "diamondapi.routers.player_router",
        ],
    )

    config = providers.Container(ConfigModule)
    integrations = providers.Container(IntegrationModule, config=config)
