from dependency_injector import containers, providers
from motor.motor_asyncio import AsyncIOMotorClient
from core.config.settings import settings
from ingest.sources.github.shared.client import GitHubClient


class AppContainer(containers.DeclarativeContainer):

    mongo_client = providers.Singleton(
        AsyncIOMotorClient,
        settings.MONGO_URL
    )

    github_client = providers.Singleton(
        GitHubClient,
        token=settings.GITHUB_TOKEN,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
