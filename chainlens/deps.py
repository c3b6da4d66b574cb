from functools import lru_cache
from typing import Optional

import requests

from chainlens.core.config import ProviderConfig, Settings, build_provider_config, settings
from chainlens.services.chat import ChatPipeline
from chainlens.services.dispatcher import Dispatcher
from chainlens.services.fetcher import DataFetcher
from chainlens.services.nodit_client import NoditClient


def build_dispatcher(provider: ProviderConfig, session: Optional[requests.Session] = None) -> Dispatcher:
    return Dispatcher(DataFetcher(NoditClient(provider, session=session), provider))


def get_settings() -> Settings:
    return settings


@lru_cache(maxsize=1)
def get_provider_config() -> ProviderConfig:
    return build_provider_config(settings)


@lru_cache(maxsize=1)
def get_dispatcher() -> Dispatcher:
    return build_dispatcher(get_provider_config())


@lru_cache(maxsize=1)
def get_chat_pipeline() -> ChatPipeline:
    return ChatPipeline(settings, get_provider_config(), get_dispatcher())
