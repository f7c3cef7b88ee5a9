"""Factories for constructing components from configuration."""

from __future__ import annotations

from .browser.playwright_session import PlaywrightBrowserSession
from .config import SessionServiceConfig
from .session.dispatcher import ActionDispatcher
from .session.registry import BrowserFactory, SessionRegistry


def build_browser_factory(config: SessionServiceConfig) -> BrowserFactory:
    return lambda: PlaywrightBrowserSession(config.browser)


def build_registry(config: SessionServiceConfig) -> SessionRegistry:
    return SessionRegistry(build_browser_factory(config), limits=config.limits)


def build_dispatcher(config: SessionServiceConfig, registry: SessionRegistry) -> ActionDispatcher:
    return ActionDispatcher(registry, timeouts=config.timeouts, limits=config.limits)
