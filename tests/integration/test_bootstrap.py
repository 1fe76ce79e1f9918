import asyncio
import logging
import os
import signal
import sys
from typing import Annotated

import pytest

from keel.bootstrap import LOGGER_TOKEN, Application, ApplicationSettings
from keel.injection.container import Container
from keel.injection.errors import ContainerDisposedError, LifecycleHookError
from keel.injection.metadata import Inject
from keel.injection.modules import DynamicModule, module
from keel.injection.providers import ValueProvider

CONFIG = {"api_url": "https://example.test", "debug": True}


class UserRepository:
    def __init__(self, config: Annotated[dict, Inject("CONFIG")]):
        self.config = config


class UserService:
    def __init__(self, repository: UserRepository, logger: logging.Logger):
        self.repository = repository
        self.logger = logger


class UserController:
    def __init__(self, logger: logging.Logger, users: UserService):
        self.logger = logger
        self.users = users


@module(
    providers=[{"provide": "CONFIG", "use_value": CONFIG}, UserRepository, UserService],
    controllers=[UserController],
)
class UsersModule:
    pass


class DatabaseModule:
    @classmethod
    def for_root(cls, url: str) -> DynamicModule:
        async def connect():
            await asyncio.sleep(0)
            return {"connected": True, "url": url}

        return DynamicModule(
            module=cls,
            providers=[{"provide": "DB", "use_factory": connect}],
            exports=["DB"],
        )


class HealthService:
    def __init__(self, db: Annotated[dict, Inject("DB")]):
        self.db = db
        self.events = []

    async def on_module_init(self):
        self.events.append(("init", self.db["connected"]))

    async def on_module_destroy(self):
        self.events.append(("destroy", self.db["connected"]))


class HealthController:
    def __init__(self, health: HealthService):
        self.health = health


@module(
    imports=[UsersModule, DatabaseModule.for_root("sqlite://")],
    providers=[HealthService],
    controllers=[HealthController],
)
class AppModule:
    pass


class BackgroundWorker:
    def __init__(self):
        self.started = False

    def on_module_init(self):
        self.started = True


@module(providers=[BackgroundWorker])
class WorkerModule:
    pass


class SlowShutdown:
    async def on_module_destroy(self):
        await asyncio.sleep(1)


@module(controllers=[SlowShutdown])
class SlowModule:
    pass


class BrokenInit:
    def on_module_init(self):
        raise RuntimeError("no connection")


@module(controllers=[BrokenInit])
class BrokenModule:
    pass


class CustomLogger:
    pass


class Reporter:
    def __init__(self, logger: Annotated[object, Inject("Logger")]):
        self.logger = logger


@module(providers=[ValueProvider(provide="Logger", use_value=CustomLogger())], controllers=[Reporter])
class CustomLoggerModule:
    pass


@pytest.fixture
def settings():
    return ApplicationSettings(name="test-app")


@pytest.mark.asyncio
async def test_logger_is_injected_into_controller(settings):
    app = await Application(UsersModule, settings=settings).init()

    controller = app.get(UserController)

    assert isinstance(controller.logger, logging.Logger)
    assert controller.logger is app.get(LOGGER_TOKEN)
    assert controller.logger.name == "keel.app.test-app"
    assert controller.users.logger is controller.logger
    await app.close()


@pytest.mark.asyncio
async def test_value_provider_identity_through_module(settings):
    app = await Application(UsersModule, settings=settings).init()

    assert app.get("CONFIG") is CONFIG
    assert app.get(UserRepository).config is CONFIG
    await app.close()


@pytest.mark.asyncio
async def test_async_factory_is_settled_before_controllers(settings):
    app = await Application(AppModule, settings=settings).init()

    assert app.get("DB") == {"connected": True, "url": "sqlite://"}
    health = app.get(HealthController).health
    assert health.db is app.get("DB")
    assert health.events == [("init", True)]
    assert app.controllers == [UserController, HealthController]
    await app.close()


@pytest.mark.asyncio
async def test_module_can_override_default_logger(settings):
    app = await Application(CustomLoggerModule, settings=settings).init()
    assert isinstance(app.get(Reporter).logger, CustomLogger)
    await app.close()


@pytest.mark.asyncio
async def test_init_is_idempotent(settings):
    app = Application(AppModule, settings=settings)
    await app.init()
    await app.init()
    assert app.get(HealthController).health.events == [("init", True)]
    await app.close()


@pytest.mark.asyncio
async def test_lazy_singletons_are_not_built_by_default(settings):
    app = await Application(WorkerModule, settings=settings).init()
    assert app.container.get_registration(BackgroundWorker) is not None
    worker = app.get(BackgroundWorker)
    assert worker.started is False
    await app.close()


@pytest.mark.asyncio
async def test_eager_singletons_are_built_and_hooked():
    app = await Application(
        WorkerModule, settings=ApplicationSettings(eager_singletons=True)
    ).init()
    assert app.get(BackgroundWorker).started is True
    await app.close()


@pytest.mark.asyncio
async def test_failing_init_hook_propagates(settings):
    app = Application(BrokenModule, settings=settings)
    with pytest.raises(LifecycleHookError) as exc:
        await app.init()
    assert exc.value.token == "BrokenInit"
    assert not app.is_initialized
    await app.close()


@pytest.mark.asyncio
async def test_close_runs_destroy_hooks_callbacks_and_disposes(settings, caplog):
    app = await Application(AppModule, settings=settings).init()
    health = app.get(HealthController).health
    calls = []

    async def close_pool():
        calls.append("pool")

    def broken():
        raise RuntimeError("flush failed")

    app.on_shutdown(close_pool)
    app.on_shutdown(broken)
    app.on_shutdown(lambda: calls.append("sync"))

    with caplog.at_level(logging.ERROR, logger="keel"):
        await app.close()
        await app.close()

    assert health.events == [("init", True), ("destroy", True)]
    assert sorted(calls) == ["pool", "sync"]
    assert "flush failed" in caplog.text
    assert app.is_closed
    assert app.container.is_disposed
    with pytest.raises(ContainerDisposedError):
        app.get("DB")


@pytest.mark.asyncio
async def test_close_is_bounded_by_graceful_timeout(caplog):
    app = await Application(
        SlowModule, settings=ApplicationSettings(graceful_timeout=0.05)
    ).init()

    with caplog.at_level(logging.ERROR, logger="keel"):
        await asyncio.wait_for(app.close(), 1)

    assert app.container.is_disposed
    assert "Graceful shutdown exceeded" in caplog.text


@pytest.mark.asyncio
async def test_async_context_manager(settings):
    container = Container()
    async with Application.create(AppModule, container=container, settings=settings) as app:
        assert app.is_initialized
        assert app.container is container
    assert container.is_disposed


@pytest.mark.asyncio
async def test_request_shutdown(settings):
    app = await Application(UsersModule, settings=settings).init()
    app.request_shutdown()
    app.request_shutdown()
    await asyncio.wait_for(app.wait_for_shutdown(), 1)
    assert app.is_closed


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers are POSIX only")
async def test_signal_triggers_graceful_shutdown(settings):
    app = await Application(UsersModule, settings=settings).init()
    app.install_signal_handlers()

    os.kill(os.getpid(), signal.SIGTERM)
    await asyncio.wait_for(app.wait_for_shutdown(), 1)

    assert app.is_closed
    assert app.container.is_disposed


def test_application_settings_from_environment(monkeypatch):
    monkeypatch.setenv("KEEL_APP_NAME", "orders")
    monkeypatch.setenv("KEEL_APP_GRACEFUL_TIMEOUT", "3")
    monkeypatch.setenv("KEEL_APP_SHUTDOWN_SIGNALS", '["sigterm"]')
    settings = ApplicationSettings.load()
    assert settings.name == "orders"
    assert settings.graceful_timeout == 3.0
    assert settings.shutdown_signals == ["SIGTERM"]


def test_application_settings_reject_unknown_signal():
    with pytest.raises(ValueError):
        ApplicationSettings(shutdown_signals=["SIGNOPE"])
