import pytest

from keel.injection.config import ProviderScope
from keel.injection.errors import ProviderDefinitionError
from keel.injection.providers import (
    ClassProvider,
    FactoryProvider,
    ValueProvider,
    parse_provider,
)


class FakeLogger:
    pass


class FakeController:
    def __init__(self, logger: FakeLogger):
        self.logger = logger


class FakeClient:
    def __init__(self, url, timeout):
        self.url = url
        self.timeout = timeout


def test_parse_bare_class():
    provider = parse_provider(FakeLogger)
    assert isinstance(provider, ClassProvider)
    assert provider.provide == "FakeLogger"
    assert provider.use_class is FakeLogger
    assert provider.inject is None
    assert provider.scope is ProviderScope.SINGLETON


def test_parse_dict_shapes():
    value = parse_provider({"provide": "CONFIG", "use_value": {"debug": True}})
    factory = parse_provider({"provide": "NOW", "use_factory": lambda: 1})
    cls = parse_provider({"provide": FakeLogger, "use_class": FakeLogger, "inject": []})

    assert isinstance(value, ValueProvider)
    assert isinstance(factory, FactoryProvider)
    assert factory.inject == []
    assert isinstance(cls, ClassProvider)
    assert cls.provide == "FakeLogger"


def test_parse_returns_models_unchanged():
    provider = ValueProvider(provide="X", use_value=1)
    assert parse_provider(provider) is provider


def test_inject_tokens_accept_classes():
    provider = FactoryProvider(provide="x", use_factory=lambda logger: logger, inject=[FakeLogger])
    assert provider.inject == ["FakeLogger"]


def test_value_provider_is_always_singleton():
    assert ValueProvider(provide="X", use_value=None).scope is ProviderScope.SINGLETON


@pytest.mark.parametrize(
    "provider",
    [
        {"provide": "X"},
        {"provide": "X", "use_value": 1, "scope": "transient"},
        {"provide": "X", "use_class": "not a class"},
        {"provide": "X", "use_factory": lambda: 1, "scope": "request"},
        {"use_value": 1},
        42,
        "FakeLogger",
    ],
)
def test_invalid_providers_are_rejected(provider):
    with pytest.raises(ProviderDefinitionError):
        parse_provider(provider)


def test_value_provider_identity(container):
    config = {"api_url": "https://example.test"}
    container.register_provider({"provide": "CONFIG", "use_value": config})
    assert container.resolve("CONFIG") is config
    assert container.resolve("CONFIG") is container.resolve("CONFIG")


def test_register_provider_returns_token(container):
    assert container.register_provider(FakeLogger) == "FakeLogger"
    assert container.register_provider({"provide": "A", "use_value": 1}) == "A"


def test_bare_class_is_reflected_singleton(container):
    container.register_provider(FakeLogger)
    container.register_provider(FakeController)

    controller = container.resolve("FakeController")

    assert controller is container.resolve(FakeController)
    assert controller.logger is container.resolve(FakeLogger)


def test_class_provider_with_inject_is_positional(container):
    container.register_provider({"provide": "URL", "use_value": "https://example.test"})
    container.register_provider({"provide": "TIMEOUT", "use_value": 5})
    container.register_provider(
        {"provide": "client", "use_class": FakeClient, "inject": ["URL", "TIMEOUT"]}
    )

    client = container.resolve("client")

    assert client.url == "https://example.test"
    assert client.timeout == 5


def test_class_provider_without_inject_uses_reflection(container):
    container.register_provider(FakeLogger)
    container.register_provider(ClassProvider(provide="controller", use_class=FakeController))
    assert container.resolve("controller").logger is container.resolve(FakeLogger)


def test_factory_provider_receives_injected_values(container):
    container.register_provider({"provide": "CONFIG", "use_value": {"name": "db"}})
    container.register_provider(
        {
            "provide": "NAME",
            "use_factory": lambda config: config["name"].upper(),
            "inject": ["CONFIG"],
        }
    )
    assert container.resolve("NAME") == "DB"


def test_factory_provider_defaults_to_singleton(container):
    container.register_provider({"provide": "obj", "use_factory": object})
    assert container.resolve("obj") is container.resolve("obj")


def test_factory_provider_transient_scope(container):
    container.register_provider({"provide": "obj", "use_factory": object, "scope": "transient"})
    assert container.resolve("obj") is not container.resolve("obj")
