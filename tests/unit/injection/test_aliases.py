from keel.injection.aliases import AliasResolver, ExactAliasResolver, SubstringAliasResolver
from keel.injection.config import ContainerSettings
from keel.injection.container import Container


class PaymentGateway:
    pass


class StripeGateway:
    pass


class Checkout:
    def __init__(self, gateway: PaymentGateway):
        self.gateway = gateway


def test_substring_resolver_matches_both_directions():
    resolver = SubstringAliasResolver()
    assert resolver.find("UserRepository", ["UserRepositoryImpl"]) == "UserRepositoryImpl"
    assert resolver.find("UserRepositoryImpl", ["UserRepository"]) == "UserRepository"
    assert resolver.find("UserRepository", ["OrderRepository"]) is None


def test_substring_resolver_uses_first_match_in_order():
    resolver = SubstringAliasResolver()
    candidates = ["UserRepositoryCache", "UserRepositoryImpl"]
    assert resolver.find("UserRepository", candidates) == "UserRepositoryCache"


def test_substring_resolver_ignores_empty_tokens():
    assert SubstringAliasResolver().find("Anything", [""]) is None


def test_exact_resolver_only_uses_declared_aliases():
    resolver = ExactAliasResolver({"PaymentGateway": "StripeGateway"})
    assert resolver.find("PaymentGateway", ["StripeGateway"]) == "StripeGateway"
    assert resolver.find("PaymentGateway", ["OtherGateway"]) is None
    assert resolver.find("Gateway", ["StripeGateway"]) is None


def test_resolvers_satisfy_protocol():
    assert isinstance(SubstringAliasResolver(), AliasResolver)
    assert isinstance(ExactAliasResolver({}), AliasResolver)


def test_container_uses_custom_resolver():
    container = Container(
        alias_resolver=ExactAliasResolver({"PaymentGateway": "StripeGateway"})
    )
    container.register_provider(StripeGateway)
    container.register_provider(Checkout)
    assert container.resolve(Checkout).gateway is container.resolve(StripeGateway)


def test_default_resolver_misses_unrelated_names(container):
    container.register_provider(StripeGateway)
    container.register_provider(Checkout)
    assert container.resolve(Checkout).gateway is None


def test_disabled_fallback_ignores_custom_resolver():
    container = Container(
        ContainerSettings(alias_fallback=False),
        alias_resolver=ExactAliasResolver({"PaymentGateway": "StripeGateway"}),
    )
    container.register_provider(StripeGateway)
    container.register_provider(Checkout)
    assert container.resolve(Checkout).gateway is None


def test_substring_resolver_returns_every_match_in_order():
    resolver = SubstringAliasResolver()
    candidates = ["UserRepositoryCache", "OrderRepository", "UserRepositoryImpl"]
    assert resolver.matches("UserRepository", candidates) == [
        "UserRepositoryCache",
        "UserRepositoryImpl",
    ]
    assert resolver.matches("UserRepository", ["OrderRepository"]) == []


def test_exact_resolver_matches_at_most_one_token():
    resolver = ExactAliasResolver({"PaymentGateway": "StripeGateway"})
    assert resolver.matches("PaymentGateway", ["StripeGateway", "PaymentGatewayMock"]) == [
        "StripeGateway"
    ]
