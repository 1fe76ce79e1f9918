# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: keel framework
"""
Error classes for the keel dependency injection system.

This module contains specialized error classes for the container and the
module graph loader, providing detailed error messages and context for
resolution failures.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Final

from keel.errors.base import ErrorCategory, ErrorCode, ErrorSeverity, KeelError

# Define error categories and codes
INJECTION: Final = ErrorCategory.get_or_create("INJECTION")
INJECTION_ERROR: Final = ErrorCode.get_or_create("INJECTION_ERROR", INJECTION)
INJECTION_MISSING_REGISTRATION: Final = ErrorCode.get_or_create(
    "INJECTION_MISSING_REGISTRATION", INJECTION
)
INJECTION_CIRCULAR_DEPENDENCY: Final = ErrorCode.get_or_create(
    "INJECTION_CIRCULAR_DEPENDENCY", INJECTION
)
INJECTION_PROVIDER_DEFINITION: Final = ErrorCode.get_or_create(
    "INJECTION_PROVIDER_DEFINITION", INJECTION
)
INJECTION_PROVIDER_CREATION: Final = ErrorCode.get_or_create(
    "INJECTION_PROVIDER_CREATION", INJECTION
)
INJECTION_UNRESOLVED_DEPENDENCY: Final = ErrorCode.get_or_create(
    "INJECTION_UNRESOLVED_DEPENDENCY", INJECTION
)
INJECTION_ASYNC_PROVIDER: Final = ErrorCode.get_or_create(
    "INJECTION_ASYNC_PROVIDER", INJECTION
)
INJECTION_LIFECYCLE_HOOK: Final = ErrorCode.get_or_create(
    "INJECTION_LIFECYCLE_HOOK", INJECTION
)
INJECTION_CONTAINER_DISPOSED: Final = ErrorCode.get_or_create(
    "INJECTION_CONTAINER_DISPOSED", INJECTION
)

MODULE: Final = ErrorCategory.get_or_create("MODULE", parent=INJECTION)
MODULE_MISSING_DESCRIPTOR: Final = ErrorCode.get_or_create(
    "MODULE_MISSING_DESCRIPTOR", MODULE
)
MODULE_DEFINITION: Final = ErrorCode.get_or_create("MODULE_DEFINITION", MODULE)


class InjectionError(KeelError):
    """Base class for all DI-related errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = INJECTION_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            code=code,
            severity=severity,
            context=context,
            **kwargs,
        )


class MissingRegistrationError(InjectionError):
    """Raised when ``resolve`` is called for a token nobody registered.

    Captures the token, the dependency chain that led to the lookup and the
    tokens that were registered at the time.
    """

    def __init__(
        self,
        token: str,
        dependency_chain: Sequence[str] | None = None,
        available_tokens: Sequence[str] | None = None,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.token = token
        self.dependency_chain = list(dependency_chain or [])
        if message is None:
            message = f"No registration found for token: {token}"
            if self.dependency_chain:
                path = " -> ".join([*self.dependency_chain, token])
                message = f"{message} (while resolving {path})"
        ctx = kwargs.copy()
        ctx["token"] = token
        ctx["dependency_chain"] = self.dependency_chain
        if available_tokens is not None:
            ctx["available_tokens"] = list(available_tokens)
        super().__init__(message, code=INJECTION_MISSING_REGISTRATION, **ctx)


class CircularDependencyError(InjectionError):
    """Error raised when a token is requested while it is still being constructed."""

    def __init__(self, dependency_chain: Sequence[str], **kwargs: Any) -> None:
        if not dependency_chain:
            raise ValueError("dependency_chain is required for CircularDependencyError")
        self.dependency_chain = list(dependency_chain)

        # Find where the cycle starts
        circle_start_index = 0
        for i, token in enumerate(self.dependency_chain[:-1]):
            if token == self.dependency_chain[-1]:
                circle_start_index = i
                break
        circle = self.dependency_chain[circle_start_index:]

        super().__init__(
            f"Circular dependency detected: {' -> '.join(circle)}",
            code=INJECTION_CIRCULAR_DEPENDENCY,
            dependency_chain=self.dependency_chain,
            circular_dependency=circle,
            **kwargs,
        )


class ProviderDefinitionError(InjectionError):
    """Raised when a provider descriptor has an unsupported shape."""

    def __init__(self, message: str, provider: Any = None, **kwargs: Any) -> None:
        ctx = kwargs.copy()
        if provider is not None:
            ctx["provider"] = repr(provider)
        super().__init__(message, code=INJECTION_PROVIDER_DEFINITION, **ctx)


class ProviderCreationError(InjectionError):
    """Raised when a provider factory or constructor raises.

    The original exception is kept as ``__cause__``.
    """

    def __init__(
        self,
        token: str,
        original_error: BaseException,
        dependency_chain: Sequence[str] | None = None,
        **kwargs: Any,
    ) -> None:
        self.token = token
        super().__init__(
            f"Failed to create provider for token: {token} ({original_error})",
            code=INJECTION_PROVIDER_CREATION,
            token=token,
            error_type=type(original_error).__name__,
            original_error=str(original_error),
            dependency_chain=list(dependency_chain or []),
            **kwargs,
        )
        self.__cause__ = original_error


class UnresolvedDependencyError(InjectionError):
    """Raised in strict mode when a reflected constructor parameter has no provider."""

    def __init__(
        self,
        target: type,
        parameter: str,
        type_token: str,
        **kwargs: Any,
    ) -> None:
        self.target = target
        self.parameter = parameter
        self.type_token = type_token
        super().__init__(
            f"Could not resolve dependency {type_token} for parameter "
            f"'{parameter}' of {target.__name__}",
            code=INJECTION_UNRESOLVED_DEPENDENCY,
            target=target.__name__,
            parameter=parameter,
            type_token=type_token,
            **kwargs,
        )


class AsyncProviderError(InjectionError):
    """Raised when an async factory provider fails or times out during settlement."""

    def __init__(
        self,
        token: str,
        original_error: BaseException | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> None:
        self.token = token
        if timeout is not None and original_error is None:
            message = f"Async provider {token} did not settle within {timeout}s"
        else:
            message = f"Async provider {token} failed: {original_error}"
        ctx = kwargs.copy()
        ctx["token"] = token
        if timeout is not None:
            ctx["timeout"] = timeout
        if original_error is not None:
            ctx["error_type"] = type(original_error).__name__
        super().__init__(message, code=INJECTION_ASYNC_PROVIDER, **ctx)
        if original_error is not None:
            self.__cause__ = original_error


class LifecycleHookError(InjectionError):
    """Raised when an ``on_module_init``/``on_module_destroy`` hook fails or times out."""

    def __init__(
        self,
        token: str,
        hook: str,
        original_error: BaseException | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> None:
        self.token = token
        self.hook = hook
        if timeout is not None and original_error is None:
            message = f"{hook} of {token} did not complete within {timeout}s"
        else:
            message = f"{hook} of {token} failed: {original_error}"
        ctx = kwargs.copy()
        ctx["token"] = token
        ctx["hook"] = hook
        if timeout is not None:
            ctx["timeout"] = timeout
        super().__init__(message, code=INJECTION_LIFECYCLE_HOOK, **ctx)
        if original_error is not None:
            self.__cause__ = original_error


class ContainerDisposedError(InjectionError):
    """Error raised when trying to use a disposed container."""

    def __init__(self, operation: str, **kwargs: Any) -> None:
        self.operation = operation
        super().__init__(
            f"Container has been disposed and cannot perform: {operation}",
            code=INJECTION_CONTAINER_DISPOSED,
            operation=operation,
            **kwargs,
        )


class MissingModuleDescriptorError(InjectionError):
    """Raised when a static module class carries no ``@module`` metadata."""

    def __init__(self, module: type, **kwargs: Any) -> None:
        self.module = module
        name = getattr(module, "__name__", repr(module))
        super().__init__(
            f"Module {name} is missing @module metadata or a DynamicModule descriptor",
            code=MODULE_MISSING_DESCRIPTOR,
            module=name,
            **kwargs,
        )


class ModuleDefinitionError(InjectionError):
    """Raised when something that is not a module is passed to the loader."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, code=MODULE_DEFINITION, **kwargs)
