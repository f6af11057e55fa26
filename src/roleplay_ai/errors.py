"""Package specific exception hierarchy."""


class RoleplayAIError(Exception):
    """Base exception for roleplay_ai package."""


class ConfigurationError(RoleplayAIError):
    """Raised when credentials or node options are unusable."""


class UnsupportedProviderError(ConfigurationError):
    """Raised when a provider tag has no strategy."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Provider '{provider}' is not available.")
        self.provider = provider


class InputError(RoleplayAIError):
    """Raised when per-item input cannot be interpreted."""


class ProviderError(RoleplayAIError):
    """Represents provider-specific HTTP or API errors."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        suffix = f" (status {status_code})" if status_code is not None else ""
        super().__init__(f"{provider}: {message}{suffix}")
        self.provider = provider
        self.status_code = status_code


class ResponseShapeError(RoleplayAIError):
    """Raised when a decoded response lacks the expected structure."""

    def __init__(self, provider: str, message: str, path: str | None = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.path = path


class ModelsNotFoundError(ResponseShapeError):
    """Raised when no model array can be located in a model-list response."""

    def __init__(self, provider: str) -> None:
        super().__init__(provider, "Could not find any models in the API response")


class NoValidModelsError(ResponseShapeError):
    """Raised when a model array was found but no entry carries an identifier."""

    def __init__(self, provider: str, id_key: str) -> None:
        super().__init__(
            provider, f"No valid models found in API response (no entry has '{id_key}')"
        )
