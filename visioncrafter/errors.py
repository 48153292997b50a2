class GenerationError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        return self.message


class InputError(GenerationError):
    status_code = 400


class ConfigurationError(GenerationError):
    status_code = 500


class ProviderError(GenerationError):
    """A configured provider failed. The upstream detail is kept for logs only."""

    status_code = 500

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(detail)
        self.provider = provider

    @property
    def public_message(self) -> str:
        return "Image generation failed. Please try again."


class ProviderUnavailable(Exception):
    def __init__(self, provider: str) -> None:
        super().__init__(f"{provider} provider has no credential configured")
        self.provider = provider
