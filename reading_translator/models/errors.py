from typing import Optional


class PipelineError(Exception):
    """Terminal failure of one pipeline invocation."""

    kind = "pipeline-error"

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind}


class LanguageMismatch(PipelineError):
    """The text does not contain the script of the language the caller forced."""

    kind = "language-mismatch"

    def __init__(self, expected: str, detected: str) -> None:
        super().__init__(
            f"Text does not look like '{expected}' (detected '{detected}')"
        )
        self.expected = expected
        self.detected = detected


class ProviderError(PipelineError):
    """Non-retryable provider failure (auth, bad request, missing client)."""

    kind = "provider-error"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderOverloaded(ProviderError):
    """Transient overload / rate limit signal, retried with backoff."""

    kind = "provider-overloaded"


class ProviderExhausted(PipelineError):
    """Provider stayed overloaded for the whole retry budget."""

    kind = "provider-exhausted"

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Provider still overloaded after {attempts} attempt(s)")
        self.attempts = attempts


class MalformedResponse(PipelineError):
    """No extraction strategy recovered the required fields."""

    kind = "malformed-response"

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw
