"""LiteLLM chat client with retry and API key validation.

All chat-completion calls route through this module. LiteLLM's built-in
retry is used (num_retries=3, exponential backoff).
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import litellm

litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


_PROVIDER_ENV: dict[str, str | None] = {
    "groq": "GROQ_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the API key env var for *model*'s provider is set.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from the environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")
    if env_var is None:
        return
    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 1024,
    temperature: float = 0.7,
    num_retries: int = 3,
) -> str:
    """Call litellm.completion() and return the content of the first choice.

    Raises:
        litellm.exceptions.APIError: On persistent API failure after retries.
    """
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
    )
    return response.choices[0].message.content or ""


def stream(
    model: str,
    messages: list[dict],
    max_tokens: int = 1024,
    temperature: float = 0.7,
    num_retries: int = 3,
) -> Iterator[str]:
    """Yield content deltas from a streaming completion.

    Empty deltas (role headers, finish markers) are skipped.
    """
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
        stream=True,
    )
    for part in response:
        if not part.choices:
            continue
        delta = part.choices[0].delta.content
        if delta:
            yield delta


# Errors the CLI reports instead of propagating a traceback.
LLM_ERRORS: tuple[type[Exception], ...] = (
    litellm.exceptions.APIError,
    litellm.exceptions.APIConnectionError,
    litellm.exceptions.AuthenticationError,
    litellm.exceptions.BadRequestError,
    litellm.exceptions.InternalServerError,
    litellm.exceptions.NotFoundError,
    litellm.exceptions.PermissionDeniedError,
    litellm.exceptions.RateLimitError,
    litellm.exceptions.ServiceUnavailableError,
    litellm.exceptions.Timeout,
    litellm.exceptions.UnprocessableEntityError,
)
