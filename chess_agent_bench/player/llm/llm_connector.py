from typing import Optional
from loguru import logger

import litellm

from chess_agent_bench.prompts import get_system_prompt
from chess_agent_bench.types import AgentContext, Provider

# Cross-provider robustness: silently ignore unsupported params when switching between
# providers (OpenAI, Anthropic, Gemini, Ollama) rather than erroring.
litellm.drop_params = True
litellm.set_verbose = False

FALLBACK_MODEL = "openai/gpt-4o-mini"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"

# Provider names as users write them, mapped to LiteLLM's routing prefixes
PROVIDER_PREFIXES: dict[Provider, str] = {
    "openai": "openai",
    "anthropic": "anthropic",
    "google": "gemini",
    "ollama": "ollama",
}


def resolve_litellm_model(context: AgentContext) -> str:
    """Translate provider/model from the context into a LiteLLM model string.

    Routed contexts go through OpenRouter as 'openrouter/<provider>/<model>'.
    Unknown providers fall back to gpt-4o-mini.
    """
    if context.is_routed:
        return f"openrouter/{context.provider}/{context.model}"

    prefix = PROVIDER_PREFIXES.get(context.provider)
    if prefix is None:
        logger.warning(
            f"Unknown provider '{context.provider}', falling back to {FALLBACK_MODEL}"
        )
        return FALLBACK_MODEL
    return f"{prefix}/{context.model}"


def _ollama_api_base(url: str | None) -> str:
    # LiteLLM appends /api itself
    base = (url or DEFAULT_OLLAMA_BASE_URL).rstrip("/")
    if base.endswith("/api"):
        base = base[: -len("/api")]
    return base


class LLMConnector:
    """Wrapper around LiteLLM for testing isolation and API stability.

    Provider, model, credential and mode all arrive with each call in an
    AgentContext; the connector itself only holds sampling and transport
    settings.
    """

    def __init__(
        self,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        timeout: float = 60.0,
        max_retries: int = 0,
    ):
        """Initialize LLM connector.

        Args:
            temperature: Sampling temperature (0.0 = deterministic, 1.0 = creative).
            max_tokens: Maximum tokens in response.
            timeout: Request timeout in seconds.
            max_retries: Retry attempts for transient errors inside LiteLLM.
        """
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_retries = max_retries

    def generate(self, prompt: str, context: AgentContext, **kwargs) -> str:
        """Send prompt with the mode's system instruction and return the reply text.

        Args:
            prompt: User message to send.
            context: Provider, model, credential, language and mode tag.
            **kwargs: Additional params passed to litellm.completion.

        Returns:
            Text of the first completion choice ('' if the provider returned none).

        Raises:
            TimeoutError: Request exceeded timeout.
            ConnectionError: API call failed.
        """
        model = resolve_litellm_model(context)
        messages = [
            {"role": "system", "content": get_system_prompt(context)},
            {"role": "user", "content": prompt},
        ]
        logger.debug(f"Querying {model} with the messages: {messages}")

        completion_kwargs = {
            "messages": messages,
            "model": model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            **kwargs,
        }
        if context.api_key:
            completion_kwargs["api_key"] = context.api_key
        if context.provider == "ollama" and not context.is_routed:
            completion_kwargs["api_base"] = _ollama_api_base(context.ollama_base_url)

        try:
            response = litellm.completion(**completion_kwargs)
            content = response.choices[0].message.content or ""
            logger.debug(f"{model} response: {content!r}")
            return content

        except litellm.Timeout as e:
            logger.warning(f"Request timed out after {self.timeout}s: {e}")
            raise TimeoutError(f"Request timed out after {self.timeout}s") from e

        except (
            litellm.RateLimitError,
            litellm.ServiceUnavailableError,
            litellm.InternalServerError,
        ) as e:
            logger.warning(f"Transient API error (may retry at higher level): {e}")
            raise ConnectionError(f"LLM API temporarily unavailable: {e}") from e

        except (
            litellm.AuthenticationError,
            litellm.BadRequestError,
            litellm.ContentPolicyViolationError,
        ) as e:
            logger.error(f"Permanent API error: {e}")
            raise ConnectionError(f"LLM API request invalid: {e}") from e

        except (litellm.APIError, litellm.APIConnectionError) as e:
            logger.error(f"API error occurred: {e}")
            raise ConnectionError(f"LLM API call failed: {e}") from e

        except Exception as e:
            logger.error(f"Unexpected error during LLM API call: {e}")
            raise ConnectionError(f"Unexpected error: {e}") from e
