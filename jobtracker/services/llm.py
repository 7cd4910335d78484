"""
LLM factory and completion helper — the single place where we talk to a chat model.

Supports 4 providers:
- ollama: free, runs locally (requires Ollama installed)
- gemini: Google's API
- claude: Anthropic's API
- openai: OpenAI's API

Routes call complete(system, user) and get back plain text plus token usage,
without caring which provider is active. Calls are single-shot: no retries.
"""

import json
import logging
import re
from dataclasses import dataclass, field

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from jobtracker.config import settings
from jobtracker.errors import ExternalServiceError, MalformedExternalResponse

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "gemini": "gemini-2.0-flash",
    "claude": "claude-sonnet-4-20250514",
    "openai": "gpt-4o-mini",
}

# ```json ... ``` wrappers some models add around JSON answers
_FENCE_START = re.compile(r"^\s*```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_END = re.compile(r"\n?```\s*$")


@dataclass
class Completion:
    text: str
    usage: dict = field(default_factory=lambda: {"input_tokens": 0, "output_tokens": 0})


def model_name() -> str:
    provider = settings.LLM_PROVIDER.lower()
    if settings.LLM_MODEL:
        return settings.LLM_MODEL
    if provider == "ollama":
        return settings.OLLAMA_MODEL
    return DEFAULT_MODELS.get(provider, "")


def get_llm(max_tokens: int | None = None, temperature: float | None = None) -> BaseChatModel:
    """
    Create and return a LangChain chat model based on current settings.
    The returned object has an .invoke() method that accepts a string or messages.
    """
    provider = settings.LLM_PROVIDER.lower()
    max_tokens = max_tokens or settings.LLM_MAX_TOKENS
    temperature = settings.LLM_TEMPERATURE if temperature is None else temperature

    if provider == "ollama":
        from langchain_ollama import ChatOllama
        return ChatOllama(
            model=model_name(),
            base_url=settings.OLLAMA_BASE_URL,
            num_predict=max_tokens,
            temperature=temperature,
        )

    elif provider == "gemini":
        from langchain_google_genai import ChatGoogleGenerativeAI
        return ChatGoogleGenerativeAI(
            model=model_name(),
            google_api_key=settings.LLM_API_KEY,
            max_output_tokens=max_tokens,
            temperature=temperature,
        )

    elif provider == "claude":
        from langchain_anthropic import ChatAnthropic
        return ChatAnthropic(
            model=model_name(),
            anthropic_api_key=settings.LLM_API_KEY,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    elif provider == "openai":
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(
            model=model_name(),
            api_key=settings.LLM_API_KEY,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider}. Use ollama/gemini/claude/openai.")


def strip_code_fences(text: str) -> str:
    return _FENCE_END.sub("", _FENCE_START.sub("", text))


def complete(system_prompt: str, user_prompt: str, max_tokens: int | None = None,
             temperature: float | None = None) -> Completion:
    """
    Send one system+user exchange and return the reply text.

    Any provider failure (bad key, network, rate limit) is raised as
    ExternalServiceError; the caller decides what the user sees.
    """
    try:
        llm = get_llm(max_tokens=max_tokens, temperature=temperature)
        response = llm.invoke([SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)])
    except Exception as exc:
        logger.error("LLM call failed (%s): %s", settings.LLM_PROVIDER, exc)
        raise ExternalServiceError("AI generation failed. Check the LLM provider settings.") from exc

    content = response.content if hasattr(response, "content") else str(response)
    if isinstance(content, list):
        # Anthropic can return a list of content blocks
        content = "".join(
            block.get("text", "") if isinstance(block, dict) else str(block) for block in content
        )

    usage = {"input_tokens": 0, "output_tokens": 0}
    metadata = getattr(response, "usage_metadata", None)
    if metadata:
        usage["input_tokens"] = metadata.get("input_tokens", 0)
        usage["output_tokens"] = metadata.get("output_tokens", 0)

    return Completion(text=strip_code_fences(content), usage=usage)


def parse_json(text: str) -> dict:
    """
    Decode a JSON object from model output.

    Falls back to the outermost {...} span in case the model wrapped it in prose.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = json.loads(text[text.index("{"):text.rindex("}") + 1])
        except (ValueError, json.JSONDecodeError):
            logger.warning("Unparseable LLM response: %.200s", text)
            raise MalformedExternalResponse("The AI response could not be read. Please try again.")

    if not isinstance(data, dict):
        raise MalformedExternalResponse("The AI response was not a JSON object.")
    return data
