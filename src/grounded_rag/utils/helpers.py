"""
Shared utility functions.

get_llm() builds the chat model used for answer generation. Provider
packages are imported on demand, so only the one you configure has to
be installed.
"""

import importlib

from langchain_core.language_models.chat_models import BaseChatModel

from grounded_rag.config import LLMConfig, LLMProvider

# provider -> (module, class name, pip extra that provides it)
_CHAT_MODELS = {
    LLMProvider.OPENAI: ("langchain_openai", "ChatOpenAI", None),
    LLMProvider.ANTHROPIC: ("langchain_anthropic", "ChatAnthropic", "anthropic"),
}


def get_llm(config: LLMConfig) -> BaseChatModel:
    """
    Factory that returns a LangChain chat model based on config.

    Raises:
        ValueError: If the provider is not recognized.
        ImportError: If the provider's integration package is missing.
    """
    try:
        module_name, class_name, extra = _CHAT_MODELS[LLMProvider(config.provider)]
    except (KeyError, ValueError):
        raise ValueError(
            f"Unknown LLM provider: '{config.provider}'. "
            f"Supported: {', '.join(p.value for p in _CHAT_MODELS)}."
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        hint = f"pip install grounded-rag[{extra}]" if extra else f"pip install {module_name.replace('_', '-')}"
        raise ImportError(f"{class_name} requires {module_name}. Install with: {hint}") from e

    chat_model = getattr(module, class_name)
    return chat_model(
        model=config.model_name,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )
