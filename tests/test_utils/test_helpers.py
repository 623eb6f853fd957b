"""Tests for utility helpers. Provider packages are mocked."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from grounded_rag.config import LLMConfig, LLMProvider
from grounded_rag.utils.helpers import get_llm
from grounded_rag.utils.logger import configure_logging


class TestGetLLM:

    @patch("grounded_rag.utils.helpers.importlib.import_module")
    def test_openai(self, mock_import):
        module = MagicMock()
        mock_import.return_value = module
        config = LLMConfig(model_name="gpt-4o", temperature=0.2, max_tokens=256, timeout=15.0)

        llm = get_llm(config)

        mock_import.assert_called_once_with("langchain_openai")
        module.ChatOpenAI.assert_called_once_with(
            model="gpt-4o", temperature=0.2, max_tokens=256, timeout=15.0,
        )
        assert llm is module.ChatOpenAI.return_value

    @patch("grounded_rag.utils.helpers.importlib.import_module")
    def test_anthropic(self, mock_import):
        module = MagicMock()
        mock_import.return_value = module

        get_llm(LLMConfig(provider=LLMProvider.ANTHROPIC, model_name="claude-x"))

        mock_import.assert_called_once_with("langchain_anthropic")
        assert module.ChatAnthropic.call_args.kwargs["model"] == "claude-x"

    @patch("grounded_rag.utils.helpers.importlib.import_module", side_effect=ImportError("nope"))
    def test_missing_package_names_the_extra(self, mock_import):
        with pytest.raises(ImportError, match=r"grounded-rag\[anthropic\]"):
            get_llm(LLMConfig(provider=LLMProvider.ANTHROPIC))

    def test_unknown_provider(self):
        config = LLMConfig.model_construct(provider="gemini")
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_llm(config)


class TestLogging:

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_configure_logging(self):
        configure_logging("debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING
