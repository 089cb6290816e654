"""Tests for paraphraser/generation/provider.py."""

import os
import sys
import unittest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from langchain_core.messages import AIMessage

from paraphraser.errors import ProviderError
from paraphraser.generation.provider import LangChainProvider, message_text
from paraphraser.generation.style import StyleDirective


def _directive(model=None) -> StyleDirective:
    return StyleDirective(
        system_prompt="You are an expert document paraphraser.",
        temperature=0.3,
        max_tokens=40,
        model=model,
    )


class TestMessageText(unittest.TestCase):
    def test_ai_message(self):
        self.assertEqual(message_text(AIMessage(content="  Rewritten.  ")), "Rewritten.")

    def test_content_blocks(self):
        response = AIMessage(content=[{"type": "text", "text": "Part one."}, "Part two."])
        self.assertEqual(message_text(response), "Part one.\nPart two.")

    def test_plain_string(self):
        self.assertEqual(message_text("text "), "text")

    def test_none(self):
        self.assertEqual(message_text(None), "")


class TestLangChainProvider(unittest.TestCase):
    def setUp(self):
        self.llm = MagicMock()
        self.llm.invoke.return_value = AIMessage(content="A paraphrase.")
        self.factory = MagicMock(return_value=self.llm)
        self.provider = LangChainProvider(
            provider="ollama", model="llama3.2:3b", llm_factory=self.factory
        )

    def test_factory_receives_directive_settings(self):
        self.provider.transform("Some text.", _directive())
        self.factory.assert_called_once_with(
            model="llama3.2:3b", temperature=0.3, provider="ollama", max_tokens=40
        )

    def test_directive_model_overrides_default(self):
        self.provider.transform("Some text.", _directive(model="mistral"))
        self.assertEqual(self.factory.call_args.kwargs["model"], "mistral")

    def test_messages_carry_prompt_and_text(self):
        result = self.provider.transform("Some text.", _directive())
        self.assertEqual(result, "A paraphrase.")
        messages = self.llm.invoke.call_args.args[0]
        self.assertEqual(messages[0].type, "system")
        self.assertEqual(messages[0].content, "You are an expert document paraphraser.")
        self.assertEqual(messages[1].type, "human")
        self.assertEqual(
            messages[1].content, "Please paraphrase the following text:\n\nSome text."
        )

    def test_text_with_braces_is_not_templated(self):
        self.provider.transform("Use {placeholder} literally.", _directive())
        messages = self.llm.invoke.call_args.args[0]
        self.assertIn("{placeholder}", messages[1].content)

    def test_llm_failure_becomes_provider_error(self):
        self.llm.invoke.side_effect = ConnectionError("refused")
        with self.assertRaises(ProviderError) as ctx:
            self.provider.transform("Some text.", _directive())
        self.assertIn("refused", ctx.exception.message)
        self.assertEqual(ctx.exception.details["provider"], "ollama")

    def test_empty_response_is_an_error(self):
        self.llm.invoke.return_value = AIMessage(content="   ")
        with self.assertRaises(ProviderError) as ctx:
            self.provider.transform("Some text.", _directive())
        self.assertIn("No response from ollama", ctx.exception.message)


if __name__ == "__main__":
    unittest.main()
