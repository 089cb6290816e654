"""Tests for paraphraser/generation/style.py and StyleConfig parsing."""

import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from paraphraser.errors import ConfigurationError
from paraphraser.generation.style import (
    MAX_OUTPUT_TOKENS,
    build_style_directive,
    build_system_prompt,
    output_token_limit,
    temperature_for,
)
from paraphraser.models import StyleConfig


class TestStyleConfig(unittest.TestCase):
    def test_defaults(self):
        config = StyleConfig()
        self.assertEqual(
            (config.tone, config.formality, config.creativity, config.preserve_structure),
            ("neutral", "medium", "moderate", True),
        )
        self.assertIsNone(config.model)

    def test_invalid_tone_rejected(self):
        with self.assertRaises(ConfigurationError) as ctx:
            StyleConfig(tone="sarcastic")
        self.assertEqual(ctx.exception.details["field"], "tone")

    def test_from_dict_camel_case(self):
        config = StyleConfig.from_dict(
            {"tone": "formal", "preserveStructure": False, "modelIdentifier": "gpt-4o"}
        )
        self.assertEqual(config.tone, "formal")
        self.assertFalse(config.preserve_structure)
        self.assertEqual(config.model, "gpt-4o")

    def test_from_dict_legacy_aliases(self):
        config = StyleConfig.from_dict({"preserveFormatting": False, "model": "phi3"})
        self.assertFalse(config.preserve_structure)
        self.assertEqual(config.model, "phi3")

    def test_from_dict_empty_gives_defaults(self):
        self.assertEqual(StyleConfig.from_dict(None), StyleConfig())
        self.assertEqual(StyleConfig.from_dict({"tone": ""}), StyleConfig())

    def test_preserve_structure_only_false_when_explicitly_false(self):
        self.assertTrue(StyleConfig.from_dict({"preserveStructure": None}).preserve_structure)
        self.assertTrue(StyleConfig.from_dict({"preserve_structure": True}).preserve_structure)


class TestSystemPrompt(unittest.TestCase):
    def test_tone_fragments(self):
        self.assertIn("formal, professional tone", build_system_prompt(StyleConfig(tone="formal")))
        self.assertIn("casual, conversational tone", build_system_prompt(StyleConfig(tone="casual")))
        self.assertIn("neutral, balanced tone", build_system_prompt(StyleConfig()))

    def test_formality_fragments(self):
        self.assertIn(
            "sophisticated vocabulary",
            build_system_prompt(StyleConfig(formality="high")),
        )
        self.assertIn(
            "simple, straightforward language",
            build_system_prompt(StyleConfig(formality="low")),
        )
        self.assertIn(
            "Balancing clarity with appropriate vocabulary",
            build_system_prompt(StyleConfig()),
        )

    def test_structure_fragments(self):
        self.assertIn(
            "preserve paragraph breaks, lists, formatting cues",
            build_system_prompt(StyleConfig(preserve_structure=True)),
        )
        self.assertIn(
            "may reorganize for clarity, maintain meaning",
            build_system_prompt(StyleConfig(preserve_structure=False)),
        )

    def test_prompt_asks_for_output_only(self):
        self.assertIn("Output ONLY the paraphrased text", build_system_prompt(StyleConfig()))


class TestDirective(unittest.TestCase):
    def test_creativity_temperatures(self):
        self.assertEqual(temperature_for("conservative"), 0.3)
        self.assertEqual(temperature_for("moderate"), 0.6)
        self.assertEqual(temperature_for("creative"), 0.9)

    def test_output_limit_is_twice_input(self):
        self.assertEqual(output_token_limit(1200), 2400)

    def test_output_limit_is_capped(self):
        self.assertEqual(output_token_limit(10_000), MAX_OUTPUT_TOKENS)

    def test_directive_carries_model_override(self):
        directive = build_style_directive(
            StyleConfig(creativity="creative", model="mistral"), 100
        )
        self.assertEqual(directive.temperature, 0.9)
        self.assertEqual(directive.max_tokens, 200)
        self.assertEqual(directive.model, "mistral")


if __name__ == "__main__":
    unittest.main()
