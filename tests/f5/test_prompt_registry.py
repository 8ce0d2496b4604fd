"""Tests for the prompt registry."""

import pytest

from studyhub.prompts.registry import PROMPTS_DIR, clear_cache, get_prompt, list_prompts

ASSISTANT_PROMPTS = [
    "assistant/ask_teacher",
    "assistant/evaluate_comprehension",
    "assistant/evaluate_exam",
    "assistant/explain_page_chichewa",
    "assistant/explain_page_english",
    "assistant/generate_exam",
    "assistant/generate_quiz",
]


class TestGetPrompt:
    def test_loads_template(self):
        prompt = get_prompt("assistant/ask_teacher")
        assert "{question}" in prompt

    def test_substitutes_variables(self):
        prompt = get_prompt(
            "assistant/generate_exam",
            subject="Chemistry",
            grade="Form 3",
            level="Secondary",
            context="Acids and bases",
            question_count="5",
        )
        assert "Create a Chemistry exam for Form 3 (Secondary level)" in prompt
        assert "exactly 5 multiple-choice" in prompt
        assert "{subject}" not in prompt

    def test_json_example_braces_survive(self):
        """Only named placeholders are replaced."""
        prompt = get_prompt("assistant/evaluate_exam", questions="[]", answers="{}")
        assert '"is_correct": true' in prompt

    def test_missing_prompt(self):
        with pytest.raises(FileNotFoundError):
            get_prompt("assistant/nope")

    def test_cache_and_bypass(self):
        clear_cache()
        assert get_prompt("assistant/explain_page_english") == get_prompt(
            "assistant/explain_page_english", use_cache=False
        )


class TestListPrompts:
    def test_lists_assistant_prompts(self):
        prompts = list_prompts()
        assert set(ASSISTANT_PROMPTS) <= set(prompts)
        assert prompts == sorted(prompts)
        assert not any(p.endswith(".md") for p in prompts)

    @pytest.mark.parametrize("key", ASSISTANT_PROMPTS)
    def test_prompt_file_exists(self, key):
        assert (PROMPTS_DIR / f"{key}.md").exists()
