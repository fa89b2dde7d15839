"""Tests for the field table and prompt construction."""
import json
from datetime import date

import pytest

from voicenotes.analysis.fields import (
    FIELDS,
    FIELDS_BY_KEY,
    MergePolicy,
    Verbosity,
    ordered_fields,
    resolve_field_key,
)
from voicenotes.analysis.prompts import (
    LOCK_PROMPT,
    build_example_object,
    build_system_prompt,
    build_user_prompt,
    format_prompt_date,
)
from voicenotes.config.validation import SummaryOptions


class TestFieldTable:
    def test_keys_are_unique(self):
        keys = [f.key for f in FIELDS]
        assert len(keys) == len(set(keys))

    def test_merge_policies(self):
        assert FIELDS_BY_KEY["summary"].policy is MergePolicy.CONCAT
        assert FIELDS_BY_KEY["main_points"].policy is MergePolicy.FLATTEN
        assert FIELDS_BY_KEY["related_topics"].policy is MergePolicy.DEDUPE
        assert FIELDS_BY_KEY["day_rating"].policy is MergePolicy.MAX
        assert FIELDS_BY_KEY["sentiment"].policy is MergePolicy.FIRST

    def test_resolve_by_key_or_label(self):
        assert resolve_field_key("action_items") == "action_items"
        assert resolve_field_key("Action Items") == "action_items"
        assert resolve_field_key("  follow-up questions ") == "follow_up"

    def test_resolve_unknown(self):
        with pytest.raises(KeyError):
            resolve_field_key("horoscope")

    def test_ordered_fields_follow_table_order(self):
        keys = [f.key for f in ordered_fields(["action_items", "summary"])]
        assert keys == ["summary", "action_items"]

    @pytest.mark.parametrize("verbosity, count", [(Verbosity.HIGH, 10), (Verbosity.MEDIUM, 5), (Verbosity.LOW, 3)])
    def test_list_caps_follow_verbosity(self, verbosity, count):
        text = FIELDS_BY_KEY["main_points"].render_instruction(verbosity)
        assert f"limit the list to {count} items" in text

    def test_summary_share(self):
        text = FIELDS_BY_KEY["summary"].render_instruction(Verbosity.HIGH)
        assert "20-25%" in text


class TestSystemPrompt:
    def test_contains_only_enabled_fields(self):
        prompt = build_system_prompt(SummaryOptions(fields=["summary", "action_items"]))

        assert 'Key "summary"' in prompt
        assert 'Key "action_items"' in prompt
        assert 'Key "main_points"' not in prompt
        assert LOCK_PROMPT in prompt

    def test_example_object_matches_enabled_keys(self):
        example = build_example_object(["stories", "summary"])
        assert list(example) == ["title", "summary", "stories"]

        prompt = build_system_prompt(SummaryOptions(fields=["stories", "summary"]))
        start = prompt.index("Example formatting:\n") + len("Example formatting:\n")
        end = prompt.index("\n\nWrite all requested JSON keys")
        assert json.loads(prompt[start:end]) == example

    def test_fields_listed_in_table_order(self):
        prompt = build_system_prompt(SummaryOptions(fields=["follow_up", "summary"]))
        assert prompt.index('Key "summary"') < prompt.index('Key "follow_up"')

    def test_summary_language(self):
        prompt = build_system_prompt(SummaryOptions(fields=["summary"], summary_language="German"))
        assert "You will write your summary in German." in prompt
        assert "translate summary values into German" in prompt

    def test_title_language(self):
        prompt = build_system_prompt(SummaryOptions(fields=["summary"], title_language="French"))
        assert 'Write the "title" value in French.' in prompt

    def test_default_language_follows_transcript(self):
        prompt = build_system_prompt(SummaryOptions(fields=["summary"]))
        assert "same language as the transcript" in prompt

    def test_title_only(self):
        prompt = build_system_prompt(SummaryOptions(fields=[]))
        assert 'Key "title"' in prompt
        assert 'Key "summary"' not in prompt


class TestUserPrompt:
    def test_date_format(self):
        assert format_prompt_date(date(2026, 10, 19)) == "19 October 2026"

    def test_user_prompt(self):
        text = build_user_prompt("Hello world.", date(2026, 1, 5))
        assert text == "Today is 5 January 2026.\n\nTranscript:\n\nHello world."
