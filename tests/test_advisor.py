#!/usr/bin/env python3
"""Tests for the LLM-backed advisor, using a fake completion client."""
import pytest
from datetime import date
from types import SimpleNamespace

import openai

from mecsentinel import Category, DEFAULT_INTERVALS, MaintenanceItem, Status, Usage, Vehicle
from mecsentinel.advisor import (
    CHAT_FALLBACK,
    HEALTH_FALLBACK_SUMMARY,
    RULES_FALLBACK_EXPLANATION,
    AdvisorError,
    MechanicAdvisor,
    extract_json,
    fallback_health,
)
from mecsentinel.config import Settings


class FakeCompletions:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(reply=None, error=None):
    completions = FakeCompletions(reply, error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def make_advisor(reply=None, error=None):
    return MechanicAdvisor(Settings(), client=fake_client(reply, error))


def make_item(category, status):
    return MaintenanceItem(
        category=category,
        name=category.display_name,
        status=status,
        days_remaining=100,
        km_remaining=5000,
        next_date=date(2025, 9, 10),
        next_km=50000,
        interval=DEFAULT_INTERVALS[category],
        description=category.description,
    )


@pytest.fixture
def vehicle():
    return Vehicle(kind="car", model="Onix", year=2019, current_km=45000, usage=Usage.CITY)


RULES_REPLY = """Here are my suggestions:
```json
{
  "oil": {"months": 4, "km": 5000},
  "tires": {"months": 40, "km": 50000},
  "brakes": {"months": 18, "km": 30000},
  "battery": {"months": 30, "km": 0},
  "explanation": "City driving wears oil faster."
}
```"""


class TestExtractJson:
    """Tests for extract_json."""

    def test_plain_object(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_surrounded_by_text(self):
        assert extract_json('Sure! {"a": {"b": 2}} Hope it helps.') == {"a": {"b": 2}}

    def test_no_object(self):
        assert extract_json("no json here") is None
        assert extract_json("") is None
        assert extract_json(None) is None

    def test_invalid_json(self):
        assert extract_json("{not: valid}") is None


class TestComplete:
    """Tests for MechanicAdvisor.complete."""

    def test_sends_settings(self):
        advisor = make_advisor("hello")
        assert advisor.complete([{"role": "user", "content": "hi"}]) == "hello"
        call = advisor.client.chat.completions.calls[0]
        assert call["model"] == "gpt-4o"
        assert call["temperature"] == 0.7
        assert call["max_tokens"] == 1000

    def test_api_error_raises_advisor_error(self):
        advisor = make_advisor(error=openai.OpenAIError("boom"))
        with pytest.raises(AdvisorError):
            advisor.complete([{"role": "user", "content": "hi"}])

    def test_empty_reply_raises_advisor_error(self):
        with pytest.raises(AdvisorError):
            make_advisor("").complete([{"role": "user", "content": "hi"}])

    def test_missing_api_key_raises_advisor_error(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        advisor = MechanicAdvisor(Settings())
        with pytest.raises(AdvisorError):
            advisor.complete([{"role": "user", "content": "hi"}])


class TestSuggestRules:
    """Tests for MechanicAdvisor.suggest_rules."""

    def test_parses_reply(self, vehicle):
        rules, explanation = make_advisor(RULES_REPLY).suggest_rules(vehicle)
        assert [r.category for r in rules] == list(Category)
        assert (rules[0].interval_months, rules[0].interval_km) == (4, 5000)
        assert all(r.ai_suggested for r in rules)
        assert not any(r.user_adjusted for r in rules)
        assert explanation == "City driving wears oil faster."

    def test_prompt_mentions_vehicle(self, vehicle):
        advisor = make_advisor(RULES_REPLY)
        advisor.suggest_rules(vehicle)
        messages = advisor.client.chat.completions.calls[0]["messages"]
        assert messages[0]["role"] == "system"
        assert "car Onix 2019" in messages[1]["content"]
        assert "45000 km" in messages[1]["content"]

    def test_unparseable_reply_falls_back(self, vehicle):
        rules, explanation = make_advisor("I can't help with that").suggest_rules(vehicle)
        assert explanation == RULES_FALLBACK_EXPLANATION
        assert [(r.interval_months, r.interval_km) for r in rules] == [
            (DEFAULT_INTERVALS[c].months, DEFAULT_INTERVALS[c].km) for c in Category
        ]
        assert not any(r.ai_suggested for r in rules)

    def test_incomplete_reply_falls_back(self, vehicle):
        rules, explanation = make_advisor('{"oil": {"months": 4}}').suggest_rules(vehicle)
        assert explanation == RULES_FALLBACK_EXPLANATION

    def test_api_error_falls_back(self, vehicle):
        advisor = make_advisor(error=openai.OpenAIError("down"))
        rules, explanation = advisor.suggest_rules(vehicle)
        assert explanation == RULES_FALLBACK_EXPLANATION
        assert len(rules) == 4


class TestFallbackHealth:
    """Tests for fallback_health."""

    def test_critical(self):
        items = [make_item(Category.OIL, Status.CRITICAL), make_item(Category.TIRES, Status.NORMAL)]
        assert fallback_health(items).overall == "critical"

    def test_several_attention(self):
        items = [make_item(Category.OIL, Status.ATTENTION), make_item(Category.TIRES, Status.ATTENTION)]
        assert fallback_health(items).overall == "attention"

    def test_single_attention_is_good(self):
        items = [make_item(Category.OIL, Status.ATTENTION), make_item(Category.TIRES, Status.NORMAL)]
        assert fallback_health(items).overall == "good"

    def test_all_normal_is_excellent(self):
        items = [make_item(c, Status.NORMAL) for c in Category]
        report = fallback_health(items)
        assert report.overall == "excellent"
        assert report.attention_points == []
        assert len(report.recommendations) == 3

    def test_attention_points_list_non_normal(self):
        items = [
            make_item(Category.OIL, Status.CRITICAL),
            make_item(Category.TIRES, Status.NORMAL),
            make_item(Category.BRAKES, Status.ATTENTION),
        ]
        assert fallback_health(items).attention_points == [
            "Engine oil needs attention soon",
            "Brake pads needs attention soon",
        ]


class TestAnalyzeHealth:
    """Tests for MechanicAdvisor.analyze_health."""

    def test_parses_reply(self, vehicle):
        reply = (
            '{"overallHealth": "good", "summary": "Fine.", '
            '"recommendations": ["Rotate tires"], "attentionPoints": []}'
        )
        report = make_advisor(reply).analyze_health(vehicle, [make_item(Category.OIL, Status.NORMAL)])
        assert report.overall == "good"
        assert report.summary == "Fine."
        assert report.recommendations == ["Rotate tires"]

    def test_prompt_lists_items(self, vehicle):
        advisor = make_advisor('{"overallHealth": "good", "summary": ""}')
        advisor.analyze_health(vehicle, [make_item(Category.OIL, Status.ATTENTION)])
        prompt = advisor.client.chat.completions.calls[0]["messages"][1]["content"]
        assert "- Engine oil: attention (100 days or 5000 km left)" in prompt

    def test_invalid_level_falls_back(self, vehicle):
        items = [make_item(Category.OIL, Status.CRITICAL)]
        report = make_advisor('{"overallHealth": "superb"}').analyze_health(vehicle, items)
        assert report.overall == "critical"

    def test_non_list_fields_fall_back(self, vehicle):
        items = [make_item(Category.OIL, Status.CRITICAL)]
        for reply in (
            '{"overallHealth": "good", "recommendations": 5}',
            '{"overallHealth": "good", "recommendations": "Rotate tires"}',
            '{"overallHealth": "good", "attentionPoints": {"oil": "low"}}',
        ):
            report = make_advisor(reply).analyze_health(vehicle, items)
            assert report.overall == "critical"
            assert report.summary == HEALTH_FALLBACK_SUMMARY

    def test_missing_lists_are_empty(self, vehicle):
        report = make_advisor('{"overallHealth": "good", "summary": "Fine."}').analyze_health(vehicle, [])
        assert report.recommendations == []
        assert report.attention_points == []

    def test_api_error_falls_back(self, vehicle):
        items = [make_item(c, Status.NORMAL) for c in Category]
        report = make_advisor(error=openai.OpenAIError("x")).analyze_health(vehicle, items)
        assert report.overall == "excellent"

    def test_to_dict(self, vehicle):
        report = fallback_health([make_item(Category.OIL, Status.CRITICAL)])
        d = report.to_dict()
        assert d["overallHealth"] == "critical"
        assert d["attentionPoints"] == ["Engine oil needs attention soon"]


class TestChat:
    """Tests for MechanicAdvisor.chat."""

    def test_reply(self, vehicle):
        advisor = make_advisor("Change the oil every 5,000 km.")
        reply = advisor.chat([{"role": "user", "content": "When should I change oil?"}], vehicle)
        assert reply == "Change the oil every 5,000 km."
        messages = advisor.client.chat.completions.calls[0]["messages"]
        assert messages[0]["role"] == "system"
        assert "24h Mechanic" in messages[0]["content"]
        assert messages[1]["content"] == "When should I change oil?"

    def test_error_returns_apology(self, vehicle):
        advisor = make_advisor(error=openai.OpenAIError("x"))
        assert advisor.chat([{"role": "user", "content": "hi"}], vehicle) == CHAT_FALLBACK
