"""
LLM-backed maintenance advice.

Three call sites build a prompt, ask the chat completion API and try to read
a JSON object out of the reply:

- suggest_rules: personalised intervals per category
- analyze_health: overall health summary of the vehicle
- chat: free-form conversation with the "24h Mechanic"

Any transport error, missing API key or unparseable reply falls back to a
deterministic default, so callers always get a usable answer.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import openai

from .calculations import DEFAULT_INTERVALS
from .category import Category
from .config import Settings, get_openai_api_key
from .maintenance_item import MaintenanceItem
from .rule import MaintenanceRule
from .status import Status
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

CHAT_FALLBACK = "Sorry, something went wrong while processing your request. Please try again."

RULES_FALLBACK_EXPLANATION = "Using the standard recommended intervals for your type of vehicle."

HEALTH_FALLBACK_SUMMARY = (
    "Your vehicle is in generally adequate condition. "
    "Keep following the preventive maintenance schedule."
)

HEALTH_FALLBACK_RECOMMENDATIONS = [
    "Keep scheduled services up to date",
    "Check fluid levels regularly",
    "Check tire pressure weekly",
]

HEALTH_LEVELS = ("excellent", "good", "attention", "critical")

RULES_SYSTEM_PROMPT = (
    "You are an automotive maintenance expert who gives precise, personalised recommendations."
)

HEALTH_SYSTEM_PROMPT = (
    "You are an expert mechanic who analyses vehicle health and gives practical recommendations."
)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class AdvisorError(Exception):
    """The completion API could not produce an answer."""


@dataclass
class HealthReport:
    overall: str
    summary: str
    recommendations: List[str] = field(default_factory=list)
    attention_points: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallHealth": self.overall,
            "summary": self.summary,
            "recommendations": list(self.recommendations),
            "attentionPoints": list(self.attention_points),
        }


def extract_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse the outermost {...} block of a reply; None if there is none or it is invalid."""
    if not text:
        return None
    match = _JSON_OBJECT.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def default_rules() -> List[MaintenanceRule]:
    """Rules built from the default interval table."""
    return [
        MaintenanceRule(category, interval.months, interval.km)
        for category, interval in DEFAULT_INTERVALS.items()
    ]


def fallback_health(items: List[MaintenanceItem]) -> HealthReport:
    """Health report derived from counting critical and attention items."""
    critical = sum(1 for i in items if i.status == Status.CRITICAL)
    attention = sum(1 for i in items if i.status == Status.ATTENTION)

    if critical > 0:
        overall = "critical"
    elif attention > 1:
        overall = "attention"
    elif attention == 0:
        overall = "excellent"
    else:
        overall = "good"

    return HealthReport(
        overall=overall,
        summary=HEALTH_FALLBACK_SUMMARY,
        recommendations=list(HEALTH_FALLBACK_RECOMMENDATIONS),
        attention_points=[
            f"{i.name} needs attention soon" for i in items if i.status != Status.NORMAL
        ],
    )


def _vehicle_line(vehicle: Vehicle) -> str:
    return f"{vehicle.kind} {vehicle.model} {vehicle.year}"


def build_rules_prompt(vehicle: Vehicle) -> str:
    return f"""Based on the vehicle below, suggest personalised maintenance intervals:

Vehicle: {_vehicle_line(vehicle)}
Current odometer: {vehicle.current_km} km
Usage: {vehicle.usage.value}

Give recommended intervals for:
1. Oil change (months and km)
2. Tire replacement (months and km)
3. Brake pad replacement (months and km)
4. Battery replacement (months)

Answer ONLY in this JSON format:
{{
  "oil": {{ "months": X, "km": Y }},
  "tires": {{ "months": X, "km": Y }},
  "brakes": {{ "months": X, "km": Y }},
  "battery": {{ "months": X, "km": 0 }},
  "explanation": "Short explanation of the recommendations"
}}"""


def build_health_prompt(vehicle: Vehicle, items: List[MaintenanceItem]) -> str:
    lines = "\n".join(
        f"- {i.name}: {i.status.key} ({i.days_remaining} days or {i.km_remaining} km left)"
        for i in items
    )
    return f"""Analyse the overall health of this vehicle and give recommendations:

Vehicle: {_vehicle_line(vehicle)}
Odometer: {vehicle.current_km} km
Usage: {vehicle.usage.value}

Maintenance status:
{lines}

Give a complete analysis in JSON format:
{{
  "overallHealth": "excellent|good|attention|critical",
  "summary": "Overall summary of the vehicle's health",
  "recommendations": ["recommendation 1", "recommendation 2", ...],
  "attentionPoints": ["attention point 1", "attention point 2", ...]
}}"""


def build_mechanic_prompt(vehicle: Vehicle) -> str:
    return (
        'You are an experienced, helpful mechanic called "24h Mechanic".\n'
        f"You are helping the owner of a {_vehicle_line(vehicle)} "
        f"with {vehicle.current_km} km.\n"
        "Give clear, practical and friendly answers about vehicle maintenance.\n"
        "Be concise but complete."
    )


def _rules_from_reply(data: Dict[str, Any]) -> List[MaintenanceRule]:
    """Rules from a parsed reply; raises KeyError/TypeError/ValueError on bad shape."""
    rules = []
    for category in Category:
        entry = data[category.value]
        rules.append(
            MaintenanceRule(
                category,
                int(entry["months"]),
                int(entry.get("km") or 0),
                ai_suggested=True,
            )
        )
    return rules


def _string_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return []
    if not isinstance(value, list):
        return None
    return [str(v) for v in value]


def _health_from_reply(data: Dict[str, Any]) -> Optional[HealthReport]:
    """Report from a parsed reply, or None when a field has the wrong shape."""
    if data.get("overallHealth") not in HEALTH_LEVELS:
        return None
    recommendations = _string_list(data.get("recommendations"))
    attention_points = _string_list(data.get("attentionPoints"))
    if recommendations is None or attention_points is None:
        return None
    return HealthReport(
        overall=data["overallHealth"],
        summary=str(data.get("summary") or ""),
        recommendations=recommendations,
        attention_points=attention_points,
    )


class MechanicAdvisor:
    """Maintenance advice from a chat completion model, with safe defaults."""

    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        self.settings = settings or Settings.load()
        self._client = client

    @property
    def client(self):
        if self._client is None:
            try:
                self._client = openai.OpenAI(api_key=get_openai_api_key())
            except ValueError as e:
                raise AdvisorError(str(e)) from e
        return self._client

    def complete(self, messages: List[Dict[str, str]]) -> str:
        """Send chat messages and return the reply text."""
        llm = self.settings.llm
        try:
            response = self.client.chat.completions.create(
                model=llm.model,
                messages=messages,
                temperature=llm.temperature,
                max_tokens=llm.max_tokens,
            )
        except openai.OpenAIError as e:
            raise AdvisorError(f"Completion request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AdvisorError("Completion returned no content")
        return content

    def suggest_rules(self, vehicle: Vehicle) -> Tuple[List[MaintenanceRule], str]:
        """Personalised intervals and their explanation."""
        messages = [
            {"role": "system", "content": RULES_SYSTEM_PROMPT},
            {"role": "user", "content": build_rules_prompt(vehicle)},
        ]
        try:
            data = extract_json(self.complete(messages))
            if data is None:
                raise AdvisorError("Reply contained no JSON object")
            rules = _rules_from_reply(data)
        except (AdvisorError, KeyError, TypeError, ValueError) as e:
            logger.warning("Rule suggestion failed, using default intervals: %s", e)
            return default_rules(), RULES_FALLBACK_EXPLANATION

        return rules, str(data.get("explanation") or "")

    def analyze_health(self, vehicle: Vehicle, items: List[MaintenanceItem]) -> HealthReport:
        """Overall health analysis of the vehicle."""
        messages = [
            {"role": "system", "content": HEALTH_SYSTEM_PROMPT},
            {"role": "user", "content": build_health_prompt(vehicle, items)},
        ]
        try:
            data = extract_json(self.complete(messages))
        except AdvisorError as e:
            logger.warning("Health analysis failed, using summary from item counts: %s", e)
            return fallback_health(items)

        report = _health_from_reply(data) if data is not None else None
        if report is None:
            logger.warning("Health analysis reply unusable, using summary from item counts")
            return fallback_health(items)
        return report

    def chat(self, messages: List[Dict[str, str]], vehicle: Vehicle) -> str:
        """Reply of the mechanic assistant to a conversation."""
        full = [{"role": "system", "content": build_mechanic_prompt(vehicle)}] + list(messages)
        try:
            return self.complete(full)
        except AdvisorError as e:
            logger.warning("Mechanic chat failed: %s", e)
            return CHAT_FALLBACK
