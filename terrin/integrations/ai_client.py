"""LLM integration client.

Talks to an OpenAI-compatible chat completions API when a real key is
configured. Keys starting with ``mock_`` return deterministic local
responses so development and tests never reach the network.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

import httpx

from terrin.common.exceptions import ExternalServiceError
from terrin.config import settings
from terrin.core.estimating.baseline import baseline_estimate, match_band
from terrin.integrations.base import BaseIntegration

DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7

PROJECT_SCOPE_PROMPT = """You are an expert construction project manager. Given a project description, provide a detailed scope of work including:
1. Major work phases
2. Materials needed
3. Estimated timeline
4. Key considerations
5. Potential challenges

Format your response as clear, actionable bullet points."""

CHANGE_ORDER_PROMPT = """You are a construction project analyst. Analyze change orders and provide:
1. Impact on timeline
2. Impact on budget (percentage estimate)
3. Required additional materials/labor
4. Dependencies on other work
5. Recommendations (approve/modify/reject with reasoning)

Be specific and practical in your analysis."""

COST_ESTIMATE_PROMPT = """You are a construction cost estimator. Provide detailed cost breakdowns including:
1. Materials costs (itemized)
2. Labor costs (by trade)
3. Permit and inspection fees
4. Contingency recommendations
5. Total project cost range

{pricing}
Provide realistic market rates and explain your assumptions."""

ESTIMATOR_SYSTEM = (
    "You are an expert construction cost estimator. Provide accurate, realistic "
    "estimates based on current market conditions. Return only valid JSON."
)

ESTIMATE_JSON_PROMPT = """Analyze the following construction project and provide realistic, project-specific cost estimates.

Typical ranges by project type:
- New home construction: $200,000-$500,000+
- Large additions/major remodels: $50,000-$200,000
- Garage additions: $15,000-$40,000
- Kitchen remodels: $25,000-$75,000
- Bathroom remodels: $8,000-$25,000
- Small renovations: $3,000-$15,000

Project Details:
- Title: {title}
- Type: {project_type}
- Description: {description}
- Budget Range: {budget_range}
- Timeline: {timeline}
- Location: {location}

Return this exact JSON structure:
{{
  "totalCostMin": number, "totalCostMax": number, "timeline": string,
  "materialsCostMin": number, "materialsCostMax": number,
  "laborCostMin": number, "laborCostMax": number,
  "permitsCostMin": number, "permitsCostMax": number,
  "contingencyCostMin": number, "contingencyCostMax": number,
  "analysis": {{"factors": [], "assumptions": [], "recommendations": [], "riskFactors": []}},
  "tradeBreakdowns": [{{"trade": string, "costMin": number, "costMax": number}}]
}}
All cost values must be plain numbers without dollar signs or commas."""

TIMELINE_JSON_PROMPT = """Break the following construction project into an ordered list of milestones.

Project: {title}
Type: {project_type}
Description: {description}
Timeline: {timeline}
Location: {location}

Respond with JSON:
{{
  "totalDuration": string,
  "phases": [string],
  "milestones": [{{"title": string, "description": string, "order": integer, "progressWeight": integer, "estimatedDays": integer}}]
}}
progressWeight values should add up to 100."""

COMPLEXITY_JSON_PROMPT = """Analyze the complexity of this construction project and provide recommendations:

Project: {title}
Type: {project_type}
Description: {description}
Timeline: {timeline}
Location: {location}

Respond with JSON in this format:
{{"complexity": "low/medium/high", "factors": [string], "recommendations": [string]}}"""

_MOCK_MILESTONES = [
    ("Planning & permits", "Finalize scope, drawings and permit applications", 10, 7),
    ("Site preparation", "Protect finished areas, demolition and haul-away", 15, 5),
    ("Rough-in", "Framing, plumbing, electrical and mechanical rough-in", 25, 10),
    ("Installation", "Install major materials, fixtures and finishes", 30, 14),
    ("Finishing", "Trim, paint, punch list and cleanup", 15, 7),
    ("Final inspection", "Code inspection and homeowner walkthrough", 5, 2),
]


def _is_mock() -> bool:
    return settings.AI_API_KEY.startswith("mock_")


def _project_fields(project_data: dict[str, Any]) -> dict[str, Any]:
    return {
        "title": project_data.get("title") or "Untitled project",
        "project_type": project_data.get("project_type") or "General Construction",
        "description": project_data.get("description") or "",
        "budget_range": project_data.get("budget_range") or "Not specified",
        "timeline": project_data.get("timeline") or "To be determined",
        "location": project_data.get("location") or "Not specified",
    }


def _to_number(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").rstrip("%").strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def _to_int(value: Any, default: int | None) -> int | None:
    """Lenient int for model output; a range such as ``"3-5"`` yields its upper end."""
    number = _to_number(value)
    if number is None and isinstance(value, str):
        found = _NUMBER_RE.findall(value)
        number = max(float(n) for n in found) if found else None
    return int(round(number)) if number is not None else default


class AIClient(BaseIntegration):
    """Chat-completion client plus the structured construction helpers."""

    def __init__(self) -> None:
        super().__init__("ai")
        self._base_url = settings.AI_BASE_URL.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {settings.AI_API_KEY}",
            "Content-Type": "application/json",
        }

    async def health_check(self) -> bool:
        if _is_mock():
            self.logger.info("AI client health check: OK (mock)")
            return True
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.get(f"{self._base_url}/models", headers=self._headers())
                return resp.status_code == 200
        except httpx.HTTPError as e:
            self.logger.error("AI health check failed: %s", e)
            return False

    # ------------------------------------------------------------------
    # Raw chat completion
    # ------------------------------------------------------------------

    async def chat_completion(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> dict[str, Any]:
        """Run one chat completion and return ``{content, usage, model}``."""
        model = model or settings.AI_MODEL
        max_tokens = max_tokens or DEFAULT_MAX_TOKENS
        if temperature is None:
            temperature = DEFAULT_TEMPERATURE

        if _is_mock():
            return self._mock_completion(user_prompt, system_prompt, model)

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            async with httpx.AsyncClient(timeout=settings.AI_TIMEOUT_SECONDS) as client:
                resp = await client.post(
                    f"{self._base_url}/chat/completions",
                    headers=self._headers(),
                    json=payload,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            self.logger.error("AI request failed: %s", e)
            raise ExternalServiceError("AI", str(e)) from e
        except ValueError as e:
            raise ExternalServiceError("AI", "malformed response body") from e

        choices = data.get("choices") or []
        content = choices[0].get("message", {}).get("content") if choices else None
        if not content:
            raise ExternalServiceError("AI", "No content received from provider")

        usage = data.get("usage") or {}
        result = {
            "content": content,
            "usage": {
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
            "model": data.get("model", model),
        }
        self.logger.info(
            "AI completion: model=%s tokens=%d", result["model"], result["usage"]["total_tokens"]
        )
        return result

    def _mock_completion(
        self, user_prompt: str, system_prompt: str | None, model: str
    ) -> dict[str, Any]:
        content = (
            "Mock AI response.\n"
            f"- Request summary: {user_prompt.strip()[:200]}\n"
            "- Configure AI_API_KEY to receive live model output."
        )
        prompt_tokens = len(user_prompt.split()) + len((system_prompt or "").split())
        completion_tokens = len(content.split())
        self.logger.info("Mock AI completion (%d prompt tokens)", prompt_tokens)
        return {
            "content": content,
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
            "model": model,
        }

    async def _chat_json(
        self, system: str, user: str, temperature: float = 0.2
    ) -> dict[str, Any]:
        result = await self.chat_completion(
            user,
            system_prompt=system,
            model=settings.AI_ESTIMATE_MODEL,
            temperature=temperature,
            json_mode=True,
        )
        text = result["content"].strip()
        if text.startswith("```"):
            lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
            text = "\n".join(lines)
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise ExternalServiceError("AI", "response was not valid JSON") from e
        if not isinstance(parsed, dict):
            raise ExternalServiceError("AI", "response was not a JSON object")
        return parsed

    # ------------------------------------------------------------------
    # Canned prompts
    # ------------------------------------------------------------------

    async def generate_project_scope(self, project_description: str) -> dict[str, Any]:
        return await self.chat_completion(
            f"Project: {project_description}",
            system_prompt=PROJECT_SCOPE_PROMPT,
            temperature=0.3,
        )

    async def analyze_change_order(
        self, original_scope: str, requested_change: str
    ) -> dict[str, Any]:
        return await self.chat_completion(
            f"Original Scope: {original_scope}\n\nRequested Change: {requested_change}",
            system_prompt=CHANGE_ORDER_PROMPT,
            temperature=0.2,
        )

    async def generate_cost_estimate(
        self, project_description: str, location: str | None = None
    ) -> dict[str, Any]:
        pricing = (
            f"Consider regional pricing for {location}."
            if location
            else "Use national average pricing."
        )
        return await self.chat_completion(
            f"Estimate costs for: {project_description}",
            system_prompt=COST_ESTIMATE_PROMPT.format(pricing=pricing),
            temperature=0.1,
        )

    # ------------------------------------------------------------------
    # Structured helpers
    # ------------------------------------------------------------------

    async def estimate_project_costs(self, project_data: dict[str, Any]) -> dict[str, Any]:
        """Return a normalized min/max cost breakdown for a project.

        Raises ``ExternalServiceError`` when the provider omits the totals.
        """
        fields = _project_fields(project_data)
        self.logger.info("Generating cost estimate for '%s'", fields["title"])

        if _is_mock():
            return baseline_estimate(project_data)

        raw = await self._chat_json(ESTIMATOR_SYSTEM, ESTIMATE_JSON_PROMPT.format(**fields))

        total_min = _to_number(raw.get("totalCostMin"))
        total_max = _to_number(raw.get("totalCostMax"))
        if total_min is None or total_max is None:
            raise ExternalServiceError("AI", "provider did not return cost totals")

        result: dict[str, Any] = {
            "total_cost_min": total_min,
            "total_cost_max": total_max,
            "timeline": str(raw.get("timeline") or fields["timeline"]),
        }
        for category in ("materials", "labor", "permits", "contingency"):
            result[f"{category}_cost_min"] = _to_number(raw.get(f"{category}CostMin")) or 0.0
            result[f"{category}_cost_max"] = _to_number(raw.get(f"{category}CostMax")) or 0.0

        analysis = raw.get("analysis")
        if not isinstance(analysis, dict):
            analysis = {}
        result["analysis"] = {
            "factors": analysis.get("factors", []),
            "assumptions": analysis.get("assumptions", []),
            "recommendations": analysis.get("recommendations", []),
            "risk_factors": analysis.get("riskFactors", analysis.get("risk_factors", [])),
        }
        result["trade_breakdowns"] = [
            {
                "trade": t.get("trade", ""),
                "cost_min": _to_number(t.get("costMin")) or 0.0,
                "cost_max": _to_number(t.get("costMax")) or 0.0,
            }
            for t in raw.get("tradeBreakdowns") or []
            if isinstance(t, dict)
        ]
        return result

    async def generate_project_timeline(self, project_data: dict[str, Any]) -> dict[str, Any]:
        fields = _project_fields(project_data)
        self.logger.info("Generating timeline for '%s'", fields["title"])

        if _is_mock():
            milestones = [
                {
                    "title": title,
                    "description": description,
                    "order": i,
                    "progress_weight": weight,
                    "estimated_days": days,
                }
                for i, (title, description, weight, days) in enumerate(_MOCK_MILESTONES, start=1)
            ]
            _, _, typical = match_band(f"{fields['project_type']} {fields['description']}")
            return {
                "total_duration": typical,
                "phases": [m["title"] for m in milestones],
                "milestones": milestones,
            }

        raw = await self._chat_json(
            "You are a construction project scheduler. Return only valid JSON.",
            TIMELINE_JSON_PROMPT.format(**fields),
        )
        milestones = []
        for i, m in enumerate(raw.get("milestones") or [], start=1):
            if not isinstance(m, dict) or not m.get("title"):
                continue
            milestones.append({
                "title": str(m["title"]),
                "description": str(m.get("description") or ""),
                "order": _to_int(m.get("order"), i),
                "progress_weight": _to_int(m.get("progressWeight"), 10),
                "estimated_days": _to_int(m.get("estimatedDays"), None),
            })
        if not milestones:
            raise ExternalServiceError("AI", "provider returned no milestones")
        phases = raw.get("phases")
        duration = raw.get("totalDuration")
        return {
            "total_duration": str(duration) if duration else None,
            "phases": [str(p) for p in phases if p] if isinstance(phases, list) else [],
            "milestones": milestones,
        }

    async def analyze_project_complexity(self, project_data: dict[str, Any]) -> dict[str, Any]:
        fields = _project_fields(project_data)

        if _is_mock():
            _, high, _ = match_band(f"{fields['project_type']} {fields['description']}")
            complexity = "high" if high >= 100_000 else "medium" if high >= 25_000 else "low"
            return {
                "complexity": complexity,
                "factors": ["Scope of work", "Number of trades involved"],
                "recommendations": ["Confirm permit requirements before scheduling trades"],
            }

        raw = await self._chat_json(
            "You are a construction project manager expert. Analyze project complexity "
            "and provide actionable recommendations.",
            COMPLEXITY_JSON_PROMPT.format(**fields),
        )
        complexity = raw.get("complexity")
        if complexity not in ("low", "medium", "high"):
            complexity = "medium"
        return {
            "complexity": complexity,
            "factors": raw.get("factors") or [],
            "recommendations": raw.get("recommendations") or [],
        }
