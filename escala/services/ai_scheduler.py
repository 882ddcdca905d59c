# escala/services/ai_scheduler.py
"""
Gemini client for schedule proposals and workload insights.

The model's output is untrusted: callers validate it with
`parse_suggestions` before anything reaches the store. Every failure
(SDK missing, no API key, network error, unparsable response) is logged and
reported as "no suggestion".
"""

import json
import os
from collections.abc import Iterable, Mapping

from escala.core.constants import ShiftType
from escala.core.holidays import holidays_in_month
from escala.core.logging_config import get_logger
from escala.core.models import Employee, Schedule
from escala.core.sentry_config import add_breadcrumb, capture_exception

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"
NO_SUGGESTION = "no suggestion available"
NO_INSIGHTS = "Sem insights disponíveis."

# Serialized context is cut to keep prompts small
CONTEXT_CHAR_LIMIT = 4000
INSIGHTS_CHAR_LIMIT = 1000

SUGGESTION_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "employeeId": {"type": "STRING"},
            "employeeName": {"type": "STRING"},
            "shifts": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "day": {"type": "INTEGER"},
                        "type": {
                            "type": "STRING",
                            "enum": [ShiftType.T1.value, ShiftType.Q1.value, ShiftType.PLAN.value, ShiftType.OFF.value],
                        },
                    },
                },
            },
        },
    },
}


def _month_context(schedules: Mapping[str, Schedule], employees: Iterable[Employee], year: int, month: int) -> dict:
    """Existing assignments of the month as {employee name: {day: type}}."""
    prefix = f"{year:04d}-{month:02d}-"
    context = {}
    for employee in employees:
        schedule = schedules.get(employee.id)
        if schedule is None:
            continue
        days = {int(key[-2:]): shift.type.value for key, shift in schedule.shifts.items() if key.startswith(prefix)}
        if days:
            context[employee.name] = dict(sorted(days.items()))
    return context


def build_schedule_prompt(employees: list[Employee], year: int, month: int, context: dict | None = None) -> str:
    holidays = ", ".join(holidays_in_month(month)) or "Nenhum"
    names = ", ".join(emp.name for emp in employees)
    current = json.dumps(context or "Vazio", ensure_ascii=False)[:CONTEXT_CHAR_LIMIT]
    return (
        "Atue como um especialista em logística de pessoal.\n"
        f"Sua tarefa é PREENCHER AS LACUNAS de uma escala de trabalho para o mês {month}/{year}.\n\n"
        f"Funcionários: {names}.\n\n"
        "Regras de Preenchimento:\n"
        "1. Respeite as atribuições já existentes.\n"
        f"2. FINAIS DE SEMANA e FERIADOS ({holidays}) devem ser marcados como 'OFF'.\n"
        "3. Dias úteis vazios devem ser preenchidos com 'T1', 'Q1' ou 'PLAN'.\n"
        "4. Mantenha uma carga horária saudável.\n\n"
        f"Contexto Atual: {current}\n\n"
        "Retorne APENAS um JSON array de sugestões."
    )


class AIScheduler:
    """Thin wrapper around google-genai. Created lazily per request."""

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key if api_key is not None else os.getenv("GEMINI_API_KEY", "").strip()
        self.model = model or os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
        self._client = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def _generate(self, prompt: str, config=None) -> str | None:
        """Raw model text, or None on any failure."""
        if not self.configured:
            logger.info("GEMINI_API_KEY not set, AI features disabled")
            return None
        try:
            response = self._get_client().models.generate_content(model=self.model, contents=prompt, config=config)
        except ImportError:
            logger.warning("google-genai not installed. Install with: pip install escala[ai]")
            return None
        except Exception as e:
            logger.error("Gemini request failed", exc_info=True, extra={"extra_fields": {"model": self.model}})
            capture_exception(e, {"ai": {"model": self.model}})
            return None
        return response.text or None

    def generate_schedule(
        self,
        employees: list[Employee],
        schedules: Mapping[str, Schedule],
        year: int,
        month: int,
    ) -> list | None:
        """
        Ask the model for a month proposal.

        Returns:
            The decoded (unvalidated) JSON array, or None when no suggestion is available
        """
        add_breadcrumb(f"AI schedule requested for {month}/{year}", category="ai")
        prompt = build_schedule_prompt(employees, year, month, _month_context(schedules, employees, year, month))
        config = {"response_mime_type": "application/json", "response_schema": SUGGESTION_SCHEMA}

        text = self._generate(prompt, config)
        if text is None:
            return None
        try:
            raw = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Gemini returned invalid JSON", extra={"extra_fields": {"length": len(text)}})
            return None
        if not isinstance(raw, list):
            logger.warning("Gemini returned %s instead of a list", type(raw).__name__)
            return None
        return raw

    def analyze_insights(self, schedule_data: dict) -> str:
        """Three short workload insights in Portuguese, or a fixed fallback text."""
        payload = json.dumps(schedule_data, ensure_ascii=False, default=str)[:INSIGHTS_CHAR_LIMIT]
        prompt = (
            "Analise esta escala de trabalho e forneça 3 insights curtos e executivos sobre a "
            "distribuição de carga de trabalho e possíveis pontos de atenção (em Português): "
            f"{payload}..."
        )
        return self._generate(prompt) or NO_INSIGHTS
