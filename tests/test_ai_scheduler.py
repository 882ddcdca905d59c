"""
Tests for the Gemini collaborator. No network: the client is replaced.
"""

from types import SimpleNamespace

from escala.core.models import Employee
from escala.services.ai_scheduler import NO_INSIGHTS, AIScheduler, build_schedule_prompt

EMPLOYEES = [Employee(id="1", name="Ana Silva"), Employee(id="2", name="Carlos Mendes")]


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def _scheduler(models: FakeModels) -> AIScheduler:
    scheduler = AIScheduler(api_key="test-key", model="test-model")
    scheduler._client = SimpleNamespace(models=models)
    return scheduler


class TestPrompt:
    def test_lists_employees_and_holidays(self):
        prompt = build_schedule_prompt(EMPLOYEES, 2025, 1)
        assert "Ana Silva, Carlos Mendes" in prompt
        assert "01/01, 04/01, 24/01" in prompt
        assert "1/2025" in prompt

    def test_month_without_holidays(self):
        assert "(Nenhum)" in build_schedule_prompt(EMPLOYEES, 2025, 3)


class TestGenerateSchedule:
    def test_returns_decoded_list(self):
        models = FakeModels(text='[{"employeeName": "Ana Silva", "shifts": [{"day": 3, "type": "T1"}]}]')
        raw = _scheduler(models).generate_schedule(EMPLOYEES, {}, 2025, 11)

        assert raw[0]["employeeName"] == "Ana Silva"
        assert models.calls[0]["model"] == "test-model"
        assert models.calls[0]["config"]["response_mime_type"] == "application/json"

    def test_without_api_key_returns_none(self):
        scheduler = AIScheduler(api_key="")
        assert not scheduler.configured
        assert scheduler.generate_schedule(EMPLOYEES, {}, 2025, 11) is None

    def test_network_error_returns_none(self):
        models = FakeModels(error=ConnectionError("offline"))
        assert _scheduler(models).generate_schedule(EMPLOYEES, {}, 2025, 11) is None

    def test_invalid_json_returns_none(self):
        assert _scheduler(FakeModels(text="not json")).generate_schedule(EMPLOYEES, {}, 2025, 11) is None

    def test_non_list_returns_none(self):
        assert _scheduler(FakeModels(text='{"a": 1}')).generate_schedule(EMPLOYEES, {}, 2025, 11) is None


class TestInsights:
    def test_returns_model_text(self):
        assert _scheduler(FakeModels(text="1. Carga equilibrada")).analyze_insights({"Ana": {}}) == "1. Carga equilibrada"

    def test_fallback_text_on_failure(self):
        assert _scheduler(FakeModels(error=RuntimeError("boom"))).analyze_insights({}) == NO_INSIGHTS
