from datetime import date

import pytest

from fakes import TODAY, ScriptedReasoning, clarify_response, general_response, quote_response
from rentbot.core.errors import ClassificationParseError, ReasoningServiceError
from rentbot.memory.models import ConversationTurn, Role
from rentbot.planner.llm import LLMIntentClassifier
from rentbot.planner.parsing import extract_payload, parse_response, validate_payload
from rentbot.planner.prompt import build_policy_prompt
from rentbot.planner.types import SAFE_ERROR_REPLY, Action


def history(*texts):
    return tuple(ConversationTurn(Role.USER, text) for text in texts)


def classifier(service, timeout=1.0):
    return LLMIntentClassifier(service, timeout=timeout, today=lambda: TODAY)


def test_extracts_object_wrapped_in_prose():
    assert extract_payload('blah {"action":"GENERAL"} blah') == {"action": "GENERAL"}


def test_extracts_plain_json_first():
    assert extract_payload('{"reply": "has a } brace", "analysis": {"action": "GENERAL"}}')["reply"] == "has a } brace"


def test_extracts_from_markdown_fence():
    raw = 'Here you go:\n```json\n{"analysis": {"action": "GENERAL"}, "reply": "Hi"}\n```'

    assert parse_response(raw).reply == "Hi"


@pytest.mark.parametrize("raw", ["", "no braces here", "} backwards {", "{not json}", "[1, 2]"])
def test_extraction_failures_raise(raw):
    with pytest.raises(ClassificationParseError):
        extract_payload(raw)


def test_quote_requires_machine_and_dates():
    with pytest.raises(ClassificationParseError):
        validate_payload({"analysis": {"action": "QUOTE", "machine": "Loader X"}, "reply": "ok"})


def test_quote_rejects_inverted_dates():
    payload = {
        "analysis": {
            "action": "QUOTE",
            "machine": "Loader X",
            "rental_start": "2026-11-02",
            "rental_end": "2026-10-26",
        },
        "reply": "ok",
    }
    with pytest.raises(ClassificationParseError):
        validate_payload(payload)


def test_valid_quote_payload():
    classification = parse_response(quote_response())

    assert classification.action is Action.QUOTE
    assert classification.analysis.machine_name == "Loader X"
    assert classification.analysis.rental_start == date(2026, 10, 19)
    assert classification.analysis.rental_end == date(2026, 10, 26)
    assert classification.analysis.duration_text == "one week"


@pytest.mark.parametrize("legacy", ["SALUDO_GENERAL", "CONVERSACION_GENERAL", "general"])
def test_greeting_spellings_fold_into_general(legacy):
    classification = validate_payload({"analysis": {"action": legacy}, "reply": "Hi!"})

    assert classification.action is Action.GENERAL


@pytest.mark.parametrize("action", ["SMALL_TALK", "ERROR", "", None, 3])
def test_unknown_or_reserved_actions_are_rejected(action):
    with pytest.raises(ClassificationParseError):
        validate_payload({"analysis": {"action": action}, "reply": "Hi!"})


def test_reply_is_required():
    with pytest.raises(ClassificationParseError):
        validate_payload({"analysis": {"action": "GENERAL"}})


def test_policy_prompt_lists_catalog_and_date(catalog_entries):
    prompt = build_policy_prompt(catalog_entries, TODAY, "Maquinaria Pro")

    assert "2026-10-19" in prompt
    assert "- Loader X" in prompt
    assert "- Backhoe CAT 416" in prompt
    for action in ("QUOTE", "CLARIFY", "CATALOG_GAP", "GENERAL"):
        assert action in prompt


@pytest.mark.asyncio
async def test_classifier_sends_history_and_policy(catalog_entries):
    service = ScriptedReasoning([general_response()])

    result = await classifier(service).classify(history("hello"), catalog_entries)

    assert result.action is Action.GENERAL
    assert service.histories[0][-1].text == "hello"
    assert "Loader X" in service.policies[0]


@pytest.mark.asyncio
async def test_clarify_keeps_partial_data(catalog_entries):
    service = ScriptedReasoning([clarify_response()])

    result = await classifier(service).classify(history("the loader"), catalog_entries)

    assert result.action is Action.CLARIFY
    assert result.analysis.machine_name == "Loader X"
    assert "how long" in result.reply.lower()


@pytest.mark.asyncio
async def test_response_without_braces_degrades(catalog_entries):
    service = ScriptedReasoning(["I am not sure what you mean."])

    result = await classifier(service).classify(history("???"), catalog_entries)

    assert result.action is Action.ERROR
    assert result.reply == SAFE_ERROR_REPLY


@pytest.mark.asyncio
async def test_quote_missing_dates_degrades(catalog_entries):
    raw = '{"analysis": {"action": "QUOTE", "machine": "Loader X"}, "reply": "Preparing your quote"}'
    service = ScriptedReasoning([raw])

    result = await classifier(service).classify(history("loader please"), catalog_entries)

    assert result.action is Action.ERROR


@pytest.mark.asyncio
async def test_service_error_degrades(catalog_entries):
    service = ScriptedReasoning([ReasoningServiceError("HTTP 503")])

    result = await classifier(service).classify(history("hi"), catalog_entries)

    assert result.action is Action.ERROR
    assert "503" not in result.reply


@pytest.mark.asyncio
async def test_unexpected_service_exception_degrades(catalog_entries):
    service = ScriptedReasoning([RuntimeError("boom")])

    result = await classifier(service).classify(history("hi"), catalog_entries)

    assert result.action is Action.ERROR


@pytest.mark.asyncio
async def test_timeout_degrades(catalog_entries):
    service = ScriptedReasoning([general_response()], delay=0.5)

    result = await classifier(service, timeout=0.05).classify(history("hi"), catalog_entries)

    assert result.action is Action.ERROR


def test_describe_names_service():
    assert "ScriptedReasoning" in classifier(ScriptedReasoning()).describe()
