from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from agents.call_state import AGENT, CALLER, CallState
from agents.intent import KeywordIntentClassifier


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("I want to rent in Norwalk", "Rental"),
        ("We're looking at LEASING options", "Rental"),
        ("thinking about buying a condo", "Purchase"),
        ("I'd like to sell my house", "Selling"),
        ("the heat is broken again", "Maintenance"),
        ("my AC stopped working", "Maintenance"),
        ("hello there", None),
        ("parents are visiting", None),
    ],
)
def test_keyword_classifier(text, expected):
    assert KeywordIntentClassifier().classify(text) == expected


def test_keyword_classifier_last_category_wins_within_utterance():
    # Rental and Maintenance both match; Maintenance is checked later.
    assert KeywordIntentClassifier().classify("I rent and the sink has a leak") == "Maintenance"


def test_merge_skips_blank_values_and_keeps_existing_fields():
    state = CallState()
    state.merge_lead({"name": "Dana", "phone": "+12035550100", "budget": "2500"})
    changed = state.merge_lead({"name": "Dana", "phone": "", "budget": None, "email": "  "})

    assert changed == []
    assert state.session.lead_record["phone"] == "+12035550100"
    assert state.session.lead_record["budget"] == "2500"
    assert state.session.lead_record["status"] == "New"


def test_merge_replaces_with_later_value():
    state = CallState()
    state.merge_visit({"visitDate": "Friday"})
    assert state.merge_visit({"visitDate": "Saturday ", "visitTime": "11"}) == ["visitDate", "visitTime"]
    assert state.session.visit_record["visitDate"] == "Saturday"


def test_caller_utterance_updates_interest_last_match_wins():
    state = CallState()
    state.observe_caller_utterance("I want to rent in Norwalk")
    assert state.session.lead_record["interest"] == "Rental"

    state.observe_caller_utterance("my name is Dana")
    assert state.session.lead_record["interest"] == "Rental"

    state.observe_caller_utterance("actually I might buy instead")
    assert state.session.lead_record["interest"] == "Purchase"
    assert [speaker for speaker, _ in state.session.transcript_log] == [CALLER, CALLER, CALLER]


def test_custom_classifier_is_used():
    class Always:
        def classify(self, text: str) -> str | None:
            return "Selling"

    state = CallState(classifier=Always())
    state.observe_caller_utterance("anything")
    assert state.session.lead_record["interest"] == "Selling"


def test_transcript_text_labels_and_cap():
    state = CallState(agent_label="Jade")
    state.append_transcript(AGENT, "Hey, thanks for calling!")
    state.observe_caller_utterance("Hi, I'm looking to rent")
    state.append_transcript(AGENT, "   ")

    text = state.transcript_text()
    assert text == "Jade: Hey, thanks for calling!\nCaller: Hi, I'm looking to rent\n"
    assert state.transcript_text(10) == text[:10]


def test_elapsed_seconds_measured_from_last_start():
    now = [datetime(2026, 2, 11, 12, 0, tzinfo=timezone.utc)]
    state = CallState(clock=lambda: now[0])

    now[0] += timedelta(seconds=30)
    state.mark_started()
    now[0] += timedelta(seconds=95)
    assert state.elapsed_seconds() == 95


def test_snapshot_is_a_copy():
    state = CallState()
    state.merge_lead({"name": "Dana"})
    snapshot = state.snapshot()
    state.merge_lead({"name": "Someone Else"})

    assert snapshot.lead_record["name"] == "Dana"
    assert snapshot.outcome == "Completed"
