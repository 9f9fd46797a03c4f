from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from agents.instructions import NO_FAQS, NO_LOCAL_INFO, NO_PROPERTIES, build_instructions
from agents.schemas import FaqEntry, LocalInfoEntry
from config.settings import Settings
from integrations.reference_data import ReferenceData
from prompts.loader import render_prompt

NOW = datetime(2026, 2, 11, 14, 30, tzinfo=ZoneInfo("America/New_York"))


def test_instructions_include_persona_time_and_listings():
    text = build_instructions(ReferenceData(), NOW, Settings())

    assert text.startswith("You are Jade, a property consultant at Petrona Realty")
    assert "Right now it is 2:30 PM on Wednesday, February 11, 2026." in text
    assert "We're open!" in text
    assert "- 213 Ely Ave, Norwalk (Downtown): 2BR/1BA, $2,500/month" in text
    assert NO_FAQS in text
    assert NO_LOCAL_INFO in text
    assert "$" not in text.replace("$2,500", "")


def test_instructions_render_faq_and_local_info():
    reference = ReferenceData(
        faqs=(FaqEntry(question="Pets allowed?", answer="Cats only."),),
        local_info=(LocalInfoEntry(topic="Transit", information="Metro-North nearby."),),
    )
    text = build_instructions(reference, NOW, Settings(agent_name="Riley", company_name="Harbor Homes"))

    assert "You are Riley, a property consultant at Harbor Homes" in text
    assert "Q: Pets allowed?\nA: Cats only." in text
    assert "Transit: Metro-North nearby." in text


def test_no_listings_message():
    text = build_instructions(ReferenceData(properties=()), NOW, Settings())
    assert NO_PROPERTIES in text


def test_missing_placeholder_raises():
    with pytest.raises(KeyError):
        render_prompt("receptionist.txt", agent_name="Jade")
