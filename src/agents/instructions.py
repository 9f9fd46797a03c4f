"""Render the system instructions sent to the realtime backend for each call."""

from __future__ import annotations

from datetime import datetime

from agents.scheduling import business_status, time_context
from config.settings import Settings
from integrations.reference_data import ReferenceData
from prompts.loader import render_prompt

PROMPT_FILE = "receptionist.txt"

NO_PROPERTIES = "No properties available. Apologize and offer to take their info for when new listings come in."
NO_FAQS = "Answer general real estate questions naturally."
NO_LOCAL_INFO = "Use general Connecticut knowledge."


def _properties_text(reference: ReferenceData) -> str:
    if not reference.properties:
        return f"- {NO_PROPERTIES}"
    return "\n\n".join(
        f"- {p.address}, {p.city} ({p.neighborhood}): {p.bedrooms}BR/{p.bathrooms}BA, {p.price}/month\n"
        f"  Features: {p.features}\n"
        f"  Description: {p.description}\n"
        f"  Security: {p.security}"
        for p in reference.properties
    )


def build_instructions(reference: ReferenceData, reference_time: datetime, settings: Settings) -> str:
    context = time_context(reference_time, tz_name=settings.business_timezone)
    status = business_status(reference_time, tz_name=settings.business_timezone)
    faqs = "\n\n".join(f"Q: {faq.question}\nA: {faq.answer}" for faq in reference.faqs)
    local_info = "\n".join(f"{item.topic}: {item.information}" for item in reference.local_info)

    return render_prompt(
        PROMPT_FILE,
        agent_name=settings.agent_name,
        company_name=settings.company_name,
        current_time=context.time_string,
        current_date=context.date_string,
        office_status=status.message,
        properties=_properties_text(reference),
        faqs=faqs or NO_FAQS,
        local_info=local_info or NO_LOCAL_INFO,
    )
