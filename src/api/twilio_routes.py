"""Twilio webhooks and the Media Streams websocket.

- Voice webhook returning TwiML that connects the call to ``/media-stream``,
  or a voicemail flow when the realtime backend is not configured.
- Voicemail transcription and WhatsApp message callbacks.
- The media stream websocket, which runs one session bridge per call.
"""

from __future__ import annotations

import logging
from xml.sax.saxutils import escape, quoteattr

from fastapi import APIRouter, Depends, Request, Response, WebSocket
from fastapi.responses import PlainTextResponse

from agents.bridge import SessionBridge
from agents.instructions import build_instructions
from agents.scheduling import now_in
from agents.schemas import CallLogEntry, MediaLogEntry
from agents.sessions import SessionRegistry
from agents.tools import ToolDispatcher
from api.dependencies import get_connector, get_crm, get_dispatcher, get_reference_cache, get_registry
from api.schemas import IncomingCallInfo
from config.settings import get_settings
from integrations.crm import SqlCRMGateway
from integrations.realtime_client import RealtimeConnector
from integrations.reference_data import ReferenceDataCache
from integrations.twilio_streaming import TwilioMediaLink

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["twilio"])


def _twiml_response(xml: str) -> Response:
    # Twilio expects application/xml
    return Response(content=xml, media_type="application/xml")


def _to_ws_url(http_url: str) -> str:
    if http_url.startswith("https://"):
        return "wss://" + http_url.removeprefix("https://")
    if http_url.startswith("http://"):
        return "ws://" + http_url.removeprefix("http://")
    return http_url


def _stream_url(request: Request) -> str:
    settings = get_settings()
    if settings.public_base_url:
        return _to_ws_url(f"{settings.public_base_url.rstrip('/')}/media-stream")
    # Behind a proxy the Host header is the public one; prefer PUBLIC_BASE_URL.
    host = request.headers.get("host") or request.url.netloc
    return f"wss://{host}/media-stream"


def _twiml_stream(*, stream_url: str, caller: str) -> str:
    return (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
        "<Response>"
        "<Connect>"
        f"<Stream url={quoteattr(stream_url)}>"
        f"<Parameter name=\"callerNumber\" value={quoteattr(caller)} />"
        "</Stream>"
        "</Connect>"
        "</Response>"
    )


def _twiml_voicemail(*, company_name: str, voice: str, max_length: int) -> str:
    say_voice = quoteattr(voice)
    apology = escape(
        f"Thank you for calling {company_name}. We're sorry, our system is temporarily unavailable. "
        "Please leave your name, number, and a brief message after the beep."
    )
    return (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
        "<Response>"
        f"<Say voice={say_voice}>{apology}</Say>"
        f"<Record maxLength=\"{int(max_length)}\" transcribe=\"true\" "
        "transcribeCallback=\"/voicemail-transcription\" playBeep=\"true\" />"
        f"<Say voice={say_voice}>Thank you. Goodbye!</Say>"
        "</Response>"
    )


def _twiml_message(text: str) -> str:
    return (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>"
        f"<Response><Message>{escape(text)}</Message></Response>"
    )


@router.post("/incoming-call")
async def incoming_call(request: Request) -> Response:
    settings = get_settings()
    form = await request.form()
    caller = str(form.get("From") or "").strip()
    LOGGER.info("Incoming call from %s", caller or "unknown")

    if not settings.openai_api_key:
        LOGGER.error("No realtime API key configured; sending caller to voicemail")
        return _twiml_response(
            _twiml_voicemail(
                company_name=settings.company_name,
                voice=settings.twilio_say_voice,
                max_length=settings.voicemail_max_length,
            )
        )

    return _twiml_response(_twiml_stream(stream_url=_stream_url(request), caller=caller))


@router.get("/incoming-call", response_model=IncomingCallInfo)
async def incoming_call_info() -> IncomingCallInfo:
    return IncomingCallInfo(agent=get_settings().agent_name)


@router.post("/voicemail-transcription", response_class=PlainTextResponse)
async def voicemail_transcription(
    request: Request,
    crm: SqlCRMGateway = Depends(get_crm),
) -> str:
    form = await request.form()
    text = str(form.get("TranscriptionText") or "")
    caller = str(form.get("From") or form.get("Caller") or "Unknown")
    recording_url = str(form.get("RecordingUrl") or "")
    LOGGER.info("Voicemail from %s: %s", caller, text)

    await crm.log_call(
        CallLogEntry(
            phone=caller,
            duration="Voicemail",
            call_type="Voicemail",
            summary=f"VOICEMAIL: {text} | Recording: {recording_url}",
            outcome="Voicemail Left",
        )
    )
    await crm.save_lead(
        {
            "name": "Voicemail Caller",
            "phone": caller,
            "interest": "General",
            "notes": f"Voicemail: {text}",
            "status": "New - Voicemail",
        }
    )
    return "OK"


@router.post("/incoming-whatsapp")
async def incoming_whatsapp(
    request: Request,
    crm: SqlCRMGateway = Depends(get_crm),
) -> Response:
    settings = get_settings()
    form = await request.form()
    phone = str(form.get("From") or "").replace("whatsapp:", "")
    body = str(form.get("Body") or "")
    LOGGER.info("WhatsApp message from %s", phone)

    await crm.log_media(
        MediaLogEntry(phone=phone, direction="inbound", customer_message=body, status="received")
    )
    reply = (
        f"Thank you for messaging {settings.company_name}! We'll get back to you shortly. "
        f"For immediate help, call {settings.office_phone}."
    )
    await crm.log_media(
        MediaLogEntry(phone=phone, direction="outbound", customer_message=body, ai_reply=reply, status="sent")
    )
    return _twiml_response(_twiml_message(reply))


@router.websocket("/media-stream")
async def media_stream(
    websocket: WebSocket,
    crm: SqlCRMGateway = Depends(get_crm),
    dispatcher: ToolDispatcher = Depends(get_dispatcher),
    connector: RealtimeConnector = Depends(get_connector),
    cache: ReferenceDataCache = Depends(get_reference_cache),
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    await websocket.accept()
    settings = get_settings()

    async def instructions() -> str:
        return build_instructions(cache.current(), now_in(settings.business_timezone), settings)

    bridge = SessionBridge(
        TwilioMediaLink(websocket),
        connector,
        dispatcher,
        crm,
        instructions=instructions,
        settings=settings,
    )
    await registry.run(bridge)
