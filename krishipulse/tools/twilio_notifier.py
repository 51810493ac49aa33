# krishipulse/tools/twilio_notifier.py
import asyncio
import logging
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client
from twilio.twiml.voice_response import VoiceResponse

from ..config import settings
from ..logs import mask_phone
from ..schemas import AlertData, AlertResult, ChannelResult

log = logging.getLogger("krishipulse.tools.twilio")

VOICE_LANGUAGE = {"en": "en-IN", "hi": "hi-IN", "mr": "mr-IN"}

SEVERITY_LABELS = {
    "en": {"high": "High priority", "medium": "Medium priority", "low": "Low priority"},
    "hi": {"high": "उच्च प्राथमिकता", "medium": "मध्यम प्राथमिकता", "low": "कम प्राथमिकता"},
    "mr": {"high": "उच्च प्राधान्य", "medium": "मध्यम प्राधान्य", "low": "कमी प्राधान्य"},
}

ALERT_LABELS = {
    "en": {"weather": "Weather alert", "pest": "Pest alert", "disease": "Disease alert",
           "irrigation": "Irrigation alert", "harvest": "Harvest alert", "general": "Agricultural alert"},
    "hi": {"weather": "मौसम चेतावनी", "pest": "कीट चेतावनी", "disease": "रोग चेतावनी",
           "irrigation": "सिंचाई चेतावनी", "harvest": "कटाई चेतावनी", "general": "कृषि चेतावनी"},
    "mr": {"weather": "हवामान सूचना", "pest": "कीड सूचना", "disease": "रोग सूचना",
           "irrigation": "पाणी सूचना", "harvest": "कापणी सूचना", "general": "शेती सूचना"},
}


def voice_script(alert: AlertData, language: str) -> str:
    """Spoken text for the call: severity and alert-type header, region and crop, then the summary."""
    lang = language if language in SEVERITY_LABELS else "en"
    labels = ALERT_LABELS[lang]
    severity = SEVERITY_LABELS[lang][alert.severity]
    kind = labels.get(alert.type.lower(), labels["general"])
    return f"{severity}. {kind}. {alert.region} - {alert.crop}: {alert.recommendation}"


def build_twiml(text: str, language: str) -> str:
    response = VoiceResponse()
    response.say(text, language=VOICE_LANGUAGE.get(language, "en-IN"))
    return str(response)


def _failed(e: Exception) -> ChannelResult:
    if isinstance(e, TwilioRestException):
        return ChannelResult(success=False, error=e.msg, code=e.code)
    return ChannelResult(success=False, error=str(e))


class TwilioNotifier:
    """Notifier that sends the alert text as an SMS and reads it out in a voice call."""

    def __init__(self, client: Optional[Client] = None,
                 sms_from: Optional[str] = None,
                 voice_from: Optional[str] = None):
        if client is None and settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        self.client = client
        self.sms_from = sms_from or settings.TWILIO_PHONE_NUMBER
        self.voice_from = voice_from or settings.TWILIO_VOICE_NUMBER or self.sms_from

    def _send_sms(self, to: str, body: str) -> ChannelResult:
        try:
            msg = self.client.messages.create(body=body, from_=self.sms_from, to=to)
        except Exception as e:
            log.error("SMS to %s failed: %s", mask_phone(to), e)
            return _failed(e)
        log.info("SMS to %s sent sid=%s", mask_phone(to), msg.sid)
        return ChannelResult(success=True, sid=msg.sid, status=msg.status)

    def _place_call(self, to: str, twiml: str) -> ChannelResult:
        try:
            call = self.client.calls.create(twiml=twiml, from_=self.voice_from, to=to)
        except Exception as e:
            log.error("voice call to %s failed: %s", mask_phone(to), e)
            return _failed(e)
        log.info("voice call to %s queued sid=%s", mask_phone(to), call.sid)
        return ChannelResult(success=True, sid=call.sid, status=call.status)

    async def send_alert(self, phone_number: str, alert: AlertData, language: str) -> AlertResult:
        if self.client is None:
            log.warning("Twilio credentials not configured")
            missing = ChannelResult(success=False, error="Twilio not configured")
            return AlertResult(success=False, sms=missing, voice=missing, error="Twilio not configured")

        twiml = build_twiml(voice_script(alert, language), language)
        # twilio's REST client is blocking
        sms, voice = await asyncio.gather(
            asyncio.to_thread(self._send_sms, phone_number, alert.recommendation),
            asyncio.to_thread(self._place_call, phone_number, twiml),
        )
        ok = sms.success or voice.success
        return AlertResult(success=ok, sms=sms, voice=voice, error=None if ok else (sms.error or voice.error))
