# krishipulse/services/notifications.py
import asyncio
import logging
import re
import threading
import time
from typing import List, Optional

from ..adapters.base import Notifier
from ..config import settings
from ..logs import mask_phone
from ..models.domain import Insights, Recommendation, WeatherData
from ..schemas import AlertData, AlertResult, ChannelResult, NotificationResult

log = logging.getLogger("krishipulse.notifications")

def t(): return time.perf_counter()

SMS_LIMIT = 160
DAILY_LIMIT_CODE = 63038
DAILY_LIMIT_REASON = "Daily SMS limit exceeded"
_DAILY_LIMIT_RE = re.compile(r"daily.*limit", re.IGNORECASE)

TEMPLATES = {
    "en": {
        "prefix": "🌾 Agricultural Analysis Complete: ",
        "weather": "Weather: ",
        "humidity": "humidity",
        "soil": "Soil Health: ",
        "yield": "Yield Potential: ",
        "risk": "Risk Level: ",
        "top": "Top Recommendation: ",
        "suffix": " Check app for details.",
    },
    "hi": {
        "prefix": "🌾 कृषि विश्लेषण पूरा: ",
        "weather": "मौसम: ",
        "humidity": "नमी",
        "soil": "मिट्टी स्वास्थ्य: ",
        "yield": "उपज क्षमता: ",
        "risk": "जोखिम स्तर: ",
        "top": "मुख्य सिफारिश: ",
        "suffix": " विवरण के लिए ऐप देखें।",
    },
    "mr": {
        "prefix": "🌾 शेती विश्लेषण पूर्ण: ",
        "weather": "हवामान: ",
        "humidity": "आर्द्रता",
        "soil": "माती आरोग्य: ",
        "yield": "उत्पादन क्षमता: ",
        "risk": "धोका पातळी: ",
        "top": "मुख्य शिफारस: ",
        "suffix": " तपशीलांसाठी ॲप तपासा।",
    },
}


def is_daily_limit_error(channel: Optional[ChannelResult]) -> bool:
    if channel is None or channel.success:
        return False
    if channel.code == DAILY_LIMIT_CODE:
        return True
    return bool(channel.error and _DAILY_LIMIT_RE.search(channel.error))


def top_recommendation(recs: List[Recommendation]) -> Optional[Recommendation]:
    for r in recs:
        if r.priority == "High":
            return r
    return recs[0] if recs else None


def build_sms_message(weather: Optional[WeatherData],
                      insights: Insights,
                      recommendations: List[Recommendation],
                      language: Optional[str] = None,
                      max_chars: Optional[int] = None) -> str:
    lang = language if language in TEMPLATES else settings.DEFAULT_LANGUAGE
    tpl = TEMPLATES.get(lang, TEMPLATES["en"])
    # a single SMS segment; configuration may lower it, never raise it
    limit = min(max_chars or settings.SMS_MAX_CHARS, SMS_LIMIT)

    msg = tpl["prefix"]
    current = weather.current if weather else None
    if current and current.temperature is not None and current.humidity is not None:
        msg += f"{tpl['weather']}{current.temperature:g}°C, {current.humidity:g}% {tpl['humidity']}. "
    msg += f"{tpl['soil']}{insights.soil_health.overall}. "
    msg += f"{tpl['yield']}{insights.yield_potential.overall}. "
    msg += f"{tpl['risk']}{insights.pest_risk.overall}. "
    top = top_recommendation(recommendations)
    if top is not None:
        msg += f"{tpl['top']}{top.action}."
    msg += tpl["suffix"]

    if len(msg) > limit:
        msg = msg[:limit - 3] + "..."
    return msg


class DispatchPolicy:
    """
    Process-wide gate for outbound notifications.

    Both flags only ever turn sending off; `reset()` is the explicit way back on.
    """

    def __init__(self, skip_notifications: Optional[bool] = None):
        if skip_notifications is None:
            skip_notifications = settings.SKIP_NOTIFICATIONS or settings.is_test_env
        self._lock = threading.Lock()
        self._skip = skip_notifications
        self._limit_hit = False

    @property
    def skip_notifications(self) -> bool:
        with self._lock:
            return self._skip

    @property
    def sms_limit_exceeded(self) -> bool:
        with self._lock:
            return self._limit_hit

    def mark_daily_limit_exceeded(self) -> None:
        with self._lock:
            self._limit_hit = True

    def skip_reason(self) -> Optional[str]:
        with self._lock:
            if self._skip:
                return "Notifications disabled"
            if self._limit_hit:
                return DAILY_LIMIT_REASON
        return None

    def reset(self) -> None:
        with self._lock:
            self._limit_hit = False
        log.info("dispatch policy reset; SMS sending re-enabled")


class NotificationDispatcher:
    """Step 7: one SMS + voice alert per successful run."""

    def __init__(self, notifier: Optional[Notifier], policy: DispatchPolicy, timeout: Optional[float] = None):
        self.notifier = notifier
        self.policy = policy
        self.timeout = timeout if timeout is not None else settings.NOTIFICATION_TIMEOUT_SEC

    async def dispatch(self,
                       phone_number: Optional[str],
                       weather: Optional[WeatherData],
                       insights: Insights,
                       recommendations: List[Recommendation],
                       language: Optional[str] = None,
                       region: Optional[str] = None,
                       crop: Optional[str] = None) -> NotificationResult:
        reason = self.policy.skip_reason()
        if reason:
            log.info("notification skipped: %s", reason)
            return NotificationResult(success=False, method="Skipped", reason=reason)

        phone = phone_number or settings.DEFAULT_PHONE_NUMBER
        if not phone:
            return NotificationResult(success=False, method="Skipped", reason="No phone number provided")
        if self.notifier is None:
            return NotificationResult(success=False, method="Skipped", reason="No notifier configured")

        message = build_sms_message(weather, insights, recommendations, language)
        alert = AlertData(
            severity="high" if insights.pest_risk.overall == "High" else "medium",
            region=region or "Agricultural Analysis",
            crop=crop or "Field Analysis",
            recommendation=message,
        )

        t0 = t()
        try:
            result: AlertResult = await asyncio.wait_for(
                self.notifier.send_alert(phone, alert, language or settings.DEFAULT_LANGUAGE),
                timeout=self.timeout,
            )
        except Exception as e:
            reason = "timed out" if isinstance(e, asyncio.TimeoutError) else str(e)
            log.error("notification to %s failed: %s", mask_phone(phone), reason)
            return NotificationResult(success=False, method="Failed", message=message, error=reason)

        if is_daily_limit_error(result.sms):
            self.policy.mark_daily_limit_exceeded()
            log.warning("daily SMS limit reached; further SMS disabled until reset")

        sms_ok = result.sms.success
        voice_ok = result.voice.success
        if sms_ok and voice_ok:
            method = "SMS + Voice"
        elif sms_ok:
            method = "SMS"
        elif voice_ok:
            method = "Voice"
        else:
            method = "Failed"

        log.info("notification to %s via %s in %dms", mask_phone(phone), method, round((t() - t0) * 1000))
        return NotificationResult(
            success=sms_ok or voice_ok,
            method=method,
            reason=DAILY_LIMIT_REASON if self.policy.sms_limit_exceeded and not sms_ok else None,
            message=message,
            sms=result.sms,
            voice=result.voice,
            error=result.error if not (sms_ok or voice_ok) else None,
        )
