import logging
from typing import Optional

import requests

from config import settings
from utils.errors import ExternalServiceError

logger = logging.getLogger(__name__)


def send_single_sms(mobile: str, message: str, shortcode: Optional[str] = None) -> dict:
    """
    Send a single SMS via the Advanta/QuickSMS API.
    POST {SMS_BASE_URL}/api/services/sendsms/

    Raises ExternalServiceError when the gateway is not configured, unreachable,
    or answers with a non-2xx status.
    """
    if not settings.sms_configured:
        raise ExternalServiceError("SMS is not configured: set SMS_API_KEY and SMS_PARTNER_ID in .env")

    url = f"{settings.SMS_BASE_URL.rstrip('/')}/api/services/sendsms/"
    payload = {
        "apikey": settings.SMS_API_KEY,
        "partnerID": settings.SMS_PARTNER_ID,
        "message": message,
        "shortcode": shortcode or settings.SMS_SHORTCODE,
        "mobile": mobile,
    }
    try:
        resp = requests.post(url, json=payload, timeout=settings.SMS_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise ExternalServiceError(f"SMS API unreachable: {exc}") from exc

    if resp.status_code >= 400:
        raise ExternalServiceError(f"SMS API error ({resp.status_code}): {resp.text}")

    logger.debug("SMS accepted by gateway for %s", mobile)
    try:
        return resp.json()
    except ValueError:
        return {}
