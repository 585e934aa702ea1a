"""
Remote license client.

Each client runs its own deployment of the ERP software. To move that
deployment's license expiry date we log in with the client's API credentials,
look up the company code and patch the company record. The three calls are
all-or-nothing from the caller's point of view: any failure raises and no
retry is attempted.
"""
import logging
from urllib.parse import quote

import requests

from config import settings
from utils.errors import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "Client is not configured for license extension. Set backend base URL and "
    "API credentials (apiUserName, apiPassword) for this client."
)


def _error_text(resp) -> str:
    return resp.text or resp.reason or ""


def _json_data(resp) -> dict:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def update_client_license_expiry(client, license_expiry_date: str) -> None:
    """
    Set `licenseExpiryDate` on the client's own system.

    1. POST {base}/auth/login -> data.accessToken
    2. GET {base}/company -> data.code
    3. PATCH {base}/company/update/{code} with {"licenseExpiryDate": ...}
    """
    if client is None:
        raise ValidationError("Client not found")
    if not client.license_configured:
        raise ValidationError(NOT_CONFIGURED_MESSAGE)

    base_url = client.backend_base_url.strip().rstrip("/")
    timeout = settings.LICENSE_API_TIMEOUT_SECONDS

    try:
        login_resp = requests.post(
            f"{base_url}/auth/login",
            json={
                "username": client.api_user_name,
                "password": client.api_password,
                "loggedDeviceId": settings.LICENSE_LOGGED_DEVICE_ID,
            },
            timeout=timeout,
        )
        if not login_resp.ok:
            raise ExternalServiceError(f"Client login failed ({login_resp.status_code}): {_error_text(login_resp)}")

        login_body = _json_data(login_resp)
        access_token = (login_body.get("data") or {}).get("accessToken")
        if not access_token:
            raise ExternalServiceError(
                "Client login response did not include accessToken. " + (login_body.get("message") or "Unknown error.")
            )

        headers = {"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"}

        company_resp = requests.get(f"{base_url}/company", headers=headers, timeout=timeout)
        if not company_resp.ok:
            raise ExternalServiceError(
                f"Failed to fetch client company ({company_resp.status_code}): {_error_text(company_resp)}"
            )

        company_body = _json_data(company_resp)
        code = (company_body.get("data") or {}).get("code")
        if not code:
            raise ExternalServiceError(
                "Company response did not include code. " + (company_body.get("message") or "Unknown error.")
            )

        update_resp = requests.patch(
            f"{base_url}/company/update/{quote(str(code), safe='')}",
            headers=headers,
            json={"licenseExpiryDate": license_expiry_date},
            timeout=timeout,
        )
        if not update_resp.ok:
            raise ExternalServiceError(
                f"Failed to update client license expiry ({update_resp.status_code}): {_error_text(update_resp)}"
            )
    except requests.RequestException as exc:
        raise ExternalServiceError(f"Client license API unreachable: {exc}") from exc

    logger.info(f"License expiry for client {client.id} set to {license_expiry_date}")
