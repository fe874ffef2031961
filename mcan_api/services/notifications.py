"""Transactional email (Mailgun HTTP API): email verification and password reset links."""
import logging

import httpx

from mcan_api.config import get_settings

log = logging.getLogger("uvicorn.error")

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"


def mail_configured() -> bool:
    s = get_settings()
    return bool(s.mailgun_api_key and s.mailgun_domain)


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
    """Send email via Mailgun. Returns False when unconfigured or the API call fails."""
    settings = get_settings()
    if not mail_configured():
        log.warning(
            "[Email] NOT SENT: to=%s subject=%s. Set MAILGUN_API_KEY and MAILGUN_DOMAIN in .env and restart.",
            to_email,
            subject,
        )
        return False

    base = (settings.mailgun_base_url or MAILGUN_US_BASE).strip().rstrip("/")
    domain = settings.mailgun_domain.lower()
    from_addr = settings.mailgun_from_email
    from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
    if from_domain != domain:
        # Mailgun drops mail whose sender domain differs from the sending domain
        from_addr = f"noreply@{domain}"
    data = {
        "from": f"{settings.mailgun_from_name} <{from_addr}>",
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                log.info("[Mailgun] 401 with US endpoint. Retrying with EU endpoint...")
                r = client.post(f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
    except httpx.HTTPError as e:
        log.error("[Mailgun] Request failed: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return False
    if 200 <= r.status_code < 300:
        log.info("[Mailgun] Sent: to=%s subject=%s", to_email, subject)
        return True
    log.error("[Mailgun] API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
    return False


def send_verification_email(to_email: str, token: str, full_name: str | None = None) -> bool:
    link = f"{get_settings().frontend_url.rstrip('/')}/verify-email?token={token}"
    name = (full_name or "").strip() or "there"
    subject = "Verify your MCAN email"
    text = f"Assalamu alaikum {name}, verify your email address by opening this link: {link}"
    html = f"""
    <p>Assalamu alaikum {name},</p>
    <p>Please verify your email address: <a href="{link}">{link}</a></p>
    <p>- MCAN</p>
    """
    return send_email(to_email, subject, html, text_content=text)


def send_password_reset_email(to_email: str, token: str, expire_minutes: int) -> bool:
    link = f"{get_settings().frontend_url.rstrip('/')}/reset-password?token={token}"
    subject = "Reset your MCAN password"
    text = f"Reset your password within {expire_minutes} minutes: {link}. If you did not ask for this, ignore this email."
    html = f"""
    <p>We received a request to reset your MCAN password.</p>
    <p>Click to reset (valid for {expire_minutes} minutes): <a href="{link}">{link}</a></p>
    <p>If you did not ask for this, you can ignore this email.</p>
    """
    return send_email(to_email, subject, html, text_content=text)
