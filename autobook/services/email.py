"""
Email service — sends booking notices via SMTP.

In development (no SMTP configured), emails are logged to the console
so you can see what *would* be sent without configuring a mail server.
"""

from __future__ import annotations

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from autobook.config import (
    CURRENCY,
    SMTP_FROM_EMAIL,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USERNAME,
    smtp_enabled,
)
from autobook.models import TransitionEvent, TransitionKind

logger = logging.getLogger(__name__)

_HEADLINES = {
    TransitionKind.CONFIRMED: "Court booked",
    TransitionKind.AUTO_CANCELLED: "Booking auto-cancelled",
    TransitionKind.AUTO_REBOOKED: "Court re-booked",
    TransitionKind.MANUAL_CANCELLED: "Booking cancelled",
}


def _build_event_summary(event: TransitionEvent) -> str:
    """One-line human-readable summary of a booking notice."""
    day = event.date.strftime("%a %d %b")
    court = f"Court {event.court_number}" if event.court_number else "Any court"
    reason = f" ({event.reason.value})" if event.reason else ""
    return f"{_HEADLINES[event.kind]}{reason} · {court} · {day} {event.time_slot} · {event.venue_id}"


def _build_html_body(events: list[TransitionEvent]) -> str:
    """Build a simple HTML email body listing the notices."""
    rows = ""
    for e in events:
        colour = {
            TransitionKind.CONFIRMED: "#2ecc40",
            TransitionKind.AUTO_REBOOKED: "#2ecc40",
            TransitionKind.AUTO_CANCELLED: "#e67e22",
        }.get(e.kind, "#999")
        rows += f"""
        <tr>
          <td style="color:{colour};font-weight:bold">{_HEADLINES[e.kind]}</td>
          <td>{e.venue_id}</td>
          <td>{e.date.strftime('%a %d %b')}</td>
          <td>{e.time_slot}</td>
          <td>{e.court_number or '–'}</td>
          <td>{e.reason.value if e.reason else '–'}</td>
        </tr>"""

    return f"""
    <html>
    <body style="font-family:sans-serif;color:#333">
      <h2>🎾 Booking update</h2>
      <table border="0" cellpadding="6" cellspacing="0"
             style="border-collapse:collapse;border:1px solid #ddd">
        <thead style="background:#f5f5f5">
          <tr>
            <th align="left">Update</th>
            <th align="left">Venue</th>
            <th align="left">Date</th>
            <th align="left">Time</th>
            <th align="left">Court</th>
            <th align="left">Reason</th>
          </tr>
        </thead>
        <tbody>{rows}
        </tbody>
      </table>
      <p style="margin-top:1em;font-size:0.9em;color:#888">
        Prices are charged in {CURRENCY} by the venue.
      </p>
    </body>
    </html>
    """


async def send_booking_email(to_email: str, events: list[TransitionEvent]) -> None:
    """
    Send (or log) an email about booking state changes.

    If SMTP is not configured, falls back to console output.
    """
    subject = f"🎾 {len(events)} booking update(s)"
    html_body = _build_html_body(events)

    # ── Console fallback (dev mode) ───────────────────────────────────
    if not smtp_enabled():
        logger.info(
            "📧 [DEV] Would send email to %s:\n"
            "  Subject: %s\n"
            "  Updates:\n%s",
            to_email,
            subject,
            "\n".join(f"    • {_build_event_summary(e)}" for e in events),
        )
        return

    # ── Real SMTP send ────────────────────────────────────────────────
    import aiosmtplib

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = SMTP_FROM_EMAIL
    msg["To"] = to_email

    plain = "Booking updates:\n\n"
    plain += "\n".join(f"• {_build_event_summary(e)}" for e in events)
    msg.attach(MIMEText(plain, "plain"))
    msg.attach(MIMEText(html_body, "html"))

    try:
        await aiosmtplib.send(
            msg,
            hostname=SMTP_HOST,
            port=SMTP_PORT,
            username=SMTP_USERNAME,
            password=SMTP_PASSWORD,
            start_tls=SMTP_USE_TLS,
        )
        logger.info("Email sent to %s (%d updates)", to_email, len(events))
    except Exception:
        logger.exception("Failed to send email to %s", to_email)
        raise
