"""HTML bodies for the verification code and fraud alert emails."""

import json
from datetime import datetime
from html import escape
from typing import Any

FLAG_TYPE_LABELS = {
    "velocity": "Velocity Alert",
    "high_value": "High Value Transaction",
    "daily_limit": "Daily Limit Exceeded",
    "suspicious": "Suspicious Activity",
}


def flag_label(flag_type: str) -> str:
    return FLAG_TYPE_LABELS.get(flag_type, flag_type)


def verification_code_email(code: str, ttl_minutes: int) -> str:
    return f"""<!DOCTYPE html>
<html>
  <body style="font-family: sans-serif; background-color: #f4f4f5; padding: 40px 20px;">
    <div style="max-width: 400px; margin: 0 auto; background: white; border-radius: 12px; padding: 40px;">
      <h1 style="color: #18181b; font-size: 24px; text-align: center;">Zanifu Secure Commerce</h1>
      <p style="color: #71717a; font-size: 14px; text-align: center;">Two-Factor Authentication</p>
      <div style="background: #f4f4f5; border-radius: 8px; padding: 24px; text-align: center;">
        <p style="color: #52525b; font-size: 14px;">Your verification code is:</p>
        <div style="font-size: 36px; font-weight: 700; letter-spacing: 8px; font-family: monospace;">{code}</div>
      </div>
      <p style="color: #71717a; font-size: 13px; text-align: center;">
        This code expires in <strong>{ttl_minutes} minutes</strong>.<br>
        If you didn't request this code, please ignore this email.
      </p>
    </div>
  </body>
</html>"""


def _row(label: str, value: str) -> str:
    return (
        '<div class="detail-row">'
        f'<span class="detail-label">{label}:</span> '
        f'<span class="detail-value">{escape(value)}</span>'
        "</div>"
    )


def fraud_alert_email(
    *,
    flag_id: str,
    flag_type: str,
    description: str,
    detected_at: datetime,
    user_id: str | None = None,
    order_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> str:
    rows = [_row("Alert Type", flag_label(flag_type)), _row("Flag ID", flag_id)]
    if order_id:
        rows.append(_row("Order ID", order_id))
    if user_id:
        rows.append(_row("User ID", user_id))
    rows.append(_row("Detected At", detected_at.strftime("%Y-%m-%d %H:%M:%S %Z")))
    details = _row("Details", json.dumps(metadata, default=str)) if metadata else ""

    return f"""<!DOCTYPE html>
<html>
  <body style="font-family: sans-serif; background-color: #f4f4f4; padding: 20px;">
    <div class="container" style="max-width: 600px; margin: 0 auto; background: white;">
      <div class="header" style="background: #dc2626; color: white; padding: 24px; text-align: center;">
        <h1>High Severity Fraud Alert</h1>
      </div>
      <div class="content" style="padding: 24px;">
        {"".join(rows)}
        <div class="description" style="background: #fef3c7; padding: 16px; margin: 16px 0;">
          <strong>Description:</strong><br/>{escape(description)}
        </div>
        {details}
        <p>Please review this flag immediately and take appropriate action.</p>
      </div>
      <div class="footer" style="padding: 16px 24px; text-align: center; font-size: 12px;">
        <p>This is an automated security alert from your fraud detection system.</p>
        <p>&copy; {detected_at.year} SecureShop</p>
      </div>
    </div>
  </body>
</html>"""
