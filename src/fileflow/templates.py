# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Subjects and HTML bodies of the emails sent by the relay.

All user-controlled values (filenames, content preview) are HTML-escaped.
"""

from __future__ import annotations

from html import escape

from .models import is_plain_text, language_label

APP_NAME = "FileFlow"
PREVIEW_CHARS = 500


def files_subject(count: int) -> str:
    return f"{APP_NAME} - Your uploaded files - {count} file(s)"


def files_body(filenames: list[str]) -> str:
    items = "".join(f'<li style="margin: 6px 0;">{escape(name)}</li>' for name in filenames)
    return f"""\
<div style="font-family: 'Segoe UI', Arial, sans-serif; max-width: 640px; margin: 0 auto; padding: 24px;">
  <h2 style="color: #111827; font-size: 22px; text-align: center;">Your Files Have Been Processed</h2>
  <p style="font-size: 15px; color: #374151;">Hello,</p>
  <p style="font-size: 15px; color: #374151; line-height: 1.6;">
    We've successfully received and processed your uploaded files.
    Please find them attached to this email.
  </p>
  <div style="background-color: #f9fafb; padding: 18px; border-radius: 8px; margin: 24px 0;">
    <h3 style="margin: 0 0 10px 0; font-size: 16px; color: #1f2937;">Files Included</h3>
    <ul style="margin: 0; padding-left: 20px; font-size: 14px; color: #374151;">{items}</ul>
  </div>
  <p style="font-size: 14px; color: #6b7280;">Best regards,<br><strong>{APP_NAME}</strong></p>
</div>
"""


def text_kind(language: str) -> str:
    """``Text`` for plain text, ``Code`` for any source language."""
    return "Text" if is_plain_text(language) else "Code"


def text_subject(language: str, filename: str) -> str:
    return f"Your {text_kind(language)} from {APP_NAME} - {filename}"


def text_body(content: str, language: str, filename: str) -> str:
    kind = text_kind(language)
    preview = ""
    if kind == "Code":
        snippet = content[:PREVIEW_CHARS]
        if len(content) > PREVIEW_CHARS:
            snippet += "..."
        preview = f"""
  <div style="background-color: #1f2937; color: #f9fafb; padding: 15px; border-radius: 8px; margin: 20px 0;">
    <h4 style="margin-top: 0; color: #10b981;">Preview:</h4>
    <pre style="margin: 0; font-family: 'Courier New', monospace; font-size: 13px; white-space: pre-wrap;">{escape(snippet)}</pre>
  </div>"""
    return f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #2563eb;">Your {kind} from {APP_NAME}</h2>
  <p>Hello!</p>
  <p>You've successfully shared your {kind.lower()} content through {APP_NAME}. Your {kind.lower()} is attached as a formatted file.</p>
  <div style="background-color: #f8fafc; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h3 style="margin-top: 0; color: #374151;">File Details:</h3>
    <ul style="margin: 0; padding-left: 20px;">
      <li style="margin: 5px 0;"><strong>Filename:</strong> {escape(filename)}</li>
      <li style="margin: 5px 0;"><strong>Type:</strong> {escape(language_label(language))}</li>
      <li style="margin: 5px 0;"><strong>Size:</strong> {len(content)} characters</li>
    </ul>
  </div>{preview}
  <p style="color: #6b7280; font-size: 14px;">
    <strong>Privacy Note:</strong> Your content was not stored on our servers and was sent directly to your email.
  </p>
  <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">
  <p style="color: #9ca3af; font-size: 12px; text-align: center;">This email was sent by {APP_NAME} - Secure File Sharing</p>
</div>
"""
