# services/labels.py
"""QR label: deep link into the detail view, QR image URL, printable page."""
from __future__ import annotations

from html import escape
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from charger_qc.core.config import settings

DEEP_LINK_PARAM = "chargerId"


def detail_url(charger_id: str, base_url: str | None = None) -> str:
    """`<base>?chargerId=<id>`; any existing query on the base is replaced."""
    parts = urlsplit(base_url or settings.PUBLIC_BASE_URL)
    query = urlencode({DEEP_LINK_PARAM: charger_id})
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", query, ""))


def qr_code_url(target_url: str) -> str:
    return f"{settings.QR_ENDPOINT}?size={settings.QR_SIZE}&data={quote(target_url, safe='')}"


def render_label_page(serial_number: str, model: str, url: str, image_url: str) -> str:
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>QR Label – {escape(serial_number)}</title>
  <style>
    body {{ font-family: sans-serif; text-align: center; margin: 2rem; }}
    .modal-url {{ font-size: 0.8rem; word-break: break-all; color: #555; }}
    @media print {{ .no-print {{ display: none; }} }}
  </style>
</head>
<body>
  <h3>Scan QR Code</h3>
  <p>{escape(model)} · {escape(serial_number)}</p>
  <p class="no-print">Print and attach this to the charger container.</p>
  <img src="{escape(image_url)}" alt="QR Code" />
  <p class="modal-url">URL: {escape(url)}</p>
  <div class="no-print">
    <button onclick="window.print()">Print QR Code</button>
  </div>
</body>
</html>
"""
