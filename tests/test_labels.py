from charger_qc.core.config import settings
from charger_qc.services.labels import detail_url, qr_code_url, render_label_page


def test_detail_url_adds_charger_id():
    assert detail_url("abc123", "https://qc.example.com/") == "https://qc.example.com/?chargerId=abc123"


def test_detail_url_replaces_existing_query():
    url = detail_url("abc", "https://qc.example.com/app?chargerId=old#top")
    assert url == "https://qc.example.com/app?chargerId=abc"


def test_detail_url_defaults_to_public_base():
    assert detail_url("x").startswith(settings.PUBLIC_BASE_URL.rstrip("/"))


def test_qr_code_url_encodes_target():
    url = qr_code_url("https://qc.example.com/?chargerId=abc")
    assert url == (
        f"{settings.QR_ENDPOINT}?size={settings.QR_SIZE}"
        "&data=https%3A%2F%2Fqc.example.com%2F%3FchargerId%3Dabc"
    )


def test_label_page_escapes_and_prints():
    html = render_label_page("<SN>", "Model & Co", "https://x/?chargerId=1", "https://img")
    assert "&lt;SN&gt;" in html
    assert "Model &amp; Co" in html
    assert "window.print()" in html
    assert 'src="https://img"' in html
