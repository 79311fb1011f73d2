"""Unit tests for text helpers."""

from __future__ import annotations

from mail_cache_engine.utils import contains_any, extract_address, extract_domain, html_to_text


def test_html_to_text():
    html = """
    <html><head><style>p { color: red; }</style></head>
    <body>
      <p>Hello <b>there</b></p>
      <img src="logo.png" alt="logo">
      <p>See <a href="https://example.com/doc">the doc</a></p>
      <script>alert(1)</script>
    </body></html>
    """

    text = html_to_text(html)

    assert "Hello" in text
    assert "[https://example.com/doc]" in text
    assert "color" not in text
    assert "alert" not in text
    assert "logo" not in text


def test_html_to_text_empty():
    assert html_to_text("") == ""


def test_extract_address():
    assert extract_address("Alice Smith <Alice@Acme.com>") == "Alice@Acme.com"
    assert extract_address("bob@example.org") == "bob@example.org"
    assert extract_address("Undisclosed recipients") is None
    assert extract_address(None) is None


def test_extract_domain():
    assert extract_domain("Alice Smith <Alice@ACME.com>") == "acme.com"
    assert extract_domain("no address here") is None
    assert extract_domain("") is None


def test_contains_any():
    assert contains_any("Your INVOICE is ready", ("invoice", "receipt"))
    assert not contains_any("Hello", ("invoice",))
    assert not contains_any(None, ("invoice",))
