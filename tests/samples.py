#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Canned asset payloads and resolver entries shared by the tests."""
# -----------------------------------------------------------------------------

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 64
JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64
GIF = b"GIF89a" + b"\x00" * 64
PDF = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n%%EOF\n"
SVG = (
    b'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 20">'
    b'<script>alert(1)</script>'
    b'<rect onclick="steal()" width="5" height="5"/>'
    b'</svg>'
)

# Hostnames the stub resolver knows; anything else fails to resolve.
DNS = {
    "example.com":         ["93.184.216.34"],
    "cdn.example.org":     ["151.101.1.1", "2a04:4e42::1"],
    "localhost":           ["127.0.0.1", "::1"],
    "intranet.example":    ["10.1.2.3"],
}

