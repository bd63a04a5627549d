"""
Shared fixtures: sample pages and an httpx client backed by MockTransport.
No test in this suite touches the network.
"""

import httpx
import pytest

TITLE = "Great ENT Care for Ear Nose and Throat Health"   # 45 chars
DESCRIPTION = ("Expert ENT care for sinus, hearing and allergy patients " * 3)[:140]
BODY_SENTENCE = "Our clinic provides excellent hearing care services today. "


def build_clean_page(sentences: int = 100) -> str:
    """A page that passes every check: 1 H1, 6/6 Open Graph, JSON-LD, canonical, 700 counted words."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <title>{TITLE}</title>
  <meta name="description" content="{DESCRIPTION}">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <link rel="canonical" href="https://greatent.example/">
  <meta property="og:title" content="Great ENT Care">
  <meta property="og:description" content="Ear, nose and throat specialists">
  <meta property="og:image" content="https://greatent.example/og.png">
  <meta property="og:url" content="https://greatent.example/">
  <meta property="og:type" content="website">
  <meta property="og:site_name" content="Great ENT Care">
  <script type="application/ld+json">{{"@context": "https://schema.org", "@type": "MedicalClinic", "name": "Great ENT Care"}}</script>
</head>
<body>
  <h1>Welcome</h1>
  <h2>Services</h2>
  <img src="/team.jpg" alt="Our team">
  <a href="/about">About</a>
  <p>{BODY_SENTENCE * sentences}</p>
</body>
</html>"""


def build_poor_page() -> str:
    """No title, no description, no H1, no schema; 100 counted words."""
    body = "Sinus relief works wonders. " * 25
    return f"<html><head></head><body><p>{body}</p></body></html>"


@pytest.fixture
def clean_html() -> str:
    return build_clean_page()


@pytest.fixture
def poor_html() -> str:
    return build_poor_page()


@pytest.fixture
def make_client():
    """
    Factory for an AsyncClient serving fixed pages per host.

    pages: host -> (status, html)
    unreachable: hosts that raise a connection error
    with_sitemap: hosts whose /robots.txt and /sitemap.xml exist
    """

    def factory(
        pages: dict[str, tuple[int, str]],
        unreachable: set[str] | None = None,
        with_sitemap: set[str] | None = None,
    ) -> httpx.AsyncClient:
        unreachable = unreachable or set()
        with_sitemap = with_sitemap or set()

        def handler(request: httpx.Request) -> httpx.Response:
            host = request.url.host
            if host in unreachable:
                raise httpx.ConnectError("connection refused", request=request)
            if request.url.path == "/robots.txt":
                if host in with_sitemap:
                    return httpx.Response(200, text="User-agent: *\nAllow: /\n")
                return httpx.Response(404)
            if request.url.path == "/sitemap.xml":
                if host in with_sitemap:
                    return httpx.Response(200, text="<urlset></urlset>")
                return httpx.Response(404)
            status, html = pages.get(host, (404, "Not found"))
            return httpx.Response(status, text=html, headers={"content-type": "text/html"})

        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)

    return factory
