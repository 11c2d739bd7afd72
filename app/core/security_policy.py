"""Static response security header policy.

The policy is declared once at import time and rendered to a header table
that the security header middleware copies onto every response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

SELF = "'self'"
NONE = "'none'"


@dataclass(frozen=True)
class ContentSecurityPolicy:
    """Ordered CSP directives; each value is a tuple of source expressions."""

    directives: tuple[tuple[str, tuple[str, ...]], ...]

    def render(self) -> str:
        return ";".join(
            f"{name} {' '.join(sources)}" if sources else name
            for name, sources in self.directives
        )


# Third-party origins used by the checkout (Stripe) and map (Mapbox) widgets
CONTENT_SECURITY_POLICY = ContentSecurityPolicy(
    directives=(
        ("default-src", ("*",)),
        ("connect-src", ("*",)),
        ("base-uri", (SELF,)),
        ("font-src", (SELF, "https:", "data:")),
        (
            "script-src",
            (
                SELF,
                "https:",
                "blob:",
                "*",
                "unsafe-inline",
                "js.stripe.com/v3/",
                "https://api.mapbox.com/mapbox-gl-js/v1.12.0/mapbox-gl.js",
                "https://js.stripe.com/v3",
            ),
        ),
        ("object-src", (NONE,)),
        (
            "style-src",
            (
                SELF,
                "https:",
                "unsafe-inline",
                "'sha256-CwE3Bg0VYQOIdNAkbB/Btdkhul49qZuwgNCMPgNY5zw='",
            ),
        ),
    )
)


@dataclass(frozen=True)
class SecurityHeaderPolicy:
    """Full set of fixed security headers."""

    csp: ContentSecurityPolicy = CONTENT_SECURITY_POLICY
    extra: tuple[tuple[str, str], ...] = field(
        default=(
            ("X-DNS-Prefetch-Control", "off"),
            ("X-Frame-Options", "SAMEORIGIN"),
            ("Strict-Transport-Security", "max-age=15552000; includeSubDomains"),
            ("X-Download-Options", "noopen"),
            ("X-Content-Type-Options", "nosniff"),
            ("X-Permitted-Cross-Domain-Policies", "none"),
            ("Referrer-Policy", "no-referrer"),
            ("X-XSS-Protection", "0"),
        )
    )

    def headers(self) -> Mapping[str, str]:
        table = {"Content-Security-Policy": self.csp.render()}
        table.update(self.extra)
        return MappingProxyType(table)


SECURITY_HEADERS: Mapping[str, str] = SecurityHeaderPolicy().headers()
