"""Content-Security-Policy header parsing and checks."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class CspDirective(enum.Enum):
    """A CSP directive; the value is its header name."""

    DEFAULT_SRC = "default-src"
    SCRIPT_SRC = "script-src"
    STYLE_SRC = "style-src"
    IMG_SRC = "img-src"
    CONNECT_SRC = "connect-src"
    FONT_SRC = "font-src"
    FRAME_SRC = "frame-src"
    MEDIA_SRC = "media-src"
    OBJECT_SRC = "object-src"
    MANIFEST_SRC = "manifest-src"
    WORKER_SRC = "worker-src"
    FRAME_ANCESTORS = "frame-ancestors"
    FORM_ACTION = "form-action"
    BASE_URI = "base-uri"
    REPORT_URI = "report-uri"
    BLOCK_ALL_MIXED_CONTENT = "block-all-mixed-content"
    UPGRADE_INSECURE_REQUESTS = "upgrade-insecure-requests"


class SourceKind(enum.Enum):
    NONE = "none"
    SELF = "self"
    UNSAFE_INLINE = "unsafe-inline"
    UNSAFE_EVAL = "unsafe-eval"
    STRICT_DYNAMIC = "strict-dynamic"
    HTTPS = "https"
    DATA = "data"
    BLOB = "blob"
    MEDIA_SRC = "mediasrc"
    FILESYSTEM = "filesystem"
    HOST = "host"
    SCHEME = "scheme"
    NONCE = "nonce"
    HASH = "hash"
    REPORT_SAMPLE = "report-sample"


@dataclass(frozen=True)
class CspSource:
    """One source expression; ``value`` is set for hosts, schemes, nonces and hashes."""

    kind: SourceKind
    value: str | None = None

    def matches(self, resource_url: str) -> bool:
        kind = self.kind
        if kind is SourceKind.NONE:
            return False
        if kind is SourceKind.SELF:
            return True
        if kind is SourceKind.HTTPS:
            return resource_url.startswith("https://")
        if kind is SourceKind.DATA:
            return resource_url.startswith("data:")
        if kind is SourceKind.BLOB:
            return resource_url.startswith("blob:")
        if kind is SourceKind.HOST:
            return (self.value or "") in resource_url
        if kind is SourceKind.SCHEME:
            return resource_url.startswith(f"{self.value}:")
        return True


_KEYWORD_SOURCES = {
    "'none'": CspSource(SourceKind.NONE),
    "'self'": CspSource(SourceKind.SELF),
    "'unsafe-inline'": CspSource(SourceKind.UNSAFE_INLINE),
    "'unsafe-eval'": CspSource(SourceKind.UNSAFE_EVAL),
    "'strict-dynamic'": CspSource(SourceKind.STRICT_DYNAMIC),
    "https:": CspSource(SourceKind.SCHEME, "https"),
    "data:": CspSource(SourceKind.DATA),
    "blob:": CspSource(SourceKind.BLOB),
    "mediasrc:": CspSource(SourceKind.MEDIA_SRC),
    "filesystem:": CspSource(SourceKind.FILESYSTEM),
}


def parse_csp_source(source: str) -> CspSource | None:
    """Parse one source expression, or return None if it is not recognised."""
    keyword = _KEYWORD_SOURCES.get(source)
    if keyword is not None:
        return keyword
    if source.startswith("'nonce-") and source.endswith("'"):
        return CspSource(SourceKind.NONCE, source[7:-1])
    if source.startswith("'sha") and source.endswith("'"):
        return CspSource(SourceKind.HASH, source)
    if source.startswith(("http://", "https://")) or "." in source:
        return CspSource(SourceKind.HOST, source)
    return None


_DIRECTIVES_BY_NAME = {directive.value: directive for directive in CspDirective}


def directive_from_name(name: str) -> CspDirective | None:
    """Look up a directive by its exact (lower-case) header name."""
    return _DIRECTIVES_BY_NAME.get(name)


@dataclass
class PolicyDirective:
    directive: CspDirective
    sources: list[CspSource] = field(default_factory=list)


@dataclass
class CspPolicy:
    """A parsed Content-Security-Policy."""

    directives: list[PolicyDirective] = field(default_factory=list)
    report_uri: str | None = None
    block_all_mixed_content: bool = True
    upgrade_insecure_requests: bool = True

    @classmethod
    def parse(cls, header: str) -> CspPolicy:
        policy = cls()
        for part in header.split(";"):
            tokens = part.split()
            if not tokens:
                continue
            directive = directive_from_name(tokens[0].lower())
            if directive is None:
                continue
            sources = [src for src in map(parse_csp_source, tokens[1:]) if src is not None]
            if directive is CspDirective.BLOCK_ALL_MIXED_CONTENT:
                policy.block_all_mixed_content = True
            elif directive is CspDirective.UPGRADE_INSECURE_REQUESTS:
                policy.upgrade_insecure_requests = True
            elif directive is CspDirective.REPORT_URI:
                first = sources[0] if sources else None
                policy.report_uri = first.value if first and first.kind is SourceKind.HOST else None
            else:
                policy.directives.append(PolicyDirective(directive, sources))
        return policy

    def _applicable(self, directive: CspDirective) -> PolicyDirective | None:
        found = next((d for d in self.directives if d.directive is directive), None)
        if found is None:
            found = next((d for d in self.directives if d.directive is CspDirective.DEFAULT_SRC), None)
        return found

    def allows(self, directive: CspDirective, resource_url: str) -> bool:
        applicable = self._applicable(directive)
        if applicable is None:
            return True
        return any(source.matches(resource_url) for source in applicable.sources)

    def _allows_source(self, directive: CspDirective, source: CspSource) -> bool:
        applicable = self._applicable(directive)
        if applicable is None:
            return True
        return source in applicable.sources

    def allows_inline_script(self) -> bool:
        inline = CspSource(SourceKind.UNSAFE_INLINE)
        return self._allows_source(CspDirective.SCRIPT_SRC, inline) or self._allows_source(
            CspDirective.DEFAULT_SRC, inline
        )

    def allows_eval(self) -> bool:
        unsafe_eval = CspSource(SourceKind.UNSAFE_EVAL)
        return self._allows_source(CspDirective.SCRIPT_SRC, unsafe_eval) or self._allows_source(
            CspDirective.DEFAULT_SRC, unsafe_eval
        )

    def is_strict(self) -> bool:
        return any(
            source.kind is SourceKind.NONE for d in self.directives for source in d.sources
        )