from __future__ import annotations

from html import escape
from html.parser import HTMLParser

# Formatting the note editor toolbar can produce (headers, inline marks,
# colors, lists, links, blockquote, code).
ALLOWED_TAGS = {
    "a", "b", "blockquote", "br", "code", "em", "h1", "h2", "h3", "i", "li",
    "ol", "p", "pre", "s", "span", "strong", "sub", "sup", "u", "ul",
}
VOID_TAGS = {"br"}
DROP_CONTENT_TAGS = {"script", "style", "iframe", "object", "embed", "template"}
ALLOWED_ATTRS = {
    "a": {"href", "target", "rel"},
    "ol": {"start"},
}
GLOBAL_ATTRS = {"class", "style"}
ALLOWED_STYLE_PROPS = {"color", "background-color", "text-align"}
SAFE_URL_SCHEMES = ("http:", "https:", "mailto:")
# Opening one of these closes an open element of the same tag, unless a
# listed container was opened after it.
IMPLIED_END_SCOPES = {
    "li": {"ul", "ol"},
    "p": {"ul", "ol", "li", "blockquote", "pre"},
}


def _safe_url(value: str) -> bool:
    compact = "".join(value.split()).lower()
    if ":" not in compact.split("/", 1)[0]:
        return True
    return compact.startswith(SAFE_URL_SCHEMES)


def _clean_style(value: str) -> str:
    kept = []
    for decl in value.split(";"):
        parts = decl.split(":", 1)
        if len(parts) != 2:
            continue
        key, val = parts[0].strip().lower(), parts[1].strip()
        if key not in ALLOWED_STYLE_PROPS or not val:
            continue
        if "url(" in val.lower() or "expression" in val.lower():
            continue
        kept.append(f"{key}: {val}")
    return "; ".join(kept)


class _Sanitizer(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.out: list[str] = []
        self._open: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        tag_l = tag.lower()
        if tag_l in DROP_CONTENT_TAGS:
            self._skip_depth += 1
            return
        if self._skip_depth or tag_l not in ALLOWED_TAGS:
            return
        kept = []
        for k, v in attrs:
            lk = k.lower()
            if v is None or lk.startswith("on"):
                continue
            if lk not in GLOBAL_ATTRS and lk not in ALLOWED_ATTRS.get(tag_l, set()):
                continue
            if lk == "href" and not _safe_url(v):
                continue
            if lk == "style":
                v = _clean_style(v)
                if not v:
                    continue
            kept.append(f' {lk}="{escape(v, quote=True)}"')
        if tag_l == "a" and any(a.startswith(' target="') for a in kept):
            kept = [a for a in kept if not a.startswith(' rel="')]
            kept.append(' rel="noopener noreferrer"')
        self._close_implied(tag_l)
        self.out.append(f"<{tag_l}{''.join(kept)}>")
        if tag_l not in VOID_TAGS:
            self._open.append(tag_l)

    def _close_implied(self, tag_l):
        scopes = IMPLIED_END_SCOPES.get(tag_l)
        if scopes is None:
            return
        for idx in range(len(self._open) - 1, -1, -1):
            open_tag = self._open[idx]
            if open_tag == tag_l:
                while len(self._open) > idx:
                    self.out.append(f"</{self._open.pop()}>")
                return
            if open_tag in scopes:
                return

    def handle_startendtag(self, tag, attrs):
        self.handle_starttag(tag, attrs)
        tag_l = tag.lower()
        if tag_l in DROP_CONTENT_TAGS:
            self._skip_depth -= 1
        elif self._open and self._open[-1] == tag_l and tag_l not in VOID_TAGS:
            self.handle_endtag(tag)

    def handle_endtag(self, tag):
        tag_l = tag.lower()
        if tag_l in DROP_CONTENT_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
            return
        if self._skip_depth or tag_l not in self._open:
            return
        while self._open:
            top = self._open.pop()
            self.out.append(f"</{top}>")
            if top == tag_l:
                break

    def handle_data(self, data):
        if self._skip_depth:
            return
        self.out.append(escape(data, quote=False))

    def close(self):
        super().close()
        while self._open:
            self.out.append(f"</{self._open.pop()}>")


def sanitize_html(raw_html: str) -> str:
    """Reduce editor HTML to an allowlist of formatting tags and attributes.

    Scripts, event handler attributes and non-http(s)/mailto links are
    removed; disallowed tags are unwrapped so their text survives.
    """
    if not raw_html:
        return ""
    parser = _Sanitizer()
    parser.feed(raw_html)
    parser.close()
    return "".join(parser.out)


def render_title(title: str, *, sanitize: bool = True) -> str:
    shown = title or "Untitled"
    return sanitize_html(shown) if sanitize else shown


def render_content(content: str, *, sanitize: bool = True) -> str:
    return sanitize_html(content) if sanitize else content
