"""
Lexical scanning layer

所有「用 regex 看原始碼 / markup」的啟發式都集中在 LexicalScanner：
tag 掃描、markup → SourceNode、import/export 偵測、複雜度 token 計數。
這不是 parser；要換成真正的 AST 時只需替換這個類別。
"""

import html
import re
from collections import Counter
from typing import List, Tuple

from .models import Chunk, SourceElement, SourceFragment, SourceNode, SourceText

_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_WHITESPACE_RE = re.compile(r"\s+")
_OPEN_TAG_RE = re.compile(r"<[^/!?][^>]*>")
_CLOSE_TAG_RE = re.compile(r"</[^>]*>")
_SELF_CLOSING_RE = re.compile(r"<[^>]*/>")
_SVG_ELEMENT_RE = re.compile(r"<svg[\s>/]", re.IGNORECASE)
_VOID_LIKE = ("path", "circle", "rect", "line", "ellipse")
_VOID_OPEN_RE = re.compile(r"<(%s)(\s[^>]*?)?(?<!/)>" % "|".join(_VOID_LIKE))
_VOID_CLOSE_RE = re.compile(r"</(%s)\s*>" % "|".join(_VOID_LIKE))

_TOKEN_RE = re.compile(
    r"<(?P<close>/)?(?P<tag>[A-Za-z][\w:.-]*)(?P<attrs>(?:[^<>\"']|\"[^\"]*\"|'[^']*')*?)(?P<self>/)?>"
    r"|<![^>]*>|<\?[\s\S]*?\?>"
)
_ATTR_RE = re.compile(r"([^\s=/>\"']+)(?:\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s>]+)))?")

_DUPLICATE_ATTR_RE = re.compile(r"(\w+)=\"([^\"]*)\"(\s+\1=\"[^\"]*\")+")
_LONG_DECIMAL_RE = re.compile(r"=\"(\d+\.\d{3,})\"")
_EMPTY_ATTR_RE = re.compile(r"\s+[\w:-]+=\"\"")

_IMPORT_RE = re.compile(r"import\s+(?:[^'\";]*?\s+from\s+)?['\"]([^'\"]+)['\"]")
_EXPORT_RE = re.compile(r"export\s+(?:default\s+)?(?:class|function|const|let|var|interface|type)\s+(\w+)")
_EXPORT_DEFAULT_NAME_RE = re.compile(r"export\s+default\s+(\w+)\s*;")

COMPLEXITY_TOKENS = (
    re.compile(r"if\s*\("),
    re.compile(r"else\s*\{"),
    re.compile(r"for\s*\("),
    re.compile(r"while\s*\("),
    re.compile(r"switch\s*\("),
    re.compile(r"case\s+"),
    re.compile(r"catch\s*\("),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
)

# `//` 前面不是 `:`（排除 https://）
_LINE_COMMENT_RE = re.compile(r"(?<!:)//")
_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/|<!--[\s\S]*?-->")


class LexicalScanner:
    """Regex-based heuristics over markup and generated source text."""

    # ─── markup normalization ───

    def strip_comments(self, text: str) -> str:
        return _COMMENT_RE.sub("", text)

    def collapse_whitespace(self, text: str) -> str:
        return _WHITESPACE_RE.sub(" ", text).strip()

    def normalize(self, text: str) -> str:
        return self.collapse_whitespace(self.strip_comments(text))

    def has_svg_element(self, text: str) -> bool:
        return bool(_SVG_ELEMENT_RE.search(text))

    def tag_balance(self, text: str) -> Tuple[int, int, int]:
        """(open, close, self_closing) — open 不含 self-closing."""
        self_closing = len(_SELF_CLOSING_RE.findall(text))
        open_tags = len(_OPEN_TAG_RE.findall(text)) - self_closing
        close_tags = len(_CLOSE_TAG_RE.findall(text))
        return open_tags, close_tags, self_closing

    def is_balanced(self, text: str) -> bool:
        open_tags, close_tags, _ = self.tag_balance(text)
        return open_tags == close_tags

    def repair_void_elements(self, text: str) -> str:
        """path/circle/rect/line/ellipse 一律改成 self-closing，並移除它們的 close tag."""
        repaired = _VOID_OPEN_RE.sub(lambda m: f"<{m.group(1)}{(m.group(2) or '').rstrip()}/>", text)
        return _VOID_CLOSE_RE.sub("", repaired)

    def optimize_markup(self, text: str) -> str:
        """重複屬性只留第一個、≥3 位小數四捨五入到 2 位、移除空屬性."""
        optimized = _DUPLICATE_ATTR_RE.sub(r'\1="\2"', text)
        optimized = _LONG_DECIMAL_RE.sub(lambda m: f'="{_round2(m.group(1))}"', optimized)
        return _EMPTY_ATTR_RE.sub("", optimized)

    # ─── chunking ───

    def split_chunks(self, text: str, max_size: int) -> List[Chunk]:
        """切成不超過 max_size 的連續片段，盡量切在 '>' 之後.

        片段串接後必定等於原文；找不到 tag 邊界時才硬切。
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        chunks = []
        start = 0
        length = len(text)
        while start < length:
            end = min(start + max_size, length)
            if end < length:
                boundary = text.rfind(">", start, end)
                if boundary >= start:
                    end = boundary + 1
            chunks.append(Chunk(len(chunks), text[start:end]))
            start = end
        return chunks

    # ─── markup → tree ───

    def count_elements(self, text: str) -> int:
        return sum(1 for m in _TOKEN_RE.finditer(text) if m.group("tag") and not m.group("close"))

    def parse_attributes(self, attrs: str) -> dict:
        """屬性值的 entity 只在這裡解碼一次；輸出端各自負責 escape."""
        result = {}
        for m in _ATTR_RE.finditer(attrs):
            name = m.group(1)
            if name in result:
                continue
            value = next((g for g in m.groups()[1:] if g is not None), "")
            result[name] = html.unescape(value)
        return result

    def parse_markup(self, text: str) -> SourceNode:
        """以 stack 掃描 tag；未關閉的元素在結尾自動關閉，多餘的 close tag 忽略."""
        root: List[SourceNode] = []
        stack: List[Tuple[dict, list]] = []
        counter = 0
        pos = 0

        def append(node: SourceNode) -> None:
            (stack[-1][1] if stack else root).append(node)

        def finish(frame: Tuple[dict, list]) -> SourceElement:
            spec, children = frame
            return SourceElement(children=tuple(children), **spec)

        for m in _TOKEN_RE.finditer(text):
            between = text[pos:m.start()].strip()
            if between:
                append(SourceText(html.unescape(between)))
            pos = m.end()
            tag = m.group("tag")
            if not tag:
                continue
            if m.group("close"):
                if any(frame[0]["tag"] == tag for frame in stack):
                    while stack:
                        frame = stack.pop()
                        append(finish(frame))
                        if frame[0]["tag"] == tag:
                            break
                continue
            counter += 1
            spec = {"id": f"node-{counter}", "tag": tag, "attributes": self.parse_attributes(m.group("attrs"))}
            if m.group("self"):
                append(SourceElement(**spec))
            else:
                stack.append((spec, []))

        tail = text[pos:].strip()
        if tail:
            append(SourceText(html.unescape(tail)))
        while stack:
            frame = stack.pop()
            append(finish(frame))

        if len(root) == 1:
            return root[0]
        return SourceFragment(tuple(root))

    # ─── generated source ───

    def find_imports(self, code: str) -> List[str]:
        return _IMPORT_RE.findall(code)

    def find_exports(self, code: str) -> List[str]:
        names = _EXPORT_RE.findall(code)
        for name in _EXPORT_DEFAULT_NAME_RE.findall(code):
            if name not in names:
                names.append(name)
        return names

    def complexity(self, code: str) -> int:
        return 1 + sum(len(pattern.findall(code)) for pattern in COMPLEXITY_TOKENS)

    def has_comments(self, code: str) -> bool:
        return bool(_BLOCK_COMMENT_RE.search(code) or _LINE_COMMENT_RE.search(code))

    def duplicate_lines(self, code: str) -> int:
        lines = [line.strip() for line in code.split("\n")]
        counts = Counter(line for line in lines if line)
        return sum(count - 1 for count in counts.values() if count > 1)

    def line_count(self, code: str) -> int:
        return len(code.split("\n"))


def _round2(value: str) -> str:
    rounded = round(float(value), 2)
    text = f"{rounded:.2f}".rstrip("0").rstrip(".")
    return text or "0"

