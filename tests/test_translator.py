"""
AttributeTranslator 單元測試
屬性名轉換、冪等性、快取上限、style 解析、白名單過濾。
"""
import pytest

from airis_codegen.translator import ALLOWED_TAGS, AttributeTranslator


@pytest.fixture
def translator():
    return AttributeTranslator()


# ─── translate_attribute_name ───────────────────────────────────────────────

@pytest.mark.parametrize("name,expected", [
    ("fill-opacity", "fillOpacity"),
    ("class", "className"),
    ("for", "htmlFor"),
    ("xlink:href", "xlinkHref"),
    ("xml:lang", "xmlLang"),
    ("stroke_width", "strokeWidth"),
    ("viewBox", "viewBox"),
    ("data-node-id", "data-node-id"),
    ("aria-label", "aria-label"),
])
def test_translate_attribute_name(translator, name, expected):
    assert translator.translate_attribute_name(name) == expected


@pytest.mark.parametrize("name", [
    "fill-opacity", "class", "for", "xlink:href", "xml:space", "stroke-dasharray",
    "data-x", "aria-hidden", "text-anchor", "viewBox",
])
def test_translation_is_idempotent(translator, name):
    once = translator.translate_attribute_name(name)
    assert translator.translate_attribute_name(once) == once


def test_cache_counts_hits_and_misses(translator):
    translator.translate_attribute_name("stroke-width")
    translator.translate_attribute_name("stroke-width")
    stats = translator.cache_stats()
    assert stats == {"entries": 1, "hits": 1, "misses": 1}


def test_cache_is_cleared_when_full():
    t = AttributeTranslator(max_cache_entries=2)
    t.translate_attribute_name("a-b")
    t.translate_attribute_name("c-d")
    t.translate_attribute_name("e-f")
    assert t.cache_stats()["entries"] == 1


def test_clear_cache(translator):
    translator.translate_attribute_name("class")
    translator.clear_cache()
    assert translator.cache_stats() == {"entries": 0, "hits": 0, "misses": 0}


def test_separate_instances_do_not_share_cache():
    a, b = AttributeTranslator(), AttributeTranslator()
    a.translate_attribute_name("class")
    assert b.cache_stats()["entries"] == 0


# ─── translate_style ────────────────────────────────────────────────────────

def test_translate_style_string(translator):
    result = translator.translate_style("fill: red; stroke-width: 2; opacity: 0.5")
    assert result == {"fill": "red", "strokeWidth": 2, "opacity": 0.5}


def test_translate_style_vendor_and_custom_properties(translator):
    result = translator.translate_style("-ms-transform: none; --brand-color: #fff")
    assert result == {"msTransform": "none", "--brand-color": "#fff"}


def test_translate_style_skips_malformed_declarations(translator):
    assert translator.translate_style("color; : red; fill: blue;") == {"fill": "blue"}


def test_translate_style_dict_passes_through(translator):
    assert translator.translate_style({"fill": "red"}) == {"fill": "red"}


def test_translate_style_empty(translator):
    assert translator.translate_style("") == {}
    assert translator.translate_style(None) == {}


# ─── sanitize / tags ────────────────────────────────────────────────────────

def test_sanitize_filters_and_translates(translator):
    result = translator.sanitize({
        "class": "logo",
        "onclick": "alert(1)",
        "fill-opacity": "0.5",
        "data-id": "7",
        "stroke": None,
        "width": "",
    })
    assert result == {"className": "logo", "fillOpacity": "0.5", "data-id": "7"}


def test_sanitize_parses_style(translator):
    result = translator.sanitize({"style": "fill: red; stroke-width: 2"})
    assert result == {"style": {"fill": "red", "strokeWidth": 2}}


@pytest.mark.parametrize("name,value", [
    ("xlink:href", "javascript:alert(1)"),
    ("href", "  JavaScript:alert(2)"),
    ("href", "java\tscript:alert(3)"),
    ("src", "\x01javascript:alert(4)"),
])
def test_sanitize_drops_script_urls(translator, name, value):
    assert translator.sanitize({name: value, "x": "1"}) == {"x": "1"}


def test_sanitize_keeps_ordinary_urls(translator):
    result = translator.sanitize({"xlink:href": "#shape", "href": "https://example.com/js", "src": "logo.png"})
    assert result == {"xlinkHref": "#shape", "href": "https://example.com/js", "src": "logo.png"}


def test_sanitize_returns_new_dict(translator):
    attrs = {"class": "x"}
    result = translator.sanitize(attrs)
    assert result is not attrs
    assert attrs == {"class": "x"}


def test_script_tag_is_rejected(translator):
    assert not translator.is_allowed_tag("script")
    assert not translator.is_allowed_tag("div")
    assert translator.is_allowed_tag("rect")
    assert "script" not in ALLOWED_TAGS


# ─── translate_markup_attributes ────────────────────────────────────────────

def test_translate_markup_attributes(translator):
    markup = '<rect class="a" stroke-width="2"/><text>class="b"</text>'
    assert translator.translate_markup_attributes(markup) == (
        '<rect className="a" strokeWidth="2"/><text>class="b"</text>'
    )
