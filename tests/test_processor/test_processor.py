"""End-to-end tests for the UserCSS processor."""

import uuid

import pytest

from usercss import UserCSSOptions, UserCSSProcessor, parse_usercss
from usercss.errors import CompilationError
from usercss.model import DomainRule
from usercss.preprocessor import CompileOutput, PreprocessorEngine
from usercss.processor import style_id


def usercss(*directives, body="a {}"):
    """Build a source whose required fields sit on lines 2-4; extras start at line 5."""
    lines = [
        "/* ==UserStyle==",
        "@name Test",
        "@namespace test",
        "@version 1.0.0",
        *directives,
        "==/UserStyle== */",
        body,
    ]
    return "\n".join(lines)


class RecordingBackend:
    """Records every source it compiles and returns a fixed stylesheet."""

    def __init__(self, name="less", css="compiled {}"):
        self.name = name
        self.css = css
        self.sources = []

    def compile(self, source):
        self.sources.append(source)
        return CompileOutput(css=self.css)


class FailingBackend:
    name = "less"

    def compile(self, source):
        raise CompilationError("Unrecognised input", line=2)


class ExplodingEngine:
    def process(self, source, engine):
        raise RuntimeError("boom")


@pytest.fixture()
def less_backend():
    return RecordingBackend("less")


@pytest.fixture()
def stylus_backend():
    return RecordingBackend("stylus")


@pytest.fixture()
def processor(less_backend, stylus_backend):
    engine = PreprocessorEngine(backends={"less": less_backend, "stylus": stylus_backend})
    return UserCSSProcessor(engine=engine)


# ---------------------------------------------------------------------------
# Real Less compilation
# ---------------------------------------------------------------------------


class TestLessEndToEnd:
    def test_compiles_with_lesscpy(self):
        source = (
            "/* ==UserStyle==\n@name Test\n@namespace test\n@version 1.0.0\n"
            "@preprocessor less\n==/UserStyle== */\n@color:#ff0000;\nbody{background:@color;}"
        )
        result = UserCSSProcessor().parse(source)
        assert result.errors == []
        assert result.meta.name == "Test"
        assert "background: #ff0000" in result.css
        assert result.css == result.meta.compiled_css
        assert result.body == "@color:#ff0000;\nbody{background:@color;}"

    def test_plain_css_import_compiles_cleanly(self):
        body = '@import url("https://fonts.googleapis.com/css2?family=Inter");\nbody { color: red; }'
        result = UserCSSProcessor().parse(usercss(body=body))
        assert result.errors == []
        assert result.css.startswith('@import url("https://fonts.googleapis.com/css2?family=Inter");')
        assert "color: red" in result.css

    def test_local_less_import_is_an_error(self):
        result = UserCSSProcessor().parse(
            usercss("@preprocessor less", body='@import "secret";\nbody { color: red; }')
        )
        assert len(result.errors) == 1
        assert result.errors[0].startswith('Less compilation failed: Cannot import "secret"')
        assert result.css == '@import "secret";\nbody { color: red; }'


# ---------------------------------------------------------------------------
# Header fields
# ---------------------------------------------------------------------------


class TestHeader:
    def test_fields(self, processor):
        source = usercss(
            "@description Docs theme",
            "@author Jo <jo@example.com>",
            "@license MIT",
            "@supportURL https://example.com/issues",
            "@updateURL https://example.com/style.user.css",
        )
        meta = processor.parse(source).meta
        assert (meta.name, meta.namespace, meta.version) == ("Test", "test", "1.0.0")
        assert meta.description == "Docs theme"
        assert meta.author == "Jo <jo@example.com>"
        assert meta.license == "MIT"
        assert meta.source_url == "https://example.com/issues"

    def test_homepage_is_preferred_source_url(self, processor):
        source = usercss("@homepageURL https://a.test/", "@supportURL https://b.test/")
        assert processor.parse(source).meta.source_url == "https://a.test/"

    def test_id_is_deterministic(self, processor):
        first = processor.parse(usercss()).meta.id
        assert first == processor.parse(usercss(body="b {}")).meta.id
        assert first == style_id("Test", "test")
        uuid.UUID(first)

    def test_quoted_values_are_unquoted(self, processor):
        source = usercss('@description "Quoted text"')
        assert processor.parse(source).meta.description == "Quoted text"

    def test_unknown_directives_are_ignored(self, processor):
        result = processor.parse(usercss("@icon https://example.com/icon.png"))
        assert result.errors == []
        assert result.warnings == []

    def test_missing_header_is_a_warning(self, processor):
        result = processor.parse("body { color: red; }")
        assert result.errors == []
        assert result.warnings == [
            "No UserStyle metadata block found; treating the whole input as CSS"
        ]
        assert result.meta.name == "Untitled Style"
        assert result.css == "body { color: red; }"

    def test_missing_required_fields(self, processor):
        result = processor.parse("/* ==UserStyle==\n@name Only\n==/UserStyle== */\na {}")
        assert result.errors == [
            "Missing required @namespace directive in metadata block",
            "Missing required @version directive in metadata block",
        ]
        assert result.css == "a {}"

    def test_missing_name_falls_back(self, processor):
        result = processor.parse("/* ==UserStyle==\n@namespace n\n@version 1\n==/UserStyle== */")
        assert result.errors == ["Missing required @name directive in metadata block"]
        assert result.meta.name == "Untitled Style"

    def test_duplicate_directive(self, processor):
        result = processor.parse(usercss("@name Again"))
        assert result.errors == ["Duplicate @name directive found at line 5"]
        assert result.meta.name == "Test"

    def test_invalid_url_is_a_warning(self, processor):
        result = processor.parse(usercss("@homepageURL example.com"))
        assert result.warnings == ["Invalid @homepageURL format: example.com at line 5"]

    def test_nested_comment_warning(self, processor):
        result = processor.parse(usercss("@description /* note */"))
        assert any(w.startswith("Metadata block contains nested comments") for w in result.warnings)

    def test_line_comment_header(self, processor):
        source = "// ==UserStyle==\n// @name Line\n// @namespace n\n// @version 1\n// ==/UserStyle==\na {}"
        result = processor.parse(source)
        assert result.errors == []
        assert result.meta.name == "Line"

    @pytest.mark.parametrize("value", [None, b"/* ==UserStyle== */", 42])
    def test_non_string_input_raises(self, processor, value):
        with pytest.raises(TypeError):
            processor.parse(value)

    def test_oversized_input(self, less_backend):
        processor = UserCSSProcessor(
            UserCSSOptions(max_file_size=10),
            engine=PreprocessorEngine(backends={"less": less_backend}),
        )
        result = processor.parse("x" * 11)
        assert result.errors == ["Source is 11 characters, exceeding the maximum of 10"]
        assert result.css == ""


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------


class TestVariables:
    BODY = "a { color: /*[[--accent|color|#000]]*/ #000; width: /*[[--w|number|10]]*/ 10px; }"

    def test_directive_wins_over_placeholder(self, processor):
        result = processor.parse(usercss('@var color accent "Accent" #336699', body=self.BODY))
        assert list(result.meta.variables) == ["--accent", "--w"]
        assert result.meta.variables["--accent"].label == "Accent"
        assert result.css == "a { color: #336699; width: 10px; }"

    def test_overrides(self, processor):
        source = usercss('@var color accent "Accent" #336699', body=self.BODY)
        result = processor.parse(source, {"w": "20", "--accent": "red"})
        assert result.meta.variables["--w"].value == "20"
        assert result.meta.variables["--w"].default == "10"
        assert result.css == "a { color: red; width: 20px; }"

    def test_unparseable_var_is_a_warning(self, processor):
        result = processor.parse(usercss('@var select theme "Theme" []'))
        assert result.warnings == ["Could not parse @var directive at line 5"]

    def test_invalid_default_is_a_warning(self, processor):
        result = processor.parse(usercss('@var range size "Size" [40, 0, 32]'))
        assert any("above its maximum" in w for w in result.warnings)

    def test_uso_dropdown_snippet(self, processor):
        source = usercss(
            '@advanced dropdown bg "Background" {',
            '    sky  "Sky*" <<<EOT url(sky.jpg) EOT;',
            '    none "None" <<<EOT none EOT;',
            "}",
            body="body { background: /*[[--bg]]*/; }",
        )
        result = processor.parse(source)
        assert result.meta.variables["--bg"].default == "sky"
        assert result.css == "body { background: url(sky.jpg); }"
        assert processor.parse(source, {"bg": "none"}).css == "body { background: none; }"

    def test_extraction_can_be_disabled(self, less_backend):
        processor = UserCSSProcessor(
            UserCSSOptions(extract_variables=False),
            engine=PreprocessorEngine(backends={"less": less_backend}),
        )
        result = processor.parse(usercss('@var color accent "Accent" #336699', body=self.BODY))
        assert result.meta.variables == {}
        assert result.css == self.BODY


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------


class TestDomains:
    def test_all_sources_are_merged(self, processor):
        source = usercss(
            '@-moz-document domain("a.com")',
            "@domain b.com, A.com",
            body='@-moz-document url-prefix("https://c.com/") { a { color: red } }',
        )
        meta = processor.parse(source).meta
        assert meta.domains == [
            DomainRule(kind="domain", pattern="a.com"),
            DomainRule(kind="domain", pattern="b.com"),
            DomainRule(kind="url-prefix", pattern="https://c.com/"),
        ]
        assert meta.domain_source == 'domain("a.com"), url-prefix("https://c.com/")'

    def test_no_rules_means_all_sites(self, processor):
        assert processor.parse(usercss()).meta.domains == []

    def test_invalid_rule_list_is_an_error(self, processor):
        result = processor.parse(usercss('@-moz-document media("print")'))
        assert result.errors == ["No valid domain rules found at line 5"]


# ---------------------------------------------------------------------------
# Preprocessing
# ---------------------------------------------------------------------------


class TestPreprocessing:
    def test_header_preprocessor_is_used(self, processor, stylus_backend):
        result = processor.parse(usercss("@preprocessor stylus", body="a\n  color red"))
        assert stylus_backend.sources == ["a\n  color red"]
        assert result.css == "compiled {}"

    def test_less_variable_definitions_are_prepended(self, processor, less_backend):
        source = usercss(
            "@preprocessor less",
            '@var color accent "Accent" #f00',
            '@var range size "Size" [12, 8, 20, 1, "px"]',
            body="a { color: @accent; }",
        )
        processor.parse(source)
        assert less_backend.sources == ["@accent: #f00;\n@size: 12px;\na { color: @accent; }"]

    def test_stylus_variable_definitions(self, processor, stylus_backend):
        source = usercss("@preprocessor stylus", '@var color accent "Accent" #f00', body="a\n  color accent")
        processor.parse(source)
        assert stylus_backend.sources == ["accent = #f00\na\n  color accent"]

    def test_weak_heuristic_is_ignored(self, processor, less_backend):
        result = processor.parse(usercss(body="a & b) {}"))
        assert less_backend.sources == []
        assert result.css == "a & b) {}"

    def test_strong_heuristic_compiles(self, processor, less_backend):
        processor.parse(usercss(body="@import 'x';\n.m() when (@a) { }"))
        assert len(less_backend.sources) == 1

    def test_unknown_header_preprocessor_is_plain_css(self, processor, less_backend):
        result = processor.parse(usercss("@preprocessor uso", body="a { b: c) }"))
        assert less_backend.sources == []
        assert result.errors == []

    def test_compile_failure_falls_back_to_source(self):
        processor = UserCSSProcessor(engine=PreprocessorEngine(backends={"less": FailingBackend()}))
        result = processor.parse(usercss("@preprocessor less", body="a { color: @x; }"))
        assert result.errors == ["Less compilation failed: Unrecognised input (Line 2)"]
        assert result.css == "a { color: @x; }"

    def test_disabled_preprocessing(self, less_backend, stylus_backend):
        processor = UserCSSProcessor(
            UserCSSOptions(enable_preprocessors=False),
            engine=PreprocessorEngine(backends={"stylus": stylus_backend}),
        )
        result = processor.parse(usercss("@preprocessor stylus", body="a\n  color red"))
        assert stylus_backend.sources == []
        assert result.warnings == ["Stylus preprocessing is disabled; CSS left unprocessed"]
        assert result.css == "a\n  color red"

    def test_repeat_parse_hits_the_cache(self, processor, less_backend):
        source = usercss("@preprocessor less", body="a { color: red; }")
        processor.parse(source)
        processor.parse(source)
        assert len(less_backend.sources) == 1

    def test_unexpected_failure_is_recorded(self):
        processor = UserCSSProcessor(engine=ExplodingEngine())
        result = processor.parse(usercss("@preprocessor less"))
        assert result.errors == ["Parsing error: boom"]
        assert result.meta.name == "Test"


# ---------------------------------------------------------------------------
# Fonts and assets
# ---------------------------------------------------------------------------


class TestFontsAndAssets:
    def test_font_faces_are_emitted_first(self, processor):
        body = (
            "body { font-family: var(--font-main); background: url(bg.png); }\n"
            "@font-face { font-family: 'X'; src: url(x.woff2) format('woff2'); }"
        )
        result = processor.parse(usercss('@var text font-main "Main font" "Open Sans"', body=body))
        assert result.css == (
            '@font-face {\n  font-family: "X";\n  src: url(x.woff2) format(\'woff2\');\n}\n\n'
            "body { font-family: 'Open Sans'; background: url(bg.png); }"
        )
        assert [(a.type, a.url) for a in result.meta.assets] == [("font", "x.woff2"), ("image", "bg.png")]
        assert result.meta.assets[0].format == "woff2"

    def test_font_face_subset_descriptors_survive_reordering(self, processor):
        body = (
            "body { color: red; }\n"
            "@font-face { font-family: 'Inter'; src: url(a.woff2) format('woff2');"
            " unicode-range: U+0000-00FF; font-stretch: 75% 125%; }"
        )
        result = processor.parse(usercss("@preprocessor default", body=body))
        assert result.css.startswith("@font-face {")
        assert "  unicode-range: U+0000-00FF;\n" in result.css
        assert "  font-stretch: 75% 125%;\n" in result.css
        assert result.css.endswith("body { color: red; }")


def test_parse_usercss_helper(processor):
    result = parse_usercss(usercss(), processor=processor)
    assert result.ok
    assert result.meta.name == "Test"
