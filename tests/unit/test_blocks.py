"""Tests for the experimental object-literal reader."""
import pytest
from cjs2esm.blocks import BlockParser, LineKind, classify_line, detect_unit
from cjs2esm.module_exports import Assignment, get_global_exports
from cjs2esm.report import ExportStructureError, Reason, WarningSink


def _experimental(content):
    sink = WarningSink(silent=True)
    return get_global_exports(content, True, sink), sink


class TestLineClassification:
    def test_kinds(self):
        assert classify_line("") is LineKind.BLANK
        assert classify_line("  return 1;") is LineKind.CONTINUATION
        assert classify_line("// note") is LineKind.LINE_COMMENT
        assert classify_line("/** doc") is LineKind.COMMENT_START
        assert classify_line("},") is LineKind.BLOCK_END
        assert classify_line("key: value,") is LineKind.MEMBER

    def test_detect_unit(self):
        assert detect_unit(["", "\tkey,"]) == "\t"
        with pytest.raises(ExportStructureError):
            detect_unit(["key,"])


class TestBlockParser:
    def test_single_line_call(self):
        exports, sink = _experimental(
            "Object.assign(module.exports, { identifiedAuthenticator: buildIdentifiedAuthenticator() });"
        )
        assert exports.assignments == [Assignment("identifiedAuthenticator", "buildIdentifiedAuthenticator()")]
        assert exports.exported_properties == []
        assert sink.messages == []

    def test_members_with_inline_comments(self):
        content = (
            "Object.assign(module.exports, {\n"
            "    identifiedAuthenticator: someConstructor(), // Some comment \n"
            "    someConstant                                // comment\n"
            "});\n"
        )
        exports, _ = _experimental(content)
        assert exports.assignments == [Assignment("identifiedAuthenticator", "someConstructor()")]
        assert exports.exported_properties == ["someConstant"]

    def test_multiline_function_value(self):
        content = (
            "Object.assign(module.exports, {\n"
            "    str: \"hello\",\n"
            "    multilineFn: async function (){\n"
            "        // some code,\n"
            "        return {\n"
            "            someKey: \"value\",\n"
            "            global\n"
            "        }\n"
            "    }\n"
            "});\n"
        )
        exports, _ = _experimental(content)
        assert exports.assignments == [
            Assignment("str", '"hello"'),
            Assignment(
                "multilineFn",
                'async function (){\n    // some code,\n    return {\n        someKey: "value",\n        global\n    }\n}',
            ),
        ]

    def test_methods_are_normalized(self):
        content = (
            "module.exports = {\n"
            "    myInlineFunc () { return true },\n"
            "    async myMultilineFunc(file) {\n"
            "       // code\n"
            "    }\n"
            "};\n"
        )
        exports, _ = _experimental(content)
        assert exports.assignments == [
            Assignment("myInlineFunc", "function myInlineFunc() { return true }"),
            Assignment("myMultilineFunc", "async function myMultilineFunc(file) {\n   // code\n}"),
        ]

    def test_comments_attach_to_next_assignment(self):
        content = (
            "module.exports = {\n"
            "  /**\n"
            "   * Build it\n"
            "   */\n"
            "  build: make(),\n"
            "  // plain\n"
            "  other: make(),\n"
            "};\n"
        )
        exports, _ = _experimental(content)
        assert exports.assignments == [
            Assignment("build", "make()", "/**\n * Build it\n */"),
            Assignment("other", "make()", "// plain"),
        ]

    def test_trailing_comma_and_comment_after_block(self):
        content = (
            "module.exports = {\n"
            "  handler: (req) => {\n"
            "    return req;\n"
            "  }, // done\n"
            "  later,\n"
            "};\n"
        )
        exports, _ = _experimental(content)
        assert exports.assignments == [Assignment("handler", "(req) => {\n  return req;\n}")]
        assert exports.exported_properties == ["later"]


class TestStructureErrors:
    def test_invalid_tabulation(self):
        content = "module.exports = {\n    a: f(),\n  b: g(),\n};\n"
        exports, sink = _experimental(content)
        assert exports.raw is None
        assert sink.reasons == [Reason.EXPORTS_INVALID_TABULATION]

    def test_no_tabulation(self):
        _, sink = _experimental("module.exports = {\na: f(),\n};\n")
        assert sink.reasons == [Reason.EXPORTS_NO_TABULATION]

    def test_member_inside_open_block(self):
        content = "module.exports = {\n  a: f(\n  b: 1,\n  ),\n};\n"
        _, sink = _experimental(content)
        assert sink.reasons == [Reason.EXPORTS_UNTERMINATED]

    def test_parser_raises(self):
        with pytest.raises(ExportStructureError) as info:
            BlockParser("\n  a: f(\n").parse()
        assert info.value.unsupported.reason is Reason.EXPORTS_UNTERMINATED
