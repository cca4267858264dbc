import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from compaction import (
    BRACES,
    GENERIC,
    IDENTITY,
    SCENE,
    CompactionPolicy,
    CompressionLevel,
    ContentProcessor,
    MissingFileError,
    classify,
    compact_braces,
    compact_generic,
    compact_text,
    normalize_newlines,
    opens_comment,
    read_and_process,
    select,
)


class TestCompressionLevel(unittest.TestCase):
    def test_parse_accepts_names_and_alias(self) -> None:
        self.assertIs(CompressionLevel.parse("Smart"), CompressionLevel.SMART)
        self.assertIs(CompressionLevel.parse("max"), CompressionLevel.MAXIMUM)
        self.assertIs(CompressionLevel.parse(CompressionLevel.NONE), CompressionLevel.NONE)

    def test_parse_rejects_unknown(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            CompressionLevel.parse("ultra")
        self.assertIn("smart", str(ctx.exception))

    def test_classify(self) -> None:
        self.assertEqual(classify("Assets/Main.unity").kind, "scene")
        self.assertEqual(classify("src/Player.CS").kind, "braces")
        self.assertEqual(classify("README.md").kind, "text")
        py = classify("tool.py")
        self.assertEqual(py.kind, "code")
        self.assertTrue(py.whitespace_sensitive)
        self.assertFalse(classify("schema.sql").whitespace_sensitive)


class TestGenericCompaction(unittest.TestCase):
    def test_smart_collapses_blank_runs(self) -> None:
        text = "a\n\n\n\n\nb"
        self.assertEqual(compact_generic(text, aggressive=False), "a\n\nb")

    def test_smart_keeps_single_blank_line_and_trims(self) -> None:
        text = "\n\n  a\n\nb  \n\n"
        self.assertEqual(compact_generic(text, aggressive=False), "a\n\nb")

    def test_smart_whitespace_sensitive_keeps_indent(self) -> None:
        text = "\n\n    indented()\n"
        self.assertEqual(
            compact_generic(text, aggressive=False, whitespace_sensitive=True),
            "    indented()",
        )

    def test_aggressive_drops_comments_and_blanks(self) -> None:
        text = "a = 1\n\n# note\n/* block\ncomment */\n// line\n   b = 2   "
        self.assertEqual(compact_generic(text, aggressive=True), "a = 1\nb = 2")

    def test_aggressive_preserves_indentation_when_sensitive(self) -> None:
        text = "def f():\n    # comment\n    return 1\n"
        self.assertEqual(
            compact_generic(text, aggressive=True, whitespace_sensitive=True, ext=".py"),
            "def f():\n    return 1",
        )

    def test_aggressive_uses_extension_markers(self) -> None:
        text = "-- header\nSELECT 1;\n<!-- kept -->"
        self.assertEqual(compact_generic(text, aggressive=True, ext=".sql"), "SELECT 1;\n<!-- kept -->")
        markup = "<a>\n<!-- gone -->\n</a>"
        self.assertEqual(compact_generic(markup, aggressive=True, ext=".xml"), "<a>\n</a>")

    def test_idempotent(self) -> None:
        samples = [
            "x\n\n\n\ny\n",
            "a // b\n/* c */\n\n  d\n#e\n",
            "//* a */* b */\nvalue\n",
            "    keep()\n\n\n\n  # gone\n",
        ]
        for text in samples:
            for aggressive in (False, True):
                for sensitive in (False, True):
                    once = compact_generic(text, aggressive=aggressive, whitespace_sensitive=sensitive)
                    twice = compact_generic(once, aggressive=aggressive, whitespace_sensitive=sensitive)
                    self.assertEqual(once, twice, (text, aggressive, sensitive))


class TestBraceCompaction(unittest.TestCase):
    def test_merges_lone_brace(self) -> None:
        text = "public class A\n{\n    void F()\n    {\n    }\n}\n"
        self.assertEqual(compact_braces(text), "public class A {\nvoid F() {\n}\n}")

    def test_does_not_merge_into_line_comment(self) -> None:
        text = "if (x) // check\n{\n    y();\n}"
        self.assertEqual(compact_braces(text), "if (x) // check\n{\ny();\n}")

    def test_does_not_merge_into_open_block_comment(self) -> None:
        text = "/* start\n{\nend */"
        self.assertEqual(compact_braces(text), "/* start\n{\nend */")

    def test_leading_brace_stays(self) -> None:
        self.assertEqual(compact_braces("\n{\n}"), "{\n}")

    def test_strip_comments_policy(self) -> None:
        text = "// header\nclass A // tail\n{\n/* doc */\n}"
        self.assertEqual(compact_braces(text, strip_comments=True), "class A // tail\n{\n}")

    def test_merge_example_lines(self) -> None:
        out = compact_braces("\n".join(["void Foo()", "{", "  return;", "}"])).split("\n")
        self.assertEqual(out, ["void Foo() {", "return;", "}"])
        guarded = compact_braces("\n".join(["x(); // note", "{"])).split("\n")
        self.assertEqual(guarded, ["x(); // note", "{"])

    def test_php_hash_comment_guards_merge(self) -> None:
        self.assertEqual(compact_text("foo(); # note\n{\n}", "index.php", "maximum"), "foo(); # note\n{\n}")
        self.assertEqual(compact_text("foo(); // note\n{\n}", "index.php", "maximum"), "foo(); // note\n{\n}")
        self.assertEqual(compact_text("if (a)\n{\n}", "index.php", "maximum"), "if (a) {\n}")

    def test_opens_comment(self) -> None:
        self.assertTrue(opens_comment("x(); // note"))
        self.assertTrue(opens_comment("x(); /* open"))
        self.assertFalse(opens_comment("x(); /* closed */"))
        self.assertFalse(opens_comment("void F()"))


class TestSelector(unittest.TestCase):
    def test_none_is_identity(self) -> None:
        for path in ("a.cs", "b.unity", "c.py", "d.md"):
            strategy = select(CompressionLevel.NONE, path)
            self.assertEqual(strategy.kind, IDENTITY)
            self.assertEqual(strategy.apply("  raw \n\n\n"), "  raw \n\n\n")

    def test_smart_is_generic_for_everything(self) -> None:
        for path in ("a.cs", "b.unity", "c.py"):
            strategy = select(CompressionLevel.SMART, path)
            self.assertEqual(strategy.kind, GENERIC)
            self.assertFalse(strategy.aggressive)

    def test_maximum_table(self) -> None:
        self.assertEqual(select("maximum", "Level.prefab").kind, SCENE)
        self.assertEqual(select("maximum", "Level.tscn").describe(), "scene:godot")
        self.assertEqual(select("maximum", "Player.cs").kind, BRACES)
        self.assertEqual(select("maximum", "notes.md").describe(), "generic:smart")
        self.assertEqual(select("maximum", "tool.py").describe(), "generic:aggressive")
        self.assertTrue(select("maximum", "tool.py").whitespace_sensitive)

    def test_unknown_extension_is_aggressive_generic(self) -> None:
        strategy = select(CompressionLevel.MAXIMUM, "data.unknownext")
        self.assertEqual(strategy.kind, GENERIC)
        self.assertTrue(strategy.aggressive)

    def test_maximum_indentation(self) -> None:
        self.assertEqual(compact_text("    x = 1\n", "a.py", "maximum"), "    x = 1")
        self.assertEqual(compact_text("    x = 1\n", "a.lua", "maximum"), "x = 1")

    def test_deterministic(self) -> None:
        self.assertEqual(select("maximum", "x/y.cs"), select("maximum", "x/y.cs"))

    def test_policy_reaches_brace_strategy(self) -> None:
        strategy = select("maximum", "a.java", CompactionPolicy(strip_brace_comments=True))
        self.assertTrue(strategy.strip_comments)


class TestProcessor(unittest.TestCase):
    def test_normalize_newlines(self) -> None:
        self.assertEqual(normalize_newlines("a\r\nb\rc\n"), "a\nb\nc\n")

    def test_compact_text_normalizes_first(self) -> None:
        self.assertEqual(compact_text("a\r\n\r\n\r\n\r\nb", "x.txt", "smart"), "a\n\nb")

    def test_fallback_on_strategy_error(self) -> None:
        broken = MagicMock()
        broken.apply.side_effect = RuntimeError("boom")
        broken.describe.return_value = "broken"
        warnings = []
        processor = ContentProcessor("maximum", warnings=warnings)
        with patch("compaction.processor.select", return_value=broken):
            result = processor.process("a.cs", "x\r\ny")
        self.assertEqual(result.text, "x\ny")
        self.assertTrue(result.fell_back)
        self.assertEqual(len(warnings), 1)
        self.assertIn("boom", warnings[0])

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            missing = Path(temp_dir) / "gone.cs"
            with self.assertRaises(MissingFileError) as ctx:
                read_and_process(missing, "maximum")
            self.assertEqual(ctx.exception.path, str(missing))
            self.assertIsInstance(ctx.exception, FileNotFoundError)

    def test_reads_and_strips_bom(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "a.cs"
            path.write_bytes("\ufeffclass A\r\n{\r\n}\r\n".encode("utf-8"))
            self.assertEqual(read_and_process(path, "maximum"), "class A {\n}")


if __name__ == "__main__":
    unittest.main()
