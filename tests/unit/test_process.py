"""Tests for the per-file transform and the batch runner."""
from pathlib import Path
from unittest.mock import patch
from cjs2esm.config import RewriteConfig
from cjs2esm.process import format_progress, transform, update_files
from cjs2esm.report import Reason, WarningSink


class TestTransform:
    def test_untouched_without_commonjs(self):
        content = "import a from 'a';\nexport const b = a;\n"
        assert transform(content, sink=WarningSink(silent=True)) is content

    def test_imports_then_exports(self):
        content = (
            "const path = require('path');\n"
            "\n"
            "function resolve(p) {\n"
            "  return path.resolve(p);\n"
            "}\n"
            "\n"
            "module.exports = { resolve };\n"
        )
        assert transform(content, sink=WarningSink(silent=True)) == (
            "import * as path from 'path';\n"
            "\n"
            "export function resolve(p) {\n"
            "  return path.resolve(p);\n"
            "}\n"
        )

    def test_reexported_require_is_reported_not_rewritten(self):
        sink = WarningSink(silent=True)
        content = "module.exports = require('./dep');\n"
        assert transform(content, sink=sink) == content
        assert sink.reasons == [Reason.EXPORTS_REQUIRE]

    def test_config_is_applied(self):
        config = RewriteConfig(quote='"', strip_js_extension=False)
        content = "const { a } = require('./a.js');\nexports.b = a;\n"
        updated = transform(content, config=config, sink=WarningSink(silent=True))
        assert updated.startswith('import { a } from "./a.js";\n')

    def test_progress_line(self):
        assert format_progress(3, 12, "a.js") == "( 3/12)  25% - a.js"
        assert format_progress(1, 1, "b.js") == "(1/1) 100% - b.js"


class TestUpdateFiles:
    def _files(self, root: Path):
        (root / "a.js").write_text("const x = require('./x');\nmodule.exports = { x };\n")
        (root / "b.js").write_text("export const y = 1;\n")
        return [str(root / "a.js"), str(root / "b.js")]

    def test_rewrites_changed_files_only(self, tmp_path, capsys):
        paths = self._files(tmp_path)
        stats = update_files(paths, sink=WarningSink(silent=True))
        assert stats["total"] == 2
        assert stats["current"] == 2
        assert stats["changed"] == [paths[0]]
        assert stats["failed"] == []
        assert (tmp_path / "a.js").read_text() == "export * as x from './x';\n"
        assert "(2/2) 100%" in capsys.readouterr().out

    def test_dry_run_writes_nothing(self, tmp_path):
        paths = self._files(tmp_path)
        before = (tmp_path / "a.js").read_text()
        stats = update_files(paths, dry_run=True, sink=WarningSink(silent=True))
        assert stats["changed"] == [paths[0]]
        assert (tmp_path / "a.js").read_text() == before

    def test_failure_is_isolated(self, tmp_path, capsys):
        paths = self._files(tmp_path)
        with patch("cjs2esm.process.transform", side_effect=ValueError("boom")):
            stats = update_files(paths, sink=WarningSink(silent=True))
        assert stats["failed"] == paths
        assert stats["changed"] == []
        assert f"Warning: skipped {paths[0]}: boom" in capsys.readouterr().err
