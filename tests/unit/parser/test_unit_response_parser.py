# tests/unit/parser/test_unit_response_parser.py — v2
"""Tests for parser/response_parser.py — strategy cascade and merge."""

from __future__ import annotations

import pytest

from vibecode.parser.bare_mention_strategy import BareMentionStrategy
from vibecode.parser.base_strategy import ExtractionContext
from vibecode.parser.fences import scan_fences
from vibecode.parser.header_strategy import ExplicitHeaderStrategy
from vibecode.parser.response_parser import ResponseParser, accept_units, has_files, merge_units

HTML_BODY = "<!DOCTYPE html>\n<html>\n<head><title>Demo</title></head>\n<body>Hello</body>\n</html>"


@pytest.fixture
def parser() -> ResponseParser:
    return ResponseParser()


class TestExplicitHeaders:
    def test_three_header_blocks(self, parser):
        text = (
            "Here are the files.\n\n"
            "```src/a.js\nconsole.log('a file');\n```\n\n"
            "```css src/b.css\nbody { margin: 0; }\n```\n\n"
            "```html\n<!-- src/c.html -->\n" + HTML_BODY + "\n```\n"
        )
        units = parser.extract(text)
        assert [u.normalized_path for u in units] == ["a.js", "b.css", "c.html"]
        assert units[0].content == "console.log('a file');"
        assert units[1].content == "body { margin: 0; }"
        assert units[2].content == HTML_BODY
        assert {u.strategy for u in units} == {"explicit_header"}

    def test_comment_header_forms(self, parser):
        text = (
            "```javascript\n// src/app.js\nconst answer = 42;\n```\n"
            "```python\n# tools/run.py\nprint('running tool')\n```\n"
        )
        units = parser.extract(text)
        assert [u.normalized_path for u in units] == ["app.js", "tools/run.py"]
        assert units[0].content == "const answer = 42;"

    def test_placeholder_header_ignored(self, parser):
        text = "```path/to/file.js\nconsole.log('placeholder');\n```"
        assert parser.extract(text) == []


class TestMentionedPath:
    def test_mention_pairs_with_next_block(self, parser):
        text = "Create file: app/main.py\n\n```python\nprint('hello world')\n```\n"
        units = parser.extract(text)
        assert len(units) == 1
        assert units[0].normalized_path == "app/main.py"
        assert units[0].strategy == "mentioned_path"
        assert units[0].content == "print('hello world')"

    def test_mention_skips_claimed_blocks(self, parser):
        text = (
            "```src/a.js\nconsole.log('explicit');\n```\n"
            "Also the file: b.css\n"
            "```css\nbody { color: red; }\n```\n"
        )
        units = parser.extract(text)
        assert [u.normalized_path for u in units] == ["a.js", "b.css"]
        assert units[1].content == "body { color: red; }"

    def test_mention_of_explicit_path_ignored(self, parser):
        text = (
            "File: src/a.js\n"
            "```src/a.js\nconsole.log('explicit');\n```\n"
        )
        units = parser.extract(text)
        assert len(units) == 1
        assert units[0].strategy == "explicit_header"


class TestDefaultLanguage:
    def test_first_html_block_only(self, parser):
        first = HTML_BODY
        second = HTML_BODY.replace("Hello", "Second")
        text = f"Version one:\n```html\n{first}\n```\nVersion two:\n```html\n{second}\n```\n"
        units = parser.extract(text)
        assert len(units) == 1
        assert units[0].normalized_path == "index.html"
        assert units[0].content == first

    def test_short_html_ignored(self, parser):
        assert parser.extract("```html\n<p>hi</p>\n```") == []

    def test_css_and_script_defaults(self, parser):
        text = (
            "```css\nbody { margin: 0; }\n```\n"
            "```js\ndocument.title = 'default script';\n```\n"
        )
        units = parser.extract(text)
        assert [u.normalized_path for u in units] == ["style.css", "script.js"]

    def test_typescript_default(self, parser):
        text = "```ts\nexport const value: number = 42;\n```"
        assert parser.extract(text)[0].normalized_path == "script.ts"

    def test_script_named_from_hint(self, parser):
        text = "```javascript\nfunction tick() { return 1 + 1; }\n```"
        units = parser.extract(text, context_hint="Доработай src/game/engine.js, please")
        assert units[0].normalized_path == "engine.js"

    def test_english_hint_verb(self, parser):
        text = "```javascript\nfunction tick() { return 1 + 1; }\n```"
        units = parser.extract(text, context_hint="fix the utils.js loop")
        assert units[0].normalized_path == "utils.js"

    def test_no_default_script_when_js_exists(self, parser):
        text = (
            "```src/main.js\nconsole.log('main entry');\n```\n"
            "```js\nconsole.log('loose snippet here');\n```\n"
        )
        units = parser.extract(text)
        assert [u.normalized_path for u in units] == ["main.js"]


class TestBareMention:
    def test_bare_mention_fallback(self, parser):
        text = "Update notes.md with this:\n```\n# Notes\nSome text here.\n```\n"
        units = parser.extract(text)
        assert len(units) == 1
        assert units[0].normalized_path == "notes.md"
        assert units[0].strategy == "bare_mention"

    def test_skipped_when_other_units_exist(self):
        text = "See extra.md\n```\nlonger bare content\n```"
        context = ExtractionContext(blocks=scan_fences(text))
        context.units.append(
            ExplicitHeaderStrategy()._unit("a.js", "a.js", "x" * 20, context.blocks[0])
        )
        assert BareMentionStrategy().extract(text, context) == []


class TestMerge:
    def test_explicit_wins_over_bare_mention(self):
        text = (
            "Put this in src/a.js:\n"
            "```js\nconsole.log('from bare mention');\n```\n"
            "```src/a.js\nconsole.log('from explicit header');\n```\n"
        )
        blocks = scan_fences(text)
        explicit = ExplicitHeaderStrategy().extract(text, ExtractionContext(blocks=blocks))
        bare = BareMentionStrategy().extract(text, ExtractionContext(blocks=blocks))
        assert explicit and bare
        assert bare[0].normalized_path == "a.js"

        merged = merge_units([explicit, bare])
        assert len(merged) == 1
        assert merged[0].content == "console.log('from explicit header');"
        assert merged[0].strategy == "explicit_header"

    def test_short_content_dropped(self):
        text = "```src/a.js\nx = 1;\n```"
        units = ExplicitHeaderStrategy().extract(text, ExtractionContext(blocks=scan_fences(text)))
        assert accept_units(units, min_content_chars=10) == []
        assert len(accept_units(units, min_content_chars=1)) == 1

    def test_merge_keeps_short_units(self):
        text = "```src/a.js\nx = 1;\n```"
        units = ExplicitHeaderStrategy().extract(text, ExtractionContext(blocks=scan_fences(text)))
        assert merge_units([units]) == units


class TestDiscardedUnits:
    def test_short_header_block_does_not_block_language_default(self, parser):
        text = (
            "```html\n<!-- src/index.html -->\n<p>\n```\n\n"
            "```html\n" + HTML_BODY + "\n```\n"
        )
        units = parser.extract(text)
        assert [u.normalized_path for u in units] == ["index.html"]
        assert units[0].strategy == "default_language"
        assert units[0].content == HTML_BODY

    def test_short_header_block_does_not_block_bare_mention(self, parser):
        text = (
            "```src/a.js\nx;\n```\n"
            "Update notes.md with this:\n```\n# Notes\nSome text here.\n```\n"
        )
        units = parser.extract(text)
        assert [u.normalized_path for u in units] == ["notes.md"]
        assert units[0].strategy == "bare_mention"


class TestRootSegment:
    def test_configured_root_stripped(self):
        text = "```app/main.js\nconsole.log('hello world');\n```"
        units = ResponseParser(root_segment="app").extract(text)
        assert [u.normalized_path for u in units] == ["main.js"]

    def test_default_root_kept_for_other_target(self):
        text = "```src/main.js\nconsole.log('hello world');\n```"
        units = ResponseParser(root_segment="app").extract(text)
        assert [u.normalized_path for u in units] == ["src/main.js"]


class TestEdgeCases:
    def test_no_fences(self, parser):
        assert parser.extract("Sure! I would create index.html for you.") == []

    def test_empty_response(self, parser):
        assert parser.extract("") == []
        assert parser.extract(None) == []

    def test_crlf_response(self, parser):
        text = "```src/a.js\r\nconsole.log('windows');\r\n```\r\n"
        units = parser.extract(text)
        assert units[0].content == "console.log('windows');"

    def test_unique_paths(self, parser):
        text = (
            "```src/a.js\nconsole.log('first one');\n```\n"
            "```a.js\nconsole.log('second one');\n```\n"
        )
        units = parser.extract(text)
        assert len(units) == 1
        assert units[0].content == "console.log('first one');"


class TestHasFiles:
    def test_true(self):
        assert has_files("File: a.js\n```js\nx\n```")

    def test_no_fence(self):
        assert not has_files("just prose about index.html")

    def test_no_mention(self):
        assert not has_files("```\nplain\n```")

    def test_empty(self):
        assert not has_files(None)
