import unittest
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_intelligence.utils import (
    extract_structured_json,
    find_first_json_object,
    limit_words,
    sanitize_llm_text,
    strip_think_blocks,
)


class TestExtractStructuredJson(unittest.TestCase):

    def test_plain_object(self):
        self.assertEqual(extract_structured_json('{"a": 1}'), {"a": 1})

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"event_type": "Market", "summary": "x"}\n```\nThanks'
        self.assertEqual(extract_structured_json(text)["event_type"], "Market")

    def test_object_embedded_in_prose(self):
        text = 'Result -> {"summary": "A {curly} value", "n": 2} trailing words'
        self.assertEqual(extract_structured_json(text), {"summary": "A {curly} value", "n": 2})

    def test_think_preamble_is_dropped(self):
        text = '<think>{"draft": true}</think>{"final": true}'
        self.assertEqual(extract_structured_json(text), {"final": True})

    def test_top_level_array_is_rejected(self):
        with self.assertRaises(ValueError):
            extract_structured_json('[1, 2, 3]')

    def test_no_json_raises(self):
        with self.assertRaises(ValueError):
            extract_structured_json("I could not find anything")

    def test_find_first_json_object_skips_unbalanced_prefix(self):
        self.assertEqual(find_first_json_object('{ broken {"ok": 1}'), '{"ok": 1}')


class TestTextCleaning(unittest.TestCase):

    def test_strip_think_blocks_removes_fences(self):
        self.assertEqual(strip_think_blocks("```json\n{}\n```"), "{}")

    def test_limit_words(self):
        self.assertEqual(limit_words("one two three", 5), "one two three")
        self.assertEqual(limit_words("one two three four", 2), "one two…")

    def test_sanitize_removes_citations_and_markdown(self):
        text = "## Heading\n- **Bold** claim [1] from [Reuters]"
        cleaned = sanitize_llm_text(text, remove_markdown=True)
        self.assertNotIn("[1]", cleaned)
        self.assertNotIn("[Reuters]", cleaned)
        self.assertNotIn("**", cleaned)
        self.assertNotIn("#", cleaned)


if __name__ == '__main__':
    unittest.main()
