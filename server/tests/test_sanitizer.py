import unittest

from velura.core.errors import MalformedResponseError
from velura.core.sanitizer import sanitize, strip_fences, strip_preamble


class TestSanitize(unittest.TestCase):

    def test_preamble_and_fence(self):
        raw = "Sure, here's the code:\n```json\n{\"a\":\"b\"}\n```"
        self.assertEqual(sanitize(raw), '{"a":"b"}')

    def test_plain_json_is_untouched(self):
        raw = '{"src/App.tsx": "export default function App() {}"}'
        self.assertEqual(sanitize(raw), raw)

    def test_fence_with_language_tag_case_insensitive(self):
        for tag in ("json", "JSON", "tsx", "javascript", "js", "ts", ""):
            raw = f"```{tag}\n{{\"x\": \"1\"}}\n```"
            self.assertEqual(sanitize(raw), '{"x": "1"}', tag)

    def test_preamble_inside_fence(self):
        raw = "```\nHere is the project:\n{\"x\": \"1\"}\n```"
        self.assertEqual(sanitize(raw), '{"x": "1"}')

    def test_trailing_prose_is_dropped(self):
        raw = '{"x": "1"}\n\nLet me know if you want any changes!'
        self.assertEqual(sanitize(raw), '{"x": "1"}')

    def test_surrounding_whitespace(self):
        self.assertEqual(sanitize('  \n {"x": "1"} \n '), '{"x": "1"}')

    def test_no_braces_raises(self):
        with self.assertRaises(MalformedResponseError):
            sanitize("I could not generate that project.")

    def test_only_opening_brace_raises(self):
        with self.assertRaises(MalformedResponseError):
            sanitize('{"src/App.tsx": "code')

    def test_braces_out_of_order_raise(self):
        with self.assertRaises(MalformedResponseError):
            sanitize("} nothing here {")

    def test_empty_input_raises(self):
        with self.assertRaises(MalformedResponseError):
            sanitize("")


class TestSanitizeSteps(unittest.TestCase):

    def test_only_one_preamble_removed(self):
        text = "Sure thing: Certainly: {}"
        self.assertEqual(strip_preamble(text), "Certainly: {}")

    def test_preamble_needs_prefix_position(self):
        text = '{"note": "Sure: not a preamble"}'
        self.assertEqual(strip_preamble(text), text)

    def test_strip_fences_only_outer(self):
        text = "```json\n{\"README.md\": \"```bash\\nnpm i\\n```\"}\n```"
        self.assertEqual(strip_fences(text), "{\"README.md\": \"```bash\\nnpm i\\n```\"}")


if __name__ == "__main__":
    unittest.main()
