import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobcoach.utils.text import clamp, format_file_size, is_within_size, safe_filename, sanitize_text, truncate_text


class TextUtilsTests(unittest.TestCase):
    def test_truncate_text(self):
        self.assertEqual(truncate_text("short", 10), "short")
        self.assertEqual(truncate_text("abcdefghij", 4), "abcd...")

    def test_sanitize_removes_script_blocks(self):
        self.assertEqual(sanitize_text("Hi <SCRIPT>steal()</SCRIPT>there"), "Hi there")

    def test_format_file_size(self):
        self.assertEqual(format_file_size(0), "0 Bytes")
        self.assertEqual(format_file_size(512), "512 Bytes")
        self.assertEqual(format_file_size(1536), "1.5 KB")
        self.assertEqual(format_file_size(5 * 1024 * 1024), "5 MB")

    def test_clamp(self):
        self.assertEqual(clamp(120, 0, 100), 100)
        self.assertEqual(clamp(-3, 0, 100), 0)
        self.assertEqual(clamp(42, 0, 100), 42)

    def test_is_within_size(self):
        self.assertFalse(is_within_size(0))
        self.assertTrue(is_within_size(5 * 1024 * 1024))
        self.assertFalse(is_within_size(5 * 1024 * 1024 + 1))

    def test_safe_filename(self):
        self.assertEqual(safe_filename("../My CV (final).pdf"), "My_CV_final_.pdf")
        self.assertEqual(safe_filename("..."), "upload")


if __name__ == "__main__":
    unittest.main()
