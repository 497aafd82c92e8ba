"""
Test file for the configuration store demo (cf_demo.py).
"""

import io
import os
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout

import cf_demo


class TestCFDemo(unittest.TestCase):
    """Run the demo in a temporary directory."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def run_demo(self, *args):
        out = io.StringIO()
        with redirect_stdout(out):
            code = cf_demo.main(["--workdir", self.tmpdir, *args])
        return code, out.getvalue()

    def test_demo_output(self):
        code, output = self.run_demo()
        self.assertEqual(code, 0)
        self.assertIn("Set publisher = This should cause an error: no more entries --> ERROR", output)
        self.assertIn("Set lent = true", output)
        self.assertIn("Year      >> 1977", output)
        self.assertIn("Pages     >> 150", output)
        self.assertIn("Summary   >> This book, blah, blah, blah...", output)
        self.assertIn("Lent      >> Yes", output)
        self.assertIn("Publisher >> n/a", output)
        self.assertIn("To        >> None", output)
        self.assertTrue(output.rstrip().endswith("Done"))

    def test_demo_writes_file(self):
        self.run_demo()
        with open(os.path.join(self.tmpdir, "test.cf"), "r", encoding="utf-8") as f:
            text = f.read()
        self.assertEqual(text, (
            "title = That's cool!\n"
            "author = Jim Brown\n"
            "year = 1977\n"
            "pages = 150\n"
            'summary = "This book, blah, blah, blah..."\n'
            "lent = true\n"
        ))

    def test_demo_bad_workdir(self):
        missing = os.path.join(self.tmpdir, "missing")
        out = io.StringIO()
        with redirect_stdout(out):
            code = cf_demo.main(["--workdir", missing])
        self.assertEqual(code, 1)
        self.assertIn("ERROR:", out.getvalue())


if __name__ == "__main__":
    unittest.main()
