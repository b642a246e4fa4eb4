import re
import unittest
from pathlib import Path
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

PACKAGE = Path(__file__).resolve().parent.parent / "event_intelligence"


def mentions(path, pattern):
    return re.search(pattern, path.read_text(encoding="utf-8"), flags=re.IGNORECASE | re.MULTILINE) is not None


class TestModuleBoundaries(unittest.TestCase):

    def test_only_extraction_service_uses_retrieval(self):
        offenders = [
            p.name
            for p in (PACKAGE / "services").glob("*.py")
            if p.name != "extraction.py" and mentions(p, r"tavily")
        ]
        self.assertEqual(offenders, [])

    def test_retrieval_factory_is_not_reexported(self):
        self.assertFalse(mentions(PACKAGE / "clients" / "__init__.py", r"^from \.tavily_client"))

    def test_synthesis_is_pure(self):
        source = PACKAGE / "services" / "synthesis.py"
        self.assertFalse(mentions(source, r"^from \.inference|^import (openai|tavily|pymongo)"))
        self.assertFalse(mentions(source, r"\basync def\b"))


if __name__ == '__main__':
    unittest.main()
