import unittest
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_intelligence.models import Event, Response, Signal, Stopwatch
from event_intelligence.models.signal import SUMMARY_MAX_CHARS, clamp_score


class TestResponseEnvelope(unittest.TestCase):

    def test_error_response_has_no_data(self):
        resp = Stopwatch().response(error="Raw content is required")
        self.assertIsNone(resp.data)
        self.assertFalse(resp.ok)
        self.assertGreaterEqual(resp.metadata.processing_time_ms, 0)

    def test_empty_list_is_success(self):
        resp = Stopwatch().response([])
        self.assertTrue(resp.ok)
        self.assertEqual(resp.data, [])

    def test_metadata_fields_carried(self):
        resp = Stopwatch().response("x", tokens_used=12, confidence=0.7)
        self.assertEqual(resp.metadata.tokens_used, 12)
        self.assertEqual(resp.metadata.confidence, 0.7)

    def test_to_dict_serialises_dataclasses(self):
        event = Event(headline="h", description="d", date="2025-01-01", last_updated="2025-01-01")
        payload = Response(data=[event]).to_dict()
        self.assertEqual(payload["data"][0]["headline"], "h")
        self.assertIsNone(payload["error"])
        self.assertIn("processing_time_ms", payload["metadata"])


class TestRecords(unittest.TestCase):

    def test_event_cannot_carry_impact_or_horizon(self):
        event = Event(headline="h", description="d", date="x", last_updated="x")
        self.assertIsNone(event.impact)
        self.assertIsNone(event.horizon)
        self.assertEqual(event.type, "event")
        with self.assertRaises(TypeError):
            Event(headline="h", description="d", date="x", last_updated="x", impact=50)

    def test_clamp_score(self):
        self.assertEqual(clamp_score(-5), 0)
        self.assertEqual(clamp_score(140), 100)
        self.assertEqual(clamp_score(70.5), 71)
        self.assertEqual(clamp_score(69.4), 69)

    def test_signal_normalises_scores_and_summary(self):
        signal = Signal(
            title="t",
            summary="s" * 500,
            why_it_matters="w",
            related_event_ids=["e1"],
            impact_score=120.2,
            confidence_score=79.6,
        )
        self.assertEqual(signal.impact_score, 100)
        self.assertEqual(signal.confidence_score, 80)
        self.assertEqual(len(signal.summary), SUMMARY_MAX_CHARS)
        self.assertEqual(signal.priority, 8000)

    def test_signal_requires_related_events(self):
        with self.assertRaises(ValueError):
            Signal(title="t", summary="s", why_it_matters="w", related_event_ids=[], impact_score=1, confidence_score=1)


if __name__ == '__main__':
    unittest.main()
