import asyncio
import json
import unittest
from unittest.mock import AsyncMock, MagicMock
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_intelligence.models import ExtractionInput, SourceMeta
from event_intelligence.services.extraction import FactExtractor
from event_intelligence.services.inference import Completion


class TestFactExtractor(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.extracted = {
            "event_type": "Geopolitical",
            "event_subtype": "Sanctions",
            "summary": "The EU announced new sanctions on Russian LNG imports on Monday.",
            "country": None,
            "region": "Europe",
            "sector": "Energy",
            "actors": ["European Union", "Russia"],
            "confidence": 0.9,
        }
        self.inference = MagicMock()
        self.inference.complete = AsyncMock(
            return_value=Completion(text=json.dumps(self.extracted), tokens_used=42)
        )
        self.item = ExtractionInput(
            raw_content="Brussels - The EU announced new sanctions ...",
            source=SourceMeta(name="Reuters", url="https://example.com/eu", published_at="2025-06-02T10:00:00Z"),
        )

    async def test_extracts_fact_record(self):
        resp = await FactExtractor(self.inference).extract(self.item)

        self.assertIsNone(resp.error)
        event = resp.data
        self.assertEqual(event.event_type, "Geopolitical")
        self.assertEqual(event.event_subtype, "Sanctions")
        self.assertEqual(event.region, "Europe")
        self.assertEqual(event.scope, "regional")
        self.assertEqual(event.sectors, ["Energy"])
        self.assertEqual(event.actors, ["European Union", "Russia"])
        self.assertEqual(event.date, "2025-06-02T10:00:00Z")
        self.assertEqual(event.sources[0].url, "https://example.com/eu")
        self.assertEqual(event.confidence, 90)
        self.assertEqual(resp.metadata.tokens_used, 42)
        self.assertEqual(resp.metadata.confidence, 0.9)

    async def test_fact_record_has_no_interpretation(self):
        self.extracted["why_it_matters"] = "It matters a lot"
        self.extracted["impact_score"] = 0.95
        self.inference.complete.return_value = Completion(text=json.dumps(self.extracted))

        resp = await FactExtractor(self.inference).extract(self.item)

        self.assertIsNone(resp.data.impact)
        self.assertIsNone(resp.data.horizon)
        self.assertFalse(hasattr(resp.data, "why_it_matters"))

    async def test_actors_given_as_string(self):
        self.extracted["actors"] = "NATO"
        self.inference.complete.return_value = Completion(text=json.dumps(self.extracted))

        resp = await FactExtractor(self.inference).extract(self.item)

        self.assertEqual(resp.data.actors, ["NATO"])

    async def test_actors_of_unexpected_type_are_dropped(self):
        self.extracted["actors"] = {"name": "NATO"}
        self.inference.complete.return_value = Completion(text=json.dumps(self.extracted))

        resp = await FactExtractor(self.inference).extract(self.item)

        self.assertEqual(resp.data.actors, [])

    async def test_empty_content(self):
        item = ExtractionInput(raw_content="   ", source=self.item.source)
        resp = await FactExtractor(self.inference).extract(item)

        self.assertIsNone(resp.data)
        self.assertEqual(resp.error, "Raw content is required")
        self.inference.complete.assert_not_called()

    async def test_missing_inference_client(self):
        resp = await FactExtractor(None).extract(self.item)
        self.assertEqual(resp.error, "Inference client not configured")

    async def test_unparseable_response(self):
        self.inference.complete.return_value = Completion(text="Sorry, I cannot help with that.")
        resp = await FactExtractor(self.inference).extract(self.item)

        self.assertIsNone(resp.data)
        self.assertEqual(resp.error, "Failed to parse inference response")

    async def test_missing_required_fields(self):
        del self.extracted["summary"]
        self.inference.complete.return_value = Completion(text=json.dumps(self.extracted))

        resp = await FactExtractor(self.inference).extract(self.item)

        self.assertEqual(resp.error, "Invalid event data: missing required fields")

    async def test_timeout(self):
        self.inference.complete.side_effect = asyncio.TimeoutError()
        resp = await FactExtractor(self.inference).extract(self.item)
        self.assertEqual(resp.error, "Inference call timed out")

    async def test_extract_many_collects_errors(self):
        bad = ExtractionInput(raw_content="", source=self.item.source)

        resp = await FactExtractor(self.inference).extract_many([bad, self.item])

        self.assertEqual(len(resp.data), 1)
        self.assertEqual(resp.error, "Input 0: Raw content is required")
        self.assertEqual(resp.metadata.tokens_used, 42)


class TestSearchAndExtract(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.inference = MagicMock()
        self.inference.complete = AsyncMock(
            return_value=Completion(
                text=json.dumps({"event_type": "Market", "summary": "Brent rose 4% on Tuesday."}),
                tokens_used=10,
            )
        )
        self.retrieval = MagicMock()
        self.retrieval.search = AsyncMock(
            return_value={
                "answer": "Oil prices rose.",
                "results": [
                    {"title": "Oil jumps", "url": "https://example.com/1", "content": "Brent rose", "score": 0.8},
                    {"title": "Noise", "url": "https://example.com/2", "content": "unrelated", "score": 0.1},
                ],
            }
        )

    async def test_filters_low_score_hits_and_extracts(self):
        extractor = FactExtractor(self.inference, self.retrieval)

        resp = await extractor.search_and_extract("oil prices")

        self.assertEqual(len(resp.data), 1)
        self.assertEqual(resp.data[0].sources[0].name, "Oil jumps")
        self.inference.complete.assert_called_once()
        prompt = self.inference.complete.call_args.args[0]
        self.assertIn("Search summary:\nOil prices rose.", prompt)
        kwargs = self.retrieval.search.call_args.kwargs
        self.assertEqual(kwargs["query"], "oil prices")
        self.assertTrue(kwargs["include_raw_content"])
        self.assertEqual(kwargs["search_depth"], "advanced")

    async def test_no_results(self):
        self.retrieval.search.return_value = {"results": []}
        resp = await FactExtractor(self.inference, self.retrieval).search_and_extract("oil")

        self.assertEqual(resp.data, [])
        self.assertEqual(resp.error, "No results from retrieval service")

    async def test_retrieval_not_configured(self):
        resp = await FactExtractor(self.inference).search_and_extract("oil")

        self.assertEqual(resp.data, [])
        self.assertEqual(resp.error, "Retrieval client not configured")

    async def test_search_failure_is_reported(self):
        self.retrieval.search.side_effect = RuntimeError("quota exceeded")
        resp = await FactExtractor(self.inference, self.retrieval).search_and_extract("oil")

        self.assertEqual(resp.data, [])
        self.assertEqual(resp.error, "quota exceeded")


if __name__ == '__main__':
    unittest.main()
