import unittest
from unittest.mock import patch, AsyncMock, MagicMock
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_intelligence.config import PipelineConfig
from event_intelligence.models import Event, ScoredEvent, Response
from event_intelligence.services.alerts import AlertDetector
from event_intelligence.services.synthesis import SignalSynthesizer
from event_intelligence.workflows.intelligence_pipeline import Pipeline, build_pipeline, run


class TestIntelligencePipeline(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.event = Event(headline="h", description="d", date="2025-01-01", last_updated="2025-01-01")
        self.scored = [
            ScoredEvent(id="e1", summary="s1", sector="Energy", region="EU", event_type="Market", impact_score=0.9, confidence=0.8),
            ScoredEvent(id="e2", summary="s2", sector="Energy", region="EU", event_type="Market", impact_score=0.8, confidence=0.8),
        ]

        self.extractor = MagicMock()
        self.extractor.search_and_extract = AsyncMock(return_value=Response(data=[self.event]))
        self.pressure = MagicMock()
        self.pressure.extract = AsyncMock(return_value=MagicMock())
        self.store = MagicMock()
        for name in ("store_events", "store_signals", "store_alerts", "store_pressure_features"):
            setattr(self.store, name, AsyncMock(return_value=1))
        self.store.load_scored_events = AsyncMock(return_value=self.scored)

        self.pipeline = Pipeline(
            extractor=self.extractor,
            synthesizer=SignalSynthesizer(),
            alerts=AlertDetector(None),
            pressure=self.pressure,
            store=self.store,
        )

    async def test_full_run(self):
        stats = await run("energy markets", pipeline=self.pipeline)

        self.assertEqual(stats.events_extracted, 1)
        self.assertEqual(stats.signals, 1)
        self.assertEqual(stats.alerts, 1)
        self.assertEqual(stats.pressure_features, 1)
        self.store.store_events.assert_called_once_with([self.event])
        self.store.store_signals.assert_called_once()
        self.store.store_alerts.assert_called_once()

        signal, related = self.pressure.extract.call_args.args
        self.assertEqual(signal.related_event_ids, ["e1", "e2"])
        self.assertEqual([r.summary for r in related], ["s1", "s2"])

    async def test_no_signals_stops_early(self):
        self.store.load_scored_events.return_value = []

        stats = await run("energy markets", pipeline=self.pipeline)

        self.assertEqual(stats.signals, 0)
        self.store.store_signals.assert_not_called()
        self.store.store_alerts.assert_not_called()
        self.pressure.extract.assert_not_called()

    async def test_extraction_error_does_not_abort_run(self):
        self.extractor.search_and_extract.return_value = Response(data=[], error="No results from retrieval service")

        stats = await run("energy markets", pipeline=self.pipeline)

        self.assertTrue(stats.extraction_failed)
        self.store.store_events.assert_not_called()
        self.assertEqual(stats.signals, 1)

    async def test_failed_pressure_extraction_not_stored(self):
        self.pressure.extract.return_value = None

        stats = await run("energy markets", pipeline=self.pipeline)

        self.assertEqual(stats.pressure_features, 0)
        self.store.store_pressure_features.assert_not_called()


class TestBuildPipeline(unittest.TestCase):

    @patch('event_intelligence.workflows.intelligence_pipeline.create_mongo_client')
    @patch('event_intelligence.workflows.intelligence_pipeline.create_tavily_client')
    @patch('event_intelligence.workflows.intelligence_pipeline.create_openai')
    def test_retrieval_client_only_reaches_extraction(self, mock_openai, mock_tavily, mock_mongo):
        tavily = MagicMock(name="tavily")
        mock_tavily.return_value = tavily
        mock_openai.return_value = MagicMock(name="openai")

        pipeline = build_pipeline(PipelineConfig(openai_api_key="k", tavily_api_key="t", mongodb_uri="mongodb://x"))

        self.assertIs(pipeline.extractor._retrieval, tavily)
        for stage in (pipeline.synthesizer, pipeline.alerts, pipeline.pressure, pipeline.store):
            self.assertNotIn(tavily, vars(stage).values())
        self.assertIsNotNone(pipeline.alerts._inference)

    @patch('event_intelligence.workflows.intelligence_pipeline.create_mongo_client')
    @patch('event_intelligence.workflows.intelligence_pipeline.create_tavily_client')
    @patch('event_intelligence.workflows.intelligence_pipeline.create_openai')
    def test_missing_keys_degrade(self, mock_openai, mock_tavily, mock_mongo):
        mock_openai.return_value = None
        mock_tavily.return_value = None

        pipeline = build_pipeline(PipelineConfig(mongodb_uri="mongodb://x"))

        self.assertIsNone(pipeline.extractor._inference)
        self.assertIsNone(pipeline.extractor._retrieval)
        self.assertIsNone(pipeline.pressure._inference)


if __name__ == '__main__':
    unittest.main()
