import unittest
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_intelligence.models import CausalChain, ScoredEvent, SignalPreferences
from event_intelligence.services.synthesis import (
    UNGROUPED,
    SignalSynthesizer,
    derive_horizon,
    derive_scope,
    group_events,
)


def scored(event_id, impact, confidence, sector="Energy", region="Europe", event_type="Geopolitical", **kwargs):
    return ScoredEvent(
        id=event_id,
        summary=f"Summary of {event_id}",
        sector=sector,
        region=region,
        event_type=event_type,
        impact_score=impact,
        confidence=confidence,
        **kwargs,
    )


class TestSignalSynthesis(unittest.TestCase):

    def setUp(self):
        self.synth = SignalSynthesizer()

    def test_empty_input_is_successful_empty_result(self):
        resp = self.synth.synthesize([])
        self.assertEqual(resp.data, [])
        self.assertIsNone(resp.error)

    def test_group_merges_into_one_signal(self):
        events = [scored("e1", 0.8, 0.9), scored("e2", 0.6, 0.7)]

        resp = self.synth.synthesize(events)

        self.assertEqual(len(resp.data), 1)
        signal = resp.data[0]
        self.assertEqual(signal.related_event_ids, ["e1", "e2"])
        self.assertEqual(signal.impact_score, 70)
        self.assertEqual(signal.confidence_score, 80)
        self.assertEqual(signal.source_count, 2)
        self.assertEqual(signal.title, "Energy Geopolitical Activity")
        self.assertTrue(signal.summary.startswith("2 related geopolitical detected in Energy."))
        self.assertEqual(signal.scope, "sectorial")

    def test_strong_singleton_is_promoted(self):
        resp = self.synth.synthesize([scored("e1", 0.8, 0.8)])

        self.assertEqual(len(resp.data), 1)
        signal = resp.data[0]
        self.assertEqual(signal.title, "Energy Geopolitical")
        self.assertEqual(signal.related_event_ids, ["e1"])
        self.assertEqual(signal.impact_score, 80)
        self.assertEqual(signal.source_count, 1)

    def test_weak_singleton_is_dropped(self):
        resp = self.synth.synthesize([scored("e1", 0.5, 0.5)])
        self.assertEqual(resp.data, [])
        self.assertIsNone(resp.error)

    def test_signals_sorted_by_priority(self):
        events = [
            scored("a1", 0.5, 0.5, sector="Finance"),
            scored("a2", 0.5, 0.5, sector="Finance"),
            scored("b1", 0.9, 0.9, sector="Mining"),
            scored("c1", 0.7, 0.8, sector="Technology"),
            scored("c2", 0.7, 0.8, sector="Technology"),
        ]

        resp = self.synth.synthesize(events)

        priorities = [s.priority for s in resp.data]
        self.assertEqual(priorities, sorted(priorities, reverse=True))
        self.assertEqual(resp.data[0].related_event_ids, ["b1"])
        self.assertAlmostEqual(resp.metadata.confidence, resp.data[0].confidence_score / 100)

    def test_missing_fields_share_the_ungrouped_bucket(self):
        events = [
            scored("x1", 0.4, 0.4, sector=None, region=None, event_type=None),
            scored("x2", 0.6, 0.6, sector=None, region=None, event_type=None),
        ]

        groups = group_events(events)

        self.assertEqual(list(groups), [(UNGROUPED, UNGROUPED, UNGROUPED)])
        signal = self.synth.synthesize(events).data[0]
        self.assertEqual(signal.title, "Global Event Activity")
        self.assertEqual(signal.scope, "global")

    def test_grouping_ignores_input_order(self):
        events = [
            scored("a1", 0.8, 0.9, sector="Finance"),
            scored("b1", 0.9, 0.9, sector="Mining"),
            scored("a2", 0.6, 0.7, sector="Finance"),
            scored("c1", 0.7, 0.8, sector="Technology", region=None),
            scored("a3", 0.7, 0.8, sector="Finance"),
            scored("c2", 0.9, 0.8, sector="Technology", region=None),
        ]
        reversed_events = list(reversed(events))

        forward = group_events(events)
        backward = group_events(reversed_events)
        self.assertEqual(set(forward), set(backward))
        for key in forward:
            self.assertEqual(
                {e.id for e in forward[key]},
                {e.id for e in backward[key]},
            )

        def summarise(resp):
            return sorted(
                (frozenset(s.related_event_ids), s.impact_score, s.confidence_score)
                for s in resp.data
            )

        self.assertEqual(
            summarise(self.synth.synthesize(events)),
            summarise(self.synth.synthesize(reversed_events)),
        )

    def test_preferences_filter_minimums(self):
        events = [scored("e1", 0.8, 0.9), scored("e2", 0.6, 0.7)]
        prefs = SignalPreferences(min_impact_score=0.75)

        resp = self.synth.synthesize(events, prefs)

        self.assertEqual(resp.data, [])

    def test_generate_signal_errors(self):
        self.assertEqual(self.synth.generate_signal([]).error, "No events provided")
        self.assertEqual(
            self.synth.generate_signal([scored("e1", 0.1, 0.1)]).error,
            "No signals generated",
        )

    def test_generate_signal_returns_top(self):
        events = [scored("b1", 0.9, 0.9, sector="Mining"), scored("a1", 0.75, 0.75, sector="Finance")]
        resp = self.synth.generate_signal(events)
        self.assertEqual(resp.data.related_event_ids, ["b1"])
        self.assertEqual(resp.metadata.confidence, 0.9)


class TestDerivedFields(unittest.TestCase):

    def test_horizon(self):
        self.assertEqual(derive_horizon(scored("e", 1, 1)), "medium")
        self.assertEqual(
            derive_horizon(scored("e", 1, 1, causal_chains=[CausalChain(time_horizon="hours")])),
            "immediate",
        )
        self.assertEqual(
            derive_horizon(scored("e", 1, 1, causal_chains=[CausalChain(time_horizon="days")])),
            "short",
        )
        self.assertEqual(
            derive_horizon(scored("e", 1, 1, causal_chains=[CausalChain(time_horizon="years")])),
            "long",
        )

    def test_scope(self):
        self.assertEqual(derive_scope(scored("e", 1, 1)), "sectorial")
        self.assertEqual(derive_scope(scored("e", 1, 1, sector=None, region="EU")), "regional")
        self.assertEqual(derive_scope(scored("e", 1, 1, sector=None, region="Africa")), "global")


if __name__ == '__main__':
    unittest.main()
