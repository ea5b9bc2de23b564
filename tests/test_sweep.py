import sys
import os
import unittest
import numpy as np

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from horizon.orientation import Reading
from horizon.sweep import (
    AggregationPolicy, RecordingSession, Sweep, aggregate, finish, is_full_rotation,
)


def feed(session, pairs, auto_stop=True):
    for azimuth, elevation in pairs:
        session = aggregate(session, Reading(azimuth, elevation), auto_stop=auto_stop)
    return session


class TestFirstWriteWins(unittest.TestCase):
    def test_first_elevation_is_kept(self):
        session = feed(RecordingSession.start(), [(10, 5), (10, 9), (20, 5)])
        self.assertEqual(session.sweep.entries(), [(10, 5), (20, 5)])
        self.assertEqual(session.sweep.get(10), 5)

    def test_keys_are_rounded(self):
        sweep = Sweep(AggregationPolicy.FIRST_WRITE_WINS)
        self.assertEqual(sweep.key_for(10.4), 10)
        self.assertEqual(sweep.key_for(10.5), 11)
        self.assertEqual(sweep.key_for(359.6), 0)
        self.assertTrue(sweep.add(Reading(10.4, 1)))
        self.assertFalse(sweep.add(Reading(9.6, 2)))
        self.assertEqual(sweep.get(10), 1)

    def test_entries_strictly_increasing(self):
        rng = np.random.default_rng(7)
        sweep = Sweep()
        for az, el in zip(rng.uniform(0, 360, 2000), rng.integers(-10, 30, 2000)):
            sweep.add(Reading(float(az), int(el)))
        keys = [az for az, _ in sweep.entries()]
        self.assertLessEqual(len(keys), 360)
        self.assertTrue(all(a < b for a, b in zip(keys, keys[1:])))
        self.assertEqual(len(sweep), len(keys))


class TestConsecutiveChange(unittest.TestCase):
    def test_suppresses_only_consecutive_duplicates(self):
        session = RecordingSession.start(AggregationPolicy.CONSECUTIVE_CHANGE)
        session = feed(session, [(10.2, 1), (10.8, 2), (11.1, 3), (10.5, 4)])
        self.assertEqual(session.sweep.entries(), [(10, 1), (11, 3), (10, 4)])

    def test_keys_are_truncated(self):
        sweep = Sweep(AggregationPolicy.CONSECUTIVE_CHANGE)
        self.assertEqual(sweep.key_for(10.9), 10)
        self.assertEqual(sweep.key_for(359.9), 359)

    def test_policy_parse(self):
        self.assertIs(AggregationPolicy.parse("first"), AggregationPolicy.FIRST_WRITE_WINS)
        self.assertIs(AggregationPolicy.parse("FIRST_WRITE_WINS"), AggregationPolicy.FIRST_WRITE_WINS)
        self.assertIs(AggregationPolicy.parse("consecutive"), AggregationPolicy.CONSECUTIVE_CHANGE)
        with self.assertRaises(ValueError):
            AggregationPolicy.parse("last")


class TestSession(unittest.TestCase):
    def test_inactive_session_ignores_readings(self):
        session = RecordingSession()
        self.assertIs(aggregate(session, Reading(10, 1)), session)
        self.assertEqual(len(session.sweep), 0)

    def test_last_azimuth_tracks_readings(self):
        session = feed(RecordingSession.start(), [(10.25, 1), (12.75, 2)])
        self.assertEqual(session.last_azimuth, 12.75)
        self.assertTrue(session.active)

    def test_wrap_stops_without_storing(self):
        session = feed(RecordingSession.start(), [(200, 1), (310, 2), (40, 3)])
        self.assertFalse(session.active)
        self.assertEqual(session.sweep.entries(), [(200, 1), (310, 2)])

    def test_wrap_ignored_without_auto_stop(self):
        session = feed(RecordingSession.start(), [(310, 2), (40, 3)], auto_stop=False)
        self.assertTrue(session.active)
        self.assertEqual(session.sweep.entries(), [(40, 3), (310, 2)])

    def test_finish(self):
        session = finish(RecordingSession.start())
        self.assertFalse(session.active)
        self.assertIs(finish(session), session)

    def test_full_rotation_heuristic(self):
        self.assertTrue(is_full_rotation(310, 40))
        self.assertTrue(is_full_rotation(300.5, 59.9))
        self.assertFalse(is_full_rotation(None, 10))
        self.assertFalse(is_full_rotation(300, 10))
        self.assertFalse(is_full_rotation(310, 60))
        self.assertFalse(is_full_rotation(40, 310))


if __name__ == '__main__':
    unittest.main()
