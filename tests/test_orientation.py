import sys
import os
import math
import unittest
import numpy as np
from scipy.spatial.transform import Rotation as R

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from horizon.orientation import (
    OrientationEvent, PointingMode, Reading, elevation_for, format_reading,
    matrix_to_orientation, normalize_azimuth, rotation_vector_to_matrix,
    rotation_vector_to_orientation, round_half_up, sample_orientation,
)


class TestAzimuth(unittest.TestCase):
    def test_negative_azimuth_wraps(self):
        self.assertAlmostEqual(normalize_azimuth(math.radians(-10)), 350.0, places=9)

    def test_range_over_several_turns(self):
        for theta in np.linspace(-4 * np.pi, 4 * np.pi, 2001):
            az = normalize_azimuth(theta)
            self.assertGreaterEqual(az, 0.0)
            self.assertLess(az, 360.0)

    def test_tiny_negative_is_north(self):
        az = normalize_azimuth(-1e-18)
        self.assertGreaterEqual(az, 0.0)
        self.assertLess(az, 360.0)


class TestElevation(unittest.TestCase):
    def test_phone_mode_inverts_pitch(self):
        self.assertEqual(elevation_for(math.radians(30), PointingMode.PHONE), -30)
        for p in range(-90, 91):
            self.assertEqual(elevation_for(math.radians(p), PointingMode.PHONE), -p)

    def test_camera_mode(self):
        self.assertEqual(elevation_for(math.radians(30), PointingMode.CAMERA), 60)
        self.assertEqual(elevation_for(0.0, PointingMode.CAMERA), 90)
        self.assertEqual(elevation_for(math.radians(90), PointingMode.CAMERA), 0)

    def test_camera_mode_symmetric_and_bounded(self):
        for p in range(-90, 91):
            up = elevation_for(math.radians(p), PointingMode.CAMERA)
            down = elevation_for(math.radians(-p), PointingMode.CAMERA)
            self.assertEqual(up, down)
            self.assertTrue(0 <= up <= 90)

    def test_pitch_out_of_range_is_not_clamped(self):
        self.assertEqual(elevation_for(math.radians(180), PointingMode.CAMERA), -90)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(-2.5), -2)
        self.assertEqual(round_half_up(0.49), 0)
        self.assertEqual(round_half_up(-0.51), -1)


class TestRotationVector(unittest.TestCase):
    def test_identity(self):
        np.testing.assert_allclose(rotation_vector_to_orientation([0, 0, 0, 1]), [0, 0, 0], atol=1e-12)

    def test_missing_w_is_recovered(self):
        q = R.from_euler('z', -40, degrees=True).as_quat()
        if q[3] < 0:
            q = -q
        with_w = rotation_vector_to_matrix(q)
        without_w = rotation_vector_to_matrix(q[:3])
        np.testing.assert_allclose(with_w, without_w, atol=1e-9)

    def test_clockwise_turn_is_positive_azimuth(self):
        # top edge turned from north to east
        q = R.from_euler('z', -90, degrees=True).as_quat()
        azimuth, pitch, roll = rotation_vector_to_orientation(q)
        self.assertAlmostEqual(math.degrees(azimuth), 90.0, places=6)
        self.assertAlmostEqual(pitch, 0.0, places=9)

    def test_raised_top_edge_is_negative_pitch(self):
        q = R.from_euler('x', 30, degrees=True).as_quat()
        azimuth, pitch, roll = rotation_vector_to_orientation(q)
        self.assertAlmostEqual(math.degrees(pitch), -30.0, places=6)
        self.assertAlmostEqual(azimuth, 0.0, places=9)

    def test_batched(self):
        quats = R.from_euler('ZX', [[-10, 5], [-20, 10], [-30, 15]], degrees=True).as_quat()
        apr = rotation_vector_to_orientation(quats)
        self.assertEqual(apr.shape, (3, 3))
        np.testing.assert_allclose(np.degrees(apr[:, 0]), [10, 20, 30], atol=1e-6)
        np.testing.assert_allclose(np.degrees(apr[:, 1]), [-5, -10, -15], atol=1e-6)

    def test_matrix_to_orientation_single(self):
        self.assertEqual(matrix_to_orientation(np.eye(3)).shape, (3,))

    def test_short_vector_rejected(self):
        with self.assertRaises(ValueError):
            rotation_vector_to_matrix([0.1, 0.2])


class TestSampling(unittest.TestCase):
    def test_sample_orientation(self):
        event = OrientationEvent(0.0, math.radians(-10), math.radians(30), 0.0)
        phone = sample_orientation(event, PointingMode.PHONE)
        camera = sample_orientation(event, PointingMode.CAMERA)
        self.assertAlmostEqual(phone.azimuth, 350.0, places=9)
        self.assertEqual(phone.elevation, -30)
        self.assertEqual(camera.elevation, 60)

    def test_format_reading(self):
        self.assertEqual(format_reading(Reading(123.7, 4)), "Azimuth: 123°  Elevation: 4°")

    def test_pointing_mode_parse(self):
        self.assertIs(PointingMode.parse("Camera"), PointingMode.CAMERA)
        self.assertIs(PointingMode.parse(PointingMode.PHONE), PointingMode.PHONE)
        with self.assertRaises(ValueError):
            PointingMode.parse("tripod")


if __name__ == '__main__':
    unittest.main()
