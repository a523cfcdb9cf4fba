import unittest

from elecflow_engine.geometry import GradientRect, Ribbon, blend_rect, flow_by_corners, line_intersect, polygon


class LineIntersectTests(unittest.TestCase):
    def test_crossing_segments(self):
        x, y, on1, on2 = line_intersect((0, 0), (10, 10), (0, 10), (10, 0))
        self.assertAlmostEqual(x, 5.0)
        self.assertAlmostEqual(y, 5.0)
        self.assertTrue(on1)
        self.assertTrue(on2)

    def test_extrapolated_intersection(self):
        x, y, on1, on2 = line_intersect((0, 0), (1, 0), (5, -1), (5, 1))
        self.assertAlmostEqual(x, 5.0)
        self.assertAlmostEqual(y, 0.0)
        self.assertFalse(on1)
        self.assertTrue(on2)

    def test_parallel_lines_warn(self):
        with self.assertLogs("elecflow_engine.geometry", level="WARNING"):
            self.assertIsNone(line_intersect((0, 0), (10, 0), (0, 5), (10, 5)))


class FlowByCornersTests(unittest.TestCase):
    def test_straight_ribbon_controls(self):
        ribbon = flow_by_corners((0, 0), (10, 0), (0, 20), (10, 20), "generation")
        self.assertIsInstance(ribbon, Ribbon)
        self.assertEqual(ribbon.css_class, "generation")
        self.assertEqual(ribbon.ctrl_start_l, (0.0, 10.0))
        self.assertEqual(ribbon.ctrl_end_l, (0.0, 10.0))
        self.assertEqual(ribbon.ctrl_end_r, (10.0, 10.0))
        self.assertEqual(ribbon.ctrl_start_r, (10.0, 10.0))

    def test_vertical_to_horizontal_turn(self):
        # Trunk coming down, leaving to the right.
        ribbon = flow_by_corners((20, 0), (10, 0), (40, 30), (40, 40))
        self.assertIsNotNone(ribbon)
        self.assertEqual(ribbon.start_l, (20, 0))
        self.assertEqual(ribbon.end_r, (40, 40))

    def test_twisted_ribbon_is_empty_with_warning(self):
        with self.assertLogs("elecflow_engine.geometry", level="WARNING") as cm:
            self.assertIsNone(flow_by_corners((0, 0), (10, 0), (10, 10), (0, 10)))
        self.assertTrue(any("Render flow failed" in m for m in cm.output))

    def test_mirror_parallel_to_perpendicular_is_empty(self):
        with self.assertLogs("elecflow_engine.geometry", level="WARNING"):
            self.assertIsNone(flow_by_corners((0, 0), (10, 0), (10, 20), (0, 30)))

    def test_short_cross_section_is_empty(self):
        self.assertIsNone(flow_by_corners((0, 0), (0.5, 0), (0, 20), (10, 20)))
        self.assertIsNone(flow_by_corners((0, 0), (10, 0), (0, 20), (0, 20.5)))

    def test_color_is_kept(self):
        ribbon = flow_by_corners((0, 0), (10, 0), (0, 20), (10, 20), "consumer", "#123456")
        self.assertEqual(ribbon.color, "#123456")


class BlendRectTests(unittest.TestCase):
    def test_horizontal_blend(self):
        shape = blend_rect((0, 0), (0, 10), (80, 0), (80, 10), "#000000", "#ffffff", "b")
        self.assertIsInstance(shape, GradientRect)
        self.assertTrue(shape.horizontal)
        self.assertEqual((shape.x, shape.y, shape.width, shape.height), (0, 0, 80, 10))
        self.assertEqual((shape.x1, shape.y1, shape.x2, shape.y2), (0.0, 0.0, 1.0, 0.0))

    def test_horizontal_blend_right_to_left(self):
        shape = blend_rect((80, 0), (80, 10), (0, 0), (0, 10), "#000000", "#ffffff", "b")
        self.assertEqual((shape.x1, shape.x2), (1.0, 0.0))
        self.assertEqual(shape.x, 0)

    def test_vertical_blend(self):
        shape = blend_rect((0, 0), (10, 0), (0, 30), (10, 30), "#000000", "#ffffff", "v")
        self.assertFalse(shape.horizontal)
        self.assertEqual((shape.width, shape.height), (10, 30))
        self.assertEqual((shape.x1, shape.y1, shape.x2, shape.y2), (0.0, 0.0, 0.0, 1.0))
        self.assertEqual(shape.shape_id, "v")

    def test_diagonal_blend_is_rejected(self):
        with self.assertLogs("elecflow_engine.geometry", level="ERROR"):
            self.assertIsNone(blend_rect((0, 0), (10, 5), (20, 20), (30, 25), "#000000", "#ffffff", "d"))


class PolygonTests(unittest.TestCase):
    def test_points_are_copied(self):
        pts = [(0, 0), (1, 0), (0, 1)]
        shape = polygon(pts, "tint")
        pts.append((5, 5))
        self.assertEqual(len(shape.points), 3)


if __name__ == "__main__":
    unittest.main()
