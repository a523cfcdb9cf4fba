import unittest

from elecflow_engine.core import reconcile
from elecflow_engine.layout import compute_layout
from elecflow_engine.scale import FlowWidths
from elecflow_engine.schemas import BATT_IN_COLOR, GEN_COLOR, GRID_IN_COLOR, FlowSnapshot, Route, RoutePair


def snapshot(grid=None, gen=0.0, cons=0.0, discharge=0.0, charge=0.0):
    return FlowSnapshot(
        generation_routes={"g": Route(rate=gen, id="g")} if gen else {},
        grid_in_route=Route(rate=grid, id="grid") if grid is not None else None,
        consumer_routes={"c": Route(rate=cons, id="c")} if cons else {},
        battery_routes={"b": RoutePair(Route(rate=discharge, id="b"), Route(rate=charge))}
        if discharge or charge else {},
    )


SCENARIOS = [
    snapshot(grid=500, cons=500),
    snapshot(grid=-400, gen=1000, cons=600),
    snapshot(grid=300, gen=200, cons=600),
    snapshot(grid=1200, cons=2700, discharge=1500),
    snapshot(grid=-500, cons=300, discharge=800),
    snapshot(grid=1000, gen=500, cons=900, charge=600),
    snapshot(),
]


def layout_for(s):
    return compute_layout(FlowWidths.from_flows(reconcile(s)))


class LayoutOrderingTests(unittest.TestCase):
    def test_landmarks_are_ordered(self):
        for s in SCENARIOS:
            lay = layout_for(s)
            self.assertLessEqual(lay.x17, lay.x14)
            self.assertLessEqual(lay.x14, lay.x15)
            self.assertLessEqual(lay.x15, lay.x16)
            self.assertLessEqual(lay.x20, lay.x21)
            self.assertLessEqual(lay.y1, lay.y2)
            self.assertLessEqual(lay.y2, lay.y5)
            self.assertLessEqual(lay.y5, lay.y4)
            self.assertLessEqual(lay.y17, lay.y18)
            self.assertLess(lay.x10, lay.x11)
            self.assertLess(lay.x16, lay.x1)

    def test_fixed_landmarks(self):
        for s in SCENARIOS:
            lay = layout_for(s)
            self.assertEqual(lay.y0, 50.0)
            self.assertAlmostEqual(lay.svg_scale_x * lay.x1, 110.0)
            self.assertAlmostEqual(lay.x11 - lay.x10, 30.0)
            self.assertAlmostEqual(lay.y18 - lay.y17, 30.0)
            self.assertAlmostEqual(lay.arrow_head_length * lay.svg_scale_x, 10.0)

    def test_deterministic(self):
        for s in SCENARIOS:
            self.assertEqual(layout_for(s), layout_for(s))

    def test_trunk_widths_match_landmarks(self):
        s = snapshot(grid=1200, cons=2700, discharge=1500)
        widths = FlowWidths.from_flows(reconcile(s))
        lay = compute_layout(widths)
        self.assertAlmostEqual(lay.y5 - lay.y2, widths.grid_to_consumers)
        self.assertAlmostEqual(lay.y4 - lay.y5, widths.batteries_to_consumers)
        self.assertAlmostEqual(lay.x21 - lay.x20, widths.batteries_to_consumers)


class BlendColorTests(unittest.TestCase):
    def test_single_source_blend_is_that_source(self):
        self.assertEqual(layout_for(snapshot(grid=500, cons=500)).to_consumers_blend_color, GRID_IN_COLOR)
        self.assertEqual(layout_for(snapshot(gen=500, cons=500)).to_consumers_blend_color, GEN_COLOR)

    def test_grid_out_blend(self):
        self.assertEqual(layout_for(snapshot(grid=-400, gen=1000, cons=600)).grid_out_blend_color, GEN_COLOR)
        self.assertEqual(layout_for(snapshot(grid=-500, cons=300, discharge=800)).grid_out_blend_color,
                         BATT_IN_COLOR)

    def test_to_batteries_blend(self):
        self.assertEqual(layout_for(snapshot(grid=1000, cons=400, charge=600)).to_batteries_blend_color,
                         GRID_IN_COLOR)
        lay = layout_for(snapshot(grid=-100, gen=1000, cons=300, charge=600))
        self.assertEqual(lay.to_batteries_blend_color, GEN_COLOR)

    def test_three_way_blend_is_valid_hex(self):
        lay = layout_for(snapshot(grid=400, gen=300, cons=1000, discharge=300))
        color = lay.to_consumers_blend_color
        self.assertRegex(color, r"^#[0-9a-f]{6}$")
        self.assertNotIn(color, (GEN_COLOR, GRID_IN_COLOR, BATT_IN_COLOR))


if __name__ == "__main__":
    unittest.main()
