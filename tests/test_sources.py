import unittest

from elecflow_engine.schemas import ICON_GENERATION
from elecflow_engine.settings import FlowSettings
from elecflow_engine.sources import Reading, battery_pair, build_snapshot, grid_routes, to_base_unit


class UnitTests(unittest.TestCase):
    def test_power_scaling(self):
        self.assertEqual(to_base_unit(2.5, "kW"), 2500.0)
        self.assertEqual(to_base_unit(1500, "W", "kW"), 1.5)
        self.assertAlmostEqual(to_base_unit(0.002, "MW"), 2000.0)

    def test_energy_scaling(self):
        self.assertEqual(to_base_unit(1.5, "kWh", "Wh"), 1500.0)
        self.assertEqual(to_base_unit(250, "Wh", "kWh"), 0.25)

    def test_unknown_or_missing_unit_passes_through(self):
        self.assertEqual(to_base_unit(42, None), 42.0)
        self.assertEqual(to_base_unit(42, "A"), 42.0)
        self.assertEqual(to_base_unit("unavailable", "kW"), 0.0)

    def test_power_to_energy_raises(self):
        with self.assertRaises(ValueError):
            to_base_unit(1, "kW", "kWh")


class RouteTests(unittest.TestCase):
    def test_signed_grid(self):
        grid_in, grid_out = grid_routes(Reading("sensor.grid", -200, "Grid"), Reading("sensor.out", 50))
        self.assertEqual(grid_in.rate, -200)
        self.assertEqual(grid_in.text, "Grid")
        self.assertIsNone(grid_out)

    def test_independent_grid(self):
        grid_in, grid_out = grid_routes(Reading("sensor.in", 0.3, unit="kW"), Reading("sensor.out", 50), True)
        self.assertAlmostEqual(grid_in.rate, 300.0)
        self.assertEqual(grid_out.rate, 50.0)
        self.assertEqual(grid_out.text, "sensor.out")

    def test_battery_pair(self):
        pair = battery_pair(Reading("sensor.batt", -300, "Battery"))
        self.assertEqual(pair.in_route.rate, 0.0)
        self.assertEqual(pair.out_route.rate, 300.0)
        self.assertEqual(pair.out_route.id, "null")
        self.assertEqual(pair.charge_rate(), 300.0)

    def test_inverted_battery_pair(self):
        pair = battery_pair(Reading("sensor.batt", -300, "Battery"), invert=True)
        self.assertEqual(pair.in_route.rate, 300.0)
        self.assertEqual(pair.in_route.id, "sensor.batt")
        self.assertEqual(pair.discharge_rate(), 300.0)


class BuildSnapshotTests(unittest.TestCase):
    def test_build(self):
        settings = FlowSettings(max_consumer_branches=3, hide_small_consumers=True,
                                battery_charge_only_from_generation=True)
        snapshot = build_snapshot(
            settings,
            grid_in=Reading("sensor.grid", 1.2, "Grid", "kW"),
            generation=[Reading("sensor.pv", 800, "Roof", "W")],
            consumers=[Reading("sensor.a", 1.5, "Oven", "kW"), Reading("sensor.b", 40, "Router")],
            batteries=[Reading("sensor.batt", -100, "Battery")],
        )
        self.assertAlmostEqual(snapshot.grid_in_route.rate, 1200.0)
        self.assertIsNone(snapshot.grid_out_route)
        self.assertEqual(list(snapshot.consumer_routes), ["sensor.a", "sensor.b"])
        self.assertEqual(snapshot.consumer_routes["sensor.a"].rate, 1500.0)
        self.assertEqual(snapshot.generation_routes["sensor.pv"].icon, ICON_GENERATION)
        self.assertEqual(snapshot.battery_routes["sensor.batt"].charge_rate(), 100.0)
        self.assertEqual(snapshot.max_consumer_branches, 3)
        self.assertEqual(snapshot.hide_consumers_below, 100.0)
        self.assertTrue(snapshot.battery_charge_only_from_generation)
        self.assertEqual(snapshot.unit, "W")

    def test_export_only_independent(self):
        settings = FlowSettings(independent_grid_in_out=True)
        snapshot = build_snapshot(settings, grid_out=Reading("sensor.out", 400))
        self.assertIsNone(snapshot.grid_in_route)
        self.assertEqual(snapshot.grid_out_route.rate, 400.0)

    def test_grid_out_ignored_for_signed_grid(self):
        with self.assertLogs("elecflow_engine.sources", level="DEBUG") as logs:
            snapshot = build_snapshot(FlowSettings(), grid_out=Reading("sensor.out", 400),
                                      consumers=[Reading("sensor.a", 300)])
        self.assertIsNone(snapshot.grid_in_route)
        self.assertIsNone(snapshot.grid_out_route)
        self.assertIn("sensor.out", logs.output[0])

    def test_nothing_configured_raises(self):
        with self.assertRaises(ValueError):
            build_snapshot(FlowSettings(), batteries=[Reading("sensor.batt", 100)])


if __name__ == "__main__":
    unittest.main()
