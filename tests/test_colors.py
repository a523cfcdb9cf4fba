import unittest

from elecflow_engine.colors import (
    hex_to_rgb,
    mix3_hexes,
    mix_hexes,
    normalise_ratios,
    rgb_to_hex,
    safe_ratio,
)


class ColorTests(unittest.TestCase):
    def test_hex_roundtrip(self):
        self.assertEqual(hex_to_rgb("#0d6a04"), (13, 106, 4))
        self.assertEqual(rgb_to_hex(13, 106, 4), "#0d6a04")

    def test_rgb_to_hex_clamps_and_rounds_half_up(self):
        self.assertEqual(rgb_to_hex(300, -5, 12.5), "#ff000d")

    def test_invalid_hex_raises(self):
        with self.assertRaises(ValueError):
            hex_to_rgb("#12345")
        with self.assertRaises(ValueError):
            hex_to_rgb("#zzzzzz")

    def test_mix_endpoints(self):
        self.assertEqual(mix_hexes("#0d6a04", "#920e83", 1.0), "#0d6a04")
        self.assertEqual(mix_hexes("#0d6a04", "#920e83", 0.0), "#920e83")

    def test_mix_midpoint_rounds_half_up(self):
        self.assertEqual(mix_hexes("#ffffff", "#000000", 0.5), "#808080")

    def test_mix_ratio_is_clipped(self):
        self.assertEqual(mix_hexes("#ff0000", "#0000ff", 1.5), "#ff0000")
        self.assertEqual(mix_hexes("#ff0000", "#0000ff", -1.0), "#0000ff")
        self.assertEqual(mix_hexes("#ff0000", "#0000ff", float("nan")), "#0000ff")

    def test_safe_ratio_zero_total(self):
        self.assertEqual(safe_ratio(5.0, 0.0), 0.0)
        self.assertAlmostEqual(safe_ratio(5.0, 10.0), 0.5)
        self.assertEqual(safe_ratio(15.0, 10.0), 1.0)

    def test_normalise_ratios(self):
        self.assertEqual(normalise_ratios(0.0, 0.0, 0.0), [0.0, 0.0, 0.0])
        out = normalise_ratios(0.5, 0.5, 0.5)
        self.assertAlmostEqual(sum(out), 1.0)
        for r in out:
            self.assertAlmostEqual(r, 1.0 / 3.0)

    def test_normalise_keeps_weights_above_one(self):
        self.assertEqual(normalise_ratios(3.0, 1.0, 0.0), [0.75, 0.25, 0.0])
        self.assertEqual(normalise_ratios(-1.0, float("nan"), 2.0), [0.0, 0.0, 1.0])
        self.assertEqual(mix3_hexes("#ff0000", "#00ff00", "#0000ff", 3, 1, 0), "#bf4000")

    def test_mix3(self):
        self.assertEqual(mix3_hexes("#ff0000", "#00ff00", "#0000ff", 1, 1, 1), "#555555")
        self.assertEqual(mix3_hexes("#ff0000", "#00ff00", "#0000ff", 0.5, 0.5, 0), "#808000")

    def test_mix3_ratios_not_summing_to_one(self):
        # Ratios above 1 in total are normalised rather than overflowing.
        self.assertEqual(mix3_hexes("#ff0000", "#00ff00", "#0000ff", 2.0, 0.0, 0.0), "#ff0000")
        self.assertEqual(
            mix3_hexes("#0d6a04", "#920e83", "#01f4fc", 2.0, 2.0, 0.0),
            mix_hexes("#0d6a04", "#920e83", 0.5),
        )

    def test_mix3_all_zero_is_black(self):
        self.assertEqual(mix3_hexes("#ff0000", "#00ff00", "#0000ff", 0, 0, 0), "#000000")


if __name__ == "__main__":
    unittest.main()
