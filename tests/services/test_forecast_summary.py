import unittest

from agent_gateway.services.forecast_summary import NO_FORECAST, place_label, summarize_forecast


def _result(daily: list[dict], temp_unit: str = "°C") -> dict:
    return {
        "ok": True,
        "place": {"name": "Austin", "region": "Texas", "country": "United States"},
        "units": {"temp": temp_unit, "precip": "mm"},
        "daily": daily,
    }


class ForecastSummaryTests(unittest.TestCase):
    def test_weekly_numbers_and_umbrella_advice(self) -> None:
        summary = summarize_forecast(_result([
            {"date": "2026-10-19", "tMax": 30, "tMin": 20, "pop": 10},
            {"date": "2026-10-20", "tMax": 28, "tMin": 18, "pop": 75},
        ]))
        self.assertEqual(
            "Next week in Austin, Texas, United States, expect highs around 30°C and lows near 18°C. "
            "Peak chance of precipitation is about 75% on Tuesday, October 20. "
            "Pack layers and bring a small umbrella or rain jacket just in case.",
            summary,
        )

    def test_peak_without_date(self) -> None:
        summary = summarize_forecast(_result([
            {"tMax": 30, "tMin": 20, "pop": 10},
            {"tMax": 28, "tMin": 18, "pop": 75},
        ]))
        self.assertIn("Peak chance of precipitation is about 75%.", summary)

    def test_first_peak_wins(self) -> None:
        summary = summarize_forecast(_result([
            {"date": "2026-10-19", "tMax": 20, "tMin": 15, "pop": 50},
            {"date": "2026-10-20", "tMax": 20, "tMin": 15, "pop": 50},
        ]))
        self.assertIn("on Monday, October 19.", summary)

    def test_low_rain_and_wide_range(self) -> None:
        summary = summarize_forecast(_result([
            {"date": "2026-10-19", "tMax": 25, "tMin": 12, "pop": 0},
        ]))
        self.assertIn("Rain risk looks low overall.", summary)
        self.assertTrue(summary.endswith("Pack layers (mornings/evenings cooler than afternoons)."))

    def test_light_layers(self) -> None:
        summary = summarize_forecast(_result([{"date": "2026-10-19", "tMax": 22, "tMin": 16, "pop": 20}]))
        self.assertTrue(summary.endswith("Light layers should be fine for most of the week."))

    def test_missing_lows(self) -> None:
        summary = summarize_forecast(_result([{"date": "2026-10-19", "tMax": 71.6, "tMin": None, "pop": 0}], "°F"))
        self.assertTrue(summary.startswith("Next week in Austin, Texas, United States, expect highs around 72°F."))
        self.assertTrue(summary.endswith("Pack flexible layers to handle changes through the week."))

    def test_missing_temperatures(self) -> None:
        summary = summarize_forecast(_result([{"date": "2026-10-19", "tMax": None, "tMin": None, "pop": None}]))
        self.assertIn("temperatures vary through the week.", summary)
        self.assertIn("Rain risk looks low overall.", summary)

    def test_only_first_seven_days_count(self) -> None:
        days = [{"date": f"2026-10-{19 + i}", "tMax": 20, "tMin": 15, "pop": 0} for i in range(7)]
        days.append({"date": "2026-10-26", "tMax": 40, "tMin": 0, "pop": 100})
        summary = summarize_forecast(_result(days))
        self.assertIn("highs around 20°C and lows near 15°C", summary)
        self.assertIn("Rain risk looks low overall.", summary)

    def test_halves_round_up(self) -> None:
        summary = summarize_forecast(_result([{"date": "2026-10-19", "tMax": 22.5, "tMin": 12.5, "pop": 0}]))
        self.assertIn("highs around 23°C and lows near 13°C", summary)

        summary = summarize_forecast(_result([{"date": "2026-10-19", "tMax": -0.5, "tMin": -2.5, "pop": 0}]))
        self.assertIn("highs around 0°C and lows near -2°C", summary)

    def test_empty_daily(self) -> None:
        self.assertEqual(NO_FORECAST, summarize_forecast(_result([])))

    def test_place_label_skips_missing_parts(self) -> None:
        self.assertEqual("Paris, France", place_label({"name": "Paris", "region": None, "country": "France"}))
