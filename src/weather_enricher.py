"""
UsageHQ - Weather Enricher
Adds average temperature, degree-days and weather-normalized intensity to each bill.
"""

import sys
from dataclasses import fields
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from bill_records import (
    BillRecord, EnrichedBillRecord, load_json, save_json, sort_records,
)
from config import (
    DATA_DIR, BILLS_JSON, WEATHER_JSON,
    FETCH_LOOKBACK_DAYS, DEFAULT_PERIOD_DAYS,
    MIN_BILLING_GAP_DAYS, MAX_BILLING_GAP_DAYS,
)
from weather_api import OpenMeteoAPI, DegreeDayCalculator, WeatherAPIError


def fetch_range(bills: List[BillRecord]) -> Tuple[date, date]:
    """Date range covering every bill, padded before the first one."""
    first = min(b.bill_date for b in bills)
    last = max(b.bill_date for b in bills)
    return first - timedelta(days=FETCH_LOOKBACK_DAYS), last


def infer_service_start(bills: List[BillRecord], index: int) -> date:
    """
    Infer when a bill's service period started.

    The previous bill's date is used when the gap looks like a normal monthly
    cycle; otherwise assume a 30-day period ending on the bill date.
    """
    end_date = bills[index].bill_date
    if index > 0:
        prev_date = bills[index - 1].bill_date
        gap = (end_date - prev_date).days
        if MIN_BILLING_GAP_DAYS <= gap <= MAX_BILLING_GAP_DAYS:
            return prev_date
    return end_date - timedelta(days=DEFAULT_PERIOD_DAYS)


def average_temperature(daily_temps: Dict[date, float], start_date: date,
                        end_date: date) -> Tuple[Optional[float], int]:
    """
    Mean of the daily temperatures within [start_date, end_date].

    Days without a sample are skipped, not counted as zero.

    Returns:
        (average rounded to 0.1°F or None, number of days with a sample)
    """
    total = 0.0
    count = 0
    current = start_date
    while current <= end_date:
        temp = daily_temps.get(current)
        if temp is not None:
            total += temp
            count += 1
        current += timedelta(days=1)

    if count == 0:
        return None, 0
    return round(total / count, 1), count


def enrich_bill(bill: BillRecord, start_date: date, daily_temps: Dict[date, float],
                calculator: DegreeDayCalculator) -> EnrichedBillRecord:
    """Build the enriched copy of one bill for its service window."""
    base = {f.name: getattr(bill, f.name) for f in fields(BillRecord)}

    avg_temp, days_covered = average_temperature(daily_temps, start_date, bill.bill_date)
    if avg_temp is None:
        return EnrichedBillRecord(**base, avg_temp=None, days_covered=0)

    degree_days = calculator.calculate(avg_temp, days_covered)
    hdd = degree_days['hdd']
    total = degree_days['total']

    return EnrichedBillRecord(
        **base,
        avg_temp=avg_temp,
        days_covered=days_covered,
        hdd=round(hdd, 1),
        cdd=round(degree_days['cdd'], 1),
        total_degree_days=round(total, 1),
        electric_intensity=round(bill.electric_usage / total, 3) if total > 0 else None,
        gas_intensity=round(bill.gas_usage / hdd, 3) if hdd > 0 else None,
    )


def enrich_bills(bills: List[BillRecord], daily_temps: Dict[date, float],
                 calculator: Optional[DegreeDayCalculator] = None) -> List[EnrichedBillRecord]:
    """Enrich a list of bills against already-fetched daily temperatures."""
    calculator = calculator or DegreeDayCalculator()
    bills = sort_records(bills)
    return [
        enrich_bill(bill, infer_service_start(bills, i), daily_temps, calculator)
        for i, bill in enumerate(bills)
    ]


class WeatherEnricher:
    """Fetches weather for all bills in one request and enriches them."""

    def __init__(self, api: Optional[OpenMeteoAPI] = None,
                 calculator: Optional[DegreeDayCalculator] = None):
        self.api = api or OpenMeteoAPI()
        self.calculator = calculator or DegreeDayCalculator()

    def enrich(self, bills: List[BillRecord]) -> List[EnrichedBillRecord]:
        """
        Enrich bills with weather data.

        Raises:
            WeatherAPIError: if the weather fetch fails (nothing is enriched)
        """
        if not bills:
            return []

        start_date, end_date = fetch_range(bills)
        print(f"🌡️ Fetching weather from {start_date} to {end_date}...")
        daily_temps = self.api.get_daily_mean_temps(start_date, end_date)
        print(f"   Fetched {len(daily_temps)} days of weather data.")

        enriched = enrich_bills(bills, daily_temps, self.calculator)
        missing = [b for b in enriched if b.avg_temp is None]
        if missing:
            print(f"   ⚠️ {len(missing)} bill(s) had no weather samples in their service period")
        return enriched


def main(input_path=None, output_path=None, enricher: Optional[WeatherEnricher] = None) -> int:
    """Read bills_data.json, enrich it, and write bills_weather_data.json."""
    input_path = Path(input_path or DATA_DIR / BILLS_JSON)
    output_path = Path(output_path or DATA_DIR / WEATHER_JSON)

    if not input_path.exists():
        print(f"❌ Bill data not found: {input_path}")
        return 1

    bills = load_json(input_path, BillRecord)
    print(f"Processing {len(bills)} bills...")

    enricher = enricher or WeatherEnricher()
    try:
        enriched = enricher.enrich(bills)
    except WeatherAPIError as e:
        print(f"❌ Failed to fetch weather: {e}")
        return 1

    output_path.parent.mkdir(parents=True, exist_ok=True)
    save_json(enriched, output_path)
    print(f"✅ Written {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
