"""
UsageHQ - Weather API Integration
Open-Meteo historical archive client (free, no API key, data back to 1940)
and degree-day calculations.
"""

import requests
from datetime import datetime, date
from typing import Optional, List, Dict, Any
from dataclasses import dataclass

from config import LATITUDE, LONGITUDE, TIMEZONE, REQUEST_TIMEOUT, DEGREE_DAY_BASE


class WeatherAPIError(Exception):
    """Raised when the weather archive cannot be fetched or parsed."""


@dataclass
class WeatherObservation:
    """Daily temperature summary for one date."""
    date: date
    temp_avg: Optional[float] = None
    temp_high: Optional[float] = None
    temp_low: Optional[float] = None


class OpenMeteoAPI:
    """
    Open-Meteo API client - Free weather data, no API key required.

    Features:
    - Historical data back to 1940
    - No API key or registration needed
    - Whole date ranges in a single request

    API Documentation: https://open-meteo.com/en/docs/historical-weather-api
    """

    HISTORICAL_URL = "https://archive-api.open-meteo.com/v1/archive"
    DAILY_FIELDS = 'temperature_2m_mean,temperature_2m_max,temperature_2m_min'

    def __init__(self, latitude: float = LATITUDE, longitude: float = LONGITUDE,
                 timezone: str = TIMEZONE, session: Optional[requests.Session] = None):
        """
        Initialize the Open-Meteo API client.

        Args:
            latitude: Location latitude (e.g., 40.7536)
            longitude: Location longitude (e.g., -73.9432)
            timezone: Timezone used to bucket daily values
            session: Optional requests session (a new one is created otherwise)
        """
        self.latitude = latitude
        self.longitude = longitude
        self.timezone = timezone
        self.session = session or requests.Session()

    def _make_request(self, url: str, params: Dict[str, Any]) -> Dict:
        """Make an API request; any failure raises WeatherAPIError."""
        params['latitude'] = self.latitude
        params['longitude'] = self.longitude

        try:
            print(f"🌐 Open-Meteo request: {url}")
            response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT)
        except requests.exceptions.Timeout as e:
            raise WeatherAPIError("Request timeout") from e
        except requests.exceptions.RequestException as e:
            raise WeatherAPIError(f"Request error: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            if response.status_code != 200:
                raise WeatherAPIError(f"HTTP {response.status_code}") from e
            raise WeatherAPIError(f"JSON decode error: {e}") from e

        if isinstance(data, dict) and data.get('error'):
            raise WeatherAPIError(f"API Error: {data.get('reason', 'Unknown')}")

        if response.status_code != 200:
            raise WeatherAPIError(f"HTTP {response.status_code}")

        return data

    def get_date_range(self, start_date: date, end_date: date) -> List[WeatherObservation]:
        """
        Get daily temperatures for a date range in one request.

        Args:
            start_date: Start of date range (inclusive)
            end_date: End of date range (inclusive)

        Returns:
            List of WeatherObservation objects, one per day in the response
        """
        params = {
            'start_date': start_date.strftime('%Y-%m-%d'),
            'end_date': end_date.strftime('%Y-%m-%d'),
            'daily': self.DAILY_FIELDS,
            'temperature_unit': 'fahrenheit',
            'timezone': self.timezone,
        }

        data = self._make_request(self.HISTORICAL_URL, params)

        daily = data.get('daily') if isinstance(data, dict) else None
        if not isinstance(daily, dict) or 'time' not in daily:
            raise WeatherAPIError("Response is missing daily data")

        times = daily.get('time') or []

        def get_val(key: str, i: int) -> Optional[float]:
            arr = daily.get(key) or []
            if i < len(arr) and arr[i] is not None:
                return float(arr[i])
            return None

        observations = []
        for i, time_str in enumerate(times):
            try:
                obs_date = datetime.strptime(time_str, '%Y-%m-%d').date()
            except (TypeError, ValueError):
                continue

            observations.append(WeatherObservation(
                date=obs_date,
                temp_avg=get_val('temperature_2m_mean', i),
                temp_high=get_val('temperature_2m_max', i),
                temp_low=get_val('temperature_2m_min', i),
            ))

        print(f"   ✅ Retrieved {len(observations)} days of weather data")
        return observations

    def get_daily_mean_temps(self, start_date: date, end_date: date) -> Dict[date, float]:
        """
        Map each date to its mean temperature (°F).

        Days the archive returned without a mean are left out.
        """
        return {
            obs.date: obs.temp_avg
            for obs in self.get_date_range(start_date, end_date)
            if obs.temp_avg is not None
        }


class DegreeDayCalculator:
    """
    Calculates heating and cooling degree-days from an average temperature.
    """

    def __init__(self, base: float = DEGREE_DAY_BASE):
        """
        Args:
            base: Comfort baseline in °F (65 by convention)
        """
        self.base = base

    def heating(self, avg_temp: float, days: int) -> float:
        """Heating degree-days: how far below the base, times days."""
        return max(0.0, self.base - avg_temp) * days

    def cooling(self, avg_temp: float, days: int) -> float:
        """Cooling degree-days: how far above the base, times days."""
        return max(0.0, avg_temp - self.base) * days

    def calculate(self, avg_temp: float, days: int) -> Dict[str, float]:
        """
        Calculate all degree-day metrics.

        Returns:
            Dictionary with hdd, cdd and total
        """
        hdd = self.heating(avg_temp, days)
        cdd = self.cooling(avg_temp, days)
        return {
            'hdd': hdd,
            'cdd': cdd,
            'total': hdd + cdd,
        }
