#!/usr/bin/env python3
"""
Unit tests for weather_api.py
Uses a mocked requests session so no network access is needed.
"""

import sys
import unittest
from datetime import date
from pathlib import Path
from unittest.mock import Mock

import requests

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / 'src'))

from weather_api import OpenMeteoAPI, DegreeDayCalculator, WeatherAPIError


def make_response(payload=None, status_code=200, json_error=None):
    response = Mock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


SAMPLE_PAYLOAD = {
    'latitude': 40.75,
    'longitude': -73.94,
    'daily': {
        'time': ['2023-01-01', '2023-01-02', '2023-01-03'],
        'temperature_2m_mean': [30.5, None, 33.0],
        'temperature_2m_max': [38.0, 41.2, 40.1],
        'temperature_2m_min': [24.3, 27.0, None],
    },
}


class TestOpenMeteoAPI(unittest.TestCase):
    """Tests for the Open-Meteo archive client"""

    def setUp(self):
        self.session = Mock()
        self.api = OpenMeteoAPI(session=self.session)

    def test_single_request_with_expected_params(self):
        self.session.get.return_value = make_response(SAMPLE_PAYLOAD)

        self.api.get_date_range(date(2023, 1, 1), date(2023, 1, 3))

        self.assertEqual(self.session.get.call_count, 1)
        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], OpenMeteoAPI.HISTORICAL_URL)
        params = kwargs['params']
        self.assertEqual(params['start_date'], '2023-01-01')
        self.assertEqual(params['end_date'], '2023-01-03')
        self.assertEqual(params['temperature_unit'], 'fahrenheit')
        self.assertEqual(params['timezone'], 'America/New_York')
        self.assertEqual(params['latitude'], 40.7536)
        self.assertEqual(params['longitude'], -73.9432)
        self.assertIn('temperature_2m_mean', params['daily'])
        self.assertEqual(kwargs['timeout'], 30)

    def test_observations_parsed(self):
        self.session.get.return_value = make_response(SAMPLE_PAYLOAD)

        observations = self.api.get_date_range(date(2023, 1, 1), date(2023, 1, 3))

        self.assertEqual(len(observations), 3)
        self.assertEqual(observations[0].date, date(2023, 1, 1))
        self.assertEqual(observations[0].temp_avg, 30.5)
        self.assertEqual(observations[0].temp_high, 38.0)
        self.assertIsNone(observations[1].temp_avg)
        self.assertIsNone(observations[2].temp_low)

    def test_daily_mean_temps_skip_missing(self):
        self.session.get.return_value = make_response(SAMPLE_PAYLOAD)

        temps = self.api.get_daily_mean_temps(date(2023, 1, 1), date(2023, 1, 3))

        self.assertEqual(temps, {date(2023, 1, 1): 30.5, date(2023, 1, 3): 33.0})

    def test_custom_location(self):
        api = OpenMeteoAPI(latitude=47.6, longitude=-122.3, timezone='America/Los_Angeles',
                           session=self.session)
        self.session.get.return_value = make_response(SAMPLE_PAYLOAD)

        api.get_date_range(date(2023, 1, 1), date(2023, 1, 3))

        params = self.session.get.call_args[1]['params']
        self.assertEqual(params['latitude'], 47.6)
        self.assertEqual(params['timezone'], 'America/Los_Angeles')

    def test_error_field_raises(self):
        self.session.get.return_value = make_response(
            {'error': True, 'reason': 'Parameter start_date is out of range'}, status_code=400)

        with self.assertRaises(WeatherAPIError) as ctx:
            self.api.get_daily_mean_temps(date(1900, 1, 1), date(1900, 2, 1))
        self.assertIn('out of range', str(ctx.exception))

    def test_http_error_raises(self):
        self.session.get.return_value = make_response({}, status_code=503)

        with self.assertRaises(WeatherAPIError) as ctx:
            self.api.get_daily_mean_temps(date(2023, 1, 1), date(2023, 1, 3))
        self.assertIn('503', str(ctx.exception))

    def test_non_json_error_page_raises(self):
        self.session.get.return_value = make_response(status_code=502, json_error=ValueError('no json'))

        with self.assertRaises(WeatherAPIError) as ctx:
            self.api.get_daily_mean_temps(date(2023, 1, 1), date(2023, 1, 3))
        self.assertIn('502', str(ctx.exception))

    def test_invalid_json_raises(self):
        self.session.get.return_value = make_response(json_error=ValueError('Expecting value'))

        with self.assertRaises(WeatherAPIError):
            self.api.get_daily_mean_temps(date(2023, 1, 1), date(2023, 1, 3))

    def test_connection_error_raises(self):
        self.session.get.side_effect = requests.exceptions.ConnectionError('network down')

        with self.assertRaises(WeatherAPIError):
            self.api.get_daily_mean_temps(date(2023, 1, 1), date(2023, 1, 3))

    def test_timeout_raises(self):
        self.session.get.side_effect = requests.exceptions.Timeout()

        with self.assertRaises(WeatherAPIError) as ctx:
            self.api.get_daily_mean_temps(date(2023, 1, 1), date(2023, 1, 3))
        self.assertIn('timeout', str(ctx.exception).lower())

    def test_missing_daily_block_raises(self):
        self.session.get.return_value = make_response({'latitude': 40.75})

        with self.assertRaises(WeatherAPIError):
            self.api.get_daily_mean_temps(date(2023, 1, 1), date(2023, 1, 3))


class TestDegreeDayCalculator(unittest.TestCase):
    """Tests for degree-day calculations"""

    def setUp(self):
        self.calc = DegreeDayCalculator()

    def test_heating(self):
        self.assertEqual(self.calc.heating(40.0, 30), 750.0)
        self.assertEqual(self.calc.heating(70.0, 30), 0.0)

    def test_cooling(self):
        self.assertEqual(self.calc.cooling(75.0, 10), 100.0)
        self.assertEqual(self.calc.cooling(60.0, 10), 0.0)

    def test_at_base_is_zero(self):
        result = self.calc.calculate(65.0, 31)
        self.assertEqual(result, {'hdd': 0.0, 'cdd': 0.0, 'total': 0.0})

    def test_total_is_sum(self):
        for avg in (12.3, 48.9, 65.0, 71.4, 90.0):
            with self.subTest(avg=avg):
                result = self.calc.calculate(avg, 29)
                self.assertEqual(result['total'], result['hdd'] + result['cdd'])
                self.assertTrue(result['hdd'] == 0 or result['cdd'] == 0)

    def test_custom_base(self):
        calc = DegreeDayCalculator(base=60.0)
        self.assertEqual(calc.heating(50.0, 2), 20.0)


if __name__ == '__main__':
    unittest.main()
