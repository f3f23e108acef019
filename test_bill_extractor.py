#!/usr/bin/env python3
"""
Unit tests for bill_extractor.py
Covers field patterns, date fallbacks, the cutoff filter, generic
supply/delivery assignment and the JSON/CSV outputs.
"""

import csv
import shutil
import sys
import tempfile
import unittest
from datetime import date
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / 'src'))

import bill_extractor
from bill_extractor import (
    BillExtractor, assign_generic_subtotals, date_from_filename,
    flatten_html, parse_value,
)


CURRENT_BILL = """
<html><head><style>.x { color: red; }</style></head><body>
<h2>Your Con Edison Bill</h2>
<div>Billing period: December 14, 2022 to January 15, 2023</div>
<div>Total amount due by February 5, 2023 <b>$212.45</b></div>
<p>Electricity charges - for 32 days $120.30</p>
<p>Gas charges - for 32 days $92.15</p>
<p>Your electricity use <span>512</span> kWh</p>
<p>Your gas use 45 therms</p>
<table>
  <tr><td>Total electricity supply charges</td><td>$60.10</td></tr>
  <tr><td>Total electricity delivery charges</td><td>$60.20</td></tr>
  <tr><td>Total gas supply charges</td><td>$40.00</td></tr>
  <tr><td>Total gas delivery charges</td><td>$52.15</td></tr>
</table>
</body></html>
"""

OLDER_BILL = """
<html><body>
<p>Billing period ending March 12, 2018</p>
<p>Esco electricity supply charges - for 29 days $40.00</p>
<p>Con Edison electricity charges $35.50</p>
<p>Your gas total $60.25</p>
<p>Total electricity use 1,234 kWh</p>
<p>Total Gas Use 50.5 therms</p>
<div>Total supply charges $40.00</div>
<div>Total delivery charges $35.50</div>
<div>Total supply charges $20.25</div>
<div>Total delivery charges $40.00</div>
</body></html>
"""

NO_DATE_BILL = """
<html><body><p>Your electricity use 300 kWh</p><p>Your gas total $25.00</p></body></html>
"""


class TestParsing(unittest.TestCase):
    """Tests for the low-level parsing helpers"""

    def test_parse_value_numbers(self):
        test_cases = [
            ("1,234", 'number', 1234.0),
            ("$1,045.67", 'currency', 1045.67),
            ("45", 'number', 45.0),
            ("", 'number', None),
            ("abc", 'currency', None),
        ]
        for raw, value_type, expected in test_cases:
            with self.subTest(raw=raw):
                self.assertEqual(parse_value(raw, value_type), expected)

    def test_parse_value_dates(self):
        test_cases = [
            ("January 15, 2023", date(2023, 1, 15)),
            ("Jan 15, 2023", date(2023, 1, 15)),
            ("Jan. 15, 2023", date(2023, 1, 15)),
            ("March 3 2021", date(2021, 3, 3)),
            ("Sept 5, 2023", date(2023, 9, 5)),
        ]
        for raw, expected in test_cases:
            with self.subTest(raw=raw):
                self.assertEqual(parse_value(raw, 'date'), expected)

    def test_parse_value_bad_date(self):
        self.assertIsNone(parse_value("Smarch 45, 2023", 'date'))

    def test_flatten_html_normalizes_whitespace_and_drops_scripts(self):
        html = ('<p>Your gas use<br>45 therms</p>'
                '<script>var x = "Your gas use 99 therms";</script>')
        self.assertEqual(flatten_html(html), "Your gas use 45 therms")

    def test_date_from_filename(self):
        self.assertEqual(date_from_filename("ConEd-Bill-2019-04.html"), date(2019, 4, 1))
        self.assertEqual(date_from_filename("statement-2021-11-final.html"), date(2021, 11, 1))
        self.assertIsNone(date_from_filename("bill.html"))
        self.assertIsNone(date_from_filename("ConEd-Bill-2019-13.html"))


class TestGenericSubtotals(unittest.TestCase):
    """Tests for positional assignment of generic supply/delivery lines"""

    EMPTY = {'electric_supply': None, 'electric_delivery': None,
             'gas_supply': None, 'gas_delivery': None}

    def test_two_of_each_assigned_electric_then_gas(self):
        text = ("Total supply charges $10.00 Total delivery charges $11.00 "
                "Total supply charges $20.00 Total delivery charges $21.00")
        result = assign_generic_subtotals(text, self.EMPTY)
        self.assertEqual(result, {'electric_supply': 10.0, 'electric_delivery': 11.0,
                                  'gas_supply': 20.0, 'gas_delivery': 21.0})

    def test_single_generic_supply_is_gas(self):
        text = "Total supply charges $20.00 Total delivery charges $11.00 Total delivery charges $21.00"
        subtotals = dict(self.EMPTY, electric_supply=9.99)
        result = assign_generic_subtotals(text, subtotals)
        self.assertEqual(result['electric_supply'], 9.99)
        self.assertEqual(result['gas_supply'], 20.0)
        self.assertEqual(result['electric_delivery'], 11.0)
        self.assertEqual(result['gas_delivery'], 21.0)

    def test_lone_generic_supply_without_specific_electric_goes_to_gas(self):
        text = "Total supply charges $20.00 Total delivery charges $11.00"
        result = assign_generic_subtotals(text, self.EMPTY)
        self.assertIsNone(result['electric_supply'])
        self.assertEqual(result['gas_supply'], 20.0)
        self.assertEqual(result['electric_delivery'], 11.0)
        self.assertIsNone(result['gas_delivery'])

    def test_specific_values_are_not_overwritten(self):
        text = "Total supply charges $10.00 Total delivery charges $11.00"
        subtotals = {'electric_supply': 1.0, 'electric_delivery': 2.0,
                     'gas_supply': 3.0, 'gas_delivery': 4.0}
        self.assertEqual(assign_generic_subtotals(text, subtotals), subtotals)

    def test_input_dict_is_not_mutated(self):
        text = "Total delivery charges $11.00"
        subtotals = dict(self.EMPTY)
        assign_generic_subtotals(text, subtotals)
        self.assertIsNone(subtotals['electric_delivery'])


class TestBillExtractor(unittest.TestCase):
    """Tests for whole-bill extraction"""

    def setUp(self):
        self.extractor = BillExtractor(bills_dir=".")

    def test_current_template(self):
        record = self.extractor.extract_bill(CURRENT_BILL, "ConEd-Bill-2023-01.html")
        self.assertIsNotNone(record)
        self.assertEqual(record.bill_date, date(2023, 1, 15))
        self.assertEqual(record.electric_cost, 120.30)
        self.assertEqual(record.gas_cost, 92.15)
        self.assertEqual(record.electric_usage, 512.0)
        self.assertEqual(record.gas_usage, 45.0)
        self.assertEqual(record.electric_supply, 60.10)
        self.assertEqual(record.electric_delivery, 60.20)
        self.assertEqual(record.gas_supply, 40.00)
        self.assertEqual(record.gas_delivery, 52.15)
        self.assertEqual(record.total_amount_due, 212.45)
        self.assertEqual(record.filename, "ConEd-Bill-2023-01.html")
        self.assertEqual(record.reconciliation_issues(), [])

    def test_older_template_with_split_electric_and_generic_subtotals(self):
        record = self.extractor.extract_bill(OLDER_BILL, "ConEd-Bill-2018-03.html")
        self.assertEqual(record.bill_date, date(2018, 3, 12))
        self.assertAlmostEqual(record.electric_cost, 75.50)
        self.assertEqual(record.gas_cost, 60.25)
        self.assertEqual(record.electric_usage, 1234.0)
        self.assertEqual(record.gas_usage, 50.5)
        self.assertEqual(record.electric_supply, 40.00)
        self.assertEqual(record.electric_delivery, 35.50)
        self.assertEqual(record.gas_supply, 20.25)
        self.assertEqual(record.gas_delivery, 40.00)
        self.assertIsNone(record.total_amount_due)

    def test_unparsed_fields_default(self):
        html = "<p>Billing period ending July 9, 2020</p>"
        record = self.extractor.extract_bill(html, "ConEd-Bill-2020-07.html")
        self.assertEqual(record.electric_usage, 0)
        self.assertEqual(record.gas_usage, 0)
        self.assertEqual(record.electric_cost, 0)
        self.assertEqual(record.gas_cost, 0)
        self.assertIsNone(record.electric_supply)
        self.assertIsNone(record.gas_delivery)

    def test_meter_table_usage_fallback(self):
        html = "<p>Billing period ending July 9, 2024</p><table><tr><td>Read Diff kWh</td><td>1</td><td>640</td></tr></table>"
        record = self.extractor.extract_bill(html, "ConEd-Bill-2024-07.html")
        self.assertEqual(record.electric_usage, 640.0)

    def test_payment_due_date_fallback(self):
        html = "<p>Total amount due by August 4, 2021 $88.10</p>"
        record = self.extractor.extract_bill(html, "ConEd-Bill-2021-07.html")
        self.assertEqual(record.bill_date, date(2021, 8, 4))
        self.assertEqual(record.total_amount_due, 88.10)

    def test_missing_date_uses_filename(self):
        record = self.extractor.extract_bill(NO_DATE_BILL, "ConEd-Bill-2019-04.html")
        self.assertEqual(record.bill_date, date(2019, 4, 1))
        self.assertEqual(record.electric_usage, 300.0)
        self.assertEqual(record.gas_cost, 25.0)

    def test_sentinel_date_uses_filename(self):
        html = "<p>Billing period ending March 1, 2014</p>"
        record = self.extractor.extract_bill(html, "ConEd-Bill-2019-06.html")
        self.assertEqual(record.bill_date, date(2019, 6, 1))

    def test_implausibly_old_date_uses_filename(self):
        html = "<p>Billing period ending May 3, 2016</p>"
        record = self.extractor.extract_bill(html, "ConEd-Bill-2018-05.html")
        self.assertEqual(record.bill_date, date(2018, 5, 1))

    def test_bill_before_cutoff_is_dropped(self):
        html = "<p>Billing period ending March 12, 2017</p><p>Your gas use 80 therms</p>"
        self.assertIsNone(self.extractor.extract_bill(html, "ConEd-Bill-2017-03.html"))
        self.assertEqual(self.extractor.skipped[-1][0], "ConEd-Bill-2017-03.html")

    def test_filename_date_before_cutoff_is_dropped(self):
        self.assertIsNone(self.extractor.extract_bill(NO_DATE_BILL, "ConEd-Bill-2017-05.html"))

    def test_no_date_anywhere_is_dropped(self):
        self.assertIsNone(self.extractor.extract_bill(NO_DATE_BILL, "bill.html"))
        self.assertEqual(self.extractor.skipped[-1], ("bill.html", "no date"))

    def test_cutoff_day_is_kept(self):
        html = "<p>Billing period ending June 1, 2017</p>"
        record = self.extractor.extract_bill(html, "x.html")
        self.assertEqual(record.bill_date, date(2017, 6, 1))


class TestExtractorOutputs(unittest.TestCase):
    """Tests for directory processing and output files"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.bills_dir = self.temp_dir / "bills"
        self.bills_dir.mkdir()
        (self.bills_dir / "ConEd-Bill-2023-01.html").write_text(CURRENT_BILL, encoding='utf-8')
        (self.bills_dir / "ConEd-Bill-2018-03.html").write_text(OLDER_BILL, encoding='utf-8')
        (self.bills_dir / "ConEd-Bill-2017-02.html").write_text(NO_DATE_BILL, encoding='utf-8')
        (self.bills_dir / "notes.txt").write_text("not a bill", encoding='utf-8')

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_process_files_sorted_and_filtered(self):
        records = BillExtractor(self.bills_dir).process_files()
        self.assertEqual([r.bill_date for r in records], [date(2018, 3, 12), date(2023, 1, 15)])
        for record in records:
            self.assertGreaterEqual(record.electric_usage, 0)
            self.assertGreaterEqual(record.gas_usage, 0)
            self.assertGreaterEqual(record.electric_cost, 0)
            self.assertGreaterEqual(record.gas_cost, 0)

    def test_duplicate_dates_are_kept(self):
        (self.bills_dir / "ConEd-Bill-2023-01-copy.html").write_text(CURRENT_BILL, encoding='utf-8')
        records = BillExtractor(self.bills_dir).process_files()
        self.assertEqual(len(records), 3)
        self.assertEqual(records[-2].filename, "ConEd-Bill-2023-01-copy.html")
        self.assertEqual(records[-1].filename, "ConEd-Bill-2023-01.html")

    def test_rerun_is_byte_identical(self):
        out_a = self.temp_dir / "a"
        out_b = self.temp_dir / "b"
        self.assertEqual(bill_extractor.main(self.bills_dir, out_a), 0)
        self.assertEqual(bill_extractor.main(self.bills_dir, out_b), 0)
        self.assertEqual((out_a / "bills_data.json").read_bytes(),
                         (out_b / "bills_data.json").read_bytes())

    def test_csv_mirror_headers_and_rows(self):
        out = self.temp_dir / "out"
        bill_extractor.main(self.bills_dir, out)
        with open(out / "bills_data.csv", newline='', encoding='utf-8') as f:
            rows = list(csv.reader(f))
        self.assertEqual(rows[0], [
            'Date', 'Electric Usage (kWh)', 'Electric Cost ($)', 'Elec Supply ($)',
            'Elec Delivery ($)', 'Gas Usage (therms)', 'Gas Cost ($)', 'Gas Supply ($)',
            'Gas Delivery ($)', 'Total Due ($)', 'Source File',
        ])
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[1][0], '2018-03-12')
        self.assertEqual(rows[1][9], '')  # no total due on the older bill
        self.assertEqual(rows[2][-1], 'ConEd-Bill-2023-01.html')

    def test_missing_directory(self):
        self.assertEqual(bill_extractor.main(self.temp_dir / "nope", self.temp_dir / "out"), 1)
        self.assertFalse((self.temp_dir / "out").exists())


if __name__ == '__main__':
    unittest.main()
