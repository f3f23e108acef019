"""
UsageHQ - Bill Extractor
Parses saved HTML utility bills into normalized BillRecords.

Bill templates changed several times over the years, so every field has a
prioritized list of patterns: the first one that matches wins.
"""

import re
import sys
from datetime import datetime, date
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from bill_records import BillRecord, save_json, save_csv, sort_records
from config import (
    BILLS_DIR, DATA_DIR, BILLS_JSON, BILLS_CSV,
    BILL_CUTOFF_DATE, PLAUSIBLE_MIN_DATE, BAD_SENTINEL_DATE,
)


_LONG_DATE = r'(\w+\.?\s+\d{1,2},?\s+\d{4})'
_MONEY = r'\$?\s*([\d,]+(?:\.\d+)?)'
_DOLLARS = r'\$\s*([\d,]+(?:\.\d+)?)'
_QUANTITY = r'([\d,]+(?:\.\d+)?)'

# Field definitions: patterns are tried in order, first match wins
FIELD_PATTERNS = {
    'bill_date': {'label': 'Bill Date', 'type': 'date',
        'patterns': [
            r'Billing period:?.*?to\s+' + _LONG_DATE,       # "Billing period: Dec 14, 2022 to Jan 15, 2023"
            r'Billing period ending:?\s+' + _LONG_DATE,
            r'Total amount due by\s+' + _LONG_DATE,          # Payment due date fallback
        ]},
    'electric_cost': {'label': 'Electric Cost', 'type': 'currency',
        'patterns': [
            r'Electricity charges\s*-\s*for\s*\d+\s*days\s*' + _DOLLARS,
            r'Your electricity total\s*' + _DOLLARS,
        ]},
    # Older bills split electric cost between the ESCO and Con Edison
    'esco_supply': {'label': 'ESCO Supply', 'type': 'currency',
        'patterns': [r'Esco electricity supply charges\s*-\s*for\s*\d+\s*days\s*' + _DOLLARS]},
    'coned_delivery': {'label': 'Con Edison Delivery', 'type': 'currency',
        'patterns': [r'Con Edison electricity charges\s*' + _DOLLARS]},
    'gas_cost': {'label': 'Gas Cost', 'type': 'currency',
        'patterns': [
            r'Gas charges\s*-\s*for\s*\d+\s*days\s*' + _DOLLARS,
            r'Your gas total\s*' + _DOLLARS,
        ]},
    'electric_usage': {'label': 'Electric Usage (kWh)', 'type': 'number',
        'patterns': [
            r'Your electricity use\s*' + _QUANTITY + r'\s*kWh',
            r'Total electricity use\s*' + _QUANTITY + r'\s*kWh',
            r'Supply\s+' + _QUANTITY + r'\s*kWh',
        ]},
    # Meter table on 2024 templates: "Read Diff kWh ... <multiplier> <usage>"
    'electric_usage_table': {'label': 'Electric Usage (meter table)', 'type': 'number', 'group': 2,
        'patterns': [r'Read Diff\s*kWh.*?(\d+)\s+(\d+)']},
    'gas_usage': {'label': 'Gas Usage (therms)', 'type': 'number',
        'patterns': [
            r'Your gas use\s*' + _QUANTITY + r'\s*therms',
            r'Total Gas Use\s*' + _QUANTITY + r'\s*therms',
        ]},
    'electric_supply': {'label': 'Elec Supply', 'type': 'currency',
        'patterns': [r'Total electricity supply charges\s+' + _MONEY]},
    'electric_delivery': {'label': 'Elec Delivery', 'type': 'currency',
        'patterns': [r'Total electricity delivery charges\s+' + _MONEY]},
    'gas_supply': {'label': 'Gas Supply', 'type': 'currency',
        'patterns': [r'Total gas supply charges\s+' + _MONEY]},
    'gas_delivery': {'label': 'Gas Delivery', 'type': 'currency',
        'patterns': [r'Total gas delivery charges\s+' + _MONEY]},
    'total_amount_due': {'label': 'Total Due', 'type': 'currency',
        'patterns': [r'Total amount due.*?' + _DOLLARS]},
}

# Fuel-agnostic subtotals on older templates, listed electric first then gas
GENERIC_SUPPLY_PATTERN = r'Total supply charges\s+' + _MONEY
GENERIC_DELIVERY_PATTERN = r'Total delivery charges\s+' + _MONEY

# "ConEd-Bill-2023-01.html" -> 2023-01
FILENAME_DATE_PATTERN = r'-(\d{4})-(\d{2})(?!\d)'

DATE_FORMATS = [
    '%B %d, %Y',   # January 15, 2023
    '%B %d %Y',    # January 15 2023
    '%b %d, %Y',   # Jan 15, 2023
    '%b %d %Y',    # Jan 15 2023
    '%b. %d, %Y',  # Jan. 15, 2023
]


def parse_value(value: str, value_type: str):
    """Parse a matched string into the appropriate type (None if unparsable)."""
    if not value:
        return None

    try:
        if value_type in ('currency', 'number'):
            clean = re.sub(r'[$,\s]', '', value)
            return float(clean)

        elif value_type == 'date':
            for fmt in DATE_FORMATS:
                try:
                    return datetime.strptime(value.strip(), fmt).date()
                except ValueError:
                    continue

            from dateutil import parser
            return parser.parse(value).date()

        return value

    except (ValueError, TypeError, OverflowError):
        return None


def flatten_html(content: str) -> str:
    """Reduce an HTML document to single-line, whitespace-normalized text."""
    soup = BeautifulSoup(content, 'html.parser')
    for tag in soup(['script', 'style']):
        tag.decompose()
    for br in soup.find_all('br'):
        br.replace_with('\n')
    raw_text = soup.get_text(separator=' ')
    return re.sub(r'\s+', ' ', raw_text).strip()


def match_field(text: str, field_name: str) -> Optional[str]:
    """Return the raw text captured by the first matching pattern for a field."""
    field_def = FIELD_PATTERNS[field_name]
    group = field_def.get('group', 1)
    for pattern in field_def['patterns']:
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            return match.group(group)
    return None


def extract_number(text: str, field_name: str) -> Optional[float]:
    """Match and parse a numeric field."""
    raw = match_field(text, field_name)
    if raw is None:
        return None
    return parse_value(raw, FIELD_PATTERNS[field_name]['type'])


def find_all_amounts(text: str, pattern: str) -> List[float]:
    """All amounts captured by a pattern, in document order."""
    amounts = []
    for match in re.finditer(pattern, text, re.IGNORECASE):
        value = parse_value(match.group(1), 'currency')
        if value is not None:
            amounts.append(value)
    return amounts


def date_from_filename(filename: str) -> Optional[date]:
    """First of the month from the -YYYY-MM token in a bill's filename."""
    match = re.search(FILENAME_DATE_PATTERN, filename)
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), 1)
    except ValueError:
        return None


def assign_generic_subtotals(text: str, subtotals: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
    """
    Fill missing supply/delivery subtotals from the generic "Total supply
    charges" / "Total delivery charges" lines.

    Older bills list these in the order electric supply, electric delivery,
    gas supply, gas delivery, so matches are assigned by position. Only
    fields that are still None are filled.

    Args:
        text: Flattened bill text
        subtotals: Dict with electric_supply, electric_delivery, gas_supply, gas_delivery

    Returns:
        A new dict with the filled-in subtotals
    """
    result = dict(subtotals)
    if result['electric_delivery'] is not None and result['gas_delivery'] is not None:
        return result

    generic_supply = find_all_amounts(text, GENERIC_SUPPLY_PATTERN)
    generic_delivery = find_all_amounts(text, GENERIC_DELIVERY_PATTERN)

    if result['electric_delivery'] is None and len(generic_delivery) >= 1:
        result['electric_delivery'] = generic_delivery[0]
    if result['gas_delivery'] is None and len(generic_delivery) >= 2:
        result['gas_delivery'] = generic_delivery[1]

    if result['electric_supply'] is None and generic_supply:
        if len(generic_supply) >= 2:
            result['electric_supply'] = generic_supply[0]
            if result['gas_supply'] is None:
                result['gas_supply'] = generic_supply[1]
        elif result['gas_supply'] is None:
            # A lone generic supply line is gas; electric supply uses the specific wording
            result['gas_supply'] = generic_supply[0]
    elif result['gas_supply'] is None and generic_supply:
        result['gas_supply'] = generic_supply[0]

    return result


class BillExtractor:
    """Extracts BillRecords from a directory of saved HTML bills."""

    def __init__(self, bills_dir=BILLS_DIR, cutoff: date = BILL_CUTOFF_DATE):
        self.bills_dir = Path(bills_dir)
        self.cutoff = cutoff
        self.skipped: List[Tuple[str, str]] = []  # (filename, reason)

    def extract_date(self, text: str, filename: str) -> Optional[date]:
        """
        Determine the bill's service-period end date.

        Tries the billing-period phrases and the payment due date, then falls
        back to the filename when the result is missing, the known-bad
        sentinel, or implausibly old.
        """
        bill_date = None
        raw = match_field(text, 'bill_date')
        if raw:
            bill_date = parse_value(raw, 'date')
            if bill_date is None:
                print(f"   ⚠️ Failed to parse date string \"{raw}\" in {filename}")

        if bill_date is None or bill_date == BAD_SENTINEL_DATE or bill_date < PLAUSIBLE_MIN_DATE:
            bill_date = date_from_filename(filename)
            if bill_date is None:
                print(f"   ⚠️ No valid date found for {filename}")

        return bill_date

    def extract_bill(self, content: str, filename: str) -> Optional[BillRecord]:
        """
        Extract one bill.

        Args:
            content: Raw HTML of the bill
            filename: Source file name (used for the date fallback)

        Returns:
            BillRecord, or None when the bill has no usable date or predates the cutoff
        """
        text = flatten_html(content)

        bill_date = self.extract_date(text, filename)
        if bill_date is None:
            self.skipped.append((filename, 'no date'))
            return None
        if bill_date < self.cutoff:
            self.skipped.append((filename, f'before {self.cutoff.isoformat()}'))
            return None

        # Electric cost: combined line, else ESCO supply + Con Edison delivery
        electric_cost = extract_number(text, 'electric_cost')
        if electric_cost is None:
            supply = extract_number(text, 'esco_supply') or 0
            delivery = extract_number(text, 'coned_delivery') or 0
            if supply or delivery:
                electric_cost = supply + delivery

        gas_cost = extract_number(text, 'gas_cost')

        electric_usage = extract_number(text, 'electric_usage')
        if electric_usage is None:
            electric_usage = extract_number(text, 'electric_usage_table')

        gas_usage = extract_number(text, 'gas_usage')

        subtotals = assign_generic_subtotals(text, {
            'electric_supply': extract_number(text, 'electric_supply'),
            'electric_delivery': extract_number(text, 'electric_delivery'),
            'gas_supply': extract_number(text, 'gas_supply'),
            'gas_delivery': extract_number(text, 'gas_delivery'),
        })

        return BillRecord(
            filename=filename,
            bill_date=bill_date,
            electric_usage=electric_usage or 0.0,
            electric_cost=electric_cost or 0.0,
            gas_usage=gas_usage or 0.0,
            gas_cost=gas_cost or 0.0,
            total_amount_due=extract_number(text, 'total_amount_due'),
            **subtotals,
        )

    def extract_file(self, path: Path) -> Optional[BillRecord]:
        content = path.read_text(encoding='utf-8', errors='replace')
        return self.extract_bill(content, path.name)

    def process_files(self) -> List[BillRecord]:
        """Extract every *.html bill in the directory, sorted by date."""
        files = sorted(p for p in self.bills_dir.iterdir()
                       if p.is_file() and p.suffix.lower() == '.html')
        print(f"📄 Found {len(files)} HTML files in {self.bills_dir}")

        self.skipped = []
        records = []
        for path in files:
            record = self.extract_file(path)
            if record is None:
                continue
            for issue in record.reconciliation_issues():
                print(f"   ⚠️ {record.filename}: {issue}")
            records.append(record)

        records = sort_records(records)
        for prev, curr in zip(records, records[1:]):
            if prev.bill_date == curr.bill_date:
                print(f"   ⚠️ Duplicate bill date {curr.bill_date}: {prev.filename}, {curr.filename}")

        return records


def write_outputs(records: List[BillRecord], output_dir=DATA_DIR) -> Tuple[Path, Path]:
    """Write the JSON records and the CSV mirror."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    json_path = save_json(records, output_dir / BILLS_JSON)
    print(f"✅ Written JSON to {json_path}")
    csv_path = save_csv(records, output_dir / BILLS_CSV)
    print(f"✅ Written CSV to {csv_path}")
    return json_path, csv_path


def main(bills_dir=BILLS_DIR, output_dir=DATA_DIR) -> int:
    """Extract all bills and write bills_data.json / bills_data.csv."""
    bills_dir = Path(bills_dir)
    if not bills_dir.is_dir():
        print(f"❌ Bills directory not found: {bills_dir}")
        return 1

    extractor = BillExtractor(bills_dir)
    records = extractor.process_files()
    write_outputs(records, output_dir)

    print("\n📊 EXTRACTION SUMMARY")
    print("-" * 40)
    print(f"Bills extracted: {len(records):,}")
    print(f"Bills skipped:   {len(extractor.skipped):,}")
    for filename, reason in extractor.skipped:
        print(f"   - {filename} ({reason})")
    if records:
        print(f"Date Range:      {records[0].bill_date} to {records[-1].bill_date}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
