"""
UsageHQ - Bill Records
Data classes for extracted and weather-enriched bills, plus JSON/CSV file I/O.
"""

import json
from dataclasses import dataclass, fields, asdict
from datetime import date, datetime
from pathlib import Path
from typing import Optional, List, Dict, Any, Type, TypeVar

import pandas as pd

from config import RECONCILE_TOLERANCE


# Attribute name -> JSON key
JSON_KEYS = {
    'filename': 'filename',
    'bill_date': 'date',
    'electric_usage': 'electricUsage',
    'electric_cost': 'electricCost',
    'gas_usage': 'gasUsage',
    'gas_cost': 'gasCost',
    'electric_supply': 'electricSupply',
    'electric_delivery': 'electricDelivery',
    'gas_supply': 'gasSupply',
    'gas_delivery': 'gasDelivery',
    'total_amount_due': 'totalAmountDue',
    'avg_temp': 'avgTemp',
    'days_covered': 'daysCovered',
    'hdd': 'hdd',
    'cdd': 'cdd',
    'total_degree_days': 'totalDegreeDays',
    'electric_intensity': 'electricIntensity',
    'gas_intensity': 'gasIntensity',
}

# JSON key -> CSV header, in column order
CSV_COLUMNS = {
    'date': 'Date',
    'electricUsage': 'Electric Usage (kWh)',
    'electricCost': 'Electric Cost ($)',
    'electricSupply': 'Elec Supply ($)',
    'electricDelivery': 'Elec Delivery ($)',
    'gasUsage': 'Gas Usage (therms)',
    'gasCost': 'Gas Cost ($)',
    'gasSupply': 'Gas Supply ($)',
    'gasDelivery': 'Gas Delivery ($)',
    'totalAmountDue': 'Total Due ($)',
    'filename': 'Source File',
}

_INT_FIELDS = {'days_covered'}
_REQUIRED_FLOATS = {'electric_usage', 'electric_cost', 'gas_usage', 'gas_cost'}


@dataclass(frozen=True)
class BillRecord:
    """One billing statement as extracted from a saved HTML bill."""
    filename: str
    bill_date: date
    electric_usage: float = 0.0
    electric_cost: float = 0.0
    gas_usage: float = 0.0
    gas_cost: float = 0.0
    electric_supply: Optional[float] = None
    electric_delivery: Optional[float] = None
    gas_supply: Optional[float] = None
    gas_delivery: Optional[float] = None
    total_amount_due: Optional[float] = None

    @property
    def total_cost(self) -> float:
        return self.electric_cost + self.gas_cost

    def reconciliation_issues(self, tolerance: float = RECONCILE_TOLERANCE) -> List[str]:
        """
        Compare each fuel's cost against its supply + delivery subtotals.

        Advisory only: the record is never changed because of a mismatch.

        Returns:
            Human-readable descriptions of the fuels that do not add up
        """
        issues = []
        checks = [
            ('Electric', self.electric_cost, self.electric_supply, self.electric_delivery),
            ('Gas', self.gas_cost, self.gas_supply, self.gas_delivery),
        ]
        for label, cost, supply, delivery in checks:
            if supply is None or delivery is None:
                continue
            subtotal = supply + delivery
            if abs(cost - subtotal) > tolerance:
                issues.append(
                    f"{label} cost ${cost:.2f} != supply ${supply:.2f} + delivery ${delivery:.2f}"
                )
        return issues

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys in field order."""
        result = {}
        for name, value in asdict(self).items():
            if isinstance(value, date):
                value = value.isoformat()
            result[JSON_KEYS[name]] = value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """Build a record from a camelCase dict; unknown keys are ignored."""
        kwargs = {}
        for f in fields(cls):
            key = JSON_KEYS[f.name]
            if key not in data:
                continue
            value = data[key]
            if f.name == 'bill_date':
                value = parse_iso_date(value)
            elif value is None:
                pass
            elif f.name in _INT_FIELDS:
                value = int(value)
            elif f.name != 'filename':
                value = float(value)
            if value is None and f.name in _REQUIRED_FLOATS:
                value = 0.0
            kwargs[f.name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class EnrichedBillRecord(BillRecord):
    """A BillRecord plus weather-derived fields for its service period."""
    avg_temp: Optional[float] = None
    days_covered: int = 0
    hdd: Optional[float] = None
    cdd: Optional[float] = None
    total_degree_days: Optional[float] = None
    electric_intensity: Optional[float] = None
    gas_intensity: Optional[float] = None


RecordT = TypeVar('RecordT', bound=BillRecord)


def parse_iso_date(value) -> date:
    """Parse a YYYY-MM-DD string (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()


def sort_records(records: List[RecordT]) -> List[RecordT]:
    """Sort ascending by bill date, ties broken by source filename."""
    return sorted(records, key=lambda r: (r.bill_date, r.filename))


def save_json(records: List[BillRecord], path) -> Path:
    """Write records as a pretty-printed JSON array."""
    path = Path(path)
    payload = json.dumps([r.to_dict() for r in records], indent=2)
    path.write_text(payload, encoding='utf-8')
    return path


def load_json(path, record_type: Type[RecordT] = BillRecord) -> List[RecordT]:
    """Read a JSON array written by save_json."""
    path = Path(path)
    with path.open('r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array in {path}")
    return [record_type.from_dict(item) for item in data]


def save_csv(records: List[BillRecord], path) -> Path:
    """Write the spreadsheet mirror of the extracted bills."""
    path = Path(path)
    rows = [r.to_dict() for r in records]
    df = pd.DataFrame(rows, columns=list(CSV_COLUMNS.keys()))
    df = df.rename(columns=CSV_COLUMNS)
    df.to_csv(path, index=False)
    return path
