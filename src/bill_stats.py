"""
UsageHQ - Bill Statistics
Summary aggregates over the bill history (rolling averages, yearly totals, KPIs).
"""

from typing import Dict, List, Any, Optional

import pandas as pd

from bill_records import BillRecord, sort_records
from config import ROLLING_WINDOW


def to_frame(records: List[BillRecord]) -> pd.DataFrame:
    """Records as a date-sorted DataFrame with camelCase columns and a total column."""
    rows = [r.to_dict() for r in sort_records(records)]
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    df['totalCost'] = df['electricCost'] + df['gasCost']
    df['year'] = pd.to_datetime(df['date']).dt.year
    return df


def rolling_average(records: List[BillRecord], window: int = ROLLING_WINDOW) -> List[Dict[str, Any]]:
    """
    Trailing average of electric + gas cost over the last `window` bills.

    Returns:
        One {'date', 'avg'} point per bill from the window-th bill on
    """
    df = to_frame(records)
    if len(df) < window:
        return []

    rolled = df['totalCost'].rolling(window).mean()
    return [
        {'date': df['date'].iloc[i], 'avg': round(float(rolled.iloc[i]), 2)}
        for i in range(window - 1, len(df))
    ]


def yearly_totals(records: List[BillRecord]) -> List[Dict[str, Any]]:
    """Per-year cost and usage totals, oldest year first."""
    df = to_frame(records)
    if df.empty:
        return []

    grouped = df.groupby('year').agg(
        bills=('date', 'count'),
        electric_cost=('electricCost', 'sum'),
        gas_cost=('gasCost', 'sum'),
        total_cost=('totalCost', 'sum'),
        electric_usage=('electricUsage', 'sum'),
        gas_usage=('gasUsage', 'sum'),
    ).reset_index()

    return [
        {
            'year': int(row['year']),
            'bills': int(row['bills']),
            'electric_cost': round(float(row['electric_cost']), 2),
            'gas_cost': round(float(row['gas_cost']), 2),
            'total_cost': round(float(row['total_cost']), 2),
            'electric_usage': round(float(row['electric_usage']), 1),
            'gas_usage': round(float(row['gas_usage']), 1),
        }
        for _, row in grouped.iterrows()
    ]


def summarize(records: List[BillRecord]) -> Dict[str, Any]:
    """
    Headline figures for a set of bills.

    Returns:
        Dictionary with bills, total_spent, avg_per_bill, avg_per_day,
        electric_share, highest, lowest, supply_share and supply_bills
    """
    if not records:
        return {'bills': 0}

    total_spent = sum(r.total_cost for r in records)
    electric_total = sum(r.electric_cost for r in records)
    days = sum(getattr(r, 'days_covered', 0) or 0 for r in records)

    highest = max(records, key=lambda r: r.total_cost)
    lowest = min(records, key=lambda r: r.total_cost)

    with_split = [r for r in records if r.electric_supply is not None or r.gas_supply is not None]
    supply = sum((r.electric_supply or 0) + (r.gas_supply or 0) for r in with_split)
    delivery = sum((r.electric_delivery or 0) + (r.gas_delivery or 0) for r in with_split)
    supply_share: Optional[float] = supply / (supply + delivery) if supply + delivery > 0 else None

    return {
        'bills': len(records),
        'total_spent': round(total_spent, 2),
        'avg_per_bill': round(total_spent / len(records), 2),
        'avg_per_day': round(total_spent / days, 2) if days else None,
        'electric_share': electric_total / total_spent if total_spent else None,
        'highest': {'date': highest.bill_date.isoformat(), 'total': round(highest.total_cost, 2)},
        'lowest': {'date': lowest.bill_date.isoformat(), 'total': round(lowest.total_cost, 2)},
        'supply_share': supply_share,
        'supply_bills': len(with_split),
    }
