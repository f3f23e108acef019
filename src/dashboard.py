"""
UsageHQ - Dashboard Builder
Writes a self-contained HTML dashboard with the enriched bills inlined and
the ApexCharts logic in a sibling dashboard_charts.js.
"""

import json
import sys
from pathlib import Path
from typing import List, Any, Tuple

from bill_records import EnrichedBillRecord, load_json, sort_records
from bill_stats import rolling_average, summarize, yearly_totals
from config import (
    DATA_DIR, WEATHER_JSON, DASHBOARD_HTML, DASHBOARD_JS,
    APEXCHARTS_CDN, ROLLING_WINDOW,
)
from dashboard_charts import CHARTS_JS


# (column key, header label, fuel the column belongs to)
TABLE_COLUMNS = [
    ('date', 'Date', None),
    ('avgTemp', 'Avg Temp', None),
    ('electricUsage', 'kWh', 'electric'),
    ('electricCost', 'Electric $', 'electric'),
    ('gasUsage', 'Therms', 'gas'),
    ('gasCost', 'Gas $', 'gas'),
    ('totalCost', 'Total $', None),
    ('supplyTotal', 'Supply $', None),
    ('deliveryTotal', 'Delivery $', None),
    ('hdd', 'HDD', None),
    ('cdd', 'CDD', None),
    ('daysCovered', 'Days', None),
    ('kwhPerDay', 'kWh/Day', 'electric'),
    ('costPerDay', '$/Day', None),
]

CHART_PANELS = [
    'electricChart', 'gasChart', 'costBreakdownChart', 'dailyNormChart',
    'rateChart', 'scatterChart', 'seasonalChart', 'supplyDeliveryChart',
    'degreeDaysChart', 'yoyChart', 'rollingChart',
]

MONTH_NAMES = ['January', 'February', 'March', 'April', 'May', 'June', 'July',
               'August', 'September', 'October', 'November', 'December']


def _header_cell(key: str, label: str, fuel: str = None) -> str:
    fuel_attr = f' data-fuel="{fuel}"' if fuel else ''
    return f'<th data-col="{key}" data-label="{label}"{fuel_attr}>{label} <span class="sort-arrow"></span></th>'


def embed_json(data: Any) -> str:
    """Compact JSON that is safe to place inside a <script> element."""
    return json.dumps(data, separators=(',', ':')).replace('</', '<\\/')


class DashboardBuilder:
    """Builds the usage dashboard page from enriched bills."""

    # Dark theme colors
    COLORS = {
        'electric': '#3b82f6',
        'electric_light': '#60a5fa',
        'gas': '#22c55e',
        'gas_light': '#4ade80',
        'heating': '#c0392b',
        'cooling': '#2980b9',
        'temperature': '#f59e0b',
        'supply': '#f59e0b',
        'delivery': '#8b5cf6',
        'accent': '#a78bfa',
        'title': '#e2e8f0',
        'text': '#94a3b8',
        'muted': '#64748b',
        'grid': '#2d3348',
        'background': '#0f1320',
        'card': '#1e2235',
    }

    def __init__(self, records: List[EnrichedBillRecord]):
        self.records = sort_records(records)

    def _get_page_top(self) -> str:
        """Static page: head, filters, summary, chart panels and table (no closing tags)."""
        c = self.COLORS
        month_options = '\n'.join(
            f'                <option value="{i}">{name}</option>' for i, name in enumerate(MONTH_NAMES)
        )
        panels = '\n'.join(
            f'        <div class="panel"><div id="{panel_id}"></div></div>' for panel_id in CHART_PANELS
        )
        headers = '\n'.join(
            f'                {_header_cell(key, label, fuel)}' for key, label, fuel in TABLE_COLUMNS
        )

        return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>Utility Usage Dashboard</title>
    <script src="{APEXCHARTS_CDN}"></script>
    <style>
        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        body {{
            background: {c['background']};
            color: {c['text']};
            font-family: 'Inter', 'Segoe UI', system-ui, sans-serif;
            padding: 24px;
        }}
        h1 {{ color: {c['title']}; font-size: 24px; margin-bottom: 16px; }}
        .controls {{ display: flex; flex-wrap: wrap; gap: 12px; margin-bottom: 20px; align-items: center; }}
        .controls label {{ font-size: 13px; }}
        select, button {{
            background: {c['card']}; color: {c['title']};
            border: 1px solid {c['grid']}; border-radius: 6px; padding: 6px 10px;
        }}
        button {{ cursor: pointer; }}
        #summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 12px; margin-bottom: 20px; }}
        .summary-item {{ background: {c['card']}; border-radius: 10px; padding: 14px; }}
        .summary-value {{ color: {c['title']}; font-size: 22px; font-weight: 600; }}
        .summary-value.small {{ font-size: 18px; }}
        .summary-label {{ font-size: 12px; margin-top: 4px; }}
        .summary-sub {{ font-size: 11px; color: {c['muted']}; }}
        .yoy-up {{ color: #f87171; }}
        .yoy-down {{ color: #4ade80; }}
        .yoy-flat {{ color: {c['text']}; }}
        .empty {{ color: {c['muted']}; }}
        .charts {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(460px, 1fr)); gap: 16px; margin-bottom: 24px; }}
        .panel {{ background: {c['card']}; border-radius: 10px; padding: 12px; }}
        .table-wrap {{ overflow-x: auto; background: {c['card']}; border-radius: 10px; padding: 12px; }}
        table {{ width: 100%; border-collapse: collapse; font-size: 13px; }}
        th, td {{ padding: 6px 8px; border-bottom: 1px solid {c['grid']}; text-align: right; white-space: nowrap; }}
        th:first-child, td:first-child {{ text-align: left; }}
        th {{ color: {c['title']}; cursor: pointer; user-select: none; }}
        th.sorted {{ color: {c['accent']}; }}
        .heat-low {{ color: #4ade80; }}
        .heat-mid {{ color: #fbbf24; }}
        .heat-high {{ color: #f87171; }}
        body.fuel-electric [data-fuel="gas"] {{ display: none; }}
        body.fuel-gas [data-fuel="electric"] {{ display: none; }}
        @media (max-width: 768px) {{
            body {{ padding: 12px; }}
            .charts {{ grid-template-columns: 1fr; }}
        }}
    </style>
</head>
<body>
    <h1>Utility Usage Dashboard</h1>
    <div class="controls">
        <label>Year
            <select id="yearFilter">
                <option value="all">All years</option>
            </select>
        </label>
        <label>Month
            <select id="monthFilter">
                <option value="all">All months</option>
{month_options}
            </select>
        </label>
        <label>Fuel
            <select id="fuelFilter">
                <option value="both">Electric + Gas</option>
                <option value="electric">Electric</option>
                <option value="gas">Gas</option>
            </select>
        </label>
        <button id="exportCsv" type="button">Export CSV</button>
    </div>
    <div id="summary"></div>
    <div class="charts">
{panels}
    </div>
    <div class="table-wrap">
        <div class="summary-sub" id="tableCount"></div>
        <table id="dataTable">
            <thead><tr>
{headers}
            </tr></thead>
            <tbody></tbody>
        </table>
    </div>'''

    def build_html(self) -> str:
        """Full page: template + inlined data + reference to the chart script."""
        all_data = [r.to_dict() for r in self.records]
        rolling = rolling_average(self.records, ROLLING_WINDOW)
        return (
            self._get_page_top()
            + f'\n    <script>const THEME = {embed_json(self.COLORS)};</script>'
            + f'\n    <script>const allData = {embed_json(all_data)};</script>'
            + f'\n    <script>const rollingData = {embed_json(rolling)};</script>'
            + f'\n    <script src="{DASHBOARD_JS}"></script>'
            + '\n</body>\n</html>'
        )

    def write(self, output_dir=DATA_DIR) -> Tuple[Path, Path]:
        """Write usage_dashboard.html and dashboard_charts.js side by side."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        html = self.build_html()
        html_path = output_dir / DASHBOARD_HTML
        html_path.write_text(html, encoding='utf-8')

        js_path = output_dir / DASHBOARD_JS
        js_path.write_text(CHARTS_JS, encoding='utf-8')

        print(f"✅ Written {html_path} ({len(html):,} bytes)")
        print(f"✅ Written {js_path}")
        return html_path, js_path


def _print_summary(records: List[EnrichedBillRecord]):
    """Print the headline figures for the whole history."""
    stats = summarize(records)
    print("\n📊 DASHBOARD SUMMARY")
    print("-" * 40)
    print(f"Bills:           {stats['bills']:,}")
    if not stats['bills']:
        return

    print(f"Total Spent:     ${stats['total_spent']:,.2f}")
    print(f"Avg per Bill:    ${stats['avg_per_bill']:,.2f}")
    if stats['avg_per_day'] is not None:
        print(f"Avg per Day:     ${stats['avg_per_day']:,.2f}")
    if stats['electric_share'] is not None:
        print(f"Electric Share:  {stats['electric_share']:.1%}")
    print(f"Highest Bill:    ${stats['highest']['total']:,.2f} ({stats['highest']['date']})")
    print(f"Lowest Bill:     ${stats['lowest']['total']:,.2f} ({stats['lowest']['date']})")
    if stats['supply_share'] is not None:
        print(f"Supply/Delivery: {stats['supply_share']:.1%} / {1 - stats['supply_share']:.1%} "
              f"({stats['supply_bills']} bills)")

    print("\nYear    Bills   Electric $      Gas $     Total $")
    for row in yearly_totals(records):
        print(f"{row['year']}  {row['bills']:>6}  {row['electric_cost']:>11,.2f}  "
              f"{row['gas_cost']:>9,.2f}  {row['total_cost']:>10,.2f}")


def main(input_path=None, output_dir=None) -> int:
    """Read bills_weather_data.json and write the dashboard."""
    input_path = Path(input_path or DATA_DIR / WEATHER_JSON)
    output_dir = Path(output_dir or DATA_DIR)

    if not input_path.exists():
        print(f"❌ Enriched bill data not found: {input_path}")
        return 1

    records = load_json(input_path, EnrichedBillRecord)
    builder = DashboardBuilder(records)
    builder.write(output_dir)
    _print_summary(builder.records)
    return 0


if __name__ == '__main__':
    sys.exit(main())
