"""
UsageHQ - Dashboard chart logic
Client-side ApexCharts code written next to the dashboard page as dashboard_charts.js.

The page defines allData, rollingData and THEME before this script runs.
"""

CHARTS_JS = r"""// dashboard_charts.js - chart, summary and table logic for the usage dashboard
// allData, rollingData and THEME are defined by the page before this script runs.

const MONTH_NAMES = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec'];
const SEASON_MAP = { 0: 'Winter', 1: 'Winter', 2: 'Spring', 3: 'Spring', 4: 'Spring', 5: 'Summer', 6: 'Summer', 7: 'Summer', 8: 'Fall', 9: 'Fall', 10: 'Fall', 11: 'Winter' };
const PALETTE = ['#3b82f6', '#22c55e', '#f59e0b', '#ef4444', '#8b5cf6', '#14b8a6', '#f97316', '#ec4899', '#6366f1', '#84cc16'];

const charts = {};
let sortCol = null, sortAsc = true;

// --- UTILITY ---
function isMobile() { return window.innerWidth < 768; }
function chartHeight() { return isMobile() ? 260 : 340; }
function fmtMoney(v) { return '$' + Number(v).toLocaleString(undefined, { minimumFractionDigits: 2, maximumFractionDigits: 2 }); }
function pct(v) { return (v * 100).toFixed(1) + '%'; }
function round(v, places) { return v == null || !isFinite(v) ? null : +v.toFixed(places); }
function billYear(d) { return parseInt(d.date.slice(0, 4), 10); }
function billMonth(d) { return parseInt(d.date.slice(5, 7), 10) - 1; }
function perDay(v, d) { return d.daysCovered > 0 ? v / d.daysCovered : null; }

function costOf(d, fuel) {
    if (fuel === 'electric') return d.electricCost;
    if (fuel === 'gas') return d.gasCost;
    return d.electricCost + d.gasCost;
}

function sumNullable(a, b) { return (a == null && b == null) ? null : (a || 0) + (b || 0); }

function supplyOf(d, fuel) {
    if (fuel === 'electric') return d.electricSupply;
    if (fuel === 'gas') return d.gasSupply;
    return sumNullable(d.electricSupply, d.gasSupply);
}

function deliveryOf(d, fuel) {
    if (fuel === 'electric') return d.electricDelivery;
    if (fuel === 'gas') return d.gasDelivery;
    return sumNullable(d.electricDelivery, d.gasDelivery);
}

function heatClass(val, min, max) {
    if (max === min) return 'heat-mid';
    const ratio = (val - min) / (max - min);
    if (ratio < 0.33) return 'heat-low';
    if (ratio < 0.66) return 'heat-mid';
    return 'heat-high';
}

function baseOptions(title, type, extra) {
    return Object.assign({
        chart: { type: type, height: chartHeight(), toolbar: { show: false }, background: 'transparent', animations: { enabled: false } },
        theme: { mode: 'dark' },
        title: { text: title, align: 'left', style: { fontSize: '14px', fontWeight: 600, color: THEME.title } },
        dataLabels: { enabled: false },
        stroke: { curve: 'smooth', width: 2 },
        grid: { borderColor: THEME.grid },
        legend: { position: 'top', horizontalAlign: 'right', labels: { colors: THEME.text } },
        tooltip: { theme: 'dark', shared: true, intersect: false }
    }, extra);
}

function dateAxis(labels) {
    return { categories: labels, tickAmount: isMobile() ? 8 : 20, labels: { rotate: -45, style: { colors: THEME.muted } } };
}

function valueAxis(title, opposite, decimals) {
    return { opposite: !!opposite, title: { text: title, style: { color: THEME.muted } }, labels: { style: { colors: THEME.muted }, formatter: v => v == null ? '' : v.toFixed(decimals || 0) } };
}

function destroyChart(key) { if (charts[key]) { charts[key].destroy(); delete charts[key]; } }

function renderChart(key, elementId, options) {
    destroyChart(key);
    const el = document.getElementById(elementId);
    if (!el) return;
    el.innerHTML = '';
    charts[key] = new ApexCharts(el, options);
    charts[key].render();
}

function showPanel(elementId, visible) {
    const el = document.getElementById(elementId);
    if (el && el.parentElement) el.parentElement.style.display = visible ? '' : 'none';
}

// --- FILTERS ---
const years = [...new Set(allData.map(billYear))].sort();
const yearSelect = document.getElementById('yearFilter');
years.forEach(y => { const o = document.createElement('option'); o.value = y; o.textContent = y; yearSelect.appendChild(o); });

function currentFilters() {
    return {
        year: document.getElementById('yearFilter').value,
        month: document.getElementById('monthFilter').value,
        fuel: document.getElementById('fuelFilter').value
    };
}

// --- MAIN UPDATE ---
function updateDashboard() {
    const f = currentFilters();
    const filtered = allData.filter(d =>
        (f.year === 'all' || billYear(d).toString() === f.year) &&
        (f.month === 'all' || billMonth(d).toString() === f.month));

    document.body.className = 'fuel-' + f.fuel;
    updateSummary(filtered, f.year, f.fuel);
    updateTable(filtered, f.fuel);
    updateMainCharts(filtered, f.fuel);
    updateAnalysisCharts(filtered, f.fuel);
}

// --- SUMMARY KPI ---
function summaryItem(value, label, sub, cls) {
    return `<div class='summary-item'><div class='summary-value ${cls || ''}'>${value}</div><div class='summary-label'>${label}</div>${sub ? `<div class='summary-sub'>${sub}</div>` : ''}</div>`;
}

function updateSummary(data, yearVal, fuel) {
    const el = document.getElementById('summary');
    if (!data.length) { el.innerHTML = '<p class="empty">No data for selected filters.</p>'; return; }

    const totalSpent = data.reduce((a, d) => a + costOf(d, fuel), 0);
    const totalDays = data.reduce((a, d) => a + d.daysCovered, 0);
    const withTotals = data.map(d => ({ date: d.date, total: costOf(d, fuel) }));
    const highest = withTotals.reduce((a, b) => a.total > b.total ? a : b);
    const lowest = withTotals.reduce((a, b) => a.total < b.total ? a : b);

    let html = summaryItem(fmtMoney(totalSpent), 'Total Spent')
        + summaryItem(fmtMoney(totalSpent / data.length), 'Avg Monthly')
        + summaryItem(totalDays > 0 ? fmtMoney(totalSpent / totalDays) : '—', 'Avg $/Day')
        + summaryItem(data.length, 'Bills');

    if (fuel === 'both' && totalSpent > 0) {
        const elecPct = data.reduce((a, d) => a + d.electricCost, 0) / totalSpent;
        html += summaryItem(pct(elecPct), 'Electric Share', `${pct(1 - elecPct)} Gas`);
    }
    html += summaryItem(fmtMoney(highest.total), 'Highest Bill', highest.date)
        + summaryItem(fmtMoney(lowest.total), 'Lowest Bill', lowest.date);

    const sdData = data.filter(d => supplyOf(d, fuel) != null);
    const totalSupply = sdData.reduce((a, d) => a + (supplyOf(d, fuel) || 0), 0);
    const totalDelivery = sdData.reduce((a, d) => a + (deliveryOf(d, fuel) || 0), 0);
    if (totalSupply + totalDelivery > 0) {
        const supPct = totalSupply / (totalSupply + totalDelivery);
        html += summaryItem(`${pct(supPct)} / ${pct(1 - supPct)}`, 'Supply / Delivery', `${sdData.length} bills w/ data`, 'small');
    }

    if (yearVal !== 'all') {
        const yr = parseInt(yearVal, 10);
        const prevYrData = allData.filter(d => billYear(d) === yr - 1);
        const prevTotal = prevYrData.reduce((a, d) => a + costOf(d, fuel), 0);
        if (prevYrData.length && prevTotal > 0) {
            const change = (totalSpent - prevTotal) / prevTotal;
            const cls = change > 0.01 ? 'yoy-up' : change < -0.01 ? 'yoy-down' : 'yoy-flat';
            const arrow = change > 0 ? '↑' : change < 0 ? '↓' : '→';
            html += summaryItem(`${arrow} ${pct(Math.abs(change))}`, `vs ${yr - 1}`, '', cls);
        }
    }

    el.innerHTML = html;
}

// --- TABLE ---
function sortValue(d, col, fuel) {
    switch (col) {
        case 'totalCost': return costOf(d, fuel);
        case 'kwhPerDay': return perDay(d.electricUsage, d);
        case 'costPerDay': return perDay(costOf(d, fuel), d);
        case 'supplyTotal': return supplyOf(d, fuel);
        case 'deliveryTotal': return deliveryOf(d, fuel);
        default: return d[col];
    }
}

function compareValues(va, vb) {
    if (va == null && vb == null) return 0;
    if (va == null) return 1;
    if (vb == null) return -1;
    if (typeof va === 'string') return sortAsc ? va.localeCompare(vb) : vb.localeCompare(va);
    return sortAsc ? va - vb : vb - va;
}

function cell(value, fuelTag, cls) {
    const attrs = (fuelTag ? ` data-fuel="${fuelTag}"` : '') + (cls ? ` class="${cls}"` : '');
    return `<td${attrs}>${value == null ? '—' : value}</td>`;
}

function updateTable(data, fuel) {
    const tbody = document.querySelector('#dataTable tbody');
    const costs = data.map(d => costOf(d, fuel));
    const minC = Math.min(...costs), maxC = Math.max(...costs);

    const sorted = [...data];
    if (sortCol) sorted.sort((a, b) => compareValues(sortValue(a, sortCol, fuel), sortValue(b, sortCol, fuel)));

    tbody.innerHTML = sorted.map(d => {
        const total = costOf(d, fuel);
        const supply = supplyOf(d, fuel), delivery = deliveryOf(d, fuel);
        const kwhDay = perDay(d.electricUsage, d), costDay = perDay(total, d);
        return '<tr>'
            + cell(d.date) + cell(d.avgTemp)
            + cell(d.electricUsage, 'electric') + cell(fmtMoney(d.electricCost), 'electric')
            + cell(d.gasUsage, 'gas') + cell(fmtMoney(d.gasCost), 'gas')
            + cell(fmtMoney(total), null, heatClass(total, minC, maxC))
            + cell(supply == null ? null : fmtMoney(supply)) + cell(delivery == null ? null : fmtMoney(delivery))
            + cell(d.hdd) + cell(d.cdd) + cell(d.daysCovered)
            + cell(kwhDay == null ? null : kwhDay.toFixed(1), 'electric') + cell(costDay == null ? null : fmtMoney(costDay))
            + '</tr>';
    }).join('');

    document.getElementById('tableCount').textContent = `${sorted.length} records`;
}

// --- MAIN CHARTS ---
function usageVsTempChart(key, elementId, data, usageKey, name, unit, color) {
    renderChart(key, elementId, baseOptions(`${name} Usage vs Temperature`, 'line', {
        series: [
            { name: `${name} (${unit})`, type: 'area', data: data.map(d => d[usageKey]) },
            { name: 'Avg Temp (°F)', type: 'line', data: data.map(d => d.avgTemp) }
        ],
        colors: [color, THEME.temperature],
        fill: { type: ['gradient', 'solid'], gradient: { opacityFrom: 0.35, opacityTo: 0.05 } },
        stroke: { curve: 'smooth', width: [2, 2], dashArray: [0, 5] },
        xaxis: dateAxis(data.map(d => d.date)),
        yaxis: [valueAxis(unit), valueAxis('°F', true)]
    }));
}

function updateMainCharts(data, fuel) {
    const labels = data.map(d => d.date);

    showPanel('electricChart', fuel !== 'gas');
    if (fuel !== 'gas') usageVsTempChart('electric', 'electricChart', data, 'electricUsage', 'Electric', 'kWh', THEME.electric);
    else destroyChart('electric');

    showPanel('gasChart', fuel !== 'electric');
    if (fuel !== 'electric') usageVsTempChart('gas', 'gasChart', data, 'gasUsage', 'Gas', 'therms', THEME.gas);
    else destroyChart('gas');

    // Cost breakdown: supply/delivery when the bills carry it
    const hasBreakdown = data.some(d => d.electricSupply != null || d.electricDelivery != null || d.gasSupply != null || d.gasDelivery != null);
    let costSeries;
    if (hasBreakdown) {
        costSeries = [];
        if (fuel !== 'gas') {
            costSeries.push({ name: 'Elec Supply $', data: data.map(d => d.electricSupply || 0) });
            costSeries.push({ name: 'Elec Delivery $', data: data.map(d => d.electricDelivery || 0) });
        }
        if (fuel !== 'electric') {
            costSeries.push({ name: 'Gas Supply $', data: data.map(d => d.gasSupply || 0) });
            costSeries.push({ name: 'Gas Delivery $', data: data.map(d => d.gasDelivery || 0) });
        }
    } else {
        costSeries = [];
        if (fuel !== 'gas') costSeries.push({ name: 'Electric $', data: data.map(d => d.electricCost) });
        if (fuel !== 'electric') costSeries.push({ name: 'Gas $', data: data.map(d => d.gasCost) });
    }
    renderChart('cost', 'costBreakdownChart', baseOptions(hasBreakdown ? 'Cost Breakdown: Supply vs Delivery' : 'Monthly Cost Breakdown', 'bar', {
        chart: { type: 'bar', stacked: true, height: chartHeight(), toolbar: { show: false }, background: 'transparent', animations: { enabled: false } },
        series: costSeries,
        colors: hasBreakdown ? [THEME.electric, THEME.electric_light, THEME.gas, THEME.gas_light].slice(fuel === 'gas' ? 2 : 0) : (fuel === 'gas' ? [THEME.gas] : [THEME.electric, THEME.gas]),
        plotOptions: { bar: { columnWidth: '70%', borderRadius: 2 } },
        xaxis: dateAxis(labels),
        yaxis: valueAxis('USD ($)')
    }));

    // Daily normalized usage
    const dailySeries = [], dailyAxes = [], dailyColors = [];
    if (fuel !== 'gas') {
        dailySeries.push({ name: 'kWh / Day', data: data.map(d => round(perDay(d.electricUsage, d), 1)) });
        dailyAxes.push(valueAxis('kWh/day', false, 1));
        dailyColors.push(THEME.electric);
    }
    if (fuel !== 'electric') {
        dailySeries.push({ name: 'Therms / Day', data: data.map(d => round(perDay(d.gasUsage, d), 2)) });
        dailyAxes.push(valueAxis('Therms/day', dailyAxes.length > 0, 2));
        dailyColors.push(THEME.gas);
    }
    renderChart('daily', 'dailyNormChart', baseOptions('Daily Normalized Usage', 'line', {
        series: dailySeries, colors: dailyColors, xaxis: dateAxis(labels), yaxis: dailyAxes
    }));
}

// --- ANALYSIS CHARTS ---
function updateAnalysisCharts(data, fuel) {
    const labels = data.map(d => d.date);

    // Unit cost rates
    const rateSeries = [], rateAxes = [], rateColors = [];
    if (fuel !== 'gas') {
        rateSeries.push({ name: '$/kWh', data: data.map(d => d.electricUsage > 0 ? round(d.electricCost / d.electricUsage, 3) : null) });
        rateAxes.push(valueAxis('$/kWh', false, 3));
        rateColors.push(THEME.electric);
    }
    if (fuel !== 'electric') {
        rateSeries.push({ name: '$/Therm', data: data.map(d => d.gasUsage > 0 ? round(d.gasCost / d.gasUsage, 3) : null) });
        rateAxes.push(valueAxis('$/Therm', rateAxes.length > 0, 3));
        rateColors.push(THEME.gas);
    }
    renderChart('rate', 'rateChart', baseOptions('Unit Cost Rates', 'line', {
        series: rateSeries, colors: rateColors, xaxis: dateAxis(labels), yaxis: rateAxes
    }));

    // Temperature vs usage, one series per year
    const usageKey = fuel === 'gas' ? 'gasUsage' : 'electricUsage';
    const usageUnit = fuel === 'gas' ? 'therms' : 'kWh';
    const scatterYears = [...new Set(data.map(billYear))].sort();
    renderChart('scatter', 'scatterChart', baseOptions(`Temperature vs ${fuel === 'gas' ? 'Gas' : 'Electric'} Usage`, 'scatter', {
        series: scatterYears.map(yr => ({
            name: '' + yr,
            data: data.filter(d => billYear(d) === yr && d.avgTemp != null).map(d => [d.avgTemp, d[usageKey]])
        })),
        colors: scatterYears.map((_, i) => PALETTE[i % PALETTE.length]),
        markers: { size: isMobile() ? 3 : 5 },
        tooltip: { theme: 'dark' },
        xaxis: { type: 'numeric', tickAmount: 10, title: { text: 'Avg Temp (°F)', style: { color: THEME.muted } }, labels: { style: { colors: THEME.muted }, formatter: v => Number(v).toFixed(0) } },
        yaxis: valueAxis(usageUnit)
    }));

    // Spending by season
    const seasonTotals = { Winter: 0, Spring: 0, Summer: 0, Fall: 0 };
    data.forEach(d => { seasonTotals[SEASON_MAP[billMonth(d)]] += costOf(d, fuel); });
    renderChart('seasonal', 'seasonalChart', baseOptions('Spending by Season', 'donut', {
        series: Object.values(seasonTotals).map(v => +v.toFixed(2)),
        labels: Object.keys(seasonTotals),
        colors: ['#60a5fa', '#4ade80', '#fbbf24', '#f87171'],
        stroke: { width: 2, colors: [THEME.background] },
        legend: { position: 'bottom', labels: { colors: THEME.text } },
        tooltip: { theme: 'dark', y: { formatter: v => fmtMoney(v) } }
    }));

    // Supply vs delivery trend
    const sdData = data.filter(d => supplyOf(d, fuel) != null);
    showPanel('supplyDeliveryChart', sdData.length > 1);
    if (sdData.length > 1) {
        renderChart('supplyDelivery', 'supplyDeliveryChart', baseOptions('Supply vs Delivery Cost Trend', 'area', {
            series: [
                { name: 'Total Supply $', data: sdData.map(d => round(supplyOf(d, fuel) || 0, 2)) },
                { name: 'Total Delivery $', data: sdData.map(d => round(deliveryOf(d, fuel) || 0, 2)) }
            ],
            colors: [THEME.supply, THEME.delivery],
            fill: { type: 'gradient', gradient: { opacityFrom: 0.3, opacityTo: 0.05 } },
            xaxis: dateAxis(sdData.map(d => d.date)),
            yaxis: valueAxis('USD ($)')
        }));
    } else {
        destroyChart('supplyDelivery');
    }

    // Degree days per bill
    renderChart('degreeDays', 'degreeDaysChart', baseOptions('Heating & Cooling Degree Days', 'bar', {
        chart: { type: 'bar', stacked: true, height: chartHeight(), toolbar: { show: false }, background: 'transparent', animations: { enabled: false } },
        series: [
            { name: 'HDD', data: data.map(d => d.hdd) },
            { name: 'CDD', data: data.map(d => d.cdd) }
        ],
        colors: [THEME.heating, THEME.cooling],
        plotOptions: { bar: { columnWidth: '70%', borderRadius: 2 } },
        xaxis: dateAxis(labels),
        yaxis: valueAxis('Degree Days')
    }));

    // Year-over-year by month
    const yoyData = {};
    data.forEach(d => {
        const yr = billYear(d);
        if (!yoyData[yr]) yoyData[yr] = new Array(12).fill(null);
        yoyData[yr][billMonth(d)] = round(costOf(d, fuel), 2);
    });
    const yoyYears = Object.keys(yoyData).sort();
    renderChart('yoy', 'yoyChart', baseOptions('Year-over-Year Cost Comparison', 'line', {
        series: yoyYears.map(yr => ({ name: '' + yr, data: yoyData[yr] })),
        colors: yoyYears.map((_, i) => PALETTE[i % PALETTE.length]),
        markers: { size: 3 },
        legend: { position: 'bottom', labels: { colors: THEME.text } },
        xaxis: { categories: MONTH_NAMES, labels: { style: { colors: THEME.muted } } },
        yaxis: valueAxis('Total Cost ($)')
    }));

    // Rolling 12-month average (always over the full history)
    renderChart('rolling', 'rollingChart', baseOptions('Rolling 12-Month Average Cost', 'area', {
        series: [{ name: '12-Month Rolling Avg', data: rollingData.map(p => p.avg) }],
        colors: [THEME.accent],
        fill: { type: 'gradient', gradient: { opacityFrom: 0.3, opacityTo: 0.05 } },
        xaxis: dateAxis(rollingData.map(p => p.date)),
        yaxis: valueAxis('Avg Monthly Cost ($)')
    }));
}

// --- SORTABLE TABLE ---
document.querySelectorAll('#dataTable th[data-col]').forEach(th => {
    th.addEventListener('click', () => {
        const col = th.dataset.col;
        if (sortCol === col) sortAsc = !sortAsc; else { sortCol = col; sortAsc = true; }
        document.querySelectorAll('#dataTable th').forEach(h => {
            h.classList.remove('sorted');
            const arrow = h.querySelector('.sort-arrow');
            if (arrow) arrow.textContent = '';
        });
        th.classList.add('sorted');
        th.querySelector('.sort-arrow').textContent = sortAsc ? '▲' : '▼';
        updateDashboard();
    });
});

// --- CSV EXPORT ---
function isVisible(el, fuel) { return !el.dataset.fuel || fuel === 'both' || el.dataset.fuel === fuel; }

function csvField(text) {
    const clean = text.replace(/^\$/, '').replace(/,/g, '').replace(/—/g, '');
    return /[",\n]/.test(clean) ? '"' + clean.replace(/"/g, '""') + '"' : clean;
}

function exportCSV() {
    const fuel = currentFilters().fuel;
    const headers = [...document.querySelectorAll('#dataTable thead th')].filter(th => isVisible(th, fuel));
    const rows = [headers.map(th => csvField(th.dataset.label || th.textContent.trim()))];
    document.querySelectorAll('#dataTable tbody tr').forEach(tr => {
        rows.push([...tr.querySelectorAll('td')].filter(td => isVisible(td, fuel)).map(td => csvField(td.textContent)));
    });
    const csv = rows.map(r => r.join(',')).join('\n');
    const blob = new Blob([csv], { type: 'text/csv' });
    const a = document.createElement('a');
    a.href = URL.createObjectURL(blob);
    a.download = 'utility_bills.csv';
    a.click();
}

// --- EVENT LISTENERS ---
document.getElementById('yearFilter').addEventListener('change', updateDashboard);
document.getElementById('monthFilter').addEventListener('change', updateDashboard);
document.getElementById('fuelFilter').addEventListener('change', updateDashboard);
document.getElementById('exportCsv').addEventListener('click', exportCSV);

// Initial render
updateDashboard();
"""
