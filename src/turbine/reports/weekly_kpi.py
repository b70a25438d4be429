"""Generate the weekly KPI trend report."""

import html
import json
from datetime import datetime

from ..models import Metrics, WeeklyMetrics


def generate_weekly_kpi_report(
    weekly: WeeklyMetrics,
    overall: Metrics | None = None,
    title: str = "Weekly Turbine KPIs",
    period: str = "",
) -> str:
    """Generate an HTML report with a weekly Ao / At / R chart.

    Args:
        weekly: Weekly series from calculate_weekly_metrics
        overall: Optional KPIs for the whole period, shown as header cards
        title: Page title
        period: Period description shown under the title

    Returns:
        Complete HTML document as a string
    """
    if not weekly.labels:
        return "<html><body><p>No data available</p></body></html>"

    generated_date = datetime.now().strftime("%Y-%m-%d %H:%M")
    safe_title = html.escape(title)
    safe_period = html.escape(period)

    cards = ""
    if overall is not None:
        card_items = [
            ("Operational Availability", f"{overall.operational_availability:.2f}%"),
            ("Technical Availability", f"{overall.technical_availability:.2f}%"),
            ("MTBF", f"{overall.mtbf:.2f} h"),
            ("MTTR", f"{overall.mttr:.2f} h"),
            ("Reliability", f"{overall.reliability_r:.2f}%"),
        ]
        cards = "\n".join(
            f"""            <div class="card rounded-xl p-4 shadow-lg text-center">
                <div class="text-xs text-gray-500">{label}</div>
                <div class="text-2xl font-bold text-gray-800">{value}</div>
            </div>"""
            for label, value in card_items
        )

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{safe_title}</title>
    <script src="https://cdn.tailwindcss.com"></script>
    <script src="https://cdn.jsdelivr.net/npm/chart.js"></script>
    <style>
        .gradient-bg {{
            background: linear-gradient(135deg, #1e3a5f 0%, #0d1b2a 100%);
        }}
        .card {{
            background: rgba(255, 255, 255, 0.95);
            backdrop-filter: blur(10px);
        }}
    </style>
</head>
<body class="gradient-bg min-h-screen">
    <div class="container mx-auto px-4 py-8">
        <header class="text-center mb-8">
            <h1 class="text-4xl font-bold text-white mb-2">{safe_title}</h1>
            <p class="text-blue-200">{safe_period}</p>
            <p class="text-blue-300 text-sm mt-2">Ao (blue), At (green), Reliability (amber) - % per week</p>
        </header>

        <div class="grid grid-cols-2 md:grid-cols-5 gap-4 mb-8">
{cards}
        </div>

        <div class="card rounded-xl p-4 shadow-lg">
            <div class="h-96">
                <canvas id="weekly-chart"></canvas>
            </div>
        </div>

        <footer class="text-center text-blue-200 text-sm py-8">
            <p>Generated {generated_date}</p>
        </footer>
    </div>

    <script>
        const weekly = {json.dumps(weekly.as_dict())};

        const ctx = document.getElementById('weekly-chart').getContext('2d');
        new Chart(ctx, {{
            type: 'line',
            data: {{
                labels: weekly.labels,
                datasets: [{{
                    label: 'Ao',
                    data: weekly.ao_data,
                    borderColor: 'rgb(59, 130, 246)',
                    tension: 0.3,
                    borderWidth: 2
                }}, {{
                    label: 'At',
                    data: weekly.at_data,
                    borderColor: 'rgb(16, 185, 129)',
                    tension: 0.3,
                    borderWidth: 2
                }}, {{
                    label: 'Reliability',
                    data: weekly.reliability_data,
                    borderColor: 'rgb(245, 158, 11)',
                    tension: 0.3,
                    borderWidth: 2
                }}]
            }},
            options: {{
                responsive: true,
                maintainAspectRatio: false,
                interaction: {{
                    intersect: false,
                    mode: 'index'
                }},
                scales: {{
                    y: {{
                        min: 0,
                        max: 100,
                        ticks: {{ stepSize: 20, color: '#9ca3af' }},
                        grid: {{ color: 'rgba(0,0,0,0.05)' }}
                    }},
                    x: {{
                        ticks: {{ color: '#9ca3af' }},
                        grid: {{ display: false }}
                    }}
                }}
            }}
        }});
    </script>
</body>
</html>'''
