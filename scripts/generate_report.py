"""
Script to generate weekly reports based on a YAML configuration.

Example configuration:

    user_id: anna
    week_offset: -1
    scope: team
    output_path: reports/last_week.txt
    matrix_output_path: reports/last_week.csv
"""

import sys
import yaml
import asyncio
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from timebill.infra.db import init_db
from timebill.infra.repository import SqlEntryStore
from timebill.services.report_service import ReportService, WeeklyReportConfiguration


async def main():
    if len(sys.argv) < 2:
        print("Usage: python generate_report.py <config_file.yaml>")
        sys.exit(1)

    config_path = Path(sys.argv[1])
    if not config_path.exists():
        print(f"Error: Config file '{config_path}' not found.")
        sys.exit(1)

    print(f"Loading configuration from {config_path}...")
    with open(config_path, 'r') as f:
        config_data = yaml.safe_load(f)

    try:
        config = WeeklyReportConfiguration(**config_data)
    except Exception as e:
        print(f"Error parsing configuration: {e}")
        sys.exit(1)

    # Default output next to the configuration file
    if not config.output_path:
        config.output_path = str(config_path.parent / f"report_week{config.week_offset:+d}.txt")

    print(f"Generating report for week offset {config.week_offset} ({config.scope.value})")
    await init_db()
    service = ReportService(SqlEntryStore())

    await service.generate_weekly_report(config)

    print(f"Report successfully saved to: {Path(config.output_path).absolute()}")


if __name__ == "__main__":
    asyncio.run(main())
