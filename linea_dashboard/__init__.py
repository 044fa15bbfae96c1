"""
Daily Line Dashboard

Turns the CSV export of the daily operations sheet (metric names down
column A, one column per day) into one card per day: line TM and line TT
tiles, the list of absent employees (legajos) and the full metric table,
limited to a trailing window ending on the latest day with data.

To point at another sheet:
    Change config.DEFAULT_SHEET_URL / DEFAULT_GID, or pass --url to main.py.
    The sheet must be published or shared for reading.

To connect to Streamlit or another renderer:
    Call pipeline.ingest_text(raw_csv, config) and hand the result to
    dashboard.get_window_overview(result, query) for plain dicts.

To add a KPI tile:
    Add its label to config, a matcher to kpis, and a field to
    models.DayKpis; transforms.build_day_card fills it row by row.
"""
