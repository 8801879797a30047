"""YoY Finance dashboard package.

This package contains the import pipeline, the persistent transaction
store and the year-over-year views behind a Streamlit dashboard.  See
``process_transactions.py`` and ``app.py`` for entry points.
"""
