"""
Retail Reporting Query Set

Analytical reports (totals, segments, rankings, time series, outliers)
over customers, transactions, products and regions.
"""

__version__ = "1.0.0"
