"""Healthcare Financial Analytics & Insight Pipeline.

Reconciles three independently-sourced record collections (billing payments,
payroll, inventory) into a profit/loss statement, ratio KPIs, a joined monthly
time series, payment-status partitions, and prioritized advisory insights.
"""

__version__ = "1.0.0"
