"""
TradeCal Calibration Engine — pure, synchronous, no I/O.

Components:
- outcomes: pair consecutive directional recommendations into realized PnL
- buckets: fixed-width confidence bands with empirical win rates
- isotonic: pool-adjacent-violators to enforce monotonic win rates
- curve: build and apply the piecewise-linear calibration curve
- statistics: Pearson correlation and high/low win-rate splits
- health: staleness / quality classification of a stored calibration
"""
