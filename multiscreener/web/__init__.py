"""
Flask dashboard for on-demand screener runs and cached snapshots.
"""
