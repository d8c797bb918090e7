"""
Shared helpers: configuration loading, numeric field access and the CLI.
"""
