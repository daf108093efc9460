"""
CLI command functions, one module per command.
"""
