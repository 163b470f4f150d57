"""
Command-line tools for the lock pool.

Entry points:
  python -m lockpool.cli.pool_inspect --help
"""
