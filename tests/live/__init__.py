"""Live endpoint suites, run with ``pytest -m live`` and a configured API key."""
