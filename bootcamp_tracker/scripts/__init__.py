"""Admin Scripts — one-off maintenance commands run with `python -m`."""
