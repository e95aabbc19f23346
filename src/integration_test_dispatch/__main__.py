"""Module entry point for `python -m integration_test_dispatch`."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
