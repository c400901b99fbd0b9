"""Allow ``python -m packspec``."""

from packspec.main import main

if __name__ == "__main__":
    raise SystemExit(main())
