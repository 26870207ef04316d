"""Allow ``python -m logtimings``."""

from logtimings.cli import app

if __name__ == "__main__":
    app()
