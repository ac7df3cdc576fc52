"""Allow ``python -m AssetKit.WebJars`` to run the CLI."""

from .cli import app

if __name__ == "__main__":  # pragma: no cover - exercised via CLI
    app()
