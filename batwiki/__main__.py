# batwiki/__main__.py
from batwiki.cli import app

if __name__ == "__main__":
    app()
