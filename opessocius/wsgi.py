#setup: python -m venv .venv
#setup: source .venv/bin/activate   # (windows: .venv\Scripts\activate)
#setup: pip install -e .
#setup: flask --app opessocius.wsgi run --port 3000 --debug

from __future__ import annotations

from opessocius.app import create_app

app = create_app()


if __name__ == "__main__":
    app.run(port=3000, debug=app.config["DEBUG"])
