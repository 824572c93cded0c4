from __future__ import annotations

import os
from typing import Any, Dict, Optional

from absl import logging
from dotenv import load_dotenv
from flask import Flask, jsonify, request  # type: ignore

from mansion_writer import config
from mansion_writer import data
from mansion_writer import exceptions
from mansion_writer import inference
from mansion_writer import pipeline


def _configure_logging(level: str) -> None:
    try:
        logging.set_verbosity(level)
    except (KeyError, ValueError):
        logging.warning("Unknown log level %r; keeping current verbosity", level)


def create_app(
    language_model: Optional[inference.BaseLanguageModel] = None,
    settings: Optional[config.Settings] = None,
    fetcher=None,
) -> Flask:
    """Build the Flask app.

    The language model is created from settings on first use unless one is
    injected (tests inject a fake model and fetcher).
    """
    settings = settings or config.Settings.from_env()
    _configure_logging(settings.log_level)

    app = Flask(__name__)
    state: Dict[str, Any] = {"model": language_model}

    def _model() -> inference.BaseLanguageModel:
        if state["model"] is None:
            state["model"] = settings.create_language_model()
        return state["model"]

    @app.get("/healthz")
    def healthz():
        return jsonify({"status": "ok"})

    @app.post("/api/generate")
    def generate():
        """Write a listing description from the sources in the JSON body."""
        payload = request.get_json(silent=True)
        if payload is None:
            return jsonify({"error": "JSON body is required"}), 400
        try:
            req = data.GenerationRequest.from_payload(payload)
        except exceptions.RequestValidationError as e:
            return jsonify({"error": str(e)}), 400

        kwargs: Dict[str, Any] = {"timeout": settings.fetch_timeout}
        if fetcher is not None:
            kwargs["fetcher"] = fetcher
        try:
            result = pipeline.generate(req, _model(), **kwargs)
        except exceptions.InferenceConfigError as e:
            logging.error("Text-generation service is not configured: %s", e)
            return jsonify({"error": str(e)}), 500
        except exceptions.InferenceError as e:
            logging.error("Text-generation service failed: %s", e)
            return jsonify({"error": str(e)}), 502
        except Exception as e:  # pylint: disable=broad-exception-caught
            logging.exception("Generation failed")
            return jsonify({"error": str(e) or "Server Error"}), 500
        return jsonify(result.to_json())

    return app


if __name__ == "__main__":
    load_dotenv()
    host = os.getenv("MANSION_WRITER_HOST", "127.0.0.1")
    port = int(os.getenv("MANSION_WRITER_PORT", "5000"))
    create_app().run(host=host, port=port, threaded=True)
