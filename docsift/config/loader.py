"""Locate, read and validate docsift.yaml."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import ConverterConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG = "docsift.yaml"
USER_CONFIG = Path(".docsift") / "config.yaml"

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def config_search_paths(cli_path: str | Path | None = None) -> list[Path]:
    """Candidate config files, highest priority first."""
    paths = [Path(cli_path)] if cli_path else []
    paths.append(Path.cwd() / PROJECT_CONFIG)
    paths.append(Path.home() / USER_CONFIG)
    return paths


def load_config(cli_path: str | Path | None = None) -> ConverterConfig:
    """Load the first config found: explicit path > ./docsift.yaml > ~/.docsift/config.yaml.

    An explicit path must exist. An empty file counts as absent, so the
    search moves on to the next candidate and finally to the defaults.
    """
    if cli_path and not Path(cli_path).is_file():
        raise ValueError(f"Config file not found: {cli_path}")

    for path in config_search_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        logger.debug("Loading config from %s", path)
        try:
            return ConverterConfig(**_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e

    return ConverterConfig()


def _read_yaml(path: Path) -> dict | None:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(
            f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}"
        )
    return raw


def _expand_env_vars(obj: object) -> object:
    """Expand ${VAR} and ${VAR:-fallback} in every string of a parsed YAML tree."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), obj)
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(value) for value in obj]
    return obj


DEFAULT_CONFIG_TEMPLATE = """\
# docsift.yaml

# Formats the converter will accept (omit for all)
# allowed_formats: [pdf, docx, pptx, xlsx, html, csv, json, text, zip]

# Options handed to every backend
default_options:
  extract_images: true
  extract_tables: true
  extract_formatting: true
  ocr_languages: "eng"           # tesseract codes, e.g. "chi_sim+eng"
  # page_range: {start: 1, end: 10}
  # base_url: "https://example.com/"
  preserve_whitespace: false
  enable_transcript: false
  transcript_language: "en"
  # url: "${SOURCE_URL}"

# Markdown rendering
markdown:
  include_metadata: true
  heading_style: "atx"           # atx | setext
  bullet_char: "-"               # - | * | +
  code_block_style: "fenced"     # fenced | indented
  preserve_formatting: true

# Archive expansion limits
archive:
  max_depth: 5
  max_total_bytes: 104857600
  inline_text_limit: 10000
  preview_chars: 1000
"""
