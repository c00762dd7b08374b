# config.py

import json
import os

import yaml


class Config:
    """Global configuration loaded from ``input/config.json``.

    Attributes
    ----------
    wall_budget:
        Seconds of real time a single engine advance may spend before
        returning control to the host loop. ``0.033`` keeps a 30 Hz frame.
    delay_check_interval:
        Simulated seconds between delay monitor callbacks.
    time_warp_halt_limit:
        Last delay (simulated seconds) chosen for "jump to next delay". A
        congested location older than this halts the warp.
    halt_limit_choices:
        Delays offered by the jump dialog, as ``[label, seconds]`` pairs.
    slider_round_seconds:
        Granularity the jump slider rounds its target time to.
    dont_draw_time_warp:
        When ``True`` the host skips drawing the map while warping.
    chart:
        Baseline chart geometry: ``width``, ``height`` and the number of
        ``points`` requested from the downsampler.
    logging_mode:
        ``diagnostic`` enables every session log, otherwise only the listed
        categories are written.
    log_files:
        Mapping of ``category`` -> {``label``: bool} toggling individual
        session log records.
    """

    # Base directories for package resources
    base_dir = os.path.abspath(os.path.dirname(__file__))
    input_dir = os.path.join(base_dir, "input")
    config_file = os.path.join(input_dir, "config.json")
    scenario_file = os.path.join(input_dir, "scenario.yaml")
    baseline_file: str | None = None
    output_root = os.path.join(base_dir, "output")
    output_dir = output_root

    @staticmethod
    def input_path(*parts: str) -> str:
        """Return absolute path under the ``input`` directory."""
        return os.path.join(Config.input_dir, *parts)

    @staticmethod
    def output_path(*parts: str) -> str:
        """Return absolute path under the current output directory."""
        return os.path.join(Config.output_dir, *parts)

    wall_budget = 0.033
    delay_check_interval = 60.0
    time_warp_halt_limit = 60.0
    halt_limit_choices = [
        ["1 minute delay", 60.0],
        ["2 minute delay", 120.0],
        ["5 minute delay", 300.0],
        ["10 minute delay", 600.0],
    ]
    slider_round_seconds = 600.0
    dont_draw_time_warp = False
    chart = {"width": 500.0, "height": 50.0, "points": 100}

    log_verbosity = "info"
    logging_mode = ["diagnostic"]

    DEFAULT_LOG_FILES = {
        "warp": {
            "session_started": True,
            "session_ended": True,
        },
    }

    # Default runtime copy
    log_files = {k: dict(v) for k, v in DEFAULT_LOG_FILES.items()}

    @classmethod
    def is_category_enabled(cls, category: str) -> bool:
        """Return ``True`` if ``category`` should be written based on mode."""
        mode = set(getattr(cls, "logging_mode", ["diagnostic"]))
        return "diagnostic" in mode or category in mode

    @classmethod
    def is_log_enabled(cls, category: str, label: str | None = None) -> bool:
        """Return ``True`` if a log entry should be written."""

        cfg = cls.log_files.get(category, {})
        if label is not None and not cfg.get(label, True):
            return False
        return cls.is_category_enabled(category)

    @classmethod
    def halt_limit_values(cls) -> list[float]:
        """Return the delay choices offered by the jump dialog, in seconds."""
        return [float(seconds) for _, seconds in cls.halt_limit_choices]

    @classmethod
    def load_from_file(cls, path: str) -> None:
        """Load configuration values from a JSON or YAML file.

        Only keys that already exist as attributes on ``Config`` will be
        assigned. Nested dictionaries are merged when the existing attribute
        is also a ``dict``. Relative ``scenario_file``, ``baseline_file`` and
        ``output_dir`` values are resolved against the directory containing
        ``path``.

        Parameters
        ----------
        path:
            Path to the configuration file. ``.yaml`` and ``.yml`` files are
            parsed with :mod:`yaml`, anything else as JSON.
        """

        data = _read_mapping(path)
        cls.config_file = os.path.abspath(path)
        base_dir = os.path.dirname(cls.config_file)

        for key, value in data.items():
            if not hasattr(cls, key):
                continue
            if key in {"scenario_file", "baseline_file", "output_dir"} and value:
                if not os.path.isabs(value):
                    value = os.path.join(base_dir, value)
                value = os.path.abspath(value)
            current = getattr(cls, key)
            if isinstance(current, dict) and isinstance(value, dict):
                current.update(value)
            else:
                setattr(cls, key, value)


def _read_mapping(path: str) -> dict:
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    with open(path) as f:
        if path.endswith((".yaml", ".yml")):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return data


def load_config(path: str | None = None) -> dict:
    """Load configuration from ``path`` and return the data."""
    if path is None:
        path = Config.input_path("config.json")
    Config.load_from_file(path)
    return _read_mapping(path)
