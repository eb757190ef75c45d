import os
import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv

log = logging.getLogger("beacon.config")

# Project root is one level up from src/
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

BACKENDS = ("simulated", "corebluetooth")


def _env_int(name: str, default):
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def load_config(config_path: str = None) -> dict:
    """Load configuration from YAML file with .env overrides."""
    load_dotenv(PROJECT_ROOT / ".env")

    yaml_path = Path(config_path) if config_path else CONFIG_DIR / "beacon.yaml"
    if not yaml_path.exists():
        log.warning("Config file not found: %s, using defaults", yaml_path)
        config = {}
    else:
        with open(yaml_path) as f:
            config = yaml.safe_load(f) or {}

    # Environment variable overrides
    beacon = config.setdefault("beacon", {})
    beacon["uuid"] = os.environ.get(
        "BEACON_UUID", beacon.get("uuid", "E2C56DB5-DFFB-48D2-B060-D0F5A71096E0"))
    beacon["identifier"] = os.environ.get(
        "BEACON_IDENTIFIER", beacon.get("identifier", "CoreLocation-Redux"))
    beacon["major"] = _env_int("BEACON_MAJOR", beacon.get("major", 0))
    beacon["minor"] = _env_int("BEACON_MINOR", beacon.get("minor", 0))
    beacon["measured_power"] = _env_int("BEACON_MEASURED_POWER",
                                        beacon.get("measured_power"))

    hw = config.setdefault("hardware", {})
    hw["backend"] = os.environ.get("BEACON_BACKEND", hw.get("backend", "simulated"))
    hw["ack_delay"] = float(hw.get("ack_delay", 0.2))
    hw.setdefault("simulate_peer", None)
    if hw["backend"] not in BACKENDS:
        raise ValueError(
            f"Unknown hardware backend {hw['backend']!r} (expected one of {BACKENDS})")

    display = config.setdefault("display", {})
    display["fps"] = _env_int("DISPLAY_FPS", display.get("fps", 10))
    if display["fps"] <= 0:
        raise ValueError(f"display fps must be positive, got {display['fps']}")
    display["snapshot_path"] = os.environ.get("SNAPSHOT_PATH",
                                              display.get("snapshot_path"))

    log.info(
        "Config loaded: beacon %s (%s), backend %s, %d fps",
        beacon["uuid"],
        beacon["identifier"],
        hw["backend"],
        display["fps"],
    )
    return config
