from typing import Any, Dict

# Defaults for a monitoring session; scripts copy and override these
DEFAULT_CONFIG: Dict[str, Any] = {
    "PORT": None,  # serial device name; None picks the first enumerated port
    "EXPECTED_PORT": None,  # refuse to start unless the port has this name
    "BAUDRATE": 9600,
    "READ_TIMEOUT": 1.0,  # seconds a read may block on a silent device
    "LOG_PATH": "./data/samples.csv",  # durable sample log (timestamp_ms,value)
    "REPLAY_LOG": False,  # preload the store from LOG_PATH before ingesting
    "REFRESH_PERIOD": 1.0,  # seconds between chart refreshes
    "TARGET_POINTS": 1000,  # points handed to the renderer per refresh
    "DISCARD_STALE": False,  # drop refresh results older than the installed one
    "CHART_TITLE": "Live sensor",
    "CHART_SIZE": (1000, 500),  # pixels
    "LOG_LEVEL": "INFO",  # DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL
}


def merge_config(overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Return DEFAULT_CONFIG updated with ``overrides``, rejecting unknown keys."""
    unknown = set(overrides) - set(DEFAULT_CONFIG)
    if unknown:
        raise KeyError(f"Unknown configuration keys: {sorted(unknown)}")
    merged = DEFAULT_CONFIG.copy()
    merged.update(overrides)
    return merged
