"""Runtime configuration state management."""

# Global runtime configuration state
_config = {
    "debug": False,
    "normalize_timestamps": True,
    "binary_tag_max_length": 256,
}


def set_debug(value: bool) -> None:
    _config["debug"] = value


def get_debug() -> bool:
    return _config["debug"]


def set_normalize_timestamps(value: bool) -> None:
    _config["normalize_timestamps"] = value


def get_normalize_timestamps() -> bool:
    return _config["normalize_timestamps"]


def set_binary_tag_max_length(value: int) -> None:
    if value < 0:
        raise ValueError("binary_tag_max_length must be non-negative")
    _config["binary_tag_max_length"] = value


def get_binary_tag_max_length() -> int:
    return _config["binary_tag_max_length"]


def reset() -> None:
    """Restore every setting to its default."""
    _config.update(
        debug=False,
        normalize_timestamps=True,
        binary_tag_max_length=256,
    )
