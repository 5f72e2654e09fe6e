"""Human-readable hints for errors raised by copernicusmarine."""

from typing import Literal

Operation = Literal["download", "open_dataset", "read_dataframe"]

DATE_KEYWORDS: tuple[str, ...] = ("date", "time")
VARIABLE_KEYWORDS: tuple[str, ...] = ("variable",)
CREDENTIAL_KEYWORDS: tuple[str, ...] = ("credential", "auth", "login")
COORDINATE_KEYWORDS: tuple[str, ...] = ("longitude", "latitude", "bbox", "coordinates")
DEPTH_KEYWORDS: tuple[str, ...] = ("depth",)
MEMORY_KEYWORDS: tuple[str, ...] = ("memory", "size", "large")
NETWORK_KEYWORDS: tuple[str, ...] = ("network", "connection", "timeout")

DATE_HINT = (
    "Dates may not be available. Check that the dates are in YYYY-MM-DD format "
    "and fall within the dataset's temporal range."
)
VARIABLE_HINT = (
    "Variable issue. Check that the variables exist in this dataset "
    "(names are case-sensitive)."
)
CREDENTIAL_HINT = (
    "Authentication issue. Check your username/password and that your "
    "Copernicus Marine account is active."
)
COORDINATE_HINT = (
    "Coordinate issue. Check that bbox is [xmin, xmax, ymin, ymax], within the "
    "dataset's range (longitude -180 to 180, latitude -90 to 90)."
)
DEPTH_HINT = (
    "Depth issue. Check that the dataset has depth data and that the values "
    "are within the available range."
)
MEMORY_HINT = (
    "Memory issue. Reduce the time range, the region or the number of "
    "variables, or use download() for very large requests."
)
NETWORK_HINT = (
    "Connection issue. Check your internet connection, retry later or reduce "
    "the request size."
)

# First match wins.
HINT_RULES: tuple[tuple[str, tuple[str, ...], str], ...] = (
    ("date", DATE_KEYWORDS, DATE_HINT),
    ("variable", VARIABLE_KEYWORDS, VARIABLE_HINT),
    ("credential", CREDENTIAL_KEYWORDS, CREDENTIAL_HINT),
    ("coordinate", COORDINATE_KEYWORDS, COORDINATE_HINT),
    ("depth", DEPTH_KEYWORDS, DEPTH_HINT),
    ("memory", MEMORY_KEYWORDS, MEMORY_HINT),
    ("network", NETWORK_KEYWORDS, NETWORK_HINT),
)

# Memory hints only make sense when data is loaded into memory.
IN_MEMORY_OPERATIONS: frozenset[str] = frozenset({"read_dataframe"})


def hint_for(message: str, *, operation: Operation = "download") -> str | None:
    """Pick a hint by case-insensitive substring match on an error message.

    Args:
        message: The error message from the wrapped client.
        operation: Operation that failed; memory hints apply to
            read_dataframe only.

    Returns:
        The hint text, or None if no rule matches.
    """
    message_lower = message.lower()
    for category, keywords, hint in HINT_RULES:
        if category == "memory" and operation not in IN_MEMORY_OPERATIONS:
            continue
        if any(keyword in message_lower for keyword in keywords):
            return hint
    return None
