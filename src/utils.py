"""Common utilities for Yamanote Finder."""
import re
import pandas as pd


def normalize_station_name(name):
    """Normalize station names (Japanese or romanized) for matching."""
    if pd.isna(name):
        return ""
    name = str(name)
    name = re.sub(r"[\(（][^)）]*[\)）]", "", name)
    name = re.sub(r"\[[^\]]*\]", "", name)
    name = name.replace(" ", "").replace("　", "").strip()
    name = re.sub(r"駅$", "", name)
    name = re.sub(r"(?i)station$", "", name)
    return name.casefold()


def clamp(value: float, lower: float, upper: float) -> float:
    return min(upper, max(lower, value))
