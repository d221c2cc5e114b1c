"""
File operation utilities.

Exports of API data: JSON reports and CSV tables (credit history,
bookings, template previews).
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd


logger = logging.getLogger(__name__)


def save_json(data: Any, filepath: Path) -> bool:
    """
    Save data to a JSON file.

    Args:
        data: JSON-serializable data
        filepath: Destination path (parents are created)

    Returns:
        True if save successful, False otherwise

    Examples:
        >>> save_json({"balance": 10}, Path("output/exports/balance.json"))
        True
    """
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2, default=str)

        logger.debug(f"Saved JSON file: {filepath}")
        return True

    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to save JSON file {filepath}: {e}", exc_info=True)
        return False


def load_json(filepath: Path) -> Optional[Any]:
    """
    Load data from a JSON file.

    Returns:
        Loaded data, or None if the file is missing or invalid
    """
    if not filepath.exists():
        logger.warning(f"JSON file not found: {filepath}")
        return None

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)

        logger.debug(f"Loaded JSON file: {filepath}")
        return data

    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in file {filepath}: {e}")
        return None

    except OSError as e:
        logger.error(f"Failed to load JSON file {filepath}: {e}", exc_info=True)
        return None


def records_to_dataframe(
    records: Iterable[Dict[str, Any]],
    columns: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Build a DataFrame from API records.

    Args:
        records: List of dicts as returned by the API
        columns: Columns to keep, in order (missing ones are filled with NaN)

    Returns:
        DataFrame with one row per record

    Examples:
        >>> df = records_to_dataframe(
        ...     [{"id": "t1", "amount": -1, "reason": "Booking"}],
        ...     columns=["id", "amount"]
        ... )
        >>> list(df.columns)
        ['id', 'amount']
    """
    df = pd.DataFrame(list(records))
    if columns is not None:
        df = df.reindex(columns=columns)
    return df


def save_csv(df: pd.DataFrame, filepath: Path) -> bool:
    """
    Save DataFrame to a CSV file.

    Returns:
        True if save successful, False otherwise
    """
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(filepath, index=False, encoding='utf-8')

        logger.debug(f"Saved CSV file: {filepath} ({len(df)} rows)")
        return True

    except OSError as e:
        logger.error(f"Failed to save CSV file {filepath}: {e}", exc_info=True)
        return False


def generate_filename(prefix: str, extension: str) -> str:
    """
    Generate timestamped filename.

    Examples:
        >>> generate_filename("credit_history", "csv")  # doctest: +SKIP
        'credit_history_20251101_103045.csv'
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.{extension}"
