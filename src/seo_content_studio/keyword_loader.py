"""
Target keyword import from CSV and Excel files.

Keyword research exports name their columns inconsistently, so the
keyword column (and an optional search volume column) are detected
from a list of common variants.
"""

from pathlib import Path
from typing import Optional, Union

import pandas as pd

from .errors import KeywordLoadError
from .models import normalize_keywords


KEYWORD_COLUMN_VARIANTS = ["keyword", "keywords", "term", "terms", "query", "queries", "phrase"]
VOLUME_COLUMN_VARIANTS = ["search_volume", "volume", "searchvolume", "sv", "avg_monthly_searches"]


def _normalize_column_name(name) -> str:
    return str(name).lower().strip().replace(" ", "_").replace("-", "_")


def _find_column(df: pd.DataFrame, variants: list[str]) -> Optional[str]:
    """
    Find a column in the DataFrame matching one of the variant names.

    Returns:
        The actual column name if found, None otherwise.
    """
    normalized_columns = {_normalize_column_name(col): col for col in df.columns}
    for variant in variants:
        if variant in normalized_columns:
            return normalized_columns[variant]
    return None


def _read_frame(path: Path, sheet_name: Optional[str]) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        try:
            return pd.read_csv(path, encoding="utf-8")
        except UnicodeDecodeError:
            try:
                return pd.read_csv(path, encoding="latin-1")
            except Exception as e:
                raise KeywordLoadError(f"Failed to read CSV file: {e}")
        except Exception as e:
            raise KeywordLoadError(f"Failed to read CSV file: {e}")
    if suffix in (".xlsx", ".xls"):
        try:
            return pd.read_excel(path, sheet_name=sheet_name or 0)
        except Exception as e:
            raise KeywordLoadError(f"Failed to read Excel file: {e}")
    raise KeywordLoadError(
        f"Unsupported file format: {suffix}. Supported formats: .csv, .xlsx, .xls"
    )


def parse_keyword_frame(df: pd.DataFrame, sort_by_volume: bool = False) -> list[str]:
    """
    Extract target keywords from a DataFrame.

    Args:
        df: DataFrame with a keyword column.
        sort_by_volume: Order keywords by search volume, highest first,
            when a volume column is present. Rows without a volume go last.

    Returns:
        Trimmed keywords with case-insensitive duplicates removed.

    Raises:
        KeywordLoadError: If the frame is empty or has no keyword column.
    """
    if df.empty:
        raise KeywordLoadError("Keyword file is empty")

    keyword_col = _find_column(df, KEYWORD_COLUMN_VARIANTS)
    if keyword_col is None:
        raise KeywordLoadError(
            f"No keyword column found. Expected one of: {', '.join(KEYWORD_COLUMN_VARIANTS)}. "
            f"Found columns: {', '.join(str(col) for col in df.columns)}"
        )

    volume_col = _find_column(df, VOLUME_COLUMN_VARIANTS)
    if sort_by_volume and volume_col is not None:
        volumes = pd.to_numeric(df[volume_col], errors="coerce")
        df = df.assign(_volume=volumes).sort_values(
            "_volume", ascending=False, na_position="last", kind="stable"
        )

    phrases = [
        str(value).strip()
        for value in df[keyword_col]
        if not pd.isna(value) and str(value).strip()
    ]
    keywords = normalize_keywords(phrases)
    if not keywords:
        raise KeywordLoadError("No valid keywords found in file")
    return keywords


def load_keywords(
    file_path: Union[str, Path],
    sheet_name: Optional[str] = None,
    sort_by_volume: bool = False,
) -> list[str]:
    """
    Load target keywords from a CSV or Excel file.

    The file type is detected from the extension.

    Raises:
        KeywordLoadError: If the file is missing, unreadable or has no keywords.
    """
    path = Path(file_path)
    if not path.exists():
        raise KeywordLoadError(f"File not found: {file_path}")
    return parse_keyword_frame(_read_frame(path, sheet_name), sort_by_volume=sort_by_volume)
