"""Utilities for loading prospect rows from spreadsheets."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional, Union

import pandas as pd

from ..errors import InputFileNotFoundError, UnsupportedFileTypeError

PathLike = Union[str, Path]

RawRow = Dict[str, str]


def normalise_column(value: Any) -> str:
    return str(value).strip().lower().replace(" ", "_")


def load_rows(
    path: PathLike,
    *,
    sheet_name: Union[str, int] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[RawRow]:
    """Load the raw rows of a prospects spreadsheet.

    Every cell is returned as a stripped string (empty cells become ``""``) and
    column names are normalised to ``snake_case`` so that ``Business Type`` and
    ``business_type`` are the same column.  Rows whose cells are all empty are
    kept so that the position of a row in the returned list is always its data
    row number in the source file.

    Parameters
    ----------
    path:
        Path to the CSV/TSV/Excel file to be loaded.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel`. Ignored for CSV files.
    loader_kwargs:
        Extra keyword arguments forwarded to :func:`pandas.read_csv` or
        :func:`pandas.read_excel`.
    """

    path_obj = Path(path)
    if not path_obj.exists():
        raise InputFileNotFoundError(f"Input file not found: {path_obj}")

    dataframe = _read_dataframe(path_obj, sheet_name=sheet_name, loader_kwargs=loader_kwargs)
    dataframe.columns = [normalise_column(column) for column in dataframe.columns]

    return [
        {str(column): _clean_text(value) for column, value in record.items()}
        for record in dataframe.to_dict(orient="records")
    ]


def _read_dataframe(
    path: Path,
    *,
    sheet_name: Union[str, int] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    loader_kwargs.setdefault("dtype", str)
    loader_kwargs.setdefault("keep_default_na", False)
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        loader_kwargs.setdefault("encoding", "utf-8-sig")
        return pd.read_csv(path, **loader_kwargs)

    if suffix in {".xls", ".xlsx", ".xlsm"}:
        engine = loader_kwargs.pop("engine", None) or ("openpyxl" if suffix != ".xls" else None)
        return pd.read_excel(path, sheet_name=sheet_name, engine=engine, **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path.suffix}")


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


__all__ = ["load_rows", "normalise_column", "RawRow"]
