"""Export utilities for the campaign-ready prospect table."""
from __future__ import annotations

import json
from pathlib import Path
from typing import MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..errors import UnsupportedFileTypeError
from ..models import RenderedProspect

PathLike = Union[str, Path]

EXPORT_COLUMNS = ["company", "city", "phone", "business_type", "whatsapp_message"]


def export_campaign(
    results: Sequence[RenderedProspect],
    path: PathLike,
    *,
    escape_newlines: bool = False,
    sheet_name: str = "Campaign",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write the campaign table to a CSV, TSV or Excel file.

    With ``escape_newlines`` the line breaks inside messages are written as the
    two characters ``\\n`` so that every record stays on one physical line.
    """

    dataframe = campaign_to_dataframe(results, escape_newlines=escape_newlines)
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(dataframe, output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def campaign_to_dataframe(
    results: Sequence[RenderedProspect],
    *,
    escape_newlines: bool = False,
) -> pd.DataFrame:
    """Convert rendered prospects into a :class:`pandas.DataFrame`, one row each."""

    records = [result.as_export_row() for result in results]
    dataframe = pd.DataFrame(records, columns=EXPORT_COLUMNS)
    if escape_newlines:
        dataframe["whatsapp_message"] = dataframe["whatsapp_message"].str.replace("\n", "\\n", regex=False)
    return dataframe


def detailed_output_path(path: PathLike) -> Path:
    output_path = Path(path)
    return output_path.with_name(f"{output_path.stem}-detailed.json")


def write_detailed_json(results: Sequence[RenderedProspect], path: PathLike) -> Path:
    """Persist every intermediate field next to the export, for diagnostics."""

    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    payload = [result.as_detailed_dict() for result in results]
    destination.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return destination


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xlsx", ".xlsm"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise UnsupportedFileTypeError(f"Unsupported export file extension: {suffix}")


__all__ = [
    "EXPORT_COLUMNS",
    "campaign_to_dataframe",
    "detailed_output_path",
    "export_campaign",
    "write_detailed_json",
]
