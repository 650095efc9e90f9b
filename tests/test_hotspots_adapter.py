# tp53-status/tests/test_hotspots_adapter.py
from __future__ import annotations

import importlib.util

import pandas as pd
import pytest

from tp53_status.adapters.hotspots import HotspotAdapterConfig, read_hotspot_positions


def _require_openpyxl() -> None:
    if importlib.util.find_spec("openpyxl") is None:
        pytest.skip("openpyxl is required for the hotspot xlsx test")


def test_read_hotspot_positions_tsv(tmp_path):
    p = tmp_path / "hotspots.tsv"
    p.write_text(
        "Hugo_Symbol\tAmino_Acid_Position\tReference_Amino_Acid\n"
        "TP53\t273\tR:3000\n"
        "TP53\t175\tR:1500\n"
        "TP53\t273\tR:3000\n"
        "KRAS\t12\tG:4000\n"
        "TP53\tNA\t\n",
        encoding="utf-8",
    )
    assert read_hotspot_positions(str(p)) == [175, 273]
    assert read_hotspot_positions(str(p), config=HotspotAdapterConfig(gene="KRAS")) == [12]


def test_read_hotspot_positions_xlsx_expands_indel_ranges(tmp_path):
    _require_openpyxl()

    xlsx_path = tmp_path / "hotspots_v2.xlsx"
    snv = pd.DataFrame(
        {"Hugo_Symbol": ["TP53", "TP53", "PIK3CA"], "Amino_Acid_Position": ["248", "282", "1047"]}
    )
    indel = pd.DataFrame({"Hugo_Symbol": ["TP53"], "Amino_Acid_Position": ["240-242"]})
    with pd.ExcelWriter(xlsx_path, engine="openpyxl") as w:
        snv.to_excel(w, sheet_name="SNV-hotspots", index=False)
        indel.to_excel(w, sheet_name="INDEL-hotspots", index=False)

    assert read_hotspot_positions(str(xlsx_path)) == [240, 241, 242, 248, 282]
    snv_only = HotspotAdapterConfig(include_indels=False)
    assert read_hotspot_positions(str(xlsx_path), config=snv_only) == [248, 282]


def test_read_hotspot_positions_xlsx_without_expected_sheets(tmp_path):
    _require_openpyxl()

    xlsx_path = tmp_path / "other.xlsx"
    with pd.ExcelWriter(xlsx_path, engine="openpyxl") as w:
        pd.DataFrame({"a": [1]}).to_excel(w, sheet_name="Sheet1", index=False)

    with pytest.raises(ValueError, match="expected sheets"):
        read_hotspot_positions(str(xlsx_path))
