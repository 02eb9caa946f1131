from __future__ import annotations

import re
from pathlib import Path

from zone_import.cli import main as cli_main

"""SUMMARY line output contract."""

SUMMARY_RE = re.compile(
    r"^SUMMARY rows=(\d+) imported=(\d+) dropped=(\d+) geocoded=(\d+)/(\d+) "
    r"geocode_failed=(\d+) elapsed_sec=(\d+(\.\d+)?)$"
)


def test_summary_line_matches_contract(write_config, temp_workdir: Path, capsys):
    csv_path = temp_workdir / "data" / "zones.csv"
    csv_path.write_text("Name,Lat,Lng\nA,1,2\nB,3,4\n,5,6\n", encoding="utf-8")

    code = cli_main([str(csv_path)])
    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("SUMMARY")]

    assert code == 2
    assert len(lines) == 1
    m = SUMMARY_RE.match(lines[0])
    assert m, lines[0]
    rows, imported, dropped = (int(m.group(i)) for i in (1, 2, 3))
    assert (rows, imported, dropped) == (3, 2, 1)
    assert rows == imported + dropped
