import json
import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from sfx_categorizer.cli import main


@pytest.fixture
def library(tmp_path: Path) -> Path:
    lib = tmp_path / "lib"
    for rel in ["VendorA/AMBUrbn_NightTraffic_01.wav", "VendorB/Explosions/Big/Xk92_misc.wav", "DOOR_Slam_01.wav"]:
        path = lib / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
    return lib


def test_infer_prints_classification(capsys) -> None:
    assert main(["infer", "AMBUrbn_NightTraffic_01.wav"]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["tier1"] == "Ambient"
    assert result["tier2"] == "Ambience/Urban"
    assert result["confidence"] == pytest.approx(0.92)


def test_infer_explain(capsys) -> None:
    assert main(["infer", "--explain", "/lib/Explosions/Big/Xk92_misc.wav"]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["stage"] == "fallback"
    assert result["category"] == "Unsorted/Big"
    assert "matches" in result


def test_scan_prints_report(library: Path, capsys) -> None:
    assert main(["scan", str(library), "--no-similarity", "--portable"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["files_processed"] == 3
    categories = {entry["key"]: entry["category"] for entry in report["items"]}
    assert categories["DOOR_Slam_01.wav"] == "Doors"
    assert categories["VendorB/Explosions/Big/Xk92_misc.wav"] == "Unsorted/Big"


def test_scan_writes_output_file(library: Path, tmp_path: Path, capsys) -> None:
    out_file = tmp_path / "reports" / "scan.json"
    assert main(["scan", str(library), "--portable", "--workers", "2", "--output", str(out_file)]) == 0
    assert "Report written to" in capsys.readouterr().out
    report = json.loads(out_file.read_text(encoding="utf-8"))
    assert report["workers"] == 2
    assert len(report["items"]) == 3


def test_override_then_scan(library: Path, capsys) -> None:
    assert main(["override", str(library), "DOOR_Slam_01.wav", "Foley/Doors"]) == 0
    assert json.loads(capsys.readouterr().out)["manual_category"] == "Foley/Doors"

    assert main(["scan", str(library), "--portable"]) == 0
    report = json.loads(capsys.readouterr().out)
    door = next(e for e in report["items"] if e["key"] == "DOOR_Slam_01.wav")
    assert door["source"] == "override"

    assert main(["override", str(library), "DOOR_Slam_01.wav"]) == 0
    assert json.loads(capsys.readouterr().out)["manual_category"] is None


def test_tree_prints_indented_lines(library: Path, capsys) -> None:
    assert main(["tree", str(library), "--portable"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "(All) (3)"
    assert "  Unsorted (1)" in lines
    assert "    Big (1)" in lines


def test_missing_root_is_an_error(tmp_path: Path, capsys) -> None:
    assert main(["scan", str(tmp_path / "missing")]) == 1
    assert "Error:" in capsys.readouterr().out


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        main([])
