from __future__ import annotations

import argparse
import json
import wave
from pathlib import Path

SAMPLE_RATE = 22050

# (folder, filename template, expected category hint)
TEMPLATES: list[tuple[str, str, str]] = [
    ("VendorA/Ambience", "AMBUrbn_NightTraffic_{n:02d}", "Ambient/Ambience/Urban"),
    ("VendorA/Ambience", "AMBForst_Birds_Morning_{n:02d}", "Ambient/Ambience/Forest"),
    ("VendorA/Weather", "RAIN_Roof_Heavy_{n:02d}", "Weather/Rain"),
    ("VendorA/Weather", "WIND_Gust_Howling_{n:02d}", "Weather/Wind"),
    ("VendorB/Weapons", "GUNRif_Shot_Close_{n:02d}", "Weapons/Guns/Rifle"),
    ("VendorB/Weapons", "gunshot_pistol_indoor_{n:02d}", "Weapons/Guns"),
    ("VendorB/Foley", "Footsteps_Gravel_Run_{n:02d}", "Foley/Footsteps"),
    ("VendorB/Foley", "door_slam_wood_{n:02d}", "Doors"),
    ("VendorC/Design", "whoosh_fast_pass_{n:02d}", "Design/Whooshes"),
    ("VendorC/Design", "DSGNRise_Tension_{n:02d}", "Design/Risers"),
    ("VendorC/UI", "ui_click_soft_{n:02d}", "UI"),
    ("VendorC/Vehicles", "car_passby_fast_{n:02d}", "Vehicles/Pass By"),
    # Deliberately opaque names that only the similarity pass can place
    ("VendorD/Guns", "take_gunshot_alt_{n:02d}", "unknown/similarity"),
    ("VendorD/Rain", "rec_roof_heavy_{n:02d}", "unknown/similarity"),
    ("VendorD/Misc", "Xk{n:02d}_misc", "unknown/low-confidence"),
]


def write_silent_wav(path: Path, duration_s: float = 0.05, sample_rate: int = SAMPLE_RATE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(b"\x00\x00" * int(duration_s * sample_rate))


def build_library(root: Path, per_template: int) -> list[dict[str, object]]:
    cases: list[dict[str, object]] = []
    for folder, template, expected in TEMPLATES:
        for n in range(1, per_template + 1):
            rel = f"{folder}/{template.format(n=n)}.wav"
            write_silent_wav(root / rel)
            cases.append({"path": rel, "expected_category_hint": expected})
    return cases


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a deterministic placeholder SFX library for demos/profiling.")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("examples") / "synthetic_library",
        help="Output folder (default: examples/synthetic_library)",
    )
    parser.add_argument("--per-template", type=int, default=20, help="Files generated per naming template")
    args = parser.parse_args()

    output_root = args.output.resolve()
    output_root.mkdir(parents=True, exist_ok=True)
    cases = build_library(output_root, max(1, args.per_template))

    manifest = {
        "version": 1,
        "description": "Deterministic placeholder SFX library (silent WAVs with realistic names).",
        "generator": "scripts/generate_synthetic_library.py",
        "cases": cases,
    }
    (output_root / "manifest.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    print(f"Generated {len(cases)} WAV files under {output_root}")
    print(f"Wrote manifest: {output_root / 'manifest.json'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
