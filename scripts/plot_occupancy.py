import argparse
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

# ============================================================
# Paths
# ============================================================
# usage: python3 scripts/plot_occupancy.py --input placements.csv
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

parser = argparse.ArgumentParser()
parser.add_argument("--input", type=Path, default=PROJECT_ROOT / "placements.csv")
args = parser.parse_args()

print(f"Loading placements from: {args.input}")

# ============================================================
# Load CSV
# ============================================================
df = pd.read_csv(args.input)
df.columns = df.columns.str.strip()
df["preferred"] = df["preferred"].astype(str).str.lower() == "true"

# ============================================================
# PLOT 1 — Sessions per lab per day
# ============================================================
plt.figure(figsize=(8, 4))
per_day = (
    df.groupby(["day", "lab"]).size()
      .unstack(fill_value=0)
      .reindex(DAY_ORDER, fill_value=0)
)

bottom = None
for lab in per_day.columns:
    if bottom is None:
        plt.bar(per_day.index, per_day[lab], label=lab)
        bottom = per_day[lab].copy()
    else:
        plt.bar(per_day.index, per_day[lab], bottom=bottom, label=lab)
        bottom += per_day[lab]

plt.ylabel("Lab sessions")
plt.title("Laboratory sessions per day")
plt.legend()
plt.grid(axis="y")
plt.tight_layout()

# ============================================================
# PLOT 2 — Share of first-choice placements per lab
# ============================================================
plt.figure(figsize=(6, 4))
share = df.groupby("lab")["preferred"].mean().sort_index()

plt.bar(share.index, share.values)
plt.ylim(0, 1)
plt.ylabel("First-choice share")
plt.title("Placements in the first-choice lab")
plt.grid(axis="y")
plt.tight_layout()

# ============================================================
# SHOW ALL FIGURES AT ONCE
# ============================================================
plt.show()
