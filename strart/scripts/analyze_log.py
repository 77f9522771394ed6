import os, argparse

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from strart.utils.export import read_chosen_lines_csv


def plot_deltas(rows, out_path):
    ts = [r["t"] for r in rows]
    deltas = [r["delta"] for r in rows]
    lengths = [r["length"] for r in rows]

    fig, ax = plt.subplots()
    ax.plot(ts, deltas, label="delta")
    ax.set_xlabel("step (t)"); ax.set_ylabel("delta (more negative = better)")
    ax2 = ax.twinx()
    ax2.plot(ts, lengths, color="tab:orange", alpha=0.4, label="chord length (px)")
    ax2.set_ylabel("length")
    ax.set_title("Chord selection dynamics")
    fig.tight_layout()
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return out_path


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--log", default="outputs/chosen_lines.csv")
    ap.add_argument("--out", default=None)
    args = ap.parse_args(argv)

    rows = read_chosen_lines_csv(args.log)
    out = args.out or os.path.join(os.path.dirname(args.log), "deltas_plot.png")
    plot_deltas(rows, out)
    print(f"✅ saved {out}")


if __name__ == "__main__":
    main()
