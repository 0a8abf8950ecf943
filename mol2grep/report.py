"""
PDF energy report for the table operation.

One page: a histogram of record energies next to a table of summary
statistics.
"""

from pathlib import Path
from typing import Dict, Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages


def summarize_energies(energies: Sequence[float]) -> Dict[str, float]:
    """
    Summary statistics of a set of energies.

    Args:
        energies: Record energies

    Returns:
        Dict[str, float]: count, min, max, mean, median and std
    """
    values = np.asarray(energies, dtype=float)
    if values.size == 0:
        return {'count': 0}
    return {
        'count': int(values.size),
        'min': float(values.min()),
        'max': float(values.max()),
        'mean': float(values.mean()),
        'median': float(np.median(values)),
        'std': float(values.std())
    }


def write_energy_report(energies: Sequence[float], report_file: str,
                        title: str = "Energy Report", bins: int = 50) -> bool:
    """
    Write a one-page PDF with an energy histogram and summary table.

    Args:
        energies: Record energies in output order
        report_file: Path of the PDF to write
        title: Figure title
        bins: Number of histogram bins

    Returns:
        bool: True if the report was written, False if there was nothing to plot
    """
    stats = summarize_energies(energies)
    if stats['count'] == 0:
        print("No records written. Skipping energy report generation.")
        return False

    report_path = Path(report_file)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    values = np.asarray(energies, dtype=float)

    with PdfPages(report_path) as pdf:
        fig = plt.figure(figsize=(14, 6))

        # Histogram on the left
        ax1 = plt.subplot(121)
        ax1.hist(values, bins=bins, color='blue', alpha=0.7)
        ax1.axvline(stats['mean'], color='red', linewidth=2, label='Mean')
        ax1.axvline(stats['median'], color='black', linestyle='--', linewidth=1.5, label='Median')
        ax1.set_xlabel('Total Energy')
        ax1.set_ylabel('Records')
        ax1.legend(loc='upper right', fontsize=9)
        ax1.grid(True, alpha=0.3)

        # Summary table on the right
        ax2 = plt.subplot(122)
        ax2.axis('off')
        headers = ['Statistic', 'Value']
        table_data = [['Records', f"{stats['count']}"]]
        for key in ('min', 'max', 'mean', 'median', 'std'):
            table_data.append([key.capitalize(), f"{stats[key]:.3f}"])

        table = ax2.table(cellText=table_data, colLabels=headers,
                          cellLoc='center', loc='upper center',
                          colWidths=[0.4, 0.4])
        table.auto_set_font_size(False)
        table.set_fontsize(10)
        table.scale(1.0, 1.8)

        for i in range(len(headers)):
            table[(0, i)].set_facecolor('#40466e')
            table[(0, i)].set_text_props(weight='bold', color='white')

        ax2.set_title('Energy Summary', fontsize=12, fontweight='bold', pad=5)
        fig.suptitle(title, fontsize=16, fontweight='bold')

        plt.tight_layout()
        plt.subplots_adjust(top=0.88)
        pdf.savefig(fig, bbox_inches='tight')
        plt.close(fig)

    print(f"Generated energy report: {report_path}")
    return True
